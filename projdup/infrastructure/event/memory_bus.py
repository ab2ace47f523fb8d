import asyncio
import logging
from collections import defaultdict

from projdup.domain.shared.event import Event
from projdup.domain.shared.port.event_bus import EventBus, EventHandlerFunc

logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    def __init__(self) -> None:
        self._subscribers: dict[type[Event], list[EventHandlerFunc]] = defaultdict(list)

    def subscribe(self, event_type: type[Event], handler: EventHandlerFunc) -> None:
        if handler in self._subscribers[event_type]:
            logger.debug(f"Handler already subscribed to {event_type.__name__}")
            return
        self._subscribers[event_type].append(handler)

    def subscribers(self, event_type: type[Event]) -> list[EventHandlerFunc]:
        return list(self._subscribers.get(event_type, []))

    async def publish(self, event: Event) -> None:
        event_type = type(event)
        handlers = self._subscribers.get(event_type, [])

        if not handlers:
            logger.debug(f"No handlers for event {event_type.__name__}")
            return

        logger.info(f"Publishing event {event_type.__name__} to {len(handlers)} handlers")

        # concurrent execution
        await asyncio.gather(*[h(event) for h in handlers])
