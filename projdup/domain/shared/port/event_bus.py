from abc import abstractmethod
from collections.abc import Awaitable, Callable
from typing import Protocol

from projdup.domain.shared.event import Event

EventHandlerFunc = Callable[[Event], Awaitable[None]]


class EventBus(Protocol):

    @abstractmethod
    async def publish(self, event: Event) -> None:
        ...

    @abstractmethod
    def subscribe(self, event_type: type[Event], handler: EventHandlerFunc) -> None:
        ...
