"""Wires the ProjectChanged channel to the apply handler."""

import logging

from dishka import AsyncContainer

from projdup.domain.shared.event import Event
from projdup.domain.shared.port.event_bus import EventBus
from projdup.domain.transfer.handler import ApplyOnProjectChange
from projdup.util.di.scope import Scope

logger = logging.getLogger(__name__)


async def subscribe_transfer_listener(container: AsyncContainer) -> None:
    """Register the single persistent ProjectChanged listener.

    Call once per process. Each delivered event runs in its own UOW scope;
    the TransferStore is APP-scoped, so every run sees the same slot.
    """
    bus = await container.get(EventBus)

    async def dispatch(event: Event) -> None:
        async with container(scope=Scope.UOW) as uow:
            handler = await uow.get(ApplyOnProjectChange)
            await handler.handle(event)

    bus.subscribe(ApplyOnProjectChange.__event_type__, dispatch)
    logger.debug("Subscribed %s to %s", ApplyOnProjectChange.__name__, ApplyOnProjectChange.__event_type__.__name__)
