"""Dependency injection provider for host-facing infrastructure."""

import logging

from dishka import provide

from projdup.config import Config
from projdup.domain.shared.port.event_bus import EventBus
from projdup.domain.transfer.port.host import ProjectHost
from projdup.domain.transfer.port.notifier import Notifier
from projdup.infrastructure.event.memory_bus import InMemoryEventBus
from projdup.infrastructure.host.local import LocalWorkspace
from projdup.infrastructure.notify.console import ConsoleNotifier
from projdup.util.di.base import Provider
from projdup.util.di.scope import Scope

logger = logging.getLogger(__name__)


class HostProvider(Provider):
    """Event bus, workspace host and notifier; all APP-scoped singletons."""

    @provide(scope=Scope.APP)
    def get_event_bus(self) -> InMemoryEventBus:
        return InMemoryEventBus()

    @provide(scope=Scope.APP)
    def get_event_bus_port(self, bus: InMemoryEventBus) -> EventBus:
        return bus

    @provide(scope=Scope.APP)
    def get_workspace(self, config: Config, bus: InMemoryEventBus) -> LocalWorkspace:
        path = config.workspace.file
        logger.debug("Using workspace %s", path)
        return LocalWorkspace.load(path, bus=bus)

    @provide(scope=Scope.APP)
    def get_project_host(self, workspace: LocalWorkspace) -> ProjectHost:
        return workspace

    @provide(scope=Scope.APP)
    def get_notifier(self) -> Notifier:
        return ConsoleNotifier()
