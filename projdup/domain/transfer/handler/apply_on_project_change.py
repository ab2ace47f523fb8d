"""ApplyOnProjectChange - second phase of a transfer."""

import logging

from projdup.domain.shared.event import EventHandler
from projdup.domain.transfer.event.project_changed import ProjectChanged
from projdup.domain.transfer.model.report import ApplyReport
from projdup.domain.transfer.port.host import ProjectIdentity
from projdup.domain.transfer.port.notifier import Notifier, Variant, notify_safely
from projdup.domain.transfer.service.apply import ApplyCoordinator
from projdup.domain.transfer.store import TransferStore

logger = logging.getLogger(__name__)


class ApplyOnProjectChange(EventHandler[ProjectChanged]):
    """Applies the armed snapshot to the project the host just switched to.

    Disarming is the first thing that happens, so a second notification
    (or a re-entrant one) while this run is in flight is a no-op. Nothing
    raised during the run escapes; it is reported through the notifier.
    """

    store: TransferStore
    identity: ProjectIdentity
    coordinator: ApplyCoordinator
    notifier: Notifier
    clear_after_apply: bool = False

    async def handle(self, event: ProjectChanged) -> None:
        if not self.store.disarm():
            logger.debug("Project changed to %r with no transfer armed", event.project_name)
            return

        try:
            await self.apply(event)
        except Exception as e:
            logger.exception("Transfer apply failed")
            notify_safely(self.notifier, f"Transfer failed: {e}", Variant.ERROR)

    async def apply(self, event: ProjectChanged) -> ApplyReport | None:
        snapshot = self.store.load()
        if snapshot is None:
            notify_safely(self.notifier, "No transfer data found", Variant.ERROR)
            return None

        try:
            project = await self.identity.get_current_project()
        except Exception as e:
            notify_safely(
                self.notifier, f"Could not resolve the target project: {e}", Variant.ERROR
            )
            return None
        if project is None:
            notify_safely(self.notifier, "No target project is selected", Variant.ERROR)
            return None

        if snapshot.source_project is not None and snapshot.source_project.id == project.id:
            logger.info("Applying transfer back onto its source project %r", project.name)

        notify_safely(self.notifier, f"Applying transfer to {project.name!r}...", Variant.INFO)
        report = await self.coordinator.apply(snapshot)

        variant = Variant.WARNING if report.failures else Variant.SUCCESS
        notify_safely(self.notifier, report.summary(), variant)
        logger.info("Transfer to %r finished: %s", project.name, report.summary())

        if self.clear_after_apply:
            self.store.discard(snapshot)

        return report
