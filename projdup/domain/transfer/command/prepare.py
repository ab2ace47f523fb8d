"""PrepareTransfer - capture the current project and arm the transfer."""

import logging

import logfire

from projdup.domain.shared.command import Command, CommandHandler, Result
from projdup.domain.transfer.model.host import Project
from projdup.domain.transfer.model.report import TransferWarning
from projdup.domain.transfer.model.snapshot import TransferSelection
from projdup.domain.transfer.port.host import ProjectIdentity
from projdup.domain.transfer.port.notifier import Notifier, Variant, notify_safely
from projdup.domain.transfer.service.capture import SnapshotAssembler
from projdup.domain.transfer.store import TransferStore

logger = logging.getLogger(__name__)


class PrepareTransfer(Command):
    selection: TransferSelection = TransferSelection()


class TransferPrepared(Result):
    armed: bool
    source_project: Project | None = None
    scopes: int = 0
    filters: int = 0
    mr_rules: int = 0
    sessions: int = 0
    warnings: list[TransferWarning] = []
    error: str | None = None


class PrepareTransferHandler(CommandHandler[PrepareTransfer, TransferPrepared]):
    """First phase: snapshot the current project into the store and arm it.

    The next ProjectChanged event applies the snapshot. Failures are
    reported through the notifier and leave the store untouched.
    """

    identity: ProjectIdentity
    assembler: SnapshotAssembler
    store: TransferStore
    notifier: Notifier

    def _fail(self, message: str) -> TransferPrepared:
        logger.error(message)
        notify_safely(self.notifier, message, Variant.ERROR)
        return TransferPrepared(armed=False, error=message)

    async def run(self, cmd: PrepareTransfer) -> TransferPrepared:
        with logfire.span("PrepareTransfer"):
            if cmd.selection.is_empty:
                return self._fail("Nothing selected to transfer")

            try:
                project = await self.identity.get_current_project()
            except Exception as e:
                return self._fail(f"Could not resolve the current project: {e}")
            if project is None:
                return self._fail("No project is currently selected")

            try:
                capture = await self.assembler.capture(cmd.selection, project=project)
            except Exception as e:
                logger.exception("Capture failed")
                return self._fail(f"Could not capture project {project.name!r}: {e}")

            for warning in capture.warnings:
                notify_safely(self.notifier, str(warning), Variant.WARNING)

            snapshot = capture.snapshot
            self.store.save(snapshot)
            self.store.arm()

            notify_safely(
                self.notifier,
                f"Transfer from {project.name!r} prepared. Switch project to apply it.",
                Variant.SUCCESS,
            )
            logfire.info("Transfer armed", project=project.name)

            return TransferPrepared(
                armed=True,
                source_project=project,
                scopes=len(snapshot.scopes),
                filters=len(snapshot.filters),
                mr_rules=len(snapshot.match_replace.rules),
                sessions=len(snapshot.sessions),
                warnings=list(capture.warnings),
            )
