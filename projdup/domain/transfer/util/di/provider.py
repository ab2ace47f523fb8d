from dishka import provide

from projdup.config import Config
from projdup.domain.transfer.command.prepare import PrepareTransferHandler
from projdup.domain.transfer.handler import ApplyOnProjectChange
from projdup.domain.transfer.port.host import ProjectHost
from projdup.domain.transfer.port.notifier import Notifier
from projdup.domain.transfer.service.apply import ApplyCoordinator
from projdup.domain.transfer.service.capture import SnapshotAssembler
from projdup.domain.transfer.service.reconcile import CollectionReconciler
from projdup.domain.transfer.store import TransferStore
from projdup.util.di.base import Provider
from projdup.util.di.scope import Scope


class TransferProvider(Provider):
    # One pending transfer per process
    @provide(scope=Scope.APP)
    def get_transfer_store(self) -> TransferStore:
        return TransferStore()

    @provide(scope=Scope.UOW)
    def get_reconciler(self) -> CollectionReconciler:
        return CollectionReconciler()

    @provide(scope=Scope.UOW)
    def get_assembler(self, host: ProjectHost) -> SnapshotAssembler:
        return SnapshotAssembler(source=host)

    @provide(scope=Scope.UOW)
    def get_apply_coordinator(
        self,
        host: ProjectHost,
        reconciler: CollectionReconciler,
        notifier: Notifier,
    ) -> ApplyCoordinator:
        return ApplyCoordinator(target=host, reconciler=reconciler, notifier=notifier)

    # Command Handlers
    @provide(scope=Scope.UOW)
    def get_prepare_handler(
        self,
        host: ProjectHost,
        assembler: SnapshotAssembler,
        store: TransferStore,
        notifier: Notifier,
    ) -> PrepareTransferHandler:
        return PrepareTransferHandler(
            identity=host, assembler=assembler, store=store, notifier=notifier
        )

    # Event Handlers
    @provide(scope=Scope.UOW)
    def get_apply_handler(
        self,
        host: ProjectHost,
        store: TransferStore,
        coordinator: ApplyCoordinator,
        notifier: Notifier,
        config: Config,
    ) -> ApplyOnProjectChange:
        return ApplyOnProjectChange(
            store=store,
            identity=host,
            coordinator=coordinator,
            notifier=notifier,
            clear_after_apply=config.transfer.clear_after_apply,
        )
