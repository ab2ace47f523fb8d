"""ApplyCoordinator - recreate a captured snapshot inside the target project."""

import logging
from collections.abc import Awaitable, Callable, Sequence

import logfire

from projdup.domain.shared.service import Service
from projdup.domain.transfer.model.host import Collection
from projdup.domain.transfer.model.report import (
    ApplyReport,
    EntityKind,
    TransferWarning,
    WarningKind,
)
from projdup.domain.transfer.model.snapshot import CollectionRecord, TransferSnapshot
from projdup.domain.transfer.port.host import TargetProject
from projdup.domain.transfer.port.notifier import Notifier, Variant, notify_safely
from projdup.domain.transfer.service.reconcile import (
    CollectionReconciler,
    CreateCollection,
    Reconciliation,
)

logger = logging.getLogger(__name__)

ListCollections = Callable[[], Awaitable[list[Collection]]]


class ApplyCoordinator(Service):
    """Writes a snapshot into the target project, one entity at a time.

    Categories run in a fixed order (scopes, filters, match/replace,
    replay) and every host call is awaited before the next one, so
    collections always exist before the rules and sessions that point at
    them. A failing item becomes a warning; nothing aborts the run.
    """

    target: TargetProject
    reconciler: CollectionReconciler
    notifier: Notifier

    async def apply(self, snapshot: TransferSnapshot) -> ApplyReport:
        report = ApplyReport()

        with logfire.span("ApplySnapshot", schema_version=snapshot.schema_version):
            await self._apply_scopes(snapshot, report)
            await self._apply_filters(snapshot, report)
            await self._apply_match_replace(snapshot, report)
            await self._apply_replay(snapshot, report)

            logfire.info(
                "Snapshot applied",
                scopes=report.scopes,
                filters=report.filters,
                mr_rules=report.mr_rules,
                sessions=report.sessions,
                warnings=len(report.warnings),
            )

        return report

    def _warn(
        self,
        report: ApplyReport,
        category: EntityKind,
        kind: WarningKind,
        item: str,
        message: str,
    ) -> None:
        self._record(report, TransferWarning(category=category, kind=kind, item=item, message=message))

    def _record(self, report: ApplyReport, warning: TransferWarning) -> None:
        report.warnings.append(warning)
        logger.warning("%s", warning)
        notify_safely(self.notifier, str(warning), Variant.WARNING)

    async def _apply_scopes(self, snapshot: TransferSnapshot, report: ApplyReport) -> None:
        for scope in snapshot.scopes:
            try:
                await self.target.create_scope(scope)
            except Exception as e:
                self._warn(report, EntityKind.SCOPE, WarningKind.FAILED, scope.name, str(e))
                continue
            report.scopes += 1

    async def _apply_filters(self, snapshot: TransferSnapshot, report: ApplyReport) -> None:
        if not snapshot.filters:
            return

        try:
            existing = await self.target.list_filters()
            aliases = {f.alias for f in existing if f.alias}
        except Exception as e:
            self._warn(
                report,
                EntityKind.FILTER,
                WarningKind.FAILED,
                "",
                f"could not list existing filters, duplicates not detected: {e}",
            )
            aliases = set()

        for filter_ in snapshot.filters:
            label = filter_.name or filter_.alias or ""
            if filter_.alias and filter_.alias in aliases:
                self._warn(
                    report,
                    EntityKind.FILTER,
                    WarningKind.SKIPPED,
                    label,
                    f"alias {filter_.alias!r} already exists",
                )
                continue
            try:
                await self.target.create_filter(filter_)
            except Exception as e:
                self._warn(report, EntityKind.FILTER, WarningKind.FAILED, label, str(e))
                continue
            report.filters += 1
            if filter_.alias:
                aliases.add(filter_.alias)

    async def _existing_collections(
        self,
        report: ApplyReport,
        category: EntityKind,
        source: Sequence[CollectionRecord],
        list_fn: ListCollections,
    ) -> list[Collection]:
        if not source:
            return []
        try:
            return list(await list_fn())
        except Exception as e:
            self._warn(
                report,
                category,
                WarningKind.FAILED,
                "",
                f"could not list existing collections, none will be reused: {e}",
            )
            return []

    async def _reconcile(
        self,
        report: ApplyReport,
        category: EntityKind,
        source: Sequence[CollectionRecord],
        list_fn: ListCollections,
        create: CreateCollection,
    ) -> Reconciliation:
        existing = await self._existing_collections(report, category, source, list_fn)
        result = await self.reconciler.reconcile(source, existing, create, category=category)
        for warning in result.warnings:
            self._record(report, warning)
        return result

    async def _apply_match_replace(self, snapshot: TransferSnapshot, report: ApplyReport) -> None:
        bundle = snapshot.match_replace
        result = await self._reconcile(
            report,
            EntityKind.MR_COLLECTION,
            bundle.collections,
            self.target.list_match_replace_collections,
            self.target.create_match_replace_collection,
        )
        report.mr_collections_created += result.created
        report.mr_collections_reused += result.reused

        for rule in bundle.rules:
            collection_id = result.identity.resolve(rule.collection_id)
            if collection_id is None:
                self._warn(
                    report,
                    EntityKind.MR_RULE,
                    WarningKind.SKIPPED,
                    rule.name,
                    f"collection {rule.collection_id!r} has no counterpart in target project",
                )
                continue
            try:
                await self.target.create_match_replace_rule(
                    collection_id=collection_id,
                    name=rule.name,
                    query=rule.query,
                    section=rule.section,
                    sources=rule.sources,
                    is_enabled=rule.is_enabled,
                )
            except Exception as e:
                self._warn(report, EntityKind.MR_RULE, WarningKind.FAILED, rule.name, str(e))
                continue
            report.mr_rules += 1

    async def _apply_replay(self, snapshot: TransferSnapshot, report: ApplyReport) -> None:
        result = await self._reconcile(
            report,
            EntityKind.REPLAY_COLLECTION,
            snapshot.replay_collections,
            self.target.list_replay_collections,
            self.target.create_replay_collection,
        )
        report.replay_collections_created += result.created
        report.replay_collections_reused += result.reused

        for session in snapshot.sessions:
            label = session.name or session.url
            collection_id: str | None = None
            # No collection means uncategorized; an unknown one means skip
            if session.collection_id:
                collection_id = result.identity.resolve(session.collection_id)
                if collection_id is None:
                    self._warn(
                        report,
                        EntityKind.SESSION,
                        WarningKind.SKIPPED,
                        label,
                        f"collection {session.collection_id!r} has no counterpart in target project",
                    )
                    continue

            try:
                session_id = await self.target.create_replay_session(
                    session.raw_bytes, session.url, collection_id
                )
            except Exception as e:
                self._warn(report, EntityKind.SESSION, WarningKind.FAILED, label, str(e))
                continue
            report.sessions += 1

            if session.name:
                try:
                    await self.target.rename_replay_session(session_id, session.name)
                except Exception as e:
                    self._warn(
                        report,
                        EntityKind.SESSION,
                        WarningKind.FAILED,
                        label,
                        f"created but could not be renamed: {e}",
                    )
