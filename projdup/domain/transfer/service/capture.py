"""SnapshotAssembler - read a project's configuration into a TransferSnapshot."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import logfire

from projdup.domain.shared.model.value import ValueObject
from projdup.domain.shared.service import Service
from projdup.domain.transfer.model.host import Project, ReplaySession
from projdup.domain.transfer.model.report import EntityKind, TransferWarning, WarningKind
from projdup.domain.transfer.model.snapshot import (
    CollectionRecord,
    MatchReplaceBundle,
    RuleRecord,
    SessionRecord,
    TransferSelection,
    TransferSnapshot,
)
from projdup.domain.transfer.port.host import SourceProject

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Capture(ValueObject):
    """A captured snapshot plus everything that was left out of it and why."""

    snapshot: TransferSnapshot
    warnings: tuple[TransferWarning, ...] = ()


class SnapshotAssembler(Service):
    """Reads every selected entity kind from the source project.

    Read-only: nothing is ever written to the source. A failure to list one
    entity kind leaves that kind empty and is reported as a warning.
    """

    source: SourceProject

    async def capture(
        self,
        selection: TransferSelection | None = None,
        project: Project | None = None,
    ) -> Capture:
        selection = selection or TransferSelection()
        warnings: list[TransferWarning] = []

        with logfire.span("CaptureSnapshot", project=project.name if project else None):
            scopes = []
            filters = []
            match_replace = MatchReplaceBundle()
            replay_collections: list[CollectionRecord] = []
            sessions: list[SessionRecord] = []

            if selection.scopes:
                scopes = await self._read(self.source.list_scopes, EntityKind.SCOPE, warnings)
            if selection.filters:
                filters = await self._read(self.source.list_filters, EntityKind.FILTER, warnings)
            if selection.match_replace:
                match_replace = await self._capture_match_replace(warnings)
            if selection.replay:
                collections = await self._read(
                    self.source.list_replay_collections, EntityKind.REPLAY_COLLECTION, warnings
                )
                replay_collections = [CollectionRecord(id=c.id, name=c.name) for c in collections]
                for session in await self._read(
                    self.source.list_replay_sessions, EntityKind.SESSION, warnings
                ):
                    record = await self._capture_session(session, warnings)
                    if record is not None:
                        sessions.append(record)

            snapshot = TransferSnapshot(
                source_project=project,
                selection=selection,
                scopes=tuple(scopes),
                filters=tuple(filters),
                match_replace=match_replace,
                replay_collections=tuple(replay_collections),
                sessions=tuple(sessions),
            )

            logfire.info(
                "Snapshot captured",
                scopes=len(snapshot.scopes),
                filters=len(snapshot.filters),
                mr_rules=len(snapshot.match_replace.rules),
                sessions=len(snapshot.sessions),
                warnings=len(warnings),
            )

        return Capture(snapshot=snapshot, warnings=tuple(warnings))

    async def _read(
        self,
        list_fn: Callable[[], Awaitable[list[T]]],
        category: EntityKind,
        warnings: list[TransferWarning],
    ) -> list[T]:
        try:
            return list(await list_fn())
        except Exception as e:
            logger.warning("Could not read %ss from source project: %s", category, e)
            warnings.append(
                TransferWarning(
                    category=category,
                    kind=WarningKind.FAILED,
                    item="",
                    message=f"could not be read: {e}",
                )
            )
            return []

    async def _capture_match_replace(self, warnings: list[TransferWarning]) -> MatchReplaceBundle:
        collections = await self._read(
            self.source.list_match_replace_collections, EntityKind.MR_COLLECTION, warnings
        )
        rules = await self._read(self.source.list_match_replace_rules, EntityKind.MR_RULE, warnings)
        return MatchReplaceBundle(
            collections=tuple(CollectionRecord(id=c.id, name=c.name) for c in collections),
            rules=tuple(
                RuleRecord(
                    id=r.id,
                    name=r.name,
                    is_enabled=r.is_enabled,
                    query=r.query,
                    section=r.section,
                    collection_id=r.collection_id,
                    sources=r.sources,
                )
                for r in rules
            ),
        )

    async def _resolve_request_id(self, session: ReplaySession) -> str | None:
        """Request behind the active entry, else the first entry that has one."""
        entries = await self.source.list_replay_entries(session.id)

        if session.active_entry_id is not None:
            active = next((e for e in entries if e.id == session.active_entry_id), None)
            if active is not None and active.request_id:
                return active.request_id

        for entry in entries:
            if entry.request_id:
                return entry.request_id
        return None

    async def _capture_session(
        self, session: ReplaySession, warnings: list[TransferWarning]
    ) -> SessionRecord | None:
        label = session.name or session.id

        def skip(kind: WarningKind, message: str) -> None:
            logger.warning("Excluding replay session %r: %s", label, message)
            warnings.append(
                TransferWarning(
                    category=EntityKind.SESSION, kind=kind, item=label, message=message
                )
            )

        try:
            request_id = await self._resolve_request_id(session)
        except Exception as e:
            skip(WarningKind.FAILED, f"could not list entries: {e}")
            return None
        if request_id is None:
            skip(WarningKind.SKIPPED, "no entry has an associated request")
            return None

        try:
            request = await self.source.get_request(request_id)
        except Exception as e:
            skip(WarningKind.FAILED, f"could not fetch request {request_id}: {e}")
            return None
        if request is None:
            skip(WarningKind.SKIPPED, f"request {request_id} not found")
            return None

        return SessionRecord(
            raw_bytes=request.raw_bytes,
            url=request.url,
            name=session.name,
            collection_id=session.collection_id,
        )
