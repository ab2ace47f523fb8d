"""In-memory project workspace implementing the host ports.

Every port call acts on the current project, the way the host application
does. Switching projects publishes ProjectChanged on the event bus.
"""

import logging
from typing import Any
from urllib.parse import urlsplit
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from projdup.domain.shared.error import NotFoundError, ValidationError
from projdup.domain.shared.event import EventId
from projdup.domain.shared.port.event_bus import EventBus
from projdup.domain.transfer.event.project_changed import ProjectChanged
from projdup.domain.transfer.model.host import (
    Collection,
    FilterDefinition,
    MatchReplaceRule,
    Project,
    RawBytes,
    ReplayEntry,
    ReplaySession,
    RequestSource,
    ScopeDefinition,
)
from projdup.domain.transfer.port.host import ProjectHost

logger = logging.getLogger(__name__)


class StoredRequest(BaseModel):
    """A request as the host keeps it: raw bytes plus connection info."""

    id: str
    raw: RawBytes
    host: str
    port: int | None = None
    tls: bool = False

    @property
    def url(self) -> str:
        scheme = "https" if self.tls else "http"
        port = f":{self.port}" if self.port else ""
        return f"{scheme}://{self.host}{port}"


class ProjectData(BaseModel):
    """Everything a single project holds."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    name: str
    scopes: list[ScopeDefinition] = []
    filters: list[FilterDefinition] = []
    match_replace_collections: list[Collection] = []
    match_replace_rules: list[MatchReplaceRule] = []
    replay_collections: list[Collection] = []
    replay_sessions: list[ReplaySession] = []
    replay_entries: dict[str, list[ReplayEntry]] = {}
    requests: dict[str, StoredRequest] = {}

    def to_project(self) -> Project:
        return Project(id=self.id, name=self.name)


class Workspace(BaseModel):
    current: str | None = None  # id of the active project
    projects: list[ProjectData] = Field(default_factory=list)


def _new_id() -> str:
    return uuid4().hex[:12]


class InMemoryHost(ProjectHost):
    def __init__(self, workspace: Workspace | None = None, bus: EventBus | None = None) -> None:
        self.workspace = workspace or Workspace()
        self._bus = bus

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def list_projects(self) -> list[Project]:
        return [p.to_project() for p in self.workspace.projects]

    def find_project(self, name_or_id: str) -> ProjectData | None:
        for project in self.workspace.projects:
            if project.id == name_or_id:
                return project
        return next((p for p in self.workspace.projects if p.name == name_or_id), None)

    def create_project(self, name: str) -> Project:
        if not name:
            raise ValidationError("Project name must not be empty", field="name")
        if any(p.name == name for p in self.workspace.projects):
            raise ValidationError(f"Project {name!r} already exists", field="name")
        project = ProjectData(id=_new_id(), name=name)
        self.workspace.projects.append(project)
        if self.workspace.current is None:
            self.workspace.current = project.id
        logger.info("Created project %r (%s)", name, project.id)
        return project.to_project()

    async def select_project(self, name_or_id: str) -> Project:
        """Make a project current and announce it on the event bus."""
        project = self.find_project(name_or_id)
        if project is None:
            raise NotFoundError(f"Project {name_or_id!r} not found")
        self.workspace.current = project.id
        logger.info("Switched to project %r", project.name)
        if self._bus is not None:
            await self._bus.publish(ProjectChanged(id=EventId(uuid4()), project_name=project.name))
        return project.to_project()

    def _current(self) -> ProjectData:
        project = self.find_project(self.workspace.current) if self.workspace.current else None
        if project is None:
            raise NotFoundError("No project is currently selected")
        return project

    async def get_current_project(self) -> Project | None:
        if self.workspace.current is None:
            return None
        project = self.find_project(self.workspace.current)
        return project.to_project() if project else None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_scopes(self) -> list[ScopeDefinition]:
        return list(self._current().scopes)

    async def list_filters(self) -> list[FilterDefinition]:
        return list(self._current().filters)

    async def list_match_replace_collections(self) -> list[Collection]:
        return list(self._current().match_replace_collections)

    async def list_match_replace_rules(self) -> list[MatchReplaceRule]:
        return list(self._current().match_replace_rules)

    async def list_replay_collections(self) -> list[Collection]:
        return list(self._current().replay_collections)

    async def list_replay_sessions(self) -> list[ReplaySession]:
        return list(self._current().replay_sessions)

    async def list_replay_entries(self, session_id: str) -> list[ReplayEntry]:
        project = self._current()
        if not any(s.id == session_id for s in project.replay_sessions):
            raise NotFoundError(f"Replay session {session_id!r} not found")
        return list(project.replay_entries.get(session_id, []))

    async def get_request(self, request_id: str) -> RequestSource | None:
        request = self._current().requests.get(request_id)
        if request is None:
            return None
        return RequestSource(raw_bytes=request.raw, url=request.url)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_scope(self, scope: ScopeDefinition) -> str:
        project = self._current()
        project.scopes = [*project.scopes, scope]
        return str(len(project.scopes))

    async def create_filter(self, filter: FilterDefinition) -> str:
        project = self._current()
        if filter.alias and any(f.alias == filter.alias for f in project.filters):
            raise ValidationError(f"Filter alias {filter.alias!r} already in use", field="alias")
        project.filters = [*project.filters, filter]
        return str(len(project.filters))

    async def create_match_replace_collection(self, name: str) -> str:
        project = self._current()
        collection = Collection(id=_new_id(), name=name)
        project.match_replace_collections = [*project.match_replace_collections, collection]
        return collection.id

    async def create_match_replace_rule(
        self,
        collection_id: str,
        name: str,
        query: str,
        section: Any,
        sources: tuple[str, ...],
        is_enabled: bool = True,
    ) -> str:
        project = self._current()
        if not any(c.id == collection_id for c in project.match_replace_collections):
            raise NotFoundError(f"Match/replace collection {collection_id!r} not found")
        rule = MatchReplaceRule(
            id=_new_id(),
            name=name,
            is_enabled=is_enabled,
            query=query,
            section=section,
            collection_id=collection_id,
            sources=sources,
        )
        project.match_replace_rules = [*project.match_replace_rules, rule]
        return rule.id

    async def create_replay_collection(self, name: str) -> str:
        project = self._current()
        collection = Collection(id=_new_id(), name=name)
        project.replay_collections = [*project.replay_collections, collection]
        return collection.id

    async def create_replay_session(
        self, raw_bytes: bytes, url: str, collection_id: str | None = None
    ) -> str:
        project = self._current()
        if collection_id is not None and not any(
            c.id == collection_id for c in project.replay_collections
        ):
            raise NotFoundError(f"Replay collection {collection_id!r} not found")

        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise ValidationError(f"Invalid request URL: {url!r}", field="url")

        request = StoredRequest(
            id=_new_id(),
            raw=raw_bytes,
            host=parts.hostname,
            port=parts.port,
            tls=parts.scheme == "https",
        )
        entry = ReplayEntry(id=_new_id(), request_id=request.id)
        session = ReplaySession(
            id=_new_id(),
            name=f"Session {len(project.replay_sessions) + 1}",
            collection_id=collection_id,
            active_entry_id=entry.id,
        )
        project.requests = {**project.requests, request.id: request}
        project.replay_entries = {**project.replay_entries, session.id: [entry]}
        project.replay_sessions = [*project.replay_sessions, session]
        return session.id

    async def rename_replay_session(self, session_id: str, name: str) -> None:
        project = self._current()
        for index, session in enumerate(project.replay_sessions):
            if session.id == session_id:
                sessions = list(project.replay_sessions)
                sessions[index] = session.model_copy(update={"name": name})
                project.replay_sessions = sessions
                return
        raise NotFoundError(f"Replay session {session_id!r} not found")
