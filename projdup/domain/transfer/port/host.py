"""Ports onto the host application's project workspace."""

from abc import abstractmethod
from typing import Any, Protocol

from projdup.domain.shared.port import Port
from projdup.domain.transfer.model.host import (
    Collection,
    FilterDefinition,
    MatchReplaceRule,
    Project,
    ReplayEntry,
    ReplaySession,
    RequestSource,
    ScopeDefinition,
)


class ProjectIdentity(Port, Protocol):
    @abstractmethod
    async def get_current_project(self) -> Project | None:
        """Return the active project, None if there is none.

        Raises if the host cannot resolve it.
        """
        ...


class ProjectReader(Port, Protocol):
    """Ordered listings of every transferable entity in the current project."""

    @abstractmethod
    async def list_scopes(self) -> list[ScopeDefinition]: ...

    @abstractmethod
    async def list_filters(self) -> list[FilterDefinition]: ...

    @abstractmethod
    async def list_match_replace_collections(self) -> list[Collection]: ...

    @abstractmethod
    async def list_match_replace_rules(self) -> list[MatchReplaceRule]: ...

    @abstractmethod
    async def list_replay_collections(self) -> list[Collection]: ...

    @abstractmethod
    async def list_replay_sessions(self) -> list[ReplaySession]: ...


class RequestResolver(Port, Protocol):
    @abstractmethod
    async def list_replay_entries(self, session_id: str) -> list[ReplayEntry]:
        """Entries of a replay session, oldest first."""
        ...

    @abstractmethod
    async def get_request(self, request_id: str) -> RequestSource | None: ...


class ProjectWriter(Port, Protocol):
    @abstractmethod
    async def create_scope(self, scope: ScopeDefinition) -> str: ...

    @abstractmethod
    async def create_filter(self, filter: FilterDefinition) -> str: ...

    @abstractmethod
    async def create_match_replace_collection(self, name: str) -> str: ...

    @abstractmethod
    async def create_match_replace_rule(
        self,
        collection_id: str,
        name: str,
        query: str,
        section: Any,
        sources: tuple[str, ...],
        is_enabled: bool = True,
    ) -> str: ...

    @abstractmethod
    async def create_replay_collection(self, name: str) -> str: ...

    @abstractmethod
    async def create_replay_session(
        self, raw_bytes: bytes, url: str, collection_id: str | None = None
    ) -> str: ...

    @abstractmethod
    async def rename_replay_session(self, session_id: str, name: str) -> None: ...


class SourceProject(ProjectReader, RequestResolver, Protocol):
    """What capture needs from the project being copied."""


class TargetProject(ProjectReader, ProjectWriter, Protocol):
    """What apply needs from the project being filled."""


class ProjectHost(ProjectIdentity, ProjectReader, RequestResolver, ProjectWriter, Protocol):
    """Full host surface, always acting on the current project."""
