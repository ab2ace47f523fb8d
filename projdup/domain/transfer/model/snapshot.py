"""TransferSnapshot: the unit captured from a source project and applied to a target.

Collection ids inside a snapshot are source-project-local. Rules and sessions
reference them through ``collection_id`` and must be translated through an
IdentityMap before they mean anything to the target host.

Two payload schemas are understood:

- version 1: the untagged camelCase shape (rules without ``sources``,
  request bytes as a list of ints),
- version 2: the current tagged shape, request bytes base64-encoded.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from projdup.domain.shared.error import ValidationError
from projdup.domain.shared.model.value import ValueObject
from projdup.domain.transfer.model.host import (
    FilterDefinition,
    Project,
    RawBytes,
    ScopeDefinition,
)
from projdup.domain.transfer.model.report import EntityKind, TransferWarning, WarningKind

SCHEMA_VERSION = 2


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SnapshotModel(ValueObject):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class TransferSelection(SnapshotModel):
    """Which entity kinds a transfer carries."""

    scopes: bool = True
    filters: bool = True
    match_replace: bool = True
    replay: bool = True

    @property
    def is_empty(self) -> bool:
        return not (self.scopes or self.filters or self.match_replace or self.replay)


class CollectionRecord(SnapshotModel):
    """Shallow copy of a collection: only id and name survive capture."""

    id: str
    name: str


class RuleRecord(SnapshotModel):
    id: str
    name: str
    is_enabled: bool = True
    query: str = ""
    section: Any = None
    collection_id: str | None = None
    sources: tuple[str, ...] = ()

    @field_validator("sources", mode="before")
    @classmethod
    def _default_sources(cls, value: Any) -> Any:
        # Rules captured before sources existed carry null
        return () if value is None else value


class MatchReplaceBundle(SnapshotModel):
    collections: tuple[CollectionRecord, ...] = ()
    rules: tuple[RuleRecord, ...] = ()


class SessionRecord(SnapshotModel):
    raw_bytes: RawBytes
    url: str
    name: str = ""
    collection_id: str | None = None


class TransferSnapshot(SnapshotModel):
    """Everything needed to recreate a project's configuration elsewhere."""

    schema_version: int = SCHEMA_VERSION
    captured_at: datetime = Field(default_factory=_utc_now)
    source_project: Project | None = None
    selection: TransferSelection = TransferSelection()
    scopes: tuple[ScopeDefinition, ...] = ()
    filters: tuple[FilterDefinition, ...] = ()
    match_replace: MatchReplaceBundle = MatchReplaceBundle()
    replay_collections: tuple[CollectionRecord, ...] = ()
    sessions: tuple[SessionRecord, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @property
    def is_empty(self) -> bool:
        return not (
            self.scopes
            or self.filters
            or self.match_replace.collections
            or self.match_replace.rules
            or self.replay_collections
            or self.sessions
        )


# =============================================================================
# Payload parsing
# =============================================================================

M = TypeVar("M", bound=ValueObject)


def _field(payload: Mapping[str, Any], name: str) -> Any:
    camel = to_camel(name)
    if camel in payload:
        return payload[camel]
    return payload.get(name)


def _label(item: Any) -> str:
    if isinstance(item, Mapping):
        for key in ("name", "alias", "id", "url"):
            value = item.get(key)
            if value:
                return str(value)
    return ""


def _parse_items(
    raw: Any,
    model: type[M],
    category: EntityKind,
    warnings: list[TransferWarning],
) -> tuple[M, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        warnings.append(
            TransferWarning(
                category=category,
                kind=WarningKind.SKIPPED,
                item="",
                message=f"expected a list, got {type(raw).__name__}",
            )
        )
        return ()

    parsed: list[M] = []
    for index, item in enumerate(raw):
        try:
            parsed.append(model.model_validate(item))
        except PydanticValidationError as e:
            warnings.append(
                TransferWarning(
                    category=category,
                    kind=WarningKind.SKIPPED,
                    item=_label(item) or f"#{index}",
                    message=f"invalid snapshot entry ({e.error_count()} errors)",
                )
            )
    return tuple(parsed)


def parse_snapshot(
    payload: Mapping[str, Any] | TransferSnapshot,
) -> tuple[TransferSnapshot, list[TransferWarning]]:
    """Build a TransferSnapshot from a stored payload of any known schema version.

    Entries that fail validation are dropped and reported as warnings rather
    than failing the whole snapshot.

    Raises:
        ValidationError: If the payload is not a mapping or its schema version
            is unknown.
    """
    if isinstance(payload, TransferSnapshot):
        return payload, []
    if not isinstance(payload, Mapping):
        raise ValidationError(f"Snapshot payload must be a mapping, got {type(payload).__name__}")

    version = _field(payload, "schema_version")
    if version is None:
        version = 1
    if not isinstance(version, int) or isinstance(version, bool) or not 1 <= version <= SCHEMA_VERSION:
        raise ValidationError(
            f"Unsupported snapshot schema version: {version!r}", field="schemaVersion"
        )

    warnings: list[TransferWarning] = []

    match_replace = _field(payload, "match_replace") or {}
    if not isinstance(match_replace, Mapping):
        warnings.append(
            TransferWarning(
                category=EntityKind.MR_RULE,
                kind=WarningKind.SKIPPED,
                item="",
                message="match/replace section is not a mapping",
            )
        )
        match_replace = {}

    fields: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "scopes": _parse_items(_field(payload, "scopes"), ScopeDefinition, EntityKind.SCOPE, warnings),
        "filters": _parse_items(
            _field(payload, "filters"), FilterDefinition, EntityKind.FILTER, warnings
        ),
        "match_replace": MatchReplaceBundle(
            collections=_parse_items(
                match_replace.get("collections"),
                CollectionRecord,
                EntityKind.MR_COLLECTION,
                warnings,
            ),
            rules=_parse_items(match_replace.get("rules"), RuleRecord, EntityKind.MR_RULE, warnings),
        ),
        "replay_collections": _parse_items(
            _field(payload, "replay_collections"),
            CollectionRecord,
            EntityKind.REPLAY_COLLECTION,
            warnings,
        ),
        "sessions": _parse_items(
            _field(payload, "sessions"), SessionRecord, EntityKind.SESSION, warnings
        ),
    }

    # Optional metadata; bad values fall back to defaults
    for name, model in (("source_project", Project), ("selection", TransferSelection)):
        raw = _field(payload, name)
        if raw is None:
            continue
        try:
            fields[name] = model.model_validate(raw)
        except PydanticValidationError:
            warnings.append(
                TransferWarning(
                    category=EntityKind.SNAPSHOT,
                    kind=WarningKind.SKIPPED,
                    item=name,
                    message="invalid snapshot metadata, using default",
                )
            )

    captured_at = _field(payload, "captured_at")
    if captured_at is not None:
        fields["captured_at"] = captured_at

    try:
        snapshot = TransferSnapshot.model_validate(fields)
    except PydanticValidationError:
        fields.pop("captured_at", None)
        warnings.append(
            TransferWarning(
                category=EntityKind.SNAPSHOT,
                kind=WarningKind.SKIPPED,
                item="captured_at",
                message="invalid capture timestamp, using now",
            )
        )
        snapshot = TransferSnapshot.model_validate(fields)

    return snapshot, warnings
