"""Outcome reporting for capture and apply runs."""

from enum import StrEnum

from pydantic import BaseModel, Field

from projdup.domain.shared.model.value import ValueObject


class EntityKind(StrEnum):
    SNAPSHOT = "snapshot"
    SCOPE = "scope"
    FILTER = "filter"
    MR_COLLECTION = "match/replace collection"
    MR_RULE = "match/replace rule"
    REPLAY_COLLECTION = "replay collection"
    SESSION = "replay session"


class WarningKind(StrEnum):
    FAILED = "failed"
    SKIPPED = "skipped"


class TransferWarning(ValueObject):
    """A non-fatal event from a capture or apply run.

    FAILED means a host call raised; SKIPPED is a policy decision
    (duplicate alias, unresolved collection, session without request).
    """

    category: EntityKind
    kind: WarningKind
    item: str
    message: str

    def __str__(self) -> str:
        verb = "Skipped" if self.kind is WarningKind.SKIPPED else "Failed"
        label = f" '{self.item}'" if self.item else ""
        return f"{verb} {self.category}{label}: {self.message}"


class ApplyReport(BaseModel):
    """Counts of entities actually created in the target project."""

    scopes: int = 0
    filters: int = 0
    mr_collections_created: int = 0
    mr_collections_reused: int = 0
    mr_rules: int = 0
    replay_collections_created: int = 0
    replay_collections_reused: int = 0
    sessions: int = 0
    warnings: list[TransferWarning] = Field(default_factory=list)

    @property
    def failures(self) -> list[TransferWarning]:
        return [w for w in self.warnings if w.kind is WarningKind.FAILED]

    @property
    def skipped(self) -> list[TransferWarning]:
        return [w for w in self.warnings if w.kind is WarningKind.SKIPPED]

    def summary(self) -> str:
        parts = [
            f"{self.scopes} scopes",
            f"{self.filters} filters",
            f"{self.mr_rules} match/replace rules",
            f"{self.sessions} replay sessions",
        ]
        text = "Transferred " + ", ".join(parts)
        if self.warnings:
            text += f" ({len(self.failures)} failed, {len(self.skipped)} skipped)"
        return text
