"""Records read from, and written to, a host project.

These mirror what the host hands out. Scope and filter definitions are
opaque to the transfer: unknown fields are kept and passed back verbatim.
"""

import base64
from typing import Annotated, Any

from pydantic import BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from projdup.domain.shared.model.value import ValueObject


def _decode_raw_bytes(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        try:
            return bytes(value)
        except TypeError as e:
            raise ValueError(f"raw bytes must be integers: {e}") from e
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    return value


def _encode_raw_bytes(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


# Accepts bytes, a list of ints or a base64 string; serializes to base64 in JSON mode
RawBytes = Annotated[
    bytes,
    BeforeValidator(_decode_raw_bytes),
    PlainSerializer(_encode_raw_bytes, return_type=str, when_used="json"),
]


class HostModel(ValueObject):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Project(HostModel):
    id: str
    name: str


class ScopeDefinition(HostModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    allowlist: tuple[str, ...] = ()
    denylist: tuple[str, ...] = ()


class FilterDefinition(HostModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    alias: str | None = None
    query: str = ""


class Collection(HostModel):
    """A match/replace or replay collection as the host reports it."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str


class MatchReplaceRule(HostModel):
    id: str
    name: str
    is_enabled: bool = True
    query: str = ""
    section: Any = None
    collection_id: str | None = None
    sources: tuple[str, ...] = ()


class ReplaySession(HostModel):
    id: str
    name: str = ""
    collection_id: str | None = None
    active_entry_id: str | None = None


class ReplayEntry(HostModel):
    id: str
    request_id: str | None = None


class RequestSource(HostModel):
    """Raw request bytes plus the destination they were sent to."""

    raw_bytes: RawBytes
    url: str
