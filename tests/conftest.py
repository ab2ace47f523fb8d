"""Global test fixtures."""

import os

import pytest
import pytest_asyncio

from projdup.domain.transfer.model.host import (
    FilterDefinition,
    ScopeDefinition,
)
from projdup.domain.transfer.port.notifier import Notifier, Variant
from projdup.infrastructure.event.memory_bus import InMemoryEventBus
from projdup.infrastructure.host.memory import InMemoryHost

# Keep developer config files out of unit tests
os.environ.pop("PROJDUP_CONFIG_FILE", None)


class RecordingNotifier(Notifier):
    """Collects notifications instead of printing them."""

    def __init__(self) -> None:
        self.messages: list[tuple[Variant, str]] = []

    def notify(self, message: str, variant: Variant = Variant.INFO) -> None:
        self.messages.append((variant, message))

    def of(self, variant: Variant) -> list[str]:
        return [m for v, m in self.messages if v is variant]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


async def populate_source(host: InMemoryHost, name: str = "alpha") -> None:
    """Create and fill a project with one of everything, leaving it current."""
    if host.find_project(name) is None:
        host.create_project(name)
    await host.select_project(name)

    await host.create_scope(
        ScopeDefinition(name="main", allowlist=("*.example.com",), denylist=("cdn.example.com",))
    )
    await host.create_filter(FilterDefinition(name="No images", alias="noimg", query="ext != png"))
    mr_id = await host.create_match_replace_collection("Headers")
    await host.create_match_replace_rule(
        collection_id=mr_id,
        name="Strip auth",
        query="req.header:Authorization",
        section={"kind": "RequestHeader"},
        sources=("intercept",),
    )
    replay_id = await host.create_replay_collection("Login")
    session_id = await host.create_replay_session(
        b"GET /login HTTP/1.1\r\nHost: app.example.com\r\n\r\n",
        "https://app.example.com",
        replay_id,
    )
    await host.rename_replay_session(session_id, "login flow")
    await host.create_replay_session(b"GET / HTTP/1.1\r\n\r\n", "http://app.example.com:8080")


@pytest_asyncio.fixture
async def source_host(bus: InMemoryEventBus) -> InMemoryHost:
    """Workspace whose current project "alpha" holds one of everything."""
    host = InMemoryHost(bus=bus)
    await populate_source(host)
    return host
