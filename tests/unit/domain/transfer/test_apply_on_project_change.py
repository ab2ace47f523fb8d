"""Unit tests for ApplyOnProjectChange, the second transfer phase."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from projdup.domain.shared.event import EventId
from projdup.domain.transfer.event import ProjectChanged
from projdup.domain.transfer.handler import ApplyOnProjectChange
from projdup.domain.transfer.model.host import Project, ScopeDefinition
from projdup.domain.transfer.model.report import ApplyReport
from projdup.domain.transfer.model.snapshot import TransferSnapshot
from projdup.domain.transfer.port.notifier import Variant, notify_safely
from projdup.domain.transfer.service.apply import ApplyCoordinator
from projdup.domain.transfer.service.capture import SnapshotAssembler
from projdup.domain.transfer.service.reconcile import CollectionReconciler
from projdup.domain.transfer.store import TransferStore


def _event(name: str = "beta") -> ProjectChanged:
    return ProjectChanged(id=EventId(uuid4()), project_name=name)


def _armed_store(snapshot: TransferSnapshot | None = None) -> TransferStore:
    store = TransferStore()
    store.save(snapshot or TransferSnapshot(scopes=(ScopeDefinition(name="s"),)))
    store.arm()
    return store


@pytest.fixture
def identity() -> AsyncMock:
    identity = AsyncMock()
    identity.get_current_project.return_value = Project(id="p2", name="beta")
    return identity


@pytest.fixture
def coordinator() -> AsyncMock:
    coordinator = AsyncMock()
    coordinator.apply.return_value = ApplyReport(scopes=1)
    return coordinator


class TestApplyOnProjectChange:
    def test_subscribes_to_project_changed(self):
        assert ApplyOnProjectChange.__event_type__ is ProjectChanged

    @pytest.mark.asyncio
    async def test_not_armed_is_noop(self, identity, coordinator, notifier):
        handler = ApplyOnProjectChange(
            store=TransferStore(), identity=identity, coordinator=coordinator, notifier=notifier
        )

        await handler.handle(_event())

        coordinator.apply.assert_not_called()
        assert notifier.messages == []

    @pytest.mark.asyncio
    async def test_applies_once_and_reports(self, identity, coordinator, notifier):
        store = _armed_store()
        handler = ApplyOnProjectChange(
            store=store, identity=identity, coordinator=coordinator, notifier=notifier
        )

        await handler.handle(_event())
        await handler.handle(_event())

        coordinator.apply.assert_awaited_once_with(store.load())
        assert not store.armed
        assert notifier.of(Variant.SUCCESS) == [
            "Transferred 1 scopes, 0 filters, 0 match/replace rules, 0 replay sessions"
        ]

    @pytest.mark.asyncio
    async def test_concurrent_events_apply_at_most_once(self, identity, coordinator, notifier):
        store = _armed_store()
        handler = ApplyOnProjectChange(
            store=store, identity=identity, coordinator=coordinator, notifier=notifier
        )

        await asyncio.gather(handler.handle(_event()), handler.handle(_event("gamma")))

        coordinator.apply.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_snapshot_reports_error(self, identity, coordinator, notifier):
        store = _armed_store()
        store._snapshot = None
        handler = ApplyOnProjectChange(
            store=store, identity=identity, coordinator=coordinator, notifier=notifier
        )

        await handler.handle(_event())

        coordinator.apply.assert_not_called()
        assert notifier.of(Variant.ERROR) == ["No transfer data found"]
        assert not store.armed

    @pytest.mark.asyncio
    async def test_missing_target_project_reports_error(self, identity, coordinator, notifier):
        identity.get_current_project.return_value = None
        store = _armed_store()
        handler = ApplyOnProjectChange(
            store=store, identity=identity, coordinator=coordinator, notifier=notifier
        )

        await handler.handle(_event())

        coordinator.apply.assert_not_called()
        assert notifier.of(Variant.ERROR)
        assert not store.armed

    @pytest.mark.asyncio
    async def test_coordinator_crash_is_reported_not_raised(self, identity, coordinator, notifier):
        coordinator.apply.side_effect = RuntimeError("host crashed")
        handler = ApplyOnProjectChange(
            store=_armed_store(), identity=identity, coordinator=coordinator, notifier=notifier
        )

        await handler.handle(_event())

        assert notifier.of(Variant.ERROR) == ["Transfer failed: host crashed"]

    @pytest.mark.asyncio
    async def test_snapshot_kept_by_default(self, identity, coordinator, notifier):
        store = _armed_store()
        handler = ApplyOnProjectChange(
            store=store, identity=identity, coordinator=coordinator, notifier=notifier
        )

        await handler.handle(_event())

        assert store.load() is not None

    @pytest.mark.asyncio
    async def test_clear_after_apply_drops_snapshot(self, identity, coordinator, notifier):
        store = _armed_store()
        handler = ApplyOnProjectChange(
            store=store,
            identity=identity,
            coordinator=coordinator,
            notifier=notifier,
            clear_after_apply=True,
        )

        await handler.handle(_event())

        assert store.load() is None


class TestApplyOnBus:
    @pytest.mark.asyncio
    async def test_project_switch_applies_armed_snapshot(self, source_host, bus, notifier):
        store = TransferStore()
        capture = await SnapshotAssembler(source=source_host).capture()
        store.save(capture.snapshot)
        store.arm()

        handler = ApplyOnProjectChange(
            store=store,
            identity=source_host,
            coordinator=ApplyCoordinator(
                target=source_host, reconciler=CollectionReconciler(), notifier=notifier
            ),
            notifier=notifier,
        )
        bus.subscribe(ProjectChanged, handler.handle)

        source_host.create_project("beta")
        source_host.create_project("gamma")
        await asyncio.gather(
            source_host.select_project("beta"), source_host.select_project("gamma")
        )

        beta = source_host.find_project("beta")
        gamma = source_host.find_project("gamma")
        # Only one of the two switches carried the transfer
        assert len(beta.scopes) + len(gamma.scopes) == 1
        assert not store.armed


class TestNotifySafely:
    def test_swallows_and_logs_notifier_errors(self, caplog):
        notifier = MagicMock()
        notifier.notify.side_effect = RuntimeError("toast failed")

        with caplog.at_level(logging.ERROR):
            notify_safely(notifier, "hello", Variant.WARNING)

        notifier.notify.assert_called_once_with("hello", Variant.WARNING)
        assert "Notifier failed" in caplog.text

    @pytest.mark.asyncio
    async def test_handler_survives_failing_notifier(self, identity, coordinator):
        notifier = MagicMock()
        notifier.notify.side_effect = RuntimeError("toast failed")
        store = _armed_store()
        handler = ApplyOnProjectChange(
            store=store, identity=identity, coordinator=coordinator, notifier=notifier
        )

        await handler.handle(_event())

        coordinator.apply.assert_awaited_once()
        assert not store.armed
