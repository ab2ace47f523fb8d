"""Unit tests for ApplyCoordinator."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from projdup.domain.transfer.model.host import Collection, FilterDefinition, ScopeDefinition
from projdup.domain.transfer.model.report import EntityKind, WarningKind
from projdup.domain.transfer.model.snapshot import (
    CollectionRecord,
    MatchReplaceBundle,
    RuleRecord,
    SessionRecord,
    TransferSnapshot,
)
from projdup.domain.transfer.port.notifier import Variant
from projdup.domain.transfer.service.apply import ApplyCoordinator
from projdup.domain.transfer.service.capture import SnapshotAssembler
from projdup.domain.transfer.service.reconcile import CollectionReconciler


@pytest.fixture
def mock_target() -> MagicMock:
    """An empty target project that accepts every write."""
    target = MagicMock()
    for name in (
        "list_scopes",
        "list_filters",
        "list_match_replace_collections",
        "list_match_replace_rules",
        "list_replay_collections",
        "list_replay_sessions",
    ):
        setattr(target, name, AsyncMock(return_value=[]))
    target.create_scope = AsyncMock(return_value="1")
    target.create_filter = AsyncMock(return_value="1")
    target.create_match_replace_collection = AsyncMock(return_value="mr-new")
    target.create_match_replace_rule = AsyncMock(return_value="rule-new")
    target.create_replay_collection = AsyncMock(return_value="rc-new")
    target.create_replay_session = AsyncMock(return_value="session-new")
    target.rename_replay_session = AsyncMock(return_value=None)
    return target


@pytest.fixture
def coordinator(mock_target, notifier) -> ApplyCoordinator:
    return ApplyCoordinator(
        target=mock_target, reconciler=CollectionReconciler(), notifier=notifier
    )


def _session(**kwargs) -> SessionRecord:
    return SessionRecord(raw_bytes=b"GET / HTTP/1.1\r\n\r\n", url="https://h", **kwargs)


class TestApplyOrder:
    @pytest.mark.asyncio
    async def test_categories_run_in_fixed_order(self, coordinator, mock_target):
        calls: list[str] = []
        for name in (
            "create_scope",
            "create_filter",
            "create_match_replace_collection",
            "create_match_replace_rule",
            "create_replay_collection",
            "create_replay_session",
        ):
            getattr(mock_target, name).side_effect = (
                lambda *a, _n=name, **kw: calls.append(_n) or f"{_n}-id"
            )

        snapshot = TransferSnapshot(
            scopes=(ScopeDefinition(name="s"),),
            filters=(FilterDefinition(name="f", alias="f"),),
            match_replace=MatchReplaceBundle(
                collections=(CollectionRecord(id="c1", name="C"),),
                rules=(RuleRecord(id="r1", name="R", collection_id="c1"),),
            ),
            replay_collections=(CollectionRecord(id="rc1", name="RC"),),
            sessions=(_session(collection_id="rc1"),),
        )

        report = await coordinator.apply(snapshot)

        assert calls == [
            "create_scope",
            "create_filter",
            "create_match_replace_collection",
            "create_match_replace_rule",
            "create_replay_collection",
            "create_replay_session",
        ]
        assert report.warnings == []
        mock_target.create_match_replace_rule.assert_awaited_once()
        assert mock_target.create_match_replace_rule.await_args.kwargs["collection_id"] == (
            "create_match_replace_collection-id"
        )

    @pytest.mark.asyncio
    async def test_empty_snapshot_writes_nothing(self, coordinator, mock_target):
        report = await coordinator.apply(TransferSnapshot())

        mock_target.create_scope.assert_not_called()
        mock_target.list_filters.assert_not_called()
        mock_target.list_match_replace_collections.assert_not_called()
        assert report.summary() == (
            "Transferred 0 scopes, 0 filters, 0 match/replace rules, 0 replay sessions"
        )


class TestScopesAndFilters:
    @pytest.mark.asyncio
    async def test_failed_scope_does_not_stop_the_rest(self, coordinator, mock_target, notifier):
        mock_target.create_scope.side_effect = [RuntimeError("nope"), "2"]
        snapshot = TransferSnapshot(scopes=(ScopeDefinition(name="a"), ScopeDefinition(name="b")))

        report = await coordinator.apply(snapshot)

        assert report.scopes == 1
        assert report.failures[0].item == "a"
        assert notifier.of(Variant.WARNING)

    @pytest.mark.asyncio
    async def test_filter_with_existing_alias_is_skipped(self, coordinator, mock_target):
        mock_target.list_filters.return_value = [FilterDefinition(name="old", alias="x")]
        snapshot = TransferSnapshot(filters=(FilterDefinition(name="new", alias="x"),))

        report = await coordinator.apply(snapshot)

        mock_target.create_filter.assert_not_called()
        assert report.filters == 0
        assert report.skipped[0].category is EntityKind.FILTER

    @pytest.mark.asyncio
    async def test_duplicate_alias_within_snapshot_created_once(self, coordinator, mock_target):
        snapshot = TransferSnapshot(
            filters=(
                FilterDefinition(name="one", alias="x"),
                FilterDefinition(name="two", alias="x"),
            )
        )

        report = await coordinator.apply(snapshot)

        assert report.filters == 1
        mock_target.create_filter.assert_awaited_once()
        mock_target.list_filters.assert_awaited_once()


class TestFailingNotifier:
    @pytest.mark.asyncio
    async def test_run_continues_when_notifier_raises(self, mock_target):
        notifier = MagicMock()
        notifier.notify.side_effect = RuntimeError("toast failed")
        mock_target.list_filters.return_value = [FilterDefinition(name="old", alias="a")]
        coordinator = ApplyCoordinator(
            target=mock_target, reconciler=CollectionReconciler(), notifier=notifier
        )
        snapshot = TransferSnapshot(
            filters=(
                FilterDefinition(name="dup", alias="a"),
                FilterDefinition(name="new", alias="b"),
            ),
            sessions=(_session(),),
        )

        report = await coordinator.apply(snapshot)

        mock_target.create_filter.assert_awaited_once_with(snapshot.filters[1])
        assert report.filters == 1
        assert report.sessions == 1
        assert len(report.skipped) == 1
        notifier.notify.assert_called_once()


class TestMatchReplace:
    @pytest.mark.asyncio
    async def test_reuses_collection_with_same_name(self, coordinator, mock_target):
        mock_target.list_match_replace_collections.return_value = [
            Collection(id="existing", name="C")
        ]
        snapshot = TransferSnapshot(
            match_replace=MatchReplaceBundle(
                collections=(CollectionRecord(id="c1", name="C"),),
                rules=(RuleRecord(id="r1", name="R", collection_id="c1", sources=("a",)),),
            )
        )

        report = await coordinator.apply(snapshot)

        mock_target.create_match_replace_collection.assert_not_called()
        mock_target.create_match_replace_rule.assert_awaited_once_with(
            collection_id="existing",
            name="R",
            query="",
            section=None,
            sources=("a",),
            is_enabled=True,
        )
        assert report.mr_collections_reused == 1
        assert report.mr_rules == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("collection_id", [None, "", "missing"])
    async def test_rule_without_resolvable_collection_is_skipped(
        self, coordinator, mock_target, collection_id
    ):
        snapshot = TransferSnapshot(
            match_replace=MatchReplaceBundle(
                rules=(RuleRecord(id="r1", name="R", collection_id=collection_id),)
            )
        )

        report = await coordinator.apply(snapshot)

        mock_target.create_match_replace_rule.assert_not_called()
        assert report.skipped[0].category is EntityKind.MR_RULE

    @pytest.mark.asyncio
    async def test_rules_of_failed_collection_are_skipped(self, coordinator, mock_target):
        mock_target.create_match_replace_collection.side_effect = RuntimeError("denied")
        snapshot = TransferSnapshot(
            match_replace=MatchReplaceBundle(
                collections=(CollectionRecord(id="c1", name="C"),),
                rules=(RuleRecord(id="r1", name="R", collection_id="c1"),),
            )
        )

        report = await coordinator.apply(snapshot)

        assert report.mr_rules == 0
        assert [w.kind for w in report.warnings] == [WarningKind.FAILED, WarningKind.SKIPPED]


class TestReplay:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("collection_id", [None, ""])
    async def test_session_without_collection_is_uncategorized(
        self, coordinator, mock_target, collection_id
    ):
        snapshot = TransferSnapshot(sessions=(_session(collection_id=collection_id),))

        report = await coordinator.apply(snapshot)

        mock_target.create_replay_session.assert_awaited_once_with(
            b"GET / HTTP/1.1\r\n\r\n", "https://h", None
        )
        assert report.sessions == 1

    @pytest.mark.asyncio
    async def test_session_with_unmapped_collection_is_skipped(self, coordinator, mock_target):
        snapshot = TransferSnapshot(sessions=(_session(collection_id="gone"),))

        report = await coordinator.apply(snapshot)

        mock_target.create_replay_session.assert_not_called()
        assert report.skipped[0].category is EntityKind.SESSION

    @pytest.mark.asyncio
    async def test_named_session_is_renamed(self, coordinator, mock_target):
        await coordinator.apply(TransferSnapshot(sessions=(_session(name="login"),)))

        mock_target.rename_replay_session.assert_awaited_once_with("session-new", "login")

    @pytest.mark.asyncio
    async def test_unnamed_session_keeps_host_name(self, coordinator, mock_target):
        await coordinator.apply(TransferSnapshot(sessions=(_session(),)))

        mock_target.rename_replay_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_rename_failure_keeps_session(self, coordinator, mock_target):
        mock_target.rename_replay_session.side_effect = RuntimeError("locked")

        report = await coordinator.apply(TransferSnapshot(sessions=(_session(name="login"),)))

        assert report.sessions == 1
        assert report.failures[0].item == "login"
        assert "renamed" in report.failures[0].message


class TestApplyAgainstHost:
    @pytest.mark.asyncio
    async def test_snapshot_recreated_in_empty_project(self, source_host, notifier):
        capture = await SnapshotAssembler(source=source_host).capture()
        source_host.create_project("beta")
        await source_host.select_project("beta")

        coordinator = ApplyCoordinator(
            target=source_host, reconciler=CollectionReconciler(), notifier=notifier
        )
        report = await coordinator.apply(capture.snapshot)

        assert report.warnings == []
        assert (report.scopes, report.filters, report.mr_rules, report.sessions) == (1, 1, 1, 2)
        beta = source_host.find_project("beta")
        [rule] = beta.match_replace_rules
        assert rule.collection_id == beta.match_replace_collections[0].id
        login = next(s for s in beta.replay_sessions if s.name == "login flow")
        assert login.collection_id == beta.replay_collections[0].id
