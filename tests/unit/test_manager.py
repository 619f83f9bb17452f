"""
Unit tests for the assessment aggregate manager.

Covers the draft lifecycle, save/delete/refresh orchestration against a fake
store, identity-driven reloads and stale response handling.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import replace
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from growth_tracker.domain import Area, User
from growth_tracker.domain.errors import InvalidArgument, StoreUnavailable, Unauthenticated
from growth_tracker.domain.services.export import decode_assessments
from growth_tracker.domain.services.identity import IdentityProvider
from growth_tracker.domain.services.manager import AssessmentManager, ManagerEvent

from tests.utils import FakeAssessmentStore, drain, make_assessment, make_settings

ALICE = User(user_id="alice")
BOB = User(user_id="bob")


@pytest.fixture
def identity() -> IdentityProvider:
    return IdentityProvider()


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock()


@pytest.fixture
def manager(
    identity: IdentityProvider, fake_store: FakeAssessmentStore, notifier: MagicMock
) -> AssessmentManager:
    return AssessmentManager(
        identity=identity,
        store=fake_store,
        notifier=notifier,
        settings=make_settings(),
    )


async def signed_in(manager: AssessmentManager, user: User = ALICE) -> AssessmentManager:
    await manager.init()
    manager.identity.sign_in(user)
    await manager.refresh()
    return manager


class TestDraftLifecycle:
    def test_start_creates_default_draft(self, manager: AssessmentManager) -> None:
        draft = manager.start()

        assert manager.current_draft is draft
        assert draft.scores == {area: 5 for area in Area}
        assert draft.notes == {area: "" for area in Area}

    def test_start_discards_previous_draft(self, manager: AssessmentManager) -> None:
        first = manager.start()
        manager.update_score("tech", 9)
        manager.update_note("tech", "shipped a side project")

        second = manager.start()

        assert second.id != first.id
        assert second.scores[Area.TECH] == 5
        assert second.notes[Area.TECH] == ""

    @pytest.mark.parametrize(("value", "stored"), [(-5, 1), (99, 10), (6.6, 7), (3, 3)])
    def test_update_score_clamps(
        self, manager: AssessmentManager, value: float, stored: int
    ) -> None:
        manager.start()

        manager.update_score("personal", value)

        assert manager.current_draft is not None
        assert manager.current_draft.scores[Area.PERSONAL] == stored

    def test_update_score_without_draft_is_noop(self, manager: AssessmentManager) -> None:
        manager.update_score("tech", 7)
        assert manager.current_draft is None

    def test_update_score_unknown_area(self, manager: AssessmentManager) -> None:
        manager.start()
        with pytest.raises(InvalidArgument):
            manager.update_score("garden", 7)

    def test_update_note_is_verbatim(self, manager: AssessmentManager) -> None:
        manager.start()
        text = "  Called an old friend.\nFelt great!  "

        manager.update_note(Area.SOCIAL, text)

        assert manager.current_draft is not None
        assert manager.current_draft.notes[Area.SOCIAL] == text

    def test_update_note_without_draft_is_noop(self, manager: AssessmentManager) -> None:
        manager.update_note("social", "hello")
        assert manager.current_draft is None

    def test_cancel_clears_draft(self, manager: AssessmentManager, notifier: MagicMock) -> None:
        manager.start()

        manager.cancel()

        assert manager.current_draft is None
        notifier.info.assert_called_once()

    def test_observers_receive_draft_events(self, manager: AssessmentManager) -> None:
        events: list[ManagerEvent] = []
        remove = manager.add_observer(events.append)

        manager.start()
        manager.update_score("tech", 8)
        remove()
        manager.cancel()

        assert events == [ManagerEvent.DRAFT_CHANGED, ManagerEvent.DRAFT_CHANGED]


class TestSave:
    @pytest.mark.asyncio
    async def test_save_without_identity_raises_and_keeps_draft(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        await manager.init()
        draft = manager.start()

        with pytest.raises(Unauthenticated):
            await manager.save()

        assert manager.current_draft is draft
        assert manager.assessments == []
        assert fake_store.create_calls == []

    @pytest.mark.asyncio
    async def test_save_without_draft_returns_none(self, manager: AssessmentManager) -> None:
        await signed_in(manager)
        assert await manager.save() is None

    @pytest.mark.asyncio
    async def test_save_prepends_persisted_record(
        self,
        manager: AssessmentManager,
        fake_store: FakeAssessmentStore,
        notifier: MagicMock,
    ) -> None:
        fake_store.documents["alice"] = [make_assessment("old", weeks_ago=520, user_id="alice")]
        await signed_in(manager)
        manager.start()
        manager.update_score("tech", 9)

        saved = await manager.save()

        assert saved is not None
        assert not saved.id.startswith("draft-")
        assert saved.created_at is not None
        assert saved.user_id == "alice"
        assert saved.scores[Area.TECH] == 9
        assert [item.id for item in manager.assessments] == [saved.id, "old"]
        assert manager.current_draft is None
        notifier.success.assert_called_with("Assessment saved successfully!")

    @pytest.mark.asyncio
    async def test_save_failure_preserves_draft(
        self,
        manager: AssessmentManager,
        fake_store: FakeAssessmentStore,
        notifier: MagicMock,
    ) -> None:
        await signed_in(manager)
        draft = manager.start()
        fake_store.failures_remaining = 1

        with pytest.raises(StoreUnavailable):
            await manager.save()

        assert manager.current_draft is draft
        assert manager.assessments == []
        notifier.error.assert_called_once()

        # Retry succeeds with the same draft
        saved = await manager.save()
        assert saved is not None
        assert manager.current_draft is None

    @pytest.mark.asyncio
    async def test_save_retries_with_backoff_when_configured(
        self, identity: IdentityProvider, fake_store: FakeAssessmentStore
    ) -> None:
        manager = AssessmentManager(
            identity=identity,
            store=fake_store,
            notifier=MagicMock(),
            settings=make_settings(store_max_retries=3),
        )
        await signed_in(manager)
        manager.start()
        fake_store.failures_remaining = 2

        saved = await manager.save()

        assert saved is not None
        assert len(fake_store.create_calls) == 3

    @pytest.mark.asyncio
    async def test_overlapping_saves_share_one_write(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        await signed_in(manager)
        manager.start()
        fake_store.create_gate = asyncio.Event()

        first = asyncio.create_task(manager.save())
        second = asyncio.create_task(manager.save())
        await drain()
        fake_store.create_gate.set()
        results = await asyncio.gather(first, second)

        assert len(fake_store.create_calls) == 1
        assert results[0] is results[1]
        assert len(manager.assessments) == 1

    @pytest.mark.asyncio
    async def test_reload_after_save(
        self, identity: IdentityProvider, fake_store: FakeAssessmentStore
    ) -> None:
        manager = AssessmentManager(
            identity=identity,
            store=fake_store,
            notifier=MagicMock(),
            settings=make_settings(reload_after_save=True),
        )
        await signed_in(manager)
        manager.start()

        saved = await manager.save()

        assert fake_store.list_calls == ["alice", "alice"]
        assert saved is not None
        assert [item.id for item in manager.assessments] == [saved.id]

    @pytest.mark.asyncio
    async def test_failed_reload_after_save_still_returns_record(
        self, identity: IdentityProvider, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [make_assessment("a-1", user_id="alice")]
        manager = AssessmentManager(
            identity=identity,
            store=fake_store,
            notifier=MagicMock(),
            settings=make_settings(reload_after_save=True),
        )
        await signed_in(manager)
        manager.start()
        fake_store.list = AsyncMock(side_effect=StoreUnavailable("backend offline"))

        saved = await manager.save()

        assert saved is not None
        assert fake_store.documents["alice"][-1].id == saved.id
        assert manager.current_draft is None
        assert [item.id for item in manager.assessments] == ["a-1"]

    @pytest.mark.asyncio
    async def test_save_of_newer_draft_waits_for_running_write(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        await signed_in(manager)
        manager.start()
        manager.update_score("tech", 2)
        fake_store.create_gate = asyncio.Event()

        first = asyncio.create_task(manager.save())
        await drain()
        second_draft = manager.start()
        manager.update_score("tech", 9)
        second = asyncio.create_task(manager.save())
        await drain()
        fake_store.create_gate.set()
        first_saved, second_saved = await asyncio.gather(first, second)

        assert len(fake_store.create_calls) == 2
        assert first_saved.scores[Area.TECH] == 2
        assert second_saved.scores[Area.TECH] == 9
        assert first_saved.id != second_saved.id
        assert manager.current_draft is None
        assert second_draft.id != second_saved.id
        assert {item.id for item in manager.assessments} == {first_saved.id, second_saved.id}

    @pytest.mark.asyncio
    async def test_saved_record_is_placed_by_date(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        await signed_in(manager)
        draft = manager.start()
        fake_store.documents["alice"] = [
            replace(
                make_assessment("later", user_id="alice"),
                date=draft.date + timedelta(hours=1),
            ),
            replace(
                make_assessment("earlier", user_id="alice"),
                date=draft.date - timedelta(hours=1),
            ),
        ]
        await manager.refresh()

        saved = await manager.save()

        assert saved is not None
        assert [item.id for item in manager.assessments] == ["later", saved.id, "earlier"]
        dates = [item.date for item in manager.assessments]
        assert dates == sorted(dates, reverse=True)


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_noop(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [make_assessment("a-1", user_id="alice")]
        await signed_in(manager)

        await manager.delete("missing")

        assert len(manager.assessments) == 1
        assert fake_store.delete_calls == []

    @pytest.mark.asyncio
    async def test_delete_removes_record(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [
            make_assessment("a-1", user_id="alice"),
            make_assessment("a-2", weeks_ago=1, user_id="alice"),
        ]
        await signed_in(manager)

        await manager.delete("a-1")

        assert [item.id for item in manager.assessments] == ["a-2"]
        assert fake_store.delete_calls == [("alice", "a-1")]

    @pytest.mark.asyncio
    async def test_delete_failure_keeps_list(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [make_assessment("a-1", user_id="alice")]
        await signed_in(manager)
        fake_store.failures_remaining = 1

        with pytest.raises(StoreUnavailable):
            await manager.delete("a-1")

        assert [item.id for item in manager.assessments] == ["a-1"]


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_orders_newest_first(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [
            make_assessment("older", weeks_ago=2, user_id="alice"),
            make_assessment("newest", user_id="alice"),
            make_assessment("middle", weeks_ago=1, user_id="alice"),
        ]

        await signed_in(manager)

        assert [item.id for item in manager.assessments] == ["newest", "middle", "older"]

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_previous_snapshot(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [make_assessment("a-1", user_id="alice")]
        await signed_in(manager)
        fake_store.failures_remaining = 1

        with pytest.raises(StoreUnavailable):
            await manager.refresh()

        assert [item.id for item in manager.assessments] == ["a-1"]
        assert manager.is_loading is False

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_are_coalesced(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        await signed_in(manager)
        fake_store.list_calls.clear()
        gate = fake_store.list_gates["alice"] = asyncio.Event()

        first = asyncio.create_task(manager.refresh())
        second = asyncio.create_task(manager.refresh())
        await drain()

        assert manager.is_loading is True
        gate.set()
        await asyncio.gather(first, second)

        assert fake_store.list_calls == ["alice"]
        assert manager.is_loading is False

    @pytest.mark.asyncio
    async def test_refresh_without_identity_clears(self, manager: AssessmentManager) -> None:
        await manager.init()
        assert await manager.refresh() == []
        assert manager.assessments == []


class TestIdentityChanges:
    @pytest.mark.asyncio
    async def test_sign_in_triggers_exactly_one_refresh(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [make_assessment("a-1", user_id="alice")]
        await manager.init()
        assert fake_store.list_calls == []

        manager.identity.sign_in(ALICE)
        await manager.refresh()

        assert fake_store.list_calls == ["alice"]
        assert [item.id for item in manager.assessments] == ["a-1"]

    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [make_assessment("alice-1", user_id="alice")]
        fake_store.documents["bob"] = [make_assessment("bob-1", user_id="bob")]
        slow_alice = fake_store.list_gates["alice"] = asyncio.Event()
        await manager.init()

        manager.identity.sign_in(ALICE)
        await drain()
        manager.identity.sign_in(BOB)
        await manager.refresh()

        # Alice's slow response lands after the switch
        slow_alice.set()
        await drain()

        assert fake_store.list_calls == ["alice", "bob"]
        assert [item.id for item in manager.assessments] == ["bob-1"]

    @pytest.mark.asyncio
    async def test_sign_out_clears_state(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        fake_store.documents["alice"] = [make_assessment("a-1", user_id="alice")]
        await signed_in(manager)
        manager.start()

        manager.identity.sign_out()

        assert manager.assessments == []
        assert manager.current_draft is None

    @pytest.mark.asyncio
    async def test_teardown_stops_following_identity(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        await manager.init()
        manager.teardown()

        manager.identity.sign_in(ALICE)
        await drain()

        assert fake_store.list_calls == []

    @pytest.mark.asyncio
    async def test_background_refresh_failure_is_logged_not_raised(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        await manager.init()
        fake_store.failures_remaining = 1

        manager.identity.sign_in(ALICE)
        await drain()

        assert manager.assessments == []
        assert manager.is_loading is False


class TestExportAndAnalytics:
    @pytest.mark.asyncio
    async def test_export_round_trips_and_delivers(
        self, identity: IdentityProvider, fake_store: FakeAssessmentStore
    ) -> None:
        sink = MagicMock()
        manager = AssessmentManager(
            identity=identity,
            store=fake_store,
            notifier=MagicMock(),
            file_sink=sink,
            settings=make_settings(),
        )
        fake_store.documents["alice"] = [
            make_assessment("a-1", user_id="alice", tech=9, notes={"tech": "new job"}),
            make_assessment("a-2", weeks_ago=1, user_id="alice", social=3),
        ]
        await signed_in(manager)
        before = manager.assessments

        exported = manager.export_data()

        assert re.fullmatch(r"growth-assessment-export-\d{4}-\d{2}-\d{2}\.json", exported.filename)
        sink.deliver.assert_called_once_with(exported)
        assert decode_assessments(exported.content) == before
        assert manager.assessments == before

    @pytest.mark.asyncio
    async def test_analytics_helpers_follow_current_list(
        self, manager: AssessmentManager, fake_store: FakeAssessmentStore
    ) -> None:
        await signed_in(manager)
        assert manager.average_score() is None
        assert len(manager.insights()) == 1

        fake_store.documents["alice"] = [
            make_assessment("new", user_id="alice", tech=8),
            make_assessment("old", weeks_ago=1, user_id="alice", tech=4),
        ]
        await manager.refresh()

        assert manager.average_score() == pytest.approx(5.75)
        trend = manager.area_trend("tech")
        assert trend.increasing is True
        assert trend.percentage == 100
