"""
Assessment aggregate manager.

Owns the newest-first list of saved assessments and the single in-progress
draft for whichever user the identity provider has signed in. All state
changes run on one event loop; store calls may suspend, so every response
is checked against the identity generation it was requested under before
it is applied.
"""

from __future__ import annotations

import asyncio
import bisect
import enum
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import TypeVar

import structlog
from growth_tracker.core.config import Settings, get_settings
from growth_tracker.domain.errors import StoreUnavailable, Unauthenticated
from growth_tracker.domain.models import Area, Assessment, User, clamp_score
from growth_tracker.domain.services import analytics
from growth_tracker.domain.services.export import ExportedFile, FileSink, build_export
from growth_tracker.domain.services.identity import IdentityProvider
from growth_tracker.domain.services.notifications import LogNotifier, Notifier
from growth_tracker.infrastructure.repositories.assessment_store import AssessmentStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ManagerEvent(str, enum.Enum):
    REFRESHED = "refreshed"
    SAVED = "saved"
    DELETED = "deleted"
    DRAFT_CHANGED = "draft_changed"
    CLEARED = "cleared"


Observer = Callable[[ManagerEvent], None]


class AssessmentManager:
    """Draft lifecycle, persistence orchestration and derived analytics for one user."""

    def __init__(
        self,
        *,
        identity: IdentityProvider,
        store: AssessmentStore,
        notifier: Notifier | None = None,
        file_sink: FileSink | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.identity = identity
        self.store = store
        self.notifier = notifier or LogNotifier()
        self.file_sink = file_sink
        self.settings = settings or get_settings()

        self._assessments: list[Assessment] = []
        self._draft: Assessment | None = None
        self._observers: list[Observer] = []
        self._unsubscribe: Callable[[], None] | None = None

        # Bumped on every identity change and on teardown
        self._generation = 0
        self._refresh_task: asyncio.Task[list[Assessment]] | None = None
        self._refresh_generation = -1
        self._save_task: asyncio.Task[Assessment] | None = None
        self._save_draft: Assessment | None = None

    # ------------------------------------------------------------------ state

    @property
    def assessments(self) -> list[Assessment]:
        return list(self._assessments)

    @property
    def current_draft(self) -> Assessment | None:
        return self._draft

    @property
    def is_loading(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    # -------------------------------------------------------------- lifecycle

    async def init(self) -> None:
        """Start following the identity provider and load the current user's list."""
        if self._unsubscribe is None:
            self._unsubscribe = self.identity.subscribe(self._on_identity_changed)
        if self.identity.current_user is not None:
            await self.refresh()

    def teardown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._generation += 1
        self._assessments = []
        self._draft = None
        self._observers.clear()

    def add_observer(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return remove

    def _emit(self, event: ManagerEvent) -> None:
        for observer in list(self._observers):
            observer(event)

    def _on_identity_changed(self, user: User | None) -> None:
        self._generation += 1
        self._assessments = []
        self._draft = None
        self._emit(ManagerEvent.CLEARED)

        if user is None:
            logger.info("assessments_cleared_on_sign_out")
            return

        task = self._start_refresh(user.user_id)
        task.add_done_callback(self._log_background_failure)

    @staticmethod
    def _log_background_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("assessment_refresh_failed", error=str(exc))

    # ------------------------------------------------------------------ draft

    def start(self) -> Assessment:
        """Begin a fresh draft, discarding any unsaved one."""
        if self._draft is not None:
            logger.info("assessment_draft_discarded", draft_id=self._draft.id)
        self._draft = Assessment.new_draft(user_id=self.identity.user_id)
        self._emit(ManagerEvent.DRAFT_CHANGED)
        return self._draft

    def update_score(self, area: Area | str, value: float) -> None:
        area = Area.coerce(area)
        if self._draft is None:
            return
        self._draft.scores[area] = clamp_score(value)
        self._emit(ManagerEvent.DRAFT_CHANGED)

    def update_note(self, area: Area | str, text: str) -> None:
        area = Area.coerce(area)
        if self._draft is None:
            return
        self._draft.notes[area] = text
        self._emit(ManagerEvent.DRAFT_CHANGED)

    def cancel(self) -> None:
        self._draft = None
        self.notifier.info("Assessment cancelled", description="Your changes have been discarded.")
        self._emit(ManagerEvent.DRAFT_CHANGED)

    # ------------------------------------------------------------ persistence

    async def save(self) -> Assessment | None:
        """
        Persist the current draft.

        Returns the stored assessment, or ``None`` when there is no draft.
        The draft survives a failed write so the caller can retry. Calls
        made while the same draft is being written share that write; a
        newer draft waits for the running write and is then stored itself.
        """
        while True:
            user = self.identity.current_user
            if user is None:
                raise Unauthenticated("Sign in to save an assessment")

            draft = self._draft
            if draft is None:
                return None

            pending = self._save_task
            if pending is None or pending.done():
                break
            if self._save_draft is draft:
                return await pending
            # The earlier caller observes its own failure
            await asyncio.wait([pending])

        self._save_draft = draft
        self._save_task = asyncio.get_running_loop().create_task(
            self._persist_draft(user, draft, self._generation)
        )
        return await self._save_task

    async def _persist_draft(self, user: User, draft: Assessment, generation: int) -> Assessment:
        pending = replace(
            draft,
            scores=dict(draft.scores),
            notes=dict(draft.notes),
            user_id=user.user_id,
            created_at=datetime.now(UTC),
        )
        try:
            persisted = await self._call_store(self.store.create, user.user_id, pending)
        except Exception as exc:
            logger.warning("assessment_save_failed", user_id=user.user_id, error=str(exc))
            self.notifier.error("Could not save assessment", description=str(exc))
            raise

        if generation != self._generation:
            logger.info("assessment_save_discarded_stale", assessment_id=persisted.id)
            return persisted

        if self._draft is draft:
            self._draft = None

        if self.settings.reload_after_save:
            try:
                await self.refresh()
            except Exception as exc:
                # The write succeeded; the previous snapshot stays until the next refresh
                logger.warning(
                    "assessment_reload_after_save_failed",
                    assessment_id=persisted.id,
                    error=str(exc),
                )
        else:
            bisect.insort_left(
                self._assessments, persisted, key=lambda item: -item.date.timestamp()
            )

        logger.info("assessment_saved", user_id=user.user_id, assessment_id=persisted.id)
        self.notifier.success("Assessment saved successfully!")
        self._emit(ManagerEvent.SAVED)
        return persisted

    async def delete(self, assessment_id: str) -> None:
        """Remove an assessment by id; unknown ids are ignored."""
        if not any(item.id == assessment_id for item in self._assessments):
            return

        user = self.identity.current_user
        if user is not None:
            generation = self._generation
            try:
                await self._call_store(self.store.delete, user.user_id, assessment_id)
            except Exception as exc:
                logger.warning(
                    "assessment_delete_failed",
                    assessment_id=assessment_id,
                    error=str(exc),
                )
                self.notifier.error("Could not delete assessment", description=str(exc))
                raise
            if generation != self._generation:
                return

        self._assessments = [item for item in self._assessments if item.id != assessment_id]
        logger.info("assessment_deleted", assessment_id=assessment_id)
        self.notifier.success("Assessment deleted successfully!")
        self._emit(ManagerEvent.DELETED)

    async def refresh(self) -> list[Assessment]:
        """
        Reload the list for the current identity.

        Concurrent calls for the same identity share one store request. On
        failure the previous snapshot stays in place.
        """
        user = self.identity.current_user
        if user is None:
            self._assessments = []
            self._emit(ManagerEvent.CLEARED)
            return []
        return await self._start_refresh(user.user_id)

    def _start_refresh(self, user_id: str) -> asyncio.Task[list[Assessment]]:
        task = self._refresh_task
        if task is not None and not task.done() and self._refresh_generation == self._generation:
            return task

        self._refresh_generation = self._generation
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._load(user_id, self._generation)
        )
        return self._refresh_task

    async def _load(self, user_id: str, generation: int) -> list[Assessment]:
        logger.debug("assessment_refresh_started", user_id=user_id)
        loaded = await self._call_store(self.store.list, user_id)

        if generation != self._generation or self.identity.user_id != user_id:
            logger.info("refresh_discarded_stale", user_id=user_id)
            return self.assessments

        self._assessments = sorted(loaded, key=lambda item: item.date, reverse=True)
        logger.info("assessment_refresh_completed", user_id=user_id, count=len(loaded))
        self._emit(ManagerEvent.REFRESHED)
        return self.assessments

    async def _call_store(self, operation: Callable[..., Awaitable[T]], *args: object) -> T:
        attempts = self.settings.store_max_retries
        for attempt in range(attempts):
            try:
                return await operation(*args)
            except StoreUnavailable as exc:
                if attempt >= attempts - 1:
                    raise
                backoff = self.settings.store_retry_backoff_seconds * 2**attempt
                logger.warning(
                    "assessment_store_retry",
                    attempt=attempt + 1,
                    max_retries=attempts,
                    backoff_seconds=backoff,
                    error=str(exc),
                )
                await asyncio.sleep(backoff)
        raise StoreUnavailable("All retries exhausted")

    # ----------------------------------------------------------------- export

    def export_data(self) -> ExportedFile:
        exported = build_export(self._assessments)
        if self.file_sink is not None:
            self.file_sink.deliver(exported)
        logger.info(
            "assessment_export_built",
            filename=exported.filename,
            count=len(self._assessments),
        )
        self.notifier.success("Data exported successfully!")
        return exported

    # -------------------------------------------------------------- analytics

    def average_score(self, assessment: Assessment | None = None) -> float | None:
        target = assessment or (self._assessments[0] if self._assessments else None)
        return analytics.average_score(target) if target is not None else None

    def area_trend(self, area: Area | str, window_size: int | None = None) -> analytics.AreaTrend:
        return analytics.area_trend(
            self._assessments, area, window_size or self.settings.trend_window
        )

    def insights(self) -> list[str]:
        return analytics.insights(self._assessments)
