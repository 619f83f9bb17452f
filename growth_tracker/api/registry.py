from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from collections.abc import Callable

import structlog
from growth_tracker.core.config import Settings, get_settings
from growth_tracker.domain import User
from growth_tracker.domain.services.identity import IdentityProvider
from growth_tracker.domain.services.manager import AssessmentManager
from growth_tracker.infrastructure.repositories.assessment_store import AssessmentStore

logger = structlog.get_logger(__name__)


class ManagerRegistry:
    """
    Keeps one signed-in ``AssessmentManager`` per user so drafts survive between requests.

    Managers idle for longer than ``manager_idle_ttl_seconds`` are torn down,
    and the least recently used one is evicted once ``max_managers`` is reached.
    """

    def __init__(
        self,
        store: AssessmentStore,
        settings: Settings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self._clock = clock
        # user id -> (manager, last access), least recently used first
        self._managers: OrderedDict[str, tuple[AssessmentManager, float]] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._managers)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._managers

    async def get(self, user: User) -> AssessmentManager:
        async with self._lock:
            now = self._clock()
            self._evict_idle(now)

            entry = self._managers.get(user.user_id)
            if entry is not None:
                manager = entry[0]
                self._managers[user.user_id] = (manager, now)
                self._managers.move_to_end(user.user_id)
                return manager

            identity = IdentityProvider()
            manager = AssessmentManager(
                identity=identity,
                store=self.store,
                settings=self.settings,
            )
            identity.sign_in(user)
            await manager.init()

            while len(self._managers) >= self.settings.max_managers:
                oldest = next(iter(self._managers))
                self._release(oldest, reason="capacity")

            self._managers[user.user_id] = (manager, now)
            logger.info("assessment_manager_created", user_id=user.user_id)
        return manager

    def release(self, user_id: str) -> None:
        self._release(user_id, reason="released")

    def close(self) -> None:
        for user_id in list(self._managers):
            self.release(user_id)

    def _evict_idle(self, now: float) -> None:
        cutoff = now - self.settings.manager_idle_ttl_seconds
        for user_id, (_, last_used) in list(self._managers.items()):
            if last_used >= cutoff:
                break
            self._release(user_id, reason="idle")

    def _release(self, user_id: str, *, reason: str) -> None:
        entry = self._managers.pop(user_id, None)
        if entry is None:
            return
        manager = entry[0]
        manager.identity.sign_out()
        manager.teardown()
        logger.info("assessment_manager_released", user_id=user_id, reason=reason)
