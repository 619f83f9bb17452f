from __future__ import annotations

from collections.abc import Callable

import structlog
from growth_tracker.core.auth import decode_access_token
from growth_tracker.domain.models import User

logger = structlog.get_logger(__name__)

IdentityListener = Callable[[User | None], None]


class IdentityProvider:
    """Holds the signed-in user and notifies subscribers when it changes."""

    def __init__(self, user: User | None = None) -> None:
        self._user = user
        self._listeners: list[IdentityListener] = []

    @property
    def current_user(self) -> User | None:
        return self._user

    @property
    def user_id(self) -> str | None:
        return self._user.user_id if self._user else None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, user: User) -> None:
        self._set_user(user)

    def sign_in_with_token(self, token: str) -> User:
        """Resolve a bearer token into a user and sign it in."""
        user = decode_access_token(token).to_user()
        self._set_user(user)
        return user

    def sign_out(self) -> None:
        self._set_user(None)

    def _set_user(self, user: User | None) -> None:
        previous_id = self.user_id
        self._user = user
        if previous_id == self.user_id:
            return

        logger.info("identity_changed", previous_user_id=previous_id, user_id=self.user_id)
        for listener in list(self._listeners):
            listener(user)
