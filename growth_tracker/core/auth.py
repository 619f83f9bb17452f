"""
Bearer tokens for the assessment API.

Tokens are HS256 JWTs carrying the user id in ``sub``, the granted roles and
an optional e-mail. Every role must be listed in ``Settings.allowed_roles``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from growth_tracker.core.config import Settings, get_settings
from growth_tracker.domain.models import User

MEMBER_ROLE = "member"


class TokenError(Exception):
    """Raised when a token cannot be issued, decoded or trusted."""


@dataclass(frozen=True, slots=True)
class AccessClaims:
    subject: str
    roles: tuple[str, ...]
    expires_at: datetime
    email: str = ""

    def to_user(self) -> User:
        return User(user_id=self.subject, email=self.email, roles=list(self.roles))


def create_access_token(
    user_id: str,
    *,
    roles: Sequence[str] = (MEMBER_ROLE,),
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token for ``user_id``."""
    settings = get_settings()
    if not user_id:
        raise TokenError("Token subject must not be empty")
    _check_roles(roles, settings)

    ttl = expires_delta or timedelta(seconds=settings.access_token_ttl_seconds)
    issued_at = datetime.now(UTC)
    expires_at = issued_at + ttl
    payload: dict[str, object] = {
        "sub": user_id,
        "roles": list(roles),
        "iat": issued_at,
        "exp": expires_at,
        "iss": settings.app_name,
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AccessClaims:
    """Verify ``token`` and return its claims."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.app_name,
            options={"require": ["sub", "roles", "exp", "iss"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise TokenError("Invalid token") from exc

    subject = payload["sub"]
    if not isinstance(subject, str) or not subject:
        raise TokenError("Token missing subject")

    roles = payload["roles"]
    if not isinstance(roles, list) or not roles:
        raise TokenError("Token missing required roles")
    _check_roles(roles, settings)

    return AccessClaims(
        subject=subject,
        roles=tuple(roles),
        expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        email=payload.get("email") or "",
    )


def _check_roles(roles: Sequence[object], settings: Settings) -> None:
    unsupported = [str(role) for role in roles if role not in settings.allowed_roles]
    if unsupported:
        raise TokenError(f"Unsupported role(s): {', '.join(unsupported)}")
