from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from growth_tracker.api.registry import ManagerRegistry
from growth_tracker.core.auth import (
    MEMBER_ROLE,
    TokenError,
    create_access_token,
    decode_access_token,
)
from growth_tracker.domain import User
from growth_tracker.domain.errors import (
    InvalidArgument,
    PermissionDenied,
    StoreUnavailable,
    Unauthenticated,
)
from growth_tracker.domain.services.manager import AssessmentManager

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
) -> User:
    """Resolve the authenticated user from a bearer token."""
    if credentials is None:
        raise _unauthorized("Missing bearer token")

    try:
        return decode_access_token(credentials.credentials).to_user()
    except TokenError as exc:
        raise _unauthorized(str(exc)) from exc


def get_manager_registry(request: Request) -> ManagerRegistry:
    return request.app.state.manager_registry


async def get_manager(
    user: User = Depends(get_current_user),  # noqa: B008
    registry: ManagerRegistry = Depends(get_manager_registry),  # noqa: B008
) -> AssessmentManager:
    """Return the signed-in assessment manager for the calling user."""
    try:
        return await registry.get(user)
    except StoreUnavailable as exc:
        raise to_http_error(exc) from exc


def issue_smoke_token(user_id: str, *, role: str = MEMBER_ROLE, email: str | None = None) -> str:
    """Generate a signed token for manual smoke testing."""
    return create_access_token(user_id, roles=[role], email=email)


def to_http_error(exc: Exception) -> HTTPException:
    """Translate a domain error into the matching HTTP error."""
    if isinstance(exc, InvalidArgument):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, Unauthenticated):
        return _unauthorized(str(exc))
    if isinstance(exc, PermissionDenied):
        return _forbidden(str(exc))
    if isinstance(exc, StoreUnavailable):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
