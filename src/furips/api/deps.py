"""Shared FastAPI dependencies."""

from functools import lru_cache
from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from furips.core.config import settings
from furips.core.exceptions import AuthenticationError, PermissionDeniedError
from furips.core.security import Principal, Role, decode_access_token
from furips.ingest.sessions import UploadSessionManager

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """Resolve the caller from the bearer token, or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return decode_access_token(credentials.credentials)


def require_roles(*roles: Role) -> Callable[..., Principal]:
    """Dependency factory admitting only the given roles."""

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise PermissionDeniedError(
                f"Role {principal.role.value} is not allowed to perform this action"
            )
        return principal

    return dependency


@lru_cache(maxsize=1)
def get_upload_manager() -> UploadSessionManager:
    """Process-wide session manager; its per-upload locks must be shared."""
    return UploadSessionManager(
        root=settings.upload_scratch_root,
        retention_seconds=settings.upload_retention_seconds,
    )
