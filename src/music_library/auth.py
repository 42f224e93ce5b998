from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .settings import Settings, get_settings

_security = HTTPBasic(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Basic"},
    )


# PUBLIC_INTERFACE
async def require_trigger_auth(
    creds: Optional[HTTPBasicCredentials] = Depends(_security),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Enforce HTTP Basic Auth on trigger endpoints when ENABLE_BASIC_AUTH is set.
    When disabled, this dependency is a no-op.

    Raises:
        HTTPException(401) if credentials are missing, invalid, or not configured server-side.
    """
    if not settings.enable_basic_auth:
        return None

    if creds is None or creds.username is None or creds.password is None:
        raise _unauthorized("Not authenticated")

    expected_user = settings.basic_auth_username
    expected_pass = settings.basic_auth_password
    if expected_user is None or expected_pass is None:
        raise _unauthorized("Server authentication not configured")

    user_ok = secrets.compare_digest(creds.username.encode(), expected_user.encode())
    pass_ok = secrets.compare_digest(creds.password.encode(), expected_pass.encode())
    if not (user_ok and pass_ok):
        raise _unauthorized("Invalid authentication credentials")
    return None
