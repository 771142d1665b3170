"""
Admin (host) authentication dependency
======================================

Goal
----
Provide a FastAPI *dependency* `admin_required` granting host access via:
1) an **admin session cookie** (`admin_session`, issued by `/auth/admin/login`), *or*
2) a **Bearer token** equal to `settings.ADMIN_PASSWORD` (handy for CLI/tests).

Behaviour & status codes
------------------------
- 401 when nothing valid is provided.
- 403 when a Bearer is provided but wrong.
- True otherwise.

Notes
-----
- `HTTPBearer(auto_error=False)` so we return our own 401/403.
- Sessions expire after `ADMIN_SESSION_TTL_HOURS`; expiry is checked on read.
- The passphrase is a party gate, not a security boundary.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from madlibs.services.admin_session import ADMIN_SESSIONS, check_password

ADMIN_COOKIE_NAME = "admin_session"

bearer = HTTPBearer(auto_error=False)


def admin_required(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
):
    """
    Host access dependency.

    Allows when:
    - the admin session cookie is valid, OR
    - Authorization: Bearer <settings.ADMIN_PASSWORD>
    """
    if ADMIN_SESSIONS.get(request.cookies.get(ADMIN_COOKIE_NAME)) is not None:
        return True

    if credentials and (credentials.scheme or "").lower() == "bearer":
        if check_password(credentials.credentials):
            return True
        raise HTTPException(status_code=403, detail="Invalid token")

    raise HTTPException(status_code=401, detail="Admin authentication required")
