"""
Module routes/auth.py
Role:
- Host login/logout against the static admin passphrase.

Cookie:
- `admin_session` (HttpOnly, SameSite=Lax), lifetime = ADMIN_SESSION_TTL_HOURS.
"""
from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from madlibs.config.settings import settings
from madlibs.deps.auth import ADMIN_COOKIE_NAME
from madlibs.services.admin_session import ADMIN_SESSIONS

router = APIRouter(prefix="/auth/admin", tags=["auth"])


class LoginPayload(BaseModel):
    password: str


@router.post("/login")
async def login(payload: LoginPayload, response: Response):
    sid = ADMIN_SESSIONS.login(payload.password)
    if sid is None:
        raise HTTPException(status_code=401, detail="Incorrect password")
    session = ADMIN_SESSIONS.get(sid)
    response.set_cookie(
        ADMIN_COOKIE_NAME,
        sid,
        max_age=settings.ADMIN_SESSION_TTL_HOURS * 3600,
        httponly=True,
        samesite="lax",
    )
    return {"ok": True, "expires_at": session.expires_at(ADMIN_SESSIONS.ttl).isoformat()}


@router.post("/logout")
async def logout(request: Request, response: Response):
    ADMIN_SESSIONS.logout(request.cookies.get(ADMIN_COOKIE_NAME))
    response.delete_cookie(ADMIN_COOKIE_NAME)
    return {"ok": True}


@router.get("/session")
async def session_status(request: Request):
    """Whether the caller's cookie still holds a valid host session."""
    session = ADMIN_SESSIONS.get(request.cookies.get(ADMIN_COOKIE_NAME))
    if session is None:
        return {"authenticated": False}
    return {
        "authenticated": True,
        "issued_at": session.issued_at.isoformat(),
        "expires_at": session.expires_at(ADMIN_SESSIONS.ttl).isoformat(),
    }
