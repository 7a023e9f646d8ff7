"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two entry points converge on the same engine:
  1. Basic auth header -- the newsletter publishing API (basic_credentials).
  2. Login form fields -- the admin login page (form_credentials), followed by
     a server-side session carried in an httpOnly cookie
     (require_admin_session).

The helpers only translate transport into domain values. They raise the
domain errors from auth/errors.py unchanged; api/errors.py turns those into
status codes, challenges and cache headers.

Expected app.state wiring (done by whoever builds the app):
  app.state.sessions  -- auth.sessions.SessionManager
  app.state.settings  -- core.config.Settings

Layer rule: no imports from api/, subscriptions/, or newsletter/.
  auth/dependencies.py may import from fastapi (for Form/Request/Response)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Form, Request, Response

from auth.credentials import credentials_from_basic_auth, credentials_from_form
from auth.models import Credentials, SessionHandle, SessionRecord
from auth.sessions import SessionManager
from core.config import Settings


def basic_credentials(request: Request) -> Credentials:
    """Extract Basic credentials from the Authorization header.

    Use as a FastAPI dependency:
        @router.post("/newsletters")
        async def publish(creds: Credentials = Depends(basic_credentials)): ...
    """
    return credentials_from_basic_auth(request.headers)


def form_credentials(username: str = Form(...), password: str = Form(...)) -> Credentials:
    """Extract credentials from a urlencoded login form."""
    return credentials_from_form(username, password)


def session_cookie_value(request: Request) -> str | None:
    settings: Settings = request.app.state.settings
    return request.cookies.get(settings.session_cookie_name)


async def require_admin_session(request: Request) -> SessionRecord:
    """Require a live admin session. Raises Unauthorized otherwise.

    Looks the session up, then records the activity as a separate write, so
    every authenticated request pushes the inactivity deadline forward.
    """
    sessions: SessionManager = request.app.state.sessions
    record = await sessions.require_session(session_cookie_value(request))
    record = await sessions.record_activity(record)
    request.state.admin_session = record
    return record


def set_session_cookie(response: Response, handle: SessionHandle, settings: Settings) -> None:
    """Write the rotated session id as an httpOnly cookie.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation for the
        login and logout forms.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the server-side inactivity timeout.
    """
    response.set_cookie(
        settings.session_cookie_name,
        value=handle.session_id,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.session_idle_timeout_seconds,
    )
    response.headers["Cache-Control"] = "no-store"  # [M5]


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
    response.headers["Cache-Control"] = "no-store"
