"""
Authentication API endpoints for Comanda
- Stub login issuing the session cookie
- Logout
- Current session
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, RedirectResponse

from comanda.core.auth import SessionPayload, clear_session_cookie, get_current_session, set_session_cookie
from comanda.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _safe_redirect(target: Optional[str]) -> str:
    # Only same-site paths; "//host" would leave the site
    if not target or not target.startswith("/") or target.startswith("//"):
        return "/"
    return target


@router.get("/login")
async def login(
    sub: Optional[str] = Query(None, description="Subject / user identifier"),
    redirect: Optional[str] = Query("/", description="Path to go to after login"),
):
    """
    Stub login: issues a session for `sub` and redirects

    A production deployment puts an identity provider in front of this.
    """
    if not sub:
        raise HTTPException(status_code=400, detail="Missing required query parameter: sub")

    response = RedirectResponse(_safe_redirect(redirect))
    try:
        set_session_cookie(response, sub)
    except ConfigurationError:
        logger.exception("Cannot issue session")
        raise HTTPException(status_code=500, detail="Authentication is not configured")

    logger.info(f"Session issued for {sub}")
    return response


@router.api_route("/logout", methods=["GET", "POST"])
async def logout():
    """Clear the session cookie"""
    response = JSONResponse({"ok": True})
    return clear_session_cookie(response)


@router.get("/me")
async def me(session: SessionPayload = Depends(get_current_session)):
    """Claims of the current session"""
    return {"session": session.model_dump(mode="json", exclude_none=True)}
