"""
Session authentication for Comanda

Sessions are HS256 JWTs stored in an httponly cookie. The cookie name and
domain are shared with the other services of the deployment so a single
login works across subdomains.
"""
import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, field_validator

from comanda.core.config import settings
from comanda.core.exceptions import ConfigurationError
from comanda.core.roles import UserRole, parse_user_role

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
MIN_SECRET_LENGTH = 32


class SessionPayload(BaseModel):
    """Claims carried in the session cookie"""
    sub: str
    iat: int
    exp: int
    tenant_id: Optional[str] = None
    role: Optional[UserRole] = None
    username: Optional[str] = None
    tenant_name: Optional[str] = None
    permissions: List[str] = []

    model_config = ConfigDict(extra="allow")

    @field_validator("role", mode="before")
    @classmethod
    def _narrow_role(cls, value: Any) -> Optional[UserRole]:
        # Unknown role claims degrade to "no role" instead of failing the session
        return parse_user_role(value)


def get_auth_secret() -> str:
    """Get the AUTH_SECRET, refusing short secrets"""
    secret = settings.AUTH_SECRET
    if not secret or len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(
            f"AUTH_SECRET must be set and be at least {MIN_SECRET_LENGTH} characters. "
            "Generate one with: openssl rand -hex 32"
        )
    return secret


def create_session_token(sub: str, extra: Optional[Dict[str, Any]] = None) -> str:
    """Create a signed session token for the given subject"""
    now = int(time.time())
    claims = {
        **(extra or {}),
        "sub": sub,
        "iat": now,
        "exp": now + settings.AUTH_SESSION_TTL,
    }
    return jwt.encode(claims, get_auth_secret(), algorithm=JWT_ALGORITHM)


def verify_session_token(token: str) -> Optional[SessionPayload]:
    """
    Verify a session token.

    Returns the payload, or None if the token is malformed, tampered with
    or expired.
    """
    try:
        claims = jwt.decode(token, get_auth_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected session token: {e}")
        return None

    try:
        return SessionPayload(**claims)
    except ValueError as e:
        logger.debug(f"Session token with invalid claims: {e}")
        return None


def _cookie_options() -> Dict[str, Any]:
    return {
        "path": "/",
        "httponly": True,
        "samesite": "lax",
        "secure": settings.is_production,
        "domain": settings.cookie_domain,
    }


def set_session_cookie(response: Response, sub: str, extra: Optional[Dict[str, Any]] = None) -> Response:
    """Issue a session for `sub` on the response"""
    token = create_session_token(sub, extra)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=settings.AUTH_SESSION_TTL,
        **_cookie_options(),
    )
    return response


def clear_session_cookie(response: Response) -> Response:
    """Expire the session cookie on the response"""
    response.set_cookie(settings.AUTH_COOKIE_NAME, "", max_age=0, **_cookie_options())
    return response


def get_session_optional(request: Request) -> Optional[SessionPayload]:
    """
    Optional authentication - returns None if no valid session cookie.

    Usage:
        @router.get("/public-or-private")
        async def flexible_route(session: Optional[SessionPayload] = Depends(get_session_optional)):
            ...
    """
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        return None

    try:
        return verify_session_token(token)
    except ConfigurationError:
        logger.exception("Session cookie ignored, AUTH_SECRET is not configured")
        return None


def get_current_session(
    session: Optional[SessionPayload] = Depends(get_session_optional),
) -> SessionPayload:
    """Dependency that requires a valid session"""
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return session


def get_tenant_session(session: SessionPayload = Depends(get_current_session)) -> SessionPayload:
    """Dependency that requires a session scoped to a tenant"""
    if not session.tenant_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return session


# Role hierarchy: admin > manager > staff
ROLE_LEVELS = {
    UserRole.ADMIN: 3,
    UserRole.MANAGER: 2,
    UserRole.STAFF: 1,
}


def require_role(required_role: UserRole):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/products")
        async def create_product(session: SessionPayload = Depends(require_role(UserRole.MANAGER))):
            ...
    """
    def role_checker(session: SessionPayload = Depends(get_current_session)) -> SessionPayload:
        user_level = ROLE_LEVELS.get(session.role, 0)
        if user_level < ROLE_LEVELS[required_role]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required_role.value}",
            )
        return session

    return role_checker

