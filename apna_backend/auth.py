"""Authentication for the Apna Freelancer backend.

Callers authenticate with a Supabase Auth access token, sent either as a
bearer token or inside the cookie the frontend Supabase client writes. The
token is verified locally against the project's JWT secret and its subject
is resolved to a row in ``users``.
"""

import json
from typing import Annotated
from urllib.parse import unquote

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings, get_settings
from .database import USERS_TABLE
from .errors import Forbidden, Unauthorized
from .logging_config import get_logger, log_auth_event
from .models import UserProfile
from .repository import Repository

logger = get_logger("apna.auth")

# Make bearer optional to allow cookie fallback
security = HTTPBearer(auto_error=False)


class AuthContext:
    """The authenticated caller."""

    def __init__(self, profile: UserProfile):
        self.profile = profile
        self.user_id = profile.id
        self.is_admin = profile.is_admin


def token_from_cookie(raw: str | None) -> str | None:
    """Pull the access token out of the Supabase session cookie.

    The cookie holds URL-encoded JSON with an ``access_token`` field.
    """
    if not raw:
        return None
    try:
        session = json.loads(unquote(raw))
    except ValueError:
        logger.warning("Auth cookie is not valid JSON")
        return None
    if not isinstance(session, dict):
        return None
    token = session.get("access_token")
    return token if isinstance(token, str) and token else None


def decode_supabase_token(token: str, settings: Settings) -> dict:
    """Verify a Supabase Auth JWT and return its claims."""
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.supabase_jwt_algorithm],
            audience=settings.supabase_jwt_audience,
        )
    except JWTError:
        log_auth_event("token_verify", success=False, reason="invalid_or_expired")
        raise Unauthorized("Invalid or expired token")


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
    repository: Repository,
) -> AuthContext:
    """Resolve the request to an authenticated user profile."""
    # Try Authorization header first, then fall back to cookie
    if credentials:
        token = credentials.credentials
    else:
        token = token_from_cookie(request.cookies.get(settings.auth_cookie_name))

    if not token:
        raise Unauthorized("No authentication token provided")

    claims = decode_supabase_token(token, settings)
    user_id = claims.get("sub")
    if not user_id:
        log_auth_event("token_verify", success=False, reason="missing_subject")
        raise Unauthorized("Invalid token payload")

    profile = await repository.get(USERS_TABLE, user_id)
    if profile is None:
        log_auth_event("profile_lookup", user_id=user_id, success=False, reason="not_found")
        raise Unauthorized("User profile not found")

    return AuthContext(profile)


# Type alias for dependency injection
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> AuthContext:
    """Allow only profiles flagged ``is_admin``."""
    if not user.is_admin:
        log_auth_event("admin_check", user_id=user.user_id, success=False, reason="not_admin")
        raise Forbidden("Admin access required")
    return user


AdminUser = Annotated[AuthContext, Depends(require_admin)]
