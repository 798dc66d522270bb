"""
marketplace/auth_context.py

Shared authentication context primitives for FastAPI dependency injection.

Contains:
- AuthContext: Actor resolved from a verified bearer token
- verify_token / create_access_token: JWT helpers (PyJWT, HS256)
- require_auth_context: FastAPI dependency for auth enforcement
- optional_auth_context: same, but anonymous callers get None

The users table is the source of truth for role and agency. Claims in the
token other than "sub" are never trusted.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from domains.listing.models.actor import Actor
from marketplace.config import ACCESS_TOKEN_MINUTES, ALGORITHM, IS_DEV, SECRET_KEY
from marketplace.db import get_db
from marketplace.store import ListingStore

# Security schemes for HTTPBearer
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


# ---------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------
def create_access_token(data: dict, minutes: Optional[int] = None) -> str:
    """Sign a token; adds exp unless the caller supplied one."""
    payload = dict(data)
    if "exp" not in payload:
        lifetime = timedelta(minutes=minutes if minutes is not None else ACCESS_TOKEN_MINUTES)
        payload["exp"] = datetime.now(timezone.utc) + lifetime
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify JWT access token and return decoded payload.

    Raises:
        HTTPException(401): If token is expired or invalid
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


# ---------------------------------------------------------
# AuthContext
# ---------------------------------------------------------
class AuthContext(Actor):
    """
    Immutable actor derived from server-side JWT verification.
    This is the ONLY source of truth for user id, role and agency in protected endpoints.
    Never trust agency_id/owner ids from request bodies or query params.
    """


def resolve_auth_context(token: str) -> AuthContext:
    """
    Verify the token and load the actor it names.

    Raises:
        HTTPException(401): invalid/expired token, missing sub, unknown user
        HTTPException(403): inactive user
    """
    payload = verify_token(token)
    user_id = payload.get("sub")

    if not user_id:
        print("[AUTH] Missing user_id in token payload")
        raise HTTPException(status_code=401, detail="Invalid token payload")

    conn = get_db()
    try:
        actor = ListingStore(conn).find_actor(str(user_id))
    finally:
        conn.close()

    if actor is None:
        print(f"[AUTH] User not found: user_id={user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    if not actor.is_active:
        print(f"[AUTH] Inactive user attempted access: user_id={user_id}")
        raise HTTPException(status_code=403, detail="Account inactive")

    ctx = AuthContext(**actor.model_dump())

    if IS_DEV:
        print(f"[AUTH] Authenticated: user_id={ctx.id}, role={ctx.role}, agency_id={ctx.agency_id}")

    return ctx


def require_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthContext:
    """
    Auth dependency for protected routes.

    Usage:
        @router.post("/{listing_id}/resend")
        def resend(listing_id: str, ctx: AuthContext = Depends(require_auth_context)):
            ...
    """
    return resolve_auth_context(credentials.credentials)


def optional_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
) -> Optional[AuthContext]:
    """Auth dependency for public routes: None when no bearer token was sent."""
    if credentials is None:
        return None
    return resolve_auth_context(credentials.credentials)
