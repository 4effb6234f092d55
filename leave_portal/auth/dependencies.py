"""Auth dependencies — bearer-token decoding and RBAC enforcement.

Tokens are minted by the external directory service; this module only
verifies them and turns the claims into an :class:`Actor`.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt

from leave_portal.auth.schemas import Actor
from leave_portal.common.constants import PERMISSIONS, UserRole
from leave_portal.common.exceptions import ForbiddenException
from leave_portal.config import settings


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_actor(request: Request) -> Actor:
    """Validate the JWT and return the acting user."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token has no subject.")

    try:
        role = UserRole(payload.get("role", UserRole.staff.value))
    except ValueError:
        raise HTTPException(status_code=401, detail="Token carries an unknown role.")

    return Actor(
        user_id=str(user_id),
        role=role,
        department=payload.get("department"),
        email=payload.get("email"),
    )


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Admin passes every role check.
    """

    async def _check(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role != UserRole.admin and actor.role not in allowed_roles:
            raise ForbiddenException(
                detail=f"Role '{actor.role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return actor

    return _check


# ── Permission-based dependency ─────────────────────────────────────

def require_permission(permission: str) -> Callable:
    """Return a FastAPI dependency that enforces a specific permission string."""

    async def _check(actor: Actor = Depends(get_current_actor)) -> Actor:
        if permission not in PERMISSIONS.get(actor.role, []):
            raise ForbiddenException(
                detail=f"Permission '{permission}' is not granted to role '{actor.role.value}'.",
            )
        return actor

    return _check
