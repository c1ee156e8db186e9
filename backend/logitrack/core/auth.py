"""Who is calling: the acting user and role attached to every request."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from logitrack.core.config import get_settings


bearer = HTTPBearer(auto_error=False)


class Role(str, Enum):
    ADMIN = "admin"
    DISPATCHER = "dispatcher"
    HR = "hr"
    ACCOUNTING = "accounting"
    CASHIER = "cashier"


@dataclass
class ActorContext:
    actor: str
    role: Role
    authenticated: bool = False


def _role_from_header(value: Optional[str]) -> Role:
    try:
        return Role((value or Role.ADMIN.value).strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported role '{value}'. Expected one of: {[role.value for role in Role]}",
        )


def _actor_from_token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Bearer token required")
    username = get_settings().token_users().get(credentials.credentials.strip())
    if not username:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid bearer token")
    return username


def get_actor_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    x_actor: Optional[str] = Header(default=None, alias="X-Actor"),
    x_actor_role: Optional[str] = Header(default=None, alias="X-Actor-Role"),
) -> ActorContext:
    """With auth enabled the bearer token names the actor; otherwise X-Actor does."""
    settings = get_settings()
    if settings.auth_enabled:
        actor = _actor_from_token(credentials)
    else:
        actor = (x_actor or "").strip() or settings.default_actor
    return ActorContext(actor=actor, role=_role_from_header(x_actor_role), authenticated=settings.auth_enabled)


def require_roles(*roles: str):
    allowed = {Role(role) for role in roles}

    def _guard(context: ActorContext = Depends(get_actor_context)) -> ActorContext:
        if context.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{context.role.value}' not permitted for this operation",
            )
        return context

    return _guard
