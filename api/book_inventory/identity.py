# book_inventory/identity.py
"""
Active tenant/user of a request.

Sessions are issued by the authentication layer in front of this service;
it forwards the active tenant and user as headers (names configurable via
TENANT_HEADER / USER_HEADER).
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request


@dataclass(frozen=True)
class Identity:
    tenant_id: str
    user_id: Optional[str] = None


def get_identity(request: Request) -> Identity:
    """FastAPI dependency; 401 when no active tenant is present."""
    settings = request.app.state.settings
    tenant_id = (request.headers.get(settings.TENANT_HEADER) or "").strip()
    user_id = (request.headers.get(settings.USER_HEADER) or "").strip() or None
    if not tenant_id:
        raise HTTPException(status_code=401, detail="Not authorized or no store selected.")
    return Identity(tenant_id=tenant_id, user_id=user_id)


def get_user_identity(request: Request) -> Identity:
    """Like get_identity, but writes must also be attributable to a user."""
    identity = get_identity(request)
    if not identity.user_id:
        raise HTTPException(status_code=401, detail="Not authorized or no store selected.")
    return identity
