# storefront/actors.py
"""
Identità del chiamante. L'autenticazione vive a monte (gateway/sessione):
qui arrivano solo gli header già verificati.
"""
from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException

from .config import CONFIG
from .models import Role


@dataclass(frozen=True)
class Actor:
    id: Optional[int]
    role: Role


def get_actor(
    x_user_id: Annotated[Optional[int], Header()] = None,
    x_user_role: Annotated[Role, Header()] = Role.customer,
) -> Actor:
    return Actor(id=x_user_id, role=x_user_role)


def require_admin(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    if actor.role != Role.admin:
        raise HTTPException(status_code=403, detail="Operator role required")
    return actor


def require_service_key(x_service_key: Annotated[Optional[str], Header()] = None) -> None:
    expected = CONFIG.service_key
    if not expected:
        raise HTTPException(status_code=500, detail="Server not configured to create users")
    if not x_service_key or not hmac.compare_digest(x_service_key, expected):
        raise HTTPException(status_code=401, detail="Invalid service key")


ActorDep = Annotated[Actor, Depends(get_actor)]
AdminDep = Annotated[Actor, Depends(require_admin)]
