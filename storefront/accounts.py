# storefront/accounts.py
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from werkzeug.security import generate_password_hash

from .errors import StorefrontError
from .models import Profile
from .schemas import UserCreate

log = logging.getLogger(__name__)


class DuplicateEmailError(StorefrontError):
    pass


def provision_user(session: Session, body: UserCreate) -> Profile:
    """Crea un utente (cliente o admin). Solo dal confine fidato (chiave di servizio)."""
    email = str(body.email).strip().lower()
    if session.exec(select(Profile.id).where(Profile.email == email)).first() is not None:
        raise DuplicateEmailError(f"{email} already registered")

    user = Profile(
        email=email,
        password_hash=generate_password_hash(body.password),
        full_name=body.full_name.strip(),
        phone=(body.phone or "").strip() or None,
        role=body.role,
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise DuplicateEmailError(f"{email} already registered") from e
    session.refresh(user)
    log.info("provisioned user %s (%s)", user.id, user.role.value)
    return user


def public_profile(user: Profile) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "role": user.role.value,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
