from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from models.user import User
from utils.common_helpers import iso

logger = logging.getLogger(__name__)


def get_user_by_device(db: Session, device_id: str) -> User | None:
    return (
        db.query(User)
        .options(selectinload(User.accounts))
        .filter(User.device_id == device_id)
        .first()
    )


def register_user(db: Session, device_id: str) -> Tuple[User, bool]:
    """Idempotent: returns (user, is_new)."""
    existing = get_user_by_device(db, device_id)
    if existing:
        return existing, False

    user = User(device_id=device_id)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # concurrent registration with the same device id
        db.rollback()
        existing = get_user_by_device(db, device_id)
        if existing is None:
            raise
        return existing, False

    logger.info("registered new user id=%s", user.id)
    return get_user_by_device(db, device_id), True  # type: ignore[return-value]


def user_to_dict(user: User, *, is_new: bool) -> Dict[str, Any]:
    return {
        "id": user.id,
        "deviceId": user.device_id,
        "createdAt": iso(user.created_at),
        "accounts": [
            {"id": a.id, "name": a.name, "createdAt": iso(a.created_at)}
            for a in user.accounts
        ],
        "isNew": is_new,
    }
