# services/auth.py
import hmac
import logging
import os
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from services.errors import UnauthorizedError

logger = logging.getLogger(__name__)

DEVICE_ID_HEADER = "x-device-id"


def get_current_user(
    x_device_id: Optional[str] = Header(None, alias=DEVICE_ID_HEADER),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the caller from the x-device-id header.
    Raises UnauthorizedError (401) when the header is missing or unknown.
    """
    device_id = (x_device_id or "").strip()
    if not device_id:
        raise UnauthorizedError(f"{DEVICE_ID_HEADER} header is required")

    user = db.query(User).filter(User.device_id == device_id).first()
    if not user:
        raise UnauthorizedError("User not found. Please register first.")
    return user


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    # open when CRON_SECRET is unset
    secret = os.getenv("CRON_SECRET")
    if not secret:
        return
    expected = f"Bearer {secret}"
    if not hmac.compare_digest((authorization or "").encode(), expected.encode()):
        logger.warning("cron trigger rejected: bad or missing bearer secret")
        raise UnauthorizedError()
