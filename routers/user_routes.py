# routers/user_routes.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import default_rate_limit, limiter
from schemas.user import UserRegister
from services.user_service import register_user, user_to_dict
from utils.responses import ok

router = APIRouter()


@router.post("/register")
@limiter.limit(default_rate_limit)
def register(request: Request, payload: UserRegister, db: Session = Depends(get_db)):
    user, is_new = register_user(db, payload.device_id)
    return ok(
        user_to_dict(user, is_new=is_new),
        status_code=status.HTTP_201_CREATED if is_new else status.HTTP_200_OK,
    )
