# routers/account_routes.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import default_rate_limit, limiter
from models.user import User
from schemas.account import AccountCreate
from services.account_service import account_to_dict, create_account, list_accounts
from services.auth import get_current_user
from utils.responses import ok

router = APIRouter()


@router.get("")
@limiter.limit(default_rate_limit)
def get_user_accounts(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ok([account_to_dict(a) for a in list_accounts(db, user.id)])


@router.post("")
@limiter.limit(default_rate_limit)
def create_user_account(
    request: Request,
    payload: AccountCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    account = create_account(db, user.id, name=payload.name)
    return ok(account_to_dict(account), status_code=status.HTTP_201_CREATED)
