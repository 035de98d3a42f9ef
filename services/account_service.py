from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy.orm import Session

from models.account import Account
from utils.common_helpers import iso


def list_accounts(db: Session, user_id: str) -> List[Account]:
    return (
        db.query(Account)
        .filter(Account.user_id == user_id)
        .order_by(Account.created_at.asc(), Account.id.asc())
        .all()
    )


def get_account(db: Session, user_id: str, account_id: str) -> Account | None:
    return (
        db.query(Account)
        .filter(Account.user_id == user_id, Account.id == account_id)
        .first()
    )


def create_account(db: Session, user_id: str, *, name: str) -> Account:
    account = Account(user_id=user_id, name=name)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def account_to_dict(account: Account) -> Dict[str, Any]:
    return {"id": account.id, "name": account.name, "createdAt": iso(account.created_at)}
