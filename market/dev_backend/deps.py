# market/dev_backend/deps.py
import json

from fastapi import Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from market.dev_backend.database import get_db
from market.dev_backend.models import IdempotencyKeyModel, UserModel


def _user_from_header(authorization: str | None, db: Session) -> UserModel | None:
    if not authorization:
        return None
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization format")

    user = db.execute(
        select(UserModel).where(UserModel.token == authorization[7:])
    ).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user


def current_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db),
) -> UserModel:
    user = _user_from_header(authorization, db)
    if user is None:
        raise HTTPException(status_code=401, detail="Authorization header missing")
    return user


def optional_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db),
) -> UserModel | None:
    return _user_from_header(authorization, db)


def require_role(user: UserModel, role: str):
    if user.role != role:
        raise HTTPException(status_code=403, detail=f"{role} privileges required")


def replay(db: Session, user_id: int, key: str | None):
    """Stored response for an idempotency key already seen, else None."""
    if not key:
        return None
    row = db.execute(
        select(IdempotencyKeyModel).where(
            IdempotencyKeyModel.user_id == user_id,
            IdempotencyKeyModel.key == key,
        )
    ).scalar_one_or_none()
    return json.loads(row.response) if row else None


def remember(db: Session, user_id: int, key: str | None, response: dict):
    if key:
        db.add(IdempotencyKeyModel(user_id=user_id, key=key, response=json.dumps(response, default=str)))
