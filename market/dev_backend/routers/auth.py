# market/dev_backend/routers/auth.py
import hashlib
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from market.dev_backend.database import get_db
from market.dev_backend.deps import current_user
from market.dev_backend.models import UserModel
from market.dev_backend.schemas import LoginIn, ProfileIn, SignupIn
from market.dev_backend.serializers import user_out

router = APIRouter(tags=["auth"])


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


@router.post("/signup", status_code=201)
def signup(payload: SignupIn, db: Session = Depends(get_db)):
    taken = db.execute(
        select(UserModel).where(UserModel.username == payload.username)
    ).scalar_one_or_none()
    if taken:
        raise HTTPException(status_code=400, detail="Username already taken")

    user = UserModel(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
        location=payload.location,
        wallet_balance=0,
    )
    db.add(user)
    db.commit()
    return user_out(user)


@router.post("/login")
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = db.execute(
        select(UserModel).where(UserModel.username == payload.username)
    ).scalar_one_or_none()
    if not user or user.password_hash != hash_password(payload.password):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    if user.banned:
        raise HTTPException(status_code=403, detail="Account is banned")

    user.token = uuid.uuid4().hex
    db.commit()
    return {"token": user.token, "user": user_out(user)}


@router.get("/users")
def list_users(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    others = db.execute(
        select(UserModel).where(UserModel.id != user.id).order_by(UserModel.id)
    ).scalars().all()
    return [user_out(u) for u in others]


@router.patch("/profile")
def update_profile(payload: ProfileIn, user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    if payload.username is None and payload.email is None:
        raise HTTPException(status_code=400, detail="Nothing to update")

    if payload.username is not None and payload.username != user.username:
        taken = db.execute(
            select(UserModel).where(UserModel.username == payload.username, UserModel.id != user.id)
        ).scalar_one_or_none()
        if taken:
            raise HTTPException(status_code=409, detail="Username or email already exists")
        user.username = payload.username
    if payload.email is not None:
        user.email = payload.email

    db.commit()
    return {
        "message": "Profile updated successfully",
        "new_username": user.username,
        "user": user_out(user),
    }
