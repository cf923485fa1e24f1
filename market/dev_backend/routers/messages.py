# market/dev_backend/routers/messages.py
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from market.dev_backend.database import get_db
from market.dev_backend.deps import current_user
from market.dev_backend.models import FollowModel, MessageModel, ProductModel, ShippingOrderModel, UserModel
from market.dev_backend.schemas import FollowIn, MessageIn
from market.dev_backend.serializers import follow_out, message_out

router = APIRouter(tags=["messages"])


@router.get("/messages")
def conversations(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    rows = db.execute(
        select(MessageModel)
        .where(or_(MessageModel.sender_id == user.id, MessageModel.receiver_id == user.id))
        .order_by(MessageModel.id)
    ).scalars()

    convos = {}
    for m in rows:
        other = m.receiver if m.sender_id == user.id else m.sender
        entry = convos.setdefault(
            other.id,
            {"id": other.id, "username": other.username, "unread_count": 0},
        )
        entry["last_message"] = m.content
        entry["last_message_time"] = m.created_at.isoformat() if m.created_at else None
        if m.receiver_id == user.id and not m.is_read:
            entry["unread_count"] += 1

    return sorted(convos.values(), key=lambda c: c["last_message_time"] or "", reverse=True)


@router.get("/messages/{other_id}")
def thread(other_id: int, user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    rows = db.execute(
        select(MessageModel)
        .where(
            or_(
                and_(MessageModel.sender_id == user.id, MessageModel.receiver_id == other_id),
                and_(MessageModel.sender_id == other_id, MessageModel.receiver_id == user.id),
            )
        )
        .order_by(MessageModel.id)
    ).scalars()
    return [message_out(m) for m in rows]


@router.post("/messages", status_code=201)
def send_message(
    payload: MessageIn,
    user: UserModel = Depends(current_user),
    db: Session = Depends(get_db),
):
    if not db.get(UserModel, payload.receiver_id):
        raise HTTPException(status_code=404, detail="Recipient not found")
    message = MessageModel(sender_id=user.id, receiver_id=payload.receiver_id, content=payload.content)
    db.add(message)
    db.commit()
    return message_out(message)


@router.patch("/messages/{other_id}/read", status_code=204)
def mark_read(other_id: int, user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    db.execute(
        update(MessageModel)
        .where(MessageModel.sender_id == other_id, MessageModel.receiver_id == user.id)
        .values(is_read=True)
    )
    db.commit()
    return Response(status_code=204)


@router.get("/follow")
def list_follows(user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    rows = db.execute(select(FollowModel).where(FollowModel.follower_id == user.id)).scalars()
    return [follow_out(f) for f in rows]


@router.post("/follow", status_code=201)
def follow(payload: FollowIn, user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    vendor = db.get(UserModel, payload.vendor_id)
    if not vendor or vendor.role != "Vendor":
        raise HTTPException(status_code=404, detail="Vendor not found")

    row = FollowModel(follower_id=user.id, vendor_id=vendor.id)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Already following this vendor")
    return follow_out(row)


@router.delete("/follow/{vendor_id}", status_code=204)
def unfollow(vendor_id: int, user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    row = db.execute(
        select(FollowModel).where(FollowModel.follower_id == user.id, FollowModel.vendor_id == vendor_id)
    ).scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Not following this vendor")
    db.delete(row)
    db.commit()
    return Response(status_code=204)


@router.get("/vendors/{vendor_id}/profile")
def vendor_profile(vendor_id: int, user: UserModel = Depends(current_user), db: Session = Depends(get_db)):
    vendor = db.get(UserModel, vendor_id)
    if not vendor or vendor.role != "Vendor":
        raise HTTPException(status_code=404, detail="Vendor not found")

    def count(query) -> int:
        return db.execute(query).scalar_one()

    return {
        "id": vendor.id,
        "username": vendor.username,
        "email": vendor.email,
        "location": vendor.location,
        "profile_image": None,
        "verified": vendor.verified,
        "follower_count": count(select(func.count(FollowModel.id)).where(FollowModel.vendor_id == vendor.id)),
        "total_purchases": count(
            select(func.count(ShippingOrderModel.id)).where(ShippingOrderModel.vendor_id == vendor.id)
        ),
        "product_count": count(select(func.count(ProductModel.id)).where(ProductModel.vendor_id == vendor.id)),
    }
