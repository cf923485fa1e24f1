# market/dev_backend/serializers.py
from decimal import Decimal


def money(value) -> float:
    return float(Decimal(value).quantize(Decimal("0.01")))


def user_out(u) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "role": u.role,
        "verified": u.verified,
        "banned": u.banned,
        "location": u.location,
    }


def product_out(p) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "price": money(p.price),
        "category": p.category,
        "description": p.description,
        "image": p.image,
        "quantity": p.quantity,
        "vendor_id": p.vendor_id,
        "location": p.location,
    }


def cart_item_out(i) -> dict:
    return {
        "id": i.id,
        "user_id": i.user_id,
        "product_id": i.product_id,
        "quantity": i.quantity,
        "product": product_out(i.product),
    }


def transaction_out(t) -> dict:
    return {
        "transaction_id": t.checkout_request_id,
        "phone_number": t.phone_number,
        "amount": money(t.amount),
        "status": t.status,
        "mpesa_receipt_number": t.mpesa_receipt_number,
        "created_at": t.created_at.isoformat() if t.created_at else None,
    }


def order_out(o) -> dict:
    return {
        "id": o.id,
        "customer_id": o.customer_id,
        "product_id": o.product_id,
        "vendor_id": o.vendor_id,
        "quantity": o.quantity,
        "total_amount": money(o.total_amount),
        "shipping_status": o.shipping_status,
        "tracking_number": o.tracking_number,
        "shipping_address": o.shipping_address,
        "customer_verified": o.customer_verified,
        "payment_released": o.payment_released,
        "verification_requested_at": (
            o.verification_requested_at.isoformat() if o.verification_requested_at else None
        ),
        "created_at": o.created_at.isoformat() if o.created_at else None,
        "product_name": o.product.name if o.product else None,
        "vendor_username": o.vendor.username if o.vendor else None,
        "customer_username": o.customer.username if o.customer else None,
    }


def review_out(r) -> dict:
    return {
        "id": r.id,
        "customer_id": r.customer_id,
        "product_id": r.product_id,
        "vendor_id": r.vendor_id,
        "rating": r.rating,
        "comment": r.comment,
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "customer_username": r.customer.username if r.customer else None,
        "product_name": r.product.name if r.product else None,
    }


def report_out(r) -> dict:
    return {
        "id": r.id,
        "customer_id": r.customer_id,
        "vendor_id": r.vendor_id,
        "product_id": r.product_id,
        "report_type": r.report_type,
        "description": r.description,
        "status": r.status,
        "admin_notes": r.admin_notes,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


def message_out(m) -> dict:
    return {
        "id": m.id,
        "sender_id": m.sender_id,
        "receiver_id": m.receiver_id,
        "content": m.content,
        "is_read": m.is_read,
        "created_at": m.created_at.isoformat() if m.created_at else None,
        "sender_username": m.sender.username if m.sender else None,
        "receiver_username": m.receiver.username if m.receiver else None,
    }


def follow_out(f) -> dict:
    return {
        "id": f.id,
        "follower_id": f.follower_id,
        "vendor_id": f.vendor_id,
        "vendor_username": f.vendor.username if f.vendor else None,
        "created_at": f.created_at.isoformat() if f.created_at else None,
    }
