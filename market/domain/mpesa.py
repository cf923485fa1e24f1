# market/domain/mpesa.py
import re
from decimal import Decimal, InvalidOperation

from market.domain.errors import ValidationError
from market.domain.schemas import round_money
from market.utils.settings import CHECKOUT_MAX_AMOUNT, CHECKOUT_MIN_AMOUNT

# 07XXXXXXXX, 254XXXXXXXXX, +254XXXXXXXXX
PHONE_RE = re.compile(r"^(07\d{8}|254\d{9}|\+254\d{9})$")
_SEPARATORS = re.compile(r"[\s-]")


def normalize_phone(raw: str) -> str:
    return _SEPARATORS.sub("", raw or "")


def validate_phone(raw: str) -> str:
    phone = normalize_phone(raw)
    if not PHONE_RE.match(phone):
        raise ValidationError(
            "Please enter a valid M-Pesa number: 07XXXXXXXX, 254XXXXXXXXX or +254XXXXXXXXX"
        )
    return phone


def validate_amount(
    amount,
    minimum: int = CHECKOUT_MIN_AMOUNT,
    maximum: int = CHECKOUT_MAX_AMOUNT,
) -> Decimal:
    try:
        value = Decimal(str(amount))
        if value.is_finite():
            value = round_money(value)
    except (InvalidOperation, ValueError):
        value = None
    if value is None or not value.is_finite():
        raise ValidationError(f"Invalid amount: {amount}")

    if value < minimum:
        raise ValidationError(f"Minimum amount is KSh {minimum}")
    if value > maximum:
        raise ValidationError(f"Maximum amount is KSh {maximum:,}")
    return value
