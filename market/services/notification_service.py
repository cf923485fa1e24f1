# market/services/notification_service.py
from collections import deque
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Deque

from pydantic import BaseModel

from market.domain.errors import (
    AuthError,
    CheckoutTimeout,
    MarketError,
    NetworkError,
    OperationCancelled,
    ServerRejection,
    ValidationError,
)
from market.domain.schemas import CheckoutReceipt
from market.utils.logging import get_logger

logger = get_logger(__name__)

MAX_HISTORY = 100


class Level(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    level: Level
    title: str
    message: str


class NotificationService:
    """
    User-visible notifications.
    boundary() is the place where errors stop: every MarketError raised
    inside it becomes a notification instead of reaching the caller.
    """

    def __init__(self, sink: Callable[[Notification], None] | None = None, history: int = MAX_HISTORY):
        self.sink = sink
        self.notifications: Deque[Notification] = deque(maxlen=history)

    def notify(self, level: Level, message: str, title: str = "") -> Notification:
        note = Notification(level=level, title=title, message=message)
        self.notifications.append(note)
        logger.info(f"[NOTIFICATION] {level.value}: {title} {message}".strip())
        if self.sink:
            self.sink(note)
        return note

    @property
    def last(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None

    def from_error(self, action: str, error: MarketError) -> Notification | None:
        if isinstance(error, OperationCancelled):
            logger.debug(f"{action}: {error}")
            return None
        if isinstance(error, ValidationError):
            return self.notify(Level.WARNING, error.message, action)
        if isinstance(error, AuthError):
            return self.notify(Level.ERROR, f"{error.message}. Please log in again.", action)
        if isinstance(error, NetworkError):
            return self.notify(Level.ERROR, error.message, "Network Error")
        if isinstance(error, CheckoutTimeout):
            return self.notify(Level.WARNING, error.message, "Payment pending")
        if isinstance(error, ServerRejection):
            return self.notify(Level.ERROR, error.message, action)
        return self.notify(Level.ERROR, error.message, action)

    @contextmanager
    def boundary(self, action: str):
        try:
            yield self
        except MarketError as e:
            logger.warning(f"{action} failed: {e}")
            self.from_error(action, e)

    def payment_prompt(self, receipt: CheckoutReceipt) -> Notification:
        return self.notify(
            Level.SUCCESS,
            f"Check your phone ({receipt.phone_number}) for the M-Pesa prompt. "
            f"Amount: KSh {receipt.amount}. Transaction ID: {receipt.transaction_id}. "
            f"You have {receipt.confirmation_window} seconds to enter your M-Pesa PIN.",
            "M-Pesa STK Push Sent",
        )
