# market/services/checkout_service.py
import uuid
from decimal import Decimal
from enum import Enum
from typing import Iterable, List

from pydantic import BaseModel, ValidationError as PydanticValidationError
from tenacity import RetryError

from market.domain.errors import (
    CheckoutTimeout,
    MarketError,
    NetworkError,
    OperationCancelled,
    ServerRejection,
    ValidationError,
)
from market.domain.mpesa import validate_amount, validate_phone
from market.domain.schemas import CheckoutReceipt, PaymentStatus, PaymentTransaction
from market.services.cart_service import CartService
from market.services.order_service import OrderService
from market.services.payment_service import PaymentService
from market.utils.cancel import CancelToken, check_cancelled
from market.utils.retry import status_poll_retry
from market.utils.settings import (
    PAYMENT_CONFIRMATION_WINDOW,
    PAYMENT_POLL_ATTEMPTS,
    PAYMENT_POLL_INITIAL_DELAY,
    PAYMENT_POLL_MAX_DELAY,
)
from market.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SETTLED = "settled"


class CheckoutOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class CheckoutResult(BaseModel):
    outcome: CheckoutOutcome
    message: str
    transaction_id: str | None = None
    amount: Decimal | None = None


def _receipt_from(data, phone: str, amount: Decimal, selected: List[int] | None) -> CheckoutReceipt:
    if not isinstance(data, dict) or not data.get("transaction_id"):
        raise ServerRejection("Payment service returned no transaction id", 200)
    try:
        return CheckoutReceipt(
            transaction_id=str(data["transaction_id"]),
            status=data.get("status") or "pending",
            message=data.get("message") or "",
            phone_number=phone,
            amount=amount,
            selected_items=selected,
            confirmation_window=PAYMENT_CONFIRMATION_WINDOW,
        )
    except PydanticValidationError as e:
        raise ServerRejection(f"Unreadable checkout response: {e.errors()[0]['msg']}", 200) from e


class CheckoutFlow:
    """
    M-Pesa STK push checkout for the whole cart or a selection of it.

    IDLE -> VALIDATING -> SUBMITTING -> AWAITING_CONFIRMATION -> SETTLED

    begin() validates and sends the charge request, await_confirmation()
    polls the transaction until the payer's PIN entry settles it or the
    attempts run out. A timeout is not a failure: the charge can still
    complete after the client stops watching.
    """

    def __init__(
        self,
        cart: CartService,
        payments: PaymentService,
        orders: OrderService | None = None,
        poll_attempts: int = PAYMENT_POLL_ATTEMPTS,
        poll_initial_delay: float = PAYMENT_POLL_INITIAL_DELAY,
        poll_max_delay: float = PAYMENT_POLL_MAX_DELAY,
        cancel_token: CancelToken | None = None,
    ):
        self.cart = cart
        self.payments = payments
        self.orders = orders
        self.poll_attempts = poll_attempts
        self.poll_initial_delay = poll_initial_delay
        self.poll_max_delay = poll_max_delay
        self.cancel_token = cancel_token

        self.state = CheckoutState.IDLE
        self.receipt: CheckoutReceipt | None = None
        self.result: CheckoutResult | None = None
        self.error: MarketError | None = None
        self._key: str | None = None
        self._key_request: tuple | None = None

    def _transition(self, new: CheckoutState):
        logger.info(f"Checkout {self.state.value} -> {new.value}")
        self.state = new

    def _settle(self, outcome: CheckoutOutcome, message: str, error: MarketError | None = None):
        self._transition(CheckoutState.SETTLED)
        self.error = error
        self.result = CheckoutResult(
            outcome=outcome,
            message=message,
            transaction_id=self.receipt.transaction_id if self.receipt else None,
            amount=self.receipt.amount if self.receipt else None,
        )
        # a dropped connection may have reached the server, keep the key for the retry
        if not isinstance(error, NetworkError):
            self._key = None
            self._key_request = None
        return self.result

    def _selection(self, selected_item_ids: List[int]) -> List[int]:
        items = self.cart.items
        if not items:
            raise ValidationError("Your cart is empty")

        selected = list(dict.fromkeys(selected_item_ids))
        if not selected:
            return [i.id for i in items]

        known = {i.id for i in items}
        missing = [i for i in selected if i not in known]
        if missing:
            raise ValidationError(f"Items not in cart: {missing}")
        return selected

    def _idempotency_key(self, request: tuple) -> str:
        if self._key is None or self._key_request != request:
            self._key = str(uuid.uuid4())
            self._key_request = request
        return self._key

    def begin(self, phone_number: str, selected_item_ids: Iterable[int] | None = None) -> CheckoutReceipt:
        if self.state is CheckoutState.AWAITING_CONFIRMATION:
            logger.info("Checkout already waiting for confirmation, keeping current receipt")
            return self.receipt
        if self.state not in (CheckoutState.IDLE, CheckoutState.SETTLED):
            raise ValidationError("Checkout already in progress")

        selected_item_ids = list(selected_item_ids or [])
        self.receipt = None
        self.result = None
        self.error = None
        self._transition(CheckoutState.VALIDATING)

        try:
            phone = validate_phone(phone_number)
            explicit = bool(selected_item_ids)
            selection = self._selection(selected_item_ids)
            amount = validate_amount(self.cart.total(selection))
        except ValidationError as e:
            self._transition(CheckoutState.IDLE)
            self.error = e
            raise

        payload = {"mpesa_number": phone, "total_amount": float(amount)}
        if explicit:
            payload["selected_items"] = selection

        self._transition(CheckoutState.SUBMITTING)
        key = self._idempotency_key((phone, amount, tuple(sorted(selection))))
        logger.info(f"Initiating STK push of KSh {amount} to {phone}")

        try:
            data = self.cart.api.post("/checkout", payload, idempotency_key=key)
            receipt = _receipt_from(data, phone, amount, selection if explicit else None)
        except MarketError as e:
            self._settle(CheckoutOutcome.FAILURE, e.message, e)
            raise

        self.receipt = receipt
        if self.cancel_token is not None and self.cancel_token.cancelled:
            # the charge exists server-side; the receipt and key stay for reconciliation
            logger.warning(f"Checkout cancelled after STK push {receipt.transaction_id} was sent")
            self._transition(CheckoutState.IDLE)
            check_cancelled(self.cancel_token, "Checkout")

        logger.info(
            f"STK push sent, transaction {self.receipt.transaction_id}; "
            f"payer has {self.receipt.confirmation_window}s to enter the PIN"
        )

        if self.receipt.status is PaymentStatus.FAILED:
            self._settle(CheckoutOutcome.FAILURE, self.receipt.message or "Payment failed")
            self._refresh()
        else:
            self._transition(CheckoutState.AWAITING_CONFIRMATION)
        return self.receipt

    def _fetch_transaction(self, transaction_id: str) -> PaymentTransaction:
        tx = self.payments.transaction(transaction_id)
        check_cancelled(self.cancel_token, "Payment status check")
        logger.info(f"Transaction {transaction_id} status: {tx.status.value}")
        return tx

    def await_confirmation(self) -> CheckoutResult:
        if self.state is CheckoutState.SETTLED:
            return self.result
        if self.state is not CheckoutState.AWAITING_CONFIRMATION:
            raise ValidationError("No payment is waiting for confirmation")

        transaction_id = self.receipt.transaction_id
        retrying = status_poll_retry(
            attempts=self.poll_attempts,
            initial_delay=self.poll_initial_delay,
            max_delay=self.poll_max_delay,
            is_pending=lambda tx: not tx.status.terminal,
        )

        try:
            tx = retrying(self._fetch_transaction, transaction_id)
        except RetryError:
            timeout = CheckoutTimeout(
                "We have not received payment confirmation yet. The payment may still "
                "complete; check your orders before paying again.",
                transaction_id=transaction_id,
            )
            logger.warning(f"Transaction {transaction_id} still unsettled after {self.poll_attempts} checks")
            self._settle(CheckoutOutcome.TIMEOUT, timeout.message, timeout)
            self._refresh()
            return self.result
        except OperationCancelled:
            raise
        except MarketError as e:
            self._settle(CheckoutOutcome.FAILURE, e.message, e)
            self._refresh()
            return self.result

        if tx.status is PaymentStatus.COMPLETED:
            self._settle(CheckoutOutcome.SUCCESS, f"Payment of KSh {tx.amount} received")
        else:
            self._settle(CheckoutOutcome.FAILURE, "Payment was not completed")
        self._refresh()
        return self.result

    def run(self, phone_number: str, selected_item_ids: Iterable[int] | None = None) -> CheckoutResult:
        self.begin(phone_number, selected_item_ids)
        return self.await_confirmation()

    def reset(self) -> None:
        if self.state in (CheckoutState.SUBMITTING, CheckoutState.AWAITING_CONFIRMATION):
            raise ValidationError("Checkout in progress")
        self._transition(CheckoutState.IDLE)
        self.receipt = None
        self.result = None
        self.error = None

    def _refresh(self):
        # server state moved on its own, drop every cached view of it
        if self.orders is not None:
            self.orders.invalidate()
        if self.cancel_token is not None and self.cancel_token.cancelled:
            return
        try:
            self.cart.load(self.cancel_token)
        except MarketError as e:
            logger.warning(f"Cart refresh after checkout failed: {e}")
