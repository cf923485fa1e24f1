# market/services/payment_service.py
from decimal import Decimal
from typing import List

from market.domain.mpesa import validate_amount, validate_phone
from market.domain.schemas import PaymentTransaction, Role, WithdrawResult
from market.services.api_client import ApiClient
from market.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentService:
    def __init__(self, api: ApiClient):
        self.api = api

    def transaction(self, transaction_id: str) -> PaymentTransaction:
        data = self.api.get(f"/payments/transactions/{transaction_id}")
        return PaymentTransaction.model_validate(data)

    def history(self) -> List[PaymentTransaction]:
        data = self.api.get("/payments/history")
        return [PaymentTransaction.model_validate(row) for row in data or []]

    def process_completed(self) -> dict:
        """Ask the backend to turn completed payments into shipping orders."""
        result = self.api.post("/payments/process-completed") or {}
        logger.info(f"Processed completed payments: {result}")
        return result

    def wallet_balance(self) -> Decimal:
        self.api.session.require_user(Role.VENDOR)
        data = self.api.get("/wallet/balance")
        return Decimal(str(data["balance"]))

    def withdraw(self, amount, mpesa_number: str) -> WithdrawResult:
        self.api.session.require_user(Role.VENDOR)
        phone = validate_phone(mpesa_number)
        value = validate_amount(amount)

        logger.info(f"Withdrawing KSh {value} to {phone}")
        data = self.api.post("/wallet/withdraw", {"amount": float(value), "mpesa_number": phone})
        return WithdrawResult.model_validate(data)
