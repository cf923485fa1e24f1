# market/domain/errors.py


class MarketError(Exception):
    """Base for everything the client surfaces to a user."""

    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketError):
    """Bad input, fixed by the user before trying again."""


class StockError(ValidationError):
    """Requested quantity exceeds what the product has available."""

    def __init__(self, message: str, requested: int, available: int):
        super().__init__(message)
        self.requested = requested
        self.available = available


class AuthError(MarketError):
    """Missing or rejected credentials, the user has to log in again."""


class NetworkError(MarketError):
    retryable = True


class ServerRejection(MarketError):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class CheckoutTimeout(MarketError):
    """
    Gave up waiting for the payment to settle. The charge may still go
    through on the server, so this is not a failure.
    """

    def __init__(self, message: str, transaction_id: str):
        super().__init__(message)
        self.transaction_id = transaction_id


class OperationCancelled(MarketError):
    pass
