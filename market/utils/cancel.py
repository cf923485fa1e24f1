# market/utils/cancel.py
import threading

from market.domain.errors import OperationCancelled


class CancelToken:
    """
    Owned by whatever started a request (a view, a CLI command, a poller).
    Results that come back after cancel() must not be applied to a store.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str) -> None:
        if self._event.is_set():
            raise OperationCancelled(f"{operation} cancelled, result discarded")


def check_cancelled(token: "CancelToken | None", operation: str) -> None:
    if token is not None:
        token.raise_if_cancelled(operation)
