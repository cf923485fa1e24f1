# market/utils/poller.py
import threading
from typing import Callable, Any

from market.domain.errors import MarketError
from market.utils.cancel import CancelToken
from market.utils.logging import get_logger

logger = get_logger(__name__)


class IntervalPoller:
    """
    Fixed-interval polling on a single background thread.
    stop() cancels the token, wakes the thread and joins it, so no timer
    outlives its owner and no late result reaches on_result.
    """

    def __init__(
        self,
        fetch: Callable[[], Any],
        on_result: Callable[[Any], None],
        interval: float,
        on_error: Callable[[MarketError], None] | None = None,
        name: str = "poller",
    ):
        self.fetch = fetch
        self.on_result = on_result
        self.on_error = on_error
        self.interval = interval
        self.name = name
        self.token = CancelToken()
        self._wakeup = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> bool:
        """Run one fetch; returns False when the result was discarded."""
        try:
            result = self.fetch()
        except MarketError as e:
            if self.token.cancelled:
                return False
            logger.warning(f"{self.name}: poll failed: {e}")
            if self.on_error:
                self.on_error(e)
            return False

        if self.token.cancelled:
            logger.info(f"{self.name}: poller stopped, dropping late result")
            return False

        self.on_result(result)
        return True

    def _run(self):
        logger.info(f"{self.name}: polling every {self.interval}s")
        while not self.token.cancelled:
            self.tick()
            self._wakeup.wait(self.interval)
        logger.info(f"{self.name}: stopped")

    def start(self) -> None:
        if self.running:
            return
        if self.token.cancelled:
            # restart after stop(); the old token stays cancelled
            self.token = CancelToken()
            self._wakeup = threading.Event()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5) -> None:
        self.token.cancel()
        self._wakeup.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
