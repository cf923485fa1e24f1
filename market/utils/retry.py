# market/utils/retry.py
from typing import Callable, Any

from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from market.domain.errors import NetworkError


def status_poll_retry(
    attempts: int,
    initial_delay: float,
    max_delay: float,
    is_pending: Callable[[Any], bool],
) -> Retrying:
    """
    Poll loop for server-side state that settles asynchronously.
    Retries while the result is still pending or the network drops,
    raises tenacity.RetryError once the attempts are used up.
    """
    return Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=initial_delay, min=initial_delay, max=max_delay),
        retry=retry_if_result(is_pending) | retry_if_exception_type(NetworkError),
    )
