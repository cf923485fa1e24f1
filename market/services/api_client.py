# market/services/api_client.py
from typing import Any, Dict

import requests
from requests import RequestException

from market.domain.errors import AuthError, NetworkError, ServerRejection
from market.services.session import AppSession
from market.utils.settings import API_BASE_URL, HTTP_TIMEOUT
from market.utils.logging import get_logger

logger = get_logger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, str) and body:
        return body
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, list) and value:
                first = value[0]
                return first.get("msg", str(first)) if isinstance(first, dict) else str(first)

    text = getattr(resp, "text", "") or ""
    return text.strip() or f"Request failed with status {resp.status_code}"


class ApiClient:
    """
    JSON over HTTP to the market backend with the session's bearer token.
    Never retries on its own: a failed user action is re-triggered by the user.
    """

    def __init__(
        self,
        session: AppSession,
        base_url: str | None = None,
        timeout: float | None = None,
        http: Any = None,
    ):
        self.session = session
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.timeout = timeout or HTTP_TIMEOUT
        # anything with a requests-style request(); tests pass FastAPI's TestClient
        self.http = http or requests.Session()

    def _headers(self, idempotency_key: str | None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        if idempotency_key:
            headers[IDEMPOTENCY_HEADER] = idempotency_key
        return headers

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Dict[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.info(f"ApiClient {method} {url}")

        try:
            resp = self.http.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(idempotency_key),
                timeout=self.timeout,
            )
        except RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise NetworkError(
                "Unable to connect to the market service. "
                "Please check your internet connection and try again."
            ) from e

        if resp.status_code == 401:
            message = _error_message(resp)
            logger.warning(f"{method} {url} unauthorized: {message}")
            self.session.clear()
            raise AuthError(message)

        if not 200 <= resp.status_code < 300:
            message = _error_message(resp)
            logger.warning(f"{method} {url} rejected ({resp.status_code}): {message}")
            raise ServerRejection(message, resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            logger.error(f"{method} {url} returned a non-JSON body")
            raise ServerRejection("Unexpected response from the market service", resp.status_code)

    def get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, idempotency_key: str | None = None) -> Any:
        return self.request("POST", path, json=json, idempotency_key=idempotency_key)

    def patch(self, path: str, json: Any = None) -> Any:
        return self.request("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
