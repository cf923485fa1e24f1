import pytest
import requests

from market.domain.errors import AuthError, NetworkError, ServerRejection
from market.services.api_client import IDEMPOTENCY_HEADER
from market.services.auth_service import AuthService

from conftest import BASE_URL, FakeResponse


def test_sends_bearer_token_and_json(fake_api):
    api, http = fake_api(FakeResponse(200, {"ok": True}))

    assert api.post("/cart", {"product_id": 1, "quantity": 2}) == {"ok": True}

    call = http.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == f"{BASE_URL}/cart"
    assert call["json"] == {"product_id": 1, "quantity": 2}
    assert call["headers"]["Authorization"] == "Bearer tok"
    assert IDEMPOTENCY_HEADER not in call["headers"]


def test_idempotency_key_is_sent_as_header(fake_api):
    api, http = fake_api(FakeResponse(200, {}))

    api.post("/checkout", {}, idempotency_key="abc-123")

    assert http.calls[0]["headers"][IDEMPOTENCY_HEADER] == "abc-123"


def test_empty_body_returns_none(fake_api):
    api, _ = fake_api(FakeResponse(204))

    assert api.delete("/cart/3") is None


def test_connection_failure_becomes_network_error(fake_api):
    api, _ = fake_api(requests.ConnectionError("no route to host"))

    with pytest.raises(NetworkError) as exc:
        api.get("/products")

    assert exc.value.retryable
    assert "internet connection" in exc.value.message


def test_timeout_becomes_network_error(fake_api):
    api, _ = fake_api(requests.Timeout("read timed out"))

    with pytest.raises(NetworkError):
        api.get("/cart")


@pytest.mark.parametrize(
    "response, message",
    [
        (FakeResponse(400, {"message": "Insufficient stock. Available: 3"}), "Insufficient stock. Available: 3"),
        (FakeResponse(400, {"error": "Cart item not found or access denied"}), "Cart item not found or access denied"),
        (FakeResponse(404, {"detail": "Order not found"}), "Order not found"),
        (FakeResponse(422, {"detail": [{"msg": "field required"}]}), "field required"),
        (FakeResponse(400, "Invalid phone number"), "Invalid phone number"),
        (FakeResponse(502, text=" Bad Gateway "), "Bad Gateway"),
        (FakeResponse(500), "Request failed with status 500"),
    ],
)
def test_rejection_message_comes_from_the_server(fake_api, response, message):
    api, _ = fake_api(response)

    with pytest.raises(ServerRejection) as exc:
        api.get("/anything")

    assert exc.value.message == message
    assert exc.value.status_code == response.status_code
    assert not exc.value.retryable


def test_unauthorized_clears_session(fake_api):
    api, _ = fake_api(FakeResponse(401, {"detail": "Token expired"}))

    with pytest.raises(AuthError, match="Token expired"):
        api.get("/cart")

    assert not api.session.authenticated


def test_anonymous_requests_have_no_auth_header(fake_api):
    api, http = fake_api(FakeResponse(200, {"message": "sent"}))
    api.session.clear()

    AuthService(api).request_password_reset("wanjiku@example.com")

    assert "Authorization" not in http.calls[0]["headers"]
    assert http.calls[0]["json"] == {"email": "wanjiku@example.com"}


def test_password_reset_verification(fake_api):
    api, http = fake_api(FakeResponse(200, {"message": "Password updated successfully"}))

    message = AuthService(api).verify_password_reset("wanjiku@example.com", " 123456 ", "newsecret")

    assert message == "Password updated successfully"
    assert http.calls[0]["url"].endswith("/auth/password-reset/verify")
    assert http.calls[0]["json"]["code"] == "123456"
