import json

import pytest

from market.domain.errors import AuthError, ServerRejection, ValidationError
from market.domain.schemas import Role, User
from market.main import create_market
from market.repos.session_repo import SessionRepo
from market.services.auth_service import AuthService
from market.services.session import AppSession, SessionState

from conftest import BASE_URL, PASSWORD, FakeResponse

CUSTOMER = User(id=7, username="wanjiku", role=Role.CUSTOMER, location="Nairobi")


def test_new_session_is_anonymous():
    session = AppSession()

    assert session.state is SessionState.ANONYMOUS
    with pytest.raises(AuthError):
        session.require_user()


def test_session_survives_restart(tmp_path):
    path = str(tmp_path / "session.json")
    session = AppSession(SessionRepo(path))
    session.authenticate("tok-1", CUSTOMER)
    session.set_location_preference(True, "Nairobi")

    restored = AppSession(SessionRepo(path))

    assert restored.authenticated
    assert restored.token == "tok-1"
    assert restored.user == CUSTOMER
    assert restored.location_based_shopping
    assert restored.location == "Nairobi"


def test_logout_keeps_location_preference(tmp_path):
    path = tmp_path / "session.json"
    session = AppSession(SessionRepo(str(path)))
    session.authenticate("tok-1", CUSTOMER)
    session.set_location_preference(True, "Kisumu")

    session.clear()

    stored = json.loads(path.read_text())
    assert "token" not in stored and "user" not in stored
    assert stored["locationBasedShopping"] is True
    assert stored["location"] == "Kisumu"


def test_unreadable_session_file_starts_anonymous(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")

    assert AppSession(SessionRepo(str(path))).state is SessionState.ANONYMOUS


def test_require_user_checks_role():
    session = AppSession()
    session.authenticate("tok", CUSTOMER)

    assert session.require_user(Role.CUSTOMER) == CUSTOMER
    with pytest.raises(AuthError, match="Vendor"):
        session.require_user(Role.VENDOR)


def test_listeners_see_login_and_logout():
    session = AppSession()
    seen = []
    session.on_change(lambda s: seen.append(s.state))

    session.authenticate("tok", CUSTOMER)
    session.clear()
    session.clear()

    assert seen == [SessionState.AUTHENTICATED, SessionState.ANONYMOUS]


def test_login_authenticates_session(login, customer_id):
    market = login("wanjiku")

    assert market.session.authenticated
    assert market.session.user.id == customer_id
    assert market.session.user.role is Role.CUSTOMER


def test_bad_credentials_raise_auth_error(backend, customer_id):
    market = create_market(base_url=BASE_URL, session_file=None, http=backend)

    with pytest.raises(AuthError, match="Invalid username or password"):
        market.auth.login("wanjiku", "wrong-password")
    assert not market.session.authenticated


def test_rejected_token_ends_session_and_drops_caches(market, products):
    product = market.catalog.get_product(products["A"])
    market.cart.add(product, 1)
    market.session.token = "expired"

    with pytest.raises(AuthError):
        market.cart.load()

    assert market.session.state is SessionState.ANONYMOUS
    assert market.cart.items == []
    assert not market.orders.cached


def test_signup_then_login(backend):
    market = create_market(base_url=BASE_URL, session_file=None, http=backend)

    user = market.auth.signup("kamau", "kamau@example.com", PASSWORD, Role.VENDOR, location=" Eldoret ")
    assert user.role is Role.VENDOR
    assert user.location == "Eldoret"
    assert not market.session.authenticated

    market.auth.login("kamau", PASSWORD)
    assert market.session.user.username == "kamau"

    market.auth.logout()
    assert not market.session.authenticated


@pytest.mark.parametrize(
    "username, email, password, role",
    [
        ("", "a@example.com", PASSWORD, Role.CUSTOMER),
        ("amina", "not-an-email", PASSWORD, Role.CUSTOMER),
        ("amina", "a@example.com", "123", Role.CUSTOMER),
        ("amina", "a@example.com", PASSWORD, Role.ADMIN),
        ("amina", "a@example.com", PASSWORD, "Admin"),
        ("amina", "a@example.com", PASSWORD, "Farmer"),
    ],
)
def test_signup_validation(fake_api, username, email, password, role):
    api, http = fake_api()

    with pytest.raises(ValidationError):
        AuthService(api).signup(username, email, password, role)
    assert http.calls == []


def test_update_profile_refreshes_session_user(tmp_path, backend, customer_id):
    path = str(tmp_path / "session.json")
    market = create_market(base_url=BASE_URL, session_file=path, http=backend)
    market.auth.login("wanjiku", PASSWORD)
    seen = []
    market.session.on_change(lambda s: seen.append(s.user.username))

    user = market.auth.update_profile(username=" wanjiku_k ", email="wk@example.com")

    assert user.id == customer_id
    assert user.username == "wanjiku_k"
    assert user.email == "wk@example.com"
    assert market.session.user == user
    assert seen == ["wanjiku_k"]
    assert AppSession(SessionRepo(path)).user.username == "wanjiku_k"

    market.auth.logout()
    market.auth.login("wanjiku_k", PASSWORD)
    assert market.session.user.location == "Nairobi"


def test_update_profile_rejects_taken_username(market, vendor_id):
    with pytest.raises(ServerRejection, match="Username or email already exists") as exc:
        market.auth.update_profile(username="shamba_fresh")

    assert exc.value.status_code == 409
    assert market.session.user.username == "wanjiku"


@pytest.mark.parametrize(
    "changes",
    [{}, {"username": "   "}, {"email": "not-an-email"}],
)
def test_update_profile_validates_before_sending(fake_api, changes):
    api, http = fake_api()

    with pytest.raises(ValidationError):
        AuthService(api).update_profile(**changes)
    assert http.calls == []


def test_update_profile_needs_login():
    anonymous = create_market(base_url=BASE_URL, session_file=None)

    with pytest.raises(AuthError):
        anonymous.auth.update_profile(username="someone")


def test_update_profile_accepts_username_only_reply(fake_api):
    api, http = fake_api(
        FakeResponse(200, {"message": "Profile updated successfully", "new_username": "tester2"})
    )

    user = AuthService(api).update_profile(username="tester2")

    assert http.calls[0]["method"] == "PATCH"
    assert http.calls[0]["json"] == {"username": "tester2"}
    assert user.username == "tester2"
    assert api.session.user.username == "tester2"
