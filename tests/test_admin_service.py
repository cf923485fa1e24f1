import pytest

from market.domain.errors import AuthError, ValidationError
from market.domain.schemas import Role
from market.services.admin_service import AdminService

from conftest import BASE_URL, FakeResponse

USERS = [
    {"id": 1, "username": "root", "role": "Admin", "verified": True},
    {"id": 2, "username": "shamba_fresh", "role": "Vendor", "verified": True},
    {"id": 3, "username": "new_farm", "role": "Vendor", "verified": False},
    {"id": 4, "username": "wanjiku", "role": "Customer"},
]


def _admin(fake_api, *responses):
    api, http = fake_api(*responses, role=Role.ADMIN, user_id=1)
    return AdminService(api), http


def test_pending_vendors(fake_api):
    admin, http = _admin(fake_api, FakeResponse(200, USERS))

    assert [u.username for u in admin.pending_vendors()] == ["new_farm"]
    assert http.calls[0]["url"] == f"{BASE_URL}/admin/users"


def test_account_management_calls(fake_api):
    admin, http = _admin(fake_api)

    admin.update_role(4, "Vendor")
    admin.set_verified(3, True)
    admin.set_banned(4, True)
    admin.delete_user(4)

    assert [(c["method"], c["url"][len(BASE_URL):], c["json"]) for c in http.calls] == [
        ("PATCH", "/admin/users/4", {"role": "Vendor"}),
        ("PATCH", "/admin/users/3/verify", {"verified": True}),
        ("PATCH", "/admin/users/4/ban", {"banned": True}),
        ("DELETE", "/admin/users/4", None),
    ]


def test_admin_cannot_ban_or_delete_themselves(fake_api):
    admin, http = _admin(fake_api)

    with pytest.raises(ValidationError):
        admin.set_banned(1, True)
    with pytest.raises(ValidationError):
        admin.delete_user(1)
    assert http.calls == []


def test_unknown_role_is_rejected(fake_api):
    admin, _ = _admin(fake_api)

    with pytest.raises(ValidationError):
        admin.update_role(4, "Farmer")


def test_reset_password_returns_temporary_password(fake_api):
    admin, _ = _admin(fake_api, FakeResponse(200, {"temporary_password": "x7Kp2q"}))

    assert admin.reset_password(4) == {"temporary_password": "x7Kp2q"}


def test_vendor_reports_filter_and_update(fake_api):
    reports = [
        {"id": 1, "customer_id": 4, "vendor_id": 2, "report_type": "non_delivery", "status": "pending"},
        {"id": 2, "customer_id": 4, "vendor_id": 3, "report_type": "other", "status": "resolved"},
    ]
    admin, http = _admin(fake_api, FakeResponse(200, reports))

    assert [r.id for r in admin.vendor_reports(status="pending")] == [1]

    admin.update_report_status(1, "investigating", "  Called the vendor  ")
    assert http.calls[-1]["json"] == {"status": "investigating", "admin_notes": "Called the vendor"}

    with pytest.raises(ValidationError):
        admin.update_report_status(1, "closed")


def test_carts_are_parsed(fake_api):
    rows = [
        {
            "id": 9,
            "product_id": 5,
            "quantity": 2,
            "product": {"id": 5, "name": "Mango", "price": 30, "quantity": 8, "vendor_id": 2},
        }
    ]
    admin, _ = _admin(fake_api, FakeResponse(200, rows))

    carts = admin.carts()
    assert carts[0].product.quantity_available == 8


def test_non_admins_are_refused(fake_api):
    api, http = fake_api(role=Role.VENDOR)

    with pytest.raises(AuthError):
        AdminService(api).users()
    assert http.calls == []
