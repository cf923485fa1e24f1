# market/services/admin_service.py
from typing import List

from market.domain.errors import ValidationError
from market.domain.schemas import CartItem, Role, User, VendorReport
from market.services.api_client import ApiClient
from market.utils.logging import get_logger

logger = get_logger(__name__)

REPORT_STATUSES = ("pending", "investigating", "resolved", "dismissed")


class AdminService:
    """Admin console: accounts, vendor verification, bans and vendor reports."""

    def __init__(self, api: ApiClient):
        self.api = api

    def _admin(self):
        self.api.session.require_user(Role.ADMIN)

    def users(self) -> List[User]:
        self._admin()
        return [User.model_validate(row) for row in self.api.get("/admin/users") or []]

    def pending_vendors(self) -> List[User]:
        return [u for u in self.users() if u.role is Role.VENDOR and not u.verified]

    def update_role(self, user_id: int, role: Role | str) -> None:
        self._admin()
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(f"Unknown role: {role}")
        self.api.patch(f"/admin/users/{user_id}", {"role": role.value})
        logger.info(f"User {user_id} role -> {role.value}")

    def set_verified(self, user_id: int, verified: bool) -> None:
        self._admin()
        self.api.patch(f"/admin/users/{user_id}/verify", {"verified": verified})
        logger.info(f"User {user_id} verified={verified}")

    def set_banned(self, user_id: int, banned: bool) -> None:
        self._admin()
        if self.api.session.user.id == user_id:
            raise ValidationError("You cannot ban your own account")
        self.api.patch(f"/admin/users/{user_id}/ban", {"banned": banned})
        logger.info(f"User {user_id} banned={banned}")

    def delete_user(self, user_id: int) -> None:
        self._admin()
        if self.api.session.user.id == user_id:
            raise ValidationError("You cannot delete your own account")
        self.api.delete(f"/admin/users/{user_id}")
        logger.info(f"User {user_id} deleted")

    def reset_password(self, user_id: int) -> dict:
        """The backend generates a temporary password and returns it once."""
        self._admin()
        return self.api.patch(f"/admin/users/{user_id}/reset-password") or {}

    def carts(self) -> List[CartItem]:
        self._admin()
        return [CartItem.model_validate(row) for row in self.api.get("/admin/cart") or []]

    def vendor_reports(self, status: str | None = None) -> List[VendorReport]:
        self._admin()
        reports = [VendorReport.model_validate(r) for r in self.api.get("/admin/reports") or []]
        if status:
            reports = [r for r in reports if r.status == status]
        return reports

    def update_report_status(self, report_id: int, status: str, admin_notes: str | None = None) -> None:
        self._admin()
        if status not in REPORT_STATUSES:
            raise ValidationError(f"Unknown report status: {status}")
        payload = {"status": status}
        if admin_notes:
            payload["admin_notes"] = admin_notes.strip()
        self.api.patch(f"/admin/reports/{report_id}", payload)
        logger.info(f"Report {report_id} -> {status}")
