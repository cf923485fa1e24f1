# market/services/auth_service.py
from market.domain.errors import ValidationError
from market.domain.schemas import LoginResponse, Role, User
from market.services.api_client import ApiClient
from market.utils.logging import get_logger

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


def _require(value: str, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value


def _check_password(password: str):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _check_email(email: str) -> str:
    email = _require(email, "Email")
    if "@" not in email:
        raise ValidationError("Please enter a valid email address")
    return email


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    def login(self, username: str, password: str) -> User:
        username = _require(username, "Username")
        if not password:
            raise ValidationError("Password is required")

        data = self.api.post("/login", {"username": username, "password": password})
        resp = LoginResponse.model_validate(data)
        self.api.session.authenticate(resp.token, resp.user)
        return resp.user

    def signup(
        self,
        username: str,
        email: str,
        password: str,
        role: Role = Role.CUSTOMER,
        location: str | None = None,
    ) -> User:
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(f"Unknown role: {role}")
        if role is Role.ADMIN:
            raise ValidationError("Admin accounts cannot be created by signup")
        _check_password(password)

        payload = {
            "username": _require(username, "Username"),
            "email": _check_email(email),
            "password": password,
            "role": role.value,
        }
        if location:
            payload["location"] = location.strip()

        data = self.api.post("/signup", payload)
        if isinstance(data, dict) and "token" in data:
            resp = LoginResponse.model_validate(data)
            self.api.session.authenticate(resp.token, resp.user)
            return resp.user

        user = User.model_validate(data)
        logger.info(f"Signed up {user.username} as {user.role.value}")
        return user

    def request_password_reset(self, email: str) -> str:
        data = self.api.post("/auth/password-reset", {"email": _check_email(email)})
        return (data or {}).get("message", "If the account exists a reset code was sent")

    def verify_password_reset(self, email: str, code: str, new_password: str) -> str:
        _check_password(new_password)
        data = self.api.post(
            "/auth/password-reset/verify",
            {
                "email": _check_email(email),
                "code": _require(code, "Reset code"),
                "new_password": new_password,
            },
        )
        return (data or {}).get("message", "Password updated")

    def update_profile(self, username: str | None = None, email: str | None = None) -> User:
        current = self.api.session.require_user()
        payload = {}
        if username is not None:
            payload["username"] = _require(username, "Username")
        if email is not None:
            payload["email"] = _check_email(email)
        if not payload:
            raise ValidationError("Nothing to update")

        data = self.api.patch("/profile", payload)
        data = data if isinstance(data, dict) else {}
        if isinstance(data.get("user"), dict):
            user = User.model_validate(data["user"])
        else:
            # older servers only echo the new username
            changes = dict(payload)
            if data.get("new_username"):
                changes["username"] = data["new_username"]
            user = current.model_copy(update=changes)

        self.api.session.update_user(user)
        logger.info(f"Profile of user {user.id} updated ({', '.join(payload)})")
        return user

    def logout(self) -> None:
        self.api.session.clear()
