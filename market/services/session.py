# market/services/session.py
from enum import Enum
from typing import Callable, List

from market.domain.errors import AuthError
from market.domain.schemas import Role, User
from market.repos.session_repo import SessionRepo
from market.utils.logging import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class AppSession:
    """
    Identity of the current user, passed explicitly to every service.
    Lifecycle: anonymous -> authenticated -> anonymous.
    With a repo the token, user and location preference survive restarts.
    """

    def __init__(self, repo: SessionRepo | None = None):
        self.repo = repo
        self.token: str | None = None
        self.user: User | None = None
        self.location_based_shopping = False
        self.location: str | None = None
        self._listeners: List[Callable[["AppSession"], None]] = []

        if repo is not None:
            self._restore(repo.load())

    def _restore(self, data: dict):
        self.location_based_shopping = bool(data.get("locationBasedShopping", False))
        self.location = data.get("location")
        if data.get("token") and data.get("user"):
            self.token = data["token"]
            self.user = User.model_validate(data["user"])
            logger.info(f"Restored session for {self.user.username}")

    def _persist(self):
        if self.repo is None:
            return
        data = {
            "locationBasedShopping": self.location_based_shopping,
            "location": self.location,
        }
        if self.token and self.user:
            data["token"] = self.token
            data["user"] = self.user.model_dump(mode="json")
        self.repo.save(data)

    @property
    def state(self) -> SessionState:
        if self.token and self.user:
            return SessionState.AUTHENTICATED
        return SessionState.ANONYMOUS

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def on_change(self, listener: Callable[["AppSession"], None]) -> None:
        self._listeners.append(listener)

    def _notify(self):
        for listener in self._listeners:
            listener(self)

    def authenticate(self, token: str, user: User) -> None:
        self.token = token
        self.user = user
        self._persist()
        logger.info(f"User {user.username} ({user.role.value}) logged in")
        self._notify()

    def update_user(self, user: User) -> None:
        if not self.authenticated:
            raise AuthError("Please log in first")
        self.user = user
        self._persist()
        self._notify()

    def clear(self) -> None:
        if not self.authenticated:
            return
        logger.info(f"Session for {self.user.username} cleared")
        self.token = None
        self.user = None
        self._persist()
        self._notify()

    def set_location_preference(self, enabled: bool, location: str | None = None) -> None:
        self.location_based_shopping = enabled
        if location is not None:
            self.location = location
        self._persist()

    def require_user(self, role: Role | None = None) -> User:
        if not self.authenticated:
            raise AuthError("Please log in first")
        if role is not None and self.user.role is not role:
            raise AuthError(f"{role.value} privileges required")
        return self.user
