# market/main.py
from typing import Any

from market.repos.session_repo import SessionRepo
from market.services.admin_service import AdminService
from market.services.api_client import ApiClient
from market.services.auth_service import AuthService
from market.services.cart_service import CartService
from market.services.catalog_service import CatalogService
from market.services.checkout_service import CheckoutFlow
from market.services.follow_service import FollowService
from market.services.message_service import MessageService
from market.services.notification_service import NotificationService
from market.services.order_service import OrderService
from market.services.payment_service import PaymentService
from market.services.report_service import ReportService
from market.services.review_service import ReviewService
from market.services.session import AppSession
from market.utils.cancel import CancelToken
from market.utils.settings import SESSION_FILE
from market.utils.logging import get_logger

logger = get_logger(__name__)


class Market:
    """Every service wired to one session and one HTTP client."""

    def __init__(self, session: AppSession, api: ApiClient):
        self.session = session
        self.api = api

        self.auth = AuthService(api)
        self.catalog = CatalogService(api)
        self.cart = CartService(api)
        self.orders = OrderService(api)
        self.payments = PaymentService(api)
        self.reviews = ReviewService(api)
        self.messages = MessageService(api)
        self.follows = FollowService(api)
        self.reports = ReportService(api)
        self.admin = AdminService(api)
        self.notifications = NotificationService()

        session.on_change(self._on_session_change)

    def _on_session_change(self, session: AppSession):
        if not session.authenticated:
            logger.info("Session ended, dropping cached cart and orders")
            self.cart.clear_local()
            self.orders.invalidate()

    def checkout(self, cancel_token: CancelToken | None = None, **poll) -> CheckoutFlow:
        return CheckoutFlow(
            self.cart,
            self.payments,
            self.orders,
            cancel_token=cancel_token,
            **poll,
        )


def create_market(
    base_url: str | None = None,
    session_file: str | None = SESSION_FILE,
    http: Any = None,
) -> Market:
    repo = SessionRepo(session_file) if session_file else None
    session = AppSession(repo)
    api = ApiClient(session, base_url=base_url, http=http)
    return Market(session, api)
