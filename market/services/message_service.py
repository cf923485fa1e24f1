# market/services/message_service.py
from typing import Callable, List

from market.domain.errors import MarketError, ValidationError
from market.domain.schemas import Conversation, Message, User
from market.services.api_client import ApiClient
from market.utils.poller import IntervalPoller
from market.utils.settings import CHAT_POLL_INTERVAL
from market.utils.logging import get_logger

logger = get_logger(__name__)


class MessageService:
    def __init__(self, api: ApiClient):
        self.api = api

    def conversations(self) -> List[Conversation]:
        data = self.api.get("/messages")
        return [Conversation.model_validate(row) for row in data or []]

    def users(self) -> List[User]:
        """People the current user can start a conversation with."""
        data = self.api.get("/users")
        return [User.model_validate(row) for row in data or []]

    def thread(self, other_user_id: int, mark_read: bool = True) -> List[Message]:
        data = self.api.get(f"/messages/{other_user_id}")
        messages = [Message.model_validate(row) for row in data or []]
        if mark_read and any(not m.is_read and m.sender_id == other_user_id for m in messages):
            self.api.patch(f"/messages/{other_user_id}/read")
        return messages

    def send(self, receiver_id: int, content: str) -> Message:
        text = (content or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty")
        data = self.api.post("/messages", {"receiver_id": receiver_id, "content": text})
        logger.info(f"Message sent to user {receiver_id}")
        return Message.model_validate(data)

    def unread_count(self) -> int:
        return sum(c.unread_count for c in self.conversations())

    def conversation_poller(
        self,
        on_update: Callable[[List[Conversation]], None],
        on_error: Callable[[MarketError], None] | None = None,
        interval: float = CHAT_POLL_INTERVAL,
    ) -> IntervalPoller:
        """Refreshes the conversation list until stop() is called."""
        return IntervalPoller(
            fetch=self.conversations,
            on_result=on_update,
            on_error=on_error,
            interval=interval,
            name="conversations",
        )

    def thread_poller(
        self,
        other_user_id: int,
        on_update: Callable[[List[Message]], None],
        on_error: Callable[[MarketError], None] | None = None,
        interval: float = CHAT_POLL_INTERVAL,
    ) -> IntervalPoller:
        return IntervalPoller(
            fetch=lambda: self.thread(other_user_id),
            on_result=on_update,
            on_error=on_error,
            interval=interval,
            name=f"chat-{other_user_id}",
        )
