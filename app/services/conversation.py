"""
Controller for a single conversation between the viewer and one counterpart.

Mirrors the chat dialog on the dashboards: opening loads the full history
and marks the counterpart's messages read, sending appends then refetches,
closing hands control back to the caller so it can refresh its contact list.
"""

import logging
from typing import Callable, Optional
from uuid import UUID

from app.core.config import settings
from app.core.errors import MessageValidationError, StoreReadError, StoreWriteError
from app.models.message import Message
from app.services.message_store import MessageStore

logger = logging.getLogger(__name__)


class ConversationDialog:
    def __init__(
        self,
        store: MessageStore,
        viewer_id: UUID,
        counterpart_id: UUID,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.viewer_id = viewer_id
        self.counterpart_id = counterpart_id
        self.on_close = on_close
        self.messages: list[Message] = []
        self.is_open = False
        self.last_marked_read = 0

    @property
    def unread_count(self) -> int:
        """Unread messages from the counterpart in the loaded history."""
        return sum(
            1
            for m in self.messages
            if m.sender_id == self.counterpart_id and m.receiver_id == self.viewer_id and not m.read
        )

    def _refresh(self) -> list[Message]:
        try:
            self.messages = self.store.fetch_thread(self.viewer_id, self.counterpart_id)
        except StoreReadError:
            # Read failures show an empty history instead of an error
            self.messages = []
        return self.messages

    def open(self) -> list[Message]:
        """
        Load the thread and mark the counterpart's unread messages as read.

        The mark-read step runs first so the returned history already
        reflects it. Calling open again with no new messages changes nothing.
        """
        self.is_open = True
        try:
            self.last_marked_read = self.store.mark_thread_read(self.viewer_id, self.counterpart_id)
        except StoreWriteError:
            self.last_marked_read = 0
        return self._refresh()

    def send(self, body: str) -> Message:
        """
        Append a message from the viewer and reload the thread.

        Raises MessageValidationError for empty or oversized bodies before
        touching the store, and StoreWriteError if the insert fails (the
        loaded history is left as it was).
        """
        text = (body or "").strip()
        if not text:
            raise MessageValidationError("Message body must not be empty")
        if len(text) > settings.message_max_length:
            raise MessageValidationError(
                f"Message body must be at most {settings.message_max_length} characters"
            )
        message = self.store.append(self.viewer_id, self.counterpart_id, text)
        self._refresh()
        return message

    def close(self) -> None:
        """No store effect; notifies the caller to refresh its contacts."""
        was_open = self.is_open
        self.is_open = False
        if self.on_close is not None:
            self.on_close()
        if was_open:
            logger.debug(
                "Conversation closed viewer_id=%s counterpart_id=%s", self.viewer_id, self.counterpart_id
            )
