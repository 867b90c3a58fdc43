"""
Conversation context sent with every request.

The whole message list is replayed to the API on each turn, so the
context is the model's only memory of the session.
"""

import logging
from typing import List

from .client.models import Message, MessageRole

logger = logging.getLogger(__name__)


class Conversation:
    """Ordered list of messages, with an optional system prompt at index 0."""

    def __init__(self, system_prompt: str = ""):
        self._messages: List[Message] = []
        if system_prompt:
            self.set_system_prompt(system_prompt)

    @property
    def messages(self) -> List[Message]:
        """A copy of the messages, safe to hand to the client."""
        return list(self._messages)

    @property
    def system_prompt(self) -> str:
        if self._messages and self._messages[0].role == MessageRole.SYSTEM:
            return self._messages[0].content
        return ""

    @property
    def turns(self) -> int:
        """Number of user messages in the context."""
        return sum(1 for message in self._messages if message.role == MessageRole.USER)

    def __len__(self) -> int:
        return len(self._messages)

    def set_system_prompt(self, content: str) -> None:
        """Replace the system prompt. An empty string removes it."""
        if self._messages and self._messages[0].role == MessageRole.SYSTEM:
            self._messages.pop(0)
        if content:
            self._messages.insert(0, Message.system(content))

    def add_user(self, text: str) -> Message:
        message = Message.user(text)
        self._messages.append(message)
        return message

    def add_assistant(self, text: str) -> bool:
        """Append a reply. Empty replies are dropped; returns whether it was added."""
        if not text:
            return False
        self._messages.append(Message.assistant(text))
        return True

    def discard_last_user(self) -> bool:
        """Remove a trailing user message whose request never got a reply."""
        if self._messages and self._messages[-1].role == MessageRole.USER:
            self._messages.pop()
            return True
        return False

    def clear(self, keep_system: bool = True) -> None:
        """Forget the exchanged messages."""
        system_prompt = self.system_prompt if keep_system else ""
        self._messages.clear()
        if system_prompt:
            self._messages.append(Message.system(system_prompt))
        logger.debug("Conversation context cleared")
