"""
Chat session: one user turn in, one streamed reply out.
"""

import logging
import time
from typing import AsyncIterator

from .client.errors import ChadLlmError, classify_error
from .client.openai_client import OpenAIClient
from .client.streaming import (
    ChatStreamEvent,
    create_content_event,
    create_error_event,
    create_finished_event,
)
from .conversation import Conversation

logger = logging.getLogger(__name__)


class ChatSession:
    """Sends user turns with the full conversation context and records replies."""

    def __init__(self, client: OpenAIClient, conversation: Conversation, model: str):
        self.client = client
        self.conversation = conversation
        self.model = model

    async def stream_reply(self, text: str) -> AsyncIterator[str]:
        """
        Stream the reply to ``text``.

        The user message is appended before the request. If the request fails
        before any content arrives it is rolled back and the error re-raised.
        Whatever part of the reply was received is kept in the context, even if
        the stream breaks later.
        """
        self.conversation.add_user(text)
        reply_parts = []
        try:
            async for delta in self.client.stream_chat(self.conversation.messages, self.model):
                reply_parts.append(delta)
                yield delta
        except Exception:
            if not reply_parts:
                self.conversation.discard_last_user()
            raise
        finally:
            self.conversation.add_assistant("".join(reply_parts))

    async def stream_events(self, text: str) -> AsyncIterator[ChatStreamEvent]:
        """
        Stream the reply to ``text`` as events.

        Errors before the first delta propagate. Errors after it are reported as
        an error event so the partial reply can still be shown and kept.
        """
        started = time.monotonic()
        received = 0
        try:
            async for delta in self.stream_reply(text):
                received += len(delta)
                yield create_content_event(delta)
        except Exception as e:
            if not received:
                raise
            error: ChadLlmError = classify_error(e)
            logger.warning(f"Stream interrupted after {received} characters: {error}")
            yield create_error_event(error.message, status=error.status, code=error.code)
            return

        yield create_finished_event({
            "model": self.model,
            "characters": received,
            "duration_seconds": round(time.monotonic() - started, 3),
        })
