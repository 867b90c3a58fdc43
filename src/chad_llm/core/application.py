"""
Application state for a chad-llm run.

Everything a slash command may need to look at or change lives here: the
conversation, the active model and system prompt, collected code blocks and
output preferences.
"""

import logging
from typing import List, Optional

from ..config.settings import ChadLlmSettings
from ..prompts.system_prompts import DEFAULT_PROMPT_NAME, PromptNotFoundError, SystemPromptStore
from ..services.history import SessionHistory
from .client.openai_client import OpenAIClient, create_openai_client
from .conversation import Conversation
from .session import ChatSession

logger = logging.getLogger(__name__)


class Application:
    """Mutable state shared by the REPL and its commands."""

    def __init__(
        self,
        settings: ChadLlmSettings,
        client: OpenAIClient,
        system_prompts: SystemPromptStore,
        session_history: SessionHistory,
        model: Optional[str] = None,
    ):
        self.settings = settings
        self.client = client
        self.system_prompts = system_prompts
        self.session_history = session_history
        self.conversation = Conversation()
        self.code_blocks: List[str] = []
        self.model = model or settings.model
        self.raw = settings.raw
        self.active_system_prompt = ""
        self._remote_models: Optional[List[str]] = None

        self.select_system_prompt(self._initial_system_prompt())

    @classmethod
    def create(
        cls,
        settings: ChadLlmSettings,
        client: Optional[OpenAIClient] = None,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> "Application":
        """Build the application state from settings, creating the data directory."""
        settings.ensure_directories()
        app = cls(
            settings=settings,
            client=client or create_openai_client(settings),
            system_prompts=SystemPromptStore(settings.system_prompts_file),
            session_history=SessionHistory(settings.session_history_file),
            model=model,
        )
        if system_prompt:
            app.select_system_prompt(system_prompt)
        return app

    def _initial_system_prompt(self) -> str:
        available = self.system_prompts.get_available()
        if DEFAULT_PROMPT_NAME in available:
            return DEFAULT_PROMPT_NAME
        return available[0] if available else ""

    def select_system_prompt(self, name: str) -> None:
        """Activate a stored system prompt and apply it to the conversation.

        Raises:
            PromptNotFoundError: if no prompt is called ``name``
        """
        if not name:
            self.active_system_prompt = ""
            self.conversation.set_system_prompt("")
            return

        text = self.system_prompts.get(name)
        if text is None:
            raise PromptNotFoundError(name)
        self.active_system_prompt = name
        self.conversation.set_system_prompt(text)
        logger.debug(f"Active system prompt: {name}")

    def refresh_system_prompt(self) -> None:
        """Re-apply the active prompt after its text was edited."""
        if self.active_system_prompt in self.system_prompts:
            self.select_system_prompt(self.active_system_prompt)
        else:
            self.select_system_prompt(self._initial_system_prompt())

    def set_model(self, model: str) -> None:
        model = model.strip()
        if not model:
            raise ValueError("Model name must not be empty")
        self.model = model
        logger.info(f"Switched model to {model}")

    async def available_models(self, refresh: bool = False) -> List[str]:
        """Models visible to the API key; cached after the first call."""
        if self._remote_models is None or refresh:
            self._remote_models = await self.client.list_models()
        return list(self._remote_models)

    def chat_session(self) -> ChatSession:
        return ChatSession(self.client, self.conversation, self.model)

    async def aclose(self) -> None:
        await self.client.close()
