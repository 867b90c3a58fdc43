"""
Line editing for the interactive prompt.

Wraps a prompt_toolkit session with persistent input history, slash command
completion and a green prompt showing who is typing.
"""

import getpass
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import FileHistory, History, InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings

if TYPE_CHECKING:
    from .commands import CommandRegistry

logger = logging.getLogger(__name__)

PROMPT_SUFFIX = " > "


def get_user_display_name() -> str:
    """Real name from the passwd entry, falling back to the login name."""
    try:
        import pwd

        gecos = pwd.getpwuid(os.getuid()).pw_gecos
        real_name = gecos.split(",")[0].strip()
        if real_name:
            return real_name
    except (ImportError, KeyError, AttributeError):
        logger.debug("No passwd entry available for the current user")

    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "you"


class CommandCompleter(Completer):
    """Complete ``/command`` names at the start of the line."""

    def __init__(self, registry: "CommandRegistry"):
        self.registry = registry

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        text = document.text_before_cursor
        if not text.startswith("/") or " " in text:
            return
        for name in self.registry.complete(text[1:]):
            command = self.registry.get(name)
            yield Completion(
                "/" + name,
                start_position=-len(text),
                display_meta=command.help if command else None,
            )


def _key_bindings() -> KeyBindings:
    kb = KeyBindings()

    @kb.add("escape", "enter")
    def _newline(event) -> None:
        event.current_buffer.insert_text("\n")

    return kb


class LineEditor:
    """Reads user input lines.

    Ctrl-C abandons the current line, Ctrl-D ends the session and Esc-Enter
    inserts a newline. Ctrl-L and Ctrl-W keep their usual emacs meaning.
    """

    def __init__(
        self,
        history_file: Optional[Path] = None,
        completer: Optional[Completer] = None,
        user_name: Optional[str] = None,
    ):
        history: History
        if history_file is not None:
            Path(history_file).parent.mkdir(parents=True, exist_ok=True)
            history = FileHistory(str(history_file))
        else:
            history = InMemoryHistory()

        self.user_name = user_name or get_user_display_name()
        self.session: PromptSession = PromptSession(
            history=history,
            completer=completer,
            complete_while_typing=False,
            key_bindings=_key_bindings(),
        )

    @property
    def message(self) -> FormattedText:
        return FormattedText([("ansigreen bold", self.user_name), ("", PROMPT_SUFFIX)])

    async def read_line(self) -> Optional[str]:
        """Read one line of input.

        Returns:
            The entered text, or None if the line was abandoned with Ctrl-C

        Raises:
            EOFError: on Ctrl-D
        """
        try:
            return await self.session.prompt_async(self.message)
        except KeyboardInterrupt:
            return None

    async def ask(self, question: str) -> Optional[str]:
        """Ask a one-off question outside the main input history."""
        session: PromptSession = PromptSession(history=InMemoryHistory())
        try:
            return await session.prompt_async(FormattedText([("bold", question)]))
        except (KeyboardInterrupt, EOFError):
            return None
