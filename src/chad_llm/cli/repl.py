"""
Read-eval-print loop for chatting with the model.

Interactive mode reads lines with the LineEditor, runs slash commands and
streams replies through the ResponseRenderer. When stdin is not a terminal
the whole input is sent as a single message instead.
"""

import logging
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape

from ..core.application import Application
from ..core.client.errors import ChadLlmError, create_user_friendly_message
from ..core.client.streaming import StreamEvent
from ..services.history import render_entry
from ..ui.renderer import ResponseRenderer
from .commands import (
    SUCCESS_MESSAGE,
    CommandContext,
    CommandError,
    CommandOutcome,
    CommandRegistry,
    create_default_registry,
    is_command,
    parse_command,
)
from .line_editor import CommandCompleter, LineEditor

logger = logging.getLogger(__name__)


class ChatRepl:
    """Drives a chat session on the terminal."""

    def __init__(
        self,
        app: Application,
        console: Console,
        registry: Optional[CommandRegistry] = None,
        line_editor: Optional[LineEditor] = None,
        error_console: Optional[Console] = None,
    ):
        self.app = app
        self.console = console
        self.error_console = error_console or console
        self.registry = registry or create_default_registry()
        self._line_editor = line_editor

    @property
    def line_editor(self) -> LineEditor:
        if self._line_editor is None:
            self._line_editor = LineEditor(
                history_file=self.app.settings.input_history_file,
                completer=CommandCompleter(self.registry),
            )
        return self._line_editor

    def command_context(self) -> CommandContext:
        return CommandContext(app=self.app, console=self.console, ask=self.line_editor.ask)

    async def send(self, text: str) -> Optional[str]:
        """Send ``text`` and render the streamed reply.

        Returns:
            The reply text, or None if the request failed before any content
            arrived
        """
        renderer = ResponseRenderer(self.console, self.app.code_blocks, raw=self.app.raw)
        session = self.app.chat_session()
        interrupted = None

        try:
            async for event in session.stream_events(text):
                if event.type == StreamEvent.CONTENT:
                    renderer.feed(event.value)
                elif event.type == StreamEvent.ERROR:
                    interrupted = event.value.message
                elif event.type == StreamEvent.FINISHED:
                    logger.debug(f"Reply finished: {event.value}")
        except ChadLlmError as e:
            logger.debug(f"Request failed: {e}")
            self.error_console.print(f"[red]Error:[/red] {escape(create_user_friendly_message(e))}")
            return None

        reply = renderer.finish()
        if renderer.is_terminal and not reply.endswith("\n"):
            self.console.print()
        if interrupted:
            self.error_console.print(f"[red]Reply interrupted:[/red] {escape(interrupted)}")
        return reply

    async def handle_command(self, line: str) -> CommandOutcome:
        """Run a slash command, reporting failures instead of raising them."""
        name, args = parse_command(line)
        try:
            outcome = await self.registry.execute(name, args, self.command_context())
        except CommandError as e:
            self.console.print(f"[red]Failed to execute command.[/red] Reason: {escape(str(e))}")
            return CommandOutcome()

        if outcome.submit is None and not outcome.exit:
            self.console.print(f"[dim]{SUCCESS_MESSAGE}[/dim]")
        return outcome

    def replay_history(self) -> None:
        history = self.app.session_history
        try:
            entries = history.load_history(limit=self.app.settings.max_history_length)
        except OSError as e:
            logger.warning(f"Failed to load session history: {e}")
            self.console.print(f"[yellow]Warning:[/yellow] could not read session history: {escape(str(e))}")
            return

        for entry in entries:
            style = "green" if entry.is_user else "dim"
            self.console.print(render_entry(entry), style=style, markup=False, highlight=False)
        if entries:
            self.console.rule(style="dim")

    def _record(self, text: str, is_reply: bool = False) -> None:
        history = self.app.session_history
        try:
            if is_reply:
                history.save_response(text)
            else:
                history.save_entry(text)
        except OSError as e:
            logger.warning(f"Failed to save history entry: {e}")
            self.console.print(f"[yellow]Warning:[/yellow] could not save session history: {escape(str(e))}")

    def _print_banner(self) -> None:
        app = self.app
        self.console.print("[bold green]chad-llm[/bold green] - Interactive Chat")
        self.console.print(f"[dim]Model: {escape(app.model)}[/dim]")
        self.console.print(f"[dim]System prompt: {escape(app.active_system_prompt or 'none')}[/dim]")
        self.console.print("[dim]Type /help for commands, /exit or Ctrl-D to quit[/dim]\n")

    async def run_interactive(self) -> None:
        self.replay_history()
        self._print_banner()

        while True:
            try:
                line = await self.line_editor.read_line()
            except EOFError:
                break
            if line is None or not line.strip():
                continue

            self._record(line)
            text = line
            if is_command(line):
                outcome = await self.handle_command(line)
                if outcome.exit:
                    break
                if outcome.submit is None:
                    continue
                text = outcome.submit

            reply = await self.send(text)
            if reply:
                self._record(reply, is_reply=True)

        self.console.print("[dim]Goodbye![/dim]")

    async def run_piped(self, stream: TextIO) -> int:
        """Send everything read from ``stream`` as one message.

        Returns:
            Process exit code
        """
        text = stream.read()
        if not text.strip():
            self.error_console.print("[red]Error:[/red] no input on stdin")
            return 1

        reply = await self.send(text)
        return 0 if reply is not None else 1
