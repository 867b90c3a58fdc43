"""
Slash commands for the interactive session.

A line starting with ``/`` is looked up in the CommandRegistry instead of
being sent to the model. Commands act on the shared Application state and
may hand a message back to the REPL to submit, as ``/paste`` and
``/editor`` do.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.application import Application
from ..core.client.errors import ChadLlmError, create_user_friendly_message
from ..core.client.models import AVAILABLE_MODELS
from ..prompts.system_prompts import PromptNotFoundError
from ..utils.clipboard import ClipboardError, copy_text, paste_text
from .editor import open_in_editor
from .select import select

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "/"
SUCCESS_MESSAGE = "Command executed successfully!"
PREVIEW_WIDTH = 60

SelectFunc = Callable[..., Awaitable[List[int]]]
AskFunc = Callable[[str], Awaitable[Optional[str]]]
EditFunc = Callable[[str], Optional[str]]


class CommandError(Exception):
    """A command could not be carried out."""


class CommandNotFoundError(CommandError):
    """No command is registered under the given name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown command '{COMMAND_PREFIX}{name}'. Type {COMMAND_PREFIX}help for a list.")
        self.name = name


@dataclass
class CommandOutcome:
    """What the REPL should do after a command ran."""
    submit: Optional[str] = None
    exit: bool = False


async def _no_answer(question: str) -> Optional[str]:
    return None


@dataclass
class CommandContext:
    """Everything a command can reach: application state and UI hooks."""
    app: Application
    console: Console
    ask: AskFunc = _no_answer
    select: SelectFunc = select
    edit: EditFunc = open_in_editor


def is_command(text: str) -> bool:
    """True for ``/name`` lines, with or without arguments."""
    stripped = text.strip()
    return stripped.startswith(COMMAND_PREFIX) and len(stripped) > 1 and not stripped[1].isspace()


def parse_command(text: str) -> Tuple[str, List[str]]:
    """Split ``/name arg1 arg2`` into ``("name", ["arg1", "arg2"])``."""
    parts = text.strip()[len(COMMAND_PREFIX):].split()
    if not parts:
        return "", []
    return parts[0].lower(), parts[1:]


def _preview(text: str, width: int = PREVIEW_WIDTH) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[:width - 3] + "..."


class Command(ABC):
    """Base class for slash commands."""

    name: str = ""
    help: str = ""
    usage: str = ""

    @abstractmethod
    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        """Run the command.

        Raises:
            CommandError: if the command failed; the REPL reports the reason
        """


class ExitCommand(Command):
    name = "exit"
    help = "Leave the session"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        return CommandOutcome(exit=True)


class ClearCommand(Command):
    name = "clear"
    help = "Clear the screen"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        ctx.console.clear()
        return CommandOutcome()


class CopyCommand(Command):
    name = "copy"
    help = "Copy a code block from the replies to the clipboard"
    usage = "[N]"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        blocks = ctx.app.code_blocks
        if not blocks:
            raise CommandError("No code blocks to copy.")

        if args:
            try:
                index = int(args[0]) - 1
            except ValueError as e:
                raise CommandError(f"Not a block number: {args[0]}") from e
            if not 0 <= index < len(blocks):
                raise CommandError(f"Block number must be between 1 and {len(blocks)}.")
        else:
            chosen = await ctx.select("Select code block to copy", blocks, single=True, selected=[len(blocks) - 1])
            if not chosen:
                ctx.console.print("[dim]Nothing selected.[/dim]")
                return CommandOutcome()
            index = chosen[0]

        try:
            copy_text(blocks[index])
        except ClipboardError as e:
            raise CommandError(f"Clipboard unavailable: {e}") from e
        ctx.console.print(f"[green]✓[/green] Code block {index + 1} copied to clipboard")
        return CommandOutcome()


class CopyAllCommand(Command):
    name = "copy_all"
    help = "Copy every code block to the clipboard"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        blocks = ctx.app.code_blocks
        if not blocks:
            raise CommandError("No code blocks to copy.")
        try:
            copy_text("\n\n".join(blocks))
        except ClipboardError as e:
            raise CommandError(f"Clipboard unavailable: {e}") from e
        ctx.console.print(f"[green]✓[/green] Copied {len(blocks)} code blocks to clipboard")
        return CommandOutcome()


class PasteCommand(Command):
    name = "paste"
    help = "Send the clipboard contents, with optional extra details"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        try:
            content = paste_text()
        except ClipboardError as e:
            raise CommandError(f"Clipboard unavailable: {e}") from e
        if not content.strip():
            raise CommandError("The clipboard is empty.")

        ctx.console.print(Panel(Text(content), title="Clipboard", border_style="blue"))
        details = await ctx.ask("Add additional details: ")
        if details is None:
            ctx.console.print("[dim]Aborted.[/dim]")
            return CommandOutcome()

        message = content
        if details.strip():
            message = f"{content}\n\n{details.strip()}"
        return CommandOutcome(submit=message)


class EditorCommand(Command):
    name = "editor"
    help = "Compose a message in $VISUAL or $EDITOR"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        text = ctx.edit(" ".join(args))
        if text is None:
            ctx.console.print("Aborted!")
            return CommandOutcome()
        return CommandOutcome(submit=text)


class ClearHistoryCommand(Command):
    name = "clear_history"
    help = "Delete the saved session history"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        if ctx.app.session_history.clear():
            ctx.console.print("[green]✓[/green] Session history cleared")
        else:
            ctx.console.print("[dim]No session history to clear.[/dim]")
        return CommandOutcome()


class ResetCommand(Command):
    name = "reset"
    help = "Forget the conversation so far, keeping the system prompt"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        ctx.app.conversation.clear(keep_system=True)
        ctx.console.print("[green]✓[/green] Conversation context cleared")
        return CommandOutcome()


class ModelCommand(Command):
    name = "model"
    help = "Show or switch the model"
    usage = "[NAME]"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        app = ctx.app
        if args:
            app.set_model(args[0])
            ctx.console.print(f"Model: [cyan]{escape(app.model)}[/cyan]")
            return CommandOutcome()

        try:
            options = await app.available_models()
        except ChadLlmError as e:
            logger.warning(f"Could not list models, using the built-in list: {e}")
            options = list(AVAILABLE_MODELS)
        if app.model not in options:
            options.insert(0, app.model)

        chosen = await ctx.select("Select model", options, single=True, selected=[options.index(app.model)])
        if chosen:
            app.set_model(options[chosen[0]])
        ctx.console.print(f"Model: [cyan]{escape(app.model)}[/cyan]")
        return CommandOutcome()


class ModelsCommand(Command):
    name = "models"
    help = "List the models available to your API key"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        try:
            models = await ctx.app.available_models(refresh=True)
        except ChadLlmError as e:
            raise CommandError(create_user_friendly_message(e)) from e

        table = Table(title="Available Models", show_header=True, header_style="bold magenta")
        table.add_column("Model", style="cyan")
        table.add_column("Active", style="green")
        for model in models:
            table.add_row(escape(model), "✓" if model == ctx.app.model else "")
        ctx.console.print(table)
        return CommandOutcome()


class SystemCommand(Command):
    name = "system"
    help = "Manage system prompts"
    usage = "[list | use NAME | show [NAME] | edit [NAME] | new NAME | rm NAME]"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        action = args[0].lower() if args else "use"
        name = args[1] if len(args) > 1 else None

        if action == "list":
            self._list(ctx)
        elif action == "use":
            await self._use(ctx, name)
        elif action == "show":
            self._show(ctx, name or ctx.app.active_system_prompt)
        elif action == "edit":
            self._edit(ctx, name or ctx.app.active_system_prompt)
        elif action == "new":
            self._new(ctx, name)
        elif action in ("rm", "remove", "delete"):
            self._remove(ctx, name)
        else:
            raise CommandError(f"Usage: /{self.name} {self.usage}")
        return CommandOutcome()

    def _list(self, ctx: CommandContext) -> None:
        store = ctx.app.system_prompts
        table = Table(title="System Prompts", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Prompt", style="white")
        table.add_column("Active", style="green")
        for prompt_name in store.get_available():
            active = "✓" if prompt_name == ctx.app.active_system_prompt else ""
            table.add_row(escape(prompt_name), escape(_preview(store.get(prompt_name) or "")), active)
        ctx.console.print(table)

    async def _use(self, ctx: CommandContext, name: Optional[str]) -> None:
        app = ctx.app
        if name is None:
            names = app.system_prompts.get_available()
            if not names:
                raise CommandError("No system prompts defined. Create one with /system new NAME.")
            selected = [names.index(app.active_system_prompt)] if app.active_system_prompt in names else []
            chosen = await ctx.select("Select system prompt", names, single=True, selected=selected)
            if not chosen:
                ctx.console.print("[dim]Nothing selected.[/dim]")
                return
            name = names[chosen[0]]

        try:
            app.select_system_prompt(name)
        except PromptNotFoundError as e:
            raise CommandError(str(e)) from e
        ctx.console.print(f"System prompt: [cyan]{escape(name)}[/cyan]")

    def _show(self, ctx: CommandContext, name: str) -> None:
        if not name:
            raise CommandError("No system prompt is active.")
        text = ctx.app.system_prompts.get(name)
        if text is None:
            raise CommandError(str(PromptNotFoundError(name)))
        ctx.console.print(Panel(Text(text), title=escape(name), border_style="blue"))

    def _edit(self, ctx: CommandContext, name: str) -> None:
        app = ctx.app
        if not name:
            raise CommandError("No system prompt is active.")
        current = app.system_prompts.get(name)
        if current is None:
            raise CommandError(str(PromptNotFoundError(name)))

        text = ctx.edit(current)
        if text is None or text == current:
            ctx.console.print("[dim]System prompt unchanged.[/dim]")
            return
        app.system_prompts.update(name, text)
        if name == app.active_system_prompt:
            app.refresh_system_prompt()
        ctx.console.print(f"[green]✓[/green] Updated system prompt [cyan]{escape(name)}[/cyan]")

    def _new(self, ctx: CommandContext, name: Optional[str]) -> None:
        app = ctx.app
        if not name:
            raise CommandError(f"Usage: /{self.name} new NAME")
        if name in app.system_prompts:
            raise CommandError(f"System prompt '{name}' already exists. Use /system edit {name}.")

        text = ctx.edit("")
        if text is None:
            ctx.console.print("[dim]Aborted: empty system prompt.[/dim]")
            return
        app.system_prompts.update_or_create(name, text)
        app.select_system_prompt(name)
        ctx.console.print(f"[green]✓[/green] Created system prompt [cyan]{escape(name)}[/cyan]")

    def _remove(self, ctx: CommandContext, name: Optional[str]) -> None:
        app = ctx.app
        if not name:
            raise CommandError(f"Usage: /{self.name} rm NAME")
        if not app.system_prompts.remove(name):
            raise CommandError(str(PromptNotFoundError(name)))
        if name == app.active_system_prompt:
            app.refresh_system_prompt()
        ctx.console.print(f"[green]✓[/green] Removed system prompt [cyan]{escape(name)}[/cyan]")


class RawCommand(Command):
    name = "raw"
    help = "Toggle raw output without markdown rendering"

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        ctx.app.raw = not ctx.app.raw
        ctx.console.print(f"Raw output {'enabled' if ctx.app.raw else 'disabled'}")
        return CommandOutcome()


class HelpCommand(Command):
    name = "help"
    help = "Show this help"

    def __init__(self, registry: "CommandRegistry"):
        self.registry = registry

    async def handle(self, args: List[str], ctx: CommandContext) -> CommandOutcome:
        table = Table(title="Commands", show_header=True, header_style="bold magenta")
        table.add_column("Command", style="cyan", no_wrap=True)
        table.add_column("Description")
        for command, aliases in self.registry.commands():
            names = ", ".join(COMMAND_PREFIX + n for n in [command.name, *aliases])
            if command.usage:
                names = f"{names} {command.usage}"
            table.add_row(names, command.help)
        ctx.console.print(table)
        ctx.console.print("[dim]Esc-Enter inserts a newline, Ctrl-C abandons the line, Ctrl-D exits.[/dim]")
        return CommandOutcome()


class CommandRegistry:
    """Slash commands by name and alias."""

    def __init__(self):
        self._commands: Dict[str, Command] = {}
        self._aliases: Dict[str, List[str]] = {}

    def register(self, command: Command, *aliases: str) -> None:
        for name in (command.name, *aliases):
            if name in self._commands:
                logger.warning(f"Command '{name}' is already registered, replacing it")
            self._commands[name] = command
        self._aliases[command.name] = list(aliases)

    def register_default_commands(self) -> "CommandRegistry":
        self.register(ExitCommand(), "quit")
        self.register(ClearCommand())
        self.register(CopyCommand())
        self.register(CopyAllCommand())
        self.register(PasteCommand())
        self.register(EditorCommand())
        self.register(ClearHistoryCommand(), "clear_h")
        self.register(ResetCommand())
        self.register(ModelCommand())
        self.register(ModelsCommand())
        self.register(SystemCommand())
        self.register(RawCommand())
        self.register(HelpCommand(self))
        return self

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def names(self) -> List[str]:
        """All names, aliases included, sorted."""
        return sorted(self._commands)

    def complete(self, prefix: str) -> List[str]:
        return [name for name in self.names() if name.startswith(prefix.lower())]

    def commands(self) -> Sequence[Tuple[Command, List[str]]]:
        """Each command once, with its aliases, in name order."""
        return [
            (self._commands[name], aliases)
            for name, aliases in sorted(self._aliases.items())
        ]

    async def execute(self, name: str, args: List[str], ctx: CommandContext) -> CommandOutcome:
        """Run the command registered under ``name``.

        Raises:
            CommandNotFoundError: if nothing is registered under ``name``
            CommandError: if the command failed
        """
        command = self.get(name)
        if command is None:
            raise CommandNotFoundError(name)
        logger.debug(f"Running command /{name} {args}")
        try:
            return await command.handle(args, ctx)
        except ValueError as e:
            raise CommandError(str(e)) from e
        except OSError as e:
            logger.debug(f"Command /{name} hit a file error: {e!r}")
            raise CommandError(f"File operation failed: {e}") from e


def create_default_registry() -> CommandRegistry:
    return CommandRegistry().register_default_commands()
