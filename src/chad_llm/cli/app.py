"""
Main CLI application entry point.

This module contains the Typer application and command handlers for
chad-llm. Running ``chad-llm`` without a subcommand starts a chat.
"""

import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chad_llm import VERSION
from chad_llm.config.env_loader import EnvFileLoader, load_env_with_hierarchy
from chad_llm.config.settings import ChadLlmSettings, get_settings
from chad_llm.core.application import Application
from chad_llm.core.client.errors import ChadLlmError, create_user_friendly_message
from chad_llm.core.client.openai_client import create_openai_client
from chad_llm.prompts.system_prompts import PromptNotFoundError, SystemPromptStore
from chad_llm.services.history import SessionHistory, render_entry
from chad_llm.utils.logging import setup_logging

from .repl import ChatRepl

logger = logging.getLogger(__name__)

# Create the main Typer application
app = typer.Typer(
    name="chad-llm",
    help="chad-llm - chat with OpenAI models from the terminal",
    add_completion=False,
    rich_markup_mode="rich",
)

# Replies go to stdout, diagnostics to stderr
console = Console()
err_console = Console(stderr=True)


@dataclass
class CliState:
    """Options from the root callback shared with subcommands."""
    settings: ChadLlmSettings
    system: Optional[str] = None
    env_file: Optional[Path] = None


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"[bold blue]chad-llm[/bold blue] version [green]{VERSION}[/green]")
        raise typer.Exit()


def _load_settings(**overrides) -> ChadLlmSettings:
    try:
        return get_settings(**overrides)
    except ValidationError as e:
        err_console.print("[red]Error:[/red] invalid configuration")
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            err_console.print(f"  [cyan]{field}[/cyan]: {escape(error['msg'])}")
        raise typer.Exit(1)


def _state(ctx: typer.Context) -> CliState:
    return ctx.find_root().obj


@app.callback(invoke_without_command=True)
def root_callback(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model to chat with"),
    raw: bool = typer.Option(False, "--raw", help="Print replies without markdown rendering"),
    system: Optional[str] = typer.Option(None, "--system", "-s", help="Name of the system prompt to use"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ...)"),
) -> None:
    """
    chad-llm - chat with OpenAI models from the terminal.

    Without a command an interactive chat starts. Input piped on stdin is
    sent as a single message and only the code blocks of the reply are
    printed when stdout is not a terminal.
    """
    env_file = load_env_with_hierarchy()

    settings = _load_settings(model=model, raw=True if raw else None, log_level=log_level)
    setup_logging(settings.log_level, settings.debug)
    if env_file:
        logger.debug(f"Loaded environment from {env_file}")

    ctx.obj = CliState(settings=settings, system=system, env_file=env_file)

    if ctx.invoked_subcommand is None:
        _run_chat(ctx.obj, None)


@app.command("chat")
def chat_command(
    ctx: typer.Context,
    message: Optional[str] = typer.Argument(None, help="Message to send; starts an interactive chat if omitted"),
) -> None:
    """Start a chat session or send a single message."""
    _run_chat(_state(ctx), message)


def _require_api_key(settings: ChadLlmSettings) -> None:
    if not settings.is_configured:
        err_console.print("[red]Error:[/red] No API key configured.")
        err_console.print("[dim]Set the OPENAI_API_KEY environment variable or run 'chad-llm init' to create a .env file[/dim]")
        raise typer.Exit(1)


def _run_chat(state: CliState, message: Optional[str]) -> None:
    _require_api_key(state.settings)
    exit_code = asyncio.run(_async_chat(state, message))
    if exit_code:
        raise typer.Exit(exit_code)


async def _async_chat(state: CliState, message: Optional[str]) -> int:
    """Async implementation of the chat command; returns the exit code."""
    try:
        application = Application.create(state.settings, system_prompt=state.system)
    except PromptNotFoundError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    except OSError as e:
        err_console.print(f"[red]Error:[/red] cannot use data directory {state.settings.data_dir}: {escape(str(e))}")
        return 1

    try:
        repl = ChatRepl(application, console, error_console=err_console)
        if message:
            reply = await repl.send(message)
            return 0 if reply is not None else 1
        if not sys.stdin.isatty():
            return await repl.run_piped(sys.stdin)
        await repl.run_interactive()
        return 0
    finally:
        await application.aclose()


@app.command("models")
def models_command(ctx: typer.Context) -> None:
    """List the models available to your API key."""
    settings = _state(ctx).settings
    _require_api_key(settings)
    asyncio.run(_async_models_command(settings))


async def _async_models_command(settings: ChadLlmSettings) -> None:
    client = create_openai_client(settings)
    try:
        models = await client.list_models()
    except ChadLlmError as e:
        err_console.print(f"[red]Error:[/red] {escape(create_user_friendly_message(e))}")
        raise typer.Exit(1)
    finally:
        await client.close()

    table = Table(title="Available Models", show_header=True, header_style="bold magenta")
    table.add_column("Model", style="cyan")
    table.add_column("Default", style="green")
    for model in models:
        table.add_row(escape(model), "✓" if model == settings.model else "")
    console.print(table)


@app.command("prompts")
def prompts_command(ctx: typer.Context) -> None:
    """List the stored system prompts."""
    settings = _state(ctx).settings
    store = SystemPromptStore(settings.system_prompts_file)

    table = Table(title="System Prompts", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Prompt", style="white")
    for name in store.get_available():
        table.add_row(escape(name), escape(store.get(name) or ""))
    console.print(table)
    console.print(f"[dim]Stored in {store.path}[/dim]")


@app.command("history")
def history_command(
    ctx: typer.Context,
    clear: bool = typer.Option(False, "--clear", help="Delete the session history"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Number of entries to show"),
) -> None:
    """Show or clear the session history."""
    settings = _state(ctx).settings
    history = SessionHistory(settings.session_history_file)

    if clear:
        try:
            cleared = history.clear()
        except OSError as e:
            err_console.print(f"[red]Error:[/red] could not clear session history: {escape(str(e))}")
            raise typer.Exit(1)
        if cleared:
            console.print("[green]✓[/green] Session history cleared")
        else:
            console.print("[dim]No session history to clear.[/dim]")
        return

    try:
        entries = history.load_history(limit=limit if limit is not None else settings.max_history_length)
    except OSError as e:
        err_console.print(f"[red]Error:[/red] could not read session history: {escape(str(e))}")
        raise typer.Exit(1)

    if not entries:
        console.print("[dim]No session history.[/dim]")
        return
    for entry in entries:
        style = "green" if entry.is_user else "dim"
        console.print(render_entry(entry), style=style, markup=False, highlight=False)


@app.command("config")
def config_command(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    state = _state(ctx)
    settings = state.settings

    table = Table(title="Current Configuration", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    for key, value in settings.to_dict().items():
        if key == "api_key" and not value:
            value = "Not set"
        table.add_row(key, str(value))
    console.print(table)

    console.print(Panel(
        f"Environment File: {state.env_file or 'None found'}\n"
        f"Data Directory: {settings.data_dir}",
        title="Environment Configuration",
        border_style="blue",
    ))


@app.command("init")
def init_command(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing .env file"),
    user: bool = typer.Option(False, "--user", help="Create the file in the home directory instead"),
) -> None:
    """Create an example .chad-llm/.env file."""
    loader = EnvFileLoader()
    scope = "user" if user else "project"
    base = loader.home_directory if user else loader.working_directory
    env_file_path = Path(base) / loader.CONFIG_DIR_NAME / loader.ENV_FILE_NAME

    if env_file_path.exists() and not force:
        console.print(f"[yellow]Example .env file already exists:[/yellow] {env_file_path}")
        console.print("[dim]Use --force to overwrite it[/dim]")
        return

    try:
        created = loader.create_example_env_file(scope=scope)
    except OSError as e:
        err_console.print(f"[red]Error creating .env file:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Created example .env file: {created}")
    console.print("\n[bold]Next steps:[/bold]")
    console.print(f"1. Edit {created} to set your OPENAI_API_KEY")
    console.print("2. Use 'chad-llm config' to view your configuration")
    console.print("3. Run 'chad-llm' to start chatting")


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
