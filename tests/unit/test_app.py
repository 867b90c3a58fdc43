"""Tests for the command-line interface."""

import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from chad_llm import VERSION
from chad_llm.cli.app import app
from chad_llm.config.settings import ChadLlmSettings
from chad_llm.core.client import openai_client
from chad_llm.services.history import SessionHistory


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def workspace(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run every command from an empty project directory below a fake home."""
    home = tmp_path / "home"
    work = home / "project"
    work.mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def api(monkeypatch: pytest.MonkeyPatch, make_sse_body):
    """Route the client built by the CLI to a mock transport."""
    requests = []
    deltas = ["Run this:\n```sh\nls -la\n```\nDone."]

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=make_sse_body(deltas))

    real_factory = openai_client.create_openai_client

    def factory(settings: ChadLlmSettings, transport=None):
        return real_factory(settings, transport=httpx.MockTransport(handler))

    monkeypatch.setattr("chad_llm.core.application.create_openai_client", factory)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    return requests


class TestBasics:

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert VERSION in result.output

    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("chat", "models", "prompts", "history", "config", "init"):
            assert command in result.output

    def test_chat_requires_api_key(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["chat", "hello"])
        assert result.exit_code == 1
        assert "No API key configured" in result.output

    def test_invalid_setting_reported(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAD_LLM_TEMPERATURE", "9")
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 1
        assert "temperature" in result.output


class TestChat:

    def test_single_message_prints_code_when_piped(self, runner: CliRunner, api) -> None:
        result = runner.invoke(app, ["chat", "list files"])
        assert result.exit_code == 0
        assert result.output == "ls -la\n"
        assert len(api) == 1

    def test_model_option_used(self, runner: CliRunner, api) -> None:
        result = runner.invoke(app, ["--model", "o1-mini", "chat", "hi"])
        assert result.exit_code == 0
        assert json.loads(api[0].content)["model"] == "o1-mini"

    def test_stdin_sent_as_one_message(self, runner: CliRunner, api) -> None:
        result = runner.invoke(app, [], input="first line\nsecond line\n")
        assert result.exit_code == 0
        assert "ls -la" in result.output
        assert b"first line\\nsecond line" in api[0].content

    def test_unknown_system_prompt(self, runner: CliRunner, api) -> None:
        result = runner.invoke(app, ["--system", "ghost", "chat", "hi"])
        assert result.exit_code == 1
        assert "ghost" in result.output
        assert api == []


class TestInfoCommands:

    def test_config_masks_missing_key(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Not set" in result.output
        assert "None found" in result.output

    def test_config_shows_loaded_env_file(self, runner: CliRunner, workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # loading the file exports its variables, so let monkeypatch restore them
        monkeypatch.setenv("CHAD_LLM_MODEL", "unset")
        monkeypatch.delenv("CHAD_LLM_MODEL")
        (workspace / ".env").write_text("CHAD_LLM_MODEL=gpt-4o\n")
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "gpt-4o" in result.output

    def test_prompts_lists_default(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["prompts"])
        assert result.exit_code == 0
        assert "default" in result.output

    def test_history_show_and_clear(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["history"])
        assert "No session history." in result.output

        history = SessionHistory(ChadLlmSettings().session_history_file)
        history.save_entry("hello there")
        result = runner.invoke(app, ["history"])
        assert "> hello there" in result.output

        result = runner.invoke(app, ["history", "--clear"])
        assert result.exit_code == 0
        assert not history.path.exists()


class TestInit:

    def test_creates_project_file(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        env_file = workspace / ".chad-llm" / ".env"
        assert "OPENAI_API_KEY" in env_file.read_text()

    def test_refuses_to_overwrite_without_force(self, runner: CliRunner, workspace: Path) -> None:
        env_file = workspace / ".chad-llm" / ".env"
        env_file.parent.mkdir()
        env_file.write_text("# mine\n")

        result = runner.invoke(app, ["init"])
        assert "already exists" in result.output
        assert env_file.read_text() == "# mine\n"

        result = runner.invoke(app, ["init", "--force"])
        assert result.exit_code == 0
        assert "OPENAI_API_KEY" in env_file.read_text()

    def test_user_scope(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["init", "--user"])
        assert result.exit_code == 0
        assert (workspace.parent / ".chad-llm" / ".env").is_file()
