"""Tests for the interactive line editor."""

from pathlib import Path
from typing import List

import pytest
from prompt_toolkit.application import create_app_session
from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document
from prompt_toolkit.history import FileHistory
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from chad_llm.cli.commands import create_default_registry
from chad_llm.cli.line_editor import PROMPT_SUFFIX, CommandCompleter, LineEditor, get_user_display_name


def _complete(text: str) -> List[str]:
    completer = CommandCompleter(create_default_registry())
    return [c.text for c in completer.get_completions(Document(text), CompleteEvent())]


class TestCommandCompleter:

    def test_completes_prefix(self) -> None:
        assert _complete("/cop") == ["/copy", "/copy_all"]

    def test_bare_slash_lists_everything(self) -> None:
        completions = _complete("/")
        assert "/help" in completions
        assert "/quit" in completions

    def test_no_completion_for_messages(self) -> None:
        assert _complete("hello") == []
        assert _complete("/model gpt") == []

    def test_meta_is_help_text(self) -> None:
        completer = CommandCompleter(create_default_registry())
        completion = next(iter(completer.get_completions(Document("/raw"), CompleteEvent())))
        assert completion.start_position == -4
        assert "raw" in completion.display_meta_text.lower()


class TestLineEditor:

    @pytest.fixture(autouse=True)
    def headless(self):
        with create_pipe_input() as pipe_input, create_app_session(input=pipe_input, output=DummyOutput()):
            yield

    def test_prompt_shows_user_name(self) -> None:
        line_editor = LineEditor(user_name="Ada")
        assert list(line_editor.message) == [("ansigreen bold", "Ada"), ("", PROMPT_SUFFIX)]

    def test_history_file_parent_created(self, tmp_path: Path) -> None:
        history_file = tmp_path / "nested" / "input_history"
        line_editor = LineEditor(history_file=history_file, user_name="Ada")
        assert history_file.parent.is_dir()
        assert isinstance(line_editor.session.history, FileHistory)


def test_user_display_name_not_empty() -> None:
    assert get_user_display_name()


def test_user_display_name_falls_back_to_login(monkeypatch: pytest.MonkeyPatch) -> None:
    pwd = pytest.importorskip("pwd")

    def no_entry(uid):
        raise KeyError(uid)

    monkeypatch.setattr(pwd, "getpwuid", no_entry)
    monkeypatch.setattr("chad_llm.cli.line_editor.getpass.getuser", lambda: "ada")
    assert get_user_display_name() == "ada"
