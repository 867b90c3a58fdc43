"""Tests for clipboard and logging helpers."""

import logging
from io import StringIO

import pyperclip
import pytest
from rich.console import Console

from chad_llm.utils.clipboard import ClipboardError, copy_text, paste_text
from chad_llm.utils.logging import setup_logging


class TestClipboard:

    def test_copy_and_paste(self, monkeypatch: pytest.MonkeyPatch) -> None:
        board = {}
        monkeypatch.setattr(pyperclip, "copy", lambda text: board.update(text=text))
        monkeypatch.setattr(pyperclip, "paste", lambda: board.get("text"))

        assert paste_text() == ""
        copy_text("echo hi")
        assert paste_text() == "echo hi"

    def test_missing_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def unavailable(*args):
            raise pyperclip.PyperclipException("could not find a copy/paste mechanism")

        monkeypatch.setattr(pyperclip, "copy", unavailable)
        monkeypatch.setattr(pyperclip, "paste", unavailable)

        with pytest.raises(ClipboardError, match="copy/paste mechanism"):
            copy_text("x")
        with pytest.raises(ClipboardError):
            paste_text()


class TestSetupLogging:

    def test_level_and_output(self) -> None:
        buffer = StringIO()
        setup_logging("info", console=Console(file=buffer, width=200))
        try:
            logging.getLogger("chad_llm.test").info("hello log")
            assert logging.getLogger().level == logging.INFO
            assert logging.getLogger("httpx").level == logging.WARNING
            assert "hello log" in buffer.getvalue()
        finally:
            setup_logging()

    def test_debug_overrides_level(self) -> None:
        setup_logging("ERROR", debug=True, console=Console(file=StringIO()))
        try:
            assert logging.getLogger().level == logging.DEBUG
        finally:
            setup_logging()
