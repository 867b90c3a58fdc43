"""
Incremental markdown rendering of streamed replies.

Replies arrive a few characters at a time, so a full markdown parser cannot
be used. A small character state machine styles emphasis and headings as
they stream, and holds fenced code blocks back until they are complete so
they can be syntax-highlighted in one piece.
"""

import logging
from typing import List, Optional

from rich.console import Console
from rich.syntax import Syntax

logger = logging.getLogger(__name__)

CODE_THEME = "monokai"
FENCE_LENGTH = 3

# Language tags models use that Pygments knows under another name
LANGUAGE_ALIASES = {
    "c#": "csharp",
    "f#": "fsharp",
    "sh": "bash",
    "shell": "bash",
    "": "text",
}

EMPHASIS_STYLES = {1: "italic", 2: "bold"}


class ResponseRenderer:
    """Render a streamed reply to a Rich console while collecting code blocks.

    On a terminal, prose is echoed as it arrives and code blocks are printed
    highlighted once closed. When output is not a terminal only code blocks are
    written, which makes piping a reply into a source file work. Raw mode writes
    every chunk untouched.
    """

    def __init__(
        self,
        console: Console,
        code_blocks: Optional[List[str]] = None,
        raw: bool = False,
        is_terminal: Optional[bool] = None,
    ):
        self.console = console
        self.code_blocks = code_blocks if code_blocks is not None else []
        self.raw = raw
        self.is_terminal = console.is_terminal if is_terminal is None else is_terminal

        self._full: List[str] = []
        self._pending: List[str] = []
        self._pending_style = ""

        self._in_code_block = False
        self._reading_language = False
        self._language: List[str] = []
        self._code: List[str] = []
        self._tick_count = 0

        self._emphasis = 0
        self._in_effect = False
        self._text_effected = False
        self._heading = False
        self._prev_char = "\n"
        self._after_fence = False

    @property
    def in_code_block(self) -> bool:
        return self._in_code_block

    @property
    def text(self) -> str:
        """Everything fed so far, verbatim."""
        return "".join(self._full)

    def feed(self, chunk: str) -> None:
        """Process one streamed chunk."""
        if not chunk:
            return
        self._full.append(chunk)

        if self.raw:
            self.console.out(chunk, end="", highlight=False)
            return

        for ch in chunk:
            self._feed_char(ch)
        self._flush()

    def finish(self) -> str:
        """Flush remaining state and return the full reply text."""
        if not self.raw:
            self._flush_ticks()
            if self._in_code_block:
                logger.debug("Reply ended inside an unterminated code block")
                self._close_code_block()
            self._flush()
            self._reset_style()
        return self.text

    def _feed_char(self, ch: str) -> None:
        if self._reading_language:
            if ch == "\n":
                self._reading_language = False
            else:
                self._language.append(ch)
            return

        if ch == "`":
            self._tick_count += 1
            if self._tick_count == FENCE_LENGTH:
                self._tick_count = 0
                if self._in_code_block:
                    self._close_code_block()
                else:
                    self._open_code_block()
            return

        self._flush_ticks()

        if self._in_code_block:
            self._code.append(ch)
            return

        after_fence, self._after_fence = self._after_fence, False
        if after_fence and ch == "\n":
            # The printed code block already ended the line
            return

        if ch == "\n":
            self._emit("\n")
            self._reset_style()
        elif ch in "*_" and not self._is_literal_underscore(ch):
            self._toggle_emphasis()
        elif ch == "#":
            self._heading = True
            self._emit("#")
        else:
            if self._in_effect:
                self._text_effected = True
            self._emit(ch)

        self._prev_char = ch

    def _is_literal_underscore(self, ch: str) -> bool:
        # snake_case identifiers are not emphasis
        return ch == "_" and self._prev_char.isalnum() and not self._in_effect

    def _toggle_emphasis(self) -> None:
        if self._text_effected:
            self._emphasis -= 1
            if self._emphasis <= 0:
                self._emphasis = 0
                self._in_effect = False
                self._text_effected = False
        else:
            self._emphasis += 1
            self._in_effect = True

    def _reset_style(self) -> None:
        self._emphasis = 0
        self._in_effect = False
        self._text_effected = False
        self._heading = False

    def _current_style(self) -> str:
        parts = []
        if self._heading or self._emphasis >= 2:
            parts.append("bold")
        if self._emphasis == 1 or self._emphasis >= 3:
            parts.append("italic")
        return " ".join(parts)

    def _flush_ticks(self) -> None:
        if not self._tick_count:
            return
        ticks = "`" * self._tick_count
        self._tick_count = 0
        if self._in_code_block:
            self._code.append(ticks)
        else:
            self._emit(ticks)

    def _open_code_block(self) -> None:
        self._in_code_block = True
        self._reading_language = True
        self._language = []
        self._code = []

    def _close_code_block(self) -> None:
        content = "".join(self._code)
        if content.endswith("\n"):
            content = content[:-1]
        language = "".join(self._language).strip()

        self._in_code_block = False
        self._reading_language = False
        self._language = []
        self._code = []
        self.code_blocks.append(content)
        self._after_fence = True

        self._flush()
        if self.is_terminal:
            lexer = LANGUAGE_ALIASES.get(language.lower(), language.lower())
            self.console.print(Syntax(content, lexer, theme=CODE_THEME, word_wrap=True))
        else:
            self.console.out(content, highlight=False)

    def _emit(self, text: str) -> None:
        if not self.is_terminal:
            return
        style = self._current_style()
        if style != self._pending_style:
            self._flush()
            self._pending_style = style
        self._pending.append(text)

    def _flush(self) -> None:
        if not self._pending:
            return
        text = "".join(self._pending)
        self._pending = []
        self.console.out(text, style=self._pending_style or None, end="", highlight=False)
