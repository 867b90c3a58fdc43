"""
Inline fuzzy list selector.

Used to pick a model, a system prompt or a code block to copy. The list is
drawn below the cursor, filtered as the user types, and erased once a
choice is made.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from prompt_toolkit.application import Application
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl

logger = logging.getLogger(__name__)

MAX_VISIBLE_ROWS = 10


def fuzzy_score(candidate: str, query: str) -> Optional[int]:
    """Score ``candidate`` against ``query`` as a case-insensitive subsequence.

    Returns None when the query characters do not all appear in order.
    Consecutive matches and matches at word starts score higher.
    """
    if not query:
        return 0

    text = candidate.lower()
    needle = query.lower()
    score = 0
    position = 0
    previous_match = -2

    for ch in needle:
        found = text.find(ch, position)
        if found < 0:
            return None
        score += 1
        if found == previous_match + 1:
            score += 5
        if found == 0 or not text[found - 1].isalnum():
            score += 3
        score -= min(found - position, 3)
        previous_match = found
        position = found + 1

    return max(score, 1)


def format_option(text: str, width: int) -> str:
    """Flatten an option to one line and truncate it to ``width`` characters."""
    flat = text.replace("\r", "").replace("\n", " ").replace("\t", " ")
    width = max(width, 4)
    if len(flat) > width:
        return flat[:width - 3] + "..."
    return flat


class SelectState:
    """Cursor, scroll window, query and selection of a list selector."""

    def __init__(
        self,
        options: Sequence[str],
        single: bool = True,
        selected: Sequence[int] = (),
        visible: int = MAX_VISIBLE_ROWS,
    ):
        self.options = [str(option) for option in options]
        self.single = single
        self.selected: List[int] = [i for i in selected if 0 <= i < len(self.options)]
        self.visible_count = min(visible, len(self.options))
        self.query = ""
        self.cursor = self.selected[0] if self.selected else 0
        self.offset = max(0, self.cursor - self.visible_count + 1)
        self.done = False

    def filtered(self) -> List[Tuple[int, str]]:
        """Options matching the query as (original index, text), best first."""
        if not self.query:
            return list(enumerate(self.options))

        scored = []
        for index, option in enumerate(self.options):
            score = fuzzy_score(option, self.query)
            if score is not None:
                scored.append((-score, index, option))
        scored.sort()
        return [(index, option) for _, index, option in scored]

    def _clamp(self, filtered: List[Tuple[int, str]]) -> None:
        if not filtered:
            self.cursor = 0
            self.offset = 0
        elif self.cursor >= len(filtered):
            self.cursor = len(filtered) - 1
            self.offset = max(0, self.cursor - self.visible_count + 1)

    def current(self) -> Optional[int]:
        """Original index of the option under the cursor."""
        filtered = self.filtered()
        self._clamp(filtered)
        if not filtered:
            return None
        return filtered[self.cursor][0]

    def move_up(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1
            if self.cursor < self.offset:
                self.offset = self.cursor

    def move_down(self) -> None:
        if self.cursor < len(self.filtered()) - 1:
            self.cursor += 1
            if self.cursor >= self.offset + self.visible_count:
                self.offset = self.cursor - self.visible_count + 1

    def toggle(self) -> None:
        index = self.current()
        if index is None:
            return
        if self.single:
            self.selected = [index]
        elif index in self.selected:
            self.selected.remove(index)
        else:
            self.selected.append(index)

    def type_char(self, ch: str) -> None:
        self.query += ch
        self.cursor = 0
        self.offset = 0

    def backspace(self) -> None:
        if self.query:
            self.query = self.query[:-1]
            self.cursor = 0
            self.offset = 0

    def clear_query(self) -> None:
        self.query = ""
        self.cursor = 0
        self.offset = 0

    def accept(self) -> List[int]:
        if self.single:
            # Enter picks the row under the cursor, not the preselection
            index = self.current()
            self.selected = [] if index is None else [index]
        self.done = True
        return self.result()

    def cancel(self) -> List[int]:
        self.selected.clear()
        self.done = True
        return self.result()

    def result(self) -> List[int]:
        return sorted(self.selected)

    def rows(self, width: int = 80) -> List[Tuple[bool, bool, str]]:
        """Visible rows as (is_current, is_selected, text)."""
        filtered = self.filtered()
        self._clamp(filtered)
        window = filtered[self.offset:self.offset + self.visible_count]
        return [
            (self.offset + row == self.cursor, index in self.selected, format_option(text, width - 10))
            for row, (index, text) in enumerate(window)
        ]


def _render(state: SelectState, prompt: str, width: int) -> StyleAndTextTuples:
    fragments: StyleAndTextTuples = [("bold", prompt), ("", "\n")]
    for is_current, is_selected, text in state.rows(width):
        pointer = "> " if is_current else "  "
        box = "[x] " if is_selected else "[ ] "
        style = "reverse" if is_current else ""
        fragments.append((style, f"{pointer}{box}{text}"))
        fragments.append(("", "\n"))
    if state.query:
        fragments.append(("fg:ansicyan", f"Query: {state.query}"))
    elif not state.filtered():
        fragments.append(("fg:ansired", "No matches"))
    return fragments


def _key_bindings(state: SelectState) -> KeyBindings:
    kb = KeyBindings()

    @kb.add("up")
    def _up(event) -> None:
        state.move_up()

    @kb.add("down")
    def _down(event) -> None:
        state.move_down()

    @kb.add(" ")
    def _toggle(event) -> None:
        state.toggle()

    @kb.add("enter")
    def _accept(event) -> None:
        event.app.exit(result=state.accept())

    @kb.add("escape", eager=True)
    @kb.add("c-c")
    def _cancel(event) -> None:
        event.app.exit(result=state.cancel())

    @kb.add("backspace")
    def _backspace(event) -> None:
        state.backspace()

    @kb.add("c-u")
    def _clear(event) -> None:
        state.clear_query()

    @kb.add("<any>")
    def _type(event) -> None:
        if event.data and event.data.isprintable():
            state.type_char(event.data)

    return kb


async def select(
    prompt: str,
    options: Sequence[str],
    single: bool = True,
    selected: Sequence[int] = (),
) -> List[int]:
    """Let the user pick from ``options``.

    Args:
        prompt: Title line shown above the list
        options: Option labels
        single: Allow only one selection
        selected: Indices selected initially; the first one gets the cursor

    Returns:
        Sorted indices of the chosen options; empty when cancelled
    """
    if not options:
        return []

    state = SelectState(options, single=single, selected=selected)
    def get_fragments() -> StyleAndTextTuples:
        return _render(state, prompt, application.output.get_size().columns)

    application: Application[List[int]] = Application(
        layout=Layout(HSplit([Window(FormattedTextControl(get_fragments), always_hide_cursor=True)])),
        key_bindings=_key_bindings(state),
        full_screen=False,
        erase_when_done=True,
    )
    result = await application.run_async()
    logger.debug(f"Selection for '{prompt}': {result}")
    return result or []
