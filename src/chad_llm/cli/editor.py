"""External editor support for composing long messages and prompts."""

import logging
import os
from typing import Optional

import click

logger = logging.getLogger(__name__)

FALLBACK_EDITOR = "vi"


def get_editor() -> str:
    """Editor command from $VISUAL, then $EDITOR, then vi."""
    for var in ("VISUAL", "EDITOR"):
        value = os.environ.get(var, "").strip()
        if value:
            return value
    return FALLBACK_EDITOR


def open_in_editor(initial: str = "", extension: str = ".md") -> Optional[str]:
    """Edit ``initial`` in the user's editor.

    Returns:
        The edited text, or None if the editor failed or the text is
        blank or unchanged
    """
    editor = get_editor()
    logger.debug(f"Opening editor: {editor}")
    try:
        text = click.edit(initial, editor=editor, extension=extension, require_save=True)
    except click.ClickException as e:
        logger.warning(f"Editor '{editor}' failed: {e.format_message()}")
        return None

    if text is None or not text.strip():
        return None
    text = text.rstrip("\n")
    if text == initial.rstrip("\n"):
        return None
    return text
