"""
System clipboard access.

pyperclip picks the platform backend (pbcopy, xclip/xsel/wl-clipboard,
the Windows API) at first use; a missing backend is reported as
ClipboardError instead of crashing the session.
"""

import logging

import pyperclip

logger = logging.getLogger(__name__)


class ClipboardError(Exception):
    """The system clipboard could not be read or written."""


def copy_text(text: str) -> None:
    """Place ``text`` on the system clipboard."""
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError(str(e)) from e
    logger.debug(f"Copied {len(text)} characters to clipboard")


def paste_text() -> str:
    """Return the current clipboard text."""
    try:
        return pyperclip.paste() or ""
    except pyperclip.PyperclipException as e:
        raise ClipboardError(str(e)) from e
