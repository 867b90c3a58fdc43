"""
Persistent store of named system prompts.

Prompts are kept in a JSON file of the form ``{"prompts": {name: text}}``
inside the data directory, and every change is written back immediately.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_NAME = "default"
DEFAULT_PROMPT_TEXT = "You are a helpful assistant."


class PromptNotFoundError(KeyError):
    """Raised when updating a system prompt that does not exist."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"System prompt '{self.name}' not found"


class SystemPromptStore:
    """Named system prompts backed by a JSON file."""

    def __init__(self, path: Path):
        """Load prompts from ``path``, seeding the default prompt if none exist.

        Args:
            path: JSON file holding the prompts
        """
        self.path = Path(path)
        self._prompts: Dict[str, str] = {}

        try:
            self.import_prompts()
        except FileNotFoundError:
            logger.debug(f"No system prompts file at {self.path}")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to import system prompts from {self.path}: {e}")

        if not self._prompts:
            self.update_or_create(DEFAULT_PROMPT_NAME, DEFAULT_PROMPT_TEXT)

    def __contains__(self, name: str) -> bool:
        return name in self._prompts

    def __len__(self) -> int:
        return len(self._prompts)

    def get_available(self) -> List[str]:
        """Names of all prompts, sorted."""
        return sorted(self._prompts)

    def get(self, name: str) -> Optional[str]:
        return self._prompts.get(name)

    def update(self, name: str, contents: str) -> None:
        """Change an existing prompt.

        Raises:
            PromptNotFoundError: if no prompt is called ``name``
        """
        if name not in self._prompts:
            raise PromptNotFoundError(name)
        self._prompts[name] = contents
        self.export()

    def update_or_create(self, name: str, contents: str) -> None:
        self._prompts[name] = contents
        self.export()

    def remove(self, name: str) -> bool:
        """Delete a prompt; returns False if it did not exist."""
        if self._prompts.pop(name, None) is None:
            return False
        self.export()
        return True

    def import_prompts(self) -> None:
        """Replace the in-memory prompts with the file contents."""
        data = json.loads(self.path.read_text(encoding="utf-8"))
        prompts = data.get("prompts") if isinstance(data, dict) else None
        if not isinstance(prompts, dict):
            raise ValueError("expected an object with a 'prompts' mapping")
        self._prompts = {str(name): str(text) for name, text in prompts.items()}
        logger.debug(f"Imported {len(self._prompts)} system prompts from {self.path}")

    def export(self) -> None:
        """Write the prompts to disk atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"prompts": self._prompts}, indent=2, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".system_prompts.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
