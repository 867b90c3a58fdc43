"""
Session history service.

Keeps a transcript of what was typed and what the model answered, so the
last exchanges can be shown again when a new session starts.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


@dataclass
class HistoryEntry:
    """A single recorded input or response."""
    role: str
    content: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def is_user(self) -> bool:
        return self.role == USER_ROLE


class SessionHistory:
    """Append-only JSON Lines transcript."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_history(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        """Load recorded entries, oldest first.

        Args:
            limit: Only return the last ``limit`` entries

        Returns:
            Entries in file order; malformed lines are skipped
        """
        if not self.path.exists():
            return []

        entries = []
        # Undecodable bytes become U+FFFD and the line is skipped as invalid JSON
        with open(self.path, "r", encoding="utf-8", errors="replace") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    entries.append(HistoryEntry(
                        role=str(data["role"]),
                        content=str(data["content"]),
                        timestamp=str(data.get("timestamp", "")),
                    ))
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning(f"Skipping invalid history line {self.path}:{line_num}: {e}")

        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    def save_entry(self, text: str) -> HistoryEntry:
        """Record user input."""
        return self._append(HistoryEntry(role=USER_ROLE, content=text))

    def save_response(self, text: str) -> HistoryEntry:
        """Record a model response."""
        return self._append(HistoryEntry(role=ASSISTANT_ROLE, content=text))

    def clear(self) -> bool:
        """Delete the transcript; returns False if there was none."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Cleared session history at {self.path}")
        return True

    def _append(self, entry: HistoryEntry) -> HistoryEntry:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry), ensure_ascii=False) + "\n")
        return entry


def render_entry(entry: HistoryEntry, width: int = 200) -> str:
    """One-line rendering of an entry for the start-up replay."""
    marker = ">" if entry.is_user else "<"
    text = " ".join(entry.content.split())
    if len(text) > width:
        text = text[:width - 3] + "..."
    return f"{marker} {text}"
