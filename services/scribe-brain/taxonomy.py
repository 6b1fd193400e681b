"""Taxonomy store: flat two-level lists encoded as ``Parent`` or ``Parent*Child`` lines.

Two independent lists exist (document types and categories), each backed by a
newline-delimited UTF-8 text file in the configuration directory.
"""

import logging
import threading
from pathlib import Path

from storage import atomic_write_text, read_required_text

logger = logging.getLogger(__name__)

SEPARATOR = "*"


def parse_entries(content: str) -> list[str]:
    """Split file content into entries, dropping blank lines."""
    return [line.rstrip("\r") for line in content.split("\n") if line.strip()]


class TaxonomyList:
    """A sorted, duplicate-free list of taxonomy entries persisted to one file."""

    def __init__(self, path: Path, entries: list[str] | None = None):
        self.path = Path(path)
        self._entries = list(entries or [])
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: Path) -> "TaxonomyList":
        path = Path(path)
        entries = parse_entries(read_required_text(path))
        logger.info("Loaded %d taxonomy entries from %s", len(entries), path.name)
        return cls(path, entries)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def main_entries(self) -> list[str]:
        """Distinct parent tokens, sorted ascending."""
        return sorted({entry.split(SEPARATOR)[0] for entry in self._entries})

    def sub_entries(self, parent: str) -> list[str]:
        """Child tokens of entries whose parent is exactly ``parent``, sorted ascending."""
        children = []
        for entry in self._entries:
            parts = entry.split(SEPARATOR)
            if len(parts) == 2 and parts[0] == parent:
                children.append(parts[1])
        return sorted(children)

    def add(self, entry: str) -> bool:
        """Add an entry verbatim, keep the list sorted and unique, and persist it.

        Returns False when nothing changed (blank or already present entry).
        """
        if not entry.strip():
            return False
        if "\n" in entry or "\r" in entry:
            raise ValueError("Taxonomy entries must be a single line")

        with self._lock:
            if entry in self._entries:
                return False
            self._entries = sorted(set(self._entries) | {entry})
            atomic_write_text(self.path, "\n".join(self._entries))

        logger.info("Added taxonomy entry to %s (%d entries)", self.path.name, len(self._entries))
        return True
