"""Append-only correction log feeding few-shot examples into future prompts.

One JSON record per line (corrections.jsonl). Malformed lines are skipped on
load so a single bad line never blocks learning from the rest of the history.
"""

import hashlib
import logging
import threading
from pathlib import Path

import numpy as np
from pydantic import ValidationError

from models import CorrectionLogEntry, ExtractedData

logger = logging.getLogger(__name__)

DEFAULT_EXAMPLE_LIMIT = 2


def image_hash(image: np.ndarray) -> str:
    """MD5 hex digest of the decoded image's raw pixel bytes."""
    return hashlib.md5(np.ascontiguousarray(image).tobytes()).hexdigest()


def format_example(entry: CorrectionLogEntry) -> str:
    """Render one correction as a single descriptive line for the prompt."""
    values = entry.corrected_data.model_dump(exclude_none=True)
    described = ", ".join(f"{key}: {value}" for key, value in values.items())
    return f"Example Correction: {described}"


class CorrectionLog:
    """In-memory history of corrections mirrored to an append-only JSONL file."""

    def __init__(self, path: Path, entries: list[CorrectionLogEntry] | None = None):
        self.path = Path(path)
        self._entries = list(entries or [])
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: Path) -> "CorrectionLog":
        path = Path(path)
        entries: list[CorrectionLogEntry] = []
        if path.exists():
            with path.open(encoding="utf-8", errors="replace") as fh:
                for lineno, line in enumerate(fh, start=1):
                    if not line.strip():
                        continue
                    try:
                        entries.append(CorrectionLogEntry.model_validate_json(line))
                    except ValidationError:
                        logger.debug("Skipping malformed correction at %s:%d", path.name, lineno)
        logger.info("Loaded %d corrections from %s", len(entries), path.name)
        return cls(path, entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[CorrectionLogEntry]:
        return list(self._entries)

    def append(self, original_image_hash: str, corrected_data: ExtractedData) -> CorrectionLogEntry:
        """Append one correction to the file (created if absent) and to memory."""
        entry = CorrectionLogEntry(
            original_image_hash=original_image_hash,
            corrected_data=corrected_data,
        )
        line = entry.model_dump_json(by_alias=True, exclude_none=True) + "\n"

        with self._lock:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line)
            self._entries.append(entry)

        logger.info("Logged correction for image %s (%d total)", original_image_hash, len(self._entries))
        return entry

    def recent(self, limit: int = DEFAULT_EXAMPLE_LIMIT) -> list[CorrectionLogEntry]:
        """The last ``limit`` entries, oldest first."""
        if limit <= 0:
            return []
        return self._entries[-limit:]

    def recent_examples(self, limit: int = DEFAULT_EXAMPLE_LIMIT) -> str:
        """Recent corrections rendered for the {{CORRECTION_EXAMPLES}} placeholder."""
        return "\n\n".join(format_example(entry) for entry in self.recent(limit))
