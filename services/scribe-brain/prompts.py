"""Prompt compilation from the editable template plus taxonomy lists and corrections.

The template is plain text owned by the configuration directory. It may carry
these placeholders, each replaced literally:

  {{DOCUMENT_TYPES_LIST}}  document types, one per line
  {{CATEGORIES_LIST}}      categories, one per line
  {{CORRECTION_EXAMPLES}}  recent human corrections (may be empty)
  {{FILE_CREATION_DATE}}   fallback date, yyyy-MM-dd
  {{DOCUMENT_TEXT}}        always blanked, the model reads the image directly
"""

import logging
import os
import re
from datetime import date, datetime
from pathlib import Path

from storage import atomic_write_text, read_required_text

logger = logging.getLogger(__name__)

DOCUMENT_TYPES_PLACEHOLDER = "{{DOCUMENT_TYPES_LIST}}"
CATEGORIES_PLACEHOLDER = "{{CATEGORIES_LIST}}"
CORRECTION_EXAMPLES_PLACEHOLDER = "{{CORRECTION_EXAMPLES}}"
FILE_CREATION_DATE_PLACEHOLDER = "{{FILE_CREATION_DATE}}"
DOCUMENT_TEXT_PLACEHOLDER = "{{DOCUMENT_TEXT}}"

DATE_FORMAT = "%Y-%m-%d"

_PLACEHOLDER_RE = re.compile("|".join(re.escape(p) for p in (
    DOCUMENT_TYPES_PLACEHOLDER,
    CATEGORIES_PLACEHOLDER,
    CORRECTION_EXAMPLES_PLACEHOLDER,
    FILE_CREATION_DATE_PLACEHOLDER,
    DOCUMENT_TEXT_PLACEHOLDER,
)))


def compile_prompt(
    template: str,
    document_types: list[str],
    categories: list[str],
    correction_examples: str,
    fallback_date: str,
) -> str:
    """Substitute every placeholder in the template. Pure, no I/O."""
    # Raises ValueError for anything but yyyy-MM-dd
    datetime.strptime(fallback_date, DATE_FORMAT)

    replacements = {
        DOCUMENT_TYPES_PLACEHOLDER: "\n".join(document_types),
        CATEGORIES_PLACEHOLDER: "\n".join(categories),
        CORRECTION_EXAMPLES_PLACEHOLDER: correction_examples,
        FILE_CREATION_DATE_PLACEHOLDER: fallback_date,
        DOCUMENT_TEXT_PLACEHOLDER: "",
    }
    # One pass, so inserted text is never scanned for placeholders again
    return _PLACEHOLDER_RE.sub(lambda m: replacements[m.group(0)], template)


def file_creation_date(path: Path) -> str:
    """Creation date of a file as yyyy-MM-dd, or today's date if unavailable."""
    try:
        stat = os.stat(path)
    except OSError as e:
        logger.warning("Could not read file attributes, using today's date: %s", e)
        return date.today().strftime(DATE_FORMAT)

    # st_birthtime exists on macOS/BSD; elsewhere fall back to modification time
    timestamp = getattr(stat, "st_birthtime", stat.st_mtime)
    return datetime.fromtimestamp(timestamp).strftime(DATE_FORMAT)


class TemplateStore:
    """The editable prompt template, persisted on save."""

    def __init__(self, path: Path, text: str):
        self.path = Path(path)
        self.text = text

    @classmethod
    def load(cls, path: Path) -> "TemplateStore":
        path = Path(path)
        return cls(path, read_required_text(path))

    def save(self, text: str) -> None:
        atomic_write_text(self.path, text)
        self.text = text
        logger.info("Saved prompt template (%d chars)", len(text))
