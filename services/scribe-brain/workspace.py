"""Configuration context: credential, prompt template, taxonomy lists and correction log.

Loaded once per session from the configuration directory and passed by
reference into the pipeline and the API handlers. Creating the directory and
its default files is the installer's job, not this module's.
"""

import logging
from pathlib import Path

from config import settings
from corrections import CorrectionLog
from errors import ConfigurationMissing
from prompts import TemplateStore
from storage import read_required_text
from taxonomy import TaxonomyList

logger = logging.getLogger(__name__)

API_KEY_FILE = "api_key.txt"
PROMPT_FILE = "metascribe_prompt.txt"
DOCUMENT_TYPES_FILE = "document_types.txt"
CATEGORIES_FILE = "categories.txt"
CORRECTIONS_FILE = "corrections.jsonl"

TAXONOMY_KINDS = ("document_types", "categories")


class Workspace:
    """Long-lived, shared configuration state consumed by the extraction pipeline."""

    def __init__(
        self,
        root: Path,
        api_key: str,
        templates: TemplateStore,
        document_types: TaxonomyList,
        categories: TaxonomyList,
        corrections: CorrectionLog,
    ):
        self.root = root
        self.api_key = api_key
        self.templates = templates
        self.document_types = document_types
        self.categories = categories
        self.corrections = corrections

    @classmethod
    def load(cls, root: str | Path | None = None, api_key: str | None = None) -> "Workspace":
        """Load every configuration item, raising ConfigurationMissing on the first gap."""
        root = Path(root or settings.CONFIG_DIR).expanduser()
        if not root.is_dir():
            raise ConfigurationMissing(f"Configuration directory not found: {root}")

        key = (api_key or settings.GEMINI_API_KEY).strip()
        if not key:
            key = read_required_text(root / API_KEY_FILE).strip()
        if not key:
            raise ConfigurationMissing(f"API key is empty (set GEMINI_API_KEY or fill {API_KEY_FILE})")

        templates = TemplateStore.load(root / PROMPT_FILE)
        if not templates.text.strip():
            raise ConfigurationMissing(f"Prompt template {PROMPT_FILE} is empty")

        workspace = cls(
            root=root,
            api_key=key,
            templates=templates,
            document_types=TaxonomyList.load(root / DOCUMENT_TYPES_FILE),
            categories=TaxonomyList.load(root / CATEGORIES_FILE),
            corrections=CorrectionLog.load(root / CORRECTIONS_FILE),
        )
        logger.info("Configuration loaded from %s", root)
        return workspace

    def taxonomy(self, kind: str) -> TaxonomyList:
        """Look up a taxonomy list by kind ("document_types" or "categories")."""
        if kind == "document_types":
            return self.document_types
        if kind == "categories":
            return self.categories
        raise KeyError(kind)
