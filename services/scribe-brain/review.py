"""Reviewer-side operations: log a correction when the human edited the result, write the JSON output."""

import logging
from pathlib import Path

from models import ExtractedData
from workspace import Workspace

logger = logging.getLogger(__name__)


def default_output_path(document_path: str | Path) -> Path:
    """Output file saved next to the original document, with a .json extension."""
    return Path(document_path).with_suffix(".json")


def write_result(data: ExtractedData, output_path: str | Path) -> Path:
    """Write the final record as pretty-printed JSON."""
    output_path = Path(output_path)
    output_path.write_text(data.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
    logger.info("Wrote extraction result to %s", output_path.name)
    return output_path


def finalize_review(
    workspace: Workspace,
    original: ExtractedData,
    edited: ExtractedData,
    image_hash: str,
    output_path: str | Path | None = None,
) -> bool:
    """Write the edited record out, then log it if it differs from the AI's output.

    The output is written first so a failed write never leaves a logged
    correction behind. Returns True when a correction was added to the log.
    """
    if output_path is not None:
        write_result(edited, output_path)

    if edited != original:
        workspace.corrections.append(image_hash, edited)
        return True

    return False
