"""Small file helpers shared by the taxonomy, template and workspace stores."""

import logging
import os
import tempfile
from pathlib import Path

from errors import ConfigurationMissing

logger = logging.getLogger(__name__)


def read_required_text(path: Path) -> str:
    """Read a configuration file that must exist, raising ConfigurationMissing otherwise."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationMissing(
            f"Could not load file: {path.name}. It may be missing or corrupt. Error: {e}"
        ) from e


def atomic_write_text(path: Path, content: str) -> None:
    """Replace path with content via a temporary file in the same directory."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
    logger.debug("Wrote %d bytes to %s", len(content), path)
