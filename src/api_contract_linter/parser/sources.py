"""Source file discovery for the TypeScript parsers."""

import logging
from pathlib import Path

from .base import SourceUnit

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".ts", ".tsx")
DEFAULT_EXCLUDE = ("node_modules",)


def load_sources(
    path: Path,
    extensions: tuple[str, ...] | list[str] = DEFAULT_EXTENSIONS,
    exclude: tuple[str, ...] | list[str] = DEFAULT_EXCLUDE,
) -> list[SourceUnit]:
    """Read a single file, or every matching file below a directory (sorted)."""
    if path.is_file():
        files = [path]
    else:
        files = sorted(
            f for f in path.rglob("*")
            if f.is_file()
            and f.name.endswith(tuple(extensions))
            and not set(f.relative_to(path).parts) & set(exclude)
        )

    units = []
    for f in files:
        try:
            units.append(SourceUnit(path=str(f), text=f.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping %s: %s", f, e)
    logger.debug("Loaded %d source files from %s", len(units), path)
    return units
