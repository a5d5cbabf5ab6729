"""
Exclude pattern resolution.

A watched directory may carry a primary exclude definition file; when it
does not, a fallback ignore file is used. Absence of both is normal.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from app.models.schemas import ExcludePattern, ExcludeSource, ExcludesView
from app.utils.config import Settings, get_settings
from app.utils.errors import OperationalError


def parse_excludes(content: str) -> List[ExcludePattern]:
    """
    Parse exclude definition text.

    Blank lines and '#' comments are dropped; a trailing '/' marks a
    directory pattern.
    """
    patterns = []

    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        patterns.append(
            ExcludePattern(pattern=trimmed, is_directory=trimmed.endswith("/"))
        )

    return patterns


def _read_patterns(path: Path) -> Optional[List[ExcludePattern]]:
    """Return parsed patterns, or None when the file is absent."""
    if not path.is_file():
        return None

    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise OperationalError(f"Failed to read {path}: {e}") from e

    return parse_excludes(content)


def resolve_excludes(
    directory: str, settings: Optional[Settings] = None
) -> Tuple[List[ExcludePattern], ExcludeSource]:
    """
    Resolve the exclude patterns for a directory.

    Returns:
        (patterns, source) where source tells which file won
    """
    view = load_excludes(directory, settings)
    return view.patterns, view.source


def load_excludes(directory: str, settings: Optional[Settings] = None) -> ExcludesView:
    """Resolve excludes and report the file they came from."""
    settings = settings or get_settings()
    root = Path(directory)

    candidates = (
        (settings.excludes_filename, ExcludeSource.PRIMARY),
        (settings.fallback_excludes_filename, ExcludeSource.FALLBACK),
    )

    for filename, source in candidates:
        patterns = _read_patterns(root / filename)
        if patterns is not None:
            logger.debug(f"Excludes for {directory} from {filename}: {len(patterns)} patterns")
            return ExcludesView(patterns=patterns, source=source, filename=filename)

    return ExcludesView(patterns=[], source=ExcludeSource.NONE, filename=None)


def is_excluded(path: str, patterns: Iterable[ExcludePattern]) -> bool:
    """
    Loose visual check of a manifest path against exclude patterns.

    Wildcards are stripped and the rest is matched as a substring or
    suffix. This is for display only; it is not gitignore semantics.
    """
    for pattern in patterns:
        cleaned = pattern.pattern.replace("**", "").replace("*", "")
        if not cleaned:
            continue
        if cleaned in path or path.endswith(cleaned):
            return True
    return False
