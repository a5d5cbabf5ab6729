"""
Recent change extraction from watch logs.

Each monitor run logs into a directory under the logs root named with a
fixed prefix and the normalised base name of the watched directory.
Change lines look like:

    [2026-01-19 16:10:57][fswatch] Change detected: /abs/path/file.txt
"""

import re
from pathlib import Path
from typing import List, Optional

from loguru import logger

from app.models.schemas import RecentChange
from app.utils.config import Settings, get_settings
from app.utils.helpers import normalise_log_name


def _latest_log_dir(logs_root: Path, prefix: str, token: str) -> Optional[Path]:
    """Most recently modified log directory for the normalised name."""
    try:
        candidates = [
            entry
            for entry in logs_root.iterdir()
            if entry.is_dir() and entry.name.startswith(prefix) and token in entry.name
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda entry: entry.stat().st_mtime)
    except OSError:
        return None


def parse_changes(content: str, utility: str, limit: int) -> List[RecentChange]:
    """
    Extract the last `limit` change events, newest first.

    Lines that carry the marker but do not fit the grammar are dropped.
    """
    marker = f"[{utility}] Change detected:"
    line_pattern = re.compile(
        r"\[([^\]]+)\]\[" + re.escape(utility) + r"\] Change detected: (.+)"
    )

    change_lines = [line for line in content.splitlines() if marker in line]
    changes = []

    for line in change_lines[-limit:] if limit > 0 else []:
        match = line_pattern.search(line)
        if match:
            changes.append(RecentChange(timestamp=match.group(1), file=match.group(2)))

    changes.reverse()
    return changes


def recent_changes(
    directory: str, limit: Optional[int] = None, settings: Optional[Settings] = None
) -> List[RecentChange]:
    """
    Most recent change events recorded for a directory.

    Missing logs yield an empty list.
    """
    settings = settings or get_settings()
    limit = settings.recent_changes_limit if limit is None else limit

    token = normalise_log_name(Path(directory).name)
    log_dir = _latest_log_dir(settings.get_logs_dir(), settings.log_dir_prefix, token)
    if log_dir is None:
        logger.debug(f"No log directory for {directory}")
        return []

    try:
        log_files = sorted(path for path in log_dir.iterdir() if path.name.endswith(".log"))
        if not log_files:
            return []
        content = log_files[0].read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Could not read logs in {log_dir}: {e}")
        return []

    return parse_changes(content, settings.watch_utility, limit)
