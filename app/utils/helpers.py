"""
Helper utilities for the Directory Monitor.

Common functions used across domains.
"""

import hashlib
import re
from datetime import datetime, timezone
from typing import Optional

from app.utils.errors import InvalidRequestError


def hash_text(text: str) -> str:
    """Generate SHA256 hash of text."""
    return hashlib.sha256(text.encode()).hexdigest()


def now_iso() -> str:
    """Get current timestamp as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def display_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a timestamp for display, e.g. '2026-01-19 04:10:57 PM EST'."""
    moment = moment or datetime.now().astimezone()
    return moment.strftime("%Y-%m-%d %I:%M:%S %p %Z").strip()


def mtime_iso(timestamp: float) -> str:
    """Convert a file mtime to an ISO string in UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def require_directory(raw: Optional[str]) -> str:
    """
    Normalise a directory argument coming from a request.

    Proxies may strip the leading slash of a path parameter, so it is
    restored here. Trailing slashes are dropped so the same directory
    always yields the same key.

    Raises:
        InvalidRequestError: if no directory was given
    """
    directory = (raw or "").strip()
    if not directory:
        raise InvalidRequestError("Directory path is required")

    if not directory.startswith("/"):
        directory = "/" + directory
    if len(directory) > 1:
        directory = directory.rstrip("/") or "/"
    return directory


def directory_tag(directory: str) -> str:
    """Stable per-directory identifier attached to spawned processes."""
    return f"dm-{hash_text(directory)[:16]}"


def normalise_log_name(name: str) -> str:
    """Lower-case a name and replace every non-alphanumeric character with '_'."""
    return re.sub(r"[^a-z0-9]", "_", name.lower())


def format_elapsed(seconds: float) -> str:
    """
    Format elapsed seconds the way `ps -o etime` does: [[DD-]HH:]MM:SS.
    """
    total = max(int(seconds), 0)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)

    if days:
        return f"{days}-{hours:02d}:{minutes:02d}:{secs:02d}"
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_bytes(bytes_count: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024.0:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024.0
    return f"{bytes_count:.1f} PB"
