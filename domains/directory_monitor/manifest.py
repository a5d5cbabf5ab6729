"""
Manifest parser.

The external manifest generator writes a text snapshot into each watched
directory:

    ======================================================================
    LHI Directory Monitor - MANIFEST
    ======================================================================
    Timestamp: 2026-01-19 04:10:57 PM EST
    Directory: /Users/someone/projects
    File Listing:
    -------------
    ".claude/PLAN.md" (4422 bytes) - Modified: 2025-08-06 13:58:55
    Summary:
    --------
    Total Files: 123
    Total Directories: 45

The summary counts win when present and non-zero; otherwise they are
derived from the listing, so manifests written without a footer still
report sensible totals.
"""

import re
from pathlib import Path
from typing import List, Optional, Set

from loguru import logger

from app.models.schemas import FileRecord, ManifestDocument
from app.utils.config import Settings, get_settings
from app.utils.errors import OperationalError
from app.utils.helpers import mtime_iso

FILE_LINE = re.compile(r'^"([^"]+)"\s+\((\d+)\s+bytes\)\s+-\s+Modified:\s+(.+)$')
TOTAL_FILES = re.compile(r"^Total Files:\s*(\d+)")
TOTAL_DIRECTORIES = re.compile(r"^Total Directories:\s*(\d+)")

SEPARATOR = "--------"


def parse_manifest(raw_text: str) -> ManifestDocument:
    """
    Parse manifest text into a ManifestDocument.

    Args:
        raw_text: Full manifest file content

    Returns:
        Parsed document with counts reconciled
    """
    directory = None
    timestamp = None
    total_files = 0
    total_directories = 0
    files: List[FileRecord] = []

    in_listing = False
    in_summary = False

    for line in raw_text.splitlines():
        if line.startswith("Timestamp:"):
            timestamp = line[len("Timestamp:"):].strip()
        elif line.startswith("Directory:"):
            directory = line[len("Directory:"):].strip()
        elif line.startswith("File Listing:"):
            in_listing, in_summary = True, False
            continue
        elif line.startswith("Summary:"):
            in_listing, in_summary = False, True
            continue
        elif line.startswith(SEPARATOR):
            continue

        if not line.strip():
            continue

        if in_summary:
            files_match = TOTAL_FILES.match(line)
            if files_match:
                total_files = int(files_match.group(1))
            dirs_match = TOTAL_DIRECTORIES.match(line)
            if dirs_match:
                total_directories = int(dirs_match.group(1))

        elif in_listing:
            match = FILE_LINE.match(line)
            if match:
                path, size, modified = match.groups()
                files.append(FileRecord(path=path, size=int(size), modified=modified.strip()))

    if total_files == 0:
        total_files = len(files)

    if total_directories == 0 and files:
        total_directories = len(implied_directories(files))

    return ManifestDocument(
        directory=directory,
        timestamp=timestamp,
        total_files=total_files,
        total_directories=total_directories,
        files=files,
    )


def implied_directories(files: List[FileRecord]) -> Set[str]:
    """Every intermediate directory implied by the file paths."""
    directories = set()

    for record in files:
        parts = record.path.split("/")
        current = ""
        for part in parts[:-1]:
            current = f"{current}/{part}" if current else part
            directories.add(current)

    return directories


def manifest_path(directory: str, settings: Optional[Settings] = None) -> Path:
    """Location of the manifest inside a watched directory."""
    settings = settings or get_settings()
    return Path(directory) / settings.manifest_filename


def read_manifest(directory: str, settings: Optional[Settings] = None) -> Optional[ManifestDocument]:
    """
    Read and parse the manifest of a directory.

    Returns:
        Parsed document, or None if no manifest has been generated yet

    Raises:
        OperationalError: if the manifest exists but cannot be read
    """
    path = manifest_path(directory, settings)

    if not path.is_file():
        logger.debug(f"No manifest at {path}")
        return None

    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise OperationalError(f"Failed to read manifest {path}: {e}") from e

    return parse_manifest(content)


def manifest_mtime(directory: str, settings: Optional[Settings] = None) -> Optional[str]:
    """Last modification time of the manifest as ISO string, if it exists."""
    try:
        stats = manifest_path(directory, settings).stat()
    except OSError:
        return None
    return mtime_iso(stats.st_mtime)
