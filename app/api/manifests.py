"""
Manifest, exclude and activity endpoints.

Everything here is read-only and reconstructed from files on every call.
"""

from typing import Optional

from fastapi import APIRouter

from app.models.schemas import ChangesView, ExcludesView, ManifestView
from app.utils.config import get_settings
from app.utils.helpers import now_iso, require_directory
from domains.directory_monitor.changelog import recent_changes
from domains.directory_monitor.excludes import load_excludes
from domains.directory_monitor.manifest import manifest_mtime, read_manifest
from domains.directory_monitor.tree import annotate_counts, build_tree, mark_excluded, sort_tree

router = APIRouter()


@router.get("/manifest/{directory:path}", response_model=ManifestView)
def get_manifest(directory: str, sort: bool = False, mark_excludes: bool = True):
    """
    Parsed manifest of a directory as a tree.

    Args:
        directory: Watched directory path
        sort: Sort directories first, then by name (default: listing order)
        mark_excludes: Flag nodes matching the directory's exclude patterns

    Returns:
        Manifest summary and tree; an explanatory error when no manifest exists
    """
    directory = require_directory(directory)
    document = read_manifest(directory)

    if document is None:
        return ManifestView(
            directory=directory,
            error="No manifest file found. Click Refresh to generate one.",
        )

    tree = build_tree(document.files)
    annotate_counts(tree)
    if mark_excludes:
        mark_excluded(tree, load_excludes(directory).patterns)
    if sort:
        tree = sort_tree(tree)

    return ManifestView(
        directory=document.directory or directory,
        timestamp=document.timestamp or now_iso(),
        total_files=document.total_files,
        total_directories=document.total_directories,
        tree=tree,
    )


@router.get("/excludes/{directory:path}", response_model=ExcludesView)
def get_excludes(directory: str):
    """Exclude patterns from the primary file, else the fallback file."""
    return load_excludes(require_directory(directory))


@router.get("/changes/{directory:path}", response_model=ChangesView)
def get_changes(directory: str, limit: Optional[int] = None):
    """
    Most recent change events from the directory's watch log.

    Args:
        directory: Watched directory path
        limit: Number of events (default from settings)
    """
    directory = require_directory(directory)
    settings = get_settings()

    return ChangesView(
        recent_changes=recent_changes(directory, limit, settings),
        manifest_last_modified=manifest_mtime(directory, settings),
    )
