"""
Pydantic models for the Directory Monitor API.

Shared data models across the application.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


# =====================================================
# Registry Models
# =====================================================

class WatchedDirectory(BaseModel):
    """A directory registered for monitoring."""
    directory: str
    manifest: Optional[str] = None
    last_update: Optional[str] = None
    last_update_display: Optional[str] = None


class RegistryResult(BaseModel):
    """Outcome of a registration change."""
    success: bool
    message: str
    output: str = ""


class DirectoryRequest(BaseModel):
    """Request body naming a directory."""
    directory: Optional[str] = None


class RegistryList(BaseModel):
    """Registered directories."""
    monitors: List[WatchedDirectory]


# =====================================================
# Process Models
# =====================================================

class MonitorState(str, Enum):
    """Lifecycle state of a directory's watch process."""
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class ProbeResult(BaseModel):
    """Point-in-time view of the watch processes for one directory."""
    running: bool = False
    pid: Optional[int] = None
    uptime: Optional[str] = None
    pids: List[int] = []
    match_count: int = 0


class MonitorStatus(BaseModel):
    """Status of one watched directory."""
    directory: str
    state: MonitorState
    running: bool
    pid: Optional[int] = None
    uptime: Optional[str] = None
    match_count: int = 0
    last_manifest_update: Optional[str] = None
    error: Optional[str] = None


class MonitorActionResult(BaseModel):
    """Outcome of a start or stop request."""
    success: bool
    message: str
    directory: str
    state: MonitorState
    already_running: bool = False
    pid: Optional[int] = None
    stopped_pids: List[int] = []


class RefreshResult(BaseModel):
    """Outcome of a one-shot manifest regeneration."""
    success: bool
    message: str
    directory: str
    manifest_updated: bool = False
    waited_seconds: float = 0.0


class MonitorOverview(BaseModel):
    """Status for every registered directory."""
    monitors: List[MonitorStatus]


# =====================================================
# Manifest Models
# =====================================================

class FileRecord(BaseModel):
    """One entry of a manifest file listing."""
    model_config = ConfigDict(frozen=True)

    path: str
    size: int
    modified: str
    kind: Literal["file", "directory"] = "file"


class ManifestDocument(BaseModel):
    """Parsed manifest text."""
    directory: Optional[str] = None
    timestamp: Optional[str] = None
    total_files: int = 0
    total_directories: int = 0
    files: List[FileRecord] = []


class FileNode(BaseModel):
    """Leaf of the manifest tree."""
    kind: Literal["file"] = "file"
    name: str
    path: str
    size: int = 0
    modified: Optional[str] = None
    excluded: bool = False


class DirectoryNode(BaseModel):
    """Directory of the manifest tree."""
    kind: Literal["directory"] = "directory"
    name: str
    path: str
    children: List["TreeNode"] = []
    file_count: Optional[int] = None
    dir_count: Optional[int] = None
    excluded: bool = False


TreeNode = Annotated[Union[FileNode, DirectoryNode], Field(discriminator="kind")]

DirectoryNode.model_rebuild()


class ManifestView(BaseModel):
    """Manifest of a directory as returned to clients."""
    directory: str
    timestamp: Optional[str] = None
    total_files: int = 0
    total_directories: int = 0
    tree: List[TreeNode] = []
    error: Optional[str] = None


# =====================================================
# Exclude Models
# =====================================================

class ExcludePattern(BaseModel):
    """Ignore pattern from an exclude definition file."""
    pattern: str
    is_directory: bool = False


class ExcludeSource(str, Enum):
    """Which definition file supplied the patterns."""
    PRIMARY = "primary"
    FALLBACK = "fallback"
    NONE = "none"


class ExcludesView(BaseModel):
    """Exclude patterns for a directory."""
    patterns: List[ExcludePattern]
    source: ExcludeSource
    filename: Optional[str] = None


# =====================================================
# Activity Models
# =====================================================

class RecentChange(BaseModel):
    """Change event extracted from a watch log."""
    timestamp: str
    file: str


class ChangesView(BaseModel):
    """Recent activity for a directory."""
    recent_changes: List[RecentChange]
    manifest_last_modified: Optional[str] = None
