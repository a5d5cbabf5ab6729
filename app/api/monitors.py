"""
Monitor control endpoints.

Start, stop, probe and refresh the watch process of a directory. Start and
refresh block for a bounded settle/wait interval, so these handlers are
plain functions and run in the thread pool.
"""

from fastapi import APIRouter
from loguru import logger

from app.models.schemas import (
    MonitorActionResult,
    MonitorOverview,
    MonitorStatus,
    RefreshResult,
)
from app.utils.helpers import require_directory
from domains.directory_monitor.lifecycle import get_monitor_controller
from domains.directory_monitor.manifest import manifest_path
from domains.directory_monitor.registry import get_registry_store

router = APIRouter()


@router.get("/overview", response_model=MonitorOverview)
def monitor_overview():
    """
    Status of every registered directory.

    A directory whose probe fails is reported with an error instead of
    failing the whole overview.
    """
    directories = get_registry_store().directories()
    return MonitorOverview(monitors=get_monitor_controller().status_many(directories))


@router.get("/status/{directory:path}", response_model=MonitorStatus)
def monitor_status(directory: str):
    """
    Probe the watch process of a directory.

    Args:
        directory: Watched directory path

    Returns:
        Running state, pid, uptime and manifest modification time
    """
    return get_monitor_controller().status(directory)


@router.post("/start/{directory:path}", response_model=MonitorActionResult)
def start_monitor(directory: str):
    """Start the watch process unless one is already running."""
    return get_monitor_controller().start(directory)


@router.post("/stop/{directory:path}", response_model=MonitorActionResult)
def stop_monitor(directory: str):
    """Stop every watch and helper process for the directory."""
    return get_monitor_controller().stop(directory)


@router.post("/refresh/{directory:path}", response_model=RefreshResult)
def refresh_manifest(directory: str):
    """
    Regenerate the manifest of a directory.

    When the directory is registered, its registry entry is stamped with
    the update time.
    """
    directory = require_directory(directory)
    result = get_monitor_controller().refresh(directory)

    if result.manifest_updated:
        manifest = str(manifest_path(directory))
        if not get_registry_store().record_update(directory, manifest):
            logger.debug(f"{directory} is not registered; registry left unchanged")

    return result
