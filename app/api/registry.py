"""
Registry endpoints.

List, add and remove watched directories.
"""

from fastapi import APIRouter

from app.models.schemas import DirectoryRequest, RegistryList, RegistryResult
from domains.directory_monitor.registry import get_registry_store

router = APIRouter()


@router.get("", response_model=RegistryList)
def list_registry():
    """
    List registered directories.

    Reads the registry document directly; a missing document is empty.
    """
    return RegistryList(monitors=get_registry_store().list())


@router.post("/add", response_model=RegistryResult)
def add_directory(request: DirectoryRequest):
    """Register a directory. It must exist."""
    return get_registry_store().add(request.directory)


@router.post("/remove", response_model=RegistryResult)
def remove_directory(request: DirectoryRequest):
    """Deregister a directory."""
    return get_registry_store().remove(request.directory)
