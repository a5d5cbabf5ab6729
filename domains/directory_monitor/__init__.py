"""
Directory Monitor Domain

Orchestrates per-directory watch processes and reads what they produce:
- Registry of watched directories
- Watch process probing and lifecycle (start/stop/refresh)
- Manifest parsing and tree building
- Exclude pattern resolution
- Recent change extraction from watch logs

State is reconciled by periodic polling of the process table and files,
not by subscribing to an event stream.
"""

__all__ = [
    "changelog",
    "excludes",
    "lifecycle",
    "manifest",
    "probe",
    "registry",
    "tree",
    "watchers",
]
