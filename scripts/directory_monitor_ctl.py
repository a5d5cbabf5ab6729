#!/usr/bin/env python3
"""Operator CLI for the directory monitor.

Drives the same operations as the HTTP API from a shell, e.g.::

    python scripts/directory_monitor_ctl.py status ~/projects
    python scripts/directory_monitor_ctl.py start ~/projects
    python scripts/directory_monitor_ctl.py tree ~/projects --sort
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel

from app.models.schemas import DirectoryNode
from app.utils.config import get_settings
from app.utils.errors import DirectoryMonitorError, InvalidRequestError
from app.utils.helpers import format_bytes, require_directory
from domains.directory_monitor.changelog import recent_changes
from domains.directory_monitor.excludes import load_excludes
from domains.directory_monitor.lifecycle import MonitorController
from domains.directory_monitor.manifest import read_manifest
from domains.directory_monitor.registry import RegistryStore
from domains.directory_monitor.tree import annotate_counts, build_tree, count_files, sort_tree

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def _directory(raw: str) -> str:
    """Expand user and relative paths before normalising."""
    return require_directory(str(Path(raw).expanduser().absolute()))


def render_tree(nodes: Sequence, depth: int = 0) -> List[str]:
    """Indented text rendering of manifest tree nodes."""
    lines = []
    indent = "  " * depth

    for node in nodes:
        if isinstance(node, DirectoryNode):
            lines.append(f"{indent}{node.name}/ ({node.file_count} files, {node.dir_count} dirs)")
            lines.extend(render_tree(node.children, depth + 1))
        else:
            lines.append(f"{indent}{node.name} ({format_bytes(node.size)})")

    return lines


def _emit(model: BaseModel) -> None:
    print(model.model_dump_json(indent=2))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Control per-directory watch processes and inspect manifests.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for diagnostics on stderr (default: from settings).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List registered directories.")
    status = commands.add_parser("status", help="Probe watch processes.")
    status.add_argument(
        "directory",
        nargs="?",
        help="Directory to probe (default: every registered directory).",
    )

    for name, text in (
        ("add", "Register a directory."),
        ("remove", "Deregister a directory."),
        ("start", "Start the watch process."),
        ("stop", "Stop the watch process."),
        ("refresh", "Regenerate the manifest."),
        ("excludes", "Show exclude patterns."),
    ):
        command = commands.add_parser(name, help=text)
        command.add_argument("directory")

    tree = commands.add_parser("tree", help="Print the manifest as a tree.")
    tree.add_argument("directory")
    tree.add_argument("--sort", action="store_true", help="Directories first, then by name.")

    changes = commands.add_parser("changes", help="Show recent change events.")
    changes.add_argument("directory")
    changes.add_argument("--limit", type=int, default=None, help="Number of events.")

    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    """Execute one parsed command."""
    settings = get_settings()
    registry = RegistryStore(settings)
    controller = MonitorController(settings)

    if args.command == "list":
        for entry in registry.list():
            print(f"{entry.directory}\t{entry.last_update_display or '-'}")
        return EXIT_OK

    if args.command == "status":
        if args.directory:
            _emit(controller.status(_directory(args.directory)))
        else:
            for status in controller.status_many(registry.directories()):
                _emit(status)
        return EXIT_OK

    directory = _directory(args.directory)

    if args.command == "add":
        _emit(registry.add(directory))
    elif args.command == "remove":
        _emit(registry.remove(directory))
    elif args.command == "start":
        _emit(controller.start(directory))
    elif args.command == "stop":
        _emit(controller.stop(directory))
    elif args.command == "refresh":
        _emit(controller.refresh(directory))
    elif args.command == "excludes":
        _emit(load_excludes(directory, settings))
    elif args.command == "changes":
        for change in recent_changes(directory, args.limit, settings):
            print(f"{change.timestamp}\t{change.file}")
    elif args.command == "tree":
        document = read_manifest(directory, settings)
        if document is None:
            logger.error(f"No manifest found in {directory}; run refresh first")
            return EXIT_FAILED
        nodes = build_tree(document.files)
        annotate_counts(nodes)
        listed = count_files(nodes)
        if listed != document.total_files:
            logger.warning(f"Manifest summary reports {document.total_files} files; listing has {listed}")
        if args.sort:
            nodes = sort_tree(nodes)
        print(f"{document.directory or directory} @ {document.timestamp or '-'}")
        print(f"{document.total_files} files, {document.total_directories} directories")
        print("\n".join(render_tree(nodes)))

    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)

    logger.remove()
    logger.add(
        sys.stderr,
        format="<level>{level: <8}</level> | {message}",
        level=(args.log_level or get_settings().log_level).upper(),
    )

    try:
        return run(args)
    except InvalidRequestError as e:
        logger.error(e.message)
        return EXIT_INVALID
    except DirectoryMonitorError as e:
        logger.error(e.message)
        return EXIT_FAILED


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
