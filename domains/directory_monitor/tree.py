"""
Tree builder for manifest listings.

Turns the flat file list of a manifest into a directory hierarchy. Node
identity is the cumulative path; sibling order is first-seen order.
Aggregate counts, exclude marks and sorting are separate passes.
"""

from typing import Dict, Iterable, List, Sequence, Tuple, Union

from loguru import logger

from app.models.schemas import DirectoryNode, ExcludePattern, FileNode, FileRecord
from domains.directory_monitor.excludes import is_excluded

Node = Union[FileNode, DirectoryNode]


def build_tree(records: Iterable[FileRecord]) -> List[Node]:
    """
    Build a tree from flat file records.

    Args:
        records: Manifest records with slash-separated relative paths

    Returns:
        Root-level nodes
    """
    roots: List[Node] = []
    directories: Dict[str, DirectoryNode] = {}
    files: Dict[str, FileNode] = {}

    for record in records:
        parts = [part for part in record.path.split("/") if part]
        if not parts:
            continue

        siblings = roots
        current = ""

        for depth, part in enumerate(parts):
            current = f"{current}/{part}" if current else part
            is_last = depth == len(parts) - 1

            if current in files:
                if not is_last:
                    logger.debug(f"Skipping {record.path}: {current} is a file")
                break

            node = directories.get(current)
            if node is None:
                if is_last and record.kind == "file":
                    leaf = FileNode(
                        name=part,
                        path=current,
                        size=record.size,
                        modified=record.modified,
                    )
                    files[current] = leaf
                    siblings.append(leaf)
                    break

                node = DirectoryNode(name=part, path=current)
                directories[current] = node
                siblings.append(node)

            siblings = node.children

    return roots


def annotate_counts(nodes: Sequence[Node]) -> Tuple[int, int]:
    """
    Set descendant file and directory counts on every directory node.

    Returns:
        (files, directories) below the given nodes
    """
    file_total = 0
    dir_total = 0

    for node in nodes:
        if isinstance(node, DirectoryNode):
            files, dirs = annotate_counts(node.children)
            node.file_count = files
            node.dir_count = dirs
            file_total += files
            dir_total += dirs + 1
        else:
            file_total += 1

    return file_total, dir_total


def count_files(nodes: Sequence[Node]) -> int:
    """Number of file leaves in the tree."""
    return sum(
        count_files(node.children) if isinstance(node, DirectoryNode) else 1
        for node in nodes
    )


def mark_excluded(nodes: Sequence[Node], patterns: Sequence[ExcludePattern]) -> None:
    """Flag nodes whose path matches an exclude pattern."""
    if not patterns:
        return

    for node in nodes:
        node.excluded = is_excluded(node.path, patterns)
        if isinstance(node, DirectoryNode):
            mark_excluded(node.children, patterns)


def sort_tree(nodes: Sequence[Node]) -> List[Node]:
    """Directories first, then by name. Children are sorted in place."""
    for node in nodes:
        if isinstance(node, DirectoryNode):
            node.children = sort_tree(node.children)

    return sorted(
        nodes,
        key=lambda node: (not isinstance(node, DirectoryNode), node.name.lower()),
    )
