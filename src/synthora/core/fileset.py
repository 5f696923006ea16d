"""
File trees and the file-writing collaborator.

A FileTree maps relative POSIX paths to file contents. Writers persist a
tree under a base directory, creating intermediate directories as needed.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Protocol

logger = logging.getLogger(__name__)

FileTree = dict[str, str]


class FileWriter(Protocol):
    async def write_tree(self, base_path: Path, tree: FileTree) -> None: ...


def _safe_relative(rel: str) -> Path:
    path = PurePosixPath(rel)
    if path.is_absolute() or ".." in path.parts:
        raise ValueError(f"Refusing to write outside the output directory: {rel}")
    return Path(*path.parts)


def write_tree_sync(base_path: Path, tree: FileTree) -> list[Path]:
    """Write every file of ``tree`` below ``base_path`` and return the written paths."""
    written: list[Path] = []
    for rel in sorted(tree):
        target = base_path / _safe_relative(rel)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(tree[rel], encoding="utf-8")
        written.append(target)
    return written


class LocalFileWriter:
    """Writes trees to the local filesystem off the event loop."""

    async def write_tree(self, base_path: Path, tree: FileTree) -> None:
        written = await asyncio.to_thread(write_tree_sync, base_path, tree)
        logger.info(f"Wrote {len(written)} files to {base_path}")
