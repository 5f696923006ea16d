"""Test doubles shared across the Synthora test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from synthora.core.fileset import FileTree

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class ScriptedLM:
    """
    Language model stub that replays queued replies in order.

    A queued exception is raised instead of returned. Every call is recorded
    as ``(system_prompt, turns, structured_output)``.
    """

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.calls: list[tuple[str, list[dict[str, str]], bool]] = []

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def complete(self, system_prompt, turns, *, structured_output=False):
        self.calls.append((system_prompt, list(turns), structured_output))
        if not self.replies:
            return {} if structured_output else ""
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class MemoryWriter:
    """FileWriter that keeps written trees in memory."""

    def __init__(self) -> None:
        self.written: dict[Path, FileTree] = {}

    async def write_tree(self, base_path: Path, tree: FileTree) -> None:
        self.written.setdefault(Path(base_path), {}).update(tree)


def intent(type_: str, confidence: float = 0.9, **entities: Any) -> dict[str, Any]:
    """Classifier reply for ``type_``."""
    return {"type": type_, "confidence": confidence, "entities": entities}


