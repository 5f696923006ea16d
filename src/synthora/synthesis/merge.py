"""
Last-writer merge of a normalized delta into the current specification.

Per collection, an incoming entity whose id matches an existing one replaces
it wholesale in place; unmatched entities are appended; existing entities the
delta does not mention are kept. Omitting a child inside a replaced entity
deletes that child.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from ..core import ir
from .normalize import utc_now

logger = logging.getLogger(__name__)

_SEMVER = re.compile(r"^(\d+)\.(\d+)\.(\d+)")

# Top-level scalars a delta may override when it sets them explicitly.
OVERRIDABLE = ("name", "description", "deployment")


def bump_patch(version: str) -> str:
    match = _SEMVER.match(version)
    if not match:
        logger.warning(f"Version '{version}' is not semantic; restarting from {ir.INITIAL_VERSION}")
        match = _SEMVER.match(ir.INITIAL_VERSION)
    major, minor, patch = (int(part) for part in match.groups())
    return f"{major}.{minor}.{patch + 1}"


def _merge_collection(existing: list, incoming: list) -> list:
    merged = list(existing)
    positions = {entity.id: i for i, entity in enumerate(merged) if entity.id}
    for entity in incoming:
        if entity.id and entity.id in positions:
            merged[positions[entity.id]] = entity
        else:
            if entity.id:
                positions[entity.id] = len(merged)
            merged.append(entity)
    return merged


def merge_specs(
    current: ir.AppSpecification,
    delta: ir.AppSpecification,
    now: datetime | None = None,
) -> ir.AppSpecification:
    """
    Merge ``delta`` into ``current``.

    Args:
        current: The accepted specification
        delta: Normalized delta (every entity carries an id)
        now: Timestamp recorded when content changes

    Returns:
        A new specification with the patch version bumped, or ``current``
        itself when the delta changes nothing
    """
    updates: dict = {}
    for collection in ir.COLLECTIONS:
        before = getattr(current, collection)
        after = _merge_collection(before, getattr(delta, collection))
        if after != before:
            updates[collection] = after

    for attr in OVERRIDABLE:
        if attr in delta.model_fields_set:
            value = getattr(delta, attr)
            if value is not None and value != getattr(current, attr):
                updates[attr] = value

    if not updates:
        logger.debug(f"Delta for app {current.id} changes nothing")
        return current

    updates["version"] = bump_patch(current.version)
    updates["updated_at"] = now or utc_now()
    merged = current.model_copy(update=updates)
    logger.info(
        f"Merged delta into app {current.id}: {', '.join(sorted(k for k in updates if k not in ('version', 'updated_at')))} "
        f"-> v{merged.version}"
    )
    return merged
