"""
Deterministic normalization of extracted specification fragments.

The language model never assigns ids. Every id below the application is
derived from the app id, the collection and the entity's natural key, so the
same fragment normalized against the same app always yields the same ids.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from ..core import ir

Clock = Callable[[], datetime]

# Fixed namespace for derived ids; changing it changes every derived id.
ID_NAMESPACE = uuid.UUID("6f1c3a52-8a47-4b8e-9d1f-5a0c2e7b9d34")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_app_id() -> str:
    return uuid.uuid4().hex


def derive_id(parent_id: str, collection: str, key: str) -> str:
    return uuid.uuid5(ID_NAMESPACE, f"{parent_id}/{collection}/{key}").hex


def natural_key(collection: str, entity: ir.SpecModel) -> str:
    """
    Key that identifies an entity within its collection when it has no id.

    Models, screens and workflows use their name; permissions use
    resource + action; integrations use their type.
    """
    if collection == "permissions":
        return f"{entity.resource}:{entity.action.value}"
    if collection == "integrations":
        return entity.type.value
    return entity.name


def _with_component_ids(screen: ir.Screen) -> ir.Screen:
    components = [
        c if c.id else c.model_copy(update={"id": derive_id(screen.id, "components", str(i))})
        for i, c in enumerate(screen.components)
    ]
    return screen.model_copy(update={"components": components})


def _with_step_ids(workflow: ir.Workflow) -> ir.Workflow:
    steps = [
        s if s.id else s.model_copy(update={"id": derive_id(workflow.id, "steps", str(i))})
        for i, s in enumerate(workflow.steps)
    ]
    return workflow.model_copy(update={"steps": steps})


def _assign_collection(
    app_id: str,
    collection: str,
    entities: list,
    existing: list,
) -> list:
    known = {natural_key(collection, e): e.id for e in existing if e.id}
    taken: set[str] = {e.id for e in entities if e.id}
    assigned = []
    for entity in entities:
        if not entity.id:
            key = natural_key(collection, entity)
            entity_id = known.get(key)
            if entity_id is None or entity_id in taken:
                entity_id = derive_id(app_id, collection, key)
                n = 2
                while entity_id in taken:
                    entity_id = derive_id(app_id, collection, f"{key}#{n}")
                    n += 1
            taken.add(entity_id)
            entity = entity.model_copy(update={"id": entity_id})
        if collection == "screens":
            entity = _with_component_ids(entity)
        elif collection == "workflows":
            entity = _with_step_ids(entity)
        assigned.append(entity)
    return assigned


def assign_ids(
    fragment: ir.AppSpecification,
    app_id: str,
    existing: ir.AppSpecification | None = None,
) -> ir.AppSpecification:
    """
    Give the fragment and every nested entity an id.

    Entities that already carry an id keep it. An entity without one adopts
    the id of the ``existing`` entity with the same natural key in the same
    collection, otherwise it gets a derived id.
    """
    updates: dict = {"id": app_id}
    for collection in ir.COLLECTIONS:
        updates[collection] = _assign_collection(
            app_id,
            collection,
            getattr(fragment, collection),
            getattr(existing, collection) if existing is not None else [],
        )
    return fragment.model_copy(update=updates)


def new_specification(
    fragment: ir.AppSpecification,
    now: datetime,
    app_id: str | None = None,
) -> ir.AppSpecification:
    """Turn a create_app fragment into version 0.1.0 of a new application."""
    spec = assign_ids(fragment, app_id or new_app_id())
    return spec.model_copy(
        update={"version": ir.INITIAL_VERSION, "created_at": now, "updated_at": now}
    )


def normalize_delta(
    fragment: ir.AppSpecification,
    current: ir.AppSpecification,
) -> ir.AppSpecification:
    """Bind a modification fragment to the current app's ids."""
    return assign_ids(fragment, current.id, existing=current)
