"""
Domain types for Synthora IR.

A DataModel is the unit the generator turns into storage, request/response
shapes and a route set.
"""

from __future__ import annotations

from pydantic import Field

from .base import SpecModel
from .fields import DataHook, FieldSpec, IndexSpec, Relation


class DataModel(SpecModel):
    """
    A persisted entity of the generated application.

    Attributes:
        id: Opaque identifier, assigned once during normalization
        name: Model name, unique within the app; drives table and route naming
        description: Optional human description
        fields: Ordered field list
        relations: Relations to other models (by name)
        indexes: Index definitions
        hooks: Lifecycle hooks
    """

    id: str | None = None
    name: str
    description: str | None = None
    fields: list[FieldSpec] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)
    indexes: list[IndexSpec] = Field(default_factory=list)
    hooks: list[DataHook] = Field(default_factory=list)

    def get_field(self, name: str) -> FieldSpec | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]
