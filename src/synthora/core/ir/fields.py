"""
Field type definitions for Synthora IR.

This module contains the field type system used by data models: field
types, validation rules, relations, indexes and data hooks.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from .base import SpecModel


class FieldType(str, Enum):
    """Enumeration of supported field types."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    EMAIL = "email"
    URL = "url"
    JSON = "json"
    ARRAY = "array"
    REFERENCE = "reference"


class ValidationRuleType(str, Enum):
    MIN = "min"
    MAX = "max"
    PATTERN = "pattern"
    CUSTOM = "custom"


class ValidationRule(SpecModel):
    """A single validation rule attached to a field."""

    type: ValidationRuleType
    value: Any = None
    message: str = ""


class FieldSpec(SpecModel):
    """
    Specification for a single field in a data model.

    Attributes:
        name: Field identifier, unique within its model
        type: Field type
        required: Whether a value must be present
        unique: Whether values must be unique across records
        default: Optional default value
        validation: Optional validation rules
        target_model: Referenced DataModel name (required for ``reference``)
    """

    name: str
    type: FieldType = FieldType.STRING
    required: bool = False
    unique: bool = False
    default: Any = Field(default=None, alias="defaultValue")
    validation: list[ValidationRule] = Field(default_factory=list)
    description: str | None = None
    target_model: str | None = None

    @property
    def is_reference(self) -> bool:
        return self.type == FieldType.REFERENCE


class RelationType(str, Enum):
    ONE_TO_ONE = "oneToOne"
    ONE_TO_MANY = "oneToMany"
    MANY_TO_MANY = "manyToMany"


class OnDelete(str, Enum):
    CASCADE = "cascade"
    SET_NULL = "setNull"
    RESTRICT = "restrict"


class Relation(SpecModel):
    """Relationship from one data model to another, by target model name."""

    type: RelationType = RelationType.ONE_TO_MANY
    target_model: str
    foreign_key: str | None = None
    on_delete: OnDelete | None = None


class IndexSpec(SpecModel):
    """Database index over one or more fields of a model."""

    fields: list[str] = Field(default_factory=list)
    unique: bool = False


class HookEvent(str, Enum):
    BEFORE_CREATE = "beforeCreate"
    AFTER_CREATE = "afterCreate"
    BEFORE_UPDATE = "beforeUpdate"
    AFTER_UPDATE = "afterUpdate"
    BEFORE_DELETE = "beforeDelete"
    AFTER_DELETE = "afterDelete"


class DataHook(SpecModel):
    """Lifecycle hook; ``action`` is a function name or workflow id."""

    event: HookEvent
    action: str
