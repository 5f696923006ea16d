"""
Shared pydantic configuration for Synthora IR types.

Specifications travel as camelCase JSON (``dataModels``, ``targetModel``)
while Python code uses snake_case attributes. Both spellings are accepted on
input; ``to_wire`` always emits camelCase.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SpecModel(BaseModel):
    """Base class for every IR type."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
        extra="ignore",
        protected_namespaces=(),
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON-compatible wire format."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
