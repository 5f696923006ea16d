"""
Data models for structured language-model output.

These envelopes wrap what the extraction prompts return. They are parsed
leniently: a malformed envelope becomes an empty one instead of an error.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class _Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def from_raw(cls, raw: dict[str, Any]):
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed {cls.__name__}: {e.error_count()} error(s)")
            return cls()


class ClassifierOutput(_Envelope):
    """
    Raw classifier reply.

    ``type`` is mandatory; a reply without it is unusable. Confidence and
    entities are coerced rather than rejected.
    """

    type: str
    confidence: float = 0.0
    entities: dict[str, Any] = Field(default_factory=dict)

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, v: Any) -> float:
        try:
            return float(v)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("entities", mode="before")
    @classmethod
    def _coerce_entities(cls, v: Any) -> dict[str, Any]:
        return v if isinstance(v, dict) else {}


class SpecExtraction(_Envelope):
    """Reply text plus an app specification (full or delta) as raw JSON."""

    summary: str = ""
    app: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("app", "spec", "specification")
    )

    @property
    def is_empty(self) -> bool:
        return not self.app


class UseCaseExtraction(_Envelope):
    summary: str = ""
    use_case: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("useCase", "use_case", "mlUseCase")
    )
