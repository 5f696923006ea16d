"""
Workflow types for Synthora IR.

A workflow is a trigger plus an ordered list of steps. A step's successor is
either a single step id or a conditional true/false pair; every successor
must resolve within the same workflow.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from .base import SpecModel


class TriggerType(str, Enum):
    EVENT = "event"
    SCHEDULE = "schedule"
    WEBHOOK = "webhook"
    ML_THRESHOLD = "mlThreshold"


class WorkflowTrigger(SpecModel):
    """
    What starts a workflow.

    ``model`` names the DataModel the trigger watches (event triggers); it
    must resolve to a model of the same app when set.
    """

    type: TriggerType = TriggerType.EVENT
    config: dict[str, Any] = Field(default_factory=dict)
    model: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str) and v.replace("-", "_").lower() == "ml_threshold":
            return TriggerType.ML_THRESHOLD
        return v


class StepType(str, Enum):
    CONDITION = "condition"
    ACTION = "action"
    ML_PREDICTION = "mlPrediction"
    LOOP = "loop"


class ConditionalNext(SpecModel):
    condition: str
    true_step: str
    false_step: str


class WorkflowStep(SpecModel):
    id: str | None = None
    type: StepType = StepType.ACTION
    config: dict[str, Any] = Field(default_factory=dict)
    next_step: ConditionalNext | str | None = None

    def successor_ids(self) -> list[str]:
        """Step ids this step may continue to."""
        if self.next_step is None:
            return []
        if isinstance(self.next_step, ConditionalNext):
            return [self.next_step.true_step, self.next_step.false_step]
        return [self.next_step]


class Workflow(SpecModel):
    id: str | None = None
    name: str
    description: str | None = None
    trigger: WorkflowTrigger = Field(default_factory=WorkflowTrigger)
    steps: list[WorkflowStep] = Field(default_factory=list)
    enabled: bool = True
