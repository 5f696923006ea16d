"""
Conversation types for Synthora IR.

A ConversationContext is owned by exactly one session of the conversation
state machine; nothing in it is shared across sessions.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from .appspec import AppSpecification
from .base import SpecModel
from .ml import MLUseCase


class IntentType(str, Enum):
    CREATE_APP = "create_app"
    MODIFY_APP = "modify_app"
    ADD_FEATURE = "add_feature"
    CREATE_ML_USECASE = "create_ml_usecase"
    DEPLOY_MODEL = "deploy_model"
    VIEW_INSIGHTS = "view_insights"
    CONFIGURE_INTEGRATION = "configure_integration"
    QUESTION = "question"
    OTHER = "other"


class Intent(SpecModel):
    """Classified intent of one utterance."""

    type: IntentType = IntentType.OTHER
    confidence: float = 0.0
    entities: dict[str, Any] = Field(default_factory=dict)

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, v: float) -> float:
        if v != v:  # NaN
            return 0.0
        return min(max(v, 0.0), 1.0)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ArtifactType(str, Enum):
    SPEC = "spec"
    MODEL = "model"
    CODE = "code"


class Artifact(SpecModel):
    """Structured object attached to a response, as opposed to its text."""

    type: ArtifactType
    content: Any = None


class Message(SpecModel):
    role: Role
    content: str
    timestamp: datetime
    artifacts: list[Artifact] = Field(default_factory=list)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


class ConversationContext(SpecModel):
    session_id: str
    user_id: str
    state: SessionState = SessionState.UNINITIALIZED
    history: list[Message] = Field(default_factory=list)
    current_spec: AppSpecification | None = None
    current_ml_use_case: MLUseCase | None = None

    @property
    def app_id(self) -> str | None:
        return self.current_spec.id if self.current_spec else None

    def recent_history(self, limit: int = 5) -> list[Message]:
        return self.history[-limit:]
