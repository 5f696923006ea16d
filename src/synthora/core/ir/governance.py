"""
Access and integration types for Synthora IR.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from .base import SpecModel


class PermissionAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class PermissionRule(SpecModel):
    """Grants ``roles`` the ``action`` on ``resource`` (usually a model name)."""

    id: str | None = None
    resource: str = ""
    action: PermissionAction = PermissionAction.READ
    roles: list[str] = Field(default_factory=list)
    condition: str | None = None


class IntegrationType(str, Enum):
    EMAIL = "email"
    SLACK = "slack"
    STRIPE = "stripe"
    CUSTOM = "custom"


class Integration(SpecModel):
    id: str | None = None
    type: IntegrationType = IntegrationType.CUSTOM
    config: dict[str, Any] = Field(default_factory=dict)
    credentials: dict[str, str] | None = None
