"""
Application specification types for Synthora IR.

This module contains the top-level AppSpecification that the conversation
builds up turn by turn and the generator consumes.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .base import SpecModel
from .domain import DataModel
from .governance import Integration, PermissionRule
from .screens import Screen
from .workflows import Workflow

INITIAL_VERSION = "0.1.0"
DEFAULT_BACKEND_PORT = 8000
DEFAULT_FRONTEND_PORT = 3000

# Top-level entity collections merged id-by-id.
COLLECTIONS = ("data_models", "screens", "workflows", "permissions", "integrations")


class DeploymentSettings(SpecModel):
    """Port overrides for the generated deployment descriptor."""

    backend_port: int = DEFAULT_BACKEND_PORT
    frontend_port: int = DEFAULT_FRONTEND_PORT


class AppSpecification(SpecModel):
    """
    Complete application specification.

    This is the root of the IR tree. Every accepted conversation turn
    produces a new value that supersedes the previous one.

    Attributes:
        id: Stable application id, assigned at creation only
        name: Application name
        description: Human description
        version: Semantic version, bumped on every content-changing merge
        created_at: Creation timestamp
        updated_at: Timestamp of the last content-changing merge
        data_models: Ordered data models
        screens: Ordered screens; the generated route table follows this order
        workflows: Workflows
        permissions: Permission rules
        integrations: External integrations
        deployment: Optional port overrides
    """

    id: str | None = None
    name: str = "Untitled App"
    description: str = ""
    version: str = INITIAL_VERSION
    created_at: datetime | None = None
    updated_at: datetime | None = None
    data_models: list[DataModel] = Field(default_factory=list)
    screens: list[Screen] = Field(default_factory=list)
    workflows: list[Workflow] = Field(default_factory=list)
    permissions: list[PermissionRule] = Field(default_factory=list)
    integrations: list[Integration] = Field(default_factory=list)
    deployment: DeploymentSettings | None = None

    def get_model(self, name: str) -> DataModel | None:
        for model in self.data_models:
            if model.name == name:
                return model
        return None

    def get_screen(self, screen_id: str) -> Screen | None:
        for screen in self.screens:
            if screen.id == screen_id:
                return screen
        return None

    @property
    def model_names(self) -> list[str]:
        return [m.name for m in self.data_models]

    @property
    def ports(self) -> DeploymentSettings:
        return self.deployment or DeploymentSettings()
