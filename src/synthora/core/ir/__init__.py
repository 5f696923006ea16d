"""
Synthora Intermediate Representation (IR) types.

This package contains all specification type definitions. Types are
organized into logical submodules; everything is re-exported here.
"""

# App Specification
from .appspec import (
    COLLECTIONS,
    DEFAULT_BACKEND_PORT,
    DEFAULT_FRONTEND_PORT,
    INITIAL_VERSION,
    AppSpecification,
    DeploymentSettings,
)
from .base import SpecModel

# Conversation
from .conversation import (
    Artifact,
    ArtifactType,
    ConversationContext,
    Intent,
    IntentType,
    Message,
    Role,
    SessionState,
)

# Domain
from .domain import DataModel

# Fields
from .fields import (
    DataHook,
    FieldSpec,
    FieldType,
    HookEvent,
    IndexSpec,
    OnDelete,
    Relation,
    RelationType,
    ValidationRule,
    ValidationRuleType,
)

# Access & integrations
from .governance import (
    Integration,
    IntegrationType,
    PermissionAction,
    PermissionRule,
)

# ML
from .ml import (
    USE_CASE_TRANSITIONS,
    DeploymentConfig,
    MLCategory,
    MLConfig,
    MLModel,
    MLStatus,
    MLUseCase,
    ModelArtifacts,
    ModelMetrics,
    ModelStatus,
    ModelType,
    MonitoringConfig,
    RetrainingTrigger,
    TrainingConfig,
    ValidationStrategy,
)

# Screens
from .screens import (
    Component,
    ComponentEvent,
    ComponentType,
    CustomEvent,
    DataSource,
    DataSourceType,
    DisplayType,
    EventAction,
    FilterSpec,
    GridSize,
    Layout,
    LayoutSection,
    LayoutType,
    MLIntegration,
    Screen,
    ScreenType,
    SortSpec,
    TrackingConfig,
)

# Workflows
from .workflows import (
    ConditionalNext,
    StepType,
    TriggerType,
    Workflow,
    WorkflowStep,
    WorkflowTrigger,
)

__all__ = [
    # App Specification
    "AppSpecification",
    "DeploymentSettings",
    "COLLECTIONS",
    "INITIAL_VERSION",
    "DEFAULT_BACKEND_PORT",
    "DEFAULT_FRONTEND_PORT",
    "SpecModel",
    # Conversation
    "Artifact",
    "ArtifactType",
    "ConversationContext",
    "Intent",
    "IntentType",
    "Message",
    "Role",
    "SessionState",
    # Domain
    "DataModel",
    # Fields
    "DataHook",
    "FieldSpec",
    "FieldType",
    "HookEvent",
    "IndexSpec",
    "OnDelete",
    "Relation",
    "RelationType",
    "ValidationRule",
    "ValidationRuleType",
    # Access & integrations
    "Integration",
    "IntegrationType",
    "PermissionAction",
    "PermissionRule",
    # ML
    "USE_CASE_TRANSITIONS",
    "DeploymentConfig",
    "MLCategory",
    "MLConfig",
    "MLModel",
    "MLStatus",
    "MLUseCase",
    "ModelArtifacts",
    "ModelMetrics",
    "ModelStatus",
    "ModelType",
    "MonitoringConfig",
    "RetrainingTrigger",
    "TrainingConfig",
    "ValidationStrategy",
    # Screens
    "Component",
    "ComponentEvent",
    "ComponentType",
    "CustomEvent",
    "DataSource",
    "DataSourceType",
    "DisplayType",
    "EventAction",
    "FilterSpec",
    "GridSize",
    "Layout",
    "LayoutSection",
    "LayoutType",
    "MLIntegration",
    "Screen",
    "ScreenType",
    "SortSpec",
    "TrackingConfig",
    # Workflows
    "ConditionalNext",
    "StepType",
    "TriggerType",
    "Workflow",
    "WorkflowStep",
    "WorkflowTrigger",
]
