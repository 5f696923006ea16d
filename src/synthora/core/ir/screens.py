"""
Screen and component types for Synthora IR.

Screens become generated frontend pages; components may bind to a data
model or to an ML use case.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field

from .base import SpecModel


class ScreenType(str, Enum):
    LIST = "list"
    DETAIL = "detail"
    FORM = "form"
    DASHBOARD = "dashboard"
    CUSTOM = "custom"


class LayoutType(str, Enum):
    SINGLE = "single"
    SPLIT = "split"
    GRID = "grid"
    FLEX = "flex"


class GridSize(SpecModel):
    cols: int = 1
    rows: int = 1


class LayoutSection(SpecModel):
    id: str | None = None
    grid: GridSize | None = None
    components: list[str] = Field(default_factory=list)  # component ids


class Layout(SpecModel):
    type: LayoutType = LayoutType.SINGLE
    sections: list[LayoutSection] = Field(default_factory=list)


class ComponentType(str, Enum):
    TEXT = "text"
    INPUT = "input"
    BUTTON = "button"
    TABLE = "table"
    CHART = "chart"
    FORM = "form"
    CARD = "card"
    LIST = "list"
    KANBAN = "kanban"
    CALENDAR = "calendar"
    ML_WIDGET = "mlWidget"


class DataSourceType(str, Enum):
    """Where a component reads from. Only ``model`` must resolve locally."""

    MODEL = "model"
    API = "api"
    ML_MODEL = "mlModel"


class FilterSpec(SpecModel):
    field: str
    operator: str = "eq"
    value: Any = None


class SortSpec(SpecModel):
    field: str
    direction: str = "asc"


class DataSource(SpecModel):
    type: DataSourceType = DataSourceType.MODEL
    source: str
    filters: list[FilterSpec] = Field(default_factory=list)
    sort: list[SortSpec] = Field(default_factory=list)
    limit: int | None = None

    @property
    def is_external(self) -> bool:
        return self.type != DataSourceType.MODEL


class EventAction(SpecModel):
    type: str = "navigate"  # navigate | apiCall | workflow | mlPrediction
    target: str = ""
    params: dict[str, Any] = Field(default_factory=dict)


class ComponentEvent(SpecModel):
    trigger: str = "click"  # click | change | submit | load
    action: EventAction = Field(default_factory=EventAction)


class DisplayType(str, Enum):
    BADGE = "badge"
    SCORE = "score"
    RECOMMENDATION = "recommendation"
    CHART = "chart"
    ALERT = "alert"


class MLIntegration(SpecModel):
    """Binds a component to an MLUseCase by id."""

    use_case_id: str = Field(
        default="",
        validation_alias=AliasChoices("useCaseId", "use_case_id", "modelId"),
        serialization_alias="useCaseId",
    )
    display_type: DisplayType = DisplayType.BADGE
    input_mapping: dict[str, str] = Field(default_factory=dict)
    output_mapping: dict[str, str] = Field(default_factory=dict)
    threshold: float | None = None
    refresh_interval: int | None = None


class Component(SpecModel):
    id: str | None = None
    type: ComponentType = ComponentType.TEXT
    props: dict[str, Any] = Field(default_factory=dict)
    data_source: DataSource | None = None
    events: list[ComponentEvent] = Field(default_factory=list)
    ml_integration: MLIntegration | None = None


class CustomEvent(SpecModel):
    name: str
    trigger: str
    properties: list[str] = Field(default_factory=list)


class TrackingConfig(SpecModel):
    auto_track: bool = True
    custom_events: list[CustomEvent] = Field(default_factory=list)


class Screen(SpecModel):
    """
    A page of the generated frontend.

    Attributes:
        id: Opaque identifier
        name: Display name; also derives the page component name
        path: Route path, unique within the app
        type: Screen kind
        layout: Layout description
        components: Components on the page
        permissions: Roles allowed to view the screen
        tracking: Analytics tracking settings
    """

    id: str | None = None
    name: str
    path: str
    type: ScreenType = ScreenType.CUSTOM
    layout: Layout = Field(default_factory=Layout)
    components: list[Component] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
