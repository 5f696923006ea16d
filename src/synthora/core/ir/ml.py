"""
ML use case types for Synthora IR.

A use case is a named ML capability (e.g. churn prediction) bound to one
application and configured through an MLConfig. Trained models are
simulated: their metrics always carry ``simulated=True``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from ..errors import InvalidTransition
from .base import SpecModel


class MLCategory(str, Enum):
    CHURN_PREDICTION = "churn_prediction"
    LEAD_SCORING = "lead_scoring"
    CONVERSION_OPTIMIZATION = "conversion_optimization"
    ANOMALY_DETECTION = "anomaly_detection"
    RECOMMENDATION = "recommendation"
    LTV_PREDICTION = "ltv_prediction"
    RISK_SCORING = "risk_scoring"
    CUSTOM = "custom"

    @classmethod
    def coerce(cls, value: Any) -> MLCategory:
        """
        Map loose category spellings onto the enumeration.

        "churn", "Churn-Prediction" and "churn_prediction" all map to
        CHURN_PREDICTION. Anything unrecognised is CUSTOM; never raises.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.CUSTOM
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            return _CATEGORY_ALIASES.get(key, cls.CUSTOM)


_CATEGORY_ALIASES: dict[str, MLCategory] = {
    "churn": MLCategory.CHURN_PREDICTION,
    "lead": MLCategory.LEAD_SCORING,
    "leads": MLCategory.LEAD_SCORING,
    "conversion": MLCategory.CONVERSION_OPTIMIZATION,
    "anomaly": MLCategory.ANOMALY_DETECTION,
    "anomalies": MLCategory.ANOMALY_DETECTION,
    "recommendations": MLCategory.RECOMMENDATION,
    "ltv": MLCategory.LTV_PREDICTION,
    "lifetime_value": MLCategory.LTV_PREDICTION,
    "risk": MLCategory.RISK_SCORING,
}


class MLStatus(str, Enum):
    CONFIGURING = "configuring"
    TRAINING = "training"
    DEPLOYED = "deployed"
    FAILED = "failed"
    ARCHIVED = "archived"


# Allowed use case lifecycle moves.
USE_CASE_TRANSITIONS: dict[MLStatus, frozenset[MLStatus]] = {
    MLStatus.CONFIGURING: frozenset({MLStatus.TRAINING}),
    MLStatus.TRAINING: frozenset({MLStatus.DEPLOYED, MLStatus.FAILED}),
    MLStatus.DEPLOYED: frozenset({MLStatus.ARCHIVED, MLStatus.FAILED, MLStatus.TRAINING}),
    MLStatus.FAILED: frozenset({MLStatus.TRAINING, MLStatus.ARCHIVED}),
    MLStatus.ARCHIVED: frozenset(),
}


class ModelType(str, Enum):
    AUTOML = "automl"
    LOGISTIC_REGRESSION = "logistic_regression"
    RANDOM_FOREST = "random_forest"
    GRADIENT_BOOSTING = "gradient_boosting"
    NEURAL_NETWORK = "neural_network"
    CUSTOM = "custom"


class ValidationStrategy(str, Enum):
    HOLDOUT = "holdout"
    CV = "cv"
    TIMESERIES = "timeseries"


class TrainingConfig(SpecModel):
    data_source: str = ""
    train_test_split: float = 0.8
    validation_strategy: ValidationStrategy = ValidationStrategy.HOLDOUT
    evaluation_metrics: list[str] = Field(default_factory=lambda: ["accuracy"])


class MonitoringConfig(SpecModel):
    latency_threshold: float = 200
    error_rate_threshold: float = 0.01
    drift_detection: bool = True
    alert_channels: list[str] = Field(default_factory=list)


class RetrainingTrigger(SpecModel):
    type: str = "manual"  # schedule | drift | performance | manual
    config: dict[str, Any] = Field(default_factory=dict)


class DeploymentConfig(SpecModel):
    endpoint: str = "/ml/predict"
    autoscaling: bool = True
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    retraining_trigger: RetrainingTrigger | None = None


class MLConfig(SpecModel):
    """Training and serving configuration of a use case."""

    target_variable: str = "target"
    features: list[str] = Field(default_factory=list)
    model_type: ModelType = ModelType.AUTOML
    hyperparameters: dict[str, Any] | None = None
    training_config: TrainingConfig = Field(default_factory=TrainingConfig)
    deployment_config: DeploymentConfig = Field(default_factory=DeploymentConfig)


class MLUseCase(SpecModel):
    id: str | None = None
    name: str = "Untitled Use Case"
    description: str = ""
    category: MLCategory = MLCategory.CUSTOM
    template_id: str | None = None
    app_id: str = ""
    config: MLConfig = Field(default_factory=MLConfig)
    status: MLStatus = MLStatus.CONFIGURING
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, v: Any) -> MLCategory:
        return MLCategory.coerce(v)

    def check_transition(self, status: MLStatus) -> None:
        """Raise InvalidTransition unless the use case may move to ``status``."""
        if status != self.status and status not in USE_CASE_TRANSITIONS[self.status]:
            raise InvalidTransition(
                f"Use case '{self.id}' cannot move from {self.status.value} to {status.value}"
            )

    def transition_to(self, status: MLStatus, when: datetime | None = None) -> None:
        """Move along the lifecycle, raising InvalidTransition on illegal moves."""
        self.check_transition(status)
        if status == self.status:
            return
        self.status = status
        if when is not None:
            self.updated_at = when


class ModelMetrics(SpecModel):
    """
    Evaluation metrics of a trained model.

    ``simulated`` is always True: no real training happens, the numbers are
    placeholders in a plausible band.
    """

    accuracy: float | None = None
    precision: float | None = None
    recall: float | None = None
    f1_score: float | None = None
    auc: float | None = None
    mae: float | None = None
    rmse: float | None = None
    custom: dict[str, float] | None = None
    simulated: bool = True


class ModelArtifacts(SpecModel):
    model_path: str
    feature_importance: dict[str, float] = Field(default_factory=dict)
    confusion_matrix: list[list[int]] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ModelStatus(str, Enum):
    TRAINING = "training"
    READY = "ready"
    DEPLOYED = "deployed"
    ARCHIVED = "archived"


class MLModel(SpecModel):
    id: str
    use_case_id: str
    version: int
    algorithm: ModelType
    features: list[str] = Field(default_factory=list)
    metrics: ModelMetrics
    artifacts: ModelArtifacts
    deployed_at: datetime | None = None
    status: ModelStatus = ModelStatus.TRAINING
