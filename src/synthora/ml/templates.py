"""
ML use case template catalogue.

Fixed mapping from category to the default MLConfig. Total over
``MLCategory``; unknown categories get the generic default. Lookups return
fresh copies so callers may mutate them.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any

from ..core import ir

logger = logging.getLogger(__name__)

DEFAULT_TRAIN_TEST_SPLIT = 0.8

# Use case ids name directories below the models dir.
_USE_CASE_ID = re.compile(r"[A-Za-z0-9_-]+")


def _config(
    target: str,
    features: list[str],
    model_type: ir.ModelType,
    data_source: str,
    strategy: ir.ValidationStrategy,
    metrics: list[str],
    endpoint: str,
    latency: float,
    error_rate: float = 0.01,
    alert_channels: list[str] | None = None,
) -> ir.MLConfig:
    return ir.MLConfig(
        target_variable=target,
        features=features,
        model_type=model_type,
        training_config=ir.TrainingConfig(
            data_source=data_source,
            train_test_split=DEFAULT_TRAIN_TEST_SPLIT,
            validation_strategy=strategy,
            evaluation_metrics=metrics,
        ),
        deployment_config=ir.DeploymentConfig(
            endpoint=endpoint,
            autoscaling=True,
            monitoring=ir.MonitoringConfig(
                latency_threshold=latency,
                error_rate_threshold=error_rate,
                drift_detection=True,
                alert_channels=alert_channels if alert_channels is not None else ["email"],
            ),
        ),
    )


GENERIC_TEMPLATE = _config(
    target="target",
    features=[],
    model_type=ir.ModelType.AUTOML,
    data_source="",
    strategy=ir.ValidationStrategy.HOLDOUT,
    metrics=["accuracy"],
    endpoint="/ml/predict",
    latency=200,
    alert_channels=[],
)

TEMPLATES: dict[ir.MLCategory, ir.MLConfig] = {
    ir.MLCategory.CHURN_PREDICTION: _config(
        target="churned",
        features=[
            "days_since_last_login",
            "total_sessions",
            "avg_session_duration",
            "feature_usage_count",
            "support_tickets_count",
        ],
        model_type=ir.ModelType.GRADIENT_BOOSTING,
        data_source="user_events",
        strategy=ir.ValidationStrategy.HOLDOUT,
        metrics=["accuracy", "precision", "recall", "auc"],
        endpoint="/ml/predict/churn",
        latency=200,
    ),
    ir.MLCategory.LEAD_SCORING: _config(
        target="converted",
        features=[
            "page_views",
            "time_on_site",
            "email_opens",
            "form_submissions",
            "company_size",
            "industry",
        ],
        model_type=ir.ModelType.RANDOM_FOREST,
        data_source="lead_events",
        strategy=ir.ValidationStrategy.CV,
        metrics=["accuracy", "precision", "recall", "f1"],
        endpoint="/ml/predict/lead-score",
        latency=150,
    ),
    ir.MLCategory.CONVERSION_OPTIMIZATION: _config(
        target="converted",
        features=[
            "funnel_step",
            "time_in_step",
            "previous_steps",
            "device_type",
            "traffic_source",
        ],
        model_type=ir.ModelType.LOGISTIC_REGRESSION,
        data_source="conversion_events",
        strategy=ir.ValidationStrategy.TIMESERIES,
        metrics=["accuracy", "auc"],
        endpoint="/ml/predict/conversion",
        latency=100,
    ),
    ir.MLCategory.ANOMALY_DETECTION: _config(
        target="is_anomaly",
        features=[
            "request_rate",
            "error_rate",
            "response_time",
            "unique_users",
            "hour_of_day",
        ],
        model_type=ir.ModelType.AUTOML,
        data_source="system_metrics",
        strategy=ir.ValidationStrategy.TIMESERIES,
        metrics=["precision", "recall", "f1"],
        endpoint="/ml/predict/anomaly",
        latency=50,
        error_rate=0.005,
        alert_channels=["slack", "email"],
    ),
    ir.MLCategory.RECOMMENDATION: _config(
        target="interaction",
        features=[
            "user_history",
            "item_features",
            "collaborative_features",
            "contextual_features",
        ],
        model_type=ir.ModelType.NEURAL_NETWORK,
        data_source="interaction_events",
        strategy=ir.ValidationStrategy.HOLDOUT,
        metrics=["accuracy", "precision@k"],
        endpoint="/ml/predict/recommendation",
        latency=300,
    ),
    ir.MLCategory.LTV_PREDICTION: _config(
        target="lifetime_value",
        features=[
            "total_revenue",
            "order_count",
            "avg_order_value",
            "days_since_first_purchase",
            "days_since_last_purchase",
        ],
        model_type=ir.ModelType.GRADIENT_BOOSTING,
        data_source="transaction_events",
        strategy=ir.ValidationStrategy.CV,
        metrics=["mae", "rmse"],
        endpoint="/ml/predict/ltv",
        latency=200,
    ),
    ir.MLCategory.RISK_SCORING: _config(
        target="is_high_risk",
        features=[
            "account_age_days",
            "failed_payments",
            "chargeback_count",
            "transaction_velocity",
            "country_risk",
        ],
        model_type=ir.ModelType.RANDOM_FOREST,
        data_source="risk_events",
        strategy=ir.ValidationStrategy.CV,
        metrics=["precision", "recall", "auc"],
        endpoint="/ml/predict/risk",
        latency=150,
        error_rate=0.005,
        alert_channels=["slack", "email"],
    ),
    ir.MLCategory.CUSTOM: GENERIC_TEMPLATE,
}


def get_template(category: ir.MLCategory | str | None) -> ir.MLConfig:
    """
    Default MLConfig for a category.

    Accepts loose spellings ("churn", "lead-scoring"); anything unknown
    yields the generic automl default. Never raises.
    """
    resolved = ir.MLCategory.coerce(category)
    return TEMPLATES.get(resolved, GENERIC_TEMPLATE).model_copy(deep=True)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        elif value is not None:
            merged[key] = value
    return merged


def config_with_defaults(
    category: ir.MLCategory | str | None,
    overrides: dict[str, Any] | None = None,
) -> ir.MLConfig:
    """
    The category template with explicitly given fields laid on top.

    ``overrides`` uses the wire shape (camelCase or snake_case keys) and may
    be partial at any depth, e.g. ``{"trainingConfig": {"trainTestSplit": 0.7}}``.
    """
    return overlay_config(get_template(category), overrides)


def overlay_config(base: ir.MLConfig, overrides: dict[str, Any] | None) -> ir.MLConfig:
    """Copy of ``base`` with the explicitly set fields of ``overrides`` applied."""
    if not overrides:
        return base.model_copy(deep=True)
    normalized = ir.MLConfig.model_validate(overrides).model_dump(
        by_alias=True, exclude_unset=True
    )
    merged = _deep_merge(base.model_dump(by_alias=True), normalized)
    return ir.MLConfig.model_validate(merged)


def default_use_case_name(category: ir.MLCategory) -> str:
    if category == ir.MLCategory.CUSTOM:
        return "Custom Model"
    return category.value.replace("_", " ").title()


def _usable_id(candidate: Any) -> str | None:
    if candidate is None:
        return None
    if isinstance(candidate, str) and _USE_CASE_ID.fullmatch(candidate):
        return candidate
    logger.warning(f"Ignoring unusable use case id {candidate!r}; assigning a fresh one")
    return None


def build_use_case(
    partial: dict[str, Any],
    *,
    app_id: str | None = None,
    now: datetime | None = None,
    use_case_id: str | None = None,
) -> ir.MLUseCase:
    """
    Complete a partial use case description from its category template.

    ``partial`` may carry ``name``, ``description``, ``category``, ``appId``
    and a partial ``config``. Config fields it leaves out come from the
    template; fields it sets win. A caller-supplied id is kept only when it
    consists of letters, digits, ``_`` and ``-``; otherwise a fresh id is
    assigned. The result starts in ``configuring``.

    Raises:
        pydantic.ValidationError: If the partial config has the wrong shape
    """
    category = ir.MLCategory.coerce(partial.get("category"))
    config = config_with_defaults(category, partial.get("config"))
    now = now or datetime.now(timezone.utc)
    return ir.MLUseCase(
        id=_usable_id(use_case_id) or _usable_id(partial.get("id")) or uuid.uuid4().hex,
        name=partial.get("name") or default_use_case_name(category),
        description=partial.get("description") or "",
        category=category,
        template_id=category.value,
        app_id=app_id or partial.get("appId") or partial.get("app_id") or "",
        config=config,
        status=ir.MLStatus.CONFIGURING,
        created_at=now,
        updated_at=now,
    )
