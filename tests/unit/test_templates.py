"""Tests for the ML use case template catalogue."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from synthora.core import ir
from synthora.ml.templates import (
    GENERIC_TEMPLATE,
    TEMPLATES,
    build_use_case,
    config_with_defaults,
    get_template,
    overlay_config,
)
from tests.helpers import FIXED_NOW


class TestCatalogue:
    def test_total_over_categories(self) -> None:
        for category in ir.MLCategory:
            config = get_template(category)
            assert config.target_variable
            assert 0 < config.training_config.train_test_split < 1

    def test_churn_template(self) -> None:
        churn = get_template("churn_prediction")
        assert churn.target_variable == "churned"
        assert churn.model_type == ir.ModelType.GRADIENT_BOOSTING
        assert churn.training_config.train_test_split == 0.8
        assert churn.deployment_config.endpoint == "/ml/predict/churn"
        assert "days_since_last_login" in churn.features

    def test_unknown_category_gets_generic(self) -> None:
        assert get_template("weather") == GENERIC_TEMPLATE
        assert get_template(None) == GENERIC_TEMPLATE

    def test_returns_fresh_copies(self) -> None:
        first = get_template(ir.MLCategory.LEAD_SCORING)
        first.features.append("mutated")
        assert "mutated" not in get_template(ir.MLCategory.LEAD_SCORING).features
        assert "mutated" not in TEMPLATES[ir.MLCategory.LEAD_SCORING].features


class TestConfigWithDefaults:
    def test_no_overrides_equals_template(self) -> None:
        assert config_with_defaults("churn_prediction") == get_template("churn_prediction")

    def test_nested_partial_override(self) -> None:
        config = config_with_defaults(
            "churn_prediction", {"trainingConfig": {"trainTestSplit": 0.7}}
        )
        template = get_template("churn_prediction")
        assert config.training_config.train_test_split == 0.7
        assert config.training_config.data_source == template.training_config.data_source
        assert config.features == template.features

    def test_snake_case_override(self) -> None:
        config = config_with_defaults("lead_scoring", {"model_type": "neural_network"})
        assert config.model_type == ir.ModelType.NEURAL_NETWORK

    def test_explicit_empty_list_wins(self) -> None:
        config = config_with_defaults("churn_prediction", {"features": []})
        assert config.features == []

    def test_wrong_shape_raises(self) -> None:
        with pytest.raises(ValidationError):
            config_with_defaults("churn_prediction", {"modelType": "quantum"})

    def test_overlay_on_arbitrary_base(self) -> None:
        base = get_template("recommendation")
        config = overlay_config(base, {"deploymentConfig": {"autoscaling": False}})
        assert config.deployment_config.autoscaling is False
        assert config.deployment_config.endpoint == base.deployment_config.endpoint
        assert overlay_config(base, None) == base


class TestBuildUseCase:
    def test_default_fallback(self) -> None:
        use_case = build_use_case({"category": "churn_prediction"}, app_id="a1", now=FIXED_NOW)
        assert use_case.config == get_template(ir.MLCategory.CHURN_PREDICTION)
        assert use_case.category == ir.MLCategory.CHURN_PREDICTION
        assert use_case.template_id == "churn_prediction"
        assert use_case.status == ir.MLStatus.CONFIGURING
        assert use_case.name == "Churn Prediction"
        assert use_case.app_id == "a1"
        assert use_case.created_at == FIXED_NOW

    def test_unknown_category_is_custom(self) -> None:
        use_case = build_use_case({"category": "fraud", "name": "Fraud"})
        assert use_case.category == ir.MLCategory.CUSTOM
        assert use_case.config == GENERIC_TEMPLATE
        assert use_case.name == "Fraud"

    def test_app_id_from_partial(self) -> None:
        assert build_use_case({"appId": "a2"}).app_id == "a2"

    def test_explicit_id(self) -> None:
        assert build_use_case({}, use_case_id="uc-1").id == "uc-1"

    def test_id_from_partial(self) -> None:
        assert build_use_case({"id": "uc_2"}).id == "uc_2"

    @pytest.mark.parametrize("unsafe", ["../escape", "/abs", "a b", "", 42])
    def test_unusable_id_replaced(self, unsafe) -> None:
        from_arg = build_use_case({}, use_case_id=unsafe).id
        from_partial = build_use_case({"id": unsafe}).id
        for use_case_id in (from_arg, from_partial):
            assert use_case_id != unsafe
            assert use_case_id.isalnum()
