"""
Tests for the Synthora IR types.

Covers:
- camelCase / snake_case input and camelCase wire output
- Enum coercion (ML categories, workflow triggers)
- Intent confidence clamping
- ML use case lifecycle transitions
"""

from __future__ import annotations

import math

import pytest

from synthora.core import ir
from synthora.core.errors import InvalidTransition


class TestWireFormat:
    def test_accepts_camel_case_and_snake_case(self) -> None:
        camel = ir.FieldSpec.model_validate({"name": "owner", "type": "reference", "targetModel": "User"})
        snake = ir.FieldSpec.model_validate({"name": "owner", "type": "reference", "target_model": "User"})
        assert camel == snake
        assert camel.target_model == "User"

    def test_to_wire_emits_camel_case_without_nulls(self, crm_spec: ir.AppSpecification) -> None:
        wire = crm_spec.to_wire()
        assert "dataModels" in wire
        assert "data_models" not in wire
        assert "deployment" not in wire
        client = wire["dataModels"][0]
        assert client["relations"][0]["targetModel"] == "Deal"

    def test_wire_round_trip_preserves_spec(self, crm_spec: ir.AppSpecification) -> None:
        restored = ir.AppSpecification.model_validate(crm_spec.to_wire())
        assert restored == crm_spec

    def test_field_default_uses_default_value_alias(self) -> None:
        field = ir.FieldSpec.model_validate({"name": "status", "defaultValue": "open"})
        assert field.default == "open"
        assert field.to_wire()["defaultValue"] == "open"

    def test_unknown_keys_ignored(self) -> None:
        model = ir.DataModel.model_validate({"name": "Client", "colour": "blue"})
        assert model.name == "Client"

    def test_ml_integration_accepts_model_id(self) -> None:
        binding = ir.MLIntegration.model_validate({"modelId": "uc-1"})
        assert binding.use_case_id == "uc-1"


class TestMLCategory:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("churn_prediction", ir.MLCategory.CHURN_PREDICTION),
            ("Churn-Prediction", ir.MLCategory.CHURN_PREDICTION),
            ("churn", ir.MLCategory.CHURN_PREDICTION),
            ("lead scoring", ir.MLCategory.LEAD_SCORING),
            ("ltv", ir.MLCategory.LTV_PREDICTION),
            ("weather", ir.MLCategory.CUSTOM),
            (None, ir.MLCategory.CUSTOM),
            (42, ir.MLCategory.CUSTOM),
        ],
    )
    def test_coerce(self, raw, expected) -> None:
        assert ir.MLCategory.coerce(raw) == expected

    def test_use_case_coerces_category(self) -> None:
        use_case = ir.MLUseCase.model_validate({"category": "fraud"})
        assert use_case.category == ir.MLCategory.CUSTOM


class TestWorkflowTrigger:
    @pytest.mark.parametrize("raw", ["mlThreshold", "ml_threshold", "ml-threshold"])
    def test_ml_threshold_spellings(self, raw: str) -> None:
        trigger = ir.WorkflowTrigger.model_validate({"type": raw})
        assert trigger.type == ir.TriggerType.ML_THRESHOLD

    def test_conditional_successors(self) -> None:
        step = ir.WorkflowStep.model_validate(
            {"id": "s1", "nextStep": {"condition": "x > 1", "trueStep": "s2", "falseStep": "s3"}}
        )
        assert step.successor_ids() == ["s2", "s3"]
        assert ir.WorkflowStep(id="s4", next_step="s1").successor_ids() == ["s1"]
        assert ir.WorkflowStep(id="s5").successor_ids() == []


class TestIntent:
    @pytest.mark.parametrize("raw,expected", [(1.7, 1.0), (-0.2, 0.0), (0.42, 0.42), (math.nan, 0.0)])
    def test_confidence_clamped(self, raw: float, expected: float) -> None:
        assert ir.Intent(type=ir.IntentType.QUESTION, confidence=raw).confidence == expected


class TestUseCaseLifecycle:
    def test_configuring_to_training_to_deployed(self) -> None:
        use_case = ir.MLUseCase(id="uc")
        use_case.transition_to(ir.MLStatus.TRAINING)
        use_case.transition_to(ir.MLStatus.DEPLOYED)
        assert use_case.status == ir.MLStatus.DEPLOYED

    def test_same_status_is_noop(self) -> None:
        use_case = ir.MLUseCase(id="uc")
        use_case.transition_to(ir.MLStatus.CONFIGURING)
        assert use_case.status == ir.MLStatus.CONFIGURING

    def test_cannot_deploy_unconfigured(self) -> None:
        use_case = ir.MLUseCase(id="uc")
        with pytest.raises(InvalidTransition):
            use_case.transition_to(ir.MLStatus.DEPLOYED)

    def test_archived_is_terminal(self) -> None:
        use_case = ir.MLUseCase(id="uc", status=ir.MLStatus.ARCHIVED)
        with pytest.raises(InvalidTransition):
            use_case.transition_to(ir.MLStatus.TRAINING)
