"""
Structural validation for Synthora specifications.

Checks referential integrity, uniqueness and required-field presence. It
does not try to decide whether a specification makes business sense.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from pydantic import ValidationError

from . import ir


@dataclass(frozen=True)
class Violation:
    """
    One broken invariant.

    Attributes:
        entity_id: Id (or name, when the id is missing) of the offending entity
        rule: Stable rule code, e.g. ``unresolved_relation``
        message: Human-readable explanation
    """

    entity_id: str
    rule: str
    message: str


@dataclass
class ValidationResult:
    violations: list[Violation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def add(self, entity_id: str | None, rule: str, message: str) -> None:
        self.violations.append(Violation(entity_id or "<unassigned>", rule, message))

    def extend(self, other: ValidationResult) -> None:
        self.violations.extend(other.violations)

    def rules(self) -> set[str]:
        return {v.rule for v in self.violations}

    def render(self) -> str:
        """Guidance text listing every violation, one per line."""
        if self.is_valid:
            return "The specification is valid."
        lines = ["I couldn't apply that change because it would break the app specification:"]
        lines.extend(f"- {v.message}" for v in self.violations)
        return "\n".join(lines)


def _duplicates(values: Iterable[str]) -> set[str]:
    return {v for v, n in Counter(values).items() if n > 1}


_WORD = re.compile(r"[A-Za-z0-9]+")
_NON_IDENT = re.compile(r"\W+")

# Columns every generated table already has.
RESERVED_FIELD_NAMES = frozenset({"id", "created_at", "updated_at"})


def _module_key(name: str) -> str:
    """File and table stem a model name renders to."""
    return "_".join(_WORD.findall(name)).lower()


def _page_key(name: str) -> str:
    """Page component stem a screen name renders to."""
    return "".join(w[0].upper() + w[1:] for w in _WORD.findall(name))


def _field_key(name: str) -> str:
    """Attribute name a field renders to."""
    return _NON_IDENT.sub("_", name.strip()).strip("_")


def _collisions(names: Iterable[str], key) -> list[list[str]]:
    """Groups of distinct names that render to the same non-empty key."""
    groups: dict[str, list[str]] = {}
    for name in dict.fromkeys(names):
        k = key(name)
        if k:
            groups.setdefault(k, []).append(name)
    return [g for g in groups.values() if len(g) > 1]


def _check_ids(result: ValidationResult, kind: str, entities: list, label: str) -> None:
    """Every entity needs an id, unique within its collection."""
    ids = []
    for entity in entities:
        key = getattr(entity, "name", None) or getattr(entity, "resource", None) or kind
        if not entity.id:
            result.add(key, "missing_id", f"{label} '{key}' has no id.")
        else:
            ids.append(entity.id)
    for dup in sorted(_duplicates(ids)):
        result.add(dup, "duplicate_id", f"{label} id '{dup}' is used more than once.")


def validate_data_models(spec: ir.AppSpecification) -> ValidationResult:
    """
    Validate data models.

    Checks:
    - Model names present and unique, also after conversion to file names
    - Field names present and unique within a model, and not reserved
    - Reference fields name a target model that exists
    - Relation targets resolve
    - Index fields exist on the model
    """
    result = ValidationResult()
    _check_ids(result, "model", spec.data_models, "Data model")

    names = spec.model_names
    known = set(names)
    for dup in sorted(_duplicates(names)):
        result.add(dup, "duplicate_model_name", f"Data model name '{dup}' is used more than once.")
    for group in _collisions(names, _module_key):
        offender = next(m for m in spec.data_models if m.name == group[-1])
        result.add(
            offender.id or offender.name,
            "colliding_model_name",
            f"Data model names {group} differ only in case or punctuation; they would share "
            f"the generated files for '{_module_key(group[0])}'.",
        )

    for model in spec.data_models:
        model_id = model.id or model.name
        if not model.name.strip():
            result.add(model_id, "missing_name", "A data model has an empty name.")

        for dup in sorted(_duplicates(model.field_names)):
            result.add(
                model_id,
                "duplicate_field_name",
                f"Data model '{model.name}' has duplicate field '{dup}'.",
            )

        for group in _collisions(model.field_names, _field_key):
            result.add(
                model_id,
                "colliding_field_name",
                f"Data model '{model.name}' fields {group} would share the attribute "
                f"'{_field_key(group[0])}'.",
            )

        for fld in model.fields:
            if not fld.name.strip():
                result.add(model_id, "missing_name", f"Data model '{model.name}' has a field with no name.")
            if _field_key(fld.name).lower() in RESERVED_FIELD_NAMES:
                result.add(
                    model_id,
                    "reserved_field_name",
                    f"Field '{model.name}.{fld.name}' clashes with the built-in column "
                    f"'{_field_key(fld.name).lower()}'.",
                )
            if fld.is_reference:
                if not fld.target_model:
                    result.add(
                        model_id,
                        "reference_missing_target",
                        f"Field '{model.name}.{fld.name}' is a reference but names no target model.",
                    )
                elif fld.target_model not in known:
                    result.add(
                        model_id,
                        "unresolved_reference",
                        f"Field '{model.name}.{fld.name}' references unknown model '{fld.target_model}'.",
                    )

        for relation in model.relations:
            if relation.target_model not in known:
                result.add(
                    model_id,
                    "unresolved_relation",
                    f"Data model '{model.name}' has a relation to unknown model "
                    f"'{relation.target_model}'.",
                )

        field_names = set(model.field_names)
        for index in model.indexes:
            missing = [f for f in index.fields if f not in field_names]
            if not index.fields or missing:
                result.add(
                    model_id,
                    "invalid_index",
                    f"Data model '{model.name}' has an index over unknown fields {missing or '[]'}.",
                )

    return result


def validate_screens(spec: ir.AppSpecification) -> ValidationResult:
    """
    Validate screens.

    Checks:
    - Screen paths start with '/' and are unique within the app
    - Screen names map to distinct page components
    - Component data sources of kind 'model' resolve to a data model
    - ML integrations name a use case
    """
    result = ValidationResult()
    _check_ids(result, "screen", spec.screens, "Screen")

    known = set(spec.model_names)
    for dup in sorted(_duplicates(s.path for s in spec.screens)):
        result.add(
            next(s.id or s.name for s in spec.screens if s.path == dup),
            "duplicate_screen_path",
            f"Screen path '{dup}' is used by more than one screen.",
        )

    for group in _collisions((s.name for s in spec.screens), _page_key):
        offender = next(s for s in spec.screens if s.name == group[-1])
        result.add(
            offender.id or offender.name,
            "colliding_screen_name",
            f"Screen names {group} would share the page component '{_page_key(group[0])}Page'.",
        )

    for screen in spec.screens:
        screen_id = screen.id or screen.name
        if not screen.name.strip():
            result.add(screen_id, "missing_name", "A screen has an empty name.")
        if not screen.path.startswith("/"):
            result.add(screen_id, "invalid_path", f"Screen '{screen.name}' path '{screen.path}' must start with '/'.")

        for component in screen.components:
            source = component.data_source
            if source is not None and not source.is_external and source.source not in known:
                result.add(
                    screen_id,
                    "unresolved_data_source",
                    f"Screen '{screen.name}' reads from unknown model '{source.source}'.",
                )
            if component.ml_integration is not None and not component.ml_integration.use_case_id:
                result.add(
                    screen_id,
                    "ml_integration_missing_use_case",
                    f"Screen '{screen.name}' has an ML widget bound to no use case.",
                )

    return result


def validate_workflows(spec: ir.AppSpecification) -> ValidationResult:
    """
    Validate workflows.

    Checks:
    - Trigger target models resolve
    - Step ids unique within a workflow
    - Every successor id resolves within the same workflow
    """
    result = ValidationResult()
    _check_ids(result, "workflow", spec.workflows, "Workflow")

    known = set(spec.model_names)
    for workflow in spec.workflows:
        workflow_id = workflow.id or workflow.name
        if workflow.trigger.model and workflow.trigger.model not in known:
            result.add(
                workflow_id,
                "unresolved_trigger_model",
                f"Workflow '{workflow.name}' is triggered by unknown model '{workflow.trigger.model}'.",
            )

        step_ids = [s.id for s in workflow.steps if s.id]
        if len(step_ids) != len(workflow.steps):
            result.add(workflow_id, "missing_id", f"Workflow '{workflow.name}' has a step with no id.")
        for dup in sorted(_duplicates(step_ids)):
            result.add(workflow_id, "duplicate_step_id", f"Workflow '{workflow.name}' repeats step id '{dup}'.")

        known_steps = set(step_ids)
        for step in workflow.steps:
            for successor in step.successor_ids():
                if successor not in known_steps:
                    result.add(
                        workflow_id,
                        "unresolved_step",
                        f"Workflow '{workflow.name}' step '{step.id}' continues to unknown step "
                        f"'{successor}'.",
                    )

    return result


def validate_permissions(spec: ir.AppSpecification) -> ValidationResult:
    result = ValidationResult()
    _check_ids(result, "permission", spec.permissions, "Permission rule")
    for rule in spec.permissions:
        if not rule.resource.strip():
            result.add(rule.id, "missing_resource", "A permission rule names no resource.")
    return result


def validate_integrations(spec: ir.AppSpecification) -> ValidationResult:
    result = ValidationResult()
    _check_ids(result, "integration", spec.integrations, "Integration")
    return result


def validate(spec: ir.AppSpecification) -> ValidationResult:
    """
    Run every structural check over a specification.

    Returns:
        ValidationResult; valid when it holds no violations
    """
    result = ValidationResult()
    if not spec.id:
        result.add(spec.name, "missing_id", "The application has no id.")
    if not spec.name.strip():
        result.add(spec.id, "missing_name", "The application has no name.")

    result.extend(validate_data_models(spec))
    result.extend(validate_screens(spec))
    result.extend(validate_workflows(spec))
    result.extend(validate_permissions(spec))
    result.extend(validate_integrations(spec))
    return result


def validate_use_case(use_case: ir.MLUseCase, spec: ir.AppSpecification | None) -> ValidationResult:
    """
    Validate an ML use case against the app it is bound to.

    Checks:
    - Bound to the given app
    - Target variable present
    - Train/test split strictly between 0 and 1
    """
    result = ValidationResult()
    use_case_id = use_case.id or use_case.name
    if spec is None or not spec.id or use_case.app_id != spec.id:
        result.add(use_case_id, "unbound_use_case", f"Use case '{use_case.name}' is not bound to the current app.")
    if not use_case.config.target_variable.strip():
        result.add(use_case_id, "missing_target", f"Use case '{use_case.name}' has no target variable.")
    split = use_case.config.training_config.train_test_split
    if not 0 < split < 1:
        result.add(
            use_case_id,
            "invalid_split",
            f"Use case '{use_case.name}' train/test split {split} must be between 0 and 1.",
        )
    return result


def violations_from_error(error: ValidationError, entity_id: str = "<candidate>") -> list[Violation]:
    """Convert a pydantic shape error on a candidate into violations."""
    violations = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        violations.append(Violation(entity_id, "invalid_shape", f"{location}: {item['msg']}"))
    return violations
