"""
Specification synthesis: intent classification, extraction, normalization and merge.
"""

from .classifier import IntentClassifier, build_turns
from .merge import bump_patch, merge_specs
from .normalize import assign_ids, derive_id, new_specification, normalize_delta, utc_now
from .synthesizer import DeltaKind, SpecificationDelta, SpecSynthesizer

__all__ = [
    "IntentClassifier",
    "build_turns",
    "bump_patch",
    "merge_specs",
    "assign_ids",
    "derive_id",
    "new_specification",
    "normalize_delta",
    "utc_now",
    "DeltaKind",
    "SpecificationDelta",
    "SpecSynthesizer",
]
