"""Comparative analysis of security-architecture archetypes against organizational constraints."""

from securestack_referee.conflicts import ConflictDetector, detect_conflicts
from securestack_referee.engine import ENGINE_VERSION, RefereeEngine, analyze
from securestack_referee.exceptions import (
    ConfigValidationError,
    DataIntegrityError,
    InputRangeError,
    InputTypeError,
    IntakeError,
    IntakeValidationError,
    RefereeError,
)
from securestack_referee.intake import ConstraintIntake, process_profile
from securestack_referee.scorer import ArchitectureScorer, score_architectures
from securestack_referee.tie_classifier import TieClassifier, classify_tie

__all__ = [
    "ENGINE_VERSION",
    "RefereeEngine",
    "analyze",
    "ConstraintIntake",
    "process_profile",
    "ArchitectureScorer",
    "score_architectures",
    "ConflictDetector",
    "detect_conflicts",
    "TieClassifier",
    "classify_tie",
    "RefereeError",
    "IntakeError",
    "InputTypeError",
    "InputRangeError",
    "IntakeValidationError",
    "DataIntegrityError",
    "ConfigValidationError",
]
