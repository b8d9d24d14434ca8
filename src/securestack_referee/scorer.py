"""Scorer - Phase 3 of the analysis.

Scores the three architecture variants against a constraint profile.
Produces a weighted score on the 1-10 scale and a discrete confidence
level for each variant.
"""

import logging
from typing import Callable, NamedTuple, Optional

from .config import ScoringConfidenceConfig
from .conflicts import ConflictDetector
from .exceptions import DataIntegrityError
from .reference_data import (
    SCALE_MAX,
    SCALE_MIN,
    ArchitectureDescriptor,
    ReferenceData,
    default_reference_data,
)
from .schema import (
    ArchitectureScore,
    ArchitectureVariant,
    ConfidenceLevel,
    ConflictDetectionResult,
    ConstraintProfile,
    DimensionContribution,
    EvaluationDimension,
    Severity,
)

logger = logging.getLogger(__name__)


class ConfidenceFactor(NamedTuple):
    """A confidence deduction: ``occurrences`` times ``penalty`` points."""
    name: str
    occurrences: Callable[[ConstraintProfile, ConflictDetectionResult], int]
    penalty: float


class ArchitectureScorer:
    """Scores architecture variants against organizational constraints.

    Scoring principles:
    - The dimension weighting table is data, not code
    - Weighted score is a weighted mean of base scores, so it stays on 1-10
    - Each variant is scored independently of the others
    - Confidence is always one of High/Medium/Low, never a raw number
    """

    def __init__(
        self,
        reference_data: Optional[ReferenceData] = None,
        confidence_config: Optional[ScoringConfidenceConfig] = None,
        conflict_detector: Optional[ConflictDetector] = None,
    ):
        """Initialize scorer with injected tables and confidence settings."""
        self.reference_data = reference_data or default_reference_data()
        self.confidence_config = confidence_config or ScoringConfidenceConfig()
        self.conflict_detector = conflict_detector or ConflictDetector(self.reference_data)
        self.confidence_factors = self._build_confidence_factors(self.confidence_config)

    def score(
        self,
        profile: ConstraintProfile,
        conflicts: Optional[ConflictDetectionResult] = None,
    ) -> list[ArchitectureScore]:
        """Score every architecture variant.

        Args:
            profile: Validated constraint profile
            conflicts: Conflict detection result for the same profile; detected
                here if not supplied

        Returns:
            One score per variant, in canonical variant order

        Raises:
            DataIntegrityError: If the reference tables are missing or malformed
        """
        if conflicts is None:
            conflicts = self.conflict_detector.detect(profile)

        weights = self.dimension_weights(profile)
        confidence = self.confidence_level(profile, conflicts)

        scores = [
            self._score_architecture(self._descriptor(variant), weights, confidence)
            for variant in ArchitectureVariant
        ]
        logger.debug(
            "Scored architectures: %s (confidence %s)",
            ", ".join(f"{s.architecture.value}={s.weighted_score}" for s in scores),
            confidence.value,
        )
        return scores

    def dimension_weights(self, profile: ConstraintProfile) -> dict[EvaluationDimension, float]:
        """Effective weight of each dimension for this profile."""
        weights = {}
        for dimension in EvaluationDimension:
            weighting = self.reference_data.weighting_for(dimension)
            if weighting is None:
                raise DataIntegrityError(f"No weighting configured for dimension {dimension.value}")
            weights[dimension] = weighting.weight_for(profile)

        if sum(weights.values()) <= 0:
            raise DataIntegrityError("Dimension weights must sum to a positive value")
        return weights

    def confidence_points(self, profile: ConstraintProfile, conflicts: ConflictDetectionResult) -> float:
        """Remaining points out of 100 after all applicable deductions."""
        points = 100.0
        for factor in self.confidence_factors:
            points -= factor.occurrences(profile, conflicts) * factor.penalty
        return points

    def confidence_level(self, profile: ConstraintProfile, conflicts: ConflictDetectionResult) -> ConfidenceLevel:
        return ConfidenceLevel.from_points(
            self.confidence_points(profile, conflicts),
            self.confidence_config.high_threshold,
            self.confidence_config.medium_threshold,
        )

    def _score_architecture(
        self,
        descriptor: ArchitectureDescriptor,
        weights: dict[EvaluationDimension, float],
        confidence: ConfidenceLevel,
    ) -> ArchitectureScore:
        """Score a single architecture."""
        breakdown = []
        for dimension in EvaluationDimension:
            base_score = descriptor.base_scores[dimension]
            weight = weights[dimension]
            breakdown.append(DimensionContribution(
                dimension=dimension,
                base_score=base_score,
                weight=round(weight, 4),
                weighted_contribution=round(base_score * weight, 4),
            ))

        total_weighted = sum(descriptor.base_scores[d] * w for d, w in weights.items())
        total_weights = sum(weights.values())
        weighted_score = total_weighted / total_weights

        return ArchitectureScore(
            architecture=descriptor.architecture,
            dimension_scores=dict(descriptor.base_scores),
            weighted_score=round(weighted_score, 2),
            confidence_level=confidence,
            dimension_breakdown=tuple(breakdown),
        )

    def _descriptor(self, variant: ArchitectureVariant) -> ArchitectureDescriptor:
        """Fetch a variant's base scores, checking them against the 1-10 scale."""
        descriptor = self.reference_data.descriptor_for(variant)
        if descriptor is None:
            raise DataIntegrityError(f"No base scores configured for {variant.value}")

        for dimension in EvaluationDimension:
            value = descriptor.base_scores.get(dimension)
            if value is None:
                raise DataIntegrityError(f"{variant.value} has no base score for {dimension.value}")
            if isinstance(value, bool) or not isinstance(value, int):
                raise DataIntegrityError(f"{variant.value} {dimension.value} score {value!r} is not an integer")
            if not SCALE_MIN <= value <= SCALE_MAX:
                raise DataIntegrityError(
                    f"{variant.value} {dimension.value} score {value} is outside {SCALE_MIN}-{SCALE_MAX}"
                )
        return descriptor

    @staticmethod
    def _build_confidence_factors(cfg: ScoringConfidenceConfig) -> list[ConfidenceFactor]:
        return [
            ConfidenceFactor(
                "incomplete input",
                lambda profile, conflicts: int(not profile.input_completeness),
                cfg.incomplete_input_penalty,
            ),
            ConfidenceFactor(
                "defaulted fields",
                lambda profile, conflicts: len(profile.assumptions),
                cfg.per_assumption_penalty,
            ),
            ConfidenceFactor(
                "constraint conflicts",
                lambda profile, conflicts: len(conflicts.warnings),
                cfg.per_conflict_penalty,
            ),
            ConfidenceFactor(
                "high-severity conflicts",
                lambda profile, conflicts: sum(1 for w in conflicts.warnings if w.severity == Severity.HIGH),
                cfg.high_severity_conflict_penalty,
            ),
        ]


def score_architectures(
    profile: ConstraintProfile,
    reference_data: Optional[ReferenceData] = None,
) -> list[ArchitectureScore]:
    """Score all architecture variants using the given (or shipped) tables."""
    return ArchitectureScorer(reference_data).score(profile)
