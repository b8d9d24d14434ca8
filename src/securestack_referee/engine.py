"""Referee Engine - runs a complete analysis.

Wires the four phases together:
1. Constraint intake (validation and defaults)
2. Conflict detection
3. Architecture scoring
4. Tie classification
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from .config import RefereeConfig, get_config
from .conflicts import ConflictDetector
from .intake import ConstraintIntake
from .reference_data import ReferenceData, default_reference_data
from .schema import AnalysisResult
from .scorer import ArchitectureScorer
from .tie_classifier import TieClassifier

logger = logging.getLogger(__name__)

ENGINE_VERSION = "1.0.0"


class RefereeEngine:
    """Comparative analysis of the three architecture variants.

    The engine holds only read-only tables and configuration, so a single
    instance can serve any number of analyses.
    """

    def __init__(
        self,
        reference_data: Optional[ReferenceData] = None,
        config: Optional[RefereeConfig] = None,
    ):
        self.reference_data = reference_data or default_reference_data()
        self.config = config or get_config()

        self.intake = ConstraintIntake(self.reference_data)
        self.conflict_detector = ConflictDetector(self.reference_data, self.config.reliability)
        self.scorer = ArchitectureScorer(
            self.reference_data,
            self.config.scoring_confidence,
            self.conflict_detector,
        )
        self.tie_classifier = TieClassifier(self.config.tie_thresholds, self.config.tie_confidence)

    def analyze(self, partial_input: Optional[Mapping[str, Any]] = None) -> AnalysisResult:
        """Run a full analysis on a partial constraint input.

        Raises:
            IntakeValidationError: If any provided constraint value is invalid.
            DataIntegrityError: If the reference tables are malformed.
        """
        intake = self.intake.process(partial_input)
        profile = intake.profile

        conflicts = self.conflict_detector.detect(profile)
        scores = self.scorer.score(profile, conflicts)
        ranked = sorted(scores, key=lambda s: s.weighted_score, reverse=True)
        tie = self.tie_classifier.classify(ranked)

        logger.info(
            "Analysis complete: %d assumption(s), %d conflict(s), %s",
            len(intake.assumptions), len(conflicts.warnings), tie.state.value,
        )

        return AnalysisResult(
            engine_version=ENGINE_VERSION,
            profile=profile,
            assumptions=intake.assumptions,
            architecture_scores=tuple(ranked),
            conflicts=conflicts,
            tie=tie,
        )


def analyze(partial_input: Optional[Mapping[str, Any]] = None) -> AnalysisResult:
    """Run a full analysis with the shipped tables and current configuration."""
    return RefereeEngine().analyze(partial_input)
