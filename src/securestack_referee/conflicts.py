"""Conflict Detector - Phase 2 of the analysis.

Evaluates the ordered conflict rule table against a constraint profile
and reports the organizational tensions it finds.
"""

import logging
from typing import Optional

from .config import ReliabilityImpactConfig
from .reference_data import ConflictRule, ReferenceData, default_reference_data
from .schema import (
    ConflictDetectionResult,
    ConflictWarning,
    ConstraintProfile,
    Severity,
)

logger = logging.getLogger(__name__)


class ConflictDetector:
    """Detects two-field constraint tensions.

    Rules fire independently. Warnings are reported in rule-declaration
    order and only reference explanatory content; the wording lives with
    the presentation layer.
    """

    def __init__(
        self,
        reference_data: Optional[ReferenceData] = None,
        reliability_config: Optional[ReliabilityImpactConfig] = None,
    ):
        self.reference_data = reference_data or default_reference_data()
        self.reliability_config = reliability_config or ReliabilityImpactConfig()

    @property
    def rules(self) -> tuple[ConflictRule, ...]:
        return self.reference_data.conflict_rules

    def detect(self, profile: ConstraintProfile) -> ConflictDetectionResult:
        """Evaluate every rule against the profile.

        Args:
            profile: Validated constraint profile

        Returns:
            Fired warnings plus the aggregate reliability impact
        """
        warnings = tuple(
            self._create_warning(rule, profile)
            for rule in self.rules
            if rule.fires(profile)
        )

        reliability_impact = self.reliability_impact(len(warnings))
        if warnings:
            logger.debug(
                "Detected %d conflict(s): %s (reliability impact %s)",
                len(warnings), [w.rule_id for w in warnings], reliability_impact.value,
            )

        return ConflictDetectionResult(warnings=warnings, reliability_impact=reliability_impact)

    def reliability_impact(self, conflict_count: int) -> Severity:
        """Classify how much the fired-conflict count undermines reliability."""
        if conflict_count >= self.reliability_config.high_at:
            return Severity.HIGH
        if conflict_count >= self.reliability_config.medium_at:
            return Severity.MEDIUM
        return Severity.LOW

    def has_conflict(self, profile: ConstraintProfile, rule_id: str) -> bool:
        """Check whether a specific rule fires. Unknown ids never fire."""
        rule = self.reference_data.rule(rule_id)
        return rule.fires(profile) if rule else False

    def rule_ids(self) -> list[str]:
        return [rule.rule_id for rule in self.rules]

    def _create_warning(self, rule: ConflictRule, profile: ConstraintProfile) -> ConflictWarning:
        return ConflictWarning(
            rule_id=rule.rule_id,
            title=rule.title,
            severity=rule.severity,
            explanation_ref=rule.explanation_ref,
            triggering_values={
                rule.first.field: profile.value_of(rule.first.field),
                rule.second.field: profile.value_of(rule.second.field),
            },
        )


def detect_conflicts(
    profile: ConstraintProfile,
    reference_data: Optional[ReferenceData] = None,
) -> ConflictDetectionResult:
    """Detect constraint conflicts using the given (or shipped) rule table."""
    return ConflictDetector(reference_data).detect(profile)
