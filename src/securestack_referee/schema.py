"""Pydantic models for the SecureStack Referee analysis engine.

Input-side models for the organizational constraint profile and
output-side models for scores, conflict warnings and tie classification.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================


class ConstraintField(str, Enum):
    """The six organizational constraint dimensions, in canonical order."""
    RISK_TOLERANCE = "risk_tolerance"  # 1 = high tolerance, 10 = very low tolerance
    COMPLIANCE_STRICTNESS = "compliance_strictness"
    COST_SENSITIVITY = "cost_sensitivity"
    USER_EXPERIENCE_PRIORITY = "user_experience_priority"
    OPERATIONAL_MATURITY = "operational_maturity"
    BUSINESS_AGILITY = "business_agility"

    @property
    def alias(self) -> str:
        """camelCase spelling accepted on input."""
        head, *rest = self.value.split("_")
        return head + "".join(part.capitalize() for part in rest)

    @classmethod
    def from_key(cls, key: str) -> Optional["ConstraintField"]:
        """Resolve a snake_case or camelCase key to a field."""
        for member in cls:
            if key == member.value or key == member.alias:
                return member
        return None


class ArchitectureVariant(str, Enum):
    """The three security-architecture archetypes being compared."""
    IRM_HEAVY = "IRM-Heavy"
    URM_HEAVY = "URM-Heavy"
    HYBRID = "Hybrid"


class EvaluationDimension(str, Enum):
    """Dimensions each architecture variant is rated on."""
    IDENTITY_VERIFICATION = "identity_verification"
    BEHAVIORAL_ANALYTICS = "behavioral_analytics"
    OPERATIONAL_COMPLEXITY = "operational_complexity"
    USER_EXPERIENCE = "user_experience"
    COMPLIANCE_AUDITABILITY = "compliance_auditability"
    SCALABILITY_PERFORMANCE = "scalability_performance"
    COST_EFFICIENCY = "cost_efficiency"


class ConfidenceLevel(str, Enum):
    """Discrete trust indicator attached to scores and tie results."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def from_points(cls, points: float, high_threshold: float, medium_threshold: float) -> "ConfidenceLevel":
        """Bucket a 100-point confidence score."""
        if points >= high_threshold:
            return cls.HIGH
        if points >= medium_threshold:
            return cls.MEDIUM
        return cls.LOW


class Severity(str, Enum):
    """Severity of a conflict rule, also used for reliability impact."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Direction(str, Enum):
    """Comparison direction of a conflict predicate (inclusive)."""
    AT_LEAST = ">="
    AT_MOST = "<="

    def holds(self, value: int, threshold: int) -> bool:
        if self is Direction.AT_LEAST:
            return value >= threshold
        return value <= threshold


class TieState(str, Enum):
    """Outcome of tie classification."""
    NO_TIE = "no-tie"
    TWO_WAY_TIE = "two-way-tie"
    THREE_WAY_TIE = "three-way-tie"
    STATISTICAL_TIE = "statistical-tie"


# =============================================================================
# Constraint Intake Models
# =============================================================================


class AssumptionRecord(BaseModel):
    """Disclosure of a default applied to a missing constraint field."""
    model_config = ConfigDict(frozen=True)

    field: ConstraintField
    default_value: int
    rationale: str

    @property
    def description(self) -> str:
        return (
            f"{self.field.value} was not provided, "
            f"defaulted to {self.default_value} ({self.rationale})"
        )


class ConstraintProfile(BaseModel):
    """Complete, validated organizational constraint profile (1-10 scale)."""
    model_config = ConfigDict(frozen=True)

    risk_tolerance: int = Field(..., ge=1, le=10)
    compliance_strictness: int = Field(..., ge=1, le=10)
    cost_sensitivity: int = Field(..., ge=1, le=10)
    user_experience_priority: int = Field(..., ge=1, le=10)
    operational_maturity: int = Field(..., ge=1, le=10)
    business_agility: int = Field(..., ge=1, le=10)

    input_completeness: bool = True
    assumptions: tuple[str, ...] = ()

    def value_of(self, field: ConstraintField) -> int:
        return getattr(self, field.value)

    def constraint_values(self) -> dict[ConstraintField, int]:
        """Field values in canonical order."""
        return {f: self.value_of(f) for f in ConstraintField}


class IntakeResult(BaseModel):
    """Output of constraint intake."""
    model_config = ConfigDict(frozen=True)

    profile: ConstraintProfile
    assumptions: tuple[AssumptionRecord, ...] = ()


# =============================================================================
# Scoring Models
# =============================================================================


class DimensionContribution(BaseModel):
    """How a single dimension fed into an architecture's weighted score."""
    model_config = ConfigDict(frozen=True)

    dimension: EvaluationDimension
    base_score: int
    weight: float
    weighted_contribution: float


class ArchitectureScore(BaseModel):
    """Weighted score and confidence for one architecture variant."""
    model_config = ConfigDict(frozen=True)

    architecture: ArchitectureVariant
    dimension_scores: dict[EvaluationDimension, int]
    weighted_score: float
    confidence_level: ConfidenceLevel
    dimension_breakdown: tuple[DimensionContribution, ...] = ()


# =============================================================================
# Conflict Models
# =============================================================================


class ConflictWarning(BaseModel):
    """A conflict rule that fired for the profile."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    title: str
    severity: Severity
    explanation_ref: str
    triggering_values: dict[ConstraintField, int]


class ConflictDetectionResult(BaseModel):
    """Fired warnings in rule-declaration order plus the aggregate impact."""
    model_config = ConfigDict(frozen=True)

    warnings: tuple[ConflictWarning, ...] = ()
    reliability_impact: Severity = Severity.LOW

    @property
    def has_conflicts(self) -> bool:
        return len(self.warnings) > 0

    @property
    def rule_ids(self) -> list[str]:
        return [w.rule_id for w in self.warnings]


# =============================================================================
# Tie Classification Models
# =============================================================================


class TieResult(BaseModel):
    """Tie classification over a set of architecture scores.

    ``tied_architectures`` and ``clear_leader`` are mutually exclusive:
    tie states fill the former, ``no-tie`` sets the latter (unless there
    was too little data to compare).
    """
    model_config = ConfigDict(frozen=True)

    state: TieState
    top_gap: float = 0.0
    second_gap: Optional[float] = None
    total_range: float = 0.0
    threshold_used: float
    tied_architectures: tuple[ArchitectureVariant, ...] = ()
    clear_leader: Optional[ArchitectureVariant] = None
    detection_confidence: ConfidenceLevel
    meaningful_difference: bool = False
    insufficient_data: bool = False

    @property
    def is_tie(self) -> bool:
        return self.state is not TieState.NO_TIE


# =============================================================================
# Analysis Output
# =============================================================================


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisResult(BaseModel):
    """Complete core output handed to formatting collaborators."""
    model_config = ConfigDict(frozen=True)

    engine_version: str
    analyzed_at: datetime = Field(default_factory=_utcnow)

    profile: ConstraintProfile
    assumptions: tuple[AssumptionRecord, ...] = ()

    # Descending by weighted score
    architecture_scores: tuple[ArchitectureScore, ...] = ()
    conflicts: ConflictDetectionResult = Field(default_factory=ConflictDetectionResult)
    tie: TieResult
