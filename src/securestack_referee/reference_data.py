"""Static reference tables consumed by the analysis components.

The architecture base-score matrix, the dimension weighting table, the
conflict rule table and the per-field defaults are modelled as read-only
pydantic objects. Components receive a ``ReferenceData`` instance at
construction time so alternate tables (test fixtures, revised rule sets)
can be substituted without touching module state.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import DataIntegrityError
from .schema import (
    ArchitectureVariant,
    ConstraintField,
    ConstraintProfile,
    Direction,
    EvaluationDimension,
    Severity,
)

logger = logging.getLogger(__name__)

SCALE_MIN = 1
SCALE_MAX = 10


# =============================================================================
# Table Models
# =============================================================================


class ArchitectureDescriptor(BaseModel):
    """Base score per evaluation dimension for one architecture variant.

    Scores are range-checked by the scorer, which reports violations as
    ``DataIntegrityError``.
    """
    model_config = ConfigDict(frozen=True)

    architecture: ArchitectureVariant
    base_scores: dict[EvaluationDimension, int]


class WeightTerm(BaseModel):
    """One constraint field's contribution to a dimension weight."""
    model_config = ConfigDict(frozen=True)

    field: ConstraintField
    coefficient: float
    inverse: bool = Field(
        False,
        description="Use (scale max - value) so that a low constraint value raises the weight"
    )

    def evaluate(self, profile: ConstraintProfile) -> float:
        value = profile.value_of(self.field)
        if self.inverse:
            value = SCALE_MAX - value
        return self.coefficient * value


class DimensionWeighting(BaseModel):
    """Maps the constraint profile onto the effective weight of a dimension."""
    model_config = ConfigDict(frozen=True)

    dimension: EvaluationDimension
    base: float = Field(0.0, description="Constant importance independent of the profile")
    terms: tuple[WeightTerm, ...] = ()

    def weight_for(self, profile: ConstraintProfile) -> float:
        return self.base + sum(term.evaluate(profile) for term in self.terms)


class ConflictPredicate(BaseModel):
    """Inclusive threshold test on a single constraint field."""
    model_config = ConfigDict(frozen=True)

    field: ConstraintField
    threshold: int
    direction: Direction

    def holds(self, profile: ConstraintProfile) -> bool:
        return self.direction.holds(profile.value_of(self.field), self.threshold)


class ConflictRule(BaseModel):
    """Two-field rule that flags an organizational tension."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    title: str
    first: ConflictPredicate
    second: ConflictPredicate
    severity: Severity = Severity.MEDIUM
    explanation_ref: str

    @model_validator(mode="after")
    def _distinct_fields(self) -> "ConflictRule":
        if self.first.field == self.second.field:
            raise ValueError(f"Rule {self.rule_id} compares {self.first.field.value} with itself")
        return self

    def fires(self, profile: ConstraintProfile) -> bool:
        return self.first.holds(profile) and self.second.holds(profile)


class FieldDefault(BaseModel):
    """Value and rationale used when a constraint field is missing."""
    model_config = ConfigDict(frozen=True)

    field: ConstraintField
    value: int = Field(..., ge=SCALE_MIN, le=SCALE_MAX)
    rationale: str


class ReferenceData(BaseModel):
    """All static tables used by a single analysis run."""
    model_config = ConfigDict(frozen=True)

    architectures: tuple[ArchitectureDescriptor, ...]
    dimension_weights: tuple[DimensionWeighting, ...]
    conflict_rules: tuple[ConflictRule, ...]
    field_defaults: tuple[FieldDefault, ...]

    @model_validator(mode="after")
    def _unique_rule_ids(self) -> "ReferenceData":
        ids = [r.rule_id for r in self.conflict_rules]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate conflict rule ids: {duplicates}")
        return self

    def descriptor_for(self, variant: ArchitectureVariant) -> Optional[ArchitectureDescriptor]:
        for descriptor in self.architectures:
            if descriptor.architecture == variant:
                return descriptor
        return None

    def weighting_for(self, dimension: EvaluationDimension) -> Optional[DimensionWeighting]:
        for weighting in self.dimension_weights:
            if weighting.dimension == dimension:
                return weighting
        return None

    def default_for(self, field: ConstraintField) -> FieldDefault:
        for default in self.field_defaults:
            if default.field == field:
                return default
        raise DataIntegrityError(f"No default configured for constraint field {field.value}")

    def rule(self, rule_id: str) -> Optional[ConflictRule]:
        for rule in self.conflict_rules:
            if rule.rule_id == rule_id:
                return rule
        return None


# =============================================================================
# Default Tables
# =============================================================================


_D = EvaluationDimension
_F = ConstraintField

ARCHITECTURE_BASE_SCORES: dict[ArchitectureVariant, dict[EvaluationDimension, int]] = {
    ArchitectureVariant.IRM_HEAVY: {
        _D.IDENTITY_VERIFICATION: 9,
        _D.BEHAVIORAL_ANALYTICS: 3,
        _D.OPERATIONAL_COMPLEXITY: 7,
        _D.USER_EXPERIENCE: 6,
        _D.COMPLIANCE_AUDITABILITY: 9,
        _D.SCALABILITY_PERFORMANCE: 6,
        _D.COST_EFFICIENCY: 5,
    },
    ArchitectureVariant.URM_HEAVY: {
        _D.IDENTITY_VERIFICATION: 4,
        _D.BEHAVIORAL_ANALYTICS: 9,
        _D.OPERATIONAL_COMPLEXITY: 8,
        _D.USER_EXPERIENCE: 3,
        _D.COMPLIANCE_AUDITABILITY: 5,
        _D.SCALABILITY_PERFORMANCE: 7,
        _D.COST_EFFICIENCY: 4,
    },
    ArchitectureVariant.HYBRID: {
        _D.IDENTITY_VERIFICATION: 7,
        _D.BEHAVIORAL_ANALYTICS: 6,
        _D.OPERATIONAL_COMPLEXITY: 8,
        _D.USER_EXPERIENCE: 5,
        _D.COMPLIANCE_AUDITABILITY: 7,
        _D.SCALABILITY_PERFORMANCE: 6,
        _D.COST_EFFICIENCY: 5,
    },
}

# (dimension, base, [(field, coefficient, inverse), ...])
DIMENSION_WEIGHTING_TABLE = [
    (_D.IDENTITY_VERIFICATION, 1.5, [
        (_F.RISK_TOLERANCE, 0.4, False),  # inverse scale: high value = low tolerance
        (_F.COMPLIANCE_STRICTNESS, 0.3, False),
    ]),
    (_D.BEHAVIORAL_ANALYTICS, 0.0, [
        (_F.RISK_TOLERANCE, 0.3, True),
        (_F.OPERATIONAL_MATURITY, 0.4, False),
        (_F.BUSINESS_AGILITY, 0.3, False),
    ]),
    (_D.OPERATIONAL_COMPLEXITY, 1.0, [
        (_F.OPERATIONAL_MATURITY, 0.5, False),
        (_F.COST_SENSITIVITY, 0.3, True),
    ]),
    (_D.USER_EXPERIENCE, 0.0, [
        (_F.USER_EXPERIENCE_PRIORITY, 0.6, False),
        (_F.BUSINESS_AGILITY, 0.2, False),
        (_F.RISK_TOLERANCE, 0.2, True),
    ]),
    (_D.COMPLIANCE_AUDITABILITY, 0.0, [
        (_F.COMPLIANCE_STRICTNESS, 0.7, False),
        (_F.RISK_TOLERANCE, 0.3, False),
    ]),
    (_D.SCALABILITY_PERFORMANCE, 0.0, [
        (_F.BUSINESS_AGILITY, 0.4, False),
        (_F.OPERATIONAL_MATURITY, 0.3, False),
        (_F.COST_SENSITIVITY, 0.3, True),
    ]),
    (_D.COST_EFFICIENCY, 0.0, [
        (_F.COST_SENSITIVITY, 0.8, False),
        (_F.OPERATIONAL_MATURITY, 0.2, True),
    ]),
]

# (rule_id, title, (field, threshold, direction), (field, threshold, direction), severity)
CONFLICT_RULE_TABLE = [
    (
        "compliance-cost-conflict",
        "High Compliance Requirements vs Cost Sensitivity",
        (_F.COMPLIANCE_STRICTNESS, 8, Direction.AT_LEAST),
        (_F.COST_SENSITIVITY, 8, Direction.AT_LEAST),
        Severity.HIGH,
    ),
    (
        "risk-ux-conflict",
        "Low Risk Tolerance vs High User Experience Priority",
        (_F.RISK_TOLERANCE, 3, Direction.AT_MOST),
        (_F.USER_EXPERIENCE_PRIORITY, 8, Direction.AT_LEAST),
        Severity.HIGH,
    ),
    (
        "agility-maturity-conflict",
        "High Business Agility vs Low Operational Maturity",
        (_F.BUSINESS_AGILITY, 8, Direction.AT_LEAST),
        (_F.OPERATIONAL_MATURITY, 4, Direction.AT_MOST),
        Severity.MEDIUM,
    ),
    (
        "compliance-agility-conflict",
        "High Compliance Requirements vs High Business Agility",
        (_F.COMPLIANCE_STRICTNESS, 8, Direction.AT_LEAST),
        (_F.BUSINESS_AGILITY, 8, Direction.AT_LEAST),
        Severity.MEDIUM,
    ),
]

DEFAULT_VALUE = 5

DEFAULT_RATIONALES = {
    _F.RISK_TOLERANCE: "moderate risk tolerance",
    _F.COMPLIANCE_STRICTNESS: "moderate compliance requirements",
    _F.COST_SENSITIVITY: "moderate cost sensitivity",
    _F.USER_EXPERIENCE_PRIORITY: "balanced UX priority",
    _F.OPERATIONAL_MATURITY: "moderate operational capabilities",
    _F.BUSINESS_AGILITY: "moderate agility requirements",
}


def build_default_reference_data() -> ReferenceData:
    """Assemble the shipped tables into a ``ReferenceData`` instance."""
    return ReferenceData(
        architectures=tuple(
            ArchitectureDescriptor(architecture=variant, base_scores=scores)
            for variant, scores in ARCHITECTURE_BASE_SCORES.items()
        ),
        dimension_weights=tuple(
            DimensionWeighting(
                dimension=dimension,
                base=base,
                terms=tuple(
                    WeightTerm(field=field, coefficient=coefficient, inverse=inverse)
                    for field, coefficient, inverse in terms
                ),
            )
            for dimension, base, terms in DIMENSION_WEIGHTING_TABLE
        ),
        conflict_rules=tuple(
            ConflictRule(
                rule_id=rule_id,
                title=title,
                first=ConflictPredicate(field=a[0], threshold=a[1], direction=a[2]),
                second=ConflictPredicate(field=b[0], threshold=b[1], direction=b[2]),
                severity=severity,
                explanation_ref=f"conflicts/{rule_id}",
            )
            for rule_id, title, a, b, severity in CONFLICT_RULE_TABLE
        ),
        field_defaults=tuple(
            FieldDefault(field=field, value=DEFAULT_VALUE, rationale=DEFAULT_RATIONALES[field])
            for field in ConstraintField
        ),
    )


@lru_cache(maxsize=1)
def default_reference_data() -> ReferenceData:
    """Shared, immutable instance of the shipped tables."""
    return build_default_reference_data()


# =============================================================================
# YAML Loading
# =============================================================================


def load_reference_data(path: Path) -> ReferenceData:
    """Load reference tables from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        The validated ReferenceData.

    Raises:
        DataIntegrityError: If the file is unreadable or the tables are malformed.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise DataIntegrityError(f"Cannot read reference data: {e}", source=str(path)) from e

    if not isinstance(data, dict):
        raise DataIntegrityError("Reference data must be a YAML mapping", source=str(path))

    try:
        reference = ReferenceData.model_validate(data)
    except ValidationError as e:
        raise DataIntegrityError(f"Malformed reference data: {e}", source=str(path)) from e

    logger.debug(
        "Loaded reference data from %s (%d architectures, %d rules)",
        path, len(reference.architectures), len(reference.conflict_rules),
    )
    return reference


def save_reference_data(reference: ReferenceData, path: Path) -> None:
    """Write reference tables to a YAML file loadable by ``load_reference_data``."""
    data = reference.model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
