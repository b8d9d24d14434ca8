"""Centralized configuration management for the referee engine."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class TieThresholdsConfig(BaseModel):
    """Thresholds for near-tie classification.

    Scores are on the 1-10 scale, so all absolute thresholds are in
    score points. Fields accept either snake_case names or their camelCase
    aliases; any other key is rejected.
    """
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    near_tie_threshold: float = Field(
        0.5,
        description="Gap at or below which two scores are treated as tied"
    )
    meaningful_difference_threshold: float = Field(
        1.0,
        description="Gap above which a difference is considered meaningful"
    )
    relative_threshold: float = Field(
        0.05,
        description="Fraction of the mean score used as a relative tie band (0-1)"
    )
    minimum_difference_threshold: float = Field(
        0.1,
        description="Gap at or below which scores are indistinguishable"
    )

    @model_validator(mode="after")
    def _check_invariants(self) -> "TieThresholdsConfig":
        errors = validate_tie_thresholds(self)
        if errors:
            raise ValueError("; ".join(errors))
        return self


def validate_tie_thresholds(thresholds: TieThresholdsConfig) -> list[str]:
    """Return every invariant the thresholds violate (empty if valid)."""
    errors = []
    if thresholds.near_tie_threshold <= 0:
        errors.append("Near-tie threshold must be positive")
    if thresholds.meaningful_difference_threshold <= thresholds.near_tie_threshold:
        errors.append("Meaningful difference threshold must be greater than near-tie threshold")
    if not 0 < thresholds.relative_threshold < 1:
        errors.append("Relative threshold must be between 0 and 1")
    if thresholds.minimum_difference_threshold <= 0:
        errors.append("Minimum difference threshold must be positive")
    return errors


class ScoringConfidenceConfig(BaseModel):
    """Point deductions applied to per-architecture confidence.

    Confidence starts at 100 points; each factor that applies deducts its
    penalty, and the remainder is bucketed into High/Medium/Low.
    """
    model_config = ConfigDict(frozen=True)

    incomplete_input_penalty: float = Field(
        20.0,
        description="Deduction when one or more fields were defaulted"
    )
    per_assumption_penalty: float = Field(
        3.0,
        description="Deduction per defaulted field"
    )
    per_conflict_penalty: float = Field(
        15.0,
        description="Deduction per fired conflict rule"
    )
    high_severity_conflict_penalty: float = Field(
        10.0,
        description="Extra deduction per fired high-severity conflict rule"
    )
    high_threshold: float = Field(80.0, description="Minimum points for High confidence")
    medium_threshold: float = Field(60.0, description="Minimum points for Medium confidence")


class TieConfidenceConfig(BaseModel):
    """Point deductions applied to tie detection confidence."""
    model_config = ConfigDict(frozen=True)

    low_confidence_score_penalty: float = Field(
        30.0,
        description="Deduction when any compared score carries Low confidence"
    )
    indistinguishable_gap_penalty: float = Field(
        20.0,
        description="Deduction when the top gap is at or below the minimum difference"
    )
    narrow_range_penalty: float = Field(
        15.0,
        description="Deduction when the full score range is within the near-tie threshold"
    )
    high_threshold: float = Field(70.0, description="Minimum points for High confidence")
    medium_threshold: float = Field(50.0, description="Minimum points for Medium confidence")


class ReliabilityImpactConfig(BaseModel):
    """Fired-conflict counts at which reliability impact escalates."""
    model_config = ConfigDict(frozen=True)

    medium_at: int = Field(1, ge=1, description="Conflict count that makes impact medium")
    high_at: int = Field(3, ge=1, description="Conflict count that makes impact high")

    @model_validator(mode="after")
    def _ordered(self) -> "ReliabilityImpactConfig":
        if self.high_at < self.medium_at:
            raise ValueError("high_at must not be lower than medium_at")
        return self


class RefereeConfig(BaseModel):
    """Complete configuration for the referee engine."""
    tie_thresholds: TieThresholdsConfig = Field(default_factory=TieThresholdsConfig)
    scoring_confidence: ScoringConfidenceConfig = Field(default_factory=ScoringConfidenceConfig)
    tie_confidence: TieConfidenceConfig = Field(default_factory=TieConfidenceConfig)
    reliability: ReliabilityImpactConfig = Field(default_factory=ReliabilityImpactConfig)


CONFIG_ENV_VAR = "SECURESTACK_REFEREE_CONFIG"
LOCAL_CONFIG_NAMES = ("referee-config.yaml", "referee-config.yml")

_DEFAULT_CONFIG_HEADER = """\
# SecureStack Referee Configuration
#
# tie_thresholds      gaps (in score points) used to call near-ties
# scoring_confidence  deductions from 100 points per architecture score
# tie_confidence      deductions from 100 points for the tie verdict
# reliability         fired-conflict counts for medium / high impact
#
# Threshold keys may also be written in camelCase (nearTieThreshold).
# Point SECURESTACK_REFEREE_CONFIG at this file, or save it as
# ./referee-config.yaml or ~/.config/securestack-referee/config.yaml.

"""

# Process-wide settings used when a component is built without explicit config
_config: Optional[RefereeConfig] = None


def get_config() -> RefereeConfig:
    """Active settings; defaults until ``load_config`` succeeds."""
    global _config
    if _config is None:
        _config = RefereeConfig()
    return _config


def load_config(path: Path) -> RefereeConfig:
    """Read settings from YAML and make them the active settings.

    An empty file yields the defaults. Invalid settings raise pydantic's
    ``ValidationError`` and leave the active settings untouched.
    """
    global _config

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    config = RefereeConfig.model_validate(data or {})
    _config = config
    return config


def reset_config() -> None:
    """Drop any loaded settings in favour of the defaults."""
    global _config
    _config = RefereeConfig()


def user_config_path() -> Path:
    return Path.home() / ".config" / "securestack-referee" / "config.yaml"


def find_config_file() -> Optional[Path]:
    """First existing settings file, or None.

    The environment variable is consulted first, then the working
    directory, then the per-user location.
    """
    candidates = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))
    candidates.extend(Path(name) for name in LOCAL_CONFIG_NAMES)
    candidates.append(user_config_path())

    return next((path for path in candidates if path.exists()), None)


def save_default_config(path: Path) -> None:
    """Write the default settings, with an explanatory header, as YAML."""
    body = yaml.dump(RefereeConfig().model_dump(), default_flow_style=False, sort_keys=False)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(_DEFAULT_CONFIG_HEADER + body)
