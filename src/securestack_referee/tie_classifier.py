"""Tie Classifier - Phase 4 of the analysis.

Classifies a set of architecture scores as a clear difference or one of
several kinds of near-tie, using configurable thresholds.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Callable, NamedTuple, Optional, Union

from pydantic import ValidationError

from .config import TieConfidenceConfig, TieThresholdsConfig, validate_tie_thresholds
from .exceptions import ConfigValidationError
from .schema import (
    ArchitectureScore,
    ConfidenceLevel,
    TieResult,
    TieState,
)

logger = logging.getLogger(__name__)

# Gaps are compared after rounding so that boundaries like 6.5 - 6.0 stay
# inclusive despite binary float representation.
GAP_PRECISION = 9


class ScoreAnalysis(NamedTuple):
    """Gap statistics over descending-sorted scores."""
    scores: tuple[ArchitectureScore, ...]
    top_gap: float
    second_gap: Optional[float]
    total_range: float
    mean_score: float

    @property
    def count(self) -> int:
        return len(self.scores)


class TieRule(NamedTuple):
    """One step of the classification cascade."""
    state: TieState
    applies: Callable[[ScoreAnalysis, TieThresholdsConfig], bool]


class DetectionPenalty(NamedTuple):
    name: str
    applies: Callable[[ScoreAnalysis, TieThresholdsConfig], bool]
    penalty: float


def _is_three_way(analysis: ScoreAnalysis, t: TieThresholdsConfig) -> bool:
    return (
        analysis.count >= 3
        and analysis.top_gap <= t.near_tie_threshold
        and analysis.second_gap <= t.near_tie_threshold
    )


def _is_two_way(analysis: ScoreAnalysis, t: TieThresholdsConfig) -> bool:
    return analysis.top_gap <= t.near_tie_threshold


def _is_statistical(analysis: ScoreAnalysis, t: TieThresholdsConfig) -> bool:
    if analysis.top_gap <= t.minimum_difference_threshold:
        return True
    return analysis.mean_score > 0 and analysis.top_gap <= analysis.mean_score * t.relative_threshold


# Evaluated strictly top to bottom; the first match wins.
TIE_RULES: tuple[TieRule, ...] = (
    TieRule(TieState.THREE_WAY_TIE, _is_three_way),
    TieRule(TieState.TWO_WAY_TIE, _is_two_way),
    TieRule(TieState.STATISTICAL_TIE, _is_statistical),
)


class TieClassifier:
    """One-shot tie classification over a set of architecture scores.

    Configuration changes are validated before they are applied; a rejected
    change leaves the previous thresholds in place.
    """

    def __init__(
        self,
        thresholds: Optional[Union[TieThresholdsConfig, Mapping[str, Any]]] = None,
        confidence_config: Optional[TieConfidenceConfig] = None,
    ):
        self._thresholds = coerce_thresholds(thresholds)
        self.confidence_config = confidence_config or TieConfidenceConfig()
        cfg = self.confidence_config
        self.detection_penalties = [
            DetectionPenalty(
                "low-confidence score",
                lambda a, t: any(s.confidence_level == ConfidenceLevel.LOW for s in a.scores),
                cfg.low_confidence_score_penalty,
            ),
            DetectionPenalty(
                "indistinguishable top gap",
                lambda a, t: a.top_gap <= t.minimum_difference_threshold,
                cfg.indistinguishable_gap_penalty,
            ),
            DetectionPenalty(
                "narrow score range",
                lambda a, t: a.total_range <= t.near_tie_threshold,
                cfg.narrow_range_penalty,
            ),
        ]

    @property
    def configuration(self) -> TieThresholdsConfig:
        """Current thresholds (a copy)."""
        return self._thresholds.model_copy()

    def update_configuration(self, **changes: Any) -> TieThresholdsConfig:
        """Apply threshold changes after validating the combined result.

        Raises:
            ConfigValidationError: If a key names no threshold or the result
                violates any invariant; the current configuration is kept.
        """
        merged = {**self._thresholds.model_dump(), **resolve_threshold_keys(changes)}
        self._thresholds = coerce_thresholds(merged)
        logger.debug("Tie thresholds updated: %s", self._thresholds.model_dump())
        return self.configuration

    def classify(self, scores: Sequence[ArchitectureScore]) -> TieResult:
        """Classify scores into a tie state.

        Args:
            scores: Zero to three architecture scores, in any order

        Returns:
            TieResult with gaps, tied set or clear leader, and detection confidence
        """
        t = self._thresholds

        if len(scores) < 2:
            return TieResult(
                state=TieState.NO_TIE,
                threshold_used=t.near_tie_threshold,
                detection_confidence=ConfidenceLevel.LOW,
                insufficient_data=True,
            )

        analysis = self._analyze(scores)
        state = self._determine_state(analysis)
        ordered = [s.architecture for s in analysis.scores]

        if state == TieState.THREE_WAY_TIE:
            tied = tuple(ordered[:3])
        elif state in (TieState.TWO_WAY_TIE, TieState.STATISTICAL_TIE):
            tied = tuple(ordered[:2])
        else:
            tied = ()

        result = TieResult(
            state=state,
            top_gap=analysis.top_gap,
            second_gap=analysis.second_gap,
            total_range=analysis.total_range,
            threshold_used=t.near_tie_threshold,
            tied_architectures=tied,
            clear_leader=ordered[0] if state == TieState.NO_TIE else None,
            detection_confidence=self._detection_confidence(analysis),
            meaningful_difference=analysis.top_gap > t.meaningful_difference_threshold,
        )
        logger.debug("Tie classification: %s (top gap %s)", state.value, analysis.top_gap)
        return result

    def _determine_state(self, analysis: ScoreAnalysis) -> TieState:
        for rule in TIE_RULES:
            if rule.applies(analysis, self._thresholds):
                return rule.state
        return TieState.NO_TIE

    def _detection_confidence(self, analysis: ScoreAnalysis) -> ConfidenceLevel:
        points = 100.0
        for penalty in self.detection_penalties:
            if penalty.applies(analysis, self._thresholds):
                points -= penalty.penalty
        return ConfidenceLevel.from_points(
            points,
            self.confidence_config.high_threshold,
            self.confidence_config.medium_threshold,
        )

    @staticmethod
    def _analyze(scores: Sequence[ArchitectureScore]) -> ScoreAnalysis:
        ordered = tuple(sorted(scores, key=lambda s: s.weighted_score, reverse=True))
        values = [s.weighted_score for s in ordered]
        return ScoreAnalysis(
            scores=ordered,
            top_gap=round(values[0] - values[1], GAP_PRECISION),
            second_gap=round(values[1] - values[2], GAP_PRECISION) if len(values) >= 3 else None,
            total_range=round(values[0] - values[-1], GAP_PRECISION),
            mean_score=sum(values) / len(values),
        )


def coerce_thresholds(
    thresholds: Optional[Union[TieThresholdsConfig, Mapping[str, Any]]],
) -> TieThresholdsConfig:
    """Build validated thresholds from a config object, a mapping or None."""
    if thresholds is None:
        return TieThresholdsConfig()
    if isinstance(thresholds, TieThresholdsConfig):
        errors = validate_tie_thresholds(thresholds)
        if errors:
            raise ConfigValidationError(errors)
        return thresholds
    try:
        return TieThresholdsConfig.model_validate(resolve_threshold_keys(thresholds))
    except ValidationError as e:
        raise ConfigValidationError(_flatten_errors(e)) from e


def resolve_threshold_keys(values: Mapping[str, Any]) -> dict[str, Any]:
    """Map snake_case or camelCase threshold names onto field names.

    The snake_case spelling wins when both are given for one threshold.

    Raises:
        ConfigValidationError: If any key names no threshold.
    """
    fields = TieThresholdsConfig.model_fields
    aliases = {info.alias: name for name, info in fields.items() if info.alias}

    unknown = sorted(str(key) for key in values if key not in fields and key not in aliases)
    if unknown:
        raise ConfigValidationError([f"Unknown threshold: {key}" for key in unknown])

    resolved: dict[str, Any] = {}
    for key, value in values.items():
        if key in fields:
            resolved[key] = value
        else:
            resolved.setdefault(aliases[key], value)
    return resolved


def _flatten_errors(error: ValidationError) -> list[str]:
    messages = []
    for detail in error.errors():
        message = detail["msg"]
        # Invariant failures arrive as one "Value error, a; b" message
        if message.startswith("Value error, "):
            messages.extend(message[len("Value error, "):].split("; "))
        else:
            location = ".".join(str(part) for part in detail["loc"])
            messages.append(f"{location}: {message}" if location else message)
    return messages


def classify_tie(
    scores: Sequence[ArchitectureScore],
    config: Optional[Union[TieThresholdsConfig, Mapping[str, Any]]] = None,
) -> TieResult:
    """Classify scores using the given (or default) thresholds."""
    return TieClassifier(config).classify(scores)
