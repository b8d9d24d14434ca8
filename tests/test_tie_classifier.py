"""Tests for tie classification and threshold configuration."""

import pytest
from pydantic import ValidationError

from securestack_referee.config import TieThresholdsConfig
from securestack_referee.exceptions import ConfigValidationError
from securestack_referee.schema import (
    ArchitectureScore,
    ArchitectureVariant,
    ConfidenceLevel,
    TieState,
)
from securestack_referee.tie_classifier import TieClassifier, classify_tie

IRM = ArchitectureVariant.IRM_HEAVY
URM = ArchitectureVariant.URM_HEAVY
HYBRID = ArchitectureVariant.HYBRID


def _make_score(
    architecture: ArchitectureVariant,
    weighted_score: float,
    confidence: ConfidenceLevel = ConfidenceLevel.HIGH,
) -> ArchitectureScore:
    return ArchitectureScore(
        architecture=architecture,
        dimension_scores={},
        weighted_score=weighted_score,
        confidence_level=confidence,
    )


def _make_scores(irm: float, urm: float, hybrid: float, confidence=ConfidenceLevel.HIGH):
    return [
        _make_score(IRM, irm, confidence),
        _make_score(URM, urm, confidence),
        _make_score(HYBRID, hybrid, confidence),
    ]


class TestClassification:
    """Tie state selection with the default thresholds."""

    def test_three_way_tie(self):
        result = classify_tie(_make_scores(7.2, 7.0, 6.9))

        assert result.state == TieState.THREE_WAY_TIE
        assert set(result.tied_architectures) == {IRM, URM, HYBRID}
        assert result.tied_architectures[0] == IRM
        assert result.clear_leader is None
        assert result.top_gap == pytest.approx(0.2)
        assert result.second_gap == pytest.approx(0.1)
        assert result.meaningful_difference is False

    def test_close_trio_is_three_way_tie(self):
        """6.3 - 6.1 is 0.19999... in binary floats; the gap still counts as 0.2."""
        result = classify_tie(_make_scores(6.3, 6.1, 6.0))

        assert result.state == TieState.THREE_WAY_TIE
        assert result.tied_architectures == (IRM, URM, HYBRID)
        assert result.clear_leader is None
        assert result.top_gap == 0.2
        assert result.second_gap == 0.1

    def test_two_scores_with_clear_leader(self):
        result = classify_tie([_make_score(IRM, 8.0), _make_score(URM, 6.8)])

        assert result.state == TieState.NO_TIE
        assert result.clear_leader == IRM
        assert result.tied_architectures == ()
        assert result.top_gap == 1.2
        assert result.second_gap is None

    def test_clear_leader(self):
        result = classify_tie(_make_scores(8.0, 6.8, 6.5))

        assert result.state == TieState.NO_TIE
        assert result.clear_leader == IRM
        assert result.tied_architectures == ()
        assert result.top_gap == pytest.approx(1.2)
        assert result.meaningful_difference is True

    def test_two_way_tie(self):
        result = classify_tie(_make_scores(5.0, 7.0, 6.6))

        assert result.state == TieState.TWO_WAY_TIE
        assert result.tied_architectures == (URM, HYBRID)
        assert result.top_gap == pytest.approx(0.4)
        assert result.second_gap == pytest.approx(1.6)
        assert result.total_range == pytest.approx(2.0)

    def test_near_tie_boundary_is_inclusive(self):
        result = classify_tie([_make_score(IRM, 6.5), _make_score(URM, 6.0)])

        assert result.state == TieState.TWO_WAY_TIE
        assert result.top_gap == 0.5

    def test_three_way_boundary_is_inclusive(self):
        result = classify_tie(_make_scores(8.0, 7.5, 7.0))
        assert result.state == TieState.THREE_WAY_TIE

    def test_just_above_boundary_is_no_tie(self):
        result = classify_tie([_make_score(IRM, 6.51), _make_score(URM, 6.0)])

        assert result.state == TieState.NO_TIE
        assert result.clear_leader == IRM

    def test_unsorted_input_is_ranked(self):
        result = classify_tie([_make_score(URM, 6.8), _make_score(HYBRID, 4.0), _make_score(IRM, 8.0)])

        assert result.clear_leader == IRM
        assert result.top_gap == pytest.approx(1.2)

    @pytest.mark.parametrize("gap", [0.0, 0.1, 0.25, 0.5, 0.51, 1.0, 3.0])
    def test_tie_iff_gap_within_near_tie_threshold(self, gap: float):
        result = classify_tie([_make_score(IRM, 7.0), _make_score(URM, round(7.0 - gap, 2))])
        assert result.is_tie == (gap <= 0.5)

    @pytest.mark.parametrize("scores", [
        (7.2, 7.0, 6.9),
        (8.0, 6.8, 6.5),
        (5.0, 7.0, 6.6),
        (6.0, 6.0, 6.0),
        (9.0, 1.0, 5.0),
    ])
    def test_leader_and_tied_set_are_exclusive(self, scores):
        result = classify_tie(_make_scores(*scores))

        if result.is_tie:
            assert result.clear_leader is None
            assert len(result.tied_architectures) >= 2
        else:
            assert result.clear_leader is not None
            assert result.tied_architectures == ()


class TestInsufficientData:
    """Fewer than two scores cannot be compared."""

    @pytest.mark.parametrize("count", [0, 1])
    def test_too_few_scores(self, count: int):
        result = classify_tie([_make_score(IRM, 7.0)][:count])

        assert result.state == TieState.NO_TIE
        assert result.insufficient_data is True
        assert result.detection_confidence == ConfidenceLevel.LOW
        assert result.clear_leader is None
        assert result.tied_architectures == ()

    def test_two_scores_have_no_second_gap(self):
        result = classify_tie([_make_score(IRM, 7.0), _make_score(URM, 5.0)])

        assert result.insufficient_data is False
        assert result.second_gap is None


class TestStatisticalTie:
    """Statistical ties only arise when the near-tie threshold is tighter."""

    def test_minimum_difference(self):
        config = {"near_tie_threshold": 0.05, "minimum_difference_threshold": 0.1}
        result = classify_tie([_make_score(IRM, 6.08), _make_score(URM, 6.0)], config)

        assert result.state == TieState.STATISTICAL_TIE
        assert result.tied_architectures == (IRM, URM)

    def test_relative_threshold(self):
        config = TieThresholdsConfig(near_tie_threshold=0.05, minimum_difference_threshold=0.01)
        result = classify_tie([_make_score(HYBRID, 6.2), _make_score(URM, 6.0)], config)

        assert result.state == TieState.STATISTICAL_TIE
        assert result.tied_architectures == (HYBRID, URM)

    def test_outside_every_band(self):
        config = {"near_tie_threshold": 0.05, "minimum_difference_threshold": 0.01}
        result = classify_tie([_make_score(HYBRID, 6.5), _make_score(URM, 6.0)], config)

        assert result.state == TieState.NO_TIE


class TestDetectionConfidence:
    """Detection confidence reflects how trustworthy the comparison is."""

    def test_clear_gap_is_high(self):
        assert classify_tie(_make_scores(8.0, 6.8, 6.5)).detection_confidence == ConfidenceLevel.HIGH

    def test_narrow_range_alone_stays_high(self):
        assert classify_tie(_make_scores(7.2, 7.0, 6.9)).detection_confidence == ConfidenceLevel.HIGH

    def test_low_confidence_scores_reduce_detection_confidence(self):
        result = classify_tie(_make_scores(7.2, 7.0, 6.9, ConfidenceLevel.LOW))
        assert result.detection_confidence == ConfidenceLevel.MEDIUM

    def test_identical_low_confidence_scores_are_low(self):
        result = classify_tie(_make_scores(6.0, 6.0, 6.0, ConfidenceLevel.LOW))
        assert result.detection_confidence == ConfidenceLevel.LOW


class TestConfiguration:
    """Threshold configuration is validated before it is applied."""

    def test_defaults(self):
        config = TieClassifier().configuration

        assert config.near_tie_threshold == 0.5
        assert config.meaningful_difference_threshold == 1.0
        assert config.relative_threshold == 0.05
        assert config.minimum_difference_threshold == 0.1

    def test_valid_update_applies(self):
        classifier = TieClassifier()
        updated = classifier.update_configuration(near_tie_threshold=0.3)

        assert updated.near_tie_threshold == 0.3
        assert classifier.configuration.near_tie_threshold == 0.3
        assert classifier.classify([_make_score(IRM, 6.4), _make_score(URM, 6.0)]).state == TieState.NO_TIE

    @pytest.mark.parametrize("changes,message", [
        ({"near_tie_threshold": 2.0}, "Meaningful difference threshold must be greater"),
        ({"near_tie_threshold": 0}, "Near-tie threshold must be positive"),
        ({"relative_threshold": 1.5}, "Relative threshold must be between 0 and 1"),
        ({"minimum_difference_threshold": 0}, "Minimum difference threshold must be positive"),
        ({"tie_window": 0.2}, "Unknown threshold: tie_window"),
    ])
    def test_rejected_update_keeps_previous(self, changes, message):
        classifier = TieClassifier()
        before = classifier.configuration

        with pytest.raises(ConfigValidationError) as exc_info:
            classifier.update_configuration(**changes)

        assert message in exc_info.value.message
        assert classifier.configuration == before

    def test_every_violation_reported(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            TieClassifier({"near_tie_threshold": 0, "minimum_difference_threshold": 0})

        assert exc_info.value.errors == [
            "Near-tie threshold must be positive",
            "Minimum difference threshold must be positive",
        ]

    def test_configuration_is_a_copy(self):
        classifier = TieClassifier()
        config = classifier.configuration

        with pytest.raises(ValidationError):
            config.near_tie_threshold = 0.9
        assert classifier.configuration.near_tie_threshold == 0.5

    def test_camel_case_threshold_names(self):
        scores = [_make_score(IRM, 8.0), _make_score(URM, 6.8)]
        result = classify_tie(scores, {"nearTieThreshold": 1.5, "meaningfulDifferenceThreshold": 2.0})

        assert result.state == TieState.TWO_WAY_TIE
        assert result.threshold_used == 1.5

    @pytest.mark.parametrize("thresholds", [
        {"near_tie_threshold": 0.3, "nearTieThreshold": 0.8},
        {"nearTieThreshold": 0.8, "near_tie_threshold": 0.3},
    ])
    def test_snake_case_name_wins(self, thresholds):
        assert TieClassifier(thresholds).configuration.near_tie_threshold == 0.3

    @pytest.mark.parametrize("thresholds,unknown", [
        ({"near_tie": 1.5}, "near_tie"),
        ({"nearTie": 0.2, "minimum_difference_threshold": 0.05}, "nearTie"),
    ])
    def test_unknown_threshold_names_rejected(self, thresholds, unknown):
        with pytest.raises(ConfigValidationError) as exc_info:
            TieClassifier(thresholds)
        assert exc_info.value.errors == [f"Unknown threshold: {unknown}"]

    def test_classify_tie_rejects_unknown_names(self):
        with pytest.raises(ConfigValidationError, match="Unknown threshold: tieWindow"):
            classify_tie(_make_scores(7.0, 6.0, 5.0), {"tieWindow": 2.0})

    def test_update_accepts_camel_case(self):
        classifier = TieClassifier()
        classifier.update_configuration(nearTieThreshold=0.25)

        assert classifier.configuration.near_tie_threshold == 0.25

    def test_direct_construction_rejects_extra_fields(self):
        with pytest.raises(ValidationError):
            TieThresholdsConfig(near_tie=1.5)

    def test_threshold_reported_in_result(self):
        result = classify_tie(_make_scores(7.0, 6.0, 5.0), {"near_tie_threshold": 0.25})
        assert result.threshold_used == 0.25
