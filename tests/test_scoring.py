"""
Tests for integrity scoring and review flags
"""
import pytest

from quizguard.proctor.scoring import FlagGenerator, IntegrityScorer
from quizguard.proctor.violations import ViolationKind


class TestIntegrityScorer:
    """Test integrity scoring"""

    def test_perfect_score(self):
        """No violations -> 100"""
        scorer = IntegrityScorer()

        assert scorer.compute({}) == 100

    def test_scenario_score(self):
        """Two tab switches and one fast-answer burst -> 85"""
        scorer = IntegrityScorer()

        summary = {ViolationKind.TAB_SWITCH: 2, ViolationKind.FAST_ANSWERING: 1}

        assert scorer.compute(summary) == 85

    def test_wire_type_keys(self):
        """Summaries keyed by wire type score the same"""
        scorer = IntegrityScorer()

        assert scorer.compute({"tab-switch": 2, "fast-answering": 1}) == 85

    def test_worst_case_score(self):
        """Every kind at its cap -> 0"""
        scorer = IntegrityScorer()

        summary = {kind: 100 for kind in ViolationKind}

        assert scorer.compute(summary) == 0

    def test_counts_are_capped(self):
        """Counts past the cap add no further penalty"""
        scorer = IntegrityScorer()

        assert scorer.compute({"right-click": 10}) == scorer.compute({"right-click": 50}) == 90

    def test_breakdown(self):
        """Breakdown lists every kind's penalty"""
        scorer = IntegrityScorer()

        result = scorer.compute_breakdown({"copy-paste": 1})

        assert result["integrity_score"] == 94
        assert set(result["penalties"]) == {kind.value for kind in ViolationKind}
        assert result["penalties"]["copy-paste"]["penalty"] == 6.0
        assert result["total_penalty"] == 6.0

    @pytest.mark.parametrize("score,grade", [
        (95, "A"), (90, "A"), (85, "B"), (72, "C"), (60, "D"), (59, "F"),
    ])
    def test_grades(self, score, grade):
        """Letter grades by band"""
        assert IntegrityScorer().get_grade(score) == grade

    def test_weight_table_covers_every_kind(self):
        """Every kind has a weight and a cap"""
        assert set(IntegrityScorer.WEIGHTS) == set(ViolationKind)
        assert set(IntegrityScorer.MAX_COUNTS) == set(ViolationKind)


class TestFlagGenerator:
    """Test flag generation"""

    def test_no_flags_below_thresholds(self):
        """Counts under every threshold raise nothing"""
        generator = FlagGenerator()

        summary = {"tab-switch": 2, "window-blur": 4, "copy-paste": 1}

        assert generator.generate(summary) == []

    def test_flags_at_thresholds(self):
        """Reaching a threshold raises that kind's flag"""
        generator = FlagGenerator()

        flags = generator.generate({
            ViolationKind.TAB_SWITCH: 3,
            ViolationKind.WINDOW_BLUR: 5,
            ViolationKind.FAST_ANSWERING: 1,
        })

        assert flags == ["tab-switch", "window-blur"]

    def test_custom_threshold(self):
        """Thresholds can be overridden"""
        generator = FlagGenerator(thresholds={ViolationKind.RIGHT_CLICK: 1})

        assert generator.generate({"right-click": 1}) == ["right-click"]

    def test_critical_flag_requires_review(self):
        """Copy/paste flags always go to review"""
        generator = FlagGenerator()

        assert generator.requires_review(["copy-paste"], 95) is True
        assert generator.get_review_priority(["copy-paste"], 95) == "urgent"

    def test_low_score_requires_review(self):
        """Scores under 60 go to review"""
        generator = FlagGenerator()

        assert generator.requires_review([], 55) is True
        assert generator.get_review_priority([], 55) == "high"
        assert generator.get_review_priority([], 30) == "urgent"

    def test_multiple_flags_require_review(self):
        """Two or more flags go to review"""
        generator = FlagGenerator()

        assert generator.requires_review(["tab-switch", "window-blur"], 80) is True
        assert generator.requires_review(["tab-switch"], 80) is False

    @pytest.mark.parametrize("flags,score,priority", [
        ([], 100, "low"),
        (["tab-switch"], 80, "normal"),
        (["tab-switch", "window-blur", "right-click"], 70, "high"),
    ])
    def test_review_priority(self, flags, score, priority):
        """Priority follows flag count when the score is healthy"""
        assert FlagGenerator().get_review_priority(flags, score) == priority

    def test_threshold_table_covers_every_kind(self):
        """Every kind has a flag threshold"""
        assert set(FlagGenerator.THRESHOLDS) == set(ViolationKind)
