"""
Accuracy Scorer and Recommendation Generator Tests
"""
import random

import pytest

from legacyequiv.evaluation import AccuracyScorer, RecommendationGenerator
from legacyequiv.models import Category, DifferenceKind, FunctionalDifference, Severity, ValidationStatus


def difference(severity, category=Category.DATA_HANDLING, unit="POLICY-DRIVER", **kwargs):
    return FunctionalDifference(
        severity=severity,
        category=category,
        legacy_unit=unit,
        target_unit="PolicyDriver",
        description=f"{severity.value} finding",
        **kwargs,
    )


@pytest.fixture
def scorer():
    return AccuracyScorer()


class TestScore:
    """100 minus additive penalties, clamped to [0, 100]"""

    def test_no_differences_is_perfect(self, scorer):
        assert scorer.score([]) == 100.0

    @pytest.mark.parametrize("severity, expected", [
        (Severity.CRITICAL, 85.0),
        (Severity.MAJOR, 94.0),
        (Severity.MODERATE, 97.0),
        (Severity.MINOR, 99.0),
        (Severity.INFO, 100.0),
    ])
    def test_penalty_per_severity(self, scorer, severity, expected):
        assert scorer.score([difference(severity)]) == expected

    def test_major_plus_moderate_is_91(self, scorer):
        assert scorer.score([difference(Severity.MAJOR), difference(Severity.MODERATE)]) == 91.0

    def test_many_minor_issues_can_reach_zero(self, scorer):
        """Volume of small issues is itself a quality signal."""
        assert scorer.score([difference(Severity.MINOR)] * 150) == 0.0

    def test_clamped_at_zero(self, scorer):
        assert scorer.score([difference(Severity.CRITICAL)] * 10) == 0.0

    def test_order_does_not_matter(self, scorer):
        differences = [difference(s) for s in Severity] * 3
        shuffled = list(differences)
        random.Random(7).shuffle(shuffled)
        assert scorer.score(differences) == scorer.score(shuffled)

    def test_adding_a_difference_never_raises_the_score(self, scorer):
        """User Outcome at Risk: A worse migration reported as better."""
        base = [difference(Severity.MAJOR), difference(Severity.MINOR)]
        for severity in Severity:
            assert scorer.score(base + [difference(severity)]) <= scorer.score(base)
            assert scorer.score(base[1:]) >= scorer.score(base)


class TestStatus:
    """Threshold ladder on the clamped score"""

    @pytest.mark.parametrize("score, expected", [
        (100.0, ValidationStatus.FULLY_EQUIVALENT),
        (95.0, ValidationStatus.FULLY_EQUIVALENT),
        (94.9, ValidationStatus.MOSTLY_EQUIVALENT),
        (85.0, ValidationStatus.MOSTLY_EQUIVALENT),
        (84.9, ValidationStatus.PARTIALLY_EQUIVALENT),
        (60.0, ValidationStatus.PARTIALLY_EQUIVALENT),
        (59.9, ValidationStatus.NOT_EQUIVALENT),
        (0.0, ValidationStatus.NOT_EQUIVALENT),
    ])
    def test_boundaries(self, scorer, score, expected):
        assert scorer.status(score) == expected

    def test_zero_analysable_units_is_validation_failed(self, scorer):
        assert scorer.status(0.0, units_analyzed=0) == ValidationStatus.VALIDATION_FAILED

    def test_worst_status(self):
        statuses = [ValidationStatus.FULLY_EQUIVALENT, ValidationStatus.NOT_EQUIVALENT,
                    ValidationStatus.MOSTLY_EQUIVALENT]
        assert ValidationStatus.worst(statuses) == ValidationStatus.NOT_EQUIVALENT


class TestRecommendations:
    """Only Moderate-or-worse differences are actioned"""

    @pytest.mark.parametrize("severity", [Severity.MINOR, Severity.INFO])
    def test_minor_and_info_yield_nothing(self, severity):
        assert RecommendationGenerator().generate(difference(severity)) is None

    def test_recommendation_has_before_and_after(self):
        diff = difference(
            Severity.MODERATE,
            category=Category.ERROR_HANDLING,
            kind=DifferenceKind.MISSING_ERROR_PATH,
            subject="FILE-STATUS-35",
            expected_behavior="IF WS-FILE-STATUS = '35' PERFORM ABEND-ROUTINE",
            actual_behavior="No equivalent error handling",
            suggested_fix="Add explicit handling for FILE-STATUS-35 in PolicyDriver",
        )
        text = RecommendationGenerator().generate(diff)

        lines = text.splitlines()
        assert lines[0] == ("[Moderate] ErrorHandling: Handle the FILE-STATUS-35 error path "
                            "of POLICY-DRIVER in PolicyDriver")
        assert "    Fix:    Add explicit handling for FILE-STATUS-35 in PolicyDriver" in lines
        assert "    Before: No equivalent error handling" in lines
        assert "    After:  IF WS-FILE-STATUS = '35' PERFORM ABEND-ROUTINE" in lines

    def test_unknown_kind_falls_back_to_fix_text(self):
        diff = difference(Severity.CRITICAL, suggested_fix="Correct the input models")
        text = RecommendationGenerator().generate(diff)
        assert text.startswith("[Critical] DataHandling: Correct the input models")

    def test_generate_all_filters_and_keeps_order(self):
        differences = [
            difference(Severity.INFO),
            difference(Severity.MAJOR, kind=DifferenceKind.DROPPED_FIELD, subject="B"),
            difference(Severity.MINOR),
            difference(Severity.MODERATE, kind=DifferenceKind.TYPE_MISMATCH, subject="C"),
        ]
        recommendations = RecommendationGenerator().generate_all(differences)

        assert len(recommendations) == 2
        assert recommendations[0].startswith("[Major]")
        assert recommendations[1].startswith("[Moderate]")
