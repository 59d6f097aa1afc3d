"""
Recommendation Generator

Maps a classified difference to a remediation recommendation with the
concrete unit and field names filled in, followed by a before/after
illustration taken from the difference's actual and expected behaviour.

Only differences of Moderate severity or worse are actioned.
"""

from typing import List, Optional, Sequence

from legacyequiv.config import RECOMMENDATION_MIN_SEVERITY
from legacyequiv.models import DifferenceKind, FunctionalDifference, Severity


TEMPLATES = {
    DifferenceKind.WIDTH_MISMATCH:
        "Widen {target_unit}.{subject} so it holds every value of {legacy_unit}.{subject}",
    DifferenceKind.TYPE_MISMATCH_ARITHMETIC:
        "Restore a numeric type for {subject} in {target_unit}; {legacy_unit} computes with it",
    DifferenceKind.TYPE_MISMATCH:
        "Align the declared type of {subject} in {target_unit} with {legacy_unit}",
    DifferenceKind.PRECISION_LOSS:
        "Keep the decimal places of {subject} in {target_unit}",
    DifferenceKind.DROPPED_FIELD:
        "Carry {legacy_unit}.{subject} into {target_unit}",
    DifferenceKind.PARTIAL_CURSOR_COVERAGE:
        "Complete the {subject} query in {target_unit} with every legacy join/filter condition",
    DifferenceKind.MISSING_BRANCH:
        "Implement the {subject} condition of {legacy_unit} in {target_unit}",
    DifferenceKind.MISSING_ERROR_PATH:
        "Handle the {subject} error path of {legacy_unit} in {target_unit}",
    DifferenceKind.MISSING_FILE_OPERATION:
        "Implement the missing {subject} operation of {legacy_unit} in {target_unit}",
    DifferenceKind.LOAD_FAILURE:
        "Fix the semantic model of {subject} so it can be analysed",
}


class RecommendationGenerator:
    """
    Generate remediation recommendations.

    Usage:
        generator = RecommendationGenerator()
        text = generator.generate(difference)   # None below Moderate
    """

    def __init__(self):
        self.min_severity = Severity(RECOMMENDATION_MIN_SEVERITY.capitalize())

    def is_actionable(self, difference: FunctionalDifference) -> bool:
        return difference.severity.at_least(self.min_severity)

    def generate(self, difference: FunctionalDifference) -> Optional[str]:
        """Recommendation text, or None for Minor/Info differences"""
        if not self.is_actionable(difference):
            return None

        template = TEMPLATES.get(difference.kind)
        if template is None:
            headline = difference.suggested_fix or difference.description
        else:
            headline = template.format(
                legacy_unit=difference.legacy_unit or "the legacy unit",
                target_unit=difference.target_unit or "the target",
                subject=difference.subject,
            )

        lines = [f"[{difference.severity.value}] {difference.category.value}: {headline}"]
        if difference.suggested_fix and difference.suggested_fix != headline:
            lines.append(f"    Fix:    {difference.suggested_fix}")
        lines.append(f"    Before: {difference.actual_behavior}")
        lines.append(f"    After:  {difference.expected_behavior}")
        return "\n".join(lines)

    def generate_all(self, differences: Sequence[FunctionalDifference]) -> List[str]:
        """Recommendations for every actionable difference, in input order"""
        recommendations = []
        for difference in differences:
            text = self.generate(difference)
            if text is not None:
                recommendations.append(text)
        return recommendations
