"""
Report Assembler

Aggregates classified differences into the final ValidationReport:
- accuracy score and status (delegated to AccuracyScorer)
- per-category and per-severity counts
- stable presentation order: severity (most severe first), category, unit
- recommendations for every actionable difference

The report is a value: built once per run, never mutated.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from legacyequiv.config import EXIT_CODES
from legacyequiv.evaluation.recommendations import RecommendationGenerator
from legacyequiv.evaluation.scoring import AccuracyScorer
from legacyequiv.models import (
    Category,
    FunctionalDifference,
    Severity,
    UnitResult,
    ValidationStatus,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationReport:
    """Complete equivalence validation result for one target language."""
    target_language: str
    accuracy_score: float
    status: ValidationStatus
    differences: Tuple[FunctionalDifference, ...] = ()
    correct_conversions: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    legacy_units_analyzed: int = 0
    target_units_analyzed: int = 0
    unit_results: Tuple[UnitResult, ...] = ()
    load_failures: Tuple[FunctionalDifference, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def category_counts(self) -> Dict[str, int]:
        counts = {category.value: 0 for category in Category}
        for difference in self.differences:
            counts[difference.category.value] += 1
        return counts

    @property
    def severity_counts(self) -> Dict[str, int]:
        counts = {severity.value: 0 for severity in Severity}
        for difference in self.differences:
            counts[difference.severity.value] += 1
        return counts

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.status.value]

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "target_language": self.target_language,
            "accuracy_score": round(self.accuracy_score, 1),
            "status": self.status.value,
            "legacy_units_analyzed": self.legacy_units_analyzed,
            "target_units_analyzed": self.target_units_analyzed,
            "timestamp": self.timestamp.isoformat(),
            "counts": {
                "by_category": self.category_counts,
                "by_severity": self.severity_counts,
            },
            "unit_results": [u.to_dict() for u in self.unit_results],
            "differences": [d.to_dict() for d in self.differences],
            "load_failures": [d.to_dict() for d in self.load_failures],
            "correct_conversions": list(self.correct_conversions),
            "recommendations": list(self.recommendations),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ValidationReport":
        """Create from dictionary"""
        return cls(
            target_language=data["target_language"],
            accuracy_score=float(data["accuracy_score"]),
            status=ValidationStatus(data["status"]),
            differences=tuple(FunctionalDifference.from_dict(d) for d in data.get("differences", [])),
            correct_conversions=tuple(data.get("correct_conversions", [])),
            recommendations=tuple(data.get("recommendations", [])),
            legacy_units_analyzed=int(data.get("legacy_units_analyzed", 0)),
            target_units_analyzed=int(data.get("target_units_analyzed", 0)),
            unit_results=tuple(UnitResult.from_dict(u) for u in data.get("unit_results", [])),
            load_failures=tuple(FunctionalDifference.from_dict(d) for d in data.get("load_failures", [])),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


def presentation_order(differences: Sequence[FunctionalDifference]) -> List[FunctionalDifference]:
    """Stable sort by (severity desc, category, legacy unit)"""
    return sorted(
        differences,
        key=lambda d: (d.severity.rank, d.category.rank, d.legacy_unit),
    )


class ReportAssembler:
    """
    Compose differences, positive findings and bookkeeping into a report.

    Usage:
        report = ReportAssembler().assemble(differences, conversions, 3, "java")
    """

    def __init__(self, scorer: Optional[AccuracyScorer] = None,
                 recommender: Optional[RecommendationGenerator] = None):
        self.scorer = scorer or AccuracyScorer()
        self.recommender = recommender or RecommendationGenerator()

    def assemble(
        self,
        differences: Sequence[FunctionalDifference],
        correct_conversions: Sequence[str],
        units_analyzed: int,
        target_language: str,
        target_units_analyzed: Optional[int] = None,
        unit_results: Sequence[UnitResult] = (),
        load_failures: Sequence[FunctionalDifference] = (),
        timestamp: Optional[datetime] = None,
    ) -> ValidationReport:
        """
        Build the final report.

        Args:
            differences: Classified differences of every analysed unit
            correct_conversions: Confirmed-correct mappings, unscored
            units_analyzed: Legacy units compared successfully
            target_language: Target language identifier
            target_units_analyzed: Target artifacts analysed (defaults to units_analyzed)
            unit_results: Per-unit outcomes; a failed unit fails the batch
            load_failures: Diagnostic notes for units that failed to load; any
                note fails the batch
            timestamp: Report time (defaults to now, UTC)

        Returns:
            Immutable ValidationReport
        """
        logger.debug("Stage 1: Score [...]")
        score = self.scorer.score(differences)
        if units_analyzed <= 0:
            score = 0.0
        status = self.scorer.status(score, units_analyzed)
        if unit_results:
            status = ValidationStatus.worst([status] + [u.status for u in unit_results])
        if load_failures:
            # Any unit that failed to load fails the run
            status = ValidationStatus.VALIDATION_FAILED
        logger.debug(f"Stage 1: Accuracy {score:.1f}% -> {status.value} [OK]")

        logger.debug("Stage 2: Order differences [...]")
        ordered = presentation_order(differences)
        logger.debug(f"Stage 2: {len(ordered)} differences ordered [OK]")

        logger.debug("Stage 3: Recommendations [...]")
        recommendations = self.recommender.generate_all(ordered)
        logger.debug(f"Stage 3: {len(recommendations)} recommendations [OK]")

        report = ValidationReport(
            target_language=target_language,
            accuracy_score=score,
            status=status,
            differences=tuple(ordered),
            correct_conversions=tuple(correct_conversions),
            recommendations=tuple(recommendations),
            legacy_units_analyzed=units_analyzed,
            target_units_analyzed=units_analyzed if target_units_analyzed is None else target_units_analyzed,
            unit_results=tuple(unit_results),
            load_failures=tuple(load_failures),
            timestamp=timestamp or datetime.now(timezone.utc),
        )

        logger.info(f"Report assembled: {score:.1f}% ({status.value}), "
                    f"{len(ordered)} differences, {len(load_failures)} load failures")
        return report
