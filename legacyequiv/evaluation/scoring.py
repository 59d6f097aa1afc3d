"""
Accuracy Scorer

Accuracy = clamp(100 - sum(penalty(severity)), 0, 100)

Penalties: Critical 15, Major 6, Moderate 3, Minor 1, Info 0.
The reduction is a plain sum, so the score does not depend on the order of
the difference set.

Status thresholds on the clamped score:
- >= 95 -> FullyEquivalent
- >= 85 -> MostlyEquivalent
- >= 60 -> PartiallyEquivalent
- otherwise NotEquivalent
- no analysable units (model loading failed) -> ValidationFailed
"""

import math
from typing import Dict, Iterable
import logging

from legacyequiv.config import (
    MAX_SCORE,
    MIN_SCORE,
    SEVERITY_PENALTIES,
    STATUS_THRESHOLDS,
)
from legacyequiv.models import FunctionalDifference, Severity, ValidationStatus


logger = logging.getLogger(__name__)


class AccuracyScorer:
    """Reduce a difference set to a 0-100 score and a coarse status"""

    def __init__(self):
        self.penalties: Dict[Severity, float] = {
            severity: SEVERITY_PENALTIES[severity.value.lower()] for severity in Severity
        }
        self.thresholds = STATUS_THRESHOLDS

    def penalty(self, severity: Severity) -> float:
        return self.penalties[severity]

    def score(self, differences: Iterable[FunctionalDifference]) -> float:
        """Clamped accuracy score for a difference set"""
        total_penalty = math.fsum(self.penalty(d.severity) for d in differences)
        score = max(MIN_SCORE, min(MAX_SCORE, MAX_SCORE - total_penalty))
        logger.debug(f"Penalty {total_penalty:.1f} -> accuracy {score:.1f}")
        return score

    def status(self, score: float, units_analyzed: int = 1) -> ValidationStatus:
        """Status for a clamped score; zero analysable units overrides the score"""
        if units_analyzed <= 0:
            return ValidationStatus.VALIDATION_FAILED
        if score >= self.thresholds["fully_equivalent"]:
            return ValidationStatus.FULLY_EQUIVALENT
        if score >= self.thresholds["mostly_equivalent"]:
            return ValidationStatus.MOSTLY_EQUIVALENT
        if score >= self.thresholds["partially_equivalent"]:
            return ValidationStatus.PARTIALLY_EQUIVALENT
        return ValidationStatus.NOT_EQUIVALENT
