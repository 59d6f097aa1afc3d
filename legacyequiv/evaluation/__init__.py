"""
Classification, scoring and remediation of comparator findings.
"""

from .classifier import CLASSIFICATION_TABLE, DifferenceClassifier, UnclassifiedDifferenceError
from .scoring import AccuracyScorer
from .recommendations import RecommendationGenerator

__all__ = [
    "CLASSIFICATION_TABLE",
    "DifferenceClassifier",
    "UnclassifiedDifferenceError",
    "AccuracyScorer",
    "RecommendationGenerator",
]
