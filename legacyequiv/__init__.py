"""legacyequiv - equivalence validation for legacy modernization

Compares the semantic model of a legacy program with the models of its
generated target-language artifacts, and reports a deterministic accuracy
score, classified differences and remediation recommendations.
"""

__version__ = "1.0.0"

from legacyequiv.engine import ValidationEngine, match_units, pair_units
from legacyequiv.cache import CachedValidator, ReportCache
from legacyequiv.loader import ModelLoadError, load_legacy_model, load_target_model, model_fingerprint
from legacyequiv.evaluation import UnclassifiedDifferenceError
from legacyequiv.reporting import ValidationReport, render

__all__ = [
    "__version__",
    "ValidationEngine",
    "match_units",
    "pair_units",
    "CachedValidator",
    "ReportCache",
    "ModelLoadError",
    "load_legacy_model",
    "load_target_model",
    "model_fingerprint",
    "UnclassifiedDifferenceError",
    "ValidationReport",
    "render",
]
