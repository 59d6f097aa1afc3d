"""
Field and operation alignment between a legacy unit and a target artifact.
"""

from .normalization import normalize_name, normalize_predicate
from .field_comparator import FieldComparator, SAFE_TYPE_WIDENINGS
from .operation_comparator import OperationComparator

__all__ = [
    "normalize_name",
    "normalize_predicate",
    "FieldComparator",
    "SAFE_TYPE_WIDENINGS",
    "OperationComparator",
]
