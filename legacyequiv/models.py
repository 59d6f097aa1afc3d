"""Value types shared by the comparators, classifier and report assembler.

All types are immutable once built. Enumerations carry the exact labels used
in rendered reports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class FieldType(Enum):
    """Declared type of a field"""
    TEXT = "text"
    NUMERIC = "numeric"
    DATE = "date"
    TIMESTAMP = "timestamp"


class OperationKind(Enum):
    """Kind of a declared operation"""
    OPEN = "open"
    CLOSE = "close"
    READ = "read"
    WRITE = "write"
    SEARCH = "search"
    CURSOR = "cursor"
    CONDITIONAL_BRANCH = "conditional_branch"
    ERROR_PATH = "error_path"
    COMPUTE = "compute"  # Arithmetic statement; informs type checks only

    @property
    def label(self) -> str:
        return "".join(part.capitalize() for part in self.value.split("_"))


FILE_OPERATION_KINDS = frozenset({
    OperationKind.OPEN,
    OperationKind.CLOSE,
    OperationKind.READ,
    OperationKind.WRITE,
    OperationKind.SEARCH,
})


class MappingOutcome(Enum):
    """Outcome of aligning one legacy field"""
    MATCHED = "Matched"
    WIDTH_MISMATCH = "WidthMismatch"
    TYPE_MISMATCH = "TypeMismatch"
    PRECISION_LOSS = "PrecisionLoss"
    NULLABILITY_MISMATCH = "NullabilityMismatch"
    DROPPED = "Dropped"
    ADDED = "Added"


class MatchKind(Enum):
    """Outcome of aligning one legacy operation"""
    MATCHED = "Matched"
    MISSING_OPERATION = "MissingOperation"
    PARTIAL_CURSOR_COVERAGE = "PartialCursorCoverage"
    MISSING_ERROR_PATH = "MissingErrorPath"
    MISSING_BRANCH = "MissingBranch"
    FOLDED_BRANCH = "FoldedBranch"


class Severity(Enum):
    """Severity levels, most severe first"""
    CRITICAL = "Critical"
    MAJOR = "Major"
    MODERATE = "Moderate"
    MINOR = "Minor"
    INFO = "Info"

    @property
    def rank(self) -> int:
        """0 for Critical up to 4 for Info"""
        return _SEVERITY_ORDER.index(self)

    def at_least(self, other: "Severity") -> bool:
        return self.rank <= other.rank


_SEVERITY_ORDER = list(Severity)


class Category(Enum):
    """Difference categories"""
    DATA_HANDLING = "DataHandling"
    BUSINESS_LOGIC = "BusinessLogic"
    FILE_IO = "FileIO"
    ERROR_HANDLING = "ErrorHandling"
    CONTROL_FLOW = "ControlFlow"

    @property
    def rank(self) -> int:
        return _CATEGORY_ORDER.index(self)


_CATEGORY_ORDER = list(Category)


class ValidationStatus(Enum):
    """Terminal classification of a validation run, best first"""
    FULLY_EQUIVALENT = "FullyEquivalent"
    MOSTLY_EQUIVALENT = "MostlyEquivalent"
    PARTIALLY_EQUIVALENT = "PartiallyEquivalent"
    NOT_EQUIVALENT = "NotEquivalent"
    VALIDATION_FAILED = "ValidationFailed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    @classmethod
    def worst(cls, statuses) -> "ValidationStatus":
        """Worst of a non-empty iterable of statuses"""
        return max(statuses, key=lambda s: s.rank)


_STATUS_ORDER = list(ValidationStatus)


class DifferenceKind(Enum):
    """Every shape of finding the comparators can produce.

    Each member must have an entry in the classification table.
    """
    WIDTH_MISMATCH = "width_mismatch"
    TYPE_MISMATCH_ARITHMETIC = "type_mismatch_arithmetic"
    TYPE_MISMATCH = "type_mismatch"
    PRECISION_LOSS = "precision_loss"
    NULLABILITY_MISMATCH = "nullability_mismatch"
    DROPPED_FIELD = "dropped_field"
    DROPPED_DUPLICATE = "dropped_duplicate"
    ADDED_FIELD = "added_field"
    MASKING_ADDED_FIELD = "masking_added_field"
    COSMETIC_RENAME = "cosmetic_rename"
    PARTIAL_CURSOR_COVERAGE = "partial_cursor_coverage"
    MISSING_BRANCH = "missing_branch"
    FOLDED_BRANCH = "folded_branch"
    MISSING_ERROR_PATH = "missing_error_path"
    MISSING_FILE_OPERATION = "missing_file_operation"
    LOAD_FAILURE = "load_failure"


# ===========================================
# Fields
# ===========================================

@dataclass(frozen=True)
class FieldDefinition:
    """Declared semantics of one field"""
    name: str
    declared_width: int
    declared_type: FieldType
    nullable: bool = False
    scale: Optional[int] = None  # Decimal places, numeric fields only

    def describe(self) -> str:
        """Short rendering such as ``numeric(9,2)`` or ``text(10) null``"""
        if self.scale is not None and self.declared_type == FieldType.NUMERIC:
            shape = f"{self.declared_type.value}({self.declared_width},{self.scale})"
        else:
            shape = f"{self.declared_type.value}({self.declared_width})"
        return f"{shape} null" if self.nullable else shape


@dataclass(frozen=True)
class LegacyField(FieldDefinition):
    """Field of a legacy record layout"""
    redefines: Optional[str] = None  # Alternate view over another field's storage

    @property
    def is_filler(self) -> bool:
        return self.name.strip().upper() == "FILLER"


@dataclass(frozen=True)
class TargetField(FieldDefinition):
    """Field of a generated entity/DTO"""


@dataclass(frozen=True)
class FieldMapping:
    """Alignment of one legacy field with zero or one target field.

    ``problems`` lists every mismatch found; ``outcome`` is the first of them
    (or Matched/Dropped/Added).
    """
    legacy_unit: str
    target_unit: str
    legacy_field: Optional[LegacyField]
    target_field: Optional[TargetField]
    outcome: MappingOutcome
    problems: Tuple[MappingOutcome, ...] = ()
    arithmetic_usage: bool = False
    renamed: bool = False
    duplicate: bool = False
    candidate: Optional[str] = None  # Same-shaped field on the other side of a Dropped/Added pair

    @property
    def subject(self) -> str:
        if self.legacy_field is not None:
            return self.legacy_field.name
        return self.target_field.name if self.target_field else ""


# ===========================================
# Operations
# ===========================================

@dataclass(frozen=True)
class Operation:
    """Declared operation of a unit"""
    unit: str
    kind: OperationKind
    description: str = ""
    key: str = ""  # Correspondence key: file, cursor, condition or status name
    predicates: Tuple[str, ...] = ()  # Cursor only, one entry per join/filter condition
    foldable: bool = False  # Conditional branch provably constant
    fields: Tuple[str, ...] = ()  # Fields referenced (compute operations)

    @property
    def label(self) -> str:
        return f"{self.kind.label} {self.key}".strip()


@dataclass(frozen=True)
class LegacyOperation(Operation):
    """Operation of a legacy unit"""


@dataclass(frozen=True)
class TargetOperation(Operation):
    """Operation of a generated artifact"""


@dataclass(frozen=True)
class RawGap:
    """Alignment of one legacy operation with the target operations"""
    legacy_unit: str
    target_unit: str
    legacy_op: LegacyOperation
    matched_target_op: Optional[TargetOperation]
    match_kind: MatchKind
    uncovered_predicates: Tuple[str, ...] = ()


# ===========================================
# Units and models
# ===========================================

@dataclass(frozen=True)
class UnitCorrespondence:
    """Declared links from one legacy unit into one target language"""
    target_unit: Optional[str] = None
    fields: Dict[str, str] = field(default_factory=dict)
    operations: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LegacyUnit:
    """One legacy program or record layout"""
    name: str
    fields: Tuple[LegacyField, ...] = ()
    operations: Tuple[LegacyOperation, ...] = ()
    correspondence: Dict[str, UnitCorrespondence] = field(default_factory=dict)

    def correspondence_for(self, language: str) -> UnitCorrespondence:
        return self.correspondence.get(language.lower(), UnitCorrespondence())


@dataclass(frozen=True)
class TargetArtifact:
    """One generated artifact in one target language"""
    name: str
    fields: Tuple[TargetField, ...] = ()
    operations: Tuple[TargetOperation, ...] = ()
    legacy_unit: Optional[str] = None


@dataclass(frozen=True)
class UnitLoadFailure:
    """A unit that could not be loaded; never scored"""
    unit: str
    reason: str
    origin: str = "legacy"  # "legacy" or "target"
    legacy_unit: Optional[str] = None


@dataclass(frozen=True)
class LegacyModel:
    """Extracted semantic model of the legacy system"""
    units: Tuple[LegacyUnit, ...] = ()
    failures: Tuple[UnitLoadFailure, ...] = ()
    source: str = ""


@dataclass(frozen=True)
class TargetModel:
    """Generated artifacts for one target language"""
    language: str
    artifacts: Tuple[TargetArtifact, ...] = ()
    failures: Tuple[UnitLoadFailure, ...] = ()
    source: str = ""


# ===========================================
# Findings
# ===========================================

@dataclass(frozen=True)
class FunctionalDifference:
    """A classified finding"""
    severity: Severity
    category: Category
    legacy_unit: str
    target_unit: str
    description: str
    expected_behavior: str = ""
    actual_behavior: str = ""
    impact: str = ""
    suggested_fix: str = ""
    kind: Optional[DifferenceKind] = None
    subject: str = ""  # Field or operation the finding is about

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization"""
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "legacy_unit": self.legacy_unit,
            "target_unit": self.target_unit,
            "description": self.description,
            "expected_behavior": self.expected_behavior,
            "actual_behavior": self.actual_behavior,
            "impact": self.impact,
            "suggested_fix": self.suggested_fix,
            "kind": self.kind.value if self.kind else None,
            "subject": self.subject,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "FunctionalDifference":
        """Create from dictionary"""
        kind = data.get("kind")
        return cls(
            severity=Severity(data["severity"]),
            category=Category(data["category"]),
            legacy_unit=data.get("legacy_unit", ""),
            target_unit=data.get("target_unit", ""),
            description=data.get("description", ""),
            expected_behavior=data.get("expected_behavior", ""),
            actual_behavior=data.get("actual_behavior", ""),
            impact=data.get("impact", ""),
            suggested_fix=data.get("suggested_fix", ""),
            kind=DifferenceKind(kind) if kind else None,
            subject=data.get("subject", ""),
        )


@dataclass(frozen=True)
class UnitResult:
    """Per-unit outcome inside a batch"""
    legacy_unit: str
    target_unit: str
    accuracy_score: float
    status: ValidationStatus
    difference_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "legacy_unit": self.legacy_unit,
            "target_unit": self.target_unit,
            "accuracy_score": round(self.accuracy_score, 1),
            "status": self.status.value,
            "difference_count": self.difference_count,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "UnitResult":
        return cls(
            legacy_unit=data["legacy_unit"],
            target_unit=data.get("target_unit", ""),
            accuracy_score=float(data["accuracy_score"]),
            status=ValidationStatus(data["status"]),
            difference_count=int(data.get("difference_count", 0)),
            error=data.get("error"),
        )


