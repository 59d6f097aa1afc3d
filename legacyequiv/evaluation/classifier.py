"""
Difference Classifier

Turns raw comparator output (field mappings and operation gaps) into
FunctionalDifferences through a fixed lookup table:

    DifferenceKind -> (Category, Severity)

The table is exhaustive over DifferenceKind. A finding that resolves to no
entry raises UnclassifiedDifferenceError; it is never dropped or scored as
Info.
"""

from typing import Dict, List, Optional, Sequence, Tuple
import logging

from legacyequiv.models import (
    Category,
    DifferenceKind,
    FieldMapping,
    FILE_OPERATION_KINDS,
    FunctionalDifference,
    MappingOutcome,
    MatchKind,
    OperationKind,
    RawGap,
    Severity,
    UnitLoadFailure,
)


logger = logging.getLogger(__name__)


CLASSIFICATION_TABLE: Dict[DifferenceKind, Tuple[Category, Severity]] = {
    DifferenceKind.WIDTH_MISMATCH: (Category.DATA_HANDLING, Severity.MAJOR),
    DifferenceKind.TYPE_MISMATCH_ARITHMETIC: (Category.DATA_HANDLING, Severity.MAJOR),
    DifferenceKind.TYPE_MISMATCH: (Category.DATA_HANDLING, Severity.MODERATE),
    DifferenceKind.PRECISION_LOSS: (Category.DATA_HANDLING, Severity.MAJOR),
    DifferenceKind.NULLABILITY_MISMATCH: (Category.DATA_HANDLING, Severity.MINOR),
    DifferenceKind.DROPPED_FIELD: (Category.DATA_HANDLING, Severity.MAJOR),
    DifferenceKind.DROPPED_DUPLICATE: (Category.DATA_HANDLING, Severity.INFO),
    DifferenceKind.ADDED_FIELD: (Category.DATA_HANDLING, Severity.INFO),
    DifferenceKind.MASKING_ADDED_FIELD: (Category.DATA_HANDLING, Severity.MINOR),
    DifferenceKind.COSMETIC_RENAME: (Category.DATA_HANDLING, Severity.INFO),
    DifferenceKind.PARTIAL_CURSOR_COVERAGE: (Category.BUSINESS_LOGIC, Severity.MAJOR),
    DifferenceKind.MISSING_BRANCH: (Category.BUSINESS_LOGIC, Severity.MODERATE),
    DifferenceKind.FOLDED_BRANCH: (Category.CONTROL_FLOW, Severity.MINOR),
    DifferenceKind.MISSING_ERROR_PATH: (Category.ERROR_HANDLING, Severity.MODERATE),
    DifferenceKind.MISSING_FILE_OPERATION: (Category.FILE_IO, Severity.MODERATE),
    DifferenceKind.LOAD_FAILURE: (Category.DATA_HANDLING, Severity.CRITICAL),
}

_FIELD_PROBLEM_KINDS = {
    MappingOutcome.WIDTH_MISMATCH: DifferenceKind.WIDTH_MISMATCH,
    MappingOutcome.PRECISION_LOSS: DifferenceKind.PRECISION_LOSS,
    MappingOutcome.NULLABILITY_MISMATCH: DifferenceKind.NULLABILITY_MISMATCH,
}

_GAP_KINDS = {
    MatchKind.PARTIAL_CURSOR_COVERAGE: DifferenceKind.PARTIAL_CURSOR_COVERAGE,
    MatchKind.MISSING_ERROR_PATH: DifferenceKind.MISSING_ERROR_PATH,
    MatchKind.MISSING_BRANCH: DifferenceKind.MISSING_BRANCH,
    MatchKind.FOLDED_BRANCH: DifferenceKind.FOLDED_BRANCH,
}

_FILE_OPERATION_IMPACT = {
    OperationKind.OPEN: "The file or table is never opened; every later access fails",
    OperationKind.CLOSE: "The resource is never released; buffered output may not be flushed",
    OperationKind.READ: "Records the legacy program consumes are never read",
    OperationKind.WRITE: "Records the legacy program produces are never persisted",
    OperationKind.SEARCH: "Keyed lookups are not performed; dependent logic sees no match",
}


class UnclassifiedDifferenceError(RuntimeError):
    """A comparator produced a finding with no classification entry"""


class DifferenceClassifier:
    """
    Classify comparator output into FunctionalDifferences.

    Usage:
        classifier = DifferenceClassifier()
        differences = classifier.classify_all(mappings, gaps)
    """

    def __init__(self, table: Optional[Dict[DifferenceKind, Tuple[Category, Severity]]] = None):
        self.table = CLASSIFICATION_TABLE if table is None else table

    def lookup(self, kind: DifferenceKind) -> Tuple[Category, Severity]:
        """Category and severity for a kind; fails closed"""
        entry = self.table.get(kind)
        if entry is None:
            logger.error(f"Unclassified difference kind: {kind}")
            raise UnclassifiedDifferenceError(f"Unclassified difference: {kind}")
        return entry

    def classify_all(
        self,
        mappings: Sequence[FieldMapping],
        gaps: Sequence[RawGap],
    ) -> List[FunctionalDifference]:
        """Classify every mapping then every gap, preserving input order"""
        differences = []
        for mapping in mappings:
            differences.extend(self.classify_mapping(mapping))
        for gap in gaps:
            differences.extend(self.classify_gap(gap))
        return differences

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def classify_mapping(self, mapping: FieldMapping) -> List[FunctionalDifference]:
        """Zero or more differences for one field mapping"""
        outcome = mapping.outcome

        if outcome == MappingOutcome.MATCHED:
            if mapping.renamed:
                return [self._build(DifferenceKind.COSMETIC_RENAME, mapping)]
            return []

        if outcome == MappingOutcome.DROPPED:
            kind = DifferenceKind.DROPPED_DUPLICATE if mapping.duplicate else DifferenceKind.DROPPED_FIELD
            return [self._build(kind, mapping)]

        if outcome == MappingOutcome.ADDED:
            kind = DifferenceKind.MASKING_ADDED_FIELD if mapping.candidate else DifferenceKind.ADDED_FIELD
            return [self._build(kind, mapping)]

        differences = []
        for problem in mapping.problems:
            if problem == MappingOutcome.TYPE_MISMATCH:
                kind = (DifferenceKind.TYPE_MISMATCH_ARITHMETIC if mapping.arithmetic_usage
                        else DifferenceKind.TYPE_MISMATCH)
            elif problem in _FIELD_PROBLEM_KINDS:
                kind = _FIELD_PROBLEM_KINDS[problem]
            else:
                raise UnclassifiedDifferenceError(
                    f"Unclassified difference: field {mapping.subject} with outcome {problem.value}"
                )
            differences.append(self._build(kind, mapping))

        if not differences:
            raise UnclassifiedDifferenceError(
                f"Unclassified difference: field {mapping.subject} with outcome {outcome.value}"
            )
        return differences

    def _build(self, kind: DifferenceKind, mapping: FieldMapping) -> FunctionalDifference:
        category, severity = self.lookup(kind)
        legacy = mapping.legacy_field
        target = mapping.target_field
        where = mapping.target_unit or "the target"

        if kind == DifferenceKind.WIDTH_MISMATCH:
            text = (
                f"Field {legacy.name} narrowed from {legacy.declared_width} to "
                f"{target.declared_width} characters in {where}.{target.name}",
                f"{legacy.name} holds {legacy.declared_width} characters ({legacy.describe()})",
                f"{target.name} holds {target.declared_width} characters ({target.describe()})",
                f"Values longer than {target.declared_width} characters are truncated or rejected",
                f"Declare {target.name} with a width of at least {legacy.declared_width}",
            )
        elif kind in (DifferenceKind.TYPE_MISMATCH, DifferenceKind.TYPE_MISMATCH_ARITHMETIC):
            lt, tt = legacy.declared_type.value, target.declared_type.value
            if kind == DifferenceKind.TYPE_MISMATCH_ARITHMETIC:
                impact = f"Arithmetic on {legacy.name} is no longer possible without conversion; results may differ"
                fix = f"Declare {target.name} as a fixed-point {lt} type so it stays computable"
            else:
                impact = f"Comparison, sorting and validation semantics of {legacy.name} change"
                fix = f"Declare {target.name} as {lt} or convert explicitly at the boundary"
            text = (
                f"Field {legacy.name} converted from {lt} to {tt} in {where}.{target.name}",
                f"{legacy.name} is {legacy.describe()}",
                f"{target.name} is {target.describe()}",
                impact,
                fix,
            )
        elif kind == DifferenceKind.PRECISION_LOSS:
            text = (
                f"Field {legacy.name} loses decimal places ({legacy.scale} -> {target.scale}) "
                f"in {where}.{target.name}",
                f"{legacy.name} keeps {legacy.scale} decimal places ({legacy.describe()})",
                f"{target.name} keeps {target.scale} decimal places ({target.describe()})",
                "Amounts are rounded on conversion; totals drift from the legacy results",
                f"Declare {target.name} with a scale of {legacy.scale}",
            )
        elif kind == DifferenceKind.NULLABILITY_MISMATCH:
            text = (
                f"Nullable field {legacy.name} mapped to non-nullable {where}.{target.name}",
                f"{legacy.name} may be absent ({legacy.describe()})",
                f"{target.name} requires a value ({target.describe()})",
                f"Records with no {legacy.name} are rejected on write",
                f"Mark {target.name} as nullable",
            )
        elif kind == DifferenceKind.DROPPED_FIELD:
            if mapping.candidate:
                actual = (f"No field of {where} corresponds to {legacy.name}; "
                          f"added field {mapping.candidate} has the same declared shape")
                fix = (f"If {mapping.candidate} replaces {legacy.name}, declare the correspondence key "
                       f"{legacy.name} -> {mapping.candidate}; otherwise add a field for {legacy.name}")
            else:
                actual = f"No field of {where} corresponds to {legacy.name}"
                fix = f"Add a field for {legacy.name} to {where} or declare its correspondence key"
            text = (
                f"Field {legacy.name} has no counterpart in {where}",
                f"{legacy.name} ({legacy.describe()}) is carried into the migrated model",
                actual,
                f"Data held in {legacy.name} is lost on migration",
                fix,
            )
        elif kind == DifferenceKind.DROPPED_DUPLICATE:
            shared = f"storage is shared with {legacy.redefines}" if legacy.redefines else "FILLER holds no data"
            text = (
                f"Alternate view {legacy.name} not carried into {where}",
                f"{legacy.name} ({legacy.describe()}) redefines existing storage",
                f"No field of {where} corresponds to {legacy.name}",
                f"None expected: {shared}",
                "",
            )
        elif kind == DifferenceKind.ADDED_FIELD:
            text = (
                f"Field {target.name} in {where} has no legacy origin",
                "",
                f"{target.name} ({target.describe()}) declared in {where}",
                "Informational",
                "",
            )
        elif kind == DifferenceKind.MASKING_ADDED_FIELD:
            text = (
                f"Field {target.name} in {where} may be an undeclared rename of dropped field {mapping.candidate}",
                f"{mapping.candidate} carried over under a declared correspondence key",
                f"{target.name} ({target.describe()}) has no legacy origin and matches the shape of "
                f"{mapping.candidate}",
                f"The drop of {mapping.candidate} cannot be confirmed or ruled out",
                f"Declare the correspondence key {mapping.candidate} -> {target.name} or remove {target.name}",
            )
        elif kind == DifferenceKind.COSMETIC_RENAME:
            text = (
                f"Field {legacy.name} renamed to {target.name} in {where}",
                f"{legacy.name} ({legacy.describe()})",
                f"{target.name} ({target.describe()})",
                "None: declared semantics preserved",
                "",
            )
        else:
            raise UnclassifiedDifferenceError(f"Unclassified difference: {kind} for field mapping")

        description, expected, actual, impact, fix = text
        return FunctionalDifference(
            severity=severity,
            category=category,
            legacy_unit=mapping.legacy_unit,
            target_unit=mapping.target_unit,
            description=description,
            expected_behavior=expected,
            actual_behavior=actual,
            impact=impact,
            suggested_fix=fix,
            kind=kind,
            subject=mapping.subject,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def classify_gap(self, gap: RawGap) -> List[FunctionalDifference]:
        """Zero or one difference for one operation alignment"""
        if gap.match_kind == MatchKind.MATCHED:
            return []

        if gap.match_kind == MatchKind.MISSING_OPERATION:
            if gap.legacy_op.kind not in FILE_OPERATION_KINDS:
                raise UnclassifiedDifferenceError(
                    f"Unclassified difference: missing {gap.legacy_op.kind.value} operation "
                    f"{gap.legacy_op.key!r} in {gap.legacy_unit}"
                )
            kind = DifferenceKind.MISSING_FILE_OPERATION
        elif gap.match_kind in _GAP_KINDS:
            kind = _GAP_KINDS[gap.match_kind]
        else:
            raise UnclassifiedDifferenceError(f"Unclassified difference: {gap.match_kind}")

        category, severity = self.lookup(kind)
        op = gap.legacy_op
        name = op.key or op.kind.label
        where = gap.target_unit or "the target"

        if kind == DifferenceKind.PARTIAL_CURSOR_COVERAGE:
            missing = "; ".join(gap.uncovered_predicates)
            if gap.matched_target_op is None:
                description = f"Cursor {name} is not implemented in {where}"
                actual = "No query corresponds to the cursor"
            else:
                covered = len(op.predicates) - len(gap.uncovered_predicates)
                description = (f"Cursor {name} covers {covered} of {len(op.predicates)} "
                               f"predicates in {where}")
                actual = f"Query omits: {missing}"
            text = (
                description,
                "Query applies: " + "; ".join(op.predicates) if op.predicates else (op.description or ""),
                actual,
                "The query selects rows the legacy cursor excludes; a business rule is dropped",
                f"Add the missing conditions to the {where} query: {missing}" if missing
                else f"Implement cursor {name} in {where}",
            )
        elif kind == DifferenceKind.MISSING_ERROR_PATH:
            text = (
                f"Error path {name} has no counterpart in {where}",
                op.description or f"{name} is detected and handled",
                "No equivalent error handling",
                "Failures the legacy program trapped propagate unhandled or are silently ignored",
                f"Add explicit handling for {name} in {where}",
            )
        elif kind == DifferenceKind.MISSING_BRANCH:
            text = (
                f"Condition {name} is not evaluated in {where}",
                op.description or f"Processing branches on {name}",
                "No corresponding conditional",
                f"The business rule guarded by {name} is not enforced",
                f"Implement the {name} condition in {where}",
            )
        elif kind == DifferenceKind.FOLDED_BRANCH:
            text = (
                f"Condition {name} collapsed into unconditional code in {where}",
                op.description or f"Processing branches on {name}",
                "Branch folded into straight-line code",
                "None expected: the condition is constant",
                "",
            )
        else:
            text = (
                f"{op.kind.label} operation on {name} missing in {where}",
                op.description or f"{op.kind.label} {name}",
                f"No {op.kind.label.lower()} operation on {name}",
                _FILE_OPERATION_IMPACT[op.kind],
                f"Implement the {op.kind.label.lower()} of {name} in {where}",
            )

        description, expected, actual, impact, fix = text
        return [FunctionalDifference(
            severity=severity,
            category=category,
            legacy_unit=gap.legacy_unit,
            target_unit=gap.target_unit,
            description=description,
            expected_behavior=expected,
            actual_behavior=actual,
            impact=impact,
            suggested_fix=fix,
            kind=kind,
            subject=name,
        )]

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def load_failure(self, failure: UnitLoadFailure) -> FunctionalDifference:
        """Diagnostic note for a unit whose model failed to load"""
        category, severity = self.lookup(DifferenceKind.LOAD_FAILURE)
        return FunctionalDifference(
            severity=severity,
            category=category,
            legacy_unit=failure.unit if failure.origin == "legacy" else "",
            target_unit=failure.unit if failure.origin == "target" else "",
            description=f"Unit {failure.unit} failed to load from the {failure.origin} model",
            expected_behavior="A well-formed semantic model",
            actual_behavior=failure.reason,
            impact="Unit excluded from analysis and scoring",
            suggested_fix=f"Correct the {failure.origin} model for {failure.unit} and re-run",
            kind=DifferenceKind.LOAD_FAILURE,
            subject=failure.unit,
        )
