"""
Difference Classifier Tests

The classification table is exhaustive and fails closed.
"""
import pytest

from legacyequiv.evaluation import CLASSIFICATION_TABLE, DifferenceClassifier, UnclassifiedDifferenceError
from legacyequiv.models import (
    Category,
    DifferenceKind,
    FieldMapping,
    FieldType,
    LegacyField,
    LegacyOperation,
    MappingOutcome,
    MatchKind,
    OperationKind,
    RawGap,
    Severity,
    TargetField,
    UnitLoadFailure,
)


def width_mapping():
    return FieldMapping(
        legacy_unit="POLICY-DRIVER",
        target_unit="PolicyDriver",
        legacy_field=LegacyField("POLICY-HOLDER-NAME", 45, FieldType.TEXT),
        target_field=TargetField("holderName", 30, FieldType.TEXT),
        outcome=MappingOutcome.WIDTH_MISMATCH,
        problems=(MappingOutcome.WIDTH_MISMATCH,),
    )


class TestClassificationTable:
    """Canonical (Category, Severity) entries"""

    def test_table_covers_every_difference_kind(self):
        assert set(CLASSIFICATION_TABLE) == set(DifferenceKind)

    @pytest.mark.parametrize("kind, expected", [
        (DifferenceKind.WIDTH_MISMATCH, (Category.DATA_HANDLING, Severity.MAJOR)),
        (DifferenceKind.TYPE_MISMATCH_ARITHMETIC, (Category.DATA_HANDLING, Severity.MAJOR)),
        (DifferenceKind.TYPE_MISMATCH, (Category.DATA_HANDLING, Severity.MODERATE)),
        (DifferenceKind.DROPPED_FIELD, (Category.DATA_HANDLING, Severity.MAJOR)),
        (DifferenceKind.PARTIAL_CURSOR_COVERAGE, (Category.BUSINESS_LOGIC, Severity.MAJOR)),
        (DifferenceKind.MISSING_BRANCH, (Category.BUSINESS_LOGIC, Severity.MODERATE)),
        (DifferenceKind.MISSING_ERROR_PATH, (Category.ERROR_HANDLING, Severity.MODERATE)),
        (DifferenceKind.MISSING_FILE_OPERATION, (Category.FILE_IO, Severity.MODERATE)),
        (DifferenceKind.FOLDED_BRANCH, (Category.CONTROL_FLOW, Severity.MINOR)),
    ])
    def test_canonical_entries(self, kind, expected):
        assert DifferenceClassifier().lookup(kind) == expected

    def test_informational_entries_carry_no_penalty_severity(self):
        for kind in (DifferenceKind.ADDED_FIELD, DifferenceKind.COSMETIC_RENAME, DifferenceKind.DROPPED_DUPLICATE):
            assert CLASSIFICATION_TABLE[kind][1] == Severity.INFO


class TestFailClosed:
    """Unclassified findings abort instead of being dropped or scored as Info"""

    def test_missing_table_entry_raises(self):
        """User Outcome at Risk: Inflated score from an unhandled finding."""
        table = dict(CLASSIFICATION_TABLE)
        del table[DifferenceKind.WIDTH_MISMATCH]
        classifier = DifferenceClassifier(table)

        with pytest.raises(UnclassifiedDifferenceError, match="Unclassified difference"):
            classifier.classify_mapping(width_mapping())

    def test_missing_operation_of_non_file_kind_raises(self):
        gap = RawGap(
            legacy_unit="POLICY-DRIVER",
            target_unit="PolicyDriver",
            legacy_op=LegacyOperation(unit="POLICY-DRIVER", kind=OperationKind.ERROR_PATH, key="FILE-STATUS-35"),
            matched_target_op=None,
            match_kind=MatchKind.MISSING_OPERATION,
        )
        with pytest.raises(UnclassifiedDifferenceError):
            DifferenceClassifier().classify_gap(gap)

    def test_mismatch_without_problems_raises(self):
        mapping = FieldMapping(
            legacy_unit="U",
            target_unit="T",
            legacy_field=LegacyField("A", 5, FieldType.TEXT),
            target_field=TargetField("a", 5, FieldType.TEXT),
            outcome=MappingOutcome.TYPE_MISMATCH,
        )
        with pytest.raises(UnclassifiedDifferenceError):
            DifferenceClassifier().classify_mapping(mapping)


class TestDifferenceContent:
    """Populated difference fields"""

    def test_width_difference_names_fields_and_units(self):
        difference = DifferenceClassifier().classify_mapping(width_mapping())[0]

        assert difference.legacy_unit == "POLICY-DRIVER"
        assert difference.target_unit == "PolicyDriver"
        assert "POLICY-HOLDER-NAME" in difference.description
        assert "45" in difference.expected_behavior
        assert "30" in difference.actual_behavior
        assert difference.suggested_fix
        assert difference.subject == "POLICY-HOLDER-NAME"

    def test_matched_gap_yields_nothing(self):
        op = LegacyOperation(unit="U", kind=OperationKind.OPEN, key="F")
        gap = RawGap("U", "T", op, None, MatchKind.MATCHED)
        assert DifferenceClassifier().classify_gap(gap) == []

    def test_load_failure_note_is_critical_data_handling(self):
        note = DifferenceClassifier().load_failure(
            UnitLoadFailure(unit="CLAIM-DRIVER", reason="duplicate field name CLAIM-ID")
        )
        assert note.category == Category.DATA_HANDLING
        assert note.severity == Severity.CRITICAL
        assert note.legacy_unit == "CLAIM-DRIVER"
        assert "duplicate field name" in note.actual_behavior

    def test_difference_dict_round_trip(self):
        difference = DifferenceClassifier().classify_mapping(width_mapping())[0]
        assert type(difference).from_dict(difference.to_dict()) == difference
