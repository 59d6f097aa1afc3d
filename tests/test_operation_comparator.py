"""
Operation Comparator Tests

File I/O, cursor coverage, named conditions and error paths.
"""
import pytest

from legacyequiv.comparison import OperationComparator, normalize_name, normalize_predicate
from legacyequiv.evaluation import DifferenceClassifier
from legacyequiv.models import (
    Category,
    DifferenceKind,
    LegacyOperation,
    MatchKind,
    OperationKind,
    Severity,
    TargetOperation,
)


P1 = "P.POLICY_NUMBER = C.POLICY_NUMBER"
P2 = "P.POLICY_STATUS = 'A'"
P3 = "C.COVERAGE_END >= :WS-RUN-DATE"


def lop(kind, key="", **kwargs):
    return LegacyOperation(unit="POLICY-DRIVER", kind=kind, key=key, **kwargs)


def top(kind, key="", **kwargs):
    return TargetOperation(unit="PolicyDriver", kind=kind, key=key, **kwargs)


@pytest.fixture
def comparator():
    return OperationComparator()


@pytest.fixture
def classifier():
    return DifferenceClassifier()


class TestCursorCoverage:
    """Predicate-set coverage of cursor queries"""

    def test_partial_coverage_is_one_major_business_logic_gap(self, comparator, classifier):
        """Legacy {P1,P2,P3} vs target {P1,P2}: one PartialCursorCoverage, BusinessLogic/Major.

        User Outcome at Risk: Expired coverages selected; a business rule is dropped.
        """
        gaps = comparator.compare(
            [lop(OperationKind.CURSOR, "POLICY-CURSOR", predicates=(P1, P2, P3))],
            [top(OperationKind.CURSOR, "policyCursor", predicates=(P1, P2))],
        )

        assert len(gaps) == 1
        assert gaps[0].match_kind == MatchKind.PARTIAL_CURSOR_COVERAGE
        assert gaps[0].uncovered_predicates == (P3,)

        differences = classifier.classify_all([], gaps)
        assert len(differences) == 1
        assert differences[0].category == Category.BUSINESS_LOGIC
        assert differences[0].severity == Severity.MAJOR

    def test_structurally_equal_predicates_cover(self, comparator):
        """Case, separators, spacing and bind-variable names do not matter."""
        gaps = comparator.compare(
            [lop(OperationKind.CURSOR, "POLICY-CURSOR", predicates=(P1, P2, P3))],
            [top(OperationKind.CURSOR, "policyCursor", predicates=(
                "p.policyNumber=c.policyNumber",
                "p.policyStatus = 'A'",
                "c.coverageEnd >= ?",
            ))],
        )
        assert gaps[0].match_kind == MatchKind.MATCHED

    def test_literal_values_must_match(self, comparator):
        gaps = comparator.compare(
            [lop(OperationKind.CURSOR, "POLICY-CURSOR", predicates=(P2,))],
            [top(OperationKind.CURSOR, "policyCursor", predicates=("p.policyStatus = 'I'",))],
        )
        assert gaps[0].match_kind == MatchKind.PARTIAL_CURSOR_COVERAGE

    def test_missing_cursor_leaves_every_predicate_uncovered(self, comparator, classifier):
        gaps = comparator.compare(
            [lop(OperationKind.CURSOR, "POLICY-CURSOR", predicates=(P1, P2))],
            [],
        )

        assert gaps[0].match_kind == MatchKind.PARTIAL_CURSOR_COVERAGE
        assert gaps[0].matched_target_op is None
        assert gaps[0].uncovered_predicates == (P1, P2)
        assert classifier.classify_all([], gaps)[0].severity == Severity.MAJOR


class TestBranchesAndErrorPaths:
    """Named conditions and error handling"""

    def test_missing_error_path(self, comparator, classifier):
        """User Outcome at Risk: File-not-found abends become silent failures."""
        gaps = comparator.compare([lop(OperationKind.ERROR_PATH, "FILE-STATUS-35")], [])
        differences = classifier.classify_all([], gaps)

        assert gaps[0].match_kind == MatchKind.MISSING_ERROR_PATH
        assert differences[0].category == Category.ERROR_HANDLING
        assert differences[0].severity == Severity.MODERATE

    def test_error_path_matched_through_correspondence(self, comparator):
        gaps = comparator.compare(
            [lop(OperationKind.ERROR_PATH, "FILE-STATUS-35")],
            [top(OperationKind.ERROR_PATH, "FileNotFound")],
            correspondence_keys={"FILE-STATUS-35": "FileNotFound"},
        )
        assert gaps[0].match_kind == MatchKind.MATCHED

    def test_missing_branch_is_moderate_business_logic(self, comparator, classifier):
        gaps = comparator.compare([lop(OperationKind.CONDITIONAL_BRANCH, "HIGH-RISK-POLICY")], [])
        differences = classifier.classify_all([], gaps)

        assert gaps[0].match_kind == MatchKind.MISSING_BRANCH
        assert (differences[0].category, differences[0].severity) == (Category.BUSINESS_LOGIC, Severity.MODERATE)

    def test_foldable_branch_is_minor_control_flow(self, comparator, classifier):
        gaps = comparator.compare(
            [lop(OperationKind.CONDITIONAL_BRANCH, "DEBUG-MODE", foldable=True)], [],
        )
        differences = classifier.classify_all([], gaps)

        assert gaps[0].match_kind == MatchKind.FOLDED_BRANCH
        assert (differences[0].category, differences[0].severity) == (Category.CONTROL_FLOW, Severity.MINOR)
        assert differences[0].kind == DifferenceKind.FOLDED_BRANCH


class TestFileOperations:
    """Open/Close/Read/Write/Search alignment"""

    @pytest.mark.parametrize("kind", [
        OperationKind.OPEN, OperationKind.CLOSE, OperationKind.READ,
        OperationKind.WRITE, OperationKind.SEARCH,
    ])
    def test_missing_file_operation_is_moderate_file_io(self, comparator, classifier, kind):
        gaps = comparator.compare([lop(kind, "POLICY-FILE")], [])
        differences = classifier.classify_all([], gaps)

        assert gaps[0].match_kind == MatchKind.MISSING_OPERATION
        assert (differences[0].category, differences[0].severity) == (Category.FILE_IO, Severity.MODERATE)
        assert differences[0].kind == DifferenceKind.MISSING_FILE_OPERATION

    def test_kind_must_match(self, comparator):
        gaps = comparator.compare([lop(OperationKind.WRITE, "POLICY-FILE")], [top(OperationKind.READ, "policyFile")])
        assert gaps[0].match_kind == MatchKind.MISSING_OPERATION

    def test_each_target_operation_is_consumed_once(self, comparator):
        gaps = comparator.compare(
            [lop(OperationKind.OPEN, "POLICY-FILE"), lop(OperationKind.OPEN, "CLAIM-FILE")],
            [top(OperationKind.OPEN, "claimFile")],
        )
        assert [g.match_kind for g in gaps] == [MatchKind.MISSING_OPERATION, MatchKind.MATCHED]
        assert gaps[1].matched_target_op.key == "claimFile"

    def test_unkeyed_target_operation_matches_by_kind(self, comparator):
        gaps = comparator.compare([lop(OperationKind.CLOSE, "POLICY-FILE")], [top(OperationKind.CLOSE)])
        assert gaps[0].match_kind == MatchKind.MATCHED

    def test_compute_operations_are_not_aligned(self, comparator):
        gaps = comparator.compare(
            [lop(OperationKind.COMPUTE, "PREMIUM-CALC", fields=("POLICY-PREMIUM",)),
             lop(OperationKind.OPEN, "POLICY-FILE")],
            [top(OperationKind.OPEN, "policyFile")],
        )
        assert len(gaps) == 1
        assert gaps[0].legacy_op.kind == OperationKind.OPEN

    def test_gaps_follow_legacy_order(self, comparator):
        ops = [
            lop(OperationKind.CLOSE, "POLICY-FILE"),
            lop(OperationKind.OPEN, "POLICY-FILE"),
            lop(OperationKind.ERROR_PATH, "FILE-STATUS-35"),
        ]
        gaps = comparator.compare(ops, [top(OperationKind.OPEN, "policyFile")])
        assert [g.legacy_op for g in gaps] == ops


class TestNormalization:
    """Name and predicate normalisation"""

    def test_names_fold_case_and_separators(self):
        assert normalize_name("POLICY-NUMBER") == normalize_name("policyNumber") == "policynumber"
        assert normalize_name("policy_number") == "policynumber"
        assert normalize_name("") == ""

    def test_host_variables_and_bind_parameters_are_equivalent(self):
        assert normalize_predicate("P.POLICY_NUMBER = :WS-POLICY") == normalize_predicate("p.policyNumber = ?")
        assert normalize_predicate("p.policyNumber = @policyNumber") == "p.policynumber = ?"

    def test_not_equal_spellings_are_equivalent(self):
        assert normalize_predicate("A != B") == normalize_predicate("a <> b")

    def test_operators_are_significant(self):
        assert normalize_predicate("A >= B") != normalize_predicate("A > B")
