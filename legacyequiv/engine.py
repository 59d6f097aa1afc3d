"""
Validation Engine

Main entry point for equivalence validation.

Coordinates, per legacy unit:
1. Unit pairing (declared correspondence, then artifact back-reference, then name);
   a unit whose artifact failed to load is reported as a load failure, never scored
2. Field comparison
3. Operation comparison
4. Difference classification
5. Unit score and status

then, once every unit has finished:
6. Deterministic merge in legacy-unit input order
7. Report assembly (score, status, ordering, recommendations)

Units are compared on a thread pool. Workers share no mutable state: each
gets its own immutable unit/artifact pair and returns its own outcome.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union
import logging

from legacyequiv.comparison import FieldComparator, OperationComparator, normalize_name
from legacyequiv.config import ENGINE_DEFAULTS
from legacyequiv.evaluation import AccuracyScorer, DifferenceClassifier, UnclassifiedDifferenceError
from legacyequiv.loader import ModelLoadError, load_legacy_model, load_target_model
from legacyequiv.models import (
    Category,
    FunctionalDifference,
    LegacyModel,
    LegacyUnit,
    MappingOutcome,
    MatchKind,
    OperationKind,
    Severity,
    TargetArtifact,
    TargetModel,
    UnitLoadFailure,
    UnitResult,
    ValidationStatus,
)
from legacyequiv.reporting import ReportAssembler, ValidationReport


logger = logging.getLogger(__name__)


@dataclass
class UnitOutcome:
    """Result of comparing one legacy unit with its target artifact."""
    index: int
    result: UnitResult
    differences: List[FunctionalDifference] = field(default_factory=list)
    correct_conversions: List[str] = field(default_factory=list)

    @property
    def analysed(self) -> bool:
        return self.result.error is None


def diagnostic_note(description: str, reason: str, legacy_unit: str = "",
                    target_unit: str = "") -> FunctionalDifference:
    """DataHandling/Critical note for a run or unit that could not be analysed"""
    return FunctionalDifference(
        severity=Severity.CRITICAL,
        category=Category.DATA_HANDLING,
        legacy_unit=legacy_unit,
        target_unit=target_unit,
        description=description,
        expected_behavior="A complete validation run",
        actual_behavior=reason,
        impact="No accuracy score can be trusted for this run",
        suggested_fix="Correct the input models or the comparator and re-run",
    )


Match = Union[TargetArtifact, UnitLoadFailure, None]


def match_units(legacy: LegacyModel, target: TargetModel) -> List[Tuple[LegacyUnit, Match]]:
    """
    Resolve every legacy unit to its target artifact, in legacy order.

    An artifact is chosen by the unit's declared correspondence for the
    target language, else by the artifact's own legacy_unit reference, else
    by normalised name equality. Artifacts that failed to load take part in
    the resolution: a unit resolving to one is matched to its
    UnitLoadFailure. A unit with no artifact is matched to None.
    """
    by_name: Dict[str, Match] = {}
    by_reference: Dict[str, Match] = {}
    entries = [(a.name, a.legacy_unit, a) for a in target.artifacts]
    entries += [(f.unit, f.legacy_unit, f) for f in target.failures]
    for name, reference, entry in entries:
        by_name.setdefault(normalize_name(name), entry)
        if reference:
            by_reference.setdefault(normalize_name(reference), entry)

    matches = []
    claims: Dict[str, List[str]] = {}
    for unit in legacy.units:
        declared = unit.correspondence_for(target.language).target_unit
        unit_key = normalize_name(unit.name)

        if declared:
            match = by_name.get(normalize_name(declared))
        elif unit_key in by_reference:
            match = by_reference[unit_key]
        else:
            match = by_name.get(unit_key)

        if match is None:
            logger.warning(f"No {target.language} artifact for legacy unit {unit.name}")
        elif isinstance(match, UnitLoadFailure):
            logger.warning(f"Legacy unit {unit.name} skipped: artifact {match.unit} failed to load")
        else:
            claims.setdefault(match.name, []).append(unit.name)
        matches.append((unit, match))

    for artifact in target.artifacts:
        claimed_by = claims.get(artifact.name, [])
        if not claimed_by:
            logger.info(f"Artifact {artifact.name} has no legacy counterpart")
        elif len(claimed_by) > 1:
            logger.warning(f"Artifact {artifact.name} is claimed by {len(claimed_by)} legacy units "
                           f"({', '.join(claimed_by)}) and is validated once per unit")

    return matches


def pair_units(legacy: LegacyModel, target: TargetModel) -> List[Tuple[LegacyUnit, Optional[TargetArtifact]]]:
    """
    Pair every analysable legacy unit with its target artifact, in legacy order.

    Units whose artifact failed to load are left out; a unit with no
    artifact is paired with None.
    """
    return [
        (unit, match)
        for unit, match in match_units(legacy, target)
        if not isinstance(match, UnitLoadFailure)
    ]


class ValidationEngine:
    """
    Equivalence validation orchestrator.

    Usage:
        engine = ValidationEngine(max_workers=4)
        report = engine.validate(legacy_model, target_model)
        reports = engine.validate_all(legacy_model, [java_model, csharp_model])
    """

    def __init__(self, max_workers: Optional[int] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 classifier: Optional[DifferenceClassifier] = None):
        """
        Initialize the engine.

        Args:
            max_workers: Worker threads for per-unit comparison
            clock: Report timestamp source (defaults to now, UTC)
            classifier: Difference classifier (defaults to the canonical table)
        """
        self.max_workers = max_workers or ENGINE_DEFAULTS["max_workers"]
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.field_comparator = FieldComparator()
        self.operation_comparator = OperationComparator()
        self.classifier = classifier or DifferenceClassifier()
        self.scorer = AccuracyScorer()
        self.assembler = ReportAssembler(scorer=self.scorer)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, legacy: LegacyModel, target: TargetModel) -> ValidationReport:
        """
        Validate one target model against the legacy model.

        Always returns a report. An unclassified difference aborts the batch
        and yields a ValidationFailed report carrying the error.
        """
        try:
            return self._run(legacy, target)
        except UnclassifiedDifferenceError as e:
            logger.error(f"Validation aborted for {target.language}: {e}")
            note = diagnostic_note("Validation aborted: unclassified difference", str(e))
            return self.failed_report(target.language, note)

    def validate_all(self, legacy: LegacyModel,
                     targets: Sequence[TargetModel]) -> Dict[str, ValidationReport]:
        """One report per target language, in input order"""
        reports = {}
        for target in targets:
            if target.language in reports:
                logger.warning(f"Duplicate target language {target.language}; last model wins")
            reports[target.language] = self.validate(legacy, target)
        return reports

    def validate_paths(self, legacy_path: Union[str, Path], target_path: Union[str, Path],
                       language: str) -> ValidationReport:
        """Load both model documents and validate; load errors yield a failed report"""
        try:
            legacy, target = load_models(legacy_path, target_path, language)
        except ModelLoadError as e:
            return self.load_error_report(language, e)
        return self.validate(legacy, target)

    def failed_report(self, language: str, *notes: FunctionalDifference) -> ValidationReport:
        """ValidationFailed report with zero analysed units"""
        return self.assembler.assemble(
            differences=[],
            correct_conversions=[],
            units_analyzed=0,
            target_language=language,
            target_units_analyzed=0,
            load_failures=notes,
            timestamp=self.clock(),
        )

    def load_error_report(self, language: str, error: ModelLoadError) -> ValidationReport:
        logger.error(f"Model loading failed: {error}")
        return self.failed_report(language, diagnostic_note("Model loading failed", str(error)))

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(self, legacy: LegacyModel, target: TargetModel) -> ValidationReport:
        language = target.language
        matches = match_units(legacy, target)
        pairs = [(u, m) for u, m in matches if not isinstance(m, UnitLoadFailure)]
        blocked: Dict[UnitLoadFailure, List[str]] = {}
        for unit, match in matches:
            if isinstance(match, UnitLoadFailure):
                blocked.setdefault(match, []).append(unit.name)
        logger.info(f"Validating {len(pairs)} legacy unit(s) against {language} "
                    f"({len(target.artifacts)} artifact(s))")

        outcomes: List[Optional[UnitOutcome]] = [None] * len(pairs)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(self._compare_unit, i, unit, artifact, language): i
                for i, (unit, artifact) in enumerate(pairs)
            }

            for future in as_completed(future_to_index):
                i = future_to_index[future]
                unit, artifact = pairs[i]
                try:
                    outcomes[i] = future.result()
                except UnclassifiedDifferenceError:
                    for pending in future_to_index:
                        pending.cancel()
                    raise
                except Exception as e:
                    logger.warning(f"Unit {unit.name} failed: {e}")
                    outcomes[i] = UnitOutcome(
                        index=i,
                        result=UnitResult(
                            legacy_unit=unit.name,
                            target_unit=artifact.name if artifact else "",
                            accuracy_score=0.0,
                            status=ValidationStatus.VALIDATION_FAILED,
                            error=f"{type(e).__name__}: {e}",
                        ),
                    )

        # Merge in input order, independent of completion order
        differences = []
        conversions = []
        analysed = 0
        for outcome in outcomes:
            if outcome.analysed:
                analysed += 1
                differences.extend(outcome.differences)
                conversions.extend(outcome.correct_conversions)

        load_failures = [self.classifier.load_failure(failure) for failure in legacy.failures]
        for failure in target.failures:
            note = self.classifier.load_failure(failure)
            if failure in blocked:
                note = replace(note, legacy_unit=", ".join(blocked[failure]))
            load_failures.append(note)

        return self.assembler.assemble(
            differences=differences,
            correct_conversions=conversions,
            units_analyzed=analysed,
            target_language=language,
            target_units_analyzed=len(target.artifacts),
            unit_results=[o.result for o in outcomes],
            load_failures=load_failures,
            timestamp=self.clock(),
        )

    def _compare_unit(self, index: int, unit: LegacyUnit,
                      artifact: Optional[TargetArtifact], language: str) -> UnitOutcome:
        """Compare one legacy unit with its artifact (runs on a worker thread)"""
        artifact = artifact or TargetArtifact(name="")
        correspondence = unit.correspondence_for(language)

        arithmetic_fields = [
            name
            for op in unit.operations if op.kind == OperationKind.COMPUTE
            for name in op.fields
        ]

        mappings = self.field_comparator.compare(
            unit.fields,
            artifact.fields,
            correspondence_keys=correspondence.fields,
            arithmetic_fields=arithmetic_fields,
            legacy_unit=unit.name,
            target_unit=artifact.name,
        )
        gaps = self.operation_comparator.compare(
            unit.operations,
            artifact.operations,
            correspondence_keys=correspondence.operations,
            legacy_unit=unit.name,
            target_unit=artifact.name,
        )
        differences = self.classifier.classify_all(mappings, gaps)

        conversions = []
        for mapping in mappings:
            if mapping.outcome == MappingOutcome.MATCHED:
                conversions.append(
                    f"{unit.name}.{mapping.legacy_field.name} -> {artifact.name}.{mapping.target_field.name} "
                    f"({mapping.target_field.describe()})"
                )
        for gap in gaps:
            if gap.match_kind == MatchKind.MATCHED:
                conversions.append(f"{unit.name} {gap.legacy_op.label} -> {artifact.name}")

        score = self.scorer.score(differences)
        status = self.scorer.status(score)
        logger.info(f"  {unit.name} -> {artifact.name or '(none)'}: {score:.1f}% ({status.value}), "
                    f"{len(differences)} differences")

        return UnitOutcome(
            index=index,
            result=UnitResult(
                legacy_unit=unit.name,
                target_unit=artifact.name,
                accuracy_score=score,
                status=status,
                difference_count=len(differences),
            ),
            differences=differences,
            correct_conversions=conversions,
        )


def load_models(legacy_path: Union[str, Path], target_path: Union[str, Path],
                language: str) -> Tuple[LegacyModel, TargetModel]:
    """Load a legacy model and one target model; raises ModelLoadError"""
    return load_legacy_model(legacy_path), load_target_model(target_path, language)
