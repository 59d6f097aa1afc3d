"""Operation Comparator

Aligns legacy operations (file I/O, cursors, named conditions, error paths)
with the operations declared by a generated artifact.

Matching is by kind within a paired unit:
1. A target operation whose key equals the legacy key (after declared
   correspondence) is taken first.
2. Remaining legacy operations may take an unconsumed target operation of the
   same kind when either side declares no key.

Cursor predicates are covered only by an exact structural match after
normalization. Semantic query equivalence is not inferred.
"""

from typing import Dict, List, Optional, Sequence
import logging

from legacyequiv.models import (
    LegacyOperation,
    MatchKind,
    OperationKind,
    RawGap,
    TargetOperation,
)
from .normalization import normalize_name, normalize_predicate


logger = logging.getLogger(__name__)


class OperationComparator:
    """
    Compare legacy operations with target operations.

    Compute operations are not aligned; they only describe which fields take
    part in arithmetic.
    """

    def compare(
        self,
        legacy_ops: Sequence[LegacyOperation],
        target_ops: Sequence[TargetOperation],
        correspondence_keys: Optional[Dict[str, str]] = None,
        legacy_unit: str = "",
        target_unit: str = "",
    ) -> List[RawGap]:
        """
        Align operations.

        Args:
            legacy_ops: Operations of the legacy unit, in source order
            target_ops: Operations of the target artifact
            correspondence_keys: Legacy operation key -> declared target key
            legacy_unit: Legacy unit name
            target_unit: Target artifact name

        Returns:
            One RawGap per aligned legacy operation (Matched included), in
            legacy order
        """
        keys = {
            normalize_name(k): normalize_name(v)
            for k, v in (correspondence_keys or {}).items()
        }

        aligned = [op for op in legacy_ops if op.kind != OperationKind.COMPUTE]
        wanted = [keys.get(normalize_name(op.key), normalize_name(op.key)) for op in aligned]

        consumed = set()
        chosen: Dict[int, int] = {}

        # Pass 1: declared keys
        for li, op in enumerate(aligned):
            if not wanted[li]:
                continue
            for ti, target in enumerate(target_ops):
                if (ti not in consumed and target.kind == op.kind and
                        normalize_name(target.key) == wanted[li]):
                    consumed.add(ti)
                    chosen[li] = ti
                    break

        # Pass 2: unkeyed on either side
        for li, op in enumerate(aligned):
            if li in chosen:
                continue
            for ti, target in enumerate(target_ops):
                if ti in consumed or target.kind != op.kind:
                    continue
                if not wanted[li] or not normalize_name(target.key):
                    consumed.add(ti)
                    chosen[li] = ti
                    break

        gaps = []
        for li, op in enumerate(aligned):
            target = target_ops[chosen[li]] if li in chosen else None
            gap = self._classify(op, target, legacy_unit, target_unit)
            marker = "[OK]" if gap.match_kind == MatchKind.MATCHED else f"[X] {gap.match_kind.value}"
            logger.debug(f"  {legacy_unit} {op.label}: {marker}")
            gaps.append(gap)

        return gaps

    def _classify(
        self,
        op: LegacyOperation,
        target: Optional[TargetOperation],
        legacy_unit: str,
        target_unit: str,
    ) -> RawGap:
        uncovered = ()

        if op.kind == OperationKind.CURSOR:
            covered = set()
            if target is not None:
                covered = {normalize_predicate(p) for p in target.predicates}
            uncovered = tuple(p for p in op.predicates if normalize_predicate(p) not in covered)
            if target is not None and not uncovered:
                kind = MatchKind.MATCHED
            else:
                kind = MatchKind.PARTIAL_CURSOR_COVERAGE

        elif target is not None:
            kind = MatchKind.MATCHED

        elif op.kind == OperationKind.ERROR_PATH:
            kind = MatchKind.MISSING_ERROR_PATH

        elif op.kind == OperationKind.CONDITIONAL_BRANCH:
            kind = MatchKind.FOLDED_BRANCH if op.foldable else MatchKind.MISSING_BRANCH

        else:
            kind = MatchKind.MISSING_OPERATION

        return RawGap(
            legacy_unit=legacy_unit,
            target_unit=target_unit,
            legacy_op=op,
            matched_target_op=target,
            match_kind=kind,
            uncovered_predicates=uncovered,
        )
