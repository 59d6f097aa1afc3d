"""Field Comparator

Aligns legacy record fields with target entity fields by declared
correspondence key and flags declared-semantics mismatches:

- Width: target narrower than legacy -> WidthMismatch (truncation risk)
- Type: declared type differs -> TypeMismatch (date -> timestamp is safe)
- Precision: numeric target with fewer decimal places -> PrecisionLoss
- Nullability: nullable legacy field, non-nullable target -> NullabilityMismatch
- No counterpart -> Dropped; target field with no origin -> Added
- Added field shaped like an undeclared Dropped field -> both name the other as candidate

Output preserves legacy-field order, with Added mappings last in target order.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence
import logging

from legacyequiv.models import (
    FieldMapping,
    FieldType,
    LegacyField,
    MappingOutcome,
    TargetField,
)
from .normalization import normalize_name


logger = logging.getLogger(__name__)


# (legacy type, target type) pairs that can hold every legacy value
SAFE_TYPE_WIDENINGS = frozenset({
    (FieldType.DATE, FieldType.TIMESTAMP),
})


class FieldComparator:
    """
    Compare legacy field layouts with target field declarations.

    Usage:
        mappings = FieldComparator().compare(
            legacy_fields, target_fields,
            correspondence_keys={"POLICY-HOLDER-FNAME": "firstName"},
            arithmetic_fields={"POLICY-PREMIUM"},
        )
    """

    def compare(
        self,
        legacy_fields: Sequence[LegacyField],
        target_fields: Sequence[TargetField],
        correspondence_keys: Optional[Dict[str, str]] = None,
        arithmetic_fields: Iterable[str] = (),
        legacy_unit: str = "",
        target_unit: str = "",
    ) -> List[FieldMapping]:
        """
        Align fields and classify each alignment.

        Args:
            legacy_fields: Fields of the legacy unit, in declaration order
            target_fields: Fields of the target artifact, in declaration order
            correspondence_keys: Legacy field name -> declared target field name
            arithmetic_fields: Legacy field names used by arithmetic statements
            legacy_unit: Legacy unit name, carried on each mapping
            target_unit: Target artifact name, carried on each mapping

        Returns:
            One FieldMapping per legacy field, then one per unaligned target field
        """
        keys = _normalized_keys(correspondence_keys or {})
        arithmetic = {normalize_name(name) for name in arithmetic_fields}

        target_index: Dict[str, int] = {}
        for i, target in enumerate(target_fields):
            norm = normalize_name(target.name)
            if norm in target_index:
                logger.warning(f"Duplicate target field {target.name} in {target_unit}; first declaration wins")
                continue
            target_index[norm] = i

        consumed = set()
        mappings = []

        for legacy in legacy_fields:
            legacy_norm = normalize_name(legacy.name)
            wanted = keys.get(legacy_norm, legacy_norm)
            idx = target_index.get(wanted)

            if idx is None or idx in consumed:
                logger.debug(f"  {legacy_unit}.{legacy.name}: no counterpart [X]")
                mappings.append(FieldMapping(
                    legacy_unit=legacy_unit,
                    target_unit=target_unit,
                    legacy_field=legacy,
                    target_field=None,
                    outcome=MappingOutcome.DROPPED,
                    problems=(MappingOutcome.DROPPED,),
                    arithmetic_usage=legacy_norm in arithmetic,
                    duplicate=bool(legacy.redefines) or legacy.is_filler,
                ))
                continue

            consumed.add(idx)
            target = target_fields[idx]
            problems = self._problems(legacy, target)

            mappings.append(FieldMapping(
                legacy_unit=legacy_unit,
                target_unit=target_unit,
                legacy_field=legacy,
                target_field=target,
                outcome=problems[0] if problems else MappingOutcome.MATCHED,
                problems=tuple(problems),
                arithmetic_usage=legacy_norm in arithmetic,
                renamed=normalize_name(target.name) != legacy_norm,
            ))
            status = "[OK]" if not problems else "[X] " + ", ".join(p.value for p in problems)
            logger.debug(f"  {legacy_unit}.{legacy.name} -> {target.name}: {status}")

        for i, target in enumerate(target_fields):
            if i in consumed or target_index.get(normalize_name(target.name)) != i:
                continue
            mappings.append(FieldMapping(
                legacy_unit=legacy_unit,
                target_unit=target_unit,
                legacy_field=None,
                target_field=target,
                outcome=MappingOutcome.ADDED,
                problems=(MappingOutcome.ADDED,),
            ))

        return self._link_masked_drops(mappings, keys)

    def _link_masked_drops(self, mappings: List[FieldMapping],
                           keys: Dict[str, str]) -> List[FieldMapping]:
        """
        Pair Dropped fields with same-shaped Added fields.

        A legacy field with no correspondence key that is dropped while an
        added target field has the same declared type and width is most
        likely an undeclared rename. Both mappings name each other as
        candidate. Pairing runs in legacy order, then target order; each
        added field is claimed at most once.
        """
        added = [i for i, m in enumerate(mappings) if m.outcome == MappingOutcome.ADDED]

        for i, mapping in enumerate(mappings):
            if mapping.outcome != MappingOutcome.DROPPED or mapping.duplicate:
                continue
            legacy = mapping.legacy_field
            if normalize_name(legacy.name) in keys:
                continue

            for j in added:
                target = mappings[j].target_field
                if (target.declared_type, target.declared_width) != (legacy.declared_type, legacy.declared_width):
                    continue
                added.remove(j)
                mappings[i] = replace(mapping, candidate=target.name)
                mappings[j] = replace(mappings[j], candidate=legacy.name)
                logger.debug(f"  {mapping.legacy_unit}.{legacy.name}: possibly renamed to {target.name} [!]")
                break

        return mappings

    def _problems(self, legacy: LegacyField, target: TargetField) -> List[MappingOutcome]:
        """Every mismatch between two aligned fields, in reporting order"""
        problems = []

        if target.declared_width < legacy.declared_width:
            problems.append(MappingOutcome.WIDTH_MISMATCH)

        if (legacy.declared_type != target.declared_type and
                (legacy.declared_type, target.declared_type) not in SAFE_TYPE_WIDENINGS):
            problems.append(MappingOutcome.TYPE_MISMATCH)

        if (legacy.declared_type == FieldType.NUMERIC and
                target.declared_type == FieldType.NUMERIC and
                legacy.scale is not None and
                target.scale is not None and
                target.scale < legacy.scale):
            problems.append(MappingOutcome.PRECISION_LOSS)

        if legacy.nullable and not target.nullable:
            problems.append(MappingOutcome.NULLABILITY_MISMATCH)

        return problems


def _normalized_keys(correspondence_keys: Dict[str, str]) -> Dict[str, str]:
    return {
        normalize_name(legacy_name): normalize_name(target_name)
        for legacy_name, target_name in correspondence_keys.items()
    }
