"""Semantic model loader

Reads legacy and target semantic models from JSON or YAML documents.

- The document envelope is validated as a whole: a missing file, unparsable
  content or a malformed envelope raises ModelLoadError.
- Each unit/artifact is validated on its own: a malformed unit becomes a
  UnitLoadFailure and the remaining units still load.
- Duplicate field names inside a unit (after name normalization) reject that
  unit rather than guessing a one-to-many mapping.
"""

import hashlib
import json
from dataclasses import fields as dataclass_fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

import yaml
from jsonschema import Draft7Validator

from legacyequiv.comparison.normalization import normalize_name
from legacyequiv.models import (
    FieldType,
    LegacyField,
    LegacyModel,
    LegacyOperation,
    LegacyUnit,
    OperationKind,
    TargetArtifact,
    TargetField,
    TargetModel,
    TargetOperation,
    UnitCorrespondence,
    UnitLoadFailure,
)

logger = logging.getLogger(__name__)


class ModelLoadError(ValueError):
    """A whole semantic model document could not be loaded"""


# ===========================================
# Schemas
# ===========================================

def _field_schema(legacy: bool) -> Dict[str, Any]:
    properties = {
        "name": {"type": "string", "minLength": 1},
        "width": {"type": "integer", "minimum": 0},
        "type": {"enum": [t.value for t in FieldType]},
        "nullable": {"type": "boolean"},
        "scale": {"type": ["integer", "null"], "minimum": 0},
    }
    if legacy:
        properties["redefines"] = {"type": ["string", "null"]}
    return {
        "type": "object",
        "required": ["name", "width", "type"],
        "properties": properties,
        "additionalProperties": False,
    }


OPERATION_SCHEMA = {
    "type": "object",
    "required": ["kind"],
    "properties": {
        "kind": {"enum": [k.value for k in OperationKind]},
        "key": {"type": "string"},
        "description": {"type": "string"},
        "predicates": {"type": "array", "items": {"type": "string"}},
        "foldable": {"type": "boolean"},
        "fields": {"type": "array", "items": {"type": "string"}},
    },
    "additionalProperties": False,
}

CORRESPONDENCE_SCHEMA = {
    "type": "object",
    "properties": {
        "unit": {"type": "string"},
        "fields": {"type": "object", "additionalProperties": {"type": "string"}},
        "operations": {"type": "object", "additionalProperties": {"type": "string"}},
    },
    "additionalProperties": False,
}

LEGACY_UNIT_SCHEMA = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "fields": {"type": "array", "items": _field_schema(legacy=True)},
        "operations": {"type": "array", "items": OPERATION_SCHEMA},
        "correspondence": {"type": "object", "additionalProperties": CORRESPONDENCE_SCHEMA},
    },
    "additionalProperties": False,
}

TARGET_ARTIFACT_SCHEMA = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "legacy_unit": {"type": "string"},
        "fields": {"type": "array", "items": _field_schema(legacy=False)},
        "operations": {"type": "array", "items": OPERATION_SCHEMA},
    },
    "additionalProperties": False,
}

LEGACY_DOCUMENT_SCHEMA = {
    "type": "object",
    "required": ["units"],
    "properties": {"units": {"type": "array"}},
}

TARGET_DOCUMENT_SCHEMA = {
    "type": "object",
    "required": ["language", "artifacts"],
    "properties": {
        "language": {"type": "string", "minLength": 1},
        "artifacts": {"type": "array"},
    },
}

_LEGACY_UNIT_VALIDATOR = Draft7Validator(LEGACY_UNIT_SCHEMA)
_TARGET_ARTIFACT_VALIDATOR = Draft7Validator(TARGET_ARTIFACT_SCHEMA)


def document_schema(kind: str) -> Dict[str, Any]:
    """Complete JSON schema of a 'legacy' or 'target' document"""
    if kind == "legacy":
        schema = json.loads(json.dumps(LEGACY_DOCUMENT_SCHEMA))
        schema["properties"]["units"]["items"] = LEGACY_UNIT_SCHEMA
    elif kind == "target":
        schema = json.loads(json.dumps(TARGET_DOCUMENT_SCHEMA))
        schema["properties"]["artifacts"]["items"] = TARGET_ARTIFACT_SCHEMA
    else:
        raise ValueError(f"Unknown document kind: {kind}")
    schema["$schema"] = "http://json-schema.org/draft-07/schema#"
    return schema


def _first_error(validator: Draft7Validator, instance: Any) -> Optional[str]:
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if not errors:
        return None
    error = errors[0]
    location = "/".join(str(p) for p in error.path)
    return f"{location}: {error.message}" if location else error.message


# ===========================================
# Documents
# ===========================================

def read_document(path: Union[str, Path]) -> Dict:
    """Parse a JSON or YAML document"""
    path = Path(path)
    if not path.exists():
        raise ModelLoadError(f"Model file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ModelLoadError(f"Cannot parse {path}: {e}") from e
    except OSError as e:
        raise ModelLoadError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ModelLoadError(f"{path} does not contain a mapping at the top level")
    return data


def load_legacy_model(path: Union[str, Path]) -> LegacyModel:
    """Load a legacy semantic model document"""
    logger.info(f"Loading legacy model: {path}")
    return parse_legacy_model(read_document(path), source=str(path))


def load_target_model(path: Union[str, Path], language: Optional[str] = None) -> TargetModel:
    """Load a target model document, checking its language when given"""
    logger.info(f"Loading target model: {path}")
    return parse_target_model(read_document(path), language=language, source=str(path))


def parse_legacy_model(data: Dict, source: str = "") -> LegacyModel:
    """Build a LegacyModel from a parsed document"""
    error = _first_error(Draft7Validator(LEGACY_DOCUMENT_SCHEMA), data)
    if error:
        raise ModelLoadError(f"Invalid legacy model {source}: {error}")

    units = []
    failures = []
    seen = set()

    for i, raw in enumerate(data["units"]):
        name = _unit_name(raw, i)
        error = _first_error(_LEGACY_UNIT_VALIDATOR, raw)
        if error is None and normalize_name(name) in seen:
            error = f"duplicate unit name {name}"
        if error is None:
            error = _duplicate_fields(raw.get("fields", []))

        if error:
            logger.warning(f"  Legacy unit {name} rejected: {error}")
            failures.append(UnitLoadFailure(unit=name, reason=error, origin="legacy"))
            continue

        seen.add(normalize_name(name))
        units.append(_build_legacy_unit(raw))

    logger.info(f"Loaded {len(units)} legacy unit(s), {len(failures)} rejected")
    return LegacyModel(units=tuple(units), failures=tuple(failures), source=source)


def parse_target_model(data: Dict, language: Optional[str] = None, source: str = "") -> TargetModel:
    """Build a TargetModel from a parsed document"""
    error = _first_error(Draft7Validator(TARGET_DOCUMENT_SCHEMA), data)
    if error:
        raise ModelLoadError(f"Invalid target model {source}: {error}")

    declared = data["language"].strip().lower()
    if language and language.strip().lower() != declared:
        raise ModelLoadError(
            f"Target model {source} declares language {declared!r}, expected {language.strip().lower()!r}"
        )

    artifacts = []
    failures = []
    seen = set()

    for i, raw in enumerate(data["artifacts"]):
        name = _unit_name(raw, i)
        error = _first_error(_TARGET_ARTIFACT_VALIDATOR, raw)
        if error is None and normalize_name(name) in seen:
            error = f"duplicate artifact name {name}"
        if error is None:
            error = _duplicate_fields(raw.get("fields", []))

        if error:
            logger.warning(f"  Target artifact {name} rejected: {error}")
            failures.append(UnitLoadFailure(unit=name, reason=error, origin="target",
                                            legacy_unit=_back_reference(raw)))
            continue

        seen.add(normalize_name(name))
        artifacts.append(_build_target_artifact(raw))

    logger.info(f"Loaded {len(artifacts)} {declared} artifact(s), {len(failures)} rejected")
    return TargetModel(language=declared, artifacts=tuple(artifacts),
                       failures=tuple(failures), source=source)


# ===========================================
# Builders
# ===========================================

def _unit_name(raw: Any, index: int) -> str:
    if isinstance(raw, dict) and isinstance(raw.get("name"), str) and raw["name"].strip():
        return raw["name"]
    return f"<unit #{index + 1}>"


def _back_reference(raw: Any) -> Optional[str]:
    if isinstance(raw, dict) and isinstance(raw.get("legacy_unit"), str):
        return raw["legacy_unit"]
    return None


def _duplicate_fields(raw_fields: List[Dict]) -> Optional[str]:
    seen = {}
    for raw in raw_fields:
        norm = normalize_name(raw["name"])
        if norm in seen:
            return f"duplicate field name {raw['name']} (conflicts with {seen[norm]})"
        seen[norm] = raw["name"]
    return None


def _build_legacy_unit(raw: Dict) -> LegacyUnit:
    name = raw["name"]
    fields = tuple(
        LegacyField(
            name=f["name"],
            declared_width=f["width"],
            declared_type=FieldType(f["type"]),
            nullable=f.get("nullable", False),
            scale=f.get("scale"),
            redefines=f.get("redefines"),
        )
        for f in raw.get("fields", [])
    )
    operations = tuple(
        LegacyOperation(unit=name, **_operation_kwargs(op))
        for op in raw.get("operations", [])
    )
    correspondence = {
        language.lower(): UnitCorrespondence(
            target_unit=spec.get("unit"),
            fields=dict(spec.get("fields", {})),
            operations=dict(spec.get("operations", {})),
        )
        for language, spec in raw.get("correspondence", {}).items()
    }
    return LegacyUnit(name=name, fields=fields, operations=operations, correspondence=correspondence)


def _build_target_artifact(raw: Dict) -> TargetArtifact:
    name = raw["name"]
    fields = tuple(
        TargetField(
            name=f["name"],
            declared_width=f["width"],
            declared_type=FieldType(f["type"]),
            nullable=f.get("nullable", False),
            scale=f.get("scale"),
        )
        for f in raw.get("fields", [])
    )
    operations = tuple(
        TargetOperation(unit=name, **_operation_kwargs(op))
        for op in raw.get("operations", [])
    )
    return TargetArtifact(name=name, fields=fields, operations=operations,
                          legacy_unit=raw.get("legacy_unit"))


def _operation_kwargs(raw: Dict) -> Dict[str, Any]:
    return {
        "kind": OperationKind(raw["kind"]),
        "description": raw.get("description", ""),
        "key": raw.get("key", ""),
        "predicates": tuple(raw.get("predicates", [])),
        "foldable": raw.get("foldable", False),
        "fields": tuple(raw.get("fields", [])),
    }


# ===========================================
# Fingerprints
# ===========================================

def _canonical(value: Any) -> Any:
    if is_dataclass(value):
        return {f.name: _canonical(getattr(value, f.name)) for f in dataclass_fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in sorted(value.items())}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def model_fingerprint(legacy: LegacyModel, target: TargetModel) -> str:
    """SHA-256 over a canonical rendering of both models (sources excluded)"""
    payload: Tuple = (
        _canonical(legacy.units),
        _canonical(legacy.failures),
        target.language,
        _canonical(target.artifacts),
        _canonical(target.failures),
    )
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()
