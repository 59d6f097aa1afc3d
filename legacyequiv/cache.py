"""Content-addressed report cache.

Reports are stored as JSON under ``<cache_dir>/<fingerprint>.json`` where the
fingerprint is a SHA-256 of both input models. The engine itself keeps no
state; caching is an explicit wrapper around it.
"""

import json
from pathlib import Path
from typing import Optional, Union
import logging

from legacyequiv.engine import ValidationEngine, load_models
from legacyequiv.loader import ModelLoadError, model_fingerprint
from legacyequiv.models import LegacyModel, TargetModel, ValidationStatus
from legacyequiv.reporting import ValidationReport

logger = logging.getLogger(__name__)


class ReportCache:
    """On-disk store of report dictionaries keyed by model fingerprint"""

    def __init__(self, cache_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir)

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def get(self, key: str) -> Optional[ValidationReport]:
        """Cached report, or None when absent or unreadable"""
        cache_file = self.path_for(key)
        if not cache_file.exists():
            return None

        logger.info(f"Loading cached report from: {cache_file}")
        try:
            with open(cache_file, 'r', encoding='utf-8') as f:
                return ValidationReport.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache entry {cache_file}: {e}")
            return None

    def put(self, key: str, report: ValidationReport) -> Path:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        cache_file = self.path_for(key)
        with open(cache_file, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, indent=2)
        logger.info(f"Report cached to: {cache_file}")
        return cache_file


class CachedValidator:
    """
    Validation engine behind a ReportCache.

    Usage:
        validator = CachedValidator(ValidationEngine(), ReportCache(".cache"))
        report = validator.validate(legacy_model, target_model)
    """

    def __init__(self, engine: ValidationEngine, cache: ReportCache):
        self.engine = engine
        self.cache = cache

    def validate(self, legacy: LegacyModel, target: TargetModel) -> ValidationReport:
        key = model_fingerprint(legacy, target)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        report = self.engine.validate(legacy, target)
        # ValidationFailed reports are never cached
        if report.status != ValidationStatus.VALIDATION_FAILED:
            self.cache.put(key, report)
        return report

    def validate_paths(self, legacy_path: Union[str, Path], target_path: Union[str, Path],
                       language: str) -> ValidationReport:
        try:
            legacy, target = load_models(legacy_path, target_path, language)
        except ModelLoadError as e:
            return self.engine.load_error_report(language, e)
        return self.validate(legacy, target)
