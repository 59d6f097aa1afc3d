"""Configuration for legacyequiv"""

import os
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

# Environment
CONFIG_ENV_VAR = "LEGACYEQUIV_CONFIG"

# ===========================================
# Scoring
# ===========================================
# Accuracy = clamp(100 - sum(penalty(severity)), 0, 100)

SEVERITY_PENALTIES = {
    "critical": 15.0,
    "major": 6.0,
    "moderate": 3.0,
    "minor": 1.0,
    "info": 0.0,
}

# Lower bound (inclusive) of each status on the clamped score
STATUS_THRESHOLDS = {
    "fully_equivalent": 95.0,
    "mostly_equivalent": 85.0,
    "partially_equivalent": 60.0,
}

MAX_SCORE = 100.0
MIN_SCORE = 0.0

# Minor and Info findings are reported but never actioned
RECOMMENDATION_MIN_SEVERITY = "moderate"

# ===========================================
# Target languages
# ===========================================

TARGET_LANGUAGES = {
    "java": "Java",
    "csharp": "C#",
    "python": "Python",
    "typescript": "TypeScript",
}

# ===========================================
# Engine defaults (overridable through YAML)
# ===========================================

ENGINE_DEFAULTS = {
    "max_workers": 4,
    "cache_dir": None,
    "report_format": "markdown",
    "log_level": "INFO",
}

REPORT_FORMATS = ["markdown", "json", "html", "csv"]

# Process exit codes for the command surface
EXIT_CODES = {
    "FullyEquivalent": 0,
    "MostlyEquivalent": 0,
    "PartiallyEquivalent": 1,
    "NotEquivalent": 1,
    "ValidationFailed": 2,
}


def language_display_name(language: str) -> str:
    """Human readable name for a target language identifier"""
    key = (language or "").strip().lower()
    return TARGET_LANGUAGES.get(key, language.strip() if language else "Unknown")


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load engine settings, overlaying an optional YAML file on the defaults.

    The file (or the one named by $LEGACYEQUIV_CONFIG) may contain an
    ``engine:`` mapping with any of the ENGINE_DEFAULTS keys.

    Raises:
        ValueError: unknown keys or an invalid report format
        FileNotFoundError: an explicit path that does not exist
    """
    settings = dict(ENGINE_DEFAULTS)

    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return settings
        path = Path(env_path)

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    engine = data.get("engine", {}) or {}
    if not isinstance(engine, dict):
        raise ValueError(f"'engine' section in {path} must be a mapping")

    unknown = sorted(set(engine) - set(ENGINE_DEFAULTS))
    if unknown:
        raise ValueError(f"Unknown engine settings in {path}: {', '.join(unknown)}")

    settings.update(engine)

    if settings["report_format"] not in REPORT_FORMATS:
        raise ValueError(
            f"report_format must be one of {REPORT_FORMATS}, got {settings['report_format']!r}"
        )
    if int(settings["max_workers"]) < 1:
        raise ValueError("max_workers must be at least 1")
    settings["max_workers"] = int(settings["max_workers"])

    return settings


def get_config() -> Dict[str, Any]:
    """Get full configuration dictionary"""
    return {
        "severity_penalties": SEVERITY_PENALTIES,
        "status_thresholds": STATUS_THRESHOLDS,
        "recommendation_min_severity": RECOMMENDATION_MIN_SEVERITY,
        "target_languages": TARGET_LANGUAGES,
        "engine_defaults": ENGINE_DEFAULTS,
        "report_formats": REPORT_FORMATS,
        "exit_codes": EXIT_CODES,
    }
