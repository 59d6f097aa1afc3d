"""Shared fixtures for the legacyequiv test suite"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from legacyequiv.loader import load_legacy_model, load_target_model


FIXTURES_DIR = Path(__file__).parent / "fixtures"

FIXED_TIME = datetime(2024, 1, 15, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def legacy_model():
    return load_legacy_model(FIXTURES_DIR / "policy_legacy.yaml")


@pytest.fixture
def java_model():
    return load_target_model(FIXTURES_DIR / "policy_java.yaml", "java")


@pytest.fixture
def csharp_model():
    return load_target_model(FIXTURES_DIR / "policy_csharp.json", "csharp")
