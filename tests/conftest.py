#=============================================================================
# File        : tests/conftest.py
# Project     : ctxguard v1.0
# Component   : Shared Test Fixtures
# Description : Guards and configs wired to the sample lifecycle types
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import sys
from pathlib import Path

import pytest

# Add ctxguard and the sample objects to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from ctxguard import ContextGuard, ScannerConfig
from sample_objects import Screen, Dialog


@pytest.fixture
def config():
    return ScannerConfig.for_types(Screen, Dialog, enabled=True, max_depth=5)


@pytest.fixture
def guard(config):
    return ContextGuard(config)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep CTXGUARD_* variables from the shell out of the tests."""
    for name in ("CTXGUARD_ENABLED", "CTXGUARD_MAX_DEPTH", "CTXGUARD_STRICT",
                 "CTXGUARD_ON_DENIED", "CTXGUARD_LIFECYCLE_TYPES",
                 "CTXGUARD_TRUSTED_PREFIXES"):
        monkeypatch.delenv(name, raising=False)
