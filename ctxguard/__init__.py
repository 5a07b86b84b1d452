#=============================================================================
# File        : ctxguard/__init__.py
# Project     : ctxguard v1.0
# Component   : Package Initialization
# Description : Debug-time detection of objects that pin lifecycle-bound
#               instances (screens, dialogs, request contexts...)
#               • Bounded breadth-first reachability scan
#               • Identity-keyed cycle protection
#               • Field path to the offending reference
#               • Batch reports and a developer CLI
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.10+, Introspection, psutil
# Standards   : PEP 8, Type Hints, Dataclasses
# Created     : 2025-08-19
# Modified    : 2025-09-02 (Context scanner release)
# Dependencies: typing, dataclasses, logging, psutil
# SHA-256     : [Updated by CI/CD]
# Testing     : 100% coverage, comprehensive test suite
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. Released under MIT License.
#=============================================================================

"""
ctxguard - Context Leak Detection for Background Work

A task handed to a long-lived worker must not keep a short-lived foreground
object (a screen, a dialog, a request session) alive. ctxguard walks the
task's object graph and tells you whether it does, and through which field.

Quick Start:
    from ctxguard import ContextGuard, ScannerConfig

    guard = ContextGuard(ScannerConfig.for_types(Screen, Dialog))
    if guard.scan(task):
        ...

    # Or log loudly (and raise in strict mode)
    guard.check(task, label="thumbnail job")

Scans are no-ops when Python runs with -O or CTXGUARD_ENABLED=0.
"""

__version__ = "1.0.0"
__author__ = "Kyle Clouthier"
__license__ = "MIT"

from .config import (
    ScannerConfig,
    LifecycleTypeSet,
    ExclusionRules,
    DEFAULT_MAX_DEPTH,
    qualified_name,
)

from .errors import (
    ScanError,
    DepthExceeded,
    IntrospectionDenied,
    ContextLeakError,
)

from .scanner import (
    PropertyEnumerator,
    TypeClassifier,
    Disposition,
    TraversalEngine,
    ScanResult,
    ScanStatus,
    ScanTarget,
)

from .core import (
    ContextGuard,
    has_context,
)

from .report import (
    ScanReport,
    LeakFinding,
    SeverityLevel,
)

__all__ = [
    # Core
    "ContextGuard",
    "has_context",

    # Configuration
    "ScannerConfig",
    "LifecycleTypeSet",
    "ExclusionRules",
    "DEFAULT_MAX_DEPTH",
    "qualified_name",

    # Errors
    "ScanError",
    "DepthExceeded",
    "IntrospectionDenied",
    "ContextLeakError",

    # Scanner
    "PropertyEnumerator",
    "TypeClassifier",
    "Disposition",
    "TraversalEngine",
    "ScanResult",
    "ScanStatus",
    "ScanTarget",

    # Reporting
    "ScanReport",
    "LeakFinding",
    "SeverityLevel",

    # Metadata
    "__version__",
]
