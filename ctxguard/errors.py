#=============================================================================
# File        : ctxguard/errors.py
# Project     : ctxguard v1.0
# Component   : Errors - Scanner Exception Taxonomy
# Description : Exceptions raised by the context leak scanner
#               • ScanError base for any scan that could not complete
#               • DepthExceeded when the configured bound is reached
#               • IntrospectionDenied when an object refuses inspection
#               • ContextLeakError for strict-mode leak assertions
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.10+
# Standards   : PEP 8, Type Hints
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: typing
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : 100% coverage, all tests passing
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

from typing import Any, Optional


class ScanError(Exception):
    """A scan could not produce a trustworthy answer."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class DepthExceeded(ScanError):
    """
    The traversal reached ``max_depth`` before resolving.

    Either the bound is too low for the graph or the graph is unbounded.
    Never retried with the same bound.
    """

    def __init__(self, last_type_name: str, depth: int, max_depth: int,
                 path: Optional[str] = None) -> None:
        super().__init__(
            f"Too much recursion scanning for contexts (depth {depth} > {max_depth}), "
            f"flatten your objects, last object class is {last_type_name}",
            path=path,
        )
        self.last_type_name = last_type_name
        self.depth = depth
        self.max_depth = max_depth


class IntrospectionDenied(ScanError):
    """The runtime refused read access to an object's members."""

    def __init__(self, type_name: str, reason: str, path: Optional[str] = None) -> None:
        super().__init__(f"Cannot inspect {type_name}: {reason}", path=path)
        self.type_name = type_name
        self.reason = reason


class ContextLeakError(AssertionError):
    """Raised by strict checks when an object pins a lifecycle-bound instance."""

    def __init__(self, message: str, result: Any = None) -> None:
        super().__init__(message)
        self.result = result
