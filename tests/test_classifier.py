#=============================================================================
# File        : tests/test_classifier.py
# Project     : ctxguard v1.0
# Component   : Type Classifier Test Suite
# Description : Terminal / match / recursive dispositions and their precedence
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import collections
import decimal
import enum
import fractions
import types
import weakref

import pytest

from ctxguard import ExclusionRules, LifecycleTypeSet, qualified_name
from ctxguard.scanner import Disposition, PropertyEnumerator, TypeClassifier
from sample_objects import Application, Dialog, MainScreen, Screen, Task


def make_classifier(*specs, exclusions=None, enumerator=None):
    return TypeClassifier(LifecycleTypeSet.of(*specs), exclusions or ExclusionRules(), enumerator)


class TestMatch:

    def test_exact_and_subclass(self):
        classifier = make_classifier(Screen)
        assert classifier.is_match(Screen())
        assert classifier.is_match(MainScreen())
        assert not classifier.is_match(Task())

    def test_qualified_name(self):
        classifier = make_classifier(qualified_name(Screen))
        assert classifier.is_match(Screen())
        assert classifier.is_match(MainScreen())
        assert not classifier.is_match(Dialog())

    def test_class_object_is_not_instance(self):
        classifier = make_classifier(Screen)
        assert classifier.classify(Screen) is Disposition.TERMINAL

    def test_known_safe_exact_type_only(self):
        exclusions = ExclusionRules().with_known_safe(Application)
        classifier = make_classifier(Screen, exclusions=exclusions)
        assert classifier.classify(Application()) is Disposition.TERMINAL

        class CustomApplication(Application):
            pass

        assert classifier.classify(CustomApplication()) is Disposition.MATCH

    def test_match_checked_before_terminal_types(self):
        class Title(str):
            pass

        classifier = make_classifier(Title)
        assert classifier.classify(Title("x")) is Disposition.MATCH

    def test_match_checked_before_trusted_prefix(self):
        exclusions = ExclusionRules().with_trusted("sample_objects.")
        classifier = make_classifier(Screen, exclusions=exclusions)
        assert classifier.classify(Screen()) is Disposition.MATCH
        assert classifier.classify(Task()) is Disposition.TERMINAL


class TestTerminal:

    @pytest.mark.parametrize("value", [
        None, True, 7, 2.5, 1j, decimal.Decimal("1.5"), fractions.Fraction(1, 3),
        "text", b"raw", bytearray(b"x"), range(3), Task, types, (lambda: 0).__code__,
    ])
    def test_builtin_terminal_values(self, value):
        assert make_classifier(Screen).is_terminal(value)

    def test_enum_member(self):
        class Color(enum.Enum):
            RED = 1

        assert make_classifier(Screen).is_terminal(Color.RED)

    def test_weak_holders(self):
        screen = Screen()
        classifier = make_classifier(Screen)
        assert classifier.is_terminal(weakref.ref(screen))
        assert classifier.is_terminal(weakref.proxy(screen))
        assert classifier.is_terminal(weakref.WeakSet([screen]))
        assert classifier.is_terminal(weakref.WeakKeyDictionary())

    def test_stdlib_namespaces(self):
        classifier = make_classifier(Screen)
        assert classifier.is_terminal(decimal.Context())
        assert classifier.is_terminal(object())

    def test_custom_trusted_prefix(self):
        exclusions = ExclusionRules().with_trusted("sample_objects.")
        classifier = make_classifier(Screen, exclusions=exclusions)
        assert classifier.is_terminal(Dialog())


class TestRecursive:

    def test_application_objects(self):
        assert make_classifier(Screen).classify(Task()) is Disposition.RECURSIVE

    @pytest.mark.parametrize("value", [
        [], {}, (), set(), frozenset(), collections.deque(), collections.OrderedDict(),
    ])
    def test_builtin_holders(self, value):
        assert make_classifier(Screen).classify(value) is Disposition.RECURSIVE

    def test_namespaces_and_exceptions_inside_trusted_modules(self):
        classifier = make_classifier(Screen)
        assert classifier.classify(types.SimpleNamespace()) is Disposition.RECURSIVE
        assert classifier.classify(collections.defaultdict(list)) is Disposition.RECURSIVE
        assert classifier.classify(ValueError("x")) is Disposition.RECURSIVE

    def test_callables(self):
        classifier = make_classifier(Screen)
        assert classifier.classify(Screen().refresh) is Disposition.RECURSIVE
        assert classifier.classify(lambda: None) is Disposition.RECURSIVE

    def test_registered_type_inside_trusted_namespace(self):
        enumerator = PropertyEnumerator()
        exclusions = ExclusionRules().with_trusted("sample_objects.")
        classifier = make_classifier(Screen, exclusions=exclusions, enumerator=enumerator)
        assert classifier.classify(Task()) is Disposition.TERMINAL

        enumerator.register(Task, lambda t: [("ref", t.ref)])
        assert classifier.classify(Task()) is Disposition.RECURSIVE
