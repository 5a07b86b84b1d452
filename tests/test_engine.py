#=============================================================================
# File        : tests/test_engine.py
# Project     : ctxguard v1.0
# Component   : Traversal Engine Test Suite
# Description : Breadth-first reachability scan behaviour
#               • Matches at the root, direct members and nested members
#               • Self and mutual references terminate
#               • Depth bound raises instead of reporting clean
#               • Terminal values are never expanded
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import enum
import functools
import queue
import threading
import types
import weakref
from collections import defaultdict, deque

import pytest

from ctxguard import (
    ContextGuard,
    DepthExceeded,
    IntrospectionDenied,
    ScanError,
    ScannerConfig,
    ScanStatus,
    qualified_name,
)
from ctxguard.scanner import PropertyEnumerator, TraversalEngine, TypeClassifier
from sample_objects import (
    AlwaysEqual, Application, MainScreen, Node, Screen, Sealed, SlotHolder, Task, chain,
)


class TestReachability:
    """Matches at depth 0, 1 and k > 1."""

    def test_root_is_lifecycle_bound(self, guard):
        result = guard.inspect(Screen())
        assert result.status is ScanStatus.LEAK
        assert result.depth == 0
        assert result.path == "root"

    def test_direct_member(self, guard):
        assert guard.scan(Task(name="task", ref=Screen())) is True

        result = guard.inspect(Task(name="task", ref=Screen()))
        assert result.path == "root.ref"
        assert result.depth == 1
        assert result.match_type == qualified_name(Screen)

    def test_nested_member(self, guard):
        root = Task(ref=chain(2, tail=Screen()))
        result = guard.inspect(root)
        assert result.has_context
        assert result.depth == 3
        assert result.path == "root.ref.child.child"

    def test_subclass_matches(self, guard):
        assert guard.scan(Task(ref=MainScreen())) is True

    def test_string_member_is_clean(self, guard):
        assert guard.scan(Task(name="task", ref="hello")) is False

    def test_none_root(self, guard):
        result = guard.inspect(None)
        assert result.status is ScanStatus.CLEAN
        assert result.objects_visited == 0
        assert guard.scan(None) is False

    def test_terminal_root(self, guard):
        assert guard.scan("hello") is False
        assert guard.scan(42) is False


class TestCycles:
    """The visited-identity guard keeps cyclic graphs finite."""

    def test_self_reference(self, guard):
        task = Task()
        task.self = task
        assert guard.scan(task, max_depth=5) is False

    def test_self_reference_with_match(self, guard):
        task = Task(ref=Node())
        task.self = task
        task.ref.child = Screen()
        assert guard.scan(task) is True

    def test_mutual_reference(self, guard):
        a = Node()
        b = Node(a)
        a.child = b
        result = guard.inspect(a)
        assert result.status is ScanStatus.CLEAN
        assert result.objects_visited == 2

    def test_cycle_through_container(self, guard):
        items = []
        task = Task(ref=items)
        items.append(task)
        items.append(items)
        assert guard.scan(task) is False

    def test_identity_not_equality(self, guard):
        # b == a, but only b holds the screen
        a = AlwaysEqual()
        b = AlwaysEqual(ref=Screen())
        result = guard.inspect(Task(ref=[a, b]))
        assert result.has_context
        assert result.path == "root.ref[1].ref"


class TestDepthBound:

    def test_match_beyond_bound_raises(self, guard):
        # root -> A -> B -> Screen, the match sits at depth 3
        root = Task(ref=chain(2, tail=Screen()))
        with pytest.raises(DepthExceeded) as excinfo:
            guard.scan(root, max_depth=2)
        assert excinfo.value.last_type_name == qualified_name(Node)
        assert excinfo.value.max_depth == 2

    def test_match_at_bound_is_found(self, guard):
        root = Task(ref=chain(2, tail=Screen()))
        assert guard.scan(root, max_depth=3) is True

    def test_deep_clean_graph_raises(self, guard):
        with pytest.raises(DepthExceeded) as excinfo:
            guard.scan(chain(10), max_depth=3)
        assert excinfo.value.depth == 4
        assert "flatten your objects" in str(excinfo.value)

    def test_inspect_reports_depth_exceeded(self, guard):
        result = guard.inspect(chain(10), max_depth=3)
        assert result.status is ScanStatus.DEPTH_EXCEEDED
        assert not result.ok
        assert isinstance(result.error, DepthExceeded)
        assert result.last_type_name == qualified_name(Node)
        assert result.path == "root.child.child.child.child"

    def test_zero_depth_only_checks_root(self, guard):
        assert guard.scan(Screen(), max_depth=0) is True
        with pytest.raises(DepthExceeded):
            guard.scan(Task(ref=Screen()), max_depth=0)

    def test_shallowest_path_wins(self, guard):
        task = Task()
        task.deep = chain(2, tail=Screen())
        task.near = Node(Screen())
        result = guard.inspect(task)
        assert result.path == "root.near.child"
        assert result.depth == 2


class TestTerminalValues:
    """Terminal types are never opened, whatever they hold."""

    def test_str_subclass_not_expanded(self, guard):
        class Tagged(str):
            pass

        value = Tagged("x")
        value.owner = Screen()
        assert guard.scan(Task(ref=value)) is False

    def test_int_subclass_not_expanded(self, guard):
        class Counter(int):
            pass

        value = Counter(3)
        value.owner = Screen()
        assert guard.scan(Task(ref=value)) is False

    def test_enum_not_expanded(self, guard):
        class Slot(enum.Enum):
            MAIN = 1

        Slot.MAIN.owner = Screen()
        assert guard.scan(Task(ref=Slot.MAIN)) is False

    def test_weak_references_not_expanded(self, guard):
        screen = Screen()
        assert guard.scan(Task(ref=weakref.ref(screen))) is False
        assert guard.scan(Task(ref=weakref.proxy(screen))) is False

        cache = weakref.WeakValueDictionary()
        cache["main"] = screen
        assert guard.scan(Task(ref=cache)) is False

    def test_stdlib_namespace_not_expanded(self, guard):
        pending = queue.Queue()
        pending.put(Screen())
        assert guard.scan(Task(ref=pending)) is False

    def test_known_safe_type(self):
        config = ScannerConfig.for_types(Screen, enabled=True)
        config = config.merge(exclusions=config.exclusions.with_known_safe(Application))
        guard = ContextGuard(config)
        assert guard.scan(Task(ref=Application())) is False
        assert guard.scan(Task(ref=MainScreen())) is True

    def test_match_not_masked_by_trusted_prefix(self):
        config = ScannerConfig.for_types(Screen, enabled=True).trust("sample_objects.")
        guard = ContextGuard(config)
        # Task is now trusted and never opened, the Screen itself still matches
        assert guard.scan(Task(ref=Screen())) is False
        assert guard.scan({"screen": Screen()}) is True


class TestReferenceHolders:
    """Containers, callbacks and slots are followed."""

    def test_list_member(self, guard):
        result = guard.inspect(Task(ref=[1, "two", Screen()]))
        assert result.path == "root.ref[2]"

    def test_dict_value(self, guard):
        result = guard.inspect(Task(ref={"view": Screen()}))
        assert result.path == "root.ref['view']"

    def test_dict_key(self, guard):
        result = guard.inspect(Task(ref={Screen(): "cached"}))
        assert result.path == "root.ref.keys[0]"

    def test_set_tuple_deque(self, guard):
        assert guard.scan(Task(ref={Screen()})) is True
        assert guard.scan(Task(ref=(1, Screen()))) is True
        assert guard.scan(Task(ref=deque([Screen()]))) is True

    def test_bound_method(self, guard):
        result = guard.inspect(Task(ref=Screen().refresh))
        assert result.path == "root.ref.__self__"

    def test_closure(self, guard):
        def make_callback():
            screen = Screen()
            return lambda: screen.title

        result = guard.inspect(Task(ref=make_callback()))
        assert result.path == "root.ref.<closure screen>"

    def test_partial(self, guard):
        result = guard.inspect(Task(ref=functools.partial(print, Screen())))
        assert result.path == "root.ref.args[0]"

    def test_slots(self, guard):
        assert guard.inspect(Task(ref=SlotHolder(target=Screen()))).path == "root.ref.target"
        assert guard.inspect(Task(ref=SlotHolder(secret=Screen()))).path == "root.ref.__secret"

    def test_simple_namespace(self, guard):
        result = guard.inspect(types.SimpleNamespace(name="task", ref=Screen()))
        assert result.path == "root.ref"
        assert guard.scan(types.SimpleNamespace(name="task", ref="hello")) is False

    def test_defaultdict_factory(self, guard):
        screen = Screen()
        result = guard.inspect(Task(ref=defaultdict(lambda: screen)))
        assert result.path == "root.ref.default_factory.<closure screen>"

    def test_exception_args(self, guard):
        result = guard.inspect(Task(ref=ValueError("stale view", Screen())))
        assert result.path == "root.ref.args[1]"


class TestIntrospectionPolicy:

    def test_denied_aborts_by_default(self, guard):
        with pytest.raises(IntrospectionDenied) as excinfo:
            guard.scan(Task(ref=Sealed()))
        assert excinfo.value.path == "root.ref"

        result = guard.inspect(Task(ref=Sealed()))
        assert result.status is ScanStatus.FAILED

    def test_denied_skipped(self, config):
        guard = ContextGuard(config.merge(on_denied="skip"))
        result = guard.inspect(Task(ref=Sealed()))
        assert result.status is ScanStatus.CLEAN
        assert result.uninspectable == ("root.ref",)

    def test_skip_keeps_scanning(self, config):
        guard = ContextGuard(config.merge(on_denied="skip"))
        task = Task(ref=Sealed())
        task.next = Node(Screen())
        assert guard.scan(task) is True

    def test_enumerator_error_aborts_scan(self, guard):
        class Broken:
            pass

        def explode(obj):
            raise RuntimeError("boom")

        guard.register_enumerator(Broken, explode)
        with pytest.raises(ScanError) as excinfo:
            guard.scan(Task(ref=Broken()))
        assert not isinstance(excinfo.value, IntrospectionDenied)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_registered_enumerator_opens_trusted_type(self):
        class VendorHandle:
            def __init__(self, payload):
                self._payload = payload

        config = ScannerConfig.for_types(Screen, enabled=True).trust(qualified_name(VendorHandle))
        guard = ContextGuard(config)
        task = Task(ref=VendorHandle(Screen()))
        assert guard.scan(task) is False

        guard.register_enumerator(VendorHandle, lambda h: [("payload", h._payload)])
        assert guard.inspect(task).path == "root.ref.payload"


class TestEngineDirect:

    def _engine(self, **kwargs):
        enumerator = PropertyEnumerator()
        config = ScannerConfig.for_types(Screen)
        classifier = TypeClassifier(config.lifecycle_types, config.exclusions, enumerator)
        return TraversalEngine(classifier, enumerator, **kwargs)

    def test_scan_returns_bool(self):
        engine = self._engine()
        assert engine.scan(Task(ref=Screen()), max_depth=5) is True
        assert engine.scan(Task(), max_depth=5) is False

    def test_concurrent_scans_on_disjoint_graphs(self):
        engine = self._engine()
        results = {}

        def worker(index):
            leaking = index % 2 == 0
            root = Task(ref=chain(20, tail=Screen() if leaking else None))
            results[index] = (leaking, engine.scan(root, max_depth=50))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        for leaking, found in results.values():
            assert leaking == found
