#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ctxguard Demo Script - Context Leaks in Background Work

Builds a few background tasks the way real code tends to (callbacks, closures,
partials, nested payloads) and shows which of them pin a screen.

Usage:
    python examples/demo_context_leak.py
    python examples/demo_context_leak.py --json
    python examples/demo_context_leak.py --strict   # raise on the first leak
"""

import argparse
import functools
import sys
import weakref
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ctxguard import ContextGuard, ContextLeakError, ScannerConfig


class Screen:
    def __init__(self, title):
        self.title = title

    def on_upload_done(self, result):
        print(f"[{self.title}] upload finished: {result}")


class Dialog:
    def __init__(self, owner):
        self.owner = owner


class UploadTask:
    def __init__(self, path, callback=None, meta=None):
        self.path = path
        self.callback = callback
        self.meta = meta or {}


def print_banner(title):
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def build_tasks(screen):
    """Tasks keyed by a label describing how they were built."""
    screen_ref = weakref.ref(screen)

    def notify_weakly(result):
        target = screen_ref()
        if target is not None:
            target.on_upload_done(result)

    def notify_strongly(result):
        screen.on_upload_done(result)

    return {
        "plain data": UploadTask("/tmp/a.png", meta={"title": screen.title}),
        "bound method callback": UploadTask("/tmp/b.png", callback=screen.on_upload_done),
        "closure over screen": UploadTask("/tmp/c.png", callback=notify_strongly),
        "weak reference": UploadTask("/tmp/d.png", callback=notify_weakly),
        "partial with dialog": UploadTask(
            "/tmp/e.png", callback=functools.partial(print, Dialog(owner=screen))),
        "nested payload": UploadTask("/tmp/f.png", meta={"history": [{"view": screen}]}),
    }


def main():
    parser = argparse.ArgumentParser(description="ctxguard context leak demo")
    parser.add_argument('--json', action='store_true', help='Print the report as JSON')
    parser.add_argument('--strict', action='store_true', help='Raise on the first leak')
    args = parser.parse_args()

    config = ScannerConfig.for_types(Screen, Dialog, enabled=True, strict=args.strict)
    guard = ContextGuard(config)
    tasks = build_tasks(Screen("gallery"))

    print_banner("Checking background tasks")
    for label, task in tasks.items():
        try:
            result = guard.check(task, label=label)
        except ContextLeakError as e:
            print(f"  strict mode stopped at '{label}': {e}")
            return 1
        marker = "LEAK " if result.has_context else "clean"
        where = f" via {result.path}" if result.has_context else ""
        print(f"  [{marker}] {label}{where}")

    print_banner("Report")
    report = guard.analyze(tasks)
    if args.json:
        print(report.to_json())
    else:
        print(report.summary())

    stats = guard.get_stats()
    print(f"\nScans: {stats['total_scans']}, leaks: {stats['leaks_found']}, "
          f"avg {stats['avg_scan_duration_ms']:.3f} ms")
    return 1 if report.has_leaks else 0


if __name__ == '__main__':
    sys.exit(main())
