#!/usr/bin/env python3
"""
ctxguard CLI Interface

Command-line interface for scanning a module-level object for context leaks.
"""

import argparse
import importlib
import json
import sys

from . import __version__
from .config import ScannerConfig, describe
from .core import ContextGuard
from .scanner import ScanStatus

EXIT_CLEAN = 0
EXIT_LEAK = 1
EXIT_FAILURE = 2


def create_parser():
    """Create the argument parser for the ctxguard CLI."""
    parser = argparse.ArgumentParser(
        prog='ctxguard',
        description='ctxguard - Detect objects that pin lifecycle-bound instances',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ctxguard scan myapp.jobs:pending_upload -l myapp.ui.Screen -l myapp.ui.Dialog
  ctxguard scan myapp.jobs:queue.head --max-depth 50 --format json
  ctxguard config --json
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Scan command
    scan_parser = subparsers.add_parser('scan', help='Scan an importable object')
    scan_parser.add_argument('target',
                             help='Object to scan as module:attribute.path')
    scan_parser.add_argument('--lifecycle-type', '-l', action='append', default=[],
                             help='Qualified name of a lifecycle-bound type (repeatable)')
    scan_parser.add_argument('--trusted-prefix', '-t', action='append', default=[],
                             help='Type name prefix never expanded (repeatable)')
    scan_parser.add_argument('--max-depth', '-d', type=int, default=None,
                             help='Depth bound (default: CTXGUARD_MAX_DEPTH or 200)')
    scan_parser.add_argument('--on-denied', choices=['abort', 'skip'], default=None,
                             help='What to do with objects that refuse inspection')
    scan_parser.add_argument('--format', choices=['json', 'text'], default='text',
                             help='Output format (default: text)')

    # Config command
    config_parser = subparsers.add_parser('config', help='Show the effective configuration')
    config_parser.add_argument('--json', action='store_true',
                               help='Output in JSON format')

    return parser


def resolve_target(target):
    """Import ``module:attr.path`` and return the object it names."""
    module_name, sep, attr_path = target.partition(':')
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Target must look like module:attribute, got '{target}'")

    obj = importlib.import_module(module_name)
    for part in attr_path.split('.'):
        obj = getattr(obj, part)
    return obj


def build_config(args):
    """Environment config overlaid with command-line options."""
    config = ScannerConfig.from_env()
    overrides = {'enabled': True}
    if args.lifecycle_type:
        overrides['lifecycle_types'] = config.lifecycle_types.merge(*args.lifecycle_type)
    if args.max_depth is not None:
        overrides['max_depth'] = args.max_depth
    if args.on_denied:
        overrides['on_denied'] = args.on_denied
    config = config.merge(**overrides)
    if args.trusted_prefix:
        config = config.trust(*args.trusted_prefix)
    return config


def format_result_text(target, result):
    """Format a scan result for text output."""
    lines = [f"Target: {target}", f"Status: {result.status.value.upper()}"]
    if result.status is ScanStatus.LEAK:
        lines.append(f"Lifecycle-bound type: {result.match_type}")
        lines.append(f"Path: {result.path}")
        lines.append(f"Depth: {result.depth}")
    elif result.error is not None:
        lines.append(f"Error: {result.error}")
        if result.path:
            lines.append(f"At: {result.path}")
    lines.append(f"Objects visited: {result.objects_visited}")
    for path in result.uninspectable:
        lines.append(f"Skipped (uninspectable): {path}")
    lines.append(f"Duration: {result.duration_ms:.2f} ms")
    return "\n".join(lines)


def cmd_scan(args):
    """Handle scan command."""
    try:
        config = build_config(args)
        obj = resolve_target(args.target)
    except (ImportError, AttributeError, ValueError) as e:
        print(f"Failed to prepare scan: {e}", file=sys.stderr)
        return EXIT_FAILURE

    result = ContextGuard(config).inspect(obj)

    if args.format == 'json':
        data = result.to_dict()
        data['target'] = args.target
        print(json.dumps(data, indent=2))
    else:
        print(format_result_text(args.target, result))

    if result.status is ScanStatus.LEAK:
        return EXIT_LEAK
    if not result.ok:
        return EXIT_FAILURE
    return EXIT_CLEAN


def cmd_config(args):
    """Handle config command."""
    summary = describe(ScannerConfig.from_env())
    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        for key, value in summary.items():
            print(f"{key}: {value}")
    return EXIT_CLEAN


def main(argv=None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_CLEAN

    handlers = {
        'scan': cmd_scan,
        'config': cmd_config,
    }
    return handlers[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
