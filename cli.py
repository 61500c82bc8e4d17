#!/usr/bin/env python3
"""
Music Inbox Sorter CLI

Sorts audio files from an inbox into destination folders using a
language-model classifier.

Usage:
    python cli.py <command> [options]

Commands:
    run                      Sort the inbox every interval until stopped
    once                     Run a single sorting cycle
    normalize [path]         Rewrite tags/filenames of organized tracks
    folders                  Show destination folders and pending inbox files

Environment:
    API_KEY                  Classification service key (required)
    ROOT_FOLDER              Library root (required)
    INBOX_FOLDER             Inbox, if not the root itself
    ALLOW_FOLDER_CREATION    Let the classifier create new folders (default false)
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from orchestrator.config import ConfigManager
from orchestrator.errors import ConfigurationError


def load_settings(args):
    """Build frozen settings from the config file and environment."""
    return ConfigManager(args.config).build_settings()


def print_report(report):
    print(f"\n=== Cycle Results ===")
    print(f"Files considered: {report.candidates}")
    print(f"Moved: {report.moved}")
    print(f"Failed: {report.failed}")
    print(f"Left in inbox: {len(report.left_in_inbox)}")
    for rejection in report.left_in_inbox:
        print(f"  - {rejection.original_filename}: {rejection.reason}")
    if report.oracle_error:
        print(f"Oracle error: {report.oracle_error}")


def cmd_run(args):
    """Sort the inbox at a fixed interval."""
    from orchestrator.orchestrator import create_orchestrator

    settings = load_settings(args)
    orchestrator = create_orchestrator(settings, dry_run=args.dry_run)
    print("Sorter is running. Press CTRL+C to exit.")
    orchestrator.run_forever(interval=args.interval)


def cmd_once(args):
    """Run one sorting cycle."""
    from orchestrator.orchestrator import create_orchestrator

    settings = load_settings(args)
    orchestrator = create_orchestrator(settings, dry_run=args.dry_run)
    report = orchestrator.run_cycle()
    print_report(report)
    if args.dry_run:
        print("(Dry run - no changes made)")


def cmd_normalize(args):
    """Normalize tags and filenames in destination folders."""
    from utilities.tag_normalizer import TagNormalizer

    normalizer = TagNormalizer(dry_run=args.dry_run)

    if args.path:
        path = Path(args.path)
        if path.is_file():
            outcome = normalizer.normalize_file(path)
            print(f"{path.name}: {outcome['status']}")
            return
        results = normalizer.normalize_library(path, inbox=args.inbox)
    else:
        settings = load_settings(args)
        results = normalizer.normalize_library(settings.root, inbox=settings.inbox)

    print(f"\n=== Normalize Results ===")
    print(f"Folders scanned: {results['folders']}")
    print(f"Normalized: {results['normalized']}")
    print(f"Already normalized: {results['unchanged']}")
    print(f"Skipped: {results['skipped']}")
    if results['errors']:
        print(f"Errors: {len(results['errors'])}")
        for err in results['errors']:
            print(f"  - {err}")
    if args.dry_run:
        print("(Dry run - no changes made)")


def cmd_folders(args):
    """Show the allow-list and what the next cycle would pick up."""
    from agents.scanner import ScannerAgent

    settings = load_settings(args)
    scanner = ScannerAgent(settings)

    print(f"Root: {settings.root}")
    print(f"Inbox: {settings.inbox}")
    print(f"\nDestination folders:")
    for folder in sorted(scanner.list_valid_folders()):
        print(f"  {folder}")
    print(f"\nNext batch:")
    for candidate in scanner.list_candidate_files():
        print(f"  {candidate.name}")


def build_parser():
    parser = argparse.ArgumentParser(
        prog='music-sort',
        description='Music Inbox Sorter CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--config', default='music-sort.yaml', help='Config file path')

    # --config is also accepted after the command; it only overrides when given
    config_parent = argparse.ArgumentParser(add_help=False)
    config_parent.add_argument('--config', default=argparse.SUPPRESS, help='Config file path')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # run command
    run_parser = subparsers.add_parser('run', parents=[config_parent], help='Sort the inbox every interval')
    run_parser.add_argument('--interval', type=float, help='Seconds between cycles')
    run_parser.add_argument('--dry-run', action='store_true', help='Preview moves without applying')
    run_parser.set_defaults(func=cmd_run)

    # once command
    once_parser = subparsers.add_parser('once', parents=[config_parent], help='Run a single cycle')
    once_parser.add_argument('--dry-run', action='store_true', help='Preview moves without applying')
    once_parser.set_defaults(func=cmd_once)

    # normalize command
    normalize_parser = subparsers.add_parser('normalize', parents=[config_parent], help='Normalize tags and filenames')
    normalize_parser.add_argument('path', nargs='?', help='Library root or single file (default: configured root)')
    normalize_parser.add_argument('--inbox', help='Inbox folder to leave alone')
    normalize_parser.add_argument('--dry-run', action='store_true', help='Preview changes without applying')
    normalize_parser.set_defaults(func=cmd_normalize)

    # folders command
    folders_parser = subparsers.add_parser(
        'folders', parents=[config_parent], help='Show destination folders and pending files'
    )
    folders_parser.set_defaults(func=cmd_folders)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        args.func(args)
        return 0
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nOperation cancelled.")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
