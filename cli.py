#!/usr/bin/env python3
"""
Folder Icons CLI

Turns embedded album art into folder icons and builds flat symlink views
of an Artists/<artist>/<album> music library.

Usage:
    python cli.py <command> [music_dir] [options]

Commands:
    art [music_dir]       Extract folder.jpg from the first track of each folder
    icons [music_dir]     Set folder icons (gio metadata or .directory files)
    albums [music_dir]    Create Albums/ symlinks ("Artist - Album")
    tracks [music_dir]    Create Tracks/ symlinks ("Artist - Album - Track")
    all [music_dir]       Run art, icons, albums and tracks in order
"""

import argparse
import sys

from orchestrator.config import ConfigManager
from orchestrator.pipeline import IconPipeline, STEPS
from stages.environment import EnvironmentHints, IconStrategy
from stages.errors import ConfigurationError

DEFAULT_MUSIC_DIR = '~/Music'


def load_config(args) -> ConfigManager:
    """Load YAML config and apply command-line overrides."""
    config = ConfigManager(args.config)

    if args.music_dir:
        config.set('library.root', args.music_dir)
    if getattr(args, 'backend', None):
        config.set('art.backend', args.backend)
    if getattr(args, 'workers', None):
        config.set('art.workers', args.workers)
    if getattr(args, 'strategy', None):
        config.set('icons.strategy', args.strategy)

    return config


def run_steps(args, steps, skip=()):
    config = load_config(args)
    hints = EnvironmentHints.capture()

    pipeline = IconPipeline(config, hints, dry_run=args.dry_run, quiet=args.quiet)
    summary = pipeline.run(steps, skip=skip)
    summary.print_report()

    if args.report:
        summary.save(args.report)
        print(f"Report written to: {args.report}")

    if args.dry_run:
        print("(Dry run - no changes made)")
    return summary


def cmd_art(args):
    """Extract album art."""
    run_steps(args, ['art'])


def cmd_icons(args):
    """Set folder icons."""
    run_steps(args, ['icons'])


def cmd_albums(args):
    """Create album symlinks."""
    run_steps(args, ['albums'])


def cmd_tracks(args):
    """Create track symlinks."""
    run_steps(args, ['tracks'])


def cmd_all(args):
    """Run every step except the skipped ones."""
    skip = args.skip.split(',') if args.skip else ()
    run_steps(args, list(STEPS), skip=skip)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='folder-icons',
        description='Album art folder icons and flat symlink views',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    # Options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('music_dir', nargs='?', help=f'Music directory (default: {DEFAULT_MUSIC_DIR})')
    common.add_argument('--config', help='YAML config file (default: folder-icons.yaml if present)')
    common.add_argument('--dry-run', action='store_true', help='Preview changes without applying')
    common.add_argument('--quiet', action='store_true', help='Only print errors and the summary')
    common.add_argument('--report', help='Write a JSON summary to this file')

    art_options = argparse.ArgumentParser(add_help=False)
    art_options.add_argument('--backend', choices=['ffmpeg', 'mutagen'], help='How to read embedded art')
    art_options.add_argument('--workers', type=int, help='Parallel extraction workers')

    icon_options = argparse.ArgumentParser(add_help=False)
    icon_options.add_argument(
        '--strategy',
        choices=['auto'] + [s.value for s in IconStrategy],
        help='Force an icon strategy instead of detecting the desktop'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # art command
    art_parser = subparsers.add_parser('art', parents=[common, art_options], help='Extract album art')
    art_parser.set_defaults(func=cmd_art)

    # icons command
    icons_parser = subparsers.add_parser('icons', parents=[common, icon_options], help='Set folder icons')
    icons_parser.set_defaults(func=cmd_icons)

    # albums command
    albums_parser = subparsers.add_parser('albums', parents=[common], help='Create album symlinks')
    albums_parser.set_defaults(func=cmd_albums)

    # tracks command
    tracks_parser = subparsers.add_parser('tracks', parents=[common], help='Create track symlinks')
    tracks_parser.set_defaults(func=cmd_tracks)

    # all command
    all_parser = subparsers.add_parser(
        'all', parents=[common, art_options, icon_options], help='Run art, icons, albums and tracks'
    )
    all_parser.add_argument('--skip', help=f'Comma-separated steps to skip ({",".join(STEPS)})')
    all_parser.set_defaults(func=cmd_all)

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
    except KeyboardInterrupt:
        print("\nOperation cancelled.")
        return 130
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
