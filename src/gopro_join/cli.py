#!/usr/bin/env python3
"""
GoPro Join - Main CLI Entry Point

Merges chaptered GoPro recordings (GH01xxxx, GH02xxxx, ...) into a single
file per recording (GH00xxxx) using ffmpeg stream copy.
"""

import sys
import argparse
from pathlib import Path

from gopro_join import __version__
from gopro_join.config import MergeConfig, REPORTERS
from gopro_join.exceptions import ConfigurationError, GoProJoinError
from gopro_join.merger import FFmpegMerger
from gopro_join.orchestrator import format_report, process_directory
from gopro_join.progress import ProgressAggregator, get_reporter
from gopro_join.utils.logger import setup_logger
from gopro_join.utils.validators import validate_input_dir, validate_output_dir


EXIT_CONFIGURATION_ERROR = 2


def create_default_config(config_path: Path):
    """Create a default configuration file"""
    config = MergeConfig()
    config.parallel = 0  # auto
    config.extensions = ["mp4"]  # skip .THM thumbnails saved next to the chapters
    config.to_yaml(str(config_path))
    print(f"Created default configuration: {config_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gopro-join",
        description="Merge chaptered GoPro recordings into single files (no re-encoding)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Merge every recording in the current directory, next to the chapters
  gopro-join

  # Read chapters from an SD card, write merged files elsewhere
  gopro-join /media/sdcard/DCIM/100GOPRO ~/Videos/merged

  # Two merges at a time, machine-readable progress
  gopro-join ./footage --parallel 2 --reporter json

  # Create default config template (merges .mp4 only, so .THM thumbnails
  # next to the chapters do not clash with them; edit "extensions" to change)
  gopro-join --create-config gopro-join.yaml
  gopro-join /media/sdcard/DCIM/100GOPRO ~/Videos/merged --config gopro-join.yaml
        """
    )

    parser.add_argument(
        'input',
        nargs='?',
        type=Path,
        default=Path('.'),
        help='Directory with chapter files (default: current directory)'
    )

    parser.add_argument(
        'output',
        nargs='?',
        type=Path,
        help='Directory for merged files (default: input directory)'
    )

    parser.add_argument(
        '-p', '--parallel', '-t', '--threads',
        dest='parallel',
        type=int,
        help='Number of merges to run at once (default: number of CPUs)'
    )

    parser.add_argument(
        '-r', '--reporter',
        choices=REPORTERS,
        help='Progress output format (default: progressbar)'
    )

    # Configuration
    parser.add_argument(
        '--config',
        type=Path,
        help='Path to configuration YAML file (optional)'
    )

    parser.add_argument(
        '--create-config',
        type=Path,
        metavar='PATH',
        help='Create a default configuration file and exit'
    )

    # Output options
    parser.add_argument(
        '--cleanup-partial',
        action='store_true',
        help='Delete the output file of a merge that failed'
    )

    parser.add_argument(
        '--keep-diagnostics',
        action='store_true',
        help='Keep ffmpeg logs of successful merges'
    )

    parser.add_argument(
        '--ffmpeg',
        metavar='PATH',
        help='ffmpeg executable (default: ffmpeg)'
    )

    parser.add_argument(
        '--ffprobe',
        metavar='PATH',
        help='ffprobe executable (default: ffprobe)'
    )

    # Logging
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: WARNING)'
    )

    parser.add_argument(
        '--log-file',
        type=Path,
        help='Log file path (optional)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output (equivalent to --log-level DEBUG)'
    )

    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'gopro-join v{__version__}'
    )

    return parser


def load_config(args: argparse.Namespace) -> MergeConfig:
    """Load configuration and apply command line overrides"""
    if args.config:
        config = MergeConfig.from_yaml(str(args.config))
    else:
        config = MergeConfig()

    if args.parallel is not None:
        if args.parallel < 1:
            raise ConfigurationError(f"--parallel must be a positive integer, got {args.parallel}")
        config.parallel = args.parallel

    if args.reporter:
        config.output.reporter = args.reporter

    if args.cleanup_partial:
        config.output.cleanup_partial = True

    if args.keep_diagnostics:
        config.output.keep_diagnostics = True

    if args.ffmpeg:
        config.ffmpeg.ffmpeg_binary = args.ffmpeg

    if args.ffprobe:
        config.ffmpeg.ffprobe_binary = args.ffprobe

    # Set logging level
    if args.verbose:
        config.logging.level = 'DEBUG'
    elif args.quiet:
        config.logging.level = 'ERROR'
    elif args.log_level:
        config.logging.level = args.log_level

    if args.log_file:
        config.logging.file = str(args.log_file)

    return config


def main(argv=None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle config creation
    if args.create_config:
        create_default_config(args.create_config)
        return 0

    try:
        config = load_config(args)
        logger = setup_logger("gopro_join", log_file=config.logging.file, level=config.logging.level)

        input_dir = validate_input_dir(args.input)
        output_dir = validate_output_dir(args.output if args.output else input_dir)
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR

    logger.info(f"Merging chapters from {input_dir} into {output_dir}")

    reporter = get_reporter(config.output.reporter)
    aggregator = ProgressAggregator(reporter)
    try:
        report = process_directory(
            config,
            input_dir,
            output_dir,
            FFmpegMerger(config.ffmpeg),
            aggregator
        )
    except GoProJoinError as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130

    reporter.summary(report)
    if config.output.reporter == "progressbar" and not args.quiet:
        print(format_report(report))

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
