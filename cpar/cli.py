#!/usr/bin/env python3
"""
CPAR - Crop Preserving Aspect Ratio

Crops artwork to the point where its whitespace border ends and restores it
to the original image's aspect ratio.

Usage:
    cpar <source>... <output> [options]

Examples:
    # Crop scans with the default threshold (250) and percentile (95)
    cpar scans/*.png cropped/

    # Stricter detection on the x-axis, blur and halve the result
    cpar scans/ cropped/ --x-threshold 200 --y-threshold 240 --blur 0.8 --downscale 2

    # Load defaults from a YAML file, use four worker processes
    cpar scans/ cropped/ --config cpar.yaml --workers 4 --progress

Exit status:
    0 all files processed, 1 some files failed, 2 invalid arguments,
    3 output directory unusable, 130 interrupted
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.batch import BatchProcessor
from .core.config import AXES, AXIS_KEYS, CropSettings, load_settings
from .core.errors import IoError
from .core.image import get_image_files

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2
EXIT_FATAL = 3
EXIT_INTERRUPTED = 130

logger = logging.getLogger('cpar')


def setup_logging(level: str = 'INFO', log_file: Optional[Path] = None) -> logging.Logger:
    """Setup logging for a cropping run."""
    logger.setLevel(logging.DEBUG)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logger.addHandler(file_handler)

    return logger


def _ranged_int(low: int, high: Optional[int] = None):
    def parse(value: str) -> int:
        try:
            number = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
        if number < low or (high is not None and number > high):
            bounds = f"{low}-{high}" if high is not None else f">= {low}"
            raise argparse.ArgumentTypeError(f"{number} is out of range ({bounds})")
        return number
    return parse


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid float value: {value!r}")
    if not number > 0:
        raise argparse.ArgumentTypeError(f"{value} must be greater than 0")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="cpar",
        description="Crops artwork and restores it to the original aspect ratio"
    )
    parser.add_argument("source", nargs='+', type=Path,
                        help="Source file(s) to process (folders are expanded to their images)")
    parser.add_argument("output", type=Path,
                        help="Output folder to place processed images within")

    threshold = _ranged_int(0, 255)
    percentile = _ranged_int(0, 100)
    extra = _ranged_int(0)

    detection = parser.add_argument_group("detection")
    detection.add_argument("-t", "--threshold", type=threshold, default=None,
                           help="Threshold value to check whitespace in both axes. When a row/column "
                                "drops below this threshold, identify it as part of the image edge (default: 250)")
    detection.add_argument("--x-threshold", "--xt", type=threshold, default=None,
                           help="Threshold value to check whitespace in the x-axis")
    detection.add_argument("--y-threshold", "--yt", type=threshold, default=None,
                           help="Threshold value to check whitespace in the y-axis")
    detection.add_argument("-p", "--percentile", type=percentile, default=None,
                           help="Percentile to accept border in both axes. When X%% of the rows/columns "
                                "have crossed this threshold, crop image to this point (default: 95)")
    detection.add_argument("--x-percentile", "--xp", type=percentile, default=None,
                           help="Percentile to accept border in the x-axis")
    detection.add_argument("--y-percentile", "--yp", type=percentile, default=None,
                           help="Percentile to accept border in the y-axis")
    detection.add_argument("-e", "--extra", type=extra, default=None,
                           help="Extra margin to crop beyond threshold in both axes (default: 0)")
    detection.add_argument("--x-extra", "--ex", type=extra, default=None,
                           help="Extra margin to crop beyond threshold in the x-axis")
    detection.add_argument("--y-extra", "--ey", type=extra, default=None,
                           help="Extra margin to crop beyond threshold in the y-axis")

    output = parser.add_argument_group("output")
    output.add_argument("-b", "--blur", type=_positive_float, default=None,
                        help="Blur image by sigma")
    output.add_argument("-d", "--downscale", type=_positive_float, default=None,
                        help="Downscale image by factor (default: 1.0)")

    run = parser.add_argument_group("run")
    run.add_argument("-c", "--config", type=Path, default=None,
                     help="YAML file with default settings")
    run.add_argument("-j", "--workers", type=_ranged_int(1), default=None,
                     help="Number of worker processes (default: CPU count)")
    run.add_argument("--progress", action="store_true",
                     help="Show a progress bar")
    run.add_argument("--log-file", type=Path, default=None,
                     help="Also write detailed logs to this file")
    run.add_argument("-v", "--verbose", action="store_true",
                     help="Log every processed file")
    run.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def check_exclusive(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Per-axis flags cannot be combined with their shared flag."""
    for key in AXIS_KEYS:
        if getattr(args, key) is None:
            continue
        for axis in AXES:
            if getattr(args, f"{axis}_{key}") is not None:
                parser.error(f"argument --{axis}-{key}: not allowed with argument --{key}")


def settings_from_args(args: argparse.Namespace) -> CropSettings:
    """Layer command-line values over the YAML file (if any) and the defaults."""
    if args.config is not None and not args.config.is_file():
        raise ValueError(f"config file not found: {args.config}")

    settings = load_settings(args.config)
    settings.apply_overrides(
        shared={
            'threshold': args.threshold,
            'percentile': args.percentile,
            'extra': args.extra,
            'blur': args.blur,
            'downscale': args.downscale,
            'workers': args.workers,
        },
        per_axis={
            axis: {key: getattr(args, f"{axis}_{key}") for key in AXIS_KEYS}
            for axis in AXES
        },
    )
    if args.log_file is not None:
        settings.set('logging', 'file', value=str(args.log_file))
    if args.verbose:
        settings.set('logging', 'level', value='DEBUG')
    return settings


def expand_sources(sources: List[Path]) -> List[Path]:
    """Replace folders with the image files they contain."""
    expanded = []
    for source in sources:
        if source.is_dir():
            images = get_image_files(source)
            if not images:
                logger.warning(f"No image files found in {source}")
            expanded.extend(images)
        else:
            expanded.append(source)

    seen = {}
    for source in expanded:
        if source.name in seen and seen[source.name] != source:
            logger.warning(f"{source} and {seen[source.name]} share a filename; "
                           f"the later one overwrites the earlier output")
        seen[source.name] = source

    return expanded


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for the command line."""
    parser = build_parser()
    args = parser.parse_args(argv)
    check_exclusive(parser, args)

    try:
        settings = settings_from_args(args)
        config = settings.resolve()
    except (ValueError, OSError) as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return EXIT_USAGE

    log_file = settings.get('logging', 'file')
    setup_logging(settings.get('logging', 'level'), Path(log_file) if log_file else None)

    sources = expand_sources(args.source)
    logger.debug(f"Resolved configuration: {config}")

    try:
        processor = BatchProcessor(
            config,
            args.output,
            workers=settings.get('workers'),
            show_progress=args.progress,
        )
    except ValueError as e:
        logger.error(str(e))
        return EXIT_USAGE

    try:
        report = processor.run(sources)
    except IoError as e:
        logger.error(f"Fatal error: {e}")
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return EXIT_INTERRUPTED

    if report.failed:
        logger.warning(report.summary())
        return EXIT_FAILURES

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
