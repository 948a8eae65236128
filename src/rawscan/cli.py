"""
Command-line entry point: ``rawscan [PATH] [options]``.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

from .core.errors import ConfigError
from .report.config import SECTION_NAMES, ReportConfig
from .report.runner import run_report


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rawscan",
        description="Print an acquisition report for a mass spectrometry data file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Report sections:
  {', '.join(SECTION_NAMES)}

Examples:
  # Default report (mass chromatogram only)
  rawscan sample.mzML

  # Add scan analysis and averaging, drop the mass chromatogram
  rawscan sample.mzML --enable analyze_scans average_scans --disable read_mass_chromatogram

  # Sections and parameters from a JSON file
  rawscan sample.mzML --config report.json -v
        """
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Path to the instrument data file"
    )

    parser.add_argument(
        "--enable",
        nargs="+",
        default=[],
        metavar="SECTION",
        help="Report sections to switch on"
    )

    parser.add_argument(
        "--disable",
        nargs="+",
        default=[],
        metavar="SECTION",
        help="Report sections to switch off"
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="JSON file with section toggles and parameters"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or per-scan detail (-vv)"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if not args.path:
        print("No RAW file specified!")
        return 1

    path = Path(args.path)
    if not path.exists():
        print(f"The file doesn't exist in the specified location - {args.path}")
        return 1

    try:
        config = ReportConfig.from_json(args.config) if args.config else ReportConfig()
        config = config.with_sections(enable=args.enable, disable=args.disable)
    except ConfigError as e:
        print(f"Invalid configuration - {e}")
        return 1

    logger.info(f"Enabled sections: {', '.join(config.enabled_sections) or 'none'}")
    return run_report(path, config)


if __name__ == "__main__":
    exit(main())
