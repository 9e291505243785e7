"""
Command Line Interface
======================

``scenerender <description-file>``

Exit status is 0 when every image was written and 1 for any reported
error: bad usage, unreadable file, invalid description or a failed render.
"""

import argparse
import sys
from typing import List, Optional

from scenerender import __version__
from scenerender.config.logging import get_logger, setup_logging
from scenerender.core.errors import UsageError
from scenerender.core.rendering.pipeline import render_scene_file

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser that raises UsageError instead of exiting with status 2."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="scenerender",
        description="Render a scene description into TGA images, one folder per resolution",
    )
    parser.add_argument("description", help="Scene description file (JSON or YAML)")
    parser.add_argument(
        "--format",
        choices=["json", "yaml"],
        default=None,
        help="Input format (detected from the file when omitted)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        default=None,
        help="Override the configured log level",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(args.log_level)

    report = render_scene_file(args.description, parser_type=args.format)
    if not report.success:
        print(f"error: {report.error}", file=sys.stderr)
        return EXIT_FAILURE

    logger.info(
        "Rendered scene",
        description=args.description,
        files=len(report.outputs),
        seconds=round(report.processing_time, 3),
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
