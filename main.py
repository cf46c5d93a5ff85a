"""
BarTender Document Extractor

Command line tool to take apart BarTender label documents (.btw).

Usage:
  # Extract preview, mask, prefix and inflated container
  python main.py -e -i preview.png -m mask.png -p prefix.bin -c container.bin label.btw

  # Locate the PNG images of a file without the BarTender signature
  python main.py -e -s -i preview.png -m mask.png unknown.bin
"""

import argparse
import logging
import sys
from typing import List, Optional

from barmaid import __version__
from barmaid.extractor import BtwExtractor
from barmaid.signatures import BUFFER_SIZE

APPNAME = "barmaid"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


class BarmaidArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with status 1 like every other failure."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser():
    parser = BarmaidArgumentParser(
        prog=APPNAME,
        description="Extract the sections of BarTender documents (.btw)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Either extract (-e) or build (-b) has to be provided.
Parameters -c -i -m -p are outputs in extract mode.

Examples:
  # Extract everything
  barmaid -e -i preview.png -m mask.png -p prefix.bin -c container.bin label.btw

  # Only the images, located by PNG markers
  barmaid -e -s -i preview.png -m mask.png label.btw
""",
    )

    parser.add_argument("file", help="BarTender document to process")

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("-e", "--extract", action="store_true", help="Extract mode")
    mode.add_argument("-b", "--build", action="store_true", help="Build mode (yet to be implemented)")

    parser.add_argument("-c", "--container", metavar="FILE", help="Container file")
    parser.add_argument("-i", "--image", metavar="FILE", help="Preview PNG image")
    parser.add_argument("-m", "--mask", metavar="FILE", help="Mask PNG image")
    parser.add_argument("-p", "--prefix", metavar="FILE", help="Prefix file")
    parser.add_argument(
        "-s",
        "--scan",
        action="store_true",
        help="Heuristic scan for PNG images (prefix and container unavailable)",
    )
    parser.add_argument("--manifest", metavar="FILE", help="Write a JSON manifest of the extracted sections")
    parser.add_argument(
        "--buffer-size",
        type=int,
        default=BUFFER_SIZE,
        help=f"Read/write buffer size in bytes (default: {BUFFER_SIZE})",
    )
    parser.add_argument("--log-file", metavar="FILE", help="Also append log output to FILE")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--version",
        action="version",
        version=f"{APPNAME} {__version__}",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)
    logger = logging.getLogger(__name__)

    if args.build:
        logger.error("-b not yet implemented")
        return 1

    if args.buffer_size <= 0:
        logger.error("buffer size must be positive")
        return 1

    extractor = BtwExtractor(buffer_size=args.buffer_size, show_progress=args.verbose)

    try:
        failure = extractor.extract(
            args.file,
            prefix=args.prefix,
            preview=args.image,
            mask=args.mask,
            container=args.container,
            heuristic=args.scan,
        )
    except KeyboardInterrupt:
        logger.warning("Extraction interrupted by user")
        return 130

    if failure:
        return 1

    if args.manifest and extractor.save_manifest(args.manifest):
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
