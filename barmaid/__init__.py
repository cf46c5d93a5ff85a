"""
barmaid - BarTender document (.btw) extractor

Locates and extracts the embedded sections of a BarTender document:
- the header prefix
- the preview and mask PNG images
- the (usually zlib compressed) container
"""

__version__ = "1.0.0"

from .errors import ErrorKind, Failure, Match
from .extractor import BtwExtractor, ExtractEntry, dump_range, inflate_range
from .layout import ByteRange, HeuristicLayout, SectionLayout, StructuredLayout, heuristic_png, parse_btw
from .scanner import find_sequence, is_btw, skip_padding
from .utils import stream_length

__all__ = [
    # Results
    "ErrorKind",
    "Failure",
    "Match",
    # Scanning
    "find_sequence",
    "skip_padding",
    "is_btw",
    "stream_length",
    # Layouts
    "ByteRange",
    "HeuristicLayout",
    "StructuredLayout",
    "SectionLayout",
    "parse_btw",
    "heuristic_png",
    # Extraction
    "BtwExtractor",
    "ExtractEntry",
    "dump_range",
    "inflate_range",
]
