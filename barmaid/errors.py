"""
Result values shared by the scanning and extraction components.

Every component returns either its value or a ``Failure``; callers check with
``isinstance(result, Failure)`` and hand the failure up unchanged.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    SHORT_READ = "short_read"
    SEEK_FAILURE = "seek_failure"
    LENGTH_QUERY_FAILURE = "length_query_failure"
    INVALID_LAYOUT = "invalid_layout"
    IO_FAILURE = "io_failure"
    SIGNATURE_MISMATCH = "signature_mismatch"
    DECOMPRESSION_FAILURE = "decompression_failure"


@dataclass(frozen=True)
class Failure:
    """Why an operation stopped, and where in the stream if known."""

    kind: ErrorKind
    message: str = ""
    offset: Optional[int] = None

    def __str__(self) -> str:
        if self.offset is None:
            return f"{self.kind.value}: {self.message}"
        return f"{self.kind.value} at 0x{self.offset:X}: {self.message}"


@dataclass(frozen=True)
class Match:
    """A scan hit: where it is and where the stream cursor was left."""

    offset: int
    position: int
