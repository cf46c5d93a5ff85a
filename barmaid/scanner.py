"""
Chunked magic-sequence search and padding handling over binary streams.
"""

import logging
from typing import BinaryIO, Optional, Union

from .errors import ErrorKind, Failure, Match
from .signatures import BTW_SIGNATURE, BUFFER_SIZE, LONGEST_MAGIC, PADDING_ALIGNMENT
from .utils import seek_to

logger = logging.getLogger(__name__)

ZERO_WORD = b"\x00" * PADDING_ALIGNMENT


def find_sequence(stream: Optional[BinaryIO], offset: int, seq: bytes, chunk_size: int = BUFFER_SIZE) -> Union[Match, Failure]:
    """
    Find the first occurrence of ``seq`` at or after ``offset``.

    The stream is read ``chunk_size`` bytes at a time. The last
    ``LONGEST_MAGIC - 1`` bytes of every window are carried into the next
    one, so a sequence split across two reads is still found.

    Args:
        stream: Seekable binary stream
        offset: Absolute offset to start searching from
        seq: Pattern to look for, 1 to LONGEST_MAGIC bytes
        chunk_size: Bytes read per iteration

    Returns:
        Match with the absolute offset (the stream is left positioned there),
        or a Failure: NOT_FOUND at EOF, SEEK_FAILURE for a bad stream/offset
    """
    if not 1 <= len(seq) <= LONGEST_MAGIC:
        raise ValueError(f"pattern length must be 1..{LONGEST_MAGIC}, got {len(seq)}")

    failure = seek_to(stream, offset)
    if failure:
        return failure

    overlap = LONGEST_MAGIC - 1
    carry = b""
    window_start = offset

    while True:
        try:
            chunk = stream.read(chunk_size)
        except (OSError, ValueError) as e:
            return Failure(ErrorKind.IO_FAILURE, str(e), window_start + len(carry))
        if not chunk:
            break

        window = carry + chunk
        pos = window.find(seq)
        if pos != -1:
            found = window_start + pos
            failure = seek_to(stream, found)
            if failure:
                return failure
            logger.debug(f"Found {seq[:8].hex()} at 0x{found:X}")
            return Match(offset=found, position=found)

        carry = window[-overlap:]
        window_start += len(window) - len(carry)

    return Failure(ErrorKind.NOT_FOUND, f"sequence {seq.hex()} not found", offset)


def skip_padding(stream: Optional[BinaryIO], offset: int) -> Union[Match, Failure]:
    """
    Skip zero padding in 4-byte steps starting at ``offset``.

    Returns:
        Match at the first word that is not all zeros, the stream positioned
        at its start. NOT_FOUND if EOF comes before such a word; the stream is
        then left where the failed read began.
    """
    failure = seek_to(stream, offset)
    if failure:
        return failure

    current = offset
    while True:
        try:
            word = stream.read(PADDING_ALIGNMENT)
        except (OSError, ValueError) as e:
            return Failure(ErrorKind.IO_FAILURE, str(e), current)

        if len(word) < PADDING_ALIGNMENT:
            failure = seek_to(stream, current)
            if failure:
                return failure
            return Failure(ErrorKind.NOT_FOUND, "no data after padding", current)

        if word != ZERO_WORD:
            failure = seek_to(stream, current)
            if failure:
                return failure
            if current != offset:
                logger.debug(f"Skipped {current - offset} bytes of padding at 0x{offset:X}")
            return Match(offset=current, position=current)

        current += PADDING_ALIGNMENT


def is_btw(stream: Optional[BinaryIO]) -> bool:
    """Check for the BarTender signature at the start of the stream."""
    if seek_to(stream, 0):
        return False
    try:
        head = stream.read(len(BTW_SIGNATURE))
    except (OSError, ValueError):
        return False
    return head == BTW_SIGNATURE
