"""
Utility functions for stream handling during extraction.
"""

import os
import struct
from typing import BinaryIO, Optional, Union

from .errors import ErrorKind, Failure


def read_uint32_le(data: bytes, offset: int = 0) -> int:
    """Read a 32-bit unsigned integer in little-endian format."""
    return struct.unpack_from("<I", data, offset)[0]


def format_size(size_bytes: int) -> str:
    """
    Format byte size to human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB")
    """
    size_float = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_float < 1024.0:
            return f"{size_float:.2f} {unit}"
        size_float /= 1024.0
    return f"{size_float:.2f} PB"


def seek_to(stream: Optional[BinaryIO], offset: int) -> Optional[Failure]:
    """
    Move the stream cursor to an absolute offset.

    Returns:
        None on success, a SEEK_FAILURE otherwise
    """
    if stream is None:
        return Failure(ErrorKind.SEEK_FAILURE, "no stream")
    if offset < 0:
        return Failure(ErrorKind.SEEK_FAILURE, "negative offset", offset)
    try:
        stream.seek(offset, os.SEEK_SET)
    except (OSError, ValueError) as e:
        return Failure(ErrorKind.SEEK_FAILURE, str(e), offset)
    return None


def read_exact(stream: BinaryIO, size: int) -> Union[bytes, Failure]:
    """Read exactly ``size`` bytes from the current position or report a SHORT_READ."""
    try:
        offset = stream.tell()
        data = stream.read(size)
    except (OSError, ValueError) as e:
        return Failure(ErrorKind.IO_FAILURE, str(e))
    if len(data) != size:
        return Failure(ErrorKind.SHORT_READ, f"wanted {size} bytes, got {len(data)}", offset)
    return data


def stream_length(stream: Optional[BinaryIO]) -> Union[int, Failure]:
    """
    Total byte count of a seekable stream.

    The cursor is moved to the end and then put back where it was.
    """
    if stream is None:
        return Failure(ErrorKind.LENGTH_QUERY_FAILURE, "no stream")
    try:
        current = stream.tell()
        length = stream.seek(0, os.SEEK_END)
        stream.seek(current, os.SEEK_SET)
    except (OSError, ValueError) as e:
        return Failure(ErrorKind.LENGTH_QUERY_FAILURE, str(e))
    return length
