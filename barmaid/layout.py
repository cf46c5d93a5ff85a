"""
Section layout recovery for BarTender documents.

Two parsers are provided:

- ``parse_btw`` walks the documented structure (signature, metadata,
  two length-prefixed PNG images, container) and returns a StructuredLayout.
- ``heuristic_png`` only looks for PNG start/end markers and returns a
  HeuristicLayout; it works on files lacking the BarTender signature.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple, Union

from .errors import ErrorKind, Failure, Match
from .scanner import find_sequence, is_btw, skip_padding
from .signatures import (
    BTW_END_OF_META,
    BTW_SIGNATURE,
    BTW_ZLIB_MARKER,
    LENGTH_FIELD_SIZE,
    PNG_END,
    PNG_START,
)
from .utils import read_exact, read_uint32_le, seek_to, stream_length

logger = logging.getLogger(__name__)

IMAGE_COUNT = 2


@dataclass(frozen=True)
class ByteRange:
    """Half-open byte range [start, end) inside the source file."""

    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"0x{self.start:X} - 0x{self.end:X}"


ImagePair = Tuple[ByteRange, ByteRange]


class _ImageAccessors:
    images: ImagePair

    @property
    def preview(self) -> ByteRange:
        return self.images[0]

    @property
    def mask(self) -> ByteRange:
        return self.images[1]


@dataclass(frozen=True)
class HeuristicLayout(_ImageAccessors):
    """PNG images found by marker search alone."""

    images: ImagePair


@dataclass(frozen=True)
class StructuredLayout(_ImageAccessors):
    """Every section of a parsed .btw file."""

    images: ImagePair
    prefix: ByteRange
    container: ByteRange
    container_compressed: bool

    @property
    def prefix_end(self) -> int:
        return self.prefix.end

    def offsets(self) -> Tuple[int, ...]:
        """All boundaries in file order."""
        bounds = [self.prefix.start, self.prefix.end]
        for image in self.images:
            bounds.extend((image.start, image.end))
        bounds.extend((self.container.start, self.container.end))
        return tuple(bounds)

    def is_ordered(self) -> bool:
        bounds = self.offsets()
        return bounds[0] >= 0 and all(a <= b for a, b in zip(bounds, bounds[1:]))


SectionLayout = Union[StructuredLayout, HeuristicLayout]


def _read_image(stream: BinaryIO, position: int) -> Union[Tuple[ByteRange, Match], Failure]:
    """Read one length-prefixed image at ``position`` and skip the padding after it."""
    failure = seek_to(stream, position)
    if failure:
        return failure

    raw = read_exact(stream, LENGTH_FIELD_SIZE)
    if isinstance(raw, Failure):
        return raw

    start = position + LENGTH_FIELD_SIZE
    image = ByteRange(start, start + read_uint32_le(raw))

    following = skip_padding(stream, image.end)
    if isinstance(following, Failure):
        return following
    return image, following


def parse_btw(stream: Optional[BinaryIO]) -> Union[StructuredLayout, Failure]:
    """
    Recover the section layout of a BarTender document.

    Args:
        stream: Seekable binary stream positioned anywhere

    Returns:
        StructuredLayout on success, otherwise the Failure of the first step
        that went wrong. No partially filled layout is ever returned.
    """
    if not is_btw(stream):
        return Failure(ErrorKind.SIGNATURE_MISMATCH, "missing Bar Tender Format File signature", 0)

    end_of_meta = find_sequence(stream, len(BTW_SIGNATURE), BTW_END_OF_META)
    if isinstance(end_of_meta, Failure):
        return end_of_meta

    prefix_end = skip_padding(stream, end_of_meta.offset + len(BTW_END_OF_META))
    if isinstance(prefix_end, Failure):
        return prefix_end

    images = []
    position = prefix_end.position
    for _ in range(IMAGE_COUNT):
        result = _read_image(stream, position)
        if isinstance(result, Failure):
            return result
        image, following = result
        images.append(image)
        position = following.position

    # Peek at the container head; the marker is only consumed when it matches
    failure = seek_to(stream, position)
    if failure:
        return failure
    head = read_exact(stream, len(BTW_ZLIB_MARKER))
    if isinstance(head, Failure):
        return head

    compressed = head == BTW_ZLIB_MARKER
    container_start = position + len(BTW_ZLIB_MARKER) if compressed else position

    container_end = stream_length(stream)
    if isinstance(container_end, Failure):
        return container_end
    if container_start <= 0 or container_end <= 0:
        return Failure(ErrorKind.INVALID_LAYOUT, "container bounds must be positive", container_start)

    layout = StructuredLayout(
        images=(images[0], images[1]),
        prefix=ByteRange(0, prefix_end.offset),
        container=ByteRange(container_start, container_end),
        container_compressed=compressed,
    )
    if not layout.is_ordered():
        return Failure(ErrorKind.INVALID_LAYOUT, f"sections out of order: {layout.offsets()}")

    logger.debug(f"Parsed layout: {layout}")
    return layout


def heuristic_png(stream: Optional[BinaryIO]) -> Union[HeuristicLayout, Failure]:
    """
    Locate the preview and mask images by PNG markers only.

    Each end marker is searched after its start marker, and the second image
    is searched after the end of the first one.
    """
    images = []
    offset = 0
    for _ in range(IMAGE_COUNT):
        start = find_sequence(stream, offset, PNG_START)
        if isinstance(start, Failure):
            return start
        end = find_sequence(stream, start.offset, PNG_END)
        if isinstance(end, Failure):
            return end

        image = ByteRange(start.offset, end.offset + len(PNG_END))
        images.append(image)
        offset = image.end

    return HeuristicLayout(images=(images[0], images[1]))
