"""
Section extraction engine: copies or inflates located ranges to output files.
"""

import json
import logging
import os
import zlib
from dataclasses import asdict, dataclass
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Union

from tqdm import tqdm

from .errors import ErrorKind, Failure
from .layout import ByteRange, SectionLayout, StructuredLayout, heuristic_png, parse_btw
from .signatures import BUFFER_SIZE
from .utils import format_size, seek_to

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], Any]

# Ranges below this size are written without a progress bar
PROGRESS_THRESHOLD = 1024 * 1024


def _prepare(source: BinaryIO, start: int, end: int, sink: BinaryIO) -> Optional[Failure]:
    """Validate the range and rewind both streams."""
    if start < 0 or end < start:
        return Failure(ErrorKind.INVALID_LAYOUT, f"invalid range [{start}, {end})", start)

    failure = seek_to(source, start)
    if failure:
        return failure

    try:
        if sink.seekable():
            sink.seek(0)
    except (OSError, ValueError) as e:
        return Failure(ErrorKind.SEEK_FAILURE, f"cannot rewind output: {e}")
    return None


def _write_chunk(sink: BinaryIO, data: bytes, offset: int) -> Optional[Failure]:
    try:
        written = sink.write(data)
    except (OSError, ValueError) as e:
        return Failure(ErrorKind.IO_FAILURE, f"write failed: {e}", offset)
    if written is not None and written != len(data):
        return Failure(ErrorKind.IO_FAILURE, f"short write ({written} of {len(data)} bytes)", offset)
    return None


def dump_range(
    source: BinaryIO,
    start: int,
    end: int,
    sink: BinaryIO,
    chunk_size: int = BUFFER_SIZE,
    progress: Optional[ProgressCallback] = None,
) -> Union[int, Failure]:
    """
    Copy bytes [start, end) of ``source`` verbatim into ``sink``.

    A chunk is only written once it has been read in full, so a truncated
    source stops the copy before the short chunk. Bytes already written are
    left in the sink.

    Args:
        source: Seekable input stream
        start: First byte to copy
        end: One past the last byte to copy
        sink: Output stream, rewound to its start when seekable
        chunk_size: Maximum bytes per read/write
        progress: Called with the size of every chunk written

    Returns:
        Number of bytes written, or a Failure
    """
    failure = _prepare(source, start, end, sink)
    if failure:
        return failure

    total = end - start
    done = 0
    while done < total:
        wanted = min(chunk_size, total - done)
        try:
            data = source.read(wanted)
        except (OSError, ValueError) as e:
            return Failure(ErrorKind.IO_FAILURE, f"read failed: {e}", start + done)
        if len(data) != wanted:
            return Failure(ErrorKind.IO_FAILURE, f"source truncated ({len(data)} of {wanted} bytes)", start + done)

        failure = _write_chunk(sink, data, start + done)
        if failure:
            return failure

        done += wanted
        if progress:
            progress(wanted)

    return done


def inflate_range(
    source: BinaryIO,
    start: int,
    end: int,
    sink: BinaryIO,
    chunk_size: int = BUFFER_SIZE,
    progress: Optional[ProgressCallback] = None,
) -> Union[int, Failure]:
    """
    Decompress the zlib stream stored in [start, end) of ``source`` into ``sink``.

    Decompression stops at the end of the zlib stream; anything after it in
    the range is ignored.

    Returns:
        Number of decompressed bytes written, or a Failure
    """
    failure = _prepare(source, start, end, sink)
    if failure:
        return failure

    dobj = zlib.decompressobj()
    consumed = 0
    written = 0
    total = end - start

    while consumed < total and not dobj.eof:
        wanted = min(chunk_size, total - consumed)
        try:
            data = source.read(wanted)
        except (OSError, ValueError) as e:
            return Failure(ErrorKind.IO_FAILURE, f"read failed: {e}", start + consumed)
        if not data:
            break

        try:
            block = dobj.decompress(data)
        except zlib.error as e:
            return Failure(ErrorKind.DECOMPRESSION_FAILURE, str(e), start + consumed)

        failure = _write_chunk(sink, block, start + consumed)
        if failure:
            return failure

        consumed += len(data)
        written += len(block)
        if progress:
            progress(len(data))

    if not dobj.eof:
        return Failure(ErrorKind.DECOMPRESSION_FAILURE, "zlib stream is truncated", start + consumed)

    tail = dobj.flush()
    if tail:
        failure = _write_chunk(sink, tail, start + consumed)
        if failure:
            return failure
        written += len(tail)

    return written


@dataclass
class ExtractEntry:
    """Record of an extracted section with its location in the source file."""

    section: str  # prefix, preview, mask or container
    start: int
    end: int
    size_output: int  # Decompressed size for a zlib container
    filename: str
    is_compressed: bool = False


class BtwExtractor:
    """Extracts the prefix, preview, mask and container of a BarTender document."""

    def __init__(self, buffer_size: int = BUFFER_SIZE, show_progress: bool = False):
        """
        Initialize the extractor.

        Args:
            buffer_size: Bytes per read/write when copying sections
            show_progress: Show a progress bar for sections larger than 1 MB
        """
        self.buffer_size = buffer_size
        self.show_progress = show_progress
        self.manifest: List[ExtractEntry] = []
        self.layout: Optional[SectionLayout] = None
        self._source_path: str = ""

    @staticmethod
    def parse(stream: BinaryIO, heuristic: bool = False) -> Union[SectionLayout, Failure]:
        """Run the structured parser, or the PNG marker heuristic when asked to."""
        if heuristic:
            return heuristic_png(stream)
        return parse_btw(stream)

    def extract(
        self,
        path: str,
        prefix: Optional[str] = None,
        preview: Optional[str] = None,
        mask: Optional[str] = None,
        container: Optional[str] = None,
        heuristic: bool = False,
    ) -> Optional[Failure]:
        """
        Parse ``path`` and write the requested sections.

        Args:
            path: Path to the .btw file
            prefix: Output path for the header prefix
            preview: Output path for the preview PNG
            mask: Output path for the mask PNG
            container: Output path for the (inflated) container
            heuristic: Locate the images by PNG markers only

        Returns:
            None on success, otherwise the first Failure encountered. Outputs
            written before the failure are left in place.
        """
        self.manifest.clear()
        self.layout = None
        self._source_path = path

        try:
            f = open(path, "rb")
        except OSError as e:
            logger.error(f"{path}: failed to open file ({e})")
            return Failure(ErrorKind.IO_FAILURE, f"cannot open input: {e}")

        with f:
            layout = self.parse(f, heuristic)
            if isinstance(layout, Failure):
                what = "heuristic failed to identify images" if heuristic else "failed to parse file"
                logger.error(f"{path}: {what} ({layout})")
                return layout

            self.layout = layout
            self._log_layout(layout)

            for section, image, out_path in (("preview", layout.preview, preview), ("mask", layout.mask, mask)):
                if out_path:
                    failure = self._write_section(f, section, image, out_path, compressed=False)
                    if failure:
                        return failure

            if not isinstance(layout, StructuredLayout):
                for section, out_path in (("prefix", prefix), ("container", container)):
                    if out_path:
                        logger.warning(f"{section} is not available in heuristic mode, skipping {out_path}")
                return None

            if prefix:
                failure = self._write_section(f, "prefix", layout.prefix, prefix, compressed=False)
                if failure:
                    return failure

            if container:
                failure = self._write_section(f, "container", layout.container, container, compressed=layout.container_compressed)
                if failure:
                    return failure

        return None

    def _log_layout(self, layout: SectionLayout) -> None:
        if not isinstance(layout, StructuredLayout):
            logger.debug("Heuristics active - functionality limited")
        for i, image in enumerate(layout.images):
            logger.debug(f"Found PNG #{i}: {image}")
        if isinstance(layout, StructuredLayout):
            logger.debug(f"Identified prefix: {layout.prefix}")
            kind = "compressed" if layout.container_compressed else "uncompressed"
            logger.debug(f"Found {kind} container: {layout.container}")

    def _write_section(self, source: BinaryIO, section: str, byte_range: ByteRange, out_path: str, compressed: bool) -> Optional[Failure]:
        """Copy or inflate one section into ``out_path`` and record it in the manifest."""
        copy = inflate_range if compressed else dump_range
        pbar = None
        if self.show_progress and byte_range.size >= PROGRESS_THRESHOLD:
            pbar = tqdm(total=byte_range.size, unit="B", unit_scale=True, desc=f"Writing {section}")

        try:
            with open(out_path, "wb") as out_f:
                result = copy(
                    source,
                    byte_range.start,
                    byte_range.end,
                    out_f,
                    chunk_size=self.buffer_size,
                    progress=pbar.update if pbar else None,
                )
        except OSError as e:
            logger.error(f"{out_path}: failed to open file ({e})")
            return Failure(ErrorKind.IO_FAILURE, str(e))
        finally:
            if pbar:
                pbar.close()

        if isinstance(result, Failure):
            logger.error(f"{out_path}: failed to write {section} ({result})")
            return result

        self.manifest.append(
            ExtractEntry(
                section=section,
                start=byte_range.start,
                end=byte_range.end,
                size_output=result,
                filename=out_path,
                is_compressed=compressed,
            )
        )
        action = "inflated" if compressed else "wrote"
        logger.debug(f"{out_path}: {action} {section} ({format_size(result)})")
        return None

    def save_manifest(self, manifest_path: str) -> Optional[Failure]:
        """Save the extraction manifest to a JSON file."""
        manifest_data: Dict[str, Any] = {
            "source": os.path.basename(self._source_path),
            "mode": "structured" if isinstance(self.layout, StructuredLayout) else "heuristic",
            "entries": [asdict(entry) for entry in self.manifest],
            "summary": {
                "total_sections": len(self.manifest),
                "total_bytes_in_source": sum(e.end - e.start for e in self.manifest),
                "total_bytes_output": sum(e.size_output for e in self.manifest),
            },
        }

        try:
            with open(manifest_path, "w") as f:
                json.dump(manifest_data, f, indent=2)
        except OSError as e:
            logger.error(f"{manifest_path}: failed to write manifest ({e})")
            return Failure(ErrorKind.IO_FAILURE, f"cannot write manifest: {e}")
        logger.debug(f"Saved manifest to {manifest_path}")
        return None
