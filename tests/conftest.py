import io
import struct
import zlib

import pytest

from barmaid.signatures import BTW_END_OF_META, BTW_SIGNATURE, BTW_ZLIB_MARKER, PNG_END, PNG_START


def make_png(payload: bytes = b"pixels") -> bytes:
    """A byte blob that starts and ends like a PNG; the body is not decodable."""
    return PNG_START + payload + PNG_END


def build_btw(
    meta: bytes = b"label metadata",
    preview: bytes = None,
    mask: bytes = None,
    container: bytes = b"<document/>",
    compressed: bool = True,
    padding: int = 8,
) -> bytes:
    """
    Assemble a minimal BarTender document.

    ``padding`` zero bytes (a multiple of 4) follow the metadata and each
    image, counted from the end of the section like the padding skipper does.
    """
    preview = make_png(b"preview") if preview is None else preview
    mask = make_png(b"mask-data") if mask is None else mask

    out = BTW_SIGNATURE + meta + BTW_END_OF_META + b"\x00" * padding
    for image in (preview, mask):
        out += struct.pack("<I", len(image)) + image + b"\x00" * padding
    if compressed:
        out += BTW_ZLIB_MARKER + zlib.compress(container)
    else:
        out += container
    return out


@pytest.fixture
def btw_bytes() -> bytes:
    return build_btw()


@pytest.fixture
def btw_stream(btw_bytes) -> io.BytesIO:
    return io.BytesIO(btw_bytes)


@pytest.fixture
def btw_file(tmp_path, btw_bytes):
    path = tmp_path / "label.btw"
    path.write_bytes(btw_bytes)
    return path
