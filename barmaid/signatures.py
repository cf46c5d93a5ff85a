"""
Magic byte sequences of the BarTender document (.btw) format.

A .btw file is laid out as:

    signature | metadata ... end-of-metadata | padding
    | len(4) preview PNG | padding | len(4) mask PNG | padding
    | [compression marker] container ... EOF

All multi-byte length fields are little-endian.
"""

# Start of file: CRLF "Bar Tender Format File" CRLF
BTW_SIGNATURE = b"\r\nBar Tender Format File\r\n"
BTW_END_OF_META = b"\xff\xfe\xff\x00"
BTW_ZLIB_MARKER = b"\x00\x01"  # Container is a zlib stream

# First 16 bytes of any PNG: magic + IHDR chunk header
PNG_START = b"\x89PNG\r\n\x1a\n\x00\x00\x00\x0dIHDR"
# Empty IEND chunk including its CRC
PNG_END = b"\x00\x00\x00\x00IEND\xaeB`\x82"

LENGTH_FIELD_SIZE = 4
PADDING_ALIGNMENT = 4

# Upper bound for any pattern handed to the scanner
LONGEST_MAGIC = 32
BUFFER_SIZE = 8192
