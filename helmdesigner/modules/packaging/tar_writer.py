"""Minimal USTAR writer for chart packages.

Only regular files are written: no directory entries, no long-name or pax
extensions. Names longer than 100 bytes are truncated.
"""

import time
from typing import Iterable, Optional, Union

from helmdesigner.modules.templates.schemas import ChartFile

BLOCK_SIZE = 512
NAME_SIZE = 100
END_OF_ARCHIVE = b"\0" * (BLOCK_SIZE * 2)

FILE_MODE = 0o644
REGULAR_FILE = b"0"
USTAR_MAGIC = b"ustar\x0000"

# (offset, length) of the header fields this writer fills in
NAME = (0, 100)
MODE = (100, 8)
UID = (108, 8)
GID = (116, 8)
SIZE = (124, 12)
MTIME = (136, 12)
CHECKSUM = (148, 8)
TYPEFLAG = (156, 1)
MAGIC = (257, 8)


def _octal(value: int, digits: int) -> bytes:
    """Zero-padded octal digits followed by a NUL terminator."""
    return b"%0*o\0" % (digits, value)


def _put(header: bytearray, field, data: bytes) -> None:
    offset, length = field
    data = data[:length]
    header[offset:offset + len(data)] = data


def checksum(header: bytes) -> int:
    """Unsigned byte sum of a header with the checksum field counted as eight spaces."""
    offset, length = CHECKSUM
    return sum(header[:offset]) + ord(" ") * length + sum(header[offset + length:])


def build_header(name: str, size: int, mtime: int) -> bytes:
    header = bytearray(BLOCK_SIZE)
    _put(header, NAME, name.encode("utf-8")[:NAME_SIZE])
    _put(header, MODE, _octal(FILE_MODE, 7))
    _put(header, UID, _octal(0, 7))
    _put(header, GID, _octal(0, 7))
    _put(header, SIZE, _octal(size, 11))
    _put(header, MTIME, _octal(mtime, 11))
    _put(header, TYPEFLAG, REGULAR_FILE)
    _put(header, MAGIC, USTAR_MAGIC)
    _put(header, CHECKSUM, b"%06o\0 " % checksum(header))
    return bytes(header)


def _padding(size: int) -> bytes:
    remainder = size % BLOCK_SIZE
    return b"" if remainder == 0 else b"\0" * (BLOCK_SIZE - remainder)


def write_tar(files: Iterable[Union[ChartFile, tuple]], mtime: Optional[int] = None) -> bytes:
    """
    Archive (path, content) pairs. Each entry is a 512-byte header followed by
    the content zero-padded to a block boundary; two zero blocks end the archive.
    ``mtime`` defaults to the current Unix time.
    """
    stamp = int(time.time()) if mtime is None else int(mtime)
    out = bytearray()
    for item in files:
        path, content = (item.path, item.content) if isinstance(item, ChartFile) else item
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        out += build_header(path, len(data), stamp)
        out += data
        out += _padding(len(data))
    out += END_OF_ARCHIVE
    return bytes(out)
