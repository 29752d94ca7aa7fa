"""Uploaded file probes — content sniffing and sizing.

Rules never trust the client-declared ``Content-Type``: the type is
sniffed from the first bytes of the content, WHATWG-style, over a fixed
table of magic numbers.

Every probe leaves the stream where it found it, so the same handle can
be probed by several rules and still be read in full by the caller.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import BinaryIO, Protocol, runtime_checkable

from formcheck.errors import FileProbeError

logger = logging.getLogger("formcheck.files")

DEFAULT_SNIFF_LENGTH = 512

OCTET_STREAM = "application/octet-stream"

IMAGE_TYPES = frozenset({"image/gif", "image/jpeg", "image/png"})


@runtime_checkable
class FileHandle(Protocol):
    """An uploaded file: a name and a seekable binary stream."""

    filename: str
    file: BinaryIO


@contextmanager
def _restored(handle: FileHandle) -> Iterator[BinaryIO]:
    """Yield the handle's stream, then seek back to where it was.

    Any ``OSError``/``ValueError`` raised by the stream (closed file,
    unseekable pipe) surfaces as ``FileProbeError``.
    """
    stream = handle.file
    try:
        position = stream.tell()
    except (OSError, ValueError, AttributeError) as exc:
        raise FileProbeError(f"cannot probe {handle.filename!r}: {exc}") from exc
    try:
        yield stream
    except (OSError, ValueError) as exc:
        raise FileProbeError(f"cannot probe {handle.filename!r}: {exc}") from exc
    finally:
        try:
            stream.seek(position)
        except (OSError, ValueError):
            logger.debug("cannot restore position of %r", handle.filename)


def file_size(handle: FileHandle) -> int:
    """Return the size of the file content in bytes."""
    with _restored(handle) as stream:
        return stream.seek(0, 2)


def sniff_type(handle: FileHandle, length: int = DEFAULT_SNIFF_LENGTH) -> str:
    """Return the sniffed MIME type of the file, without parameters.

    At most *length* bytes from the start of the content are consulted.
    """
    with _restored(handle) as stream:
        stream.seek(0)
        head = stream.read(length)
    return detect_content_type(head).partition(";")[0].strip()


# ---------------------------------------------------------------------------
# Signature table
# ---------------------------------------------------------------------------


def _prefix(sig: bytes, content_type: str) -> Callable[[bytes], str | None]:
    def match(data: bytes) -> str | None:
        return content_type if data.startswith(sig) else None

    return match


def _masked(mask: bytes, pattern: bytes, content_type: str, *, skip_ws: bool = False) -> Callable[[bytes], str | None]:
    def match(data: bytes) -> str | None:
        if skip_ws:
            data = data.lstrip(b"\t\n\x0c\r ")
        if len(data) < len(pattern):
            return None
        for m, p, d in zip(mask, pattern, data, strict=False):
            if d & m != p:
                return None
        return content_type

    return match


def _html(tag: bytes) -> Callable[[bytes], str | None]:
    """``<TAG`` followed by a space or ``>``, case-insensitive, after whitespace."""

    def match(data: bytes) -> str | None:
        data = data.lstrip(b"\t\n\x0c\r ")
        if len(data) < len(tag) + 1:
            return None
        if data[: len(tag)].lower() != tag.lower():
            return None
        if data[len(tag)] not in b" >":
            return None
        return "text/html; charset=utf-8"

    return match


def _mp4(data: bytes) -> str | None:
    if len(data) < 12:
        return None
    box_size = int.from_bytes(data[:4], "big")
    if box_size % 4 != 0 or len(data) < box_size or data[4:8] != b"ftyp":
        return None
    for start in range(8, box_size, 4):
        if start == 12:
            continue  # minor version
        if data[start : start + 3] == b"mp4":
            return "video/mp4"
    return None


# Bytes that never appear in text content.
_BINARY_BYTES = frozenset([*range(0x00, 0x09), 0x0B, *range(0x0E, 0x1B), *range(0x1C, 0x20)])


def _text(data: bytes) -> str | None:
    if any(b in _BINARY_BYTES for b in data):
        return None
    return "text/plain; charset=utf-8"


_HTML_TAGS = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1", b"<DIV",
    b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B", b"<BODY", b"<BR",
    b"<P", b"<!--",
)

_SIGNATURES: tuple[Callable[[bytes], str | None], ...] = (
    *(_html(tag) for tag in _HTML_TAGS),
    _masked(b"\xff\xff\xff\xff\xff", b"<?xml", "text/xml; charset=utf-8", skip_ws=True),
    _prefix(b"%PDF-", "application/pdf"),
    _prefix(b"%!PS-Adobe-", "application/postscript"),
    _prefix(b"\xfe\xff", "text/plain; charset=utf-16be"),
    _prefix(b"\xff\xfe", "text/plain; charset=utf-16le"),
    _prefix(b"\xef\xbb\xbf", "text/plain; charset=utf-8"),
    _prefix(b"\x00\x00\x01\x00", "image/x-icon"),
    _prefix(b"\x00\x00\x02\x00", "image/x-icon"),
    _prefix(b"BM", "image/bmp"),
    _prefix(b"GIF87a", "image/gif"),
    _prefix(b"GIF89a", "image/gif"),
    _masked(
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00WEBPVP",
        "image/webp",
    ),
    _prefix(b"\x89PNG\r\n\x1a\n", "image/png"),
    _prefix(b"\xff\xd8\xff", "image/jpeg"),
    _masked(b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff", b"RIFF\x00\x00\x00\x00WAVE", "audio/wave"),
    _prefix(b"ID3", "audio/mpeg"),
    _prefix(b"OggS\x00", "application/ogg"),
    _masked(b"\xff\xff\xff\xff\xff\xff\xff\xff", b"MThd\x00\x00\x00\x06", "audio/midi"),
    _masked(b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff", b"RIFF\x00\x00\x00\x00AVI ", "video/avi"),
    _mp4,
    _prefix(b"\x1a\x45\xdf\xa3", "video/webm"),
    _prefix(b"wOFF", "font/woff"),
    _prefix(b"wOF2", "font/woff2"),
    _prefix(b"\x1f\x8b\x08", "application/x-gzip"),
    _prefix(b"PK\x03\x04", "application/zip"),
    _prefix(b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    _prefix(b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    _prefix(b"\x00asm", "application/wasm"),
    _text,
)


def detect_content_type(data: bytes) -> str:
    """Return the MIME type of *data*, possibly with a charset parameter.

    Falls back to ``application/octet-stream``.
    """
    for match in _SIGNATURES:
        content_type = match(data)
        if content_type is not None:
            return content_type
    return OCTET_STREAM
