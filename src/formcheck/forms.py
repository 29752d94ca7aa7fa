"""Form data — the normalized input the checker consumes.

``FormData`` holds every submitted value of every field plus the
uploaded files, and implements ``MultiValueMapping`` so it can be used
wherever a plain form mapping is expected.

``to_form()`` adapts the simpler input shapes (flat dict, dict of lists,
any multi-value mapping). ``parse_form_data()`` decodes an HTTP body.

``python-multipart`` is an optional dependency (``pip install formcheck[forms]``).
URL-encoded forms use stdlib ``urllib.parse`` — no extra dependency.
"""

from __future__ import annotations

import io
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

from formcheck._internal.multimap import MultiValueMapping, value_lists
from formcheck.config import CheckConfig
from formcheck.errors import ConfigurationError, FormParseError


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission.

    ``content_type`` is what the client declared; rules sniff the
    content instead of trusting it.
    """

    filename: str
    content_type: str
    file: BinaryIO

    @classmethod
    def from_bytes(cls, filename: str, content: bytes, content_type: str = "application/octet-stream") -> UploadFile:
        return cls(filename=filename, content_type=content_type, file=io.BytesIO(content))

    @property
    def size(self) -> int:
        """Content length in bytes. The read position is left untouched."""
        from formcheck.files import file_size

        return file_size(self)

    def read(self) -> bytes:
        """Return the whole file content as bytes."""
        self.file.seek(0)
        return self.file.read()

    def save(self, path: Path) -> None:
        """Write the file content to disk.

        Args:
            path: Destination file path. Parent directories must exist.
        """
        path.write_bytes(self.read())

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r})"


class FormData(Mapping[str, str]):
    """Immutable submitted form data.

    Implements ``Mapping[str, str]`` and the ``MultiValueMapping`` protocol.
    Holds both string field values and uploaded files.

    ``__getitem__`` returns the first value for a key (string fields only).
    ``get_list`` returns all values for a key.
    ``get_files`` returns all uploaded files for a key.

    Usage::

        form = FormData({"tags": ["a", "b"]}, files={"avatar": [upload]})
        form["tags"]           # "a"
        form.get_list("tags")  # ["a", "b"]
        form.get_files("avatar")
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: Mapping[str, Sequence[str]] | None = None,
        files: Mapping[str, Sequence[UploadFile]] | None = None,
    ) -> None:
        object.__setattr__(self, "_data", {k: tuple(v) for k, v in (data or {}).items()})
        object.__setattr__(self, "_files", {k: tuple(v) for k, v in (files or {}).items() if v})

    @property
    def files(self) -> Mapping[str, tuple[UploadFile, ...]]:
        """Uploaded files by field name."""
        return self._files

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {list(v)!r}" for k, v in self._data.items())
        if self._files:
            return f"FormData({{{items}}}, files={sorted(self._files)!r})"
        return f"FormData({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (checkboxes, multi-selects)."""
        return list(self._data.get(key, ()))

    def get_files(self, key: str) -> list[UploadFile]:
        """Return all uploaded files for *key*."""
        return list(self._files.get(key, ()))

    def has_data(self, key: str) -> bool:
        """True if *key* was submitted with at least one value or file."""
        return bool(self._data.get(key)) or key in self._files

    def merge(self, other: FormData) -> FormData:
        """Return a new ``FormData`` holding the values and files of both.

        Nothing is overwritten: values of a key present on both sides are
        concatenated, ``self`` first.
        """
        data = {k: list(v) for k, v in self._data.items()}
        for k, v in other._data.items():
            data.setdefault(k, []).extend(v)
        files = {k: list(v) for k, v in self._files.items()}
        for k, v in other._files.items():
            files.setdefault(k, []).extend(v)
        return FormData(data, files)


def to_form(data: FormData | MultiValueMapping | Mapping[str, Any] | None) -> FormData:
    """Normalize submitted data into ``FormData``.

    Accepts ``FormData`` (returned as is), any ``MultiValueMapping``, a
    flat ``dict[str, str]`` or a ``dict[str, list[str]]``.
    """
    if data is None:
        return FormData()
    if isinstance(data, FormData):
        return data
    return FormData(value_lists(data))


# ---------------------------------------------------------------------------
# Body parsing
# ---------------------------------------------------------------------------


def parse_query(query_string: bytes | str) -> FormData:
    """Parse a URL query string (or URL-encoded body) into FormData."""
    from urllib.parse import parse_qs

    if isinstance(query_string, bytes):
        query_string = query_string.decode("utf-8", errors="replace")
    return FormData(parse_qs(query_string, keep_blank_values=True))


def parse_form_data(
    body: bytes,
    content_type: str,
    *,
    max_size: int | None = None,
) -> FormData:
    """Parse form body into FormData.

    Supports:
    - ``application/x-www-form-urlencoded`` (stdlib, no extra dependency)
    - ``multipart/form-data`` (requires ``python-multipart``)

    Args:
        body: Raw request body bytes.
        content_type: The Content-Type header value.
        max_size: Largest accepted body in bytes. Defaults to
            ``CheckConfig.max_form_size``.

    Returns:
        Parsed FormData instance.

    Raises:
        ConfigurationError: If multipart parsing is needed but
            ``python-multipart`` is not installed.
        FormParseError: If the body is too large, the content type is not
            a supported form encoding, or the multipart body is malformed.
    """
    limit = CheckConfig().max_form_size if max_size is None else max_size
    if len(body) > limit:
        msg = f"Form body of {len(body)} bytes exceeds the {limit} bytes limit"
        raise FormParseError(msg)

    ct_lower = content_type.lower().split(";")[0].strip()

    if ct_lower == "application/x-www-form-urlencoded":
        return parse_query(body)

    if ct_lower == "multipart/form-data":
        return _parse_multipart(body, content_type)

    msg = f"Unsupported form content type: {content_type!r}"
    raise FormParseError(msg)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    """Parse multipart form data using python-multipart.

    Raises ``ConfigurationError`` if ``python-multipart`` is not installed.
    """
    try:
        from python_multipart.exceptions import MultipartParseError
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install formcheck[forms]"
        )
        raise ConfigurationError(msg) from None

    # Extract boundary from content type
    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart form data missing boundary parameter"
        raise FormParseError(msg)

    data: dict[str, list[str]] = {}
    files: dict[str, list[UploadFile]] = {}

    # Track current part state
    current_headers: dict[str, str] = {}
    current_data = bytearray()
    current_field_name: str | None = None
    current_filename: str | None = None

    def on_part_begin() -> None:
        nonlocal current_headers, current_data, current_field_name, current_filename
        current_headers = {}
        current_data = bytearray()
        current_field_name = None
        current_filename = None

    def on_part_data(data_chunk: bytes, start: int, end: int) -> None:
        current_data.extend(data_chunk[start:end])

    def on_part_end() -> None:
        if current_field_name is None:
            return

        if current_filename is not None:
            # An empty file input still sends a part, with no filename
            if current_filename == "" and not current_data:
                return
            ct = current_headers.get("content-type", "application/octet-stream")
            upload = UploadFile.from_bytes(current_filename, bytes(current_data), ct)
            files.setdefault(current_field_name, []).append(upload)
        else:
            value = current_data.decode("utf-8", errors="replace")
            data.setdefault(current_field_name, []).append(value)

    def on_header_field(hdata: bytes, start: int, end: int) -> None:
        current_headers["_pending_field"] = hdata[start:end].decode("latin-1").lower()

    def on_header_value(hdata: bytes, start: int, end: int) -> None:
        nonlocal current_field_name, current_filename
        field = current_headers.pop("_pending_field", "")
        value = hdata[start:end].decode("latin-1")
        current_headers[field] = value

        # Extract field name and filename from Content-Disposition
        if field == "content-disposition":
            _, params = parse_options_header(value.encode("latin-1"))
            name = params.get(b"name")
            if name is not None:
                current_field_name = name.decode("utf-8")
            fname = params.get(b"filename")
            if fname is not None:
                current_filename = fname.decode("utf-8")

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
    }

    parser = MultipartParser(boundary, callbacks)
    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as exc:
        msg = f"Malformed multipart body: {exc}"
        raise FormParseError(msg) from exc

    return FormData(data, files)
