"""Multi-valued input shapes and their normalization.

Submitted data reaches the checker in one of three shapes:

- a flat ``Mapping[str, str]`` (JSON body, test fixture)
- a ``Mapping[str, Sequence[str]]`` (``parse_qs`` output, ``dict`` of lists)
- any ``MultiValueMapping`` (``FormData``, a framework's form object)

``value_lists()`` folds all three into ``dict[str, list[str]]``.
"""

from collections.abc import Iterator, Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MultiValueMapping(Protocol):
    """A read-only string mapping where keys can have multiple values.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    """

    def __getitem__(self, key: str) -> str: ...
    def __contains__(self, key: object) -> bool: ...
    def __iter__(self) -> Iterator[str]: ...
    def __len__(self) -> int: ...
    def get(self, key: str, default: str | None = None) -> str | None: ...
    def get_list(self, key: str) -> list[str]: ...


def value_lists(data: Mapping[str, Any] | MultiValueMapping) -> dict[str, list[str]]:
    """Return a fresh ``key -> list of values`` dict for *data*.

    Lists and tuples keep one entry per item; any other value (``str``,
    ``bytes``, ``int``...) becomes a one-item list. ``bytes`` are decoded
    as UTF-8, other scalars go through ``str()``. ``None`` values are
    dropped (the key counts as absent).
    """
    if isinstance(data, MultiValueMapping):
        return {key: list(data.get_list(key)) for key in data}

    lists: dict[str, list[str]] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            lists[key] = [_as_str(v) for v in value]
        else:
            lists[key] = [_as_str(value)]
    return lists


def _as_str(value: object) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)
