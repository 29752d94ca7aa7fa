"""Failure kinds and descriptors.

A ``Failure`` is one rule violation: a ``Kind`` plus the arguments a
message needs (the bound that was crossed, the allowed file types, the
compared field names). Failures are plain values — rules return them,
``Errors`` collects them, translators render them.
"""

from dataclasses import dataclass
from enum import StrEnum


class Kind(StrEnum):
    """Failure identifiers. The values are the wire format."""

    BAD_FILE_TYPE = "badFileType"
    INVALID = "invalid"
    MAX = "max"
    MAX_FILE_SIZE = "maxFileSize"
    MAX_LEN = "maxLen"
    MIN = "min"
    MIN_FILE_SIZE = "minFileSize"
    MIN_LEN = "minLen"
    NOT_ALPHA = "notAlpha"
    NOT_EMAIL = "notEmail"
    NOT_IMAGE = "notImage"
    NOT_INTEGER = "notInteger"
    NOT_LATITUDE = "notLatitude"
    NOT_LONGITUDE = "notLongitude"
    NOT_NUMBER = "notNumber"
    NOT_PHONE = "notPhone"
    NOT_SAME = "notSame"
    NOT_UNIQUE = "notUnique"
    NOT_URL = "notURL"
    REQUIRED = "required"


@dataclass(frozen=True, slots=True)
class Failure:
    """A single rule violation.

    ``str()`` gives the compact ``kind:arg,arg`` form::

        >>> str(Failure(Kind.MAX, (3,)))
        'max:3'
    """

    kind: Kind
    args: tuple[object, ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return str(self.kind)
        return f"{self.kind}:{','.join(format_arg(a) for a in self.args)}"

    def to_dict(self) -> dict[str, object]:
        """Structured export, suitable for JSON."""
        return {"kind": str(self.kind), "args": [_plain(a) for a in self.args]}


REQUIRED = Failure(Kind.REQUIRED)


def format_arg(arg: object) -> str:
    """Render one failure argument as text.

    Integral floats drop their fractional part (``3.0`` -> ``"3"``),
    sequences are comma-joined.
    """
    if isinstance(arg, float):
        return format(arg, "g")
    if isinstance(arg, (tuple, list, frozenset, set)):
        return ",".join(format_arg(a) for a in arg)
    return str(arg)


def _plain(arg: object) -> object:
    if isinstance(arg, float) and arg.is_integer():
        return int(arg)
    if isinstance(arg, (tuple, list)):
        return [_plain(a) for a in arg]
    if isinstance(arg, (int, float, str, bool)) or arg is None:
        return arg
    return str(arg)
