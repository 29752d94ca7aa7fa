"""Built-in rules for formcheck checkers.

Each rule is a callable with the signature::

    def rule(ctx: FieldContext) -> Iterable[Failure]:
        '''Return the failures for this entry, or nothing if valid.'''

The checker calls every rule once per *entry* of a field: once per
submitted string value (``ctx.value`` set, ``ctx.file`` is ``None``),
then once per uploaded file (``ctx.file`` set, ``ctx.value`` is ``None``).
Value rules ignore file entries and file rules ignore value entries.
``ctx.form`` gives access to sibling fields, ``ctx.errors`` to what has
already been recorded.

Parameterized rules are factory functions that return a rule::

    def max_length(n: int) -> Rule:
        def check(ctx: FieldContext) -> list[Failure]:
            ...
        return check

Custom rules follow the same protocol.
"""

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from formcheck import predicates
from formcheck.errors import ConfigurationError, FileProbeError
from formcheck.failures import REQUIRED, Failure, Kind
from formcheck.files import DEFAULT_SNIFF_LENGTH, IMAGE_TYPES, FileHandle, file_size, sniff_type
from formcheck.forms import FormData
from formcheck.store import UniqueStore, check_identifier

logger = logging.getLogger("formcheck.rules")


@dataclass(frozen=True, slots=True)
class FieldContext:
    """Everything a rule may look at for one entry of one field."""

    field: str
    form: FormData
    errors: Mapping[str, tuple[Failure, ...]]
    value: str | None = None
    file: FileHandle | None = None
    sniff_length: int = DEFAULT_SNIFF_LENGTH


# Type alias for a rule
type Rule = Callable[[FieldContext], Iterable[Failure]]


def _value_rule(check: Callable[[str], list[Failure]], name: str, doc: str) -> Rule:
    def rule(ctx: FieldContext) -> list[Failure]:
        if ctx.value is None:
            return []
        return check(ctx.value)

    rule.__name__ = rule.__qualname__ = name
    rule.__doc__ = doc
    return rule


def _positive(name: str, n: float) -> None:
    if n < 0:
        msg = f"{name}() bound must not be negative, got {n!r}"
        raise ConfigurationError(msg)


def _ordered(name: str, lo: float, hi: float) -> None:
    if lo > hi:
        msg = f"{name}() lower bound {lo!r} is over upper bound {hi!r}"
        raise ConfigurationError(msg)


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(ctx: FieldContext) -> list[Failure]:
    """Field must have a non-empty value or an uploaded file.

    Values are not stripped: a single space passes.
    """
    if any(v != "" for v in ctx.form.get_list(ctx.field)):
        return []
    if ctx.form.get_files(ctx.field):
        return []
    return [REQUIRED]


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

alpha = _value_rule(predicates.is_alpha, "alpha", "Value must contain ASCII letters only.")
email = _value_rule(predicates.is_email, "email", "Value must be a valid email address.")
integer = _value_rule(predicates.is_integer, "integer", "Value must be a whole number.")
number = _value_rule(predicates.is_number, "number", "Value must be a number.")
phone = _value_rule(predicates.is_phone, "phone", "Value must be a phone number.")
latitude = _value_rule(predicates.is_latitude, "latitude", "Value must be a latitude.")
longitude = _value_rule(predicates.is_longitude, "longitude", "Value must be a longitude.")
url = _value_rule(predicates.is_url, "url", "Value must be a URL (scheme optional).")


def matches(pattern: str) -> Rule:
    """Value must match the given regex pattern. Reports ``invalid``."""
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        msg = f"matches() got an invalid pattern {pattern!r}: {exc}"
        raise ConfigurationError(msg) from exc

    def check(ctx: FieldContext) -> list[Failure]:
        if ctx.value is None or compiled.fullmatch(ctx.value):
            return []
        return [Failure(Kind.INVALID, (pattern,))]

    return check


def one_of(*choices: str) -> Rule:
    """Value must be one of the given choices. Reports ``invalid``."""
    if not choices:
        msg = "one_of() needs at least one choice"
        raise ConfigurationError(msg)
    allowed = frozenset(choices)
    options = tuple(sorted(allowed))

    def check(ctx: FieldContext) -> list[Failure]:
        if ctx.value is None or ctx.value in allowed:
            return []
        return [Failure(Kind.INVALID, options)]

    return check


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def max_value(n: float) -> Rule:
    """Value must be a number below or equal to *n*."""

    def check(ctx: FieldContext) -> list[Failure]:
        return [] if ctx.value is None else predicates.is_max(ctx.value, n)

    return check


def min_value(n: float) -> Rule:
    """Value must be a number over or equal to *n*."""

    def check(ctx: FieldContext) -> list[Failure]:
        return [] if ctx.value is None else predicates.is_min(ctx.value, n)

    return check


def in_range(lo: float, hi: float) -> Rule:
    """Value must be a number within [lo, hi].

    The lower bound is checked first; a value under it reports ``min``.
    """
    _ordered("in_range", lo, hi)

    def check(ctx: FieldContext) -> list[Failure]:
        return [] if ctx.value is None else predicates.is_in_range(ctx.value, lo, hi)

    return check


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Rule:
    """String must be at most *n* characters."""
    _positive("max_length", n)

    def check(ctx: FieldContext) -> list[Failure]:
        return [] if ctx.value is None else predicates.is_max_length(ctx.value, n)

    return check


def min_length(n: int) -> Rule:
    """String must be at least *n* characters."""
    _positive("min_length", n)

    def check(ctx: FieldContext) -> list[Failure]:
        return [] if ctx.value is None else predicates.is_min_length(ctx.value, n)

    return check


def length_range(lo: int, hi: int) -> Rule:
    """String length must be within [lo, hi], lower bound checked first."""
    _positive("length_range", lo)
    _ordered("length_range", lo, hi)

    def check(ctx: FieldContext) -> list[Failure]:
        return [] if ctx.value is None else predicates.is_length_in_range(ctx.value, lo, hi)

    return check


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------


def same_as(*fields: str) -> Rule:
    """Field values must equal those of every named field.

    All submitted values are compared, in order. A named field that was
    not submitted never matches.
    """
    if not fields:
        msg = "same_as() needs at least one field name"
        raise ConfigurationError(msg)

    def check(ctx: FieldContext) -> list[Failure]:
        if ctx.value is None:
            return []
        values = ctx.form.get_list(ctx.field)
        for other in fields:
            if ctx.form.get_list(other) != values:
                return [Failure(Kind.NOT_SAME, fields)]
        return []

    return check


def unique(store: UniqueStore | None, table: str, column: str, placeholder: str = "?") -> Rule:
    """Value must not exist yet in *table*.*column*.

    Skipped once the field already has a failure, so no lookup is wasted
    on a value that is rejected anyway. Store errors propagate.
    """
    if store is None:
        msg = "no store provided for unique rule"
        raise ConfigurationError(msg)
    check_identifier(table, "table")
    check_identifier(column, "column")

    def check(ctx: FieldContext) -> list[Failure]:
        if ctx.value is None or ctx.field in ctx.errors:
            return []
        if store.count(table, column, placeholder, ctx.value) > 0:
            return [Failure(Kind.NOT_UNIQUE)]
        return []

    return check


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def _sniffed(ctx: FieldContext) -> str | None:
    """Sniffed type of the current file, or ``None`` when it cannot be probed."""
    if ctx.file is None:
        return None
    try:
        return sniff_type(ctx.file, ctx.sniff_length)
    except FileProbeError as exc:
        logger.debug("skipping type check of %s: %s", ctx.field, exc)
        return None


def _sized(ctx: FieldContext) -> int | None:
    if ctx.file is None:
        return None
    try:
        return file_size(ctx.file)
    except FileProbeError as exc:
        logger.debug("skipping size check of %s: %s", ctx.field, exc)
        return None


def file_type(*types: str) -> Rule:
    """File content must be one of the given MIME types."""
    if not types:
        msg = "file_type() needs at least one MIME type"
        raise ConfigurationError(msg)
    allowed = frozenset(types)

    def check(ctx: FieldContext) -> list[Failure]:
        ct = _sniffed(ctx)
        if ct is None or ct in allowed:
            return []
        return [Failure(Kind.BAD_FILE_TYPE, types)]

    return check


def image(ctx: FieldContext) -> list[Failure]:
    """File content must be a GIF, JPEG or PNG image."""
    ct = _sniffed(ctx)
    if ct is None or ct in IMAGE_TYPES:
        return []
    return [Failure(Kind.NOT_IMAGE)]


def max_file_size(n: int) -> Rule:
    """File must be at most *n* bytes."""
    _positive("max_file_size", n)

    def check(ctx: FieldContext) -> list[Failure]:
        size = _sized(ctx)
        if size is None or size <= n:
            return []
        return [Failure(Kind.MAX_FILE_SIZE, (n,))]

    return check


def min_file_size(n: int) -> Rule:
    """File must be at least *n* bytes."""
    _positive("min_file_size", n)

    def check(ctx: FieldContext) -> list[Failure]:
        size = _sized(ctx)
        if size is None or size >= n:
            return []
        return [Failure(Kind.MIN_FILE_SIZE, (n,))]

    return check


def file_size_range(lo: int, hi: int) -> Rule:
    """File size must be within [lo, hi] bytes, lower bound checked first."""
    _positive("file_size_range", lo)
    _ordered("file_size_range", lo, hi)

    def check(ctx: FieldContext) -> list[Failure]:
        size = _sized(ctx)
        if size is None:
            return []
        if size < lo:
            return [Failure(Kind.MIN_FILE_SIZE, (lo,))]
        if size > hi:
            return [Failure(Kind.MAX_FILE_SIZE, (hi,))]
        return []

    return check
