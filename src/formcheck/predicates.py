"""Leaf checks over a single submitted string.

Each predicate has the signature::

    def is_something(value: str, ...) -> list[Failure]:
        '''Return the failures, or an empty list if valid.'''

They know nothing about fields, forms or files — rules in
``formcheck.rules`` adapt them to the checker.
"""

import math
import re
from urllib.parse import urlsplit

from formcheck.failures import REQUIRED, Failure, Kind

# ---------------------------------------------------------------------------
# Patterns (compiled once, never mutated)
# ---------------------------------------------------------------------------

# Structure only: something@something.tld, tld of 2 to 63 chars
_EMAIL_RE = re.compile(r"[^@]+@[^@]+\.[^@]{2,63}")

_PHONE_RE = re.compile(r"\+?[0-9(). ]{9,20}")

_ALPHA_RE = re.compile(r"[A-Za-z]*")

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

# Decimal or scientific notation; float() alone would also take
# "inf", "nan", "1_000" and surrounding whitespace.
_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

_PORT_RE = re.compile(r"[0-9]*")

# Characters a URI host may carry (RFC 3986 reg-name, IP literal brackets,
# port separator). Anything non-ASCII is accepted for IDNs.
_HOST_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    "-._~!$&'()*+,;=:[]%"
)

_URL_FORBIDDEN_DOMAIN_CHARS = frozenset("_,!&")


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def is_required(value: str) -> list[Failure]:
    """Value must not be empty. It is not stripped: ``" "`` passes."""
    if value == "":
        return [REQUIRED]
    return []


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------


def is_alpha(value: str) -> list[Failure]:
    """Value must contain ASCII letters only. The empty string passes."""
    if not _ALPHA_RE.fullmatch(value):
        return [Failure(Kind.NOT_ALPHA)]
    return []


def is_email(value: str) -> list[Failure]:
    """Value must look like an email address (structure, not deliverability)."""
    if not _EMAIL_RE.fullmatch(value):
        return [Failure(Kind.NOT_EMAIL)]
    return []


def is_phone(value: str) -> list[Failure]:
    """Value must look like a phone number: 9 to 20 digits, ``( ) .`` or spaces."""
    if not _PHONE_RE.fullmatch(value):
        return [Failure(Kind.NOT_PHONE)]
    return []


def is_url(value: str) -> list[Failure]:
    """Value must look like a URL. The scheme is optional."""
    if not _looks_like_url(value):
        return [Failure(Kind.NOT_URL)]
    return []


def _looks_like_url(value: str) -> bool:
    if len(value) < 4:
        return False
    value = value.replace("127.0.0.1", "localhost", 1)
    value, _, _ = value.partition("#")
    if "://" not in value:
        value = "http://" + value
    # urlsplit silently drops these; a real request line cannot carry them.
    if any(c in value for c in "\t\r\n"):
        return False

    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme:
        return False
    host = parts.netloc.rpartition("@")[2]
    if not _valid_host(host) or host[0] == "-" or ".-" in host or "-." in host:
        return False

    labels = host.split(".")
    if labels[0] == "" or not 2 <= len(labels[-1]) <= 63:
        return False

    domain = ".".join(labels[-2:])
    if any(c in _URL_FORBIDDEN_DOMAIN_CHARS for c in domain):
        return False
    # Only one "::" elision is allowed in an IPv6 address
    if domain.count("::") > 1:
        return False
    port = domain.rpartition(":")[2]
    if _INTEGER_RE.fullmatch(port) and not 1 <= int(port) <= 65535:
        return False
    return True


def _valid_host(host: str) -> bool:
    """Host syntax: allowed characters and a numeric optional port."""
    if not host:
        return False
    if any(c not in _HOST_CHARS and ord(c) < 0x80 for c in host):
        return False
    if host.startswith("["):
        end = host.find("]")
        if end == -1:
            return False
        rest = host[end + 1 :]
        return rest == "" or (rest[0] == ":" and bool(_PORT_RE.fullmatch(rest[1:])))
    if ":" in host:
        return bool(_PORT_RE.fullmatch(host.rpartition(":")[2]))
    return True


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def parse_number(value: str) -> float | None:
    """Parse a decimal or scientific literal, or return ``None``.

    Literals that overflow a float (``1e999``) are rejected.
    """
    if not _NUMBER_RE.fullmatch(value):
        return None
    result = float(value)
    if not math.isfinite(result):
        return None
    return result


def is_integer(value: str) -> list[Failure]:
    """Value must be a base-10 integer, optionally signed."""
    if value == "." or not _INTEGER_RE.fullmatch(value):
        return [Failure(Kind.NOT_INTEGER)]
    return []


def is_number(value: str) -> list[Failure]:
    """Value must be a number (int or float, decimal or scientific)."""
    if parse_number(value) is None:
        return [Failure(Kind.NOT_NUMBER)]
    return []


def is_latitude(value: str) -> list[Failure]:
    """Value must be a number within [-90, 90]."""
    f = parse_number(value)
    if f is None:
        return [Failure(Kind.NOT_NUMBER)]
    if f < -90 or f > 90:
        return [Failure(Kind.NOT_LATITUDE)]
    return []


def is_longitude(value: str) -> list[Failure]:
    """Value must be a number within [-180, 180]."""
    f = parse_number(value)
    if f is None:
        return [Failure(Kind.NOT_NUMBER)]
    if f < -180 or f > 180:
        return [Failure(Kind.NOT_LONGITUDE)]
    return []


def is_max(value: str, n: float) -> list[Failure]:
    """Value must be a number below or equal to *n*."""
    f = parse_number(value)
    if f is None:
        return [Failure(Kind.NOT_NUMBER)]
    if f > n:
        return [Failure(Kind.MAX, (n,))]
    return []


def is_min(value: str, n: float) -> list[Failure]:
    """Value must be a number over or equal to *n*."""
    f = parse_number(value)
    if f is None:
        return [Failure(Kind.NOT_NUMBER)]
    if f < n:
        return [Failure(Kind.MIN, (n,))]
    return []


def is_in_range(value: str, lo: float, hi: float) -> list[Failure]:
    """Value must be a number within [lo, hi]. The lower bound is checked first."""
    return is_min(value, lo) or is_max(value, hi)


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def is_max_length(value: str, n: int) -> list[Failure]:
    """String must be at most *n* characters."""
    if len(value) > n:
        return [Failure(Kind.MAX_LEN, (n,))]
    return []


def is_min_length(value: str, n: int) -> list[Failure]:
    """String must be at least *n* characters."""
    if len(value) < n:
        return [Failure(Kind.MIN_LEN, (n,))]
    return []


def is_length_in_range(value: str, lo: int, hi: int) -> list[Failure]:
    return is_min_length(value, lo) or is_max_length(value, hi)
