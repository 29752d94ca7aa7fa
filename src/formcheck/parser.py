"""Textual rule specifications.

A compact alternative to lists of rule callables::

    Checker({
        "email": "required,email",
        "stars": "required,range:3:5",
        "avatar": "image,maxfilesize:1048576",
    })

Rules are comma-separated; arguments follow the rule name, colon-separated.
Strings are parsed once, when the checker is built. Anything malformed
raises ``RuleFormatError`` right there.
"""

from collections.abc import Callable

from formcheck import rules
from formcheck.errors import RuleFormatError
from formcheck.rules import Rule

_PLAIN: dict[str, Rule] = {
    "alpha": rules.alpha,
    "email": rules.email,
    "image": rules.image,
    "integer": rules.integer,
    "latitude": rules.latitude,
    "longitude": rules.longitude,
    "number": rules.number,
    "phone": rules.phone,
    "required": rules.required,
    "url": rules.url,
}

# name -> (factory, argument converter, argument count: int or None for 1+)
_FACTORIES: dict[str, tuple[Callable[..., Rule], Callable[[str], object], int | None]] = {
    "max": (rules.max_value, float, 1),
    "min": (rules.min_value, float, 1),
    "range": (rules.in_range, float, 2),
    "maxlen": (rules.max_length, int, 1),
    "minlen": (rules.min_length, int, 1),
    "rangelen": (rules.length_range, int, 2),
    "maxfilesize": (rules.max_file_size, int, 1),
    "minfilesize": (rules.min_file_size, int, 1),
    "rangefilesize": (rules.file_size_range, int, 2),
    "filetype": (rules.file_type, str, None),
    "same": (rules.same_as, str, None),
}


def parse_rule(item: str) -> Rule:
    """Parse one ``name[:arg[:arg...]]`` item into a rule."""
    name, *args = (part.strip() for part in item.strip().split(":"))
    if not name:
        raise RuleFormatError(item, "empty rule name")

    if name in _PLAIN:
        if args:
            raise RuleFormatError(item, f"{name!r} takes no arguments")
        return _PLAIN[name]

    if name == "unique":
        raise RuleFormatError(item, "'unique' needs a store; use formcheck.unique() instead")

    spec = _FACTORIES.get(name)
    if spec is None:
        raise RuleFormatError(item, f"unknown rule {name!r}")
    factory, convert, count = spec

    if count is None and not args:
        raise RuleFormatError(item, f"{name!r} takes at least one argument")
    if count is not None and len(args) != count:
        raise RuleFormatError(item, f"{name!r} takes {count} argument(s), got {len(args)}")
    if any(a == "" for a in args):
        raise RuleFormatError(item, "empty argument")

    try:
        converted = [convert(a) for a in args]
    except ValueError:
        raise RuleFormatError(item, f"{name!r} arguments must be {convert.__name__}") from None
    return factory(*converted)


def parse_rules(spec: str) -> tuple[Rule, ...]:
    """Parse a comma-separated rule specification.

    Raises:
        RuleFormatError: On any malformed item.
        ConfigurationError: If a rule rejects its arguments
            (``range:5:3``).
    """
    if not spec.strip():
        raise RuleFormatError(spec, "empty rule specification")
    return tuple(parse_rule(item) for item in spec.split(","))
