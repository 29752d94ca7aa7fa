"""The checker — declared rules applied to submitted data.

A ``Checker`` is built once (rule strings are parsed, arguments
validated) and then reused for every payload. It holds no mutable
state: each ``check()`` builds its own ``Errors``, so one checker can
serve concurrent requests.
"""

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from formcheck.config import CheckConfig
from formcheck.errors import ConfigurationError
from formcheck.failures import REQUIRED
from formcheck.forms import FormData, parse_form_data, parse_query, to_form
from formcheck.parser import parse_rules
from formcheck.result import Errors, ValidationResult
from formcheck.rules import FieldContext, Rule, required

logger = logging.getLogger("formcheck.checker")

type RuleSpec = str | Sequence[Rule]


def _compile(field: str, spec: RuleSpec) -> tuple[Rule, ...]:
    if isinstance(spec, str):
        return parse_rules(spec)
    compiled = tuple(spec)
    for rule in compiled:
        if not callable(rule):
            msg = f"rule for field {field!r} is not callable: {rule!r}"
            raise ConfigurationError(msg)
    return compiled


class Checker:
    """Field names mapped to their ordered rules.

    Usage::

        checker = Checker({
            "email": [required, email],
            "phone": [phone],
            "stars": "required,range:3:5",
        })

        result = checker.check(form)
        if not result:
            return {"errors": result.errors.to_dict()}

    Rules run in declared order, for every value (then every file) of a
    field. Fields missing from the data are skipped unless ``required``
    is among their rules, in which case they get a lone ``required``
    failure.
    """

    __slots__ = ("_config", "_rules")

    def __init__(
        self,
        rules: Mapping[str, RuleSpec],
        *,
        config: CheckConfig | None = None,
    ) -> None:
        self._config = config or CheckConfig()
        self._rules: Mapping[str, tuple[Rule, ...]] = MappingProxyType(
            {field: _compile(field, spec) for field, spec in rules.items()}
        )

    @property
    def rules(self) -> Mapping[str, tuple[Rule, ...]]:
        """Read-only view of the compiled rules."""
        return self._rules

    @property
    def config(self) -> CheckConfig:
        return self._config

    def check(self, data: FormData | Mapping[str, Any] | None) -> ValidationResult:
        """Check *data* and return the result.

        Args:
            data: ``FormData``, any multi-value mapping, or a plain
                ``dict`` of strings or lists of strings.

        Returns:
            A ``ValidationResult`` holding the frozen ``Errors`` and the
            values of the fields that passed.
        """
        form = to_form(data)
        errors = Errors()

        for field, rules in self._rules.items():
            self._check_field(field, rules, form, errors)

        cleaned = {
            field: form.get_list(field)
            for field in self._rules
            if field not in errors and field in form
        }
        logger.debug("checked %d fields, %d failed", len(self._rules), len(errors))
        return ValidationResult(data=cleaned, errors=errors.freeze())

    def check_body(
        self,
        body: bytes,
        content_type: str,
        query_string: bytes | str = b"",
    ) -> ValidationResult:
        """Parse an HTTP form body, merge in the query string, and check.

        Raises:
            FormParseError: If the body cannot be decoded.
        """
        form = parse_form_data(body, content_type, max_size=self._config.max_form_size)
        if query_string:
            form = form.merge(parse_query(query_string))
        return self.check(form)

    def _check_field(self, field: str, rules: tuple[Rule, ...], form: FormData, errors: Errors) -> None:
        if not form.has_data(field):
            if required in rules:
                errors.add(field, REQUIRED)
            return

        contexts = [
            *(FieldContext(field, form, errors, value=v, sniff_length=self._config.sniff_length)
              for v in form.get_list(field)),
            *(FieldContext(field, form, errors, file=f, sniff_length=self._config.sniff_length)
              for f in form.get_files(field)),
        ]
        for ctx in contexts:
            for rule in rules:
                errors.add_all(field, rule(ctx))

    def __repr__(self) -> str:
        return f"Checker({sorted(self._rules)!r})"


def validate(
    data: FormData | Mapping[str, Any] | None,
    rules: Mapping[str, RuleSpec],
) -> ValidationResult:
    """Check data against a set of rules in one call.

    Builds a throwaway ``Checker``; keep a ``Checker`` around instead when
    the same rules serve many payloads.

    Example::

        result = validate(form, {
            "title": [required, max_length(200)],
            "body": [required, min_length(10)],
        })
        if not result:
            # result.errors.to_dict() == {"body": [{"kind": "minLen", "args": [10]}]}
            ...
    """
    return Checker(rules).check(data)
