"""Error model and validation result.

``Errors`` collects failures per field while a checker runs, then is
frozen into the ``ValidationResult`` handed back to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from formcheck.errors import FrozenErrorsError
from formcheck.failures import Failure, Kind

if TYPE_CHECKING:
    from formcheck.i18n import Translator


class Errors(Mapping[str, tuple[Failure, ...]]):
    """Field name -> ordered failures.

    Two invariants hold for every field:

    - A ``required`` failure is always alone. Adding it replaces whatever
      the field had; adding anything after it is a no-op.
    - A kind appears at most once. The first failure of a kind wins,
      later ones with the same kind (whatever their args) are dropped.

    Fields without failures are never present.
    """

    __slots__ = ("_fields", "_frozen")

    def __init__(self, initial: Mapping[str, Iterable[Failure]] | None = None) -> None:
        self._fields: dict[str, list[Failure]] = {}
        self._frozen = False
        if initial:
            for field, failures in initial.items():
                self.add_all(field, failures)

    # -- Mutation --

    def add(self, field: str, failure: Failure) -> None:
        """Append *failure* to *field*, honoring absorption and dedup."""
        if self._frozen:
            msg = "cannot add failures to a frozen Errors snapshot"
            raise FrozenErrorsError(msg)
        if failure.kind is Kind.REQUIRED:
            self._fields[field] = [failure]
            return
        existing = self._fields.get(field)
        if existing is None:
            self._fields[field] = [failure]
            return
        for f in existing:
            if f.kind is failure.kind or f.kind is Kind.REQUIRED:
                return
        existing.append(failure)

    def add_all(self, field: str, failures: Iterable[Failure]) -> None:
        for failure in failures:
            self.add(field, failure)

    def merge(self, other: Mapping[str, Iterable[Failure]]) -> None:
        """Add every failure of *other*, field by field."""
        for field, failures in other.items():
            self.add_all(field, failures)

    def freeze(self) -> Errors:
        """Return an immutable copy of these errors."""
        snapshot = Errors()
        snapshot._fields = {k: list(v) for k, v in self._fields.items()}
        snapshot._frozen = True
        return snapshot

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Queries --

    def is_empty(self) -> bool:
        return not self._fields

    def has(self, field: str) -> bool:
        return field in self._fields

    def first(self, field: str) -> Failure | None:
        """Return the first failure for *field*, or ``None``."""
        failures = self._fields.get(field)
        if not failures:
            return None
        return failures[0]

    def __getitem__(self, field: str) -> tuple[Failure, ...]:
        return tuple(self._fields[field])

    def __contains__(self, field: object) -> bool:
        return field in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Errors):
            return self._fields == other._fields
        return super().__eq__(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: [{', '.join(map(str, v))}]" for k, v in self._fields.items())
        return f"Errors({{{items}}})"

    # -- Rendering --

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Structured export: field -> list of ``{"kind", "args"}``."""
        return {k: [f.to_dict() for f in v] for k, v in self._fields.items()}

    def json(self) -> dict[str, Any]:
        """Return the errors under the ``"errors"`` key, ready to encode."""
        return {"errors": self.to_dict()}

    def messages(self, translator: Translator, locale: str | None = None) -> dict[str, list[str]]:
        """Render every failure to a localized message."""
        return {
            field: [translator.translate(f, locale, field=field) for f in failures]
            for field, failures in self._fields.items()
        }


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of checking submitted data.

    ``is_valid`` is True when there are no errors.
    The result is falsy when invalid, so you can write::

        result = checker.check(form)
        if not result:
            return render("form.html", form=form, errors=result.errors.to_dict())

    ``data`` holds the submitted values of every declared field that
    passed its rules. ``errors`` is a frozen ``Errors``.
    """

    data: dict[str, list[str]]
    errors: Errors

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return self.errors.is_empty()

    def __bool__(self) -> bool:
        """Falsy when invalid — enables ``if not result:`` pattern."""
        return self.is_valid

    def json(self) -> dict[str, Any]:
        return self.errors.json()
