"""Formcheck exception hierarchy.

Validation failures are data (``Failure`` values in ``Errors``), never
exceptions. Everything here signals a defect in the calling code or a
collaborator that cannot answer.
"""


class FormcheckError(Exception):
    """Base for all formcheck-specific errors."""


class ConfigurationError(FormcheckError):
    """Raised when a checker or rule is misconfigured.

    Always raised at construction time, never while checking a payload.
    """


class RuleFormatError(ConfigurationError):
    """Raised when a textual rule specification cannot be parsed."""

    def __init__(self, rule: str, reason: str) -> None:
        self.rule = rule
        self.reason = reason
        super().__init__(f"cannot parse rule {rule!r}: {reason}")


class FormParseError(FormcheckError, ValueError):
    """Raised when a request body cannot be decoded into form data."""


class FileProbeError(FormcheckError):
    """Raised when an uploaded file cannot be sniffed or sized."""


class StoreError(FormcheckError):
    """Raised when a uniqueness lookup fails.

    Distinct from a count of zero: the store could not answer at all.
    """


class FrozenErrorsError(FormcheckError, TypeError):
    """Raised when adding a failure to a frozen ``Errors`` snapshot."""
