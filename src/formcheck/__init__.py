"""Formcheck — declarative form validation with structured errors.

Declare the rules of each field once, check every submitted payload
against them::

    from formcheck import Checker, email, in_range, phone, required

    checker = Checker({
        "email": [required, email],
        "phone": [phone],
        "stars": [required, in_range(3, 5)],
    })

    result = checker.check({"phone": "0012345678901", "stars": "2"})
    if not result:
        result.errors.to_dict()
        # {"email": [{"kind": "required", "args": []}],
        #  "stars": [{"kind": "min", "args": [3]}]}

Rules may also be written as strings (``"required,range:3:5"``), parsed
when the checker is built.

Multipart bodies (``pip install formcheck[forms]``)::

    from formcheck import parse_form_data
    form = parse_form_data(body, request.headers["content-type"])
    checker.check(form)
"""

from formcheck.checker import Checker, validate
from formcheck.config import CheckConfig
from formcheck.errors import (
    ConfigurationError,
    FileProbeError,
    FormcheckError,
    FormParseError,
    FrozenErrorsError,
    RuleFormatError,
    StoreError,
)
from formcheck.failures import REQUIRED, Failure, Kind
from formcheck.forms import FormData, UploadFile, parse_form_data, parse_query, to_form
from formcheck.i18n import Label, Translator
from formcheck.parser import parse_rules
from formcheck.result import Errors, ValidationResult
from formcheck.rules import (
    FieldContext,
    Rule,
    alpha,
    email,
    file_size_range,
    file_type,
    image,
    in_range,
    integer,
    latitude,
    length_range,
    longitude,
    matches,
    max_file_size,
    max_length,
    max_value,
    min_file_size,
    min_length,
    min_value,
    number,
    one_of,
    phone,
    required,
    same_as,
    unique,
    url,
)
from formcheck.store import SQLStore, UniqueStore

__version__ = "0.1.0"
__all__ = [
    "REQUIRED",
    "CheckConfig",
    "Checker",
    "ConfigurationError",
    "Errors",
    "Failure",
    "FieldContext",
    "FileProbeError",
    "FormData",
    "FormParseError",
    "FormcheckError",
    "FrozenErrorsError",
    "Kind",
    "Label",
    "Rule",
    "RuleFormatError",
    "SQLStore",
    "StoreError",
    "Translator",
    "UniqueStore",
    "UploadFile",
    "ValidationResult",
    "alpha",
    "email",
    "file_size_range",
    "file_type",
    "image",
    "in_range",
    "integer",
    "latitude",
    "length_range",
    "longitude",
    "matches",
    "max_file_size",
    "max_length",
    "max_value",
    "min_file_size",
    "min_length",
    "min_value",
    "number",
    "one_of",
    "parse_form_data",
    "parse_query",
    "parse_rules",
    "phone",
    "required",
    "same_as",
    "to_form",
    "unique",
    "url",
    "validate",
]
