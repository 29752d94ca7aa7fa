"""Failure messages — localized rendering of ``Failure`` values.

Usage::

    translator = Translator(overrides={("password", Kind.MIN_LEN): "Too short"})
    result.errors.messages(translator, "fr")
    # {"email": ["Ce champ est obligatoire"], "password": ["Too short"]}

Templates use ``str.format`` positional placeholders: ``{0}`` is the
first failure argument. Catalogs may carry a ``labels`` section used to
translate ``Label`` arguments (field names shown to users).
"""

from collections.abc import Mapping
from dataclasses import dataclass
from string import Formatter

from formcheck.config import CheckConfig
from formcheck.errors import ConfigurationError
from formcheck.failures import Failure, Kind

type Catalog = Mapping[str, object]

_FORMATTER = Formatter()


@dataclass(frozen=True, slots=True)
class Label:
    """A failure argument that is itself translated before interpolation."""

    key: str

    def __str__(self) -> str:
        return self.key


EN: dict[str, object] = {
    Kind.REQUIRED: "This field is required",
    Kind.NOT_ALPHA: "Must contain letters only",
    Kind.NOT_EMAIL: "Must be a valid email address",
    Kind.NOT_INTEGER: "Must be a whole number",
    Kind.NOT_NUMBER: "Must be a number",
    Kind.NOT_PHONE: "Must be a valid phone number",
    Kind.NOT_LATITUDE: "Must be a valid latitude",
    Kind.NOT_LONGITUDE: "Must be a valid longitude",
    Kind.NOT_URL: "Must be a valid URL",
    Kind.MIN: "Must be at least {0}",
    Kind.MAX: "Must be at most {0}",
    Kind.MIN_LEN: "Must be at least {0} characters",
    Kind.MAX_LEN: "Must be at most {0} characters",
    Kind.MIN_FILE_SIZE: "File must be at least {0} bytes",
    Kind.MAX_FILE_SIZE: "File must be at most {0} bytes",
    Kind.BAD_FILE_TYPE: "File must be one of: {0}",
    Kind.NOT_IMAGE: "File must be an image",
    Kind.NOT_SAME: "Must match {0}",
    Kind.NOT_UNIQUE: "This value is already taken",
    Kind.INVALID: "Invalid value",
    "labels": {},
}

FR: dict[str, object] = {
    Kind.REQUIRED: "Ce champ est obligatoire",
    Kind.NOT_ALPHA: "Ne doit contenir que des lettres",
    Kind.NOT_EMAIL: "Doit être une adresse email valide",
    Kind.NOT_INTEGER: "Doit être un nombre entier",
    Kind.NOT_NUMBER: "Doit être un nombre",
    Kind.NOT_PHONE: "Doit être un numéro de téléphone valide",
    Kind.NOT_LATITUDE: "Doit être une latitude valide",
    Kind.NOT_LONGITUDE: "Doit être une longitude valide",
    Kind.NOT_URL: "Doit être une URL valide",
    Kind.MIN: "Doit être au moins {0}",
    Kind.MAX: "Doit être au plus {0}",
    Kind.MIN_LEN: "Doit contenir au moins {0} caractères",
    Kind.MAX_LEN: "Doit contenir au plus {0} caractères",
    Kind.MIN_FILE_SIZE: "Le fichier doit faire au moins {0} octets",
    Kind.MAX_FILE_SIZE: "Le fichier doit faire au plus {0} octets",
    Kind.BAD_FILE_TYPE: "Le fichier doit être de type : {0}",
    Kind.NOT_IMAGE: "Le fichier doit être une image",
    Kind.NOT_SAME: "Doit correspondre à {0}",
    Kind.NOT_UNIQUE: "Cette valeur est déjà utilisée",
}

BUILTIN_CATALOGS: Mapping[str, Catalog] = {"en": EN, "fr": FR}


def _check_template(key: object, template: str) -> None:
    try:
        list(_FORMATTER.parse(template))
    except ValueError as exc:
        msg = f"malformed message template for {key!r}: {template!r} ({exc})"
        raise ConfigurationError(msg) from exc


class Translator:
    """Renders failures to messages for a locale.

    Lookup order for a failure of kind *k* on field *f*:

    1. ``overrides[(f, k)]``, then ``overrides[k]``
    2. the catalog of the requested locale (``"fr-CA"`` also tries ``"fr"``)
    3. the catalog of the default locale
    4. the kind identifier itself
    """

    __slots__ = ("_catalogs", "_default_locale", "_overrides")

    def __init__(
        self,
        catalogs: Mapping[str, Catalog] | None = None,
        *,
        default_locale: str | None = None,
        overrides: Mapping[object, str] | None = None,
    ) -> None:
        merged: dict[str, dict[str, object]] = {k: dict(v) for k, v in BUILTIN_CATALOGS.items()}
        for locale, catalog in (catalogs or {}).items():
            merged.setdefault(locale, {}).update(catalog)
        self._catalogs = merged
        self._default_locale = default_locale or CheckConfig().default_locale
        self._overrides = dict(overrides or {})

        for catalog in merged.values():
            for key, template in catalog.items():
                if isinstance(template, str):
                    _check_template(key, template)
        for key, template in self._overrides.items():
            _check_template(key, template)

    @property
    def default_locale(self) -> str:
        return self._default_locale

    def translate(self, failure: Failure, locale: str | None = None, *, field: str | None = None) -> str:
        """Return the message for *failure* in *locale*."""
        locale = locale or self._default_locale
        template = self._override(failure.kind, field)
        if template is None:
            template = self._lookup(failure.kind, locale)
        if template is None:
            return str(failure)
        if failure.kind is Kind.NOT_SAME:
            # Compared field names, shown as one list
            args = [", ".join(self.label(str(a), locale) for a in failure.args)]
        elif failure.kind is Kind.BAD_FILE_TYPE:
            args = [self._render_arg(failure.args, locale)]
        else:
            args = [self._render_arg(a, locale) for a in failure.args]
        try:
            return template.format(*args)
        except (IndexError, KeyError):
            # Template expects more arguments than the failure carries
            return template

    def label(self, key: str, locale: str | None = None) -> str:
        """Translate a field label, falling back to the key itself."""
        locale = locale or self._default_locale
        for candidate in self._locales(locale):
            labels = self._catalogs.get(candidate, {}).get("labels")
            if isinstance(labels, Mapping) and key in labels:
                return str(labels[key])
        return key

    def _override(self, kind: Kind, field: str | None) -> str | None:
        if field is not None and (field, kind) in self._overrides:
            return self._overrides[(field, kind)]
        return self._overrides.get(kind)

    def _lookup(self, key: str, locale: str) -> str | None:
        for candidate in self._locales(locale):
            template = self._catalogs.get(candidate, {}).get(key)
            if isinstance(template, str):
                return template
        return None

    def _locales(self, locale: str) -> list[str]:
        chain = [locale]
        base = locale.replace("_", "-").split("-")[0]
        if base != locale:
            chain.append(base)
        if self._default_locale not in chain:
            chain.append(self._default_locale)
        return chain

    def _render_arg(self, arg: object, locale: str) -> str:
        if isinstance(arg, Label):
            return self.label(arg.key, locale)
        if isinstance(arg, Kind):
            return self._lookup(arg, locale) or str(arg)
        if isinstance(arg, float):
            return format(arg, "g")
        if isinstance(arg, (tuple, list, frozenset, set)):
            return ", ".join(self._render_arg(a, locale) for a in arg)
        return str(arg)
