"""Tests for formcheck.i18n — failure messages."""

import pytest

from formcheck import Checker, ConfigurationError, in_range, required
from formcheck.failures import REQUIRED, Failure, Kind
from formcheck.i18n import EN, FR, Label, Translator


@pytest.fixture
def translator() -> Translator:
    return Translator()


class TestCatalogs:
    def test_english_covers_every_kind(self) -> None:
        assert set(Kind) <= set(EN)

    def test_french_entries_are_known_kinds(self) -> None:
        assert set(FR) <= set(Kind)


class TestTranslate:
    def test_default_locale(self, translator: Translator) -> None:
        assert translator.default_locale == "en"
        assert translator.translate(REQUIRED) == "This field is required"

    def test_french(self, translator: Translator) -> None:
        assert translator.translate(REQUIRED, "fr") == "Ce champ est obligatoire"

    def test_unknown_locale_falls_back(self, translator: Translator) -> None:
        assert translator.translate(REQUIRED, "de") == "This field is required"

    def test_region_falls_back_to_language(self, translator: Translator) -> None:
        assert translator.translate(REQUIRED, "fr-CA") == "Ce champ est obligatoire"
        assert translator.translate(REQUIRED, "fr_CA") == "Ce champ est obligatoire"

    def test_missing_key_falls_back_to_default(self, translator: Translator) -> None:
        assert translator.translate(Failure(Kind.INVALID), "fr") == "Invalid value"

    def test_no_template_at_all(self) -> None:
        t = Translator({"xx": {}}, default_locale="xx")
        assert t.translate(Failure(Kind.MIN, (3,))) == "min:3"

    def test_custom_default_locale(self) -> None:
        assert Translator(default_locale="fr").translate(REQUIRED) == "Ce champ est obligatoire"

    def test_custom_catalog(self) -> None:
        t = Translator({"de": {Kind.REQUIRED: "Pflichtfeld"}})
        assert t.translate(REQUIRED, "de") == "Pflichtfeld"
        assert t.translate(Failure(Kind.NOT_EMAIL), "de") == "Must be a valid email address"


class TestArguments:
    def test_integral_float(self, translator: Translator) -> None:
        assert translator.translate(Failure(Kind.MIN, (3.0,))) == "Must be at least 3"

    def test_fraction(self, translator: Translator) -> None:
        assert translator.translate(Failure(Kind.MAX, (2.5,))) == "Must be at most 2.5"

    def test_file_types_joined(self, translator: Translator) -> None:
        failure = Failure(Kind.BAD_FILE_TYPE, ("image/png", "image/gif"))
        assert translator.translate(failure) == "File must be one of: image/png, image/gif"

    def test_same_uses_labels(self) -> None:
        t = Translator({"fr": {"labels": {"password": "mot de passe"}}})
        failure = Failure(Kind.NOT_SAME, ("password",))
        assert t.translate(failure, "fr") == "Doit correspondre à mot de passe"
        assert t.translate(failure) == "Must match password"

    def test_label_argument(self) -> None:
        t = Translator(
            {"en": {"labels": {"email": "email address"}}},
            overrides={Kind.INVALID: "Check the {0}"},
        )
        assert t.translate(Failure(Kind.INVALID, (Label("email"),))) == "Check the email address"

    def test_kind_argument(self) -> None:
        t = Translator(overrides={Kind.INVALID: "Invalid: {0}"})
        assert t.translate(Failure(Kind.INVALID, (Kind.REQUIRED,)), "fr") == "Invalid: Ce champ est obligatoire"

    def test_template_expects_more_arguments(self) -> None:
        t = Translator(overrides={Kind.INVALID: "Pick {0}"})
        assert t.translate(Failure(Kind.INVALID)) == "Pick {0}"


class TestOverrides:
    def test_by_kind(self) -> None:
        t = Translator(overrides={Kind.REQUIRED: "Fill this in"})
        assert t.translate(REQUIRED, "fr") == "Fill this in"

    def test_by_field_wins(self) -> None:
        t = Translator(overrides={Kind.REQUIRED: "Fill this in", ("name", Kind.REQUIRED): "Tell us your name"})
        assert t.translate(REQUIRED, field="name") == "Tell us your name"
        assert t.translate(REQUIRED, field="age") == "Fill this in"

    @pytest.mark.parametrize("template", ["max is {", "max is }", "max is {0"])
    def test_malformed_override(self, template: str) -> None:
        with pytest.raises(ConfigurationError, match="malformed"):
            Translator(overrides={Kind.MAX: template})

    def test_malformed_catalog_entry(self) -> None:
        with pytest.raises(ConfigurationError, match="malformed"):
            Translator({"de": {Kind.MAX: "höchstens {"}})

    def test_labels_are_not_templates(self) -> None:
        t = Translator({"en": {"labels": {"brace": "{"}}})
        assert t.label("brace") == "{"


class TestErrorMessages:
    def test_messages(self) -> None:
        checker = Checker({"email": [required], "stars": [required, in_range(3, 5)]})
        errors = checker.check({"stars": "2"}).errors
        t = Translator(overrides={("email", Kind.REQUIRED): "We need your email"})
        assert errors.messages(t) == {
            "email": ["We need your email"],
            "stars": ["Must be at least 3"],
        }
        assert errors.messages(t, "fr")["stars"] == ["Doit être au moins 3"]
