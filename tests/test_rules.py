"""Tests for formcheck.rules — rules evaluated against one field entry."""

import io
import logging

import pytest

from formcheck.errors import ConfigurationError, StoreError
from formcheck.failures import REQUIRED, Failure, Kind
from formcheck.forms import FormData, UploadFile
from formcheck.result import Errors
from formcheck.rules import (
    FieldContext,
    alpha,
    email,
    file_size_range,
    file_type,
    image,
    in_range,
    length_range,
    matches,
    max_file_size,
    max_length,
    max_value,
    min_file_size,
    min_length,
    min_value,
    one_of,
    required,
    same_as,
    unique,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
GIF = b"GIF89a" + b"\x01\x00\x01\x00" + b"\x00" * 16


def value_ctx(value: str, others: dict[str, list[str]] | None = None, errors: Errors | None = None) -> FieldContext:
    form = FormData({"f": [value], **(others or {})})
    return FieldContext("f", form, errors if errors is not None else Errors(), value=value)


def file_ctx(upload: UploadFile) -> FieldContext:
    form = FormData({}, files={"f": [upload]})
    return FieldContext("f", form, Errors(), file=upload)


class CountingStore:
    def __init__(self, count: int = 0) -> None:
        self._count = count
        self.calls: list[tuple[str, str, str, str]] = []

    def count(self, table: str, column: str, placeholder: str, value: str) -> int:
        self.calls.append((table, column, placeholder, value))
        return self._count


class BrokenStore:
    def count(self, table: str, column: str, placeholder: str, value: str) -> int:
        raise StoreError("database is gone")


# ---------------------------------------------------------------------------
# Value rules
# ---------------------------------------------------------------------------


class TestRequired:
    def test_empty_value(self) -> None:
        assert required(value_ctx("")) == [REQUIRED]

    def test_whitespace_passes(self) -> None:
        assert required(value_ctx(" ")) == []

    def test_any_non_empty_value_passes(self) -> None:
        form = FormData({"f": ["", "x"]})
        assert required(FieldContext("f", form, Errors(), value="")) == []

    def test_file_satisfies_required(self) -> None:
        assert required(file_ctx(UploadFile.from_bytes("a.png", PNG))) == []


class TestValueRulesSkipFiles:
    @pytest.mark.parametrize("rule", [alpha, email, max_value(3), min_length(2), same_as("g")])
    def test_file_entry_ignored(self, rule) -> None:
        assert list(rule(file_ctx(UploadFile.from_bytes("a.png", PNG)))) == []


class TestFormatRules:
    def test_alpha(self) -> None:
        assert alpha(value_ctx("abc")) == []
        assert alpha(value_ctx("ab1")) == [Failure(Kind.NOT_ALPHA)]

    def test_email(self) -> None:
        assert email(value_ctx("a@a.aa")) == []
        assert email(value_ctx("a@a")) == [Failure(Kind.NOT_EMAIL)]

    def test_rule_names(self) -> None:
        assert alpha.__name__ == "alpha"
        assert email.__doc__

    def test_matches(self) -> None:
        rule = matches(r"\d{3}")
        assert rule(value_ctx("123")) == []
        assert rule(value_ctx("12")) == [Failure(Kind.INVALID, (r"\d{3}",))]

    def test_matches_is_anchored(self) -> None:
        assert matches(r"\d{3}")(value_ctx("1234")) != []

    def test_matches_bad_pattern(self) -> None:
        with pytest.raises(ConfigurationError):
            matches("(")

    def test_one_of(self) -> None:
        rule = one_of("red", "green", "blue")
        assert rule(value_ctx("red")) == []
        assert rule(value_ctx("purple")) == [Failure(Kind.INVALID, ("blue", "green", "red"))]

    def test_one_of_needs_choices(self) -> None:
        with pytest.raises(ConfigurationError):
            one_of()


class TestBoundRules:
    def test_max_value(self) -> None:
        assert max_value(3)(value_ctx("3")) == []
        assert max_value(3)(value_ctx("5")) == [Failure(Kind.MAX, (3,))]

    def test_min_value(self) -> None:
        assert min_value(3)(value_ctx("1")) == [Failure(Kind.MIN, (3,))]

    def test_in_range(self) -> None:
        rule = in_range(3, 5)
        assert rule(value_ctx("3")) == []
        assert rule(value_ctx("5")) == []
        assert rule(value_ctx("2")) == [Failure(Kind.MIN, (3,))]
        assert rule(value_ctx("6")) == [Failure(Kind.MAX, (5,))]
        assert rule(value_ctx("x")) == [Failure(Kind.NOT_NUMBER)]

    def test_in_range_inverted_bounds(self) -> None:
        with pytest.raises(ConfigurationError):
            in_range(5, 3)

    def test_lengths(self) -> None:
        assert max_length(3)(value_ctx("aaaa")) == [Failure(Kind.MAX_LEN, (3,))]
        assert min_length(3)(value_ctx("a")) == [Failure(Kind.MIN_LEN, (3,))]
        assert length_range(1, 2)(value_ctx("aaa")) == [Failure(Kind.MAX_LEN, (2,))]

    def test_negative_length(self) -> None:
        with pytest.raises(ConfigurationError):
            max_length(-1)


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------


class TestSameAs:
    def test_all_equal(self) -> None:
        assert same_as("k", "l")(value_ctx("v", {"k": ["v"], "l": ["v"]})) == []

    def test_missing_field(self) -> None:
        assert same_as("x")(value_ctx("v", {"k": ["v"]})) == [Failure(Kind.NOT_SAME, ("x",))]

    def test_different_value(self) -> None:
        assert same_as("k")(value_ctx("x", {"k": ["v"]})) == [Failure(Kind.NOT_SAME, ("k",))]

    def test_one_of_several_differs(self) -> None:
        result = same_as("k", "l")(value_ctx("v", {"k": ["v"], "l": ["x"]}))
        assert result == [Failure(Kind.NOT_SAME, ("k", "l"))]

    def test_compares_all_values(self) -> None:
        form = FormData({"f": ["a", "b"], "g": ["a"]})
        ctx = FieldContext("f", form, Errors(), value="a")
        assert same_as("g")(ctx) == [Failure(Kind.NOT_SAME, ("g",))]

    def test_needs_fields(self) -> None:
        with pytest.raises(ConfigurationError):
            same_as()


class TestUnique:
    def test_no_store(self) -> None:
        with pytest.raises(ConfigurationError, match="no store"):
            unique(None, "users", "email")

    @pytest.mark.parametrize(("table", "column"), [("users; DROP", "email"), ("users", "e mail"), ("", "x")])
    def test_bad_identifiers(self, table: str, column: str) -> None:
        with pytest.raises(ConfigurationError):
            unique(CountingStore(), table, column)

    def test_free_value(self) -> None:
        store = CountingStore(0)
        assert unique(store, "users", "email", "$1")(value_ctx("a@b.cd")) == []
        assert store.calls == [("users", "email", "$1", "a@b.cd")]

    def test_taken_value(self) -> None:
        assert unique(CountingStore(2), "users", "email")(value_ctx("a@b.cd")) == [Failure(Kind.NOT_UNIQUE)]

    def test_skipped_when_field_already_failed(self) -> None:
        store = CountingStore(1)
        errors = Errors({"f": [Failure(Kind.NOT_EMAIL)]})
        assert unique(store, "users", "email")(value_ctx("bad", errors=errors)) == []
        assert store.calls == []

    def test_store_error_propagates(self) -> None:
        with pytest.raises(StoreError):
            unique(BrokenStore(), "users", "email")(value_ctx("a@b.cd"))


# ---------------------------------------------------------------------------
# File rules
# ---------------------------------------------------------------------------


class TestFileRules:
    def test_image_accepts_png(self) -> None:
        assert image(file_ctx(UploadFile.from_bytes("a.png", PNG))) == []

    def test_image_rejects_text(self) -> None:
        upload = UploadFile.from_bytes("a.png", b"just text", "image/png")
        assert image(file_ctx(upload)) == [Failure(Kind.NOT_IMAGE)]

    def test_file_type(self) -> None:
        rule = file_type("image/png")
        assert rule(file_ctx(UploadFile.from_bytes("a.png", PNG))) == []
        assert rule(file_ctx(UploadFile.from_bytes("a.gif", GIF))) == [
            Failure(Kind.BAD_FILE_TYPE, ("image/png",))
        ]

    def test_file_type_strips_parameters(self) -> None:
        rule = file_type("text/plain")
        assert rule(file_ctx(UploadFile.from_bytes("a.txt", b"hello"))) == []

    def test_file_type_needs_types(self) -> None:
        with pytest.raises(ConfigurationError):
            file_type()

    def test_sizes(self) -> None:
        upload = UploadFile.from_bytes("a.bin", b"12345")
        assert max_file_size(5)(file_ctx(upload)) == []
        assert max_file_size(3)(file_ctx(upload)) == [Failure(Kind.MAX_FILE_SIZE, (3,))]
        assert min_file_size(6)(file_ctx(upload)) == [Failure(Kind.MIN_FILE_SIZE, (6,))]
        assert file_size_range(1, 4)(file_ctx(upload)) == [Failure(Kind.MAX_FILE_SIZE, (4,))]
        assert file_size_range(6, 9)(file_ctx(upload)) == [Failure(Kind.MIN_FILE_SIZE, (6,))]

    def test_value_entry_ignored(self) -> None:
        assert image(value_ctx("not a file")) == []
        assert max_file_size(0)(value_ctx("x")) == []

    def test_unreadable_file_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        stream = io.BytesIO(b"text")
        stream.close()
        upload = UploadFile("a.png", "image/png", stream)
        with caplog.at_level(logging.DEBUG, logger="formcheck.rules"):
            assert image(file_ctx(upload)) == []
            assert max_file_size(0)(file_ctx(upload)) == []
        assert "skipping" in caplog.text

    def test_probes_leave_position(self) -> None:
        upload = UploadFile.from_bytes("a.png", PNG)
        upload.file.seek(4)
        image(file_ctx(upload))
        max_file_size(100)(file_ctx(upload))
        assert upload.file.tell() == 4
