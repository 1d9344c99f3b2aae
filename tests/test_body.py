"""Tests for body building, stdin capture and body source resolution."""

import io

import pytest

from ht.body import (
    FilePart,
    FormBody,
    JsonBody,
    MultipartBody,
    RawBody,
    body_from_stdin,
    build_body,
    resolve_body,
)
from ht.errors import ConflictError, FieldTypeError, ReadError
from ht.items import DataField, FileField, JsonField


class _TtyStream(io.StringIO):
    def isatty(self):
        return True


class _BrokenStream(io.StringIO):
    def read(self, *args):
        raise OSError("broken pipe")


# ── build_body ───────────────────────────────────────────────────────────


class TestBuildJson:
    def test_strings_and_typed_values(self):
        body = build_body([DataField("name", "bob"), JsonField("age", 30)])
        assert body == JsonBody({"name": "bob", "age": 30})

    def test_data_values_stay_strings(self):
        body = build_body([DataField("age", "30")])
        assert body.data == {"age": "30"}

    def test_last_write_wins(self):
        body = build_body([DataField("a", "1"), JsonField("a", [1])])
        assert body.data == {"a": [1]}

    def test_file_field_rejected(self):
        with pytest.raises(FieldTypeError, match="--multipart"):
            build_body([FileField("f", "a.txt")])

    def test_no_items(self):
        assert build_body([]) is None


class TestBuildForm:
    def test_fields_kept_in_order_with_duplicates(self):
        body = build_body(
            [DataField("a", "1"), DataField("b", "2"), DataField("a", "3")],
            form=True,
        )
        assert body == FormBody([("a", "1"), ("b", "2"), ("a", "3")])

    def test_json_field_rejected(self):
        with pytest.raises(FieldTypeError, match="cannot be sent as a form"):
            build_body([JsonField("a", 1)], form=True)

    def test_file_field_rejected(self):
        with pytest.raises(FieldTypeError, match="requires --multipart"):
            build_body([FileField("f", "a.txt")], form=True)


class TestBuildMultipart:
    def test_text_and_file_parts_in_order(self):
        body = build_body(
            [DataField("title", "doc"), FileField("file", "a.pdf"), DataField("tag", "x")],
            multipart=True,
        )
        assert body == MultipartBody(
            [("title", "doc"), ("file", FilePart("a.pdf")), ("tag", "x")],
        )

    def test_multipart_wins_over_form(self):
        body = build_body([FileField("f", "a.txt")], form=True, multipart=True)
        assert isinstance(body, MultipartBody)

    def test_json_field_rejected(self):
        with pytest.raises(FieldTypeError, match="multipart"):
            build_body([JsonField("a", 1)], multipart=True)

    def test_missing_file_not_checked(self):
        body = build_body([FileField("f", "/does/not/exist")], multipart=True)
        assert body.parts == [("f", FilePart("/does/not/exist"))]


# ── body_from_stdin ──────────────────────────────────────────────────────


class TestBodyFromStdin:
    def test_piped_input_read(self):
        assert body_from_stdin(io.StringIO('{"a": 1}')) == RawBody('{"a": 1}')

    def test_empty_pipe_is_still_a_body(self):
        assert body_from_stdin(io.StringIO("")) == RawBody("")

    def test_terminal_skipped(self):
        assert body_from_stdin(_TtyStream("ignored")) is None

    def test_ignore_flag(self):
        assert body_from_stdin(io.StringIO("data"), ignore_stdin=True) is None

    def test_read_failure(self):
        with pytest.raises(ReadError, match="broken pipe"):
            body_from_stdin(_BrokenStream())


# ── resolve_body ─────────────────────────────────────────────────────────


class TestResolveBody:
    def test_items_and_stdin_conflict(self):
        with pytest.raises(ConflictError, match="cannot be mixed"):
            resolve_body([DataField("a", "1")], RawBody("x"))

    def test_conflict_checked_before_field_types(self):
        with pytest.raises(ConflictError):
            resolve_body([JsonField("a", 1)], RawBody(""), multipart=True)

    def test_items_only(self):
        assert resolve_body([DataField("a", "1")], None) == JsonBody({"a": "1"})

    def test_items_with_form_flag(self):
        assert resolve_body([DataField("a", "1")], None, form=True) == FormBody([("a", "1")])

    def test_stdin_only(self):
        assert resolve_body([], RawBody("hello")) == RawBody("hello")

    def test_nothing(self):
        assert resolve_body([], None) is None
