"""Tests for print policy resolution and rendering."""

import pytest
import requests

from ht.errors import DecodeError
from ht.printing import BINARY_NOTE, Printer, PrintPolicy, is_binary, resolve_print_policy
from tests.conftest import make_response

# ── PrintPolicy ──────────────────────────────────────────────────────────


class TestPrintPolicy:
    def test_parse_all(self):
        assert PrintPolicy.parse("HBhb") == PrintPolicy(True, True, True, True)

    def test_parse_subset(self):
        assert PrintPolicy.parse("Hb") == PrintPolicy(
            request_headers=True,
            response_body=True,
        )

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="unknown characters"):
            PrintPolicy.parse("Hx")

    def test_explicit_wins(self):
        explicit = PrintPolicy(request_headers=True)
        assert resolve_print_policy(explicit, verbose=True, stdout_is_tty=True) == explicit

    def test_verbose(self):
        assert resolve_print_policy(None, True, False) == PrintPolicy(True, True, True, True)

    def test_terminal_default(self):
        assert resolve_print_policy(None, False, True) == PrintPolicy(False, False, True, True)

    def test_redirected_default(self):
        assert resolve_print_policy(None, False, False) == PrintPolicy(False, False, False, True)


# ── Printer ──────────────────────────────────────────────────────────────


class TestPrintRequest:
    def test_request_line_and_headers(self, capsys):
        prepared = requests.Request(
            "GET",
            "http://example.com/api",
            params=[("q", "1")],
            headers={"Accept": "*/*"},
        ).prepare()
        Printer("none").print_request_headers(prepared)
        out = capsys.readouterr().out
        assert out.startswith("GET /api?q=1 HTTP/1.1\n")
        assert "Accept: */*" in out

    def test_root_path(self, capsys):
        prepared = requests.Request("GET", "http://example.com").prepare()
        Printer("none").print_request_headers(prepared)
        assert capsys.readouterr().out.startswith("GET / HTTP/1.1")

    def test_json_body_formatted(self, capsys):
        prepared = requests.Request("POST", "http://example.com", json={"a": 1}).prepare()
        Printer("format").print_request_body(prepared)
        assert '{\n    "a": 1\n}' in capsys.readouterr().out

    def test_binary_body(self, capsys):
        prepared = requests.Request("POST", "http://example.com", data=b"\x00\x01").prepare()
        Printer("none").print_request_body(prepared)
        assert "binary data not shown" in capsys.readouterr().out

    def test_no_body(self, capsys):
        prepared = requests.Request("GET", "http://example.com").prepare()
        Printer("none").print_request_body(prepared)
        assert capsys.readouterr().out == ""


class TestPrintResponse:
    def test_status_line(self, capsys):
        response = make_response(404, body="nope", headers={"X-Id": "7"}, reason="Not Found")
        Printer("all").print_response_headers(response)
        out = capsys.readouterr().out
        assert "HTTP/1.1 404 Not Found" in out
        assert "X-Id: 7" in out

    def test_json_formatted(self, capsys):
        Printer("format").print_response_body(make_response(body={"name": "bob"}))
        assert capsys.readouterr().out == '{\n    "name": "bob"\n}\n'

    def test_json_left_alone_without_format(self, capsys):
        Printer("none").print_response_body(make_response(body={"name": "bob"}))
        assert capsys.readouterr().out == '{"name": "bob"}\n'

    def test_invalid_json_printed_raw(self, capsys):
        response = make_response(body="{oops", headers={"Content-Type": "application/json"})
        Printer("format").print_response_body(response)
        assert capsys.readouterr().out == "{oops\n"

    def test_binary_note(self, capsys):
        response = make_response(body=b"\x89PNG", headers={"Content-Type": "image/png"})
        Printer("all").print_response_body(response)
        assert capsys.readouterr().out == BINARY_NOTE + "\n"

    def test_undecodable_body(self):
        response = make_response(body=b"\xff\xfe", headers={"Content-Type": "application/json"})
        with pytest.raises(DecodeError):
            Printer("none").print_response_body(response)

    def test_declared_encoding_used(self, capsys):
        response = make_response(
            body="café".encode("latin-1"),
            headers={"Content-Type": "text/plain"},
            encoding="latin-1",
        )
        Printer("none").print_response_body(response)
        assert capsys.readouterr().out == "café\n"

    def test_empty_body(self, capsys):
        Printer("none").print_response_body(make_response(body=b""))
        assert capsys.readouterr().out == ""


class TestIsBinary:
    def test_nul_byte(self):
        assert is_binary(b"a\0b")

    def test_text_types(self):
        assert not is_binary(b"x", "text/html; charset=utf-8")
        assert not is_binary(b"{}", "application/problem+json")

    def test_no_content_type(self):
        assert not is_binary(b"hello")

    def test_octet_stream(self):
        assert is_binary(b"hello", "application/octet-stream")
