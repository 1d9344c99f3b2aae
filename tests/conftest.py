"""Shared fixtures for ht tests."""

import json
import os

import pytest
import requests
from click.testing import CliRunner
from requests.structures import CaseInsensitiveDict

from ht import core


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_project(tmp_path):
    """Run the test inside an empty temporary directory."""
    original = os.getcwd()
    os.chdir(tmp_path)
    yield tmp_path
    os.chdir(original)


@pytest.fixture
def global_ht_dir(tmp_path, monkeypatch):
    """Override the global ~/.ht directory to a temp location."""
    fake_global = tmp_path / "fake_home" / ".ht"
    fake_global.mkdir(parents=True)
    monkeypatch.setattr(core, "GLOBAL_DIR", fake_global)
    monkeypatch.setattr(core, "GLOBAL_CONFIG", fake_global / "config.yaml")
    return fake_global


def make_response(
    status_code=200,
    body=None,
    headers=None,
    url="http://example.com/",
    reason="OK",
    encoding=None,
):
    """Factory for already-drained requests.Response objects."""
    headers = dict(headers or {})
    if isinstance(body, dict | list):
        content = json.dumps(body).encode()
        headers.setdefault("Content-Type", "application/json")
    elif isinstance(body, str):
        content = body.encode()
    else:
        content = body or b""

    r = requests.Response()
    r.status_code = status_code
    r.reason = reason
    r.url = url
    r.headers = CaseInsensitiveDict(headers)
    r.encoding = encoding
    r._content = content
    r._content_consumed = True
    return r
