"""Pytest fixtures for pageshell tests."""

import hashlib

import pytest
from starlette.requests import Request

from pageshell import page as page_module
from pageshell.auth import HandlerParams
from pageshell.page import Page
from pageshell.webapp import ResponseWriter

SECRET = "test-secret"


def sha256(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


USERS_YAML = f"""
alice:
  first_name: Alice
  last_name: Liddell
  password_sha256: {sha256("wonderland")}
  permissions: [reports, admin]
bob:
  password_sha256: {sha256("builder")}
  permissions: reports
"""


@pytest.fixture
def users_file(tmp_path, monkeypatch):
    """User directory on disk plus a session secret, wired through the environment."""
    path = tmp_path / "users.yaml"
    path.write_text(USERS_YAML, encoding="utf-8")
    monkeypatch.setenv("PAGESHELL_USERS_FILE", str(path))
    monkeypatch.setenv("PAGESHELL_SECRET", SECRET)
    return path


def make_request(path: str = "/", query: str = "", method: str = "GET") -> Request:
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "root_path": "",
        "query_string": query.encode("utf-8"),
        "headers": [],
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 50000),
    }
    return Request(scope)


@pytest.fixture
def make_page(users_file):
    """Factory building a Page around a fresh ResponseWriter."""

    def _make(
        title: str = "Test",
        icon: str = "",
        username: str = "",
        query: str = "",
        path: str = "/",
        prefix: str = "",
        method: str = "GET",
    ) -> Page:
        params = HandlerParams(username=username, issued_at=0)
        return Page(
            ResponseWriter(),
            make_request(path=path, query=query, method=method),
            params,
            title,
            icon,
            prefix=prefix,
        )

    return _make


@pytest.fixture
def rendered(monkeypatch):
    """Record the fields every render hands to the template layer."""
    calls = []
    real = page_module.render_template

    def _spy(writer, template_id, fields):
        calls.append({"template_id": template_id, **fields})
        real(writer, template_id, fields)

    monkeypatch.setattr(page_module, "render_template", _spy)
    return calls
