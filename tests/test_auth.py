"""Tests for session cookies and the user directory."""

import time

import pytest

from pageshell import auth
from pageshell.auth import HandlerParams, decode_session, encode_session
from pageshell.webapp import ResponseWriter


def test_session_round_trip(users_file):
    now = int(time.time())
    sid = encode_session(HandlerParams(username="alice", values={"theme": "dark"}, issued_at=now))
    params = decode_session(sid)
    assert params.username == "alice"
    assert params.values == {"theme": "dark"}
    assert params.issued_at == now


@pytest.mark.parametrize("value", [None, "", "garbage", "abc.def", "a.b.c"])
def test_invalid_cookie_is_anonymous(users_file, value):
    assert decode_session(value).username == ""


def test_forged_signature_is_anonymous(users_file):
    sid = encode_session(HandlerParams(username="alice", issued_at=int(time.time())))
    payload, sig = sid.split(".", 1)
    forged = payload + "." + ("0" * len(sig))
    assert decode_session(forged).username == ""


def test_other_secret_is_anonymous(users_file, monkeypatch):
    sid = encode_session(HandlerParams(username="alice", issued_at=int(time.time())))
    monkeypatch.setenv("PAGESHELL_SECRET", "another-secret")
    assert decode_session(sid).username == ""


def test_expired_session_is_anonymous(users_file, monkeypatch):
    monkeypatch.setenv("PAGESHELL_SESSION_TTL", "600")
    sid = encode_session(HandlerParams(username="alice", issued_at=int(time.time()) - 601))
    assert decode_session(sid).username == ""


def test_future_session_is_anonymous(users_file):
    sid = encode_session(HandlerParams(username="alice", issued_at=int(time.time()) + 3600))
    assert decode_session(sid).username == ""


def test_sessions_disabled_without_secret(users_file, monkeypatch):
    sid = encode_session(HandlerParams(username="alice", issued_at=int(time.time())))
    monkeypatch.delenv("PAGESHELL_SECRET")
    assert decode_session(sid).username == ""
    with pytest.raises(auth.SessionError):
        auth.session_values_write(HandlerParams(username="alice"), ResponseWriter(), "k", "v")


def test_user_profile(users_file):
    assert auth.user("alice") == {"first_name": "Alice", "last_name": "Liddell"}
    assert auth.user("bob") == {"first_name": "", "last_name": ""}
    assert auth.user("nobody") == {"first_name": "", "last_name": ""}


def test_users_file_missing(tmp_path, monkeypatch):
    monkeypatch.setenv("PAGESHELL_USERS_FILE", str(tmp_path / "absent.yaml"))
    assert auth.user("alice") == {"first_name": "", "last_name": ""}
    assert not auth.has_permission("alice", "admin")


def test_users_file_nested_under_users_key(tmp_path, monkeypatch):
    path = tmp_path / "users.yaml"
    path.write_text("users:\n  dana:\n    first_name: Dana\n    permissions: [ops]\n", encoding="utf-8")
    monkeypatch.setenv("PAGESHELL_USERS_FILE", str(path))
    assert auth.user("dana")["first_name"] == "Dana"
    assert auth.has_permission("dana", "ops")


def test_users_file_must_be_mapping(tmp_path, monkeypatch):
    path = tmp_path / "users.yaml"
    path.write_text("- alice\n- bob\n", encoding="utf-8")
    monkeypatch.setenv("PAGESHELL_USERS_FILE", str(path))
    with pytest.raises(ValueError, match="mapping"):
        auth.user("alice")


def test_permissions(users_file):
    assert auth.has_permission("alice", "admin")
    assert auth.has_permission("bob", "reports")
    assert not auth.has_permission("bob", "admin")
    assert not auth.has_permission("", "reports")


def test_check_password(users_file):
    assert auth.check_password("alice", "wonderland")
    assert not auth.check_password("alice", "wrong")
    assert not auth.check_password("nobody", "wonderland")


def test_session_values_two_key_form(users_file):
    params = HandlerParams(username="alice", values={"prefs.lang": "en", "prefs": "x"})
    assert auth.session_values_read(params, "prefs") == "x"
    assert auth.session_values_read(params, "prefs", "lang") == "en"
    assert auth.session_values_read(params, "prefs", "missing") == ""
    assert auth.session_values_read(params) == ""
