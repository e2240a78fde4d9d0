from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

import yaml
from fastapi import FastAPI, Form, Request
from fastapi.responses import RedirectResponse

from . import config
from .webapp import ResponseWriter, esc

logger = logging.getLogger(__name__)

SESSION_COOKIE = "ps_sid"

LOGIN_FORM = """
<form method='post' action='/login' class='ui_form'>
  <label for='username'>Username</label>
  <input id='username' name='username' type='text' autocomplete='username' autofocus required />
  <label for='password'>Password</label>
  <input id='password' name='password' type='password' autocomplete='current-password' required />
  <button type='submit'>Log In</button>
</form>
"""


class SessionError(RuntimeError):
    pass


@dataclass
class HandlerParams:
    """Identity and session values resolved for one request."""

    username: str = ""
    values: Dict[str, str] = field(default_factory=dict)
    issued_at: int = 0


def _enabled() -> bool:
    return bool(config.secret())


def _sign(payload: str) -> str:
    key = config.secret().encode("utf-8")
    return hmac.new(key, payload.encode("utf-8"), hashlib.sha256).hexdigest()


def encode_session(params: HandlerParams) -> str:
    # Stateless cookie: <base64url(json)>.<hmac>
    raw = json.dumps(
        {"u": params.username, "ts": params.issued_at, "v": params.values},
        separators=(",", ":"),
        sort_keys=True,
    )
    payload = base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")
    return f"{payload}.{_sign(payload)}"


def decode_session(value: str | None) -> HandlerParams:
    """Resolve a session cookie; anything invalid, expired or forged is anonymous."""
    if not value or not _enabled():
        return HandlerParams()
    try:
        payload, sig = value.split(".", 1)
        if not hmac.compare_digest(sig.encode("utf-8"), _sign(payload).encode("utf-8")):
            return HandlerParams()
    except ValueError:
        return HandlerParams()

    try:
        padded = payload + "=" * (-len(payload) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        username = str(data["u"] or "")
        ts = int(data["ts"])
        values = {str(k): str(v) for k, v in dict(data.get("v") or {}).items()}
    except (ValueError, KeyError, TypeError):
        return HandlerParams()

    now = int(time.time())
    if ts > now + 60:
        return HandlerParams()
    if (now - ts) > config.session_ttl_sec():
        return HandlerParams()

    return HandlerParams(username=username, values=values, issued_at=ts)


def handler_params(request: Request) -> HandlerParams:
    return decode_session(request.cookies.get(SESSION_COOKIE))


def _set_session_cookie(writer: ResponseWriter, params: HandlerParams) -> None:
    writer.set_cookie(
        key=SESSION_COOKIE,
        value=encode_session(params),
        max_age=config.session_ttl_sec(),
        httponly=True,
        secure=True,
        samesite="lax",
        path="/",
    )


# --- user directory ---


def _load_users() -> Dict[str, Dict[str, Any]]:
    path = config.users_file()
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    if raw is None:
        return {}
    if isinstance(raw, dict) and isinstance(raw.get("users"), dict):
        raw = raw["users"]
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: users must be a YAML mapping of username -> profile")
    return {str(k): (v if isinstance(v, dict) else {}) for k, v in raw.items()}


def user(username: str) -> Dict[str, str]:
    """Profile fields for a user; empty strings when unknown."""
    rec = _load_users().get(username) or {}
    return {
        "first_name": str(rec.get("first_name") or ""),
        "last_name": str(rec.get("last_name") or ""),
    }


def user_permissions(username: str) -> List[str]:
    rec = _load_users().get(username) or {}
    perms = rec.get("permissions") or []
    if isinstance(perms, str):
        perms = [perms]
    return [str(p) for p in perms]


def has_permission(username: str, permission: str) -> bool:
    if not username:
        return False
    return permission in user_permissions(username)


def password_digest(password: str) -> str:
    return hashlib.sha256((password or "").encode("utf-8")).hexdigest().lower()


def check_password(username: str, password: str) -> bool:
    rec = _load_users().get(username) or {}
    expected = str(rec.get("password_sha256") or "").strip().lower()
    if len(expected) != 64:
        return False
    return hmac.compare_digest(password_digest(password), expected)


# --- session values ---


def _session_key(keys: tuple[str, ...]) -> str:
    return ".".join(keys)


def session_values_read(params: HandlerParams, *keys: str) -> str:
    if not keys:
        return ""
    return params.values.get(_session_key(keys[:2]), "")


def session_values_write(params: HandlerParams, writer: ResponseWriter, key: str, value: str) -> None:
    if not params.username or not _enabled():
        raise SessionError("no authenticated session")
    params.values[key] = value
    _set_session_cookie(writer, params)


def login(writer: ResponseWriter, username: str) -> HandlerParams:
    params = HandlerParams(username=username, issued_at=int(time.time()))
    _set_session_cookie(writer, params)
    return params


def register_session_auth(app: FastAPI) -> None:
    # Imported here: the page module depends on this one for identity.
    from .page import Page

    @app.get("/login")
    def login_get(request: Request):
        writer = ResponseWriter()
        pg = Page(writer, request, handler_params(request), "Log In")
        if pg.username():
            pg.redirect("/")
            return writer.to_response()
        pg.add_header_label("Log In")
        err = pg.param("err")
        pg.content = LOGIN_FORM
        if err:
            pg.content += f"<div class='ui_error'>{esc(err)}</div>"
        if not _enabled():
            pg.content += "<div class='ui_muted'>Sessions are disabled (PAGESHELL_SECRET is not set).</div>"
        pg.render()
        resp = writer.to_response()
        resp.headers["Cache-Control"] = "no-store"
        return resp

    @app.post("/login")
    def login_post(username: str = Form(default=""), password: str = Form(default="")):
        if not _enabled():
            return RedirectResponse(url="/login", status_code=302)

        username = (username or "").strip()
        if not username or not check_password(username, password):
            logger.warning("rejected login for %r", username)
            time.sleep(0.35)
            return RedirectResponse(url="/login?err=Wrong%20username%20or%20password", status_code=302)

        writer = ResponseWriter()
        login(writer, username)
        writer.redirect("/")
        resp = writer.to_response()
        resp.headers["Cache-Control"] = "no-store"
        return resp

    @app.get("/logout")
    def logout():
        resp = RedirectResponse(url="/", status_code=302)
        resp.headers["Cache-Control"] = "no-store"
        resp.delete_cookie(SESSION_COOKIE, path="/")
        return resp
