"""Per-request page builder.

A handler receives one ``Page``, accumulates head resources, header cells,
content and menu entries on it, then finishes with exactly one terminal call
(``render*``, ``render_file``, ``redirect`` or ``output``). Calling a terminal
operation twice writes a second body into the same response; callers must not
do that.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from starlette.datastructures import FormData, UploadFile
from starlette.requests import Request

from . import auth
from .auth import HandlerParams
from .header import (
    LOGOUT_MENU_ENTRY,
    cell_target,
    glyph_cell,
    header_bar,
    icon_cell,
    label_cell,
)
from .markup import contains, parse_elements
from .templates import render as render_template
from .webapp import ResponseWriter, content_type, esc, icon, script, stylesheet, url_path

logger = logging.getLogger(__name__)

UI_TEMPLATE_ID = "ui.html"
DEFAULT_STYLESHEET = "/res/css/ui.css"
DEFAULT_SCRIPT = "/res/js/ui.js"

# Multipart bodies are always parsed with this in-memory ceiling, whatever
# size the handler asks for.
MULTIPART_MAX_MEMORY = 32 << 20

_INT_RE = re.compile(r"[+-]?[0-9]+")
# No surrounding whitespace and no "_" separators, unlike float().
_NUM_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


class FormFileError(LookupError):
    pass


class Page:
    def __init__(
        self,
        writer: ResponseWriter,
        request: Request,
        params: HandlerParams,
        title: str,
        icon_path: str = "",
        prefix: str = "",
    ) -> None:
        head = f"<title>{esc(title)}</title>"
        if icon_path:
            head += icon(icon_path)
        head += stylesheet(DEFAULT_STYLESHEET)
        head += script(DEFAULT_SCRIPT)

        self.head = head
        self.content = ""
        self.menu = ""
        self._header = ""
        self.writer = writer
        self.request = request
        self.params = params
        self.prefix = prefix
        self._form: Optional[FormData] = None

    # --- head / header accumulation ---

    def add_header_glyph(self, src: str) -> None:
        self._header += glyph_cell(src)

    def add_header_icon(self, src: str, url: str = "") -> None:
        self._header += icon_cell(src, cell_target(url))

    def add_header_label(self, label: str, url: str = "") -> None:
        self._header += label_cell(label, cell_target(url))

    def add_script(self, url: str) -> None:
        """Append a script tag to head unless one with the same src is present.

        Raises MarkupError (leaving head untouched) if head cannot be parsed.
        """
        elements = parse_elements(self.head)
        if contains(elements, "script", src=url):
            return
        self.head += script(url)

    def add_stylesheet(self, url: str) -> None:
        """Append a stylesheet link to head unless the same href is linked."""
        elements = parse_elements(self.head)
        if contains(elements, "link", rel="stylesheet", href=url):
            return
        self.head += stylesheet(url)

    # --- rendering ---

    def display_name(self) -> str:
        profile = auth.user(self.params.username)
        name = f"{profile['first_name']} {profile['last_name']}"
        if not name.strip():
            return self.params.username
        return name

    def render(self) -> None:
        if self.params.username:
            self.menu += LOGOUT_MENU_ENTRY
            header = header_bar(self._header, display_name=self.display_name())
        else:
            header = header_bar(self._header)

        render_template(
            self.writer,
            UI_TEMPLATE_ID,
            {
                "head": self.head,
                "header": header,
                "content": self.content,
                "menu": self.menu,
            },
        )

    def render_info(self, message: str, url: str = "") -> None:
        # message is trusted markup; callers escape user input themselves
        self.content = "<div class='ui_modal'><div class='ui_modal_content'>"
        if url:
            self.content += f"<span class='ui_modal_close'><a href='{esc(url)}'>&nbsp;</a></span>"
        self.content += f"<p>{message}</p></div></div>"
        self.render()

    def render_error(self, message: str, url: str = "") -> None:
        logger.error("render_error: %s", message)
        self.render_info(message, url)

    def render_question(self, message: str, url_yes: str, url_no: str) -> None:
        self.render_info(
            message
            + "<hr/><div style='text-align: right'>"
            + f"<a href='{esc(url_yes)}'>Yes</a>&nbsp;<a href='{esc(url_no)}'>No</a></div>",
        )

    # --- raw output ---

    def output(self, content: str | bytes) -> None:
        self.writer.write(content)

    def render_file(self, filename: str | Path) -> None:
        mime_type = content_type(str(filename))
        try:
            data = Path(filename).read_bytes()
        except OSError:
            data = None
        if data is None or not mime_type:
            self.writer.write_header(404)
            self.writer.set_header("content-type", "text/plain; charset=utf-8")
            self.writer.write("Not Found")
            return
        self.writer.set_header("content-type", mime_type)
        self.writer.write(data)

    def redirect(self, url: str) -> None:
        self.writer.redirect(url)

    # --- query parameters ---

    def param(self, name: str) -> str:
        values = self.request.query_params.getlist(name)
        return values[0] if values else ""

    def param_exists(self, name: str) -> bool:
        # An empty value counts as absent: "?x=" behaves like no "x" at all.
        values = self.request.query_params.getlist(name)
        return bool(values) and values[0] != ""

    def param_int(self, name: str) -> int:
        value = self.param(name)
        if not _INT_RE.fullmatch(value):
            return 0
        return int(value)

    def param_num(self, name: str) -> float:
        value = self.param(name).replace(",", "")
        if not _NUM_RE.fullmatch(value):
            return 0.0
        return float(value)

    # --- request body ---

    async def parse_form(self) -> None:
        if self._form is None:
            self._form = await self.request.form(max_part_size=MULTIPART_MAX_MEMORY)

    async def parse_multipart_form(self, max_size: int = MULTIPART_MAX_MEMORY) -> None:
        # max_size is accepted for call-site compatibility; the ceiling is fixed.
        await self.parse_form()

    def post_param(self, name: str) -> str:
        # Body values win over query values, like a merged form.
        if self._form is not None:
            for value in self._form.getlist(name):
                if isinstance(value, str):
                    return value
        return self.param(name)

    async def form_file(self, key: str) -> UploadFile:
        await self.parse_multipart_form(MULTIPART_MAX_MEMORY)
        values = self._form.getlist(key) if self._form is not None else []
        if not values:
            raise FormFileError(f"no file uploaded as {key!r}")
        value = values[0]
        if not isinstance(value, UploadFile):
            raise FormFileError(f"form field {key!r} is not a file upload")
        if not value.filename:
            # browsers send an empty part for an untouched file input
            raise FormFileError(f"no file uploaded as {key!r}")
        return value

    # --- identity / session ---

    def has_permission(self, permission: str) -> bool:
        return auth.has_permission(self.params.username, permission)

    def session_values_read(self, *keys: str) -> str:
        return auth.session_values_read(self.params, *keys)

    def session_values_write(self, key: str, value: str) -> None:
        auth.session_values_write(self.params, self.writer, key, value)

    def username(self) -> str:
        return self.params.username

    def method(self) -> str:
        return self.request.method

    def sub_path(self, index: int) -> str:
        return url_path(self.request, self.prefix, index)
