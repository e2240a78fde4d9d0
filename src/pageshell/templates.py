from __future__ import annotations

import re
from typing import Mapping

from .webapp import HTML_CONTENT_TYPE, ResponseWriter

# Page templates are plain strings with __FIELD__ placeholders, filled by
# string replacement. Field values are trusted HTML: escaping happens where
# the fragments are built, never here.
#
# Keep the markup conservative (iOS Safari) and let /res/css/ui.css carry the
# styling so every page shares it.


_PLACEHOLDER_RE = re.compile(r"__([A-Z]+)__")


class TemplateNotFound(LookupError):
    pass


UI_TEMPLATE = """<!doctype html>
<html>
<head>
  <meta charset='utf-8'/>
  <meta name='viewport' content='width=device-width, initial-scale=1'/>
  __HEAD__
</head>
<body>
  <div class='ui_bar'>__HEADER__</div>
  <div id='ui_menu_content' class='ui_menu_content'>__MENU__</div>
  <div id='ui_content'>__CONTENT__</div>
</body>
</html>"""


TEMPLATES: dict[str, str] = {
    "ui.html": UI_TEMPLATE,
}


def format_template(template_id: str, fields: Mapping[str, str]) -> str:
    try:
        out = TEMPLATES[template_id]
    except KeyError:
        raise TemplateNotFound(template_id) from None
    # One pass, so a placeholder-like token inside a field value stays literal.
    values = {name.upper(): value or "" for name, value in fields.items()}
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), out)


def render(writer: ResponseWriter, template_id: str, fields: Mapping[str, str]) -> None:
    body = format_template(template_id, fields)
    writer.set_header("content-type", HTML_CONTENT_TYPE)
    writer.write(body)
