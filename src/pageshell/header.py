"""Header bar cells for the page shell.

Every cell is a ``<td>`` inside the ``#ui_header`` table. A cell either marks
the current location (class ``active``, not clickable) or links elsewhere.
The menu toggles call ``UIMenuShow`` from ``/res/js/ui.js``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .webapp import esc


@dataclass(frozen=True)
class CurrentCell:
    pass


@dataclass(frozen=True)
class LinkedCell:
    url: str


CellTarget = CurrentCell | LinkedCell


def cell_target(url: str | None) -> CellTarget:
    return LinkedCell(url) if url else CurrentCell()


def _icon_style(src: str) -> str:
    return f"background-image: url(&quot;{esc(src)}&quot;)"


def glyph_cell(src: str) -> str:
    return f"<td><div class='icon' style='{_icon_style(src)}'></div></td>"


def icon_cell(src: str, target: CellTarget) -> str:
    if isinstance(target, LinkedCell):
        onclick = f"window.location.href=&quot;{esc(target.url)}&quot;"
        return (
            f"<td><div class='icon' onClick='{onclick}' "
            f"style='cursor: pointer; {_icon_style(src)}'></div></td>"
        )
    return f"<td class='active'><div class='icon' style='{_icon_style(src)}'></div></td>"


def label_cell(label: str, target: CellTarget) -> str:
    if isinstance(target, LinkedCell):
        return f"<td><a href='{esc(target.url)}'>{esc(label)}</a></td>"
    return f"<td class='active'>{esc(label)}</td>"


def menu_toggle_cell() -> str:
    return (
        "<td id='ui_menu'><button class='ui_menu_button' type='button' "
        "onClick='UIMenuShow(&quot;ui_menu_content&quot;)'>&nbsp;</button></td>"
    )


def user_toggle_cell(display_name: str) -> str:
    return (
        "<td id='ui_user'><button class='ui_menu_button' type='button' "
        f"onClick='UIMenuShow(&quot;ui_usermenu_content&quot;)'>{esc(display_name)}</button></td>"
    )


LOGOUT_MENU_ENTRY = "<hr/><a href='/logout'>Log Out</a>"


def header_bar(cells: str, *, display_name: str = "") -> str:
    """Wrap accumulated cells in the header table.

    With a display name the bar gains the menu toggle in front and the user
    menu toggle at the end.
    """
    out = "<table id='ui_header'><tr>"
    if display_name:
        out += menu_toggle_cell()
    out += cells
    if display_name:
        out += user_toggle_cell(display_name)
    out += "</tr></table>"
    return out
