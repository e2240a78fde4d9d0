"""Markup scanning used to keep head resources unique.

Only the element structure matters here: tag names and attribute values.
Text nodes, comments and nesting are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup


class MarkupError(ValueError):
    """Raised when markup cannot be parsed into elements."""


@dataclass(frozen=True)
class Element:
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)

    def attr(self, name: str) -> str:
        return self.attributes.get(name, "")


def parse_elements(markup: str) -> List[Element]:
    """Parse markup into a flat, document-ordered list of elements.

    Attribute values are kept as plain strings (``rel='stylesheet icon'`` stays
    one value) so callers can compare them exactly.
    """
    try:
        soup = BeautifulSoup(markup or "", "html.parser", multi_valued_attributes=None)
    except ParserRejectedMarkup as e:
        raise MarkupError(f"cannot parse markup: {e}") from e

    return [
        Element(tag=el.name, attributes={k: str(v) for k, v in el.attrs.items()})
        for el in soup.find_all(True)
    ]


def contains(elements: List[Element], tag: str, **attributes: str) -> bool:
    for el in elements:
        if el.tag != tag:
            continue
        if all(el.attr(k) == v for k, v in attributes.items()):
            return True
    return False
