"""BeautifulSoup adapter for rendered slide trees.

The renderer's output is an HTML document in which every matchable element
carries ``data-id`` and/or ``data-auto-animate`` and its measured geometry,
either inline (``style="left: 10px; top: 20px; width: ...; height: ..."``)
or as ``data-rect="left,top,width,height"``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from bs4 import BeautifulSoup, Tag

from .models import ID_ATTR, MARKER_ATTR, Rect

logger = logging.getLogger(__name__)

MATCHABLE_SELECTOR = f"[{MARKER_ATTR}], [{ID_ATTR}]"

_PX_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)(?:px)?\s*$")


def parse_style(style: str) -> dict[str, str]:
    """Split an inline ``style`` attribute into an ordered property dict."""
    result: dict[str, str] = {}
    for decl in style.split(";"):
        if ":" not in decl:
            continue
        name, value = decl.split(":", 1)
        name = name.strip().lower()
        if name:
            result[name] = value.strip()
    return result


def format_style(props: dict[str, str]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in props.items())


def _to_camel(name: str) -> str:
    head, *rest = name.split("-")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _px(value: str | None) -> float:
    if not value:
        return 0.0
    m = _PX_RE.match(value)
    return float(m.group(1)) if m else 0.0


class SoupNode:
    """Render-tree node backed by a bs4 ``Tag``."""

    def __init__(self, tag: Tag) -> None:
        self.tag = tag

    def __repr__(self) -> str:
        return f"SoupNode(<{self.tag.name}> {self.identity!r})"

    @property
    def key(self) -> int:
        return id(self.tag)

    @property
    def identity(self) -> str | None:
        return self.tag.get(ID_ATTR) or self.tag.get("id") or None

    @property
    def text(self) -> str:
        return self.tag.get_text()

    @property
    def tag_name(self) -> str:
        return self.tag.name.upper()

    @property
    def classes(self) -> list[str]:
        value = self.tag.get("class") or []
        if isinstance(value, str):
            value = value.split()
        return list(value)

    @property
    def dataset(self) -> dict[str, str]:
        return {
            _to_camel(name[len("data-"):]): value if isinstance(value, str) else " ".join(value)
            for name, value in self.tag.attrs.items()
            if name.startswith("data-")
        }

    def rect(self) -> Rect:
        """Read the element's geometry now; nothing is cached."""
        raw = self.tag.get("data-rect")
        if raw:
            parts = [p.strip() for p in raw.split(",")]
            if len(parts) == 4:
                try:
                    return Rect(*(float(p) for p in parts))
                except ValueError:
                    logger.debug("Unparseable data-rect %r on %r", raw, self)
        style = parse_style(self.tag.get("style", ""))
        return Rect(
            _px(style.get("left")),
            _px(style.get("top")),
            _px(style.get("width")),
            _px(style.get("height")),
        )

    def get_style(self, name: str) -> str:
        return parse_style(self.tag.get("style", "")).get(name, "")

    def set_style(self, name: str, value: str) -> None:
        """Set one inline style property; an empty value removes it."""
        props = parse_style(self.tag.get("style", ""))
        if value:
            props[name] = value
        else:
            props.pop(name, None)
        if props:
            self.tag["style"] = format_style(props)
        elif "style" in self.tag.attrs:
            del self.tag["style"]


def select_matchable(root: Tag) -> list[SoupNode]:
    """Matchable descendants of *root* in document order."""
    return [SoupNode(tag) for tag in root.select(MATCHABLE_SELECTOR)]


def load_render(path: Path | str) -> BeautifulSoup:
    with open(path, encoding="utf-8") as f:
        return BeautifulSoup(f.read(), "html.parser")


def find_slide_root(soup: BeautifulSoup, index: int) -> Tag | None:
    """The container marked ``data-slide-index="<index>"``, if rendered."""
    return soup.find(attrs={"data-slide-index": str(index)})
