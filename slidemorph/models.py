"""Shared data models and matching constants."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# Attributes the renderer uses to opt elements into cross-slide matching.
ID_ATTR = "data-id"
MARKER_ATTR = "data-auto-animate"
MARKER_KEY = "autoAnimate"

# Motion kinds
MOVE = "move"
SCALE = "scale"
TRANSFORM = "transform"
FADE_IN = "fade-in"
FADE_OUT = "fade-out"

# Keys the external parser may use for an element's reveal step.
_REVEAL_KEYS = ("revealStep", "reveal_step", "clickState")


@dataclass
class Element:
    id: str
    type: str
    content: Any = None
    reveal_step: int = 0
    auto_animate: bool = False
    auto_animate_id: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.reveal_step, bool) or not isinstance(self.reveal_step, int):
            raise ValueError(
                f"Element {self.id!r}: reveal step must be an integer, got {self.reveal_step!r}"
            )
        if self.reveal_step < 0:
            raise ValueError(
                f"Element {self.id!r}: reveal step must be >= 0, got {self.reveal_step}"
            )


@dataclass
class Slide:
    id: str
    elements: list[Element] = field(default_factory=list)
    title: str | None = None
    subtitle: str | None = None
    notes: str | None = None

    def total_steps(self) -> int:
        """Number of navigation steps on this slide (max reveal step + 1, at least 1)."""
        return max((el.reveal_step for el in self.elements), default=0) + 1


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class RevealState:
    slide_index: int
    step: int


@dataclass
class ElementDescriptor:
    """Point-in-time snapshot of one matchable element.

    ``handle`` is an opaque key into an ElementRegistry; descriptors never
    hold live nodes themselves.
    """

    handle: int
    identity: str | None
    text: str
    tag: str
    classes: frozenset[str] = frozenset()
    rect: Rect = Rect(0.0, 0.0, 0.0, 0.0)
    dataset: dict[str, str] = field(default_factory=dict)

    @property
    def has_marker(self) -> bool:
        value = self.dataset.get(MARKER_KEY)
        return value is not None and value.lower() != "false"


@dataclass
class Correspondence:
    previous: ElementDescriptor
    current: ElementDescriptor
    similarity: float
    motion: str | None = None


@dataclass
class AnimateConfig:
    enabled: bool = True
    duration_ms: int = 500
    easing: str = "ease-in-out"


def _element_from_dict(raw: dict, slide_id: str, position: int) -> Element:
    if not isinstance(raw, dict):
        raise ValueError(f"Slide {slide_id!r}: element {position} must be an object")
    reveal_step = 0
    for key in _REVEAL_KEYS:
        if key in raw:
            reveal_step = raw[key]
            break
    return Element(
        id=str(raw.get("id", f"{slide_id}-{position}")),
        type=str(raw.get("type", "text")),
        content=raw.get("content"),
        reveal_step=reveal_step,
        auto_animate=bool(raw.get("autoAnimate", False)),
        auto_animate_id=raw.get("autoAnimateId"),
    )


def load_deck(path: Path | str) -> list[Slide]:
    """Load an ordered slide list from a JSON deck file.

    The file holds either a list of slides or an object with a ``"slides"``
    key.  Each slide has an ``id``, optional ``title``/``subtitle``/``notes``
    and an ``elements`` list.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path} is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("slides")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of slides or an object with a 'slides' list")

    slides: list[Slide] = []
    for i, raw in enumerate(data):
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: slide {i} must be an object, got {type(raw).__name__}")
        slide_id = str(raw.get("id", f"slide-{i + 1}"))
        elements = [
            _element_from_dict(el, slide_id, j)
            for j, el in enumerate(raw.get("elements") or [])
        ]
        slides.append(
            Slide(
                id=slide_id,
                elements=elements,
                title=raw.get("title"),
                subtitle=raw.get("subtitle"),
                notes=raw.get("notes"),
            )
        )
        logger.debug("  Slide %s: %d element(s), %d step(s)", slide_id, len(elements), slides[-1].total_steps())

    logger.debug("Loaded %d slide(s) from %s", len(slides), path)
    return slides
