"""Classify matched pairs into motion kinds from their geometry."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from .matching import MatchResult
from .models import (
    FADE_IN,
    FADE_OUT,
    MOVE,
    SCALE,
    TRANSFORM,
    ElementDescriptor,
    Rect,
)

logger = logging.getLogger(__name__)

SCALE_AREA_RATIO = 0.2
MOVE_DISTANCE_PX = 50.0


def area_delta_ratio(from_rect: Rect, to_rect: Rect) -> float:
    if from_rect.area == 0:
        return 0.0
    return abs(to_rect.area - from_rect.area) / from_rect.area


def classify_motion(from_rect: Rect, to_rect: Rect) -> str:
    """Pick the motion kind for a matched pair; the first rule that fits wins."""
    if area_delta_ratio(from_rect, to_rect) > SCALE_AREA_RATIO:
        return SCALE
    dx = to_rect.left - from_rect.left
    dy = to_rect.top - from_rect.top
    if math.hypot(dx, dy) > MOVE_DISTANCE_PX:
        return MOVE
    return TRANSFORM


@dataclass
class PlannedMotion:
    kind: str
    previous: Optional[ElementDescriptor] = None
    current: Optional[ElementDescriptor] = None
    dx: float = 0.0
    dy: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    similarity: Optional[float] = None

    @property
    def source(self) -> ElementDescriptor:
        """The descriptor whose node gets animated."""
        return self.previous if self.previous is not None else self.current


@dataclass
class TransitionPlan:
    motions: list[PlannedMotion] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.motions)

    def __iter__(self):
        return iter(self.motions)

    def of_kind(self, kind: str) -> list[PlannedMotion]:
        return [m for m in self.motions if m.kind == kind]


def _ratio(to: float, frm: float) -> float:
    return to / frm if frm else 1.0


def plan_transition(
    result: MatchResult,
    measure: Callable[[int], Rect | None] | None = None,
) -> TransitionPlan:
    """Turn a match result into motions, measuring geometry now.

    *measure* resolves a descriptor handle to its current rect; when it is
    missing or returns None the captured rect is used instead.
    """

    def rect_of(desc: ElementDescriptor) -> Rect:
        rect = measure(desc.handle) if measure is not None else None
        return rect if rect is not None else desc.rect

    plan = TransitionPlan()
    for pair in result.matched:
        from_rect = rect_of(pair.previous)
        to_rect = rect_of(pair.current)
        pair.motion = classify_motion(from_rect, to_rect)
        plan.motions.append(
            PlannedMotion(
                kind=pair.motion,
                previous=pair.previous,
                current=pair.current,
                dx=to_rect.left - from_rect.left,
                dy=to_rect.top - from_rect.top,
                scale_x=_ratio(to_rect.width, from_rect.width),
                scale_y=_ratio(to_rect.height, from_rect.height),
                similarity=pair.similarity,
            )
        )
    plan.motions.extend(PlannedMotion(kind=FADE_IN, current=desc) for desc in result.new)
    plan.motions.extend(PlannedMotion(kind=FADE_OUT, previous=desc) for desc in result.removed)

    logger.debug(
        "Planned %d motion(s): %s",
        len(plan),
        ", ".join(f"{k}={len(plan.of_kind(k))}" for k in (MOVE, SCALE, TRANSFORM, FADE_IN, FADE_OUT)),
    )
    return plan
