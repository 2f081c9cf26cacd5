"""Apply planned motions to live nodes as inline style changes."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Hashable

from .models import FADE_IN, FADE_OUT, MOVE, SCALE, TRANSFORM
from .planner import PlannedMotion, TransitionPlan
from .registry import ElementRegistry, node_key

logger = logging.getLogger(__name__)

# Delay between the opacity-0 write and the opacity-1 write of a fade-in, so
# the two states are never coalesced into one frame.
FADE_IN_DELAY_MS = 10

IDLE = "idle"
ANIMATING = "animating"


class TransitionExecutor:
    """Drive FLIP-style transforms and fades with timed cleanup.

    Every animation start issues a fresh generation token for the target
    node, keyed by the node itself rather than its registry handle, since a
    node that leaves and re-enters the slide is issued a new handle.
    Deferred callbacks capture the token when scheduled and do nothing if a
    newer animation has started on the same node since.
    """

    def __init__(
        self,
        registry: ElementRegistry,
        scheduler=None,
        *,
        duration_ms: int = 500,
        easing: str = "ease-in-out",
    ) -> None:
        self.registry = registry
        self.duration_ms = duration_ms
        self.easing = easing
        self._scheduler = scheduler
        # node key -> token of its running animation; finished entries are dropped
        self._tokens: dict[Hashable, int] = {}
        self._handle_keys: dict[int, Hashable] = {}
        self._last_token = 0

    def animation_state(self, handle: int) -> str:
        key = self._handle_keys.get(handle)
        return ANIMATING if key is not None and key in self._tokens else IDLE

    def execute(self, plan: TransitionPlan) -> None:
        for motion in plan:
            handle = motion.source.handle
            node = self.registry.resolve(handle)
            if node is None:
                logger.debug("Skipping %s: handle %d no longer resolves", motion.kind, handle)
                continue
            if motion.kind in (MOVE, SCALE, TRANSFORM):
                self._morph(handle, node, motion)
            elif motion.kind == FADE_IN:
                self._fade_in(handle, node)
            elif motion.kind == FADE_OUT:
                self._fade_out(handle, node)
            else:
                logger.warning("Unknown motion kind %r", motion.kind)

    # ------------------------------------------------------------------

    def _transition(self, prop: str) -> str:
        return f"{prop} {self.duration_ms}ms {self.easing}"

    def _morph(self, handle: int, node, motion: PlannedMotion) -> None:
        translate = f"translate({motion.dx:g}px, {motion.dy:g}px)"
        scale = f"scale({motion.scale_x:g}, {motion.scale_y:g})"
        if motion.kind == MOVE:
            transform = translate
        elif motion.kind == SCALE:
            transform = scale
        else:
            transform = f"{translate} {scale}"

        key, token = self._begin(handle, node)
        node.set_style("transition", self._transition("transform"))
        node.set_style("transform", transform)
        self._schedule(self.duration_ms, key, token, lambda: self._clear(node))

    def _fade_in(self, handle: int, node) -> None:
        key, token = self._begin(handle, node)
        # A node hidden by an earlier fade-out may be coming back.
        node.set_style("display", "")
        node.set_style("opacity", "0")

        def reveal() -> None:
            node.set_style("transition", self._transition("opacity"))
            node.set_style("opacity", "1")
            self._schedule(self.duration_ms, key, token, lambda: self._clear(node))

        self._schedule(FADE_IN_DELAY_MS, key, token, reveal, finishes=False)

    def _fade_out(self, handle: int, node) -> None:
        key, token = self._begin(handle, node)
        node.set_style("transition", self._transition("opacity"))
        node.set_style("opacity", "0")
        self._schedule(self.duration_ms, key, token, lambda: node.set_style("display", "none"))

    @staticmethod
    def _clear(node) -> None:
        for prop in ("transition", "transform", "opacity"):
            node.set_style(prop, "")

    def _begin(self, handle: int, node) -> tuple[Hashable, int]:
        key = node_key(node)
        if key in self._tokens:
            logger.debug("Handle %d superseded while animating", handle)
        self._last_token += 1
        self._tokens[key] = self._last_token
        self._handle_keys[handle] = key
        return key, self._last_token

    def _finish(self, key: Hashable) -> None:
        del self._tokens[key]
        for handle in [h for h, k in self._handle_keys.items() if k == key]:
            del self._handle_keys[handle]

    def _schedule(
        self,
        delay_ms: int,
        key: Hashable,
        token: int,
        callback: Callable[[], None],
        finishes: bool = True,
    ) -> None:
        if self._scheduler is None:
            self._scheduler = asyncio.get_running_loop()

        def run() -> None:
            if self._tokens.get(key) != token:
                logger.debug("Stale callback (token %d) ignored", token)
                return
            callback()
            if finishes:
                self._finish(key)

        self._scheduler.call_later(delay_ms / 1000, run)
