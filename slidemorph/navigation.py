"""Reveal-step / slide navigation state machine with autoplay."""

from __future__ import annotations

import asyncio
import logging
import math
import numbers
from typing import Callable, Sequence

from .models import Element, RevealState, Slide

logger = logging.getLogger(__name__)

DEFAULT_AUTOPLAY_INTERVAL_MS = 5000

# Host key names (as reported by KeyboardEvent.key) mapped to navigation.
KEY_BINDINGS: dict[str, tuple[str, ...]] = {
    "next": (" ", "ArrowRight"),
    "prev": ("ArrowLeft", "Backspace"),
}


class RevealStateMachine:
    """Track ``(slide_index, step)`` over an ordered slide list.

    Navigation never raises for out-of-range requests: ``next``/``prev`` at
    the ends are no-ops and ``jump`` clamps, ignoring targets that are not
    numbers.  The only rejected input is an empty slide list.

    Autoplay calls the internal advance on a self re-arming timer obtained
    from *scheduler* (anything with ``call_later(seconds, callback, *args)``,
    e.g. an asyncio event loop).  Any manual navigation stops it.
    """

    def __init__(
        self,
        slides: Sequence[Slide],
        *,
        autoplay_interval_ms: int = DEFAULT_AUTOPLAY_INTERVAL_MS,
        scheduler=None,
        on_change: Callable[[RevealState, RevealState], None] | None = None,
    ) -> None:
        self._slides: list[Slide] = []
        self._steps: list[int] = []
        self._load(slides)
        self._slide_index = 0
        self._step = 0
        self._scheduler = scheduler
        self._on_change = on_change
        self._interval_ms = DEFAULT_AUTOPLAY_INTERVAL_MS
        self._autoplay = False
        self._timer = None
        self._generation = 0
        self.set_autoplay_interval(autoplay_interval_ms)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def slides(self) -> list[Slide]:
        return list(self._slides)

    @property
    def slide_count(self) -> int:
        return len(self._slides)

    @property
    def slide_index(self) -> int:
        return self._slide_index

    @property
    def step(self) -> int:
        return self._step

    @property
    def state(self) -> RevealState:
        return RevealState(self._slide_index, self._step)

    @property
    def is_first(self) -> bool:
        return self._slide_index == 0 and self._step == 0

    @property
    def is_last(self) -> bool:
        return (
            self._slide_index == self.slide_count - 1
            and self._step == self._steps[self._slide_index] - 1
        )

    def total_steps_for_slide(self, index: int) -> int:
        return self._steps[index]

    def visible_elements(self) -> list[Element]:
        """Elements of the current slide revealed at the current step."""
        slide = self._slides[self._slide_index]
        return [el for el in slide.elements if el.reveal_step <= self._step]

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next(self) -> RevealState:
        self.stop_autoplay()
        return self._advance()

    def prev(self) -> RevealState:
        self.stop_autoplay()
        if self._step > 0:
            self._move_to(self._slide_index, self._step - 1)
        elif self._slide_index > 0:
            index = self._slide_index - 1
            self._move_to(index, self._steps[index] - 1)
        return self.state

    def jump(self, target: int) -> RevealState:
        self.stop_autoplay()
        if isinstance(target, bool) or not isinstance(target, numbers.Real):
            logger.debug("Ignoring non-numeric jump target %r", target)
            return self.state
        if math.isnan(target):
            logger.debug("Ignoring NaN jump target")
            return self.state
        last = self.slide_count - 1
        if math.isinf(target):
            index = last if target > 0 else 0
        else:
            index = min(max(int(target), 0), last)
        if index != target:
            logger.debug("Jump target %s clamped to %d", target, index)
        self._move_to(index, 0)
        return self.state

    def reset(self) -> RevealState:
        self.stop_autoplay()
        self._move_to(0, 0)
        return self.state

    def handle_key(self, key: str) -> bool:
        """Dispatch a host key name; returns True when the key is bound."""
        if key in KEY_BINDINGS["next"]:
            self.next()
            return True
        if key in KEY_BINDINGS["prev"]:
            self.prev()
            return True
        return False

    def set_slides(self, slides: Sequence[Slide]) -> RevealState:
        """Replace the slide list, recompute step totals and reset to step 0."""
        self._load(slides)
        index = min(self._slide_index, self.slide_count - 1)
        self._move_to(index, 0, notify=True)
        return self.state

    def _load(self, slides: Sequence[Slide]) -> None:
        slides = list(slides)
        if not slides:
            raise ValueError("A presentation needs at least one slide.")
        self._slides = slides
        self._steps = [slide.total_steps() for slide in slides]
        logger.debug("Loaded %d slide(s), steps per slide: %s", len(slides), self._steps)

    def _advance(self) -> RevealState:
        if self._step < self._steps[self._slide_index] - 1:
            self._move_to(self._slide_index, self._step + 1)
        elif self._slide_index < self.slide_count - 1:
            self._move_to(self._slide_index + 1, 0)
        return self.state

    def _move_to(self, slide_index: int, step: int, notify: bool = False) -> None:
        old = self.state
        self._slide_index = slide_index
        self._step = step
        new = self.state
        if notify or new != old:
            logger.debug("Navigation %s -> %s", old, new)
            if self._on_change is not None:
                self._on_change(old, new)

    # ------------------------------------------------------------------
    # Autoplay
    # ------------------------------------------------------------------

    @property
    def autoplay_active(self) -> bool:
        return self._autoplay

    @property
    def autoplay_interval_ms(self) -> int:
        return self._interval_ms

    def start_autoplay(self) -> None:
        if self._autoplay:
            return
        if self.is_last:
            logger.debug("Autoplay not started: already at the last step")
            return
        self._autoplay = True
        logger.info("Autoplay started (every %d ms)", self._interval_ms)
        self._arm()

    def stop_autoplay(self) -> None:
        if not self._autoplay:
            return
        self._autoplay = False
        self._disarm()
        logger.info("Autoplay stopped")

    def toggle_autoplay(self) -> bool:
        if self._autoplay:
            self.stop_autoplay()
        else:
            self.start_autoplay()
        return self._autoplay

    def set_autoplay_interval(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            logger.warning("Ignoring non-positive autoplay interval: %s ms", interval_ms)
            return
        self._interval_ms = interval_ms
        if self._autoplay:
            # Rearm: the pending tick belongs to the old generation.
            self._disarm()
            self._arm()

    def _arm(self) -> None:
        if self._scheduler is None:
            self._scheduler = asyncio.get_running_loop()
        self._generation += 1
        self._timer = self._scheduler.call_later(
            self._interval_ms / 1000, self._tick, self._generation
        )

    def _disarm(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _tick(self, generation: int) -> None:
        if not self._autoplay or generation != self._generation:
            return
        self._timer = None
        self._advance()
        if self.is_last:
            self._autoplay = False
            logger.info("Autoplay reached the last step and stopped")
            return
        self._arm()
