"""Wire capture, matching, planning and execution into one transition cycle."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from .capture import capture_slide
from .executor import TransitionExecutor
from .matching import GreedyMatcher, MatchingStrategy
from .models import AnimateConfig, ElementDescriptor, RevealState, Slide
from .navigation import DEFAULT_AUTOPLAY_INTERVAL_MS, RevealStateMachine
from .planner import TransitionPlan, plan_transition
from .registry import ElementRegistry
from .render_tree import select_matchable

logger = logging.getLogger(__name__)


class AutoAnimator:
    """Own the retained previous snapshot and run one transition per call.

    The snapshot is replaced wholesale by ``on_slide_shown``; nothing else
    writes it.
    """

    def __init__(
        self,
        config: AnimateConfig | None = None,
        *,
        registry: ElementRegistry | None = None,
        matcher: MatchingStrategy | None = None,
        executor: TransitionExecutor | None = None,
        scheduler=None,
        query: Callable = select_matchable,
    ) -> None:
        self.config = config or AnimateConfig()
        self.registry = registry or ElementRegistry()
        self.matcher = matcher or GreedyMatcher()
        self.executor = executor or TransitionExecutor(
            self.registry,
            scheduler,
            duration_ms=self.config.duration_ms,
            easing=self.config.easing,
        )
        self.query = query
        self._previous: list[ElementDescriptor] = []

    @property
    def previous(self) -> tuple[ElementDescriptor, ...]:
        return tuple(self._previous)

    def reset(self) -> None:
        self._previous = []

    def on_slide_shown(self, root) -> TransitionPlan:
        current = capture_slide(root, self.registry, self.query)

        plan = TransitionPlan()
        if self.config.enabled and self._previous:
            result = self.matcher.match(self._previous, current)
            plan = plan_transition(result, self.registry.measure)
            if len(plan):
                self.executor.execute(plan)
        else:
            logger.debug("Nothing to animate (enabled=%s, previous=%d)",
                         self.config.enabled, len(self._previous))

        self._previous = current
        self.registry.retain(d.handle for d in current)
        return plan


class Presenter:
    """A navigable presentation whose state changes trigger transitions.

    *render* is supplied by the host: given the new ``RevealState`` it
    returns the root of the now-active slide's render tree (or None when
    nothing is rendered yet).
    """

    def __init__(
        self,
        slides: Sequence[Slide],
        render: Callable[[RevealState], object],
        *,
        animator: AutoAnimator | None = None,
        scheduler=None,
        autoplay_interval_ms: int = DEFAULT_AUTOPLAY_INTERVAL_MS,
    ) -> None:
        self.render = render
        self.animator = animator or AutoAnimator(scheduler=scheduler)
        self.navigation = RevealStateMachine(
            slides,
            autoplay_interval_ms=autoplay_interval_ms,
            scheduler=scheduler,
            on_change=self._on_change,
        )
        self.last_plan = TransitionPlan()

    def show(self) -> TransitionPlan:
        """Capture the initial state so the first navigation has something to morph from."""
        return self._transition(self.navigation.state)

    def _on_change(self, old: RevealState, new: RevealState) -> None:
        logger.debug("Presenter transition %s -> %s", old, new)
        self._transition(new)

    def _transition(self, state: RevealState) -> TransitionPlan:
        self.last_plan = self.animator.on_slide_shown(self.render(state))
        return self.last_plan
