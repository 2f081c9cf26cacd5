"""Snapshot the matchable elements of the active slide."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from .models import ElementDescriptor
from .registry import ElementRegistry
from .render_tree import select_matchable

logger = logging.getLogger(__name__)


def capture_slide(
    root,
    registry: ElementRegistry,
    query: Callable[[object], Iterable] = select_matchable,
) -> list[ElementDescriptor]:
    """Return one descriptor per matchable element under *root*, in document order.

    Geometry is read from each node at call time.  A missing root, or any
    failure while querying or reading the tree, yields an empty list.
    """
    if root is None:
        logger.debug("No slide root to capture")
        return []

    try:
        descriptors = [
            ElementDescriptor(
                handle=registry.track(node),
                identity=node.identity or None,
                text=node.text or "",
                tag=node.tag_name,
                classes=frozenset(node.classes),
                rect=node.rect(),
                dataset=dict(node.dataset),
            )
            for node in query(root)
        ]
    except Exception:
        logger.warning("Slide capture failed; treating the slide as empty", exc_info=True)
        return []

    logger.debug("Captured %d matchable element(s)", len(descriptors))
    return descriptors
