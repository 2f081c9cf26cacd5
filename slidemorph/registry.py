"""Opaque handles for live render-tree nodes."""

from __future__ import annotations

import logging
from typing import Iterable

from .models import Rect

logger = logging.getLogger(__name__)


def node_key(node):
    """Stable identity of a live node, surviving handle reissue."""
    return getattr(node, "key", id(node))


class ElementRegistry:
    """Map integer handles to live nodes.

    Descriptors carry only handles, so matching and planning can run without
    a document.  The same underlying node (by its ``key``) always gets the
    same handle while it stays tracked.
    """

    def __init__(self) -> None:
        self._nodes: dict[int, object] = {}
        self._by_key: dict[object, int] = {}
        self._next_handle = 1

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, handle: int) -> bool:
        return handle in self._nodes

    def track(self, node) -> int:
        key = node_key(node)
        handle = self._by_key.get(key)
        if handle is None:
            handle = self._next_handle
            self._next_handle += 1
            self._by_key[key] = handle
        self._nodes[handle] = node
        return handle

    def resolve(self, handle: int):
        return self._nodes.get(handle)

    def measure(self, handle: int) -> Rect | None:
        node = self._nodes.get(handle)
        if node is None:
            return None
        return node.rect()

    def retain(self, handles: Iterable[int]) -> None:
        """Forget every handle not in *handles*."""
        keep = set(handles)
        dropped = [h for h in self._nodes if h not in keep]
        for handle in dropped:
            del self._nodes[handle]
        self._by_key = {k: h for k, h in self._by_key.items() if h in keep}
        if dropped:
            logger.debug("Registry dropped %d handle(s), %d tracked", len(dropped), len(self._nodes))
