"""Shared fixtures for slidemorph tests."""

from __future__ import annotations

import json
import textwrap

import pytest

from slidemorph.models import Element, ElementDescriptor, Rect, Slide


# ---------------------------------------------------------------------------
# Deterministic scheduler
# ---------------------------------------------------------------------------

class FakeHandle:
    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual-clock stand-in for an asyncio loop's ``call_later``."""

    def __init__(self):
        self.now = 0.0
        self.handles: list[FakeHandle] = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and h.when is not None]

    def advance(self, seconds: float) -> int:
        """Run every callback due within *seconds*, in time order. Returns how many ran."""
        target = self.now + seconds
        ran = 0
        while True:
            due = [h for h in self.pending if h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.now = handle.when
            handle.when = None
            handle.callback(*handle.args)
            ran += 1
        self.now = target
        return ran


@pytest.fixture
def scheduler():
    return FakeScheduler()


# ---------------------------------------------------------------------------
# In-memory render-tree node
# ---------------------------------------------------------------------------

class FakeNode:
    def __init__(self, identity=None, text="", tag_name="DIV", classes=(), dataset=None,
                 rect=Rect(0, 0, 100, 100)):
        self.identity = identity
        self.text = text
        self.tag_name = tag_name
        self.classes = list(classes)
        self.dataset = dict(dataset or {})
        self._rect = rect
        self.style: dict[str, str] = {}
        self.style_log: list[tuple[str, str]] = []

    @property
    def key(self):
        return id(self)

    def rect(self):
        return self._rect

    def move_to(self, rect):
        self._rect = rect

    def get_style(self, name):
        return self.style.get(name, "")

    def set_style(self, name, value):
        self.style_log.append((name, value))
        if value:
            self.style[name] = value
        else:
            self.style.pop(name, None)


class FakeRoot:
    def __init__(self, nodes):
        self.nodes = list(nodes)


def query_fake(root):
    return root.nodes


def make_descriptor(handle=1, identity=None, text="", tag="DIV", classes=(),
                    rect=Rect(0, 0, 100, 100), dataset=None):
    return ElementDescriptor(
        handle=handle,
        identity=identity,
        text=text,
        tag=tag,
        classes=frozenset(classes),
        rect=rect,
        dataset=dict(dataset or {}),
    )


# ---------------------------------------------------------------------------
# Decks
# ---------------------------------------------------------------------------

def make_slides(*step_lists):
    """One slide per argument; each argument lists its elements' reveal steps."""
    return [
        Slide(
            id=f"s{i + 1}",
            elements=[Element(id=f"s{i + 1}e{j}", type="text", reveal_step=step)
                      for j, step in enumerate(steps)],
        )
        for i, steps in enumerate(step_lists)
    ]


DECK = {
    "slides": [
        {
            "id": "intro",
            "title": "Intro",
            "elements": [
                {"id": "title", "type": "title", "content": "Hello", "clickState": 0},
                {"id": "b1", "type": "bullets", "content": ["one"], "clickState": 1},
                {"id": "b2", "type": "bullets", "content": ["two"], "clickState": 2},
            ],
        },
        {
            "id": "end",
            "elements": [{"id": "bye", "type": "text", "content": "Bye"}],
        },
    ]
}


@pytest.fixture
def tmp_deck(tmp_path):
    """Write DECK to a temp file and return its path."""
    p = tmp_path / "deck.json"
    p.write_text(json.dumps(DECK))
    return p


# ---------------------------------------------------------------------------
# HTML renders
# ---------------------------------------------------------------------------

BEFORE_HTML = textwrap.dedent("""\
    <div data-slide-index="0">
      <h1 data-id="title" class="title" style="left: 100px; top: 40px; width: 400px; height: 60px">Intro</h1>
      <p data-auto-animate class="body" style="left: 100px; top: 200px; width: 300px; height: 40px">Hello World</p>
      <div data-id="logo" data-rect="10,10,50,50"></div>
      <span>not matchable</span>
    </div>
    """)

AFTER_HTML = textwrap.dedent("""\
    <div data-slide-index="1">
      <h1 data-id="title" class="title" style="left: 100px; top: 140px; width: 400px; height: 60px">Intro</h1>
      <p data-auto-animate class="body" style="left: 110px; top: 210px; width: 300px; height: 40px">Hello Planet</p>
      <div data-id="chart" data-rect="500,300,200,200"></div>
    </div>
    """)


@pytest.fixture
def render_files(tmp_path):
    before = tmp_path / "before.html"
    after = tmp_path / "after.html"
    before.write_text(BEFORE_HTML)
    after.write_text(AFTER_HTML)
    return before, after
