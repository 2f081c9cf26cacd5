"""slidemorph — step through a deck and plan element morphs between slide renders."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .capture import capture_slide
from .matching import GreedyMatcher, OptimalMatcher
from .models import load_deck
from .navigation import DEFAULT_AUTOPLAY_INTERVAL_MS, RevealStateMachine
from .planner import plan_transition
from .registry import ElementRegistry
from .render_tree import find_slide_root, load_render

logger = logging.getLogger(__name__)

_MATCHERS = {
    "greedy": GreedyMatcher,
    "optimal": OptimalMatcher,
}


def _configure_logging(verbose: bool, log_file: str | None) -> None:
    root = logging.getLogger("slidemorph")
    root.setLevel(logging.DEBUG)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root.addHandler(console)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        root.addHandler(file_handler)


def _require_file(path_str: str) -> Path:
    path = Path(path_str)
    if not path.exists():
        print(f"Error: {path} not found.", file=sys.stderr)
        sys.exit(1)
    return path


def _load_navigation(path_str: str, **kwargs) -> RevealStateMachine:
    path = _require_file(path_str)
    try:
        return RevealStateMachine(load_deck(path), **kwargs)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _format_state(nav: RevealStateMachine) -> str:
    visible = ",".join(el.id for el in nav.visible_elements())
    slide = nav.slides[nav.slide_index]
    return (
        f"  slide {nav.slide_index + 1}/{nav.slide_count} "
        f"step {nav.step + 1}/{nav.total_steps_for_slide(nav.slide_index)} "
        f"[{slide.id}] visible: {visible or '-'}"
    )


def _cmd_steps(args: argparse.Namespace) -> None:
    nav = _load_navigation(args.deck)
    print(_format_state(nav))
    count = 1
    while not nav.is_last:
        nav.next()
        print(_format_state(nav))
        count += 1
    print(f"\nDone! {nav.slide_count} slides, {count} states.")


def _cmd_play(args: argparse.Namespace) -> None:
    async def run() -> None:
        loop = asyncio.get_running_loop()
        finished = loop.create_future()

        def on_change(old, new) -> None:
            print(_format_state(nav))
            if nav.is_last and not finished.done():
                finished.set_result(None)

        nav = _load_navigation(
            args.deck,
            autoplay_interval_ms=args.interval,
            scheduler=loop,
            on_change=on_change,
        )
        print(_format_state(nav))
        if nav.is_last:
            return
        nav.start_autoplay()
        await finished

    asyncio.run(run())
    print("\nDone! Reached the last step.")


def _capture_file(path_str: str, slide: int | None, registry: ElementRegistry):
    soup = load_render(_require_file(path_str))
    root = soup if slide is None else find_slide_root(soup, slide)
    if root is None:
        logger.warning("%s has no element with data-slide-index=%s", path_str, slide)
    return capture_slide(root, registry)


def _cmd_plan(args: argparse.Namespace) -> None:
    registry = ElementRegistry()
    previous = _capture_file(args.before, args.slide, registry)
    current = _capture_file(args.after, args.slide, registry)
    logger.info("Captured %d previous and %d current element(s)", len(previous), len(current))

    result = _MATCHERS[args.matcher]().match(previous, current)
    plan = plan_transition(result)

    if args.json:
        rows = [
            {
                "kind": m.kind,
                "from": m.previous.identity if m.previous else None,
                "to": m.current.identity if m.current else None,
                "similarity": m.similarity,
                "dx": m.dx,
                "dy": m.dy,
                "scaleX": m.scale_x,
                "scaleY": m.scale_y,
            }
            for m in plan
        ]
        print(json.dumps(rows, indent=2))
        return

    for m in plan:
        label = (m.source.identity or m.source.tag)
        if m.similarity is not None:
            print(
                f"  {m.kind:<9} {label}  similarity={m.similarity:.2f} "
                f"dx={m.dx:g} dy={m.dy:g} scale={m.scale_x:g}x{m.scale_y:g}"
            )
        else:
            print(f"  {m.kind:<9} {label}")
    print(
        f"\nDone! {len(result.matched)} matched, {len(result.new)} new, "
        f"{len(result.removed)} removed."
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="slidemorph",
        description="Step through a slide deck and plan element morphs between slide renders.",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log debug output to stderr")
    parser.add_argument("--log-file", help="Also write a debug log to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    steps = sub.add_parser("steps", help="Print every navigation state of a JSON deck")
    steps.add_argument("deck", help="Path to the JSON deck")
    steps.set_defaults(func=_cmd_steps)

    play = sub.add_parser("play", help="Autoplay a JSON deck, printing each state")
    play.add_argument("deck", help="Path to the JSON deck")
    play.add_argument("--interval", type=int, default=DEFAULT_AUTOPLAY_INTERVAL_MS,
                      help=f"Milliseconds between steps (default: {DEFAULT_AUTOPLAY_INTERVAL_MS})")
    play.set_defaults(func=_cmd_play)

    plan = sub.add_parser("plan", help="Match and classify elements between two HTML renders")
    plan.add_argument("before", help="HTML render of the previous slide")
    plan.add_argument("after", help="HTML render of the current slide")
    plan.add_argument("--matcher", choices=sorted(_MATCHERS), default="greedy",
                      help="Pairing strategy (default: greedy)")
    plan.add_argument("--slide", type=int, default=None,
                      help="Capture only the container with this data-slide-index")
    plan.add_argument("--json", action="store_true", help="Print the plan as JSON")
    plan.set_defaults(func=_cmd_plan)

    args = parser.parse_args()
    _configure_logging(args.verbose, args.log_file)
    logger.info("CLI arguments: %s", vars(args))

    try:
        args.func(args)
    except Exception:
        logger.exception("Command %s failed", args.command)
        raise


if __name__ == "__main__":
    main()
