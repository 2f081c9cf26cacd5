"""Pair elements of the previous snapshot with elements of the current one."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from .models import Correspondence, ElementDescriptor

logger = logging.getLogger(__name__)

# Similarity weights.  The raw score is divided by SCORE_NORMALIZATION.
TAG_WEIGHT = 0.8
CLASS_WEIGHT = 0.5
TEXT_WEIGHT = 0.7
MARKER_WEIGHT = 0.6
SCORE_NORMALIZATION = 4.0

# A pair must score strictly above this to match.
MATCH_THRESHOLD = 0.5


def common_prefix_length(a: str, b: str) -> int:
    n = 0
    for x, y in zip(a, b):
        if x != y:
            break
        n += 1
    return n


def similarity(a: ElementDescriptor, b: ElementDescriptor) -> float:
    """Score how likely *a* and *b* are the same visual element, in [0, 1].

    Equal explicit identities short-circuit to 1.0.  Otherwise the score
    sums tag equality, class overlap, shared text prefix and the opt-in
    marker, then normalizes by a fixed divisor.
    """
    if a.identity and b.identity and a.identity == b.identity:
        return 1.0

    score = 0.0
    if a.tag == b.tag:
        score += TAG_WEIGHT

    larger = max(len(a.classes), len(b.classes))
    if larger:
        score += CLASS_WEIGHT * len(a.classes & b.classes) / larger

    shorter = min(len(a.text), len(b.text))
    if shorter:
        prefix = common_prefix_length(a.text.strip().lower(), b.text.strip().lower())
        score += TEXT_WEIGHT * prefix / shorter

    if a.has_marker or b.has_marker:
        score += MARKER_WEIGHT

    return min(max(score / SCORE_NORMALIZATION, 0.0), 1.0)


@dataclass
class MatchResult:
    matched: list[Correspondence] = field(default_factory=list)
    new: list[ElementDescriptor] = field(default_factory=list)
    removed: list[ElementDescriptor] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.matched or self.new or self.removed)


class MatchingStrategy:
    """Interface for pairing algorithms.

    ``match`` must return every descriptor exactly once: either inside a
    correspondence, in ``new`` (current side) or in ``removed`` (previous
    side), each list keeping its input order.
    """

    def match(
        self,
        previous: Sequence[ElementDescriptor],
        current: Sequence[ElementDescriptor],
    ) -> MatchResult:
        raise NotImplementedError


class GreedyMatcher(MatchingStrategy):
    """First-come best-match pairing in ``previous`` order.

    Not globally optimal: an early previous element can take a current
    element that a later one would have matched better.
    """

    def match(self, previous, current):
        consumed_current: set[int] = set()
        consumed_previous: set[int] = set()
        matched: list[Correspondence] = []

        for i, prev_el in enumerate(previous):
            best_index = -1
            best_score = 0.0
            for j, cur_el in enumerate(current):
                if j in consumed_current:
                    continue
                score = similarity(prev_el, cur_el)
                if score > best_score:
                    best_index, best_score = j, score
            if best_index >= 0 and best_score > MATCH_THRESHOLD:
                matched.append(Correspondence(prev_el, current[best_index], best_score))
                consumed_current.add(best_index)
                consumed_previous.add(i)

        result = MatchResult(
            matched=matched,
            new=[el for j, el in enumerate(current) if j not in consumed_current],
            removed=[el for i, el in enumerate(previous) if i not in consumed_previous],
        )
        logger.debug(
            "Greedy match: %d matched, %d new, %d removed",
            len(result.matched), len(result.new), len(result.removed),
        )
        return result


class OptimalMatcher(MatchingStrategy):
    """Maximum total-similarity assignment (Hungarian algorithm via scipy)."""

    def match(self, previous, current):
        if not previous or not current:
            return MatchResult(new=list(current), removed=list(previous))

        import numpy as np
        from scipy.optimize import linear_sum_assignment

        scores = np.array([[similarity(p, c) for c in current] for p in previous])
        rows, cols = linear_sum_assignment(scores, maximize=True)

        pairs = {
            int(i): int(j)
            for i, j in zip(rows, cols)
            if scores[i, j] > MATCH_THRESHOLD
        }
        matched = [
            Correspondence(previous[i], current[j], float(scores[i, j]))
            for i, j in sorted(pairs.items())
        ]
        taken = set(pairs.values())
        result = MatchResult(
            matched=matched,
            new=[el for j, el in enumerate(current) if j not in taken],
            removed=[el for i, el in enumerate(previous) if i not in pairs],
        )
        logger.debug(
            "Optimal match: %d matched, %d new, %d removed",
            len(result.matched), len(result.new), len(result.removed),
        )
        return result
