from __future__ import annotations

import logging
import math

from .models import Candidate

logger = logging.getLogger(__name__)


def select_relevant(
    candidates: list[Candidate],
    threshold: float,
    slots: int,
) -> list[Candidate]:
    """
    Keep catalog candidates at or above ``threshold``, best first, at most ``slots``.

    ``slots`` is independent of the requested result count so that a large
    catalog match cannot crowd discovered businesses out entirely. The sort
    is stable: equal similarities keep their retrieval order.
    """
    qualifying = [c for c in candidates if c.similarity >= threshold]
    qualifying.sort(key=lambda c: c.similarity, reverse=True)
    return qualifying[: max(0, slots)]


def merge_candidates(
    catalog: list[Candidate],
    discovered: list[Candidate],
) -> list[Candidate]:
    """Union both sources by ``business_key``; the first candidate seen for a key wins."""
    merged: dict[str, Candidate] = {}
    for candidate in catalog:
        merged.setdefault(candidate.business_key, candidate)
    for candidate in discovered:
        if candidate.business_key in merged:
            logger.debug(
                "Skipping discovered %r, business %s already present",
                candidate.business_name, candidate.business_key,
            )
            continue
        merged[candidate.business_key] = candidate
    return list(merged.values())


def filter_by_radius(candidates: list[Candidate], max_miles: float) -> list[Candidate]:
    """Drop candidates known to be farther than ``max_miles``; unknown distances stay."""
    kept: list[Candidate] = []
    for candidate in candidates:
        distance = candidate.distance_miles
        if distance is not None and math.isfinite(distance) and distance > max_miles:
            logger.debug(
                "Filtering out %r at %.1f miles (max %.1f)",
                candidate.business_name or candidate.title, distance, max_miles,
            )
            continue
        kept.append(candidate)
    return kept
