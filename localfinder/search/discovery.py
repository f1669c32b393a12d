from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, TypeVar

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.query_planner import plan_search_phrases, suggest_offering_name
from ..places.config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .models import BusinessDetails, Candidate, SourceKind

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DISCOVERED_PREFIX = "ai-"


def describe_place(place: dict[str, Any], phrase: str, query: str) -> str:
    """Text embedded for a discovered place and compared with the query."""
    parts = [
        place.get("name", ""),
        phrase,
        f"serves {query}",
        f"offers {query}",
        " ".join(place.get("types") or []),
    ]
    if place.get("rating"):
        parts.append(f"{place['rating']} star rating")
    return " ".join(p for p in parts if p)


def _describe_offering(title: str, business_name: str) -> dict[str, str]:
    return {
        "description": (
            f"{title} at {business_name}. Found through a search for businesses "
            "that offer what you're looking for."
        ),
        "short_description": f"Serves {title}",
        "business_description": f"Business that serves {title} according to Google Places data",
    }


def place_to_candidate(
    place: dict[str, Any],
    phrase: str,
    query: str,
    similarity: float,
) -> Candidate:
    place_id = place["place_id"]
    name = place.get("name", "")
    location = (place.get("geometry") or {}).get("location") or {}
    opening_hours = place.get("opening_hours") or {}
    weekday_text = opening_hours.get("weekday_text") or []
    text = _describe_offering(query, name)

    return Candidate(
        id=f"{DISCOVERED_PREFIX}{place_id}",
        source_kind=SourceKind.discovered,
        business_key=f"{DISCOVERED_PREFIX}{place_id}",
        title=query,
        business_name=name,
        description=text["description"],
        category=phrase,
        tags=list(place.get("types") or []),
        address=place.get("formatted_address") or place.get("vicinity"),
        latitude=location.get("lat"),
        longitude=location.get("lng"),
        similarity=min(1.0, max(0.0, float(similarity))),
        # Absent open_now counts as open
        is_open=opening_hours.get("open_now") is not False,
        details=BusinessDetails(
            hours=weekday_text[0] if weekday_text else None,
            short_description=text["short_description"],
            business_description=text["business_description"],
        ),
        place_id=place_id,
        origin_phrase=phrase,
    )


def _name(item: Any) -> Any:
    return item.id if isinstance(item, Candidate) else item


def _fan_out(
    items: list[T],
    fn: Callable[[T], R],
    timeout: float,
    label: str,
    max_workers: int | None = None,
) -> list[tuple[T, R]]:
    """
    Run ``fn`` over ``items`` concurrently and join with a single barrier.

    At most ``max_workers`` calls run at once (default: one per item). Items
    that raise, or have not finished after ``timeout`` seconds, are logged
    and left out. Results keep the order of ``items``.
    """
    if not items:
        return []
    workers = min(len(items), max_workers or len(items))
    executor = ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix=label)
    futures = [(item, executor.submit(fn, item)) for item in items]
    try:
        done, _ = wait([f for _, f in futures], timeout=max(0.0, timeout))
    finally:
        # Stragglers finish in the background; their results are discarded.
        executor.shutdown(wait=False, cancel_futures=True)

    results: list[tuple[T, R]] = []
    for item, future in futures:
        if future not in done:
            logger.warning("%s for %r timed out after %.1fs", label, _name(item), timeout)
            continue
        try:
            results.append((item, future.result()))
        except Exception:
            logger.warning("%s for %r failed", label, _name(item), exc_info=True)
    return results


class DiscoveryGenerator:
    """Finds businesses outside the catalog to fill unused result slots."""

    def __init__(
        self,
        places,
        encoder,
        config: SearchConfig = DEFAULT_SEARCH_CONFIG,
        places_config: PlacesConfig = DEFAULT_PLACES_CONFIG,
        llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
        planner: Callable[..., list[str]] = plan_search_phrases,
        namer: Callable[..., str] = suggest_offering_name,
    ):
        self.places = places
        self.encoder = encoder
        self.config = config
        self.places_config = places_config
        self.llm_config = llm_config
        self.planner = planner
        self.namer = namer

    @property
    def enabled(self) -> bool:
        return self.places is not None and self.places_config.discovery_enabled

    def discover(
        self,
        query: str,
        query_vector: np.ndarray,
        slots_needed: int,
        latitude: float | None = None,
        longitude: float | None = None,
        timeout: float | None = None,
    ) -> list[Candidate]:
        """
        Discovered candidates for ``query``, best first, at most ``slots_needed``.

        Never raises: planner, search and embedding failures all reduce to
        fewer (possibly zero) candidates.
        """
        if slots_needed <= 0 or not self.enabled:
            return []

        deadline = time.monotonic() + (timeout if timeout is not None else self.config.request_timeout_seconds)
        count = min(self.config.max_discovery_queries, slots_needed)

        planned = _fan_out(
            [query],
            lambda q: self.planner(q, count, self.llm_config),
            self._phase_timeout(deadline),
            "query planner",
        )
        phrases = planned[0][1] if planned else None
        if not phrases:
            logger.info("No search phrases planned for %r, skipping discovery", query)
            return []
        phrases = list(phrases)[:count]

        if latitude is not None and longitude is not None:
            origin = (latitude, longitude)
        else:
            origin = (self.places_config.default_latitude, self.places_config.default_longitude)

        query_vec = np.asarray(query_vector, dtype=float).reshape(1, -1)
        branches = _fan_out(
            phrases,
            lambda phrase: self._search_branch(phrase, query, query_vec, origin),
            self._phase_timeout(deadline),
            "discovery branch",
            max_workers=self.config.max_discovery_queries,
        )

        best: dict[str, Candidate] = {}
        for _, candidates in branches:
            for candidate in candidates:
                current = best.get(candidate.business_key)
                if current is None or candidate.similarity > current.similarity:
                    best[candidate.business_key] = candidate

        ranked = sorted(best.values(), key=lambda c: c.similarity, reverse=True)[:slots_needed]
        logger.info(
            "Discovery found %d unique places across %d/%d branches, keeping %d",
            len(best), len(branches), len(phrases), len(ranked),
        )
        return self._finish(ranked, query, deadline)

    def _phase_timeout(self, deadline: float) -> float:
        return max(0.0, min(self.config.branch_timeout_seconds, deadline - time.monotonic()))

    def _search_branch(
        self,
        phrase: str,
        query: str,
        query_vec: np.ndarray,
        origin: tuple[float, float],
    ) -> list[Candidate]:
        results = self.places.text_search(phrase, origin[0], origin[1])
        places = [p for p in results if p.get("place_id") and p.get("name")]
        places = places[: self.config.places_per_query]
        if not places:
            return []

        vectors = self.encoder.encode_batch([describe_place(p, phrase, query) for p in places])
        similarities = cosine_similarity(query_vec, np.asarray(vectors, dtype=float)).flatten()

        candidates: list[Candidate] = []
        for place, similarity in zip(places, similarities):
            if similarity < self.config.discovery_min_similarity:
                logger.debug("Dropping %r with similarity %.3f", place.get("name"), similarity)
                continue
            candidates.append(place_to_candidate(place, phrase, query, similarity))
        return candidates

    def _finish(self, candidates: list[Candidate], query: str, deadline: float) -> list[Candidate]:
        """Attach offering names and phone numbers; candidates that time out keep their defaults."""
        name_offerings = self.config.name_discovered_offerings
        fetch_phones = self.places_config.fetch_phone_numbers
        if not candidates or not (name_offerings or fetch_phones):
            return candidates

        def complete(candidate: Candidate) -> Candidate:
            update: dict[str, Any] = {}
            details = candidate.details
            if name_offerings:
                title = self.namer(query, candidate.business_name, candidate.tags, self.llm_config)
                if title and title != candidate.title:
                    text = _describe_offering(title, candidate.business_name)
                    update["title"] = title
                    update["description"] = text["description"]
                    details = details.model_copy(update={
                        "short_description": text["short_description"],
                        "business_description": text["business_description"],
                    })
            if fetch_phones and candidate.place_id:
                phone = self.places.phone_number(candidate.place_id)
                if phone:
                    details = details.model_copy(update={"phone_number": phone})
            update["details"] = details
            return candidate.model_copy(update=update)

        finished = _fan_out(
            candidates,
            complete,
            self._phase_timeout(deadline),
            "discovery detail",
            max_workers=self.config.max_discovery_queries,
        )
        completed = {c.id: done for c, done in finished}
        return [completed.get(c.id, c) for c in candidates]
