from localfinder.search.models import Candidate, SourceKind
from localfinder.search.selection import filter_by_radius, merge_candidates, select_relevant


def _catalog(id_, business, similarity=0.5, distance=None):
    return Candidate(
        id=id_,
        source_kind=SourceKind.catalog,
        business_key=business,
        title=f"Offering {id_}",
        business_name=f"Business {business}",
        similarity=similarity,
        distance_miles=distance,
    )


def _discovered(place_id, similarity=0.5, distance=None):
    return Candidate(
        id=f"ai-{place_id}",
        source_kind=SourceKind.discovered,
        business_key=f"ai-{place_id}",
        title="query",
        business_name=f"Place {place_id}",
        similarity=similarity,
        distance_miles=distance,
        place_id=place_id,
    )


# ── select_relevant ─────────────────────────────────────────────────────


def test_select_relevant_drops_below_threshold():
    candidates = [_catalog("1", "a", 0.2), _catalog("2", "b", 0.3), _catalog("3", "c", 0.8)]
    selected = select_relevant(candidates, threshold=0.3, slots=8)
    assert [c.id for c in selected] == ["3", "2"]


def test_select_relevant_caps_at_slots():
    candidates = [_catalog(str(i), str(i), 0.4 + i / 100) for i in range(12)]
    selected = select_relevant(candidates, threshold=0.3, slots=8)
    assert len(selected) == 8
    assert selected[0].id == "11"
    assert all(c.similarity >= 0.3 for c in selected)


def test_select_relevant_is_stable_on_ties():
    candidates = [_catalog("x", "a", 0.6), _catalog("y", "b", 0.6), _catalog("z", "c", 0.6)]
    selected = select_relevant(candidates, threshold=0.5, slots=3)
    assert [c.id for c in selected] == ["x", "y", "z"]


def test_select_relevant_zero_slots_returns_nothing():
    assert select_relevant([_catalog("1", "a", 0.9)], threshold=0.1, slots=0) == []


# ── merge_candidates ─────────────────────────────────────────────────────


def test_merge_keeps_catalog_over_discovered_with_same_key():
    catalog = [_catalog("1", "biz-1")]
    clash = _discovered("p1").model_copy(update={"business_key": "biz-1"})
    merged = merge_candidates(catalog, [clash, _discovered("p2")])
    assert [c.id for c in merged] == ["1", "ai-p2"]


def test_merge_first_catalog_offering_wins_per_business():
    merged = merge_candidates([_catalog("1", "biz"), _catalog("2", "biz")], [])
    assert [c.id for c in merged] == ["1"]


def test_merge_has_unique_business_keys():
    catalog = [_catalog("1", "a"), _catalog("2", "b"), _catalog("3", "a")]
    discovered = [_discovered("p1"), _discovered("p1"), _discovered("p2")]
    merged = merge_candidates(catalog, discovered)
    keys = [c.business_key for c in merged]
    assert len(keys) == len(set(keys))


# ── filter_by_radius ─────────────────────────────────────────────────────


def test_filter_by_radius_keeps_unknown_distance():
    candidates = [_catalog("near", "a", distance=2.0), _catalog("far", "b", distance=12.5), _catalog("unknown", "c")]
    kept = filter_by_radius(candidates, max_miles=10)
    assert [c.id for c in kept] == ["near", "unknown"]


def test_filter_by_radius_boundary_is_inclusive():
    kept = filter_by_radius([_catalog("edge", "a", distance=10.0)], max_miles=10)
    assert len(kept) == 1


def test_filter_by_radius_treats_infinite_as_unknown():
    kept = filter_by_radius([_catalog("inf", "a", distance=float("inf"))], max_miles=10)
    assert len(kept) == 1
