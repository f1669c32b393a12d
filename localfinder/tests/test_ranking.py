import pytest

from localfinder.search.config import SearchConfig
from localfinder.search.models import Candidate, SourceKind
from localfinder.search.ranking import composite_score, rank_candidates

CONFIG = SearchConfig()


def _candidate(id_, kind=SourceKind.catalog, similarity=0.5, is_open=False, distance=None):
    return Candidate(
        id=id_,
        source_kind=kind,
        business_key=f"biz-{id_}",
        title=id_,
        similarity=similarity,
        is_open=is_open,
        distance_miles=distance,
    )


def test_composite_score_catalog_high_confidence():
    c = _candidate("a", similarity=0.8, is_open=True, distance=3.0)
    expected = 0.45 * 0.8 + 0.25 * 1.0 + 0.20 * 1.0 + 0.10 * (1 - 3.0 / 30.0)
    assert composite_score(c, CONFIG) == pytest.approx(expected)


def test_composite_score_low_confidence_catalog_gets_baseline():
    c = _candidate("a", similarity=0.4)
    assert composite_score(c, CONFIG) == pytest.approx(0.45 * 0.4 + 0.25 * 0.1)


def test_composite_score_discovered_gets_baseline():
    c = _candidate("a", kind=SourceKind.discovered, similarity=0.9)
    assert composite_score(c, CONFIG) == pytest.approx(0.45 * 0.9 + 0.25 * 0.1)


def test_unknown_distance_earns_no_proximity_bonus():
    known = _candidate("a", similarity=0.6, distance=0.0)
    unknown = _candidate("b", similarity=0.6)
    assert composite_score(known, CONFIG) - composite_score(unknown, CONFIG) == pytest.approx(0.10)


def test_far_distance_bonus_floors_at_zero():
    far = _candidate("a", similarity=0.6, distance=100.0)
    unknown = _candidate("b", similarity=0.6)
    assert composite_score(far, CONFIG) == pytest.approx(composite_score(unknown, CONFIG))


def test_rank_candidates_orders_and_truncates():
    candidates = [
        _candidate("low", similarity=0.3),
        _candidate("open", similarity=0.6, is_open=True),
        _candidate("mid", similarity=0.6),
    ]
    ranked = rank_candidates(candidates, count=2, config=CONFIG)
    assert [c.id for c in ranked] == ["open", "mid"]
    assert all(c.composite_score is not None for c in ranked)


def test_rank_candidates_is_stable_on_ties():
    candidates = [_candidate("x", similarity=0.5), _candidate("y", similarity=0.5)]
    ranked = rank_candidates(candidates, count=10, config=CONFIG)
    assert [c.id for c in ranked] == ["x", "y"]


def test_rank_candidates_does_not_mutate_inputs():
    original = _candidate("a", similarity=0.5)
    rank_candidates([original], count=1, config=CONFIG)
    assert original.composite_score is None


def test_custom_weights_are_respected():
    config = SearchConfig(similarity_weight=1.0, source_weight=0.0, open_weight=0.0, proximity_weight=0.0)
    c = _candidate("a", similarity=0.7, is_open=True, distance=1.0)
    assert composite_score(c, config) == pytest.approx(0.7)
