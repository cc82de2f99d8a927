from carenexa.routing.scorer import FacilityCandidate, count_exposed_points, rank_facilities
from carenexa.tools.geocoding import LatLng, interpolate

USER = LatLng(0.0, 0.0)


def _candidate(name, lat, lng, minutes, capable=True):
    return FacilityCandidate(
        name=name, lat=lat, lng=lng, estimated_minutes=minutes, has_capability=capable
    )


def test_clean_route_beats_faster_route_through_danger():
    north = _candidate("North General", 0.02, 0.0, minutes=5)
    east = _candidate("East Clinic", 0.0, 0.02, minutes=6)
    # danger pin sits on the northern route's midpoint
    pins = [{"lat": 0.01, "lng": 0.0, "type": "danger"}]

    ranking = rank_facilities(USER, [north, east], pins)

    assert ranking.best.name == "East Clinic"
    assert ranking.best.danger_count == 0
    assert ranking.best.score == 6 - 5
    assert ranking.ranked[1].danger_count == 1
    assert ranking.ranked[1].score == 5 + 2 - 5


def test_without_pins_score_is_minutes_minus_capability_bonus():
    ranking = rank_facilities(
        USER,
        [_candidate("A", 0.01, 0.01, 10, capable=False), _candidate("B", 0.02, 0.02, 12)],
    )
    assert [(s.name, s.score) for s in ranking.ranked] == [("B", 7), ("A", 10)]


def test_only_danger_pins_count():
    pins = [
        {"lat": 0.01, "lng": 0.0, "type": "caution"},
        {"lat": 0.01, "lng": 0.0, "type": "safe"},
    ]
    ranking = rank_facilities(USER, [_candidate("North", 0.02, 0.0, 5)], pins)
    assert ranking.best.danger_count == 0


def test_ties_keep_input_order():
    first = _candidate("First", 0.01, 0.0, 8)
    second = _candidate("Second", 0.0, 0.01, 8)
    ranking = rank_facilities(USER, [first, second])
    assert [s.name for s in ranking.ranked] == ["First", "Second"]

    ranking = rank_facilities(USER, [second, first])
    assert [s.name for s in ranking.ranked] == ["Second", "First"]


def test_empty_candidates_give_empty_ranking():
    ranking = rank_facilities(USER, [], [{"lat": 0, "lng": 0, "type": "danger"}])
    assert ranking.is_empty
    assert ranking.best is None


def test_scored_route_has_nine_points_ending_at_facility():
    ranking = rank_facilities(USER, [_candidate("A", 0.03, 0.04, 9)])
    route = ranking.best.route
    assert len(route) == 9
    assert route[0] == USER
    assert route[-1] == LatLng(0.03, 0.04)


def test_count_exposed_points_uses_strict_radius():
    route = interpolate(USER, LatLng(0.02, 0.0))
    assert count_exposed_points(route, []) == 0
    assert count_exposed_points(route, [LatLng(0.01, 0.0)]) == 1
    assert count_exposed_points(route, [LatLng(0.01, 0.0)], radius_m=0) == 0


def test_camel_case_candidate_payload():
    c = FacilityCandidate.model_validate(
        {"name": "X", "lat": 1, "lng": 2, "estimated_minutes": 3, "hasCapability": True}
    )
    assert c.has_capability is True
    assert c.specialty == "General"
