from __future__ import annotations

import copy

import pytest

from jobmatcher.geo import filter_by_isochrone, is_point_in_isochrone, point_in_feature
from jobmatcher.models import IsochroneSet, JobDocument

from conftest import TAMPA_30_MIN


def _square(x0: float, y0: float, x1: float, y1: float) -> list[list[float]]:
    return [[x0, y0], [x1, y0], [x1, y1], [x0, y1], [x0, y0]]


def _collection(*geometries: dict) -> dict:
    return {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "properties": {}, "geometry": g} for g in geometries],
    }


def test_keeps_job_inside_and_drops_job_outside() -> None:
    iso = IsochroneSet(thirty_minute=TAMPA_30_MIN)
    jobs = [
        {"id": "in", "location": [27.95, -82.46]},
        {"id": "out", "location": [28.5, -82.46]},
    ]
    kept = filter_by_isochrone(jobs, iso, 30)
    assert [j["id"] for j in kept] == ["in"]


def test_job_coordinates_are_lat_lon_not_geojson_order() -> None:
    # Polygon spans lon 10..20, lat 40..50
    iso = IsochroneSet(ten_minute=_collection({"type": "Polygon", "coordinates": [_square(10, 40, 20, 50)]}))
    jobs = [{"id": "right", "location": [45, 15]}, {"id": "swapped", "location": [15, 45]}]
    assert [j["id"] for j in filter_by_isochrone(jobs, iso, 10)] == ["right"]


@pytest.mark.parametrize("tier", [None, {"type": "FeatureCollection", "features": []}, {}])
def test_absent_or_empty_tier_is_identity(tier) -> None:
    iso = IsochroneSet(thirty_minute=tier)
    jobs = [{"id": "a", "location": [0.0, 0.0]}, {"id": "b", "location": None}, {"id": "c"}]
    assert filter_by_isochrone(jobs, iso, 30) == jobs


def test_missing_or_bad_coordinates_are_excluded() -> None:
    iso = IsochroneSet(thirty_minute=TAMPA_30_MIN)
    jobs = [
        {"id": "none", "location": None},
        {"id": "absent"},
        {"id": "short", "location": [27.95]},
        {"id": "text", "location": ["27.95", "-82.46"]},
        {"id": "nan", "location": [float("nan"), -82.46]},
        {"id": "ok", "location": [27.95, -82.46]},
    ]
    assert [j["id"] for j in filter_by_isochrone(jobs, iso, 30)] == ["ok"]


def test_other_tiers_do_not_leak_into_selected_tier() -> None:
    far = _collection({"type": "Polygon", "coordinates": [_square(0, 0, 1, 1)]})
    iso = IsochroneSet(ten_minute=far, thirty_minute=TAMPA_30_MIN, sixty_minute=far)
    jobs = [{"id": "tampa", "location": [27.95, -82.46]}, {"id": "gulf", "location": [0.5, 0.5]}]
    assert [j["id"] for j in filter_by_isochrone(jobs, iso, 30)] == ["tampa"]
    assert [j["id"] for j in filter_by_isochrone(jobs, iso, 60)] == ["gulf"]


def test_multipolygon_matches_any_part() -> None:
    geom = {
        "type": "MultiPolygon",
        "coordinates": [[_square(0, 0, 1, 1)], [_square(5, 5, 6, 6)]],
    }
    iso = IsochroneSet(sixty_minute=_collection(geom))
    jobs = [{"id": "a", "location": [0.5, 0.5]}, {"id": "b", "location": [5.5, 5.5]}, {"id": "c", "location": [3, 3]}]
    assert [j["id"] for j in filter_by_isochrone(jobs, iso, 60)] == ["a", "b"]


def test_polygon_holes_and_edges() -> None:
    donut = {"type": "Polygon", "coordinates": [_square(0, 0, 10, 10), _square(4, 4, 6, 6)]}
    assert point_in_feature(1, 1, donut)
    assert not point_in_feature(5, 5, donut)
    # On the outer edge counts as inside; on a hole edge is still inside the polygon
    assert point_in_feature(0, 5, donut)
    assert point_in_feature(4, 5, donut)
    assert not point_in_feature(11, 5, donut)


def test_malformed_features_are_skipped() -> None:
    collection = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "geometry": None},
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]}},
            {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]}},
            TAMPA_30_MIN["features"][0],
        ],
    }
    iso = IsochroneSet(thirty_minute=collection)
    jobs = [{"id": "in", "location": [27.95, -82.46]}, {"id": "out", "location": [0.5, 0.5]}]
    assert [j["id"] for j in filter_by_isochrone(jobs, iso, 30)] == ["in"]


def test_inputs_are_not_mutated() -> None:
    iso = IsochroneSet(thirty_minute=TAMPA_30_MIN)
    jobs = [{"id": "in", "location": [27.95, -82.46]}, {"id": "out", "location": [40.0, -75.0]}]
    before_jobs, before_iso = copy.deepcopy(jobs), copy.deepcopy(TAMPA_30_MIN)
    filter_by_isochrone(jobs, iso, 30)
    assert jobs == before_jobs
    assert TAMPA_30_MIN == before_iso


def test_works_on_job_documents() -> None:
    doc = JobDocument(id="1", title="t", company="c", url="u", location=(27.95, -82.46))
    assert filter_by_isochrone([doc], IsochroneSet(thirty_minute=TAMPA_30_MIN), 30) == [doc]


def test_unsupported_tier_is_rejected() -> None:
    with pytest.raises(ValueError):
        filter_by_isochrone([], IsochroneSet(), 45)


def test_is_point_in_isochrone() -> None:
    iso = IsochroneSet(thirty_minute=TAMPA_30_MIN)
    assert is_point_in_isochrone(27.95, -82.46, iso, 30)
    assert not is_point_in_isochrone(25.77, -80.19, iso, 30)
    assert is_point_in_isochrone(25.77, -80.19, iso, 10)  # no 10-minute data



def test_tier_with_only_malformed_features_keeps_nothing() -> None:
    broken = {"type": "FeatureCollection", "features": [{"type": "Feature", "geometry": None}, "junk"]}
    jobs = [{"id": "a", "location": [27.95, -82.46]}]
    assert filter_by_isochrone(jobs, IsochroneSet(thirty_minute=broken), 30) == []
