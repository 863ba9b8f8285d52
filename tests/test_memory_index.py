from __future__ import annotations

import json

import pytest

from jobmatcher.config import Settings
from jobmatcher.filters import GeoFilter
from jobmatcher.search import InMemoryIndex, TypesenseIndex, get_search_index
from jobmatcher.store import InMemoryStore, JsonFileStore, get_store

from conftest import make_job


def test_query_facets_shifts_and_radius() -> None:
    index = InMemoryIndex(
        [
            make_job("a", title="Line Cook", shift_morning=False, shift_evening=True),
            make_job("b", title="Prep Cook", city="Orlando", location=[28.54, -81.38]),
            make_job("c", title="Cashier"),
        ]
    )
    assert [d["id"] for d in index.search("cook", {}, [], None, 10).hits] == ["a", "b"]
    assert [d["id"] for d in index.search("cook", {"city": "tampa"}, [], None, 10).hits] == ["a"]
    assert [d["id"] for d in index.search("*", {}, ["evening", "overnight"], None, 10).hits] == ["a"]
    near_tampa = GeoFilter(lat=27.95, lon=-82.46, radius_km=50)
    response = index.search("", {}, [], near_tampa, 1)
    assert response.found == 2
    assert len(response.hits) == 1


def test_from_file(tmp_path) -> None:
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps([make_job("x")]), encoding="utf-8")
    assert InMemoryIndex.from_file(path).documents[0]["id"] == "x"


def test_factories(tmp_path) -> None:
    assert isinstance(get_search_index(Settings(search_backend="memory")), InMemoryIndex)
    assert isinstance(
        get_search_index(Settings(typesense_url="http://ts", typesense_api_key="k")), TypesenseIndex
    )
    with pytest.raises(ValueError):
        get_search_index(Settings(typesense_url="", typesense_api_key=""))
    with pytest.raises(ValueError):
        get_search_index(Settings(search_backend="solr"))

    assert isinstance(get_store(Settings(store_backend="memory")), InMemoryStore)
    assert isinstance(get_store(Settings(store_path=tmp_path / "s.json")), JsonFileStore)
    with pytest.raises(ValueError):
        get_store(Settings(store_backend="postgres"))


@pytest.mark.parametrize("radius_km, expected", [(120, ["tampa"]), (130, ["tampa", "orlando"])])
def test_radius_uses_geodesic_distance(radius_km, expected) -> None:
    # Tampa to Orlando is about 125 km
    index = InMemoryIndex(
        [
            make_job("tampa"),
            make_job("orlando", location=[28.54, -81.38]),
            make_job("bogus", location=[95.0, -82.46]),
            make_job("nowhere", location=None),
        ]
    )
    hits = index.search("", {}, [], GeoFilter(lat=27.95, lon=-82.46, radius_km=radius_km), 10).hits
    assert [d["id"] for d in hits] == expected
