# Copyright 2025 Google LLC.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Tests for the in-memory and HTTP search indexes.
"""

import json

import httpx
import pytest
from placefinder.exceptions import SearchFailedError
from placefinder.index import (
    HttpSearchIndex,
    InMemorySearchIndex,
    create_local_index,
    load_places,
)


class TestInMemorySearchIndex:
    def test_name_match(self, places):
        index = InMemorySearchIndex(places)

        assert [p.id for p in index.search("Kapadokya")] == ["cappadocia"]

    def test_match_is_case_insensitive(self, places):
        index = InMemorySearchIndex(places)

        assert [p.id for p in index.search("galata")] == ["galata-tower"]

    def test_tag_match_ranked_by_score(self, places):
        index = InMemorySearchIndex(places)

        # Same tag; popularity and rating decide the order.
        assert [p.id for p in index.search("UNESCO")] == ["hagia-sophia", "cappadocia"]

    def test_multi_word_query_matches_across_fields(self, places):
        index = InMemorySearchIndex(places)

        assert [p.id for p in index.search("balon ürgüp")] == ["cappadocia"]

    def test_category_hit_boosts_score(self, places):
        index = InMemorySearchIndex(places)

        results = index.search("historical")

        assert {p.id for p in results} == {"hagia-sophia", "galata-tower"}
        assert results[0].id == "hagia-sophia"

    def test_blank_and_unknown_queries(self, places):
        index = InMemorySearchIndex(places)

        assert index.search("   ") == []
        assert index.search("Atlantis") == []

    def test_search_is_deterministic(self, places):
        index = InMemorySearchIndex(places)

        assert index.search("a") == index.search("a")

    def test_suggest_locations_then_names_by_popularity(self, places):
        index = InMemorySearchIndex(places)

        assert index.suggest("a", 8) == [
            "İstanbul",
            "Fatih",
            "Muğla",
            "Ayasofya Müzesi",
            "Kapadokya",
            "Galata Kulesi",
        ]
        assert index.suggest("a", 2) == ["İstanbul", "Fatih"]

    def test_suggest_edge_cases(self, places):
        index = InMemorySearchIndex(places)

        assert index.suggest("", 8) == []
        assert index.suggest("a", 0) == []
        assert index.suggest("zzz", 8) == []

    def test_get(self, places):
        index = InMemorySearchIndex(places)

        assert index.get("oludeniz").name == "Ölüdeniz"
        assert index.get("missing") is None


class TestLoadPlaces:
    def test_load_places(self, tmp_path, places):
        path = tmp_path / "places.json"
        path.write_text(
            json.dumps([place.model_dump() for place in places]), encoding="utf-8"
        )

        assert load_places(path) == places

    def test_load_places_requires_array(self, tmp_path):
        path = tmp_path / "places.json"
        path.write_text('{"id": "x"}', encoding="utf-8")

        with pytest.raises(ValueError):
            load_places(path)

    def test_bundled_sample(self):
        index = create_local_index()

        assert index.get("cappadocia").name == "Kapadokya"
        assert [p.id for p in index.search("Kapadokya")][0] == "cappadocia"


def make_index(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpSearchIndex("https://places.example.com/api/", client=client)


@pytest.mark.asyncio
class TestHttpSearchIndex:
    async def test_search(self, places):
        def handler(request):
            assert request.url.path == "/api/search"
            assert request.url.params["q"] == "Galata"
            return httpx.Response(
                200, json={"results": [places[2].model_dump()]}
            )

        index = make_index(handler)

        assert await index.search("Galata") == [places[2]]

    async def test_suggest(self):
        def handler(request):
            assert request.url.path == "/api/suggest"
            assert request.url.params["limit"] == "2"
            return httpx.Response(200, json={"suggestions": ["Galata", "Gaziantep", "x"]})

        index = make_index(handler)

        assert await index.suggest("Ga", 2) == ["Galata", "Gaziantep"]

    async def test_missing_keys_give_empty_lists(self):
        index = make_index(lambda request: httpx.Response(200, json={}))

        assert await index.search("Efes") == []
        assert await index.suggest("Ef", 5) == []

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(503, json={"error": "unavailable"}),
            httpx.Response(200, text="<html>not json</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    async def test_bad_responses_raise_search_failed(self, response):
        index = make_index(lambda request: response)

        with pytest.raises(SearchFailedError):
            await index.search("Efes")

    async def test_connection_error_raises_search_failed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        index = make_index(handler)

        with pytest.raises(SearchFailedError, match="could not be reached"):
            await index.suggest("Ef", 3)

    async def test_aclose_leaves_injected_client_open(self):
        index = make_index(lambda request: httpx.Response(200, json={}))

        await index.aclose()

        assert not index.client.is_closed

    async def test_aclose_closes_owned_client(self):
        index = HttpSearchIndex("https://places.example.com")

        await index.aclose()

        assert index.client.is_closed
