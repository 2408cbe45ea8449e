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
Search index collaborators.

The query controller treats the index as opaque: given a query it returns a
finite, deterministic, ordered list of places, and given a partial query a
finite list of suggestion strings. Either method may be synchronous or return
an awaitable.
"""

import json
import logging
from collections.abc import Awaitable, Iterable, Sequence
from pathlib import Path
from typing import Protocol

import httpx

from placefinder.data_models.places import Place
from placefinder.exceptions import SearchFailedError

logger = logging.getLogger(__name__)

_SOURCE_DIR = Path(__file__).resolve().parent
DEFAULT_PLACES_PATH = _SOURCE_DIR / "data" / "places.json"


class SearchIndex(Protocol):
    def search(self, query: str) -> Sequence[Place] | Awaitable[Sequence[Place]]:
        ...

    def suggest(
        self, partial_query: str, limit: int
    ) -> Sequence[str] | Awaitable[Sequence[str]]:
        ...


def load_places(path: str | Path) -> list[Place]:
    """Read a JSON array of place records."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of places in {path}")
    return [Place.model_validate(item) for item in data]


def create_local_index(places_path: str | Path | None = None) -> "InMemorySearchIndex":
    """Build an in-memory index from `places_path` or the bundled sample data."""
    path = Path(places_path) if places_path else DEFAULT_PLACES_PATH
    places = load_places(path)
    logger.info("Loaded %s places from %s", len(places), path)
    return InMemorySearchIndex(places)


class InMemorySearchIndex:
    """
    A small substring index over a fixed list of places.

    A place matches when the lower-cased query is contained in its name,
    descriptions, city, district, region, category or one of its tags, or
    when every word of a multi-word query is found in one of those fields.
    Matches are ordered by a deterministic score (name and city hits first,
    then popularity, featured status and rating) with ties kept in input
    order.
    """

    def __init__(self, places: Iterable[Place]) -> None:
        self.places = list(places)
        self.places_by_id = {place.id: place for place in self.places}

    def get(self, place_id: str) -> Place | None:
        return self.places_by_id.get(place_id)

    def search(self, query: str) -> list[Place]:
        lower_query = query.lower().strip()
        if not lower_query:
            return []
        words = [word for word in lower_query.split(" ") if word]

        scored = []
        for place in self.places:
            if self._matches(place, lower_query, words):
                scored.append((self._score(place, lower_query), place))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [place for _, place in scored]

    def suggest(self, partial_query: str, limit: int) -> list[str]:
        lower_query = partial_query.lower().strip()
        if not lower_query or limit <= 0:
            return []

        # Use dict as ordered set
        suggestions: dict[str, None] = {}
        for place in self.places:
            for value in (place.city, place.district):
                if value and lower_query in value.lower():
                    suggestions.setdefault(value)
        ranked = sorted(self.places, key=lambda p: p.popularity_score, reverse=True)
        for place in ranked:
            if lower_query in place.name.lower():
                suggestions.setdefault(place.name)
        return list(suggestions)[:limit]

    @staticmethod
    def _fields(place: Place) -> list[str]:
        return [
            place.name,
            place.short_description,
            place.description,
            place.city,
            place.district,
            place.region,
            place.category or "",
            *place.tags,
        ]

    def _matches(self, place: Place, lower_query: str, words: list[str]) -> bool:
        fields = [value.lower() for value in self._fields(place) if value]
        if any(lower_query in value for value in fields):
            return True
        if len(words) > 1:
            return all(any(word in value for value in fields) for word in words)
        return False

    @staticmethod
    def _score(place: Place, lower_query: str) -> float:
        score = 0.0
        name = place.name.lower()
        if lower_query in name:
            score += 100 if name == lower_query else 50
        city = place.city.lower()
        if city and lower_query in city:
            score += 80 if city == lower_query else 30
        if place.category and lower_query in place.category.lower():
            score += 40
        score += place.popularity_score * 0.1
        if place.is_featured:
            score += 10
        score += place.rating * 2
        return score


class HttpSearchIndex:
    """
    An out-of-process search index reached over HTTP.

    Expects `GET {base_url}/search?q=...` to return `{"results": [place, ...]}`
    and `GET {base_url}/suggest?q=...&limit=N` to return
    `{"suggestions": [str, ...]}`.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def search(self, query: str) -> list[Place]:
        data = await self._get("search", {"q": query})
        return [Place.model_validate(item) for item in data.get("results", [])]

    async def suggest(self, partial_query: str, limit: int) -> list[str]:
        data = await self._get("suggest", {"q": partial_query, "limit": limit})
        return [str(item) for item in data.get("suggestions", [])][:limit]

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _get(self, endpoint: str, params: dict) -> dict:
        url = f"{self.base_url}/{endpoint}"
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise SearchFailedError(
                f"Search index returned status {e.response.status_code} for {url}"
            ) from e
        except httpx.RequestError as e:
            raise SearchFailedError(
                f"Search index could not be reached at {url}: {e}"
            ) from e
        except ValueError as e:
            raise SearchFailedError(f"Search index returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SearchFailedError(f"Unexpected response shape from {url}")
        logger.debug("Search index %s answered for %s", endpoint, params)
        return data
