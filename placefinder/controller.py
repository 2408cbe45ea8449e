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
Debounced, cancellable, cached query pipeline for a single search surface.

A `QueryController` owns one `SearchState`. Keystrokes go through
`set_query`, which publishes the new text immediately and schedules a
trailing-debounce lookup. Every request takes a new generation number; a
lookup may only publish while its generation is still the current one, so a
slow lookup for an older query can never overwrite the results of a newer
one.

The controller must be driven from a running asyncio event loop.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from placefinder.cache import ResultCache, search_cache, suggestion_cache
from placefinder.data_models.config import SearchConfig
from placefinder.data_models.enums import ErrorKind
from placefinder.data_models.places import Place
from placefinder.data_models.search import PerformanceStats, SearchState
from placefinder.index import SearchIndex
from placefinder.ranking import merge_suggestions
from placefinder.store import SearchStore
from placefinder.telemetry import SearchAnalytics, SearchTelemetry

logger = logging.getLogger(__name__)

# Suggestions are only fetched alongside results for queries this long.
MIN_SUGGESTION_QUERY_LENGTH = 2

StateListener = Callable[[SearchState], None]
T = TypeVar("T")


async def _resolve(value: T | Awaitable[T]) -> T:
    """Await `value` if the index returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


class QueryController:
    def __init__(
        self,
        index: SearchIndex,
        config: SearchConfig | None = None,
        *,
        store: SearchStore | None = None,
        analytics: SearchAnalytics | None = None,
        results_cache: ResultCache[Place] | None = None,
        suggestions_cache: ResultCache[str] | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            index: The search index answering queries and suggestions
            config: Debounce, length, result and caching options
            store: Persistent store that completed searches are reported to
            analytics: Optional aggregate analytics fed with completed searches
            results_cache: Query -> results cache (defaults to the shared one)
            suggestions_cache: Query -> suggestions cache (defaults to the
                shared one)
        """
        self.index = index
        self.config = config or SearchConfig()
        self.store = store
        self.analytics = analytics
        self.telemetry = SearchTelemetry()
        self.results_cache = (
            results_cache if results_cache is not None else search_cache
        )
        self.suggestions_cache = (
            suggestions_cache if suggestions_cache is not None else suggestion_cache
        )
        if self.config.cache_capacity is not None:
            self.results_cache.resize(self.config.cache_capacity)
            self.suggestions_cache.resize(self.config.cache_capacity)

        self._state = SearchState()
        self._generation = 0
        self._debounce_task: asyncio.Task | None = None
        self._suggestion_task: asyncio.Task | None = None
        self._listeners: list[StateListener] = []
        self._closed = False

    # ---- Observable state ------------------------------------------------

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def performance_stats(self) -> PerformanceStats:
        return self.telemetry.stats()

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener` with every new state. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- Public operations -----------------------------------------------

    def set_query(self, text: str) -> None:
        """
        Update the query as the user types.

        The text is published immediately. Blank text clears the search;
        text shorter than `min_query_length` only refreshes suggestions;
        anything longer schedules a lookup after `debounce_ms` of quiet.
        """
        if self._closed:
            logger.debug("Ignoring set_query on a closed controller")
            return

        generation = self._supersede()
        min_length = self.config.min_query_length

        if not text.strip():
            self._publish(
                generation,
                query=text,
                results=[],
                suggestions=[],
                is_loading=False,
                has_searched=False,
                error=None,
            )
            return

        if len(text) < min_length:
            self._publish(
                generation,
                query=text,
                results=[],
                is_loading=False,
                has_searched=False,
                error=None,
            )
            self._start_quick_suggestions(text, generation)
            return

        self._publish(generation, query=text, is_loading=True, error=None)
        self._debounce_task = asyncio.create_task(
            self._debounced_lookup(text, generation)
        )

    async def search(self, text: str) -> None:
        """Look `text` up right away, e.g. when the user submits the query."""
        if self._closed:
            logger.debug("Ignoring search on a closed controller")
            return

        generation = self._supersede()
        self._publish(generation, query=text, is_loading=True, error=None)
        await self._lookup(text, generation)

    def clear_search(self) -> None:
        """Cancel pending work and reset to the initial empty state."""
        generation = self._supersede()
        self._publish(generation, **SearchState().model_dump())

    def select_place(self, place: Place) -> None:
        """Accept `place` as the answer to the current search."""
        generation = self._supersede()
        self._publish(
            generation,
            query=place.name,
            results=[place],
            suggestions=[],
            is_loading=False,
        )

    def close(self) -> None:
        """Cancel pending work. The state is never modified afterwards."""
        if self._closed:
            return
        self._supersede()
        self._closed = True
        self._listeners.clear()

    async def __aenter__(self) -> "QueryController":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    # ---- Internals -------------------------------------------------------

    def _supersede(self) -> int:
        """Invalidate every earlier request and return the new generation."""
        self._generation += 1
        for task in (self._debounce_task, self._suggestion_task):
            if task is not None and not task.done():
                task.cancel()
        self._debounce_task = None
        self._suggestion_task = None
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _publish(self, generation: int, **changes: Any) -> bool:
        """Apply `changes` to the state if `generation` is still current."""
        if not self._is_current(generation):
            return False
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Search state listener failed")
        return True

    def _limit(self, places: Sequence[Place]) -> list[Place]:
        if self.config.categories:
            allowed = set(self.config.categories)
            places = [place for place in places if place.category in allowed]
        return list(places[: self.config.max_results])

    def _suggestions_enabled(self) -> bool:
        """Suggestions need both the controller config and the user preference."""
        if not self.config.enable_suggestions:
            return False
        return self.store is None or self.store.preferences.enable_suggestions

    def _history_suggestions(self, text: str) -> list[str]:
        if self.store is None:
            return []
        return self.store.get_history_based_suggestions(text)

    def _start_quick_suggestions(self, text: str, generation: int) -> None:
        """Suggestion-only path for queries too short to search."""
        if not self._suggestions_enabled():
            self._publish(generation, suggestions=[])
            return

        limit = self.config.suggestion_limit
        cached = self._cached_suggestions(text)
        if cached is not None:
            self._publish_quick_suggestions(text, generation, cached)
            return

        try:
            suggestions = self.index.suggest(text, limit)
        except Exception as e:
            logger.error("Suggestion lookup failed for %r: %s", text, e)
            self._publish(generation, suggestions=[], error=ErrorKind.SEARCH_FAILED)
            return

        if inspect.isawaitable(suggestions):
            self._suggestion_task = asyncio.create_task(
                self._await_quick_suggestions(text, generation, suggestions)
            )
            return
        self._store_suggestions(text, suggestions)
        self._publish_quick_suggestions(text, generation, suggestions)

    async def _await_quick_suggestions(
        self, text: str, generation: int, pending: Awaitable[Sequence[str]]
    ) -> None:
        try:
            suggestions = await pending
        except Exception as e:
            logger.error("Suggestion lookup failed for %r: %s", text, e)
            self._publish(generation, suggestions=[], error=ErrorKind.SEARCH_FAILED)
            return
        self._store_suggestions(text, suggestions)
        self._publish_quick_suggestions(text, generation, suggestions)

    def _publish_quick_suggestions(
        self, text: str, generation: int, suggestions: Sequence[str]
    ) -> None:
        merged = merge_suggestions(
            self._history_suggestions(text),
            suggestions,
            self.config.suggestion_limit,
        )
        self._publish(generation, suggestions=merged)

    def _cached_suggestions(self, text: str) -> list[str] | None:
        if not self.config.enable_caching:
            return None
        return self.suggestions_cache.get(text)

    def _store_suggestions(self, text: str, suggestions: Sequence[str]) -> None:
        if self.config.enable_caching:
            self.suggestions_cache.set(text, list(suggestions))

    async def _fetch_suggestions(self, text: str) -> list[str]:
        cached = self._cached_suggestions(text)
        if cached is not None:
            return cached
        suggestions = list(
            await _resolve(self.index.suggest(text, self.config.suggestion_limit))
        )
        self._store_suggestions(text, suggestions)
        return suggestions

    async def _debounced_lookup(self, text: str, generation: int) -> None:
        await asyncio.sleep(self.config.debounce_seconds)
        await self._lookup(text, generation)

    async def _lookup(self, text: str, generation: int) -> None:
        if not text.strip() or len(text) < self.config.min_query_length:
            self._publish(
                generation,
                results=[],
                suggestions=[],
                is_loading=False,
                has_searched=True,
                error=None,
            )
            return

        suggestions: list[str] = []
        try:
            cached = (
                self.results_cache.get(text) if self.config.enable_caching else None
            )
            if cached is not None:
                results = self._limit(cached)
                if self._suggestions_enabled():
                    suggestions = self._cached_suggestions(text) or []
            else:
                start = time.perf_counter()
                raw_results = list(await _resolve(self.index.search(text)))
                duration_ms = (time.perf_counter() - start) * 1000
                self.telemetry.record(duration_ms)
                if self.config.enable_caching:
                    self.results_cache.set(text, raw_results)
                results = self._limit(raw_results)

                if (
                    self._suggestions_enabled()
                    and len(text) >= MIN_SUGGESTION_QUERY_LENGTH
                ):
                    suggestions = await self._fetch_suggestions(text)
                logger.info(
                    "Search for %r completed in %.2fms - %s results",
                    text,
                    duration_ms,
                    len(results),
                )
        except Exception as e:
            logger.error("Search failed for %r: %s", text, e)
            self._publish(
                generation,
                results=[],
                suggestions=[],
                is_loading=False,
                has_searched=True,
                error=ErrorKind.SEARCH_FAILED,
            )
            return

        published = self._publish(
            generation,
            results=results,
            suggestions=suggestions,
            is_loading=False,
            has_searched=True,
            error=None,
        )
        if not published:
            logger.debug("Discarding superseded results for %r", text)
            return

        if self.analytics is not None:
            self.analytics.track_search(text, len(results))
        if self.store is not None:
            # A newer request may cancel this task; the history entry for a
            # search that was already shown must still be written.
            await asyncio.shield(self._report_search(text, len(results)))

    async def _report_search(self, text: str, result_count: int) -> None:
        try:
            await self.store.add_search_to_history(text, result_count)
        except Exception:
            logger.exception("Failed to record %r in search history", text)
