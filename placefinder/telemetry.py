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
Latency telemetry for a single query controller and aggregate search analytics.
"""

import logging
from collections import Counter, deque

from placefinder.data_models.search import PerformanceStats, QueryCount

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 10
POPULAR_QUERY_LIMIT = 10
NO_RESULT_QUERY_LIMIT = 50


class SearchTelemetry:
    """Rolling window of the most recent search durations."""

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE) -> None:
        self._durations: deque[float] = deque(maxlen=window_size)

    def record(self, duration_ms: float) -> None:
        self._durations.append(duration_ms)
        logger.debug("Recorded search duration %.2fms", duration_ms)

    @property
    def durations(self) -> list[float]:
        return list(self._durations)

    @property
    def last_search_duration_ms(self) -> float:
        return self._durations[-1] if self._durations else 0.0

    @property
    def average_search_duration_ms(self) -> float:
        if not self._durations:
            return 0.0
        return sum(self._durations) / len(self._durations)

    def stats(self) -> PerformanceStats:
        return PerformanceStats(
            last_search_duration_ms=self.last_search_duration_ms,
            average_search_duration_ms=self.average_search_duration_ms,
        )

    def reset(self) -> None:
        self._durations.clear()


class SearchAnalytics:
    """
    Aggregate figures over every search tracked in this process.

    Unlike `SearchTelemetry` this is not windowed: it counts every tracked
    search, remembers which queries are asked most often and keeps the most
    recent queries that produced no result at all.
    """

    def __init__(self) -> None:
        self.total_searches = 0
        self.average_results_per_search = 0.0
        self._query_counts: Counter[str] = Counter()
        self._no_result_queries: deque[str] = deque(maxlen=NO_RESULT_QUERY_LIMIT)

    def track_search(self, query: str, result_count: int) -> None:
        total_results = self.average_results_per_search * self.total_searches
        self.total_searches += 1
        self.average_results_per_search = (
            total_results + result_count
        ) / self.total_searches

        self._query_counts[query] += 1
        if result_count == 0:
            self._no_result_queries.append(query)

    @property
    def popular_queries(self) -> list[QueryCount]:
        # Counter.most_common keeps first-seen order between equal counts.
        return [
            QueryCount(query=query, count=count)
            for query, count in self._query_counts.most_common(POPULAR_QUERY_LIMIT)
        ]

    @property
    def no_result_queries(self) -> list[str]:
        return list(self._no_result_queries)

    def reset(self) -> None:
        self.total_searches = 0
        self.average_results_per_search = 0.0
        self._query_counts.clear()
        self._no_result_queries.clear()
