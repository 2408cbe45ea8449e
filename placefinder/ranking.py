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
Helpers that rank and deduplicate history entries and suggestion lists.
"""

from collections import Counter
from collections.abc import Iterable, Sequence

from placefinder.data_models.store import HistoryItem

HISTORY_SUGGESTION_LIMIT = 5
POPULAR_SEARCH_LIMIT = 10


def dedupe_case_insensitive(items: Iterable[str]) -> list[str]:
    """Keep the first occurrence of each string, comparing case-insensitively."""
    seen = set()
    deduped = []
    for item in items:
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        deduped.append(item)
    return deduped


def dedupe_exact(items: Iterable[str]) -> list[str]:
    """Keep the first occurrence of each string."""
    # Use dict as ordered set
    return list(dict.fromkeys(items))


def dedupe_history(items: Iterable[HistoryItem]) -> list[HistoryItem]:
    """Keep the first item for each query, comparing queries case-insensitively."""
    seen = set()
    deduped = []
    for item in items:
        key = item.query.lower()
        if key in seen:
            continue
        seen.add(key)
        deduped.append(item)
    return deduped


def history_suggestions(
    history: Sequence[HistoryItem],
    query: str,
    limit: int = HISTORY_SUGGESTION_LIMIT,
) -> list[str]:
    """
    Past queries containing `query` that found at least one result.

    Matching is a case-insensitive substring test; the newest matches come
    first.
    """
    if not query.strip():
        return []

    lower_query = query.lower()
    matches = [
        item
        for item in history
        if lower_query in item.query.lower() and item.result_count > 0
    ]
    # sorted() is stable, so equal timestamps keep their stored order.
    matches = sorted(matches, key=lambda item: item.timestamp, reverse=True)
    return [item.query for item in matches[:limit]]


def popular_searches(
    history: Sequence[HistoryItem], limit: int = POPULAR_SEARCH_LIMIT
) -> list[str]:
    """Past queries ordered by how often they occur, most frequent first."""
    counts = Counter(item.query for item in history)
    return [query for query, _ in counts.most_common(limit)]


def merge_suggestions(
    history_based: Sequence[str],
    index_based: Sequence[str],
    limit: int,
) -> list[str]:
    """
    Combine history-based and index suggestions into one display list.

    History entries come first; duplicates are dropped case-insensitively.
    """
    if limit <= 0:
        return []
    return dedupe_case_insensitive([*history_based, *index_based])[:limit]
