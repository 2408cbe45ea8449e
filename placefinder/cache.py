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

import collections
from typing import Generic, TypeVar

from placefinder.data_models.places import Place

V = TypeVar("V")


class ResultCache(Generic[V]):
    """
    An in-memory query cache keyed by the raw query string.

    Keys are not normalized: "Istanbul", "istanbul" and "Istanbul " are three
    distinct entries. Without a capacity the cache grows for the lifetime of
    the process; with one it evicts the least recently used entry.

    Not synchronized. Callers share instances from a single event loop.
    """

    def __init__(self, capacity: int | None = None) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be a positive integer or None")
        self.cache: collections.OrderedDict[str, list[V]] = collections.OrderedDict()
        self.capacity = capacity

    def get(self, key: str) -> list[V] | None:
        """
        Retrieves a copy of an item from the cache and marks it as recently
        used. Returns None if the key is not found.
        """
        if key not in self.cache:
            return None
        self.cache.move_to_end(key)
        return list(self.cache[key])

    def set(self, key: str, value: list[V]) -> None:
        """
        Adds an item to the cache. If the cache is bounded and full, the least
        recently used item is removed.
        """
        self.cache[key] = list(value)
        self.cache.move_to_end(key)
        if self.capacity is not None and len(self.cache) > self.capacity:
            self.cache.popitem(last=False)

    def resize(self, capacity: int | None) -> None:
        """Change the capacity, evicting the oldest entries if needed."""
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be a positive integer or None")
        self.capacity = capacity
        if capacity is not None:
            while len(self.cache) > capacity:
                self.cache.popitem(last=False)

    def clear(self) -> None:
        self.cache.clear()

    def __contains__(self, key: str) -> bool:
        return key in self.cache

    def __len__(self) -> int:
        return len(self.cache)


# Process-wide caches shared by every query controller.
search_cache: ResultCache[Place] = ResultCache()
suggestion_cache: ResultCache[str] = ResultCache()
