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
Persistent search history, recent searches, favorites and preferences.

The in-memory state is the source of truth. Every mutation updates it first
and then writes the affected records through to storage. Persistence is best
effort: storage failures are logged and remembered in `last_error`, and are
never raised to callers.
"""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from placefinder.data_models.enums import ErrorKind, StorageKey
from placefinder.data_models.places import Place
from placefinder.data_models.store import (
    MAX_RECENT_SEARCHES,
    SNAPSHOT_VERSION,
    FavoriteListAdapter,
    FavoritePlace,
    HistoryItem,
    HistoryListAdapter,
    RecentListAdapter,
    SearchPreferences,
    StoreSnapshot,
)
from placefinder.exceptions import ImportValidationError
from placefinder.ranking import (
    dedupe_exact,
    dedupe_history,
    history_suggestions,
    popular_searches,
)
from placefinder.storage import FileStorage, Storage

logger = logging.getLogger(__name__)


def _ts_now() -> int:
    """Get current Unix timestamp in milliseconds."""
    return int(time.time() * 1000)


def _new_history_id(timestamp: int) -> str:
    return f"search_{timestamp}_{uuid.uuid4().hex[:9]}"


def _dedupe_favorites(favorites: list[FavoritePlace]) -> list[FavoritePlace]:
    seen = set()
    deduped = []
    for favorite in favorites:
        if favorite.place.id in seen:
            continue
        seen.add(favorite.place.id)
        deduped.append(favorite)
    return deduped


class SearchStore:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._history: list[HistoryItem] = []
        self._recent: list[str] = []
        self._favorites: list[FavoritePlace] = []
        self._preferences = SearchPreferences()
        self._loaded = False
        self._write_lock = asyncio.Lock()
        self.last_error: ErrorKind | None = None

    # ---- State -----------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def search_history(self) -> list[HistoryItem]:
        return list(self._history)

    @property
    def recent_searches(self) -> list[str]:
        return list(self._recent)

    @property
    def favorite_places(self) -> list[FavoritePlace]:
        return list(self._favorites)

    @property
    def preferences(self) -> SearchPreferences:
        return self._preferences

    # ---- Loading ---------------------------------------------------------

    async def load(self) -> None:
        """
        Load all four records from storage.

        Each record is loaded independently: a missing, unreadable or corrupt
        record falls back to its default without affecting the others.
        """
        history, recent, favorites, preferences = await asyncio.gather(
            self._load_record(StorageKey.SEARCH_HISTORY, HistoryListAdapter, []),
            self._load_record(StorageKey.RECENT_SEARCHES, RecentListAdapter, []),
            self._load_record(StorageKey.FAVORITE_PLACES, FavoriteListAdapter, []),
            self._load_record(
                StorageKey.SEARCH_PREFERENCES,
                TypeAdapter(SearchPreferences),
                SearchPreferences(),
            ),
        )
        self._history = history
        self._recent = recent
        self._favorites = favorites
        self._preferences = preferences
        self._loaded = True
        logger.info(
            "Loaded search store: %s history items, %s recent searches, %s favorites",
            len(self._history),
            len(self._recent),
            len(self._favorites),
        )

    async def _load_record(
        self, key: StorageKey, adapter: TypeAdapter, default: Any
    ) -> Any:
        try:
            raw = await self.storage.get_item(key.value)
            if raw is None:
                return default
            return adapter.validate_json(raw)
        except (OSError, ValueError) as e:
            # ValidationError and JSONDecodeError are both ValueErrors.
            logger.warning("Could not load %s, using defaults: %s", key.value, e)
            self.last_error = ErrorKind.PERSISTENCE_READ_FAILED
            return default

    # ---- Persistence -----------------------------------------------------

    def _serialize(self, key: StorageKey) -> str:
        if key == StorageKey.SEARCH_HISTORY:
            return HistoryListAdapter.dump_json(self._history).decode()
        if key == StorageKey.RECENT_SEARCHES:
            return RecentListAdapter.dump_json(self._recent).decode()
        if key == StorageKey.FAVORITE_PLACES:
            return FavoriteListAdapter.dump_json(self._favorites).decode()
        return self._preferences.model_dump_json()

    async def _persist(self, *keys: StorageKey) -> None:
        # Serialize now so the write reflects the state of this mutation even
        # if a later mutation runs while we wait for the lock.
        payloads = [(key, self._serialize(key)) for key in keys]
        async with self._write_lock:
            for key, payload in payloads:
                try:
                    await self.storage.set_item(key.value, payload)
                except Exception as e:
                    logger.error("Failed to persist %s: %s", key.value, e)
                    self.last_error = ErrorKind.PERSISTENCE_WRITE_FAILED

    async def _remove(self, *keys: StorageKey) -> None:
        """Delete records; a missing record loads as its default."""
        async with self._write_lock:
            for key in keys:
                try:
                    await self.storage.remove_item(key.value)
                except Exception as e:
                    logger.error("Failed to remove %s: %s", key.value, e)
                    self.last_error = ErrorKind.PERSISTENCE_WRITE_FAILED

    # ---- History ---------------------------------------------------------

    async def add_search_to_history(self, query: str, result_count: int) -> None:
        trimmed = query.strip()
        if not trimmed:
            logger.debug("Ignoring blank query for search history")
            return
        if result_count < 0:
            logger.warning(
                "Negative result count %s for %r, storing 0", result_count, trimmed
            )
            result_count = 0

        timestamp = _ts_now()
        item = HistoryItem(
            id=_new_history_id(timestamp),
            query=trimmed,
            timestamp=timestamp,
            result_count=result_count,
        )
        self._history = dedupe_history([item, *self._history])[
            : self._preferences.max_history_items
        ]
        self._recent = dedupe_exact([query, *self._recent])[:MAX_RECENT_SEARCHES]
        await self._persist(StorageKey.SEARCH_HISTORY, StorageKey.RECENT_SEARCHES)

    async def clear_search_history(self) -> None:
        self._history = []
        self._recent = []
        await self._remove(StorageKey.SEARCH_HISTORY, StorageKey.RECENT_SEARCHES)

    async def remove_search_from_history(self, search_id: str) -> None:
        remaining = [item for item in self._history if item.id != search_id]
        if len(remaining) == len(self._history):
            return
        self._history = remaining
        await self._persist(StorageKey.SEARCH_HISTORY)

    def get_history_based_suggestions(self, query: str) -> list[str]:
        return history_suggestions(self._history, query)

    def get_popular_searches(self) -> list[str]:
        return popular_searches(self._history)

    # ---- Favorites -------------------------------------------------------

    async def add_to_favorites(self, place: Place, notes: str | None = None) -> None:
        for i, favorite in enumerate(self._favorites):
            if favorite.place.id == place.id:
                self._favorites[i] = favorite.model_copy(update={"notes": notes})
                break
        else:
            favorite = FavoritePlace(place=place, added_at=_ts_now(), notes=notes)
            self._favorites = [favorite, *self._favorites]
        await self._persist(StorageKey.FAVORITE_PLACES)

    async def remove_from_favorites(self, place_id: str) -> None:
        remaining = [fav for fav in self._favorites if fav.place.id != place_id]
        if len(remaining) == len(self._favorites):
            return
        self._favorites = remaining
        await self._persist(StorageKey.FAVORITE_PLACES)

    def is_favorite(self, place_id: str) -> bool:
        return any(fav.place.id == place_id for fav in self._favorites)

    async def toggle_favorite(self, place: Place) -> bool:
        """Flip the favorite status of `place` and return the new status."""
        if self.is_favorite(place.id):
            await self.remove_from_favorites(place.id)
            return False
        await self.add_to_favorites(place)
        return True

    # ---- Preferences -----------------------------------------------------

    async def update_preferences(
        self, partial: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> SearchPreferences:
        """
        Shallow-merge `partial` (and keyword arguments) over the current
        preferences and return the preferences now in effect.

        An invalid merge is rejected: nothing changes, `last_error` is set to
        `INVALID_PREFERENCES` and the unchanged preferences are returned.
        """
        updates = {**(partial or {}), **kwargs}
        merged = {**self._preferences.model_dump(), **updates}
        try:
            self._preferences = SearchPreferences.model_validate(merged)
        except ValidationError as e:
            logger.warning("Rejected preferences update %s: %s", updates, e)
            self.last_error = ErrorKind.INVALID_PREFERENCES
            return self._preferences

        keys = [StorageKey.SEARCH_PREFERENCES]
        if len(self._history) > self._preferences.max_history_items:
            self._history = self._history[: self._preferences.max_history_items]
            keys.append(StorageKey.SEARCH_HISTORY)
        await self._persist(*keys)
        return self._preferences

    # ---- Import / export -------------------------------------------------

    def export_data(self) -> str:
        snapshot = StoreSnapshot(
            version=SNAPSHOT_VERSION,
            export_date=datetime.now(timezone.utc).isoformat(),
            search_history=self._history,
            recent_searches=self._recent,
            favorite_places=self._favorites,
            preferences=self._preferences,
        )
        return snapshot.model_dump_json(indent=2)

    @staticmethod
    def parse_snapshot(data: str | bytes | Mapping[str, Any]) -> StoreSnapshot:
        """
        Validate an exported snapshot.

        Raises:
            ImportValidationError: If the data is not valid JSON, carries an
                unsupported version or any field has the wrong shape.
        """
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except ValueError as e:
                raise ImportValidationError(f"Snapshot is not valid JSON: {e}") from e
        if not isinstance(data, Mapping):
            raise ImportValidationError("Snapshot must be a JSON object")

        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            raise ImportValidationError(f"Unsupported snapshot version: {version!r}")
        try:
            return StoreSnapshot.model_validate(data)
        except ValidationError as e:
            raise ImportValidationError(f"Invalid snapshot format: {e}") from e

    async def import_data(self, data: str | bytes | Mapping[str, Any]) -> bool:
        """Replace the whole store with an exported snapshot.

        Returns False, leaving the store untouched, if the snapshot is invalid.
        """
        try:
            snapshot = self.parse_snapshot(data)
        except ImportValidationError as e:
            logger.warning("Rejected data import: %s", e)
            self.last_error = ErrorKind.IMPORT_VALIDATION_FAILED
            return False

        preferences = snapshot.preferences
        self._preferences = preferences
        self._history = dedupe_history(snapshot.search_history)[
            : preferences.max_history_items
        ]
        self._recent = dedupe_exact(snapshot.recent_searches)[:MAX_RECENT_SEARCHES]
        self._favorites = _dedupe_favorites(snapshot.favorite_places)
        await self._persist(*StorageKey)
        logger.info("Imported search store snapshot from %s", snapshot.export_date)
        return True

    async def clear_all_data(self) -> None:
        self._history = []
        self._recent = []
        self._favorites = []
        self._preferences = SearchPreferences()
        await self._remove(*StorageKey)


async def open_store(storage_dir: str | Path) -> SearchStore:
    """Create a file-backed store and load its records."""
    store = SearchStore(FileStorage(storage_dir))
    await store.load()
    return store
