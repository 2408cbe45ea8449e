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
Pydantic models for the persisted search history, favorites and preferences.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .places import Place

SNAPSHOT_VERSION = "1.0"
DEFAULT_MAX_HISTORY_ITEMS = 50
MAX_RECENT_SEARCHES = 10


class HistoryItem(BaseModel):
    """A completed search, as remembered by the store."""

    id: str = Field(..., description="Opaque unique token")
    query: str = Field(..., description="Trimmed query text")
    timestamp: int = Field(..., description="Unix timestamp in milliseconds")
    result_count: int = Field(..., ge=0, description="Number of results found")


class FavoritePlace(BaseModel):
    place: Place
    added_at: int = Field(..., description="Unix timestamp in milliseconds")
    notes: str | None = None


class SearchPreferences(BaseModel):
    """User search preferences. Partial updates merge over the current value."""

    model_config = ConfigDict(extra="ignore")

    max_history_items: int = Field(default=DEFAULT_MAX_HISTORY_ITEMS, ge=1)
    enable_suggestions: bool = True
    enable_auto_complete: bool = True
    search_radius_km: float = Field(default=10, ge=0)
    preferred_categories: set[str] = Field(default_factory=set)


class StoreSnapshot(BaseModel):
    """Versioned export format of the whole store."""

    model_config = ConfigDict(extra="ignore")

    version: Literal["1.0"] = SNAPSHOT_VERSION
    export_date: str | None = None
    search_history: list[HistoryItem]
    recent_searches: list[str]
    favorite_places: list[FavoritePlace] = Field(default_factory=list)
    preferences: SearchPreferences = Field(default_factory=SearchPreferences)


# Adapters for the records that are persisted as bare JSON arrays.
HistoryListAdapter = TypeAdapter(list[HistoryItem])
RecentListAdapter = TypeAdapter(list[str])
FavoriteListAdapter = TypeAdapter(list[FavoritePlace])
