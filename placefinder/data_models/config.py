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
Pydantic models for configuring the search layer.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class SearchConfig(BaseModel):
    """Configuration for a query controller."""

    debounce_ms: int = Field(
        default=300,
        ge=0,
        description="Quiet period after the last keystroke before a lookup runs"
    )
    min_query_length: int = Field(
        default=2,
        ge=1,
        description="Shortest query that triggers a full lookup"
    )
    max_results: int = Field(
        default=20,
        ge=1,
        description="Maximum number of results published"
    )
    suggestion_limit: int = Field(
        default=8,
        ge=1,
        description="Maximum number of suggestions requested from the index"
    )
    categories: list[str] = Field(
        default_factory=list,
        description="Only keep results whose category is in this list"
    )
    enable_caching: bool = Field(
        default=True,
        description="Consult and fill the shared result caches"
    )
    enable_suggestions: bool = Field(
        default=True,
        description="Fetch suggestions alongside results"
    )
    cache_capacity: int | None = Field(
        default=None,
        ge=1,
        description="LRU capacity of the shared caches (unbounded if not set)"
    )

    @field_validator("categories", mode="before")
    @classmethod
    def drop_blank_categories(cls, v):
        if v is None:
            return []
        return [c.strip() for c in v if c and c.strip()]

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


class StoreConfig(BaseModel):
    """Configuration for the persistent history and favorites store."""

    storage_dir: Path = Field(
        default=Path("~/.placefinder"),
        description="Directory holding one JSON file per persisted record"
    )
    places_path: Path | None = Field(
        default=None,
        description="Optional JSON file with the places served by the local index"
    )

    @model_validator(mode="after")
    def expand_paths(self) -> "StoreConfig":
        """Expand '~' in configured paths."""
        self.storage_dir = self.storage_dir.expanduser()
        if self.places_path is not None:
            self.places_path = self.places_path.expanduser()
        return self
