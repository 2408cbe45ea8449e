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
Data models for place records returned by a search index.

The search layer only relies on `id` (identity), `name` (display name) and
`category` (filtering). Every other field is descriptive and unknown fields
are preserved so that records round-trip through persistence unchanged.
"""

from pydantic import BaseModel, ConfigDict, Field


class Place(BaseModel):
    """A reference to a tourist place record."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Stable identity of the place")
    name: str = Field(..., description="Display name of the place")
    category: str | None = Field(None, description="Category id, e.g. 'historical'")
    city: str = Field(default="", description="City the place is located in")
    district: str = Field(default="", description="District within the city")
    region: str = Field(default="", description="Geographic region id")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")
    short_description: str = Field(default="", description="One-line summary")
    description: str = Field(default="", description="Long description")
    popularity_score: float = Field(default=0, description="Popularity, 1-100")
    rating: float = Field(default=0, description="Average rating, 0-5")
    is_featured: bool = Field(default=False, description="Editorially featured")
