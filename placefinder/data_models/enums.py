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
Enums for data modeling.
Contains enums used for search state and store error reporting.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of failures surfaced as state rather than raised."""

    SEARCH_FAILED = "search_failed"
    PERSISTENCE_READ_FAILED = "persistence_read_failed"
    PERSISTENCE_WRITE_FAILED = "persistence_write_failed"
    IMPORT_VALIDATION_FAILED = "import_validation_failed"
    INVALID_PREFERENCES = "invalid_preferences"


class StorageKey(str, Enum):
    """Stable keys for the four independently persisted records."""

    SEARCH_HISTORY = "@placefinder:searchHistory"
    RECENT_SEARCHES = "@placefinder:recentSearches"
    FAVORITE_PLACES = "@placefinder:favoritePlaces"
    SEARCH_PREFERENCES = "@placefinder:searchPreferences"
