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
Configuration module for the search layer.
"""

import os

from dotenv import load_dotenv

from .data_models.config import SearchConfig, StoreConfig

# Environment variable names
DEBOUNCE_MS_ENV = "PLACEFINDER_DEBOUNCE_MS"
MIN_QUERY_LENGTH_ENV = "PLACEFINDER_MIN_QUERY_LENGTH"
MAX_RESULTS_ENV = "PLACEFINDER_MAX_RESULTS"
SUGGESTION_LIMIT_ENV = "PLACEFINDER_SUGGESTION_LIMIT"
CATEGORIES_ENV = "PLACEFINDER_CATEGORIES"
ENABLE_CACHING_ENV = "PLACEFINDER_ENABLE_CACHING"
ENABLE_SUGGESTIONS_ENV = "PLACEFINDER_ENABLE_SUGGESTIONS"
CACHE_CAPACITY_ENV = "PLACEFINDER_CACHE_CAPACITY"
STORAGE_DIR_ENV = "PLACEFINDER_STORAGE_DIR"
PLACES_PATH_ENV = "PLACEFINDER_PLACES_PATH"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _load_env_file() -> None:
    """Load .env file if present in the current directory."""
    load_dotenv()


def _parse_csv(value: str) -> list[str] | None:
    """
    Parse a comma-separated value into a list of strings.

    Args:
        value: The comma-separated value to parse

    Returns:
        List of strings if value is not empty, None otherwise
    """
    if not value or not value.strip():
        return None

    # Split by comma and strip whitespace from each item
    items = [item.strip() for item in value.split(",")]
    # Filter out empty items
    return [item for item in items if item]


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got '{value}'")


def get_search_config() -> SearchConfig:
    """
    Get query controller configuration from environment variables.

    Returns:
        SearchConfig object containing the configuration

    Raises:
        ValueError: If a configured value is invalid
    """
    _load_env_file()

    # Build config data, only including fields that are provided
    config_data = {}

    for env_name, field_name in (
        (DEBOUNCE_MS_ENV, "debounce_ms"),
        (MIN_QUERY_LENGTH_ENV, "min_query_length"),
        (MAX_RESULTS_ENV, "max_results"),
        (SUGGESTION_LIMIT_ENV, "suggestion_limit"),
        (CACHE_CAPACITY_ENV, "cache_capacity"),
    ):
        value = os.getenv(env_name)
        if value:
            config_data[field_name] = value

    for env_name, field_name in (
        (ENABLE_CACHING_ENV, "enable_caching"),
        (ENABLE_SUGGESTIONS_ENV, "enable_suggestions"),
    ):
        value = os.getenv(env_name)
        if value:
            config_data[field_name] = _parse_bool(env_name, value)

    categories = os.getenv(CATEGORIES_ENV)
    categories_list = _parse_csv(categories) if categories else None
    if categories_list:
        config_data["categories"] = categories_list

    return SearchConfig.model_validate(config_data)


def get_store_config() -> StoreConfig:
    """
    Get persistent store configuration from environment variables.

    Returns:
        StoreConfig object containing the configuration
    """
    _load_env_file()

    config_data = {}
    storage_dir = os.getenv(STORAGE_DIR_ENV)
    if storage_dir:
        config_data["storage_dir"] = storage_dir
    places_path = os.getenv(PLACES_PATH_ENV)
    if places_path:
        config_data["places_path"] = places_path

    return StoreConfig.model_validate(config_data)
