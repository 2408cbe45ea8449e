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
Global pytest configuration and fixtures.

Pytest automatically discovers and loads this file. Fixtures defined here are
available to all tests in this directory and its subdirectories without
needing to import them explicitly.
"""

import os
from unittest.mock import patch

import pytest
from placefinder import cache
from placefinder.data_models.places import Place
from placefinder.storage import MemoryStorage
from placefinder.store import SearchStore


@pytest.fixture(autouse=True)
def clean_env():
    """
    Automatically clear environment variables for all tests to ensure
    tests are hermetic and don't depend on the host environment.
    """
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture(autouse=True)
def mock_load_dotenv():
    """
    Automatically mock load_dotenv for all tests to prevent
    loading environment variables from local .env files.
    """
    with patch("placefinder.cli.load_dotenv"), patch("placefinder.config.load_dotenv"):
        yield


@pytest.fixture(autouse=True)
def reset_shared_caches():
    """Start every test with empty, unbounded process-wide caches."""
    for shared in (cache.search_cache, cache.suggestion_cache):
        shared.clear()
        shared.resize(None)
    yield
    for shared in (cache.search_cache, cache.suggestion_cache):
        shared.clear()
        shared.resize(None)


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """A fixture to isolate tests from .env files and existing env vars."""
    monkeypatch.chdir(tmp_path)

    # This inner function will be the fixture's return value
    def _patch_env(env_vars):
        return patch.dict(os.environ, env_vars, clear=True)

    return _patch_env


@pytest.fixture
def places():
    return [
        Place(
            id="cappadocia",
            name="Kapadokya",
            category="natural",
            city="Nevşehir",
            district="Ürgüp",
            tags=["Balon", "UNESCO"],
            popularity_score=95,
            rating=4.9,
        ),
        Place(
            id="hagia-sophia",
            name="Ayasofya Müzesi",
            category="historical",
            city="İstanbul",
            district="Fatih",
            tags=["Bizans", "UNESCO"],
            popularity_score=98,
            rating=4.8,
        ),
        Place(
            id="galata-tower",
            name="Galata Kulesi",
            category="historical",
            city="İstanbul",
            district="Beyoğlu",
            popularity_score=86,
            rating=4.4,
        ),
        Place(
            id="oludeniz",
            name="Ölüdeniz",
            category="beach",
            city="Muğla",
            district="Fethiye",
            popularity_score=91,
            rating=4.8,
        ),
    ]


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def store(memory_storage):
    return SearchStore(memory_storage)
