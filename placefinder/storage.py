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
Durable key/value storage used by the search store.

Values are serialized strings. Backends raise `PersistenceReadError` and
`PersistenceWriteError`; deciding whether a failure is fatal is left to the
caller.
"""

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from placefinder.exceptions import PersistenceReadError, PersistenceWriteError

logger = logging.getLogger(__name__)


class Storage(Protocol):
    async def get_item(self, key: str) -> str | None:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...

    async def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """Keeps values in a dict. Useful for tests and throwaway sessions."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FileStorage:
    """
    Stores each key as its own JSON file inside a directory.

    Writes go to a temporary file that replaces the target, so a crash never
    leaves a half-written record behind. Blocking file I/O runs in a worker
    thread.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        name = re.sub(r"[^A-Za-z0-9_-]+", "_", key).strip("_")
        if not name:
            raise ValueError(f"Storage key '{key}' has no usable characters")
        return self.directory / f"{name}.json"

    async def get_item(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, self.path_for(key))

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, self.path_for(key), value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._remove, self.path_for(key))

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadError(f"Could not read {path}: {e}") from e

    def _write(self, path: Path, value: str) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{path.stem}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceWriteError(f"Could not write {path}: {e}") from e
        logger.debug("Wrote %s (%s bytes)", path, len(value))

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceWriteError(f"Could not remove {path}: {e}") from e
