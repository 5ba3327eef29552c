"""
Local persisted mirror: one JSON file per collection key.

Stands in for the remote store when Snowflake is not configured or not
reachable. Each collection is a whole-array blob that is read, modified
and written back in full. There is no locking; the last write wins.

Storage failures never reach the caller: reads degrade to None, writes
and removals are logged and dropped.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

KEY_PREFIX = "suivi_natation_"


def storage_key(collection: str) -> str:
    return f"{KEY_PREFIX}{collection}"


class LocalMirror:
    """Key-value access to the JSON blobs under one data directory."""

    def __init__(self, data_dir: Path, known_collections: Iterable[str] = ()) -> None:
        self._data_dir = Path(data_dir)
        self._known = tuple(known_collections)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[list[Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "Failed to read local collection",
                extra={"key": key, "error": str(e)}
            )
            return None
        return data if isinstance(data, list) else None

    def save(self, key: str, data: list[Any]) -> None:
        path = self._path(key)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(
                "Failed to save local collection",
                extra={"key": key, "error": str(e)}
            )

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            logger.error(
                "Failed to remove local collection",
                extra={"key": key, "error": str(e)}
            )

    def reset_all(self) -> None:
        """Clear every known collection key."""
        for collection in self._known:
            self.remove(storage_key(collection))
        logger.info("Local mirror reset", extra={"data_dir": str(self._data_dir)})

    def collection(self, name: str) -> "MirrorCollection":
        return MirrorCollection(self, name)


class MirrorCollection:
    """get / save / remove bound to one collection's stable key."""

    def __init__(self, mirror: LocalMirror, name: str) -> None:
        self._mirror = mirror
        self.name = name
        self.key = storage_key(name)

    def get(self) -> Optional[list[Any]]:
        return self._mirror.get(self.key)

    def save(self, data: list[Any]) -> None:
        self._mirror.save(self.key, data)

    def remove(self) -> None:
        self._mirror.remove(self.key)
