"""
Adapter: JsonFileStore
Implementuje port RollStore na zwykłym katalogu (zamontowany wolumen):

  <root>/macros/<scope>.json    {"name": "notation", ...}
  <root>/history/<scope>.json   [RollRecord, ...]  od najstarszego

Id zakresu jest kodowane procentowo (urllib.parse.quote, bez znaków "safe"),
więc kodowanie jest odwracalne i "user:1" nie trafia do pliku "user_1".
Brakujący plik czyta się jako pusty. Zapis idzie do pliku tymczasowego,
który jest fsync-owany i podmieniany przez rename, więc czytelnik nigdy
nie widzi połowy pliku.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any
from urllib.parse import quote

from contracts import RollRecord

logger = logging.getLogger("rollwright.store")


def _scope_file(scope: str) -> str:
    return quote(scope, safe="") + ".json"


class JsonFileStore:
    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._lock = threading.RLock()

    @property
    def root(self) -> Path:
        return self._root

    # -- RollStore protocol: macros ------------------------------------------

    def get_macros(self, scope: str) -> dict[str, str]:
        data = self._load(self._path("macros", scope), {})
        if not isinstance(data, dict):
            raise ValueError(f"Macro file for {scope!r} is not a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def get_macro(self, scope: str, name: str) -> str | None:
        return self.get_macros(scope).get(name)

    def set_macro(self, scope: str, name: str, notation: str) -> None:
        with self._lock:
            macros = self.get_macros(scope)
            macros[name] = notation
            self._save(self._path("macros", scope), macros)
        logger.info("Saved macro %s for %s", name, scope)

    def delete_macro(self, scope: str, name: str) -> bool:
        with self._lock:
            macros = self.get_macros(scope)
            if name not in macros:
                return False
            del macros[name]
            self._save(self._path("macros", scope), macros)
        logger.info("Deleted macro %s for %s", name, scope)
        return True

    # -- RollStore protocol: history -----------------------------------------

    def append_history(self, record: RollRecord, limit: int) -> None:
        with self._lock:
            path = self._path("history", record.scope)
            entries = self._load(path, [])
            entries.append(record.model_dump(mode="json"))
            if limit > 0:
                entries = entries[-limit:]
            self._save(path, entries)

    def get_history(self, scope: str, limit: int | None = None) -> list[RollRecord]:
        entries = self._load(self._path("history", scope), [])
        records = [RollRecord.model_validate(e) for e in entries]
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records

    # -- Prywatne ------------------------------------------------------------

    def _path(self, kind: str, scope: str) -> Path:
        return self._root / kind / _scope_file(scope)

    @staticmethod
    def _load(path: Path, default: Any) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return default

    @staticmethod
    def _save(path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
