"""Append-only JSON record lists, one file per storage key.

Reads and writes always move the whole list. Unreadable content is treated
as an empty list.
"""

import json
import logging
import os
import tempfile
from typing import Any, Dict, List

log = logging.getLogger("lostitem.storage")


def _mkdir(p: str) -> None:
    os.makedirs(p, exist_ok=True)


class RecordStore:
    def __init__(self, storage_dir, key: str):
        self.storage_dir = str(storage_dir)
        self.key = key
        self.path = os.path.join(self.storage_dir, f"{key}.json")

    def load(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.warning("record store %s unreadable, starting empty: %s", self.key, e)
            return []
        if not isinstance(data, list):
            log.warning("record store %s does not hold a list, starting empty", self.key)
            return []
        return data

    def save(self, records: List[Dict[str, Any]]) -> None:
        # readers see the old list or the new one, never a partial write
        _mkdir(self.storage_dir)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{self.key}.", suffix=".tmp", dir=self.storage_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def append(self, record: Dict[str, Any]) -> List[Dict[str, Any]]:
        records = self.load()
        records.append(record)
        self.save(records)
        return records
