import json
import logging
import os
import tempfile
from typing import Dict, Optional

from app.config import HISTORY_STORAGE_PATH, LOCAL_STORAGE_QUOTA_BYTES
from app.exceptions import StorageQuotaExceeded

logger = logging.getLogger(__name__)


class LocalStorage:
    """
    Device-local key-value store persisted as one JSON file.
    Keys and values are strings; the quota counts characters of both.
    """

    def __init__(self, path: str = HISTORY_STORAGE_PATH, quota_bytes: int = LOCAL_STORAGE_QUOTA_BYTES):
        self.path = path
        self.quota_bytes = quota_bytes

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Local storage unreadable ({self.path}): {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Local storage is not a key-value map ({self.path})")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write_all(self, items: Dict[str, str]):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str):
        items = self._read_all()
        items[key] = value
        used = sum(len(k) + len(v) for k, v in items.items())
        if used > self.quota_bytes:
            raise StorageQuotaExceeded(
                f"Setting '{key}' needs {used} bytes, quota is {self.quota_bytes}"
            )
        self._write_all(items)

    def remove_item(self, key: str):
        items = self._read_all()
        if items.pop(key, None) is not None:
            self._write_all(items)
