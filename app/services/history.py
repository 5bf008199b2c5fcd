import json
import logging
from typing import List

from pydantic import ValidationError

from app.config import HISTORY_STORAGE_KEY
from app.models import AnalysisRecord
from app.services.local_storage import LocalStorage

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Most-recent-first log of completed analyses.

    Loaded once from local storage on creation and written back after every
    append. Records are never edited; a failed write keeps the in-memory log.
    """

    def __init__(self, storage: LocalStorage, key: str = HISTORY_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._records: List[AnalysisRecord] = self._load()

    def _load(self) -> List[AnalysisRecord]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
            records = [AnalysisRecord.model_validate(item) for item in items]
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.error(f"Failed to load history, starting empty: {e}")
            return []
        logger.info(f"✓ Loaded {len(records)} history entries")
        return records

    @property
    def records(self) -> List[AnalysisRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def prepend(self, record: AnalysisRecord):
        self._records = [record] + self._records
        self._persist()

    def _persist(self):
        if not self._records:
            return
        payload = json.dumps(
            [r.model_dump(by_alias=True) for r in self._records],
            ensure_ascii=False,
        )
        try:
            self.storage.set_item(self.key, payload)
        except OSError as e:
            logger.error(f"Failed to persist history ({len(self._records)} entries): {e}")
