import json

import pytest

from app.exceptions import StorageQuotaExceeded
from app.models import AnalysisRecord
from app.services.history import HistoryStore
from app.services.local_storage import LocalStorage


def record(record_id, plant="Tomato"):
    return AnalysisRecord(
        id=record_id,
        image="data:image/png;base64,AAAA",
        plant_name=plant,
        disease="Blight",
        confidence=0.8,
        causes=["Fungal infection"],
        remedies=["Remove affected leaves"],
        supplements=None,
    )


class TestLocalStorage:
    def test_set_and_get(self, storage):
        storage.set_item("plantHistory", "[]")
        storage.set_item("other", "x")
        assert storage.get_item("plantHistory") == "[]"
        assert storage.get_item("missing") is None

    def test_remove(self, storage):
        storage.set_item("k", "v")
        storage.remove_item("k")
        assert storage.get_item("k") is None

    def test_quota(self, tmp_path):
        small = LocalStorage(str(tmp_path / "s.json"), quota_bytes=20)
        small.set_item("k", "short")
        with pytest.raises(StorageQuotaExceeded):
            small.set_item("k", "x" * 50)
        assert small.get_item("k") == "short"

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert LocalStorage(str(path)).get_item("plantHistory") is None


class TestHistoryStore:
    def test_prepend_persists_under_well_known_key(self, storage, history):
        history.prepend(record("1"))

        saved = json.loads(storage.get_item("plantHistory"))
        assert saved[0]["id"] == "1"
        assert saved[0]["plantName"] == "Tomato"

    def test_survives_reload(self, storage, history):
        history.prepend(record("1", "Tomato"))
        history.prepend(record("2", "Pepper"))

        reloaded = HistoryStore(storage)

        assert [r.id for r in reloaded.records] == ["2", "1"]
        assert reloaded.records[0] == history.records[0]

    def test_records_are_a_copy(self, history):
        history.prepend(record("1"))
        history.records.clear()
        assert len(history) == 1

    def test_quota_failure_keeps_memory_log(self, tmp_path):
        storage = LocalStorage(str(tmp_path / "tiny.json"), quota_bytes=300)
        history = HistoryStore(storage)

        history.prepend(record("1"))
        history.prepend(record("2"))

        assert [r.id for r in history.records] == ["2", "1"]
        assert [r["id"] for r in json.loads(storage.get_item("plantHistory"))] == ["1"]

    def test_corrupt_history_starts_empty(self, storage):
        storage.set_item("plantHistory", '{"not": "a list"}')
        assert len(HistoryStore(storage)) == 0
