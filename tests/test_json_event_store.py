"""JsonEventStore のテスト"""

import json
from unittest.mock import patch

import pytest

from domain.models.records import PendingTaskRecord
from infrastructure.store.json_event_store import JsonEventStore
from shared.exceptions import EventStoreError


@pytest.fixture
def store(tmp_path):
    return JsonEventStore(tmp_path / "logs" / "task-calls.json")


def _record(key, agent_type="Explore", prompt="find usages"):
    return PendingTaskRecord(
        key=key,
        agent_type=agent_type,
        session_id="s1",
        prompt=prompt,
        cwd="/project",
        created_at="2025-01-01T00:00:00+00:00",
    )


# === put / get / remove ===

class TestPutGetRemove:
    """基本操作"""

    def test_put_then_get_returns_record(self, store):
        """putしたレコードがgetで取得できる"""
        store.put("t1", _record("t1"))

        record = store.get("t1")
        assert record is not None
        assert record.key == "t1"
        assert record.agent_type == "Explore"
        assert record.prompt == "find usages"
        assert record.cwd == "/project"

    def test_put_creates_parent_directory(self, store):
        """親ディレクトリが無くても作成される"""
        assert not store.path.parent.exists()
        store.put("t1", _record("t1"))
        assert store.path.exists()

    def test_get_missing_key_returns_none(self, store):
        store.put("t1", _record("t1"))
        assert store.get("other") is None

    def test_get_without_file_returns_none(self, store):
        assert store.get("t1") is None

    def test_put_same_key_overwrites(self, store):
        """同一キーは上書き"""
        store.put("t1", _record("t1", prompt="first"))
        store.put("t1", _record("t1", prompt="second"))
        assert store.get("t1").prompt == "second"

    def test_remove_deletes_only_target_key(self, store):
        store.put("t1", _record("t1"))
        store.put("t2", _record("t2", agent_type="Plan"))

        store.remove("t1")

        assert store.get("t1") is None
        assert store.get("t2").agent_type == "Plan"

    def test_remove_missing_key_is_noop(self, store):
        store.put("t1", _record("t1"))
        store.remove("nope")
        assert store.get("t1") is not None

    def test_remove_without_file_does_not_create_it(self, store):
        """ファイル不在時のremoveは何もしない"""
        store.remove("t1")
        assert not store.path.exists()

    def test_two_keys_both_survive_sequential_writes(self, store):
        """別キーへの連続した書き込みは両方残る"""
        store.put("tool-use-1", _record("tool-use-1"))
        store.put("agent-1", _record("agent-1", agent_type="Plan"))

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert set(data.keys()) == {"tool-use-1", "agent-1"}

    def test_remove_absent_key_leaves_file_untouched(self, store):
        """存在しないキーのremoveではファイルを書き換えない"""
        store.put("a", _record("a"))
        before = store.path.stat()

        store.remove("never-there")

        after = store.path.stat()
        assert after.st_ino == before.st_ino
        assert after.st_mtime_ns == before.st_mtime_ns
        assert store.get("a") is not None


# === ファイル形式 ===

class TestFileFormat:
    """ストアファイルのJSON形式"""

    def test_record_serialized_as_camel_case(self, store):
        record = _record("t1")
        record.tool_use_id = "t1"
        record.transcript_path = "/tmp/parent.jsonl"
        store.put("t1", record)

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["t1"] == {
            "toolUseId": "t1",
            "agentType": "Explore",
            "sessionId": "s1",
            "prompt": "find usages",
            "cwd": "/project",
            "timestamp": "2025-01-01T00:00:00+00:00",
            "transcriptPath": "/tmp/parent.jsonl",
        }

    def test_missing_fields_are_tolerated(self, store):
        """欠けたフィールドは空文字で補う"""
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"t1": {"agentType": "Explore"}}), encoding="utf-8")

        record = store.get("t1")
        assert record.agent_type == "Explore"
        assert record.prompt == ""
        assert record.session_id == ""
        assert record.tool_use_id is None

    def test_no_temp_files_left_behind(self, store):
        store.put("t1", _record("t1"))
        store.remove("t1")
        assert [p.name for p in store.path.parent.iterdir()] == ["task-calls.json"]


# === 破損ファイル ===

class TestCorruptFile:
    """破損したストアファイルは空として扱う"""

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", ""])
    def test_get_on_corrupt_file_returns_none(self, store, content):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(content, encoding="utf-8")
        assert store.get("t1") is None

    def test_put_replaces_corrupt_file(self, store):
        """破損ファイルへのputは当該レコードのみのオブジェクトで置き換える"""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{broken", encoding="utf-8")

        store.put("t1", _record("t1"))

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert list(data.keys()) == ["t1"]

    @pytest.mark.parametrize("content", ["{broken", "[1, 2, 3]"])
    def test_remove_rebuilds_corrupt_file_as_empty_object(self, store, content):
        """破損ファイルへのremoveは空オブジェクトで置き換える"""
        store.path.parent.mkdir(parents=True)
        store.path.write_text(content, encoding="utf-8")

        store.remove("t1")

        assert json.loads(store.path.read_text(encoding="utf-8")) == {}

    def test_non_dict_entry_is_ignored(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"t1": "garbage"}), encoding="utf-8")
        assert store.get("t1") is None


# === 書き込み失敗 ===

class TestWriteFailure:
    """書き込み失敗はEventStoreErrorとして送出"""

    def test_put_raises_event_store_error(self, store):
        with patch("infrastructure.store.json_event_store.tempfile.mkstemp", side_effect=OSError("disk full")):
            with pytest.raises(EventStoreError):
                store.put("t1", _record("t1"))
