# saenggibu/services/test_record_store.py
import json

import pytest

from saenggibu.services.kv_store import MemoryKeyValueStore
from saenggibu.services.record_store import Collection, RecordStore

def make_analysis(record_id, **overrides):
    record = {
        "id": record_id,
        "user_id": "user-1",
        "student_id": "1405",
        "student_name": "홍길동",
        "overall_score": 87.5,
        "strengths": ["리더십"],
        "improvements": ["수리 탐구"],
        "likes": 0,
        "saves": 0,
        "is_private": False,
        "comments": [],
        "upload_date": "2025-03-01T09:00:00Z",
    }
    record.update(overrides)
    return record

@pytest.fixture
def store():
    return MemoryKeyValueStore().open()

@pytest.fixture
def records(store):
    return RecordStore(store)

def test_missing_key_reads_as_empty(records):
    assert records.list(Collection.ANALYSES) == []
    assert records.list(Collection.AGENTS) == []

def test_malformed_blob_reads_as_empty(store, records):
    """손상된 blob은 예외 없이 빈 목록으로 읽혀야 함"""
    for raw in ["{not json", '{"id": "a1"}', '"text"', "null"]:
        store.set("saenggibu_analyses", raw)
        assert records.list(Collection.ANALYSES) == []

def test_non_object_entries_are_skipped(store, records):
    store.set("saenggibu_analyses", json.dumps([make_analysis("a1"), "garbage", 3, None]))
    assert [r["id"] for r in records.list(Collection.ANALYSES)] == ["a1"]

def test_insert_then_list_round_trips_nested_comments(records):
    """중첩된 댓글/답글까지 구조가 그대로 보존되어야 함"""
    record = make_analysis("a1", comments=[{
        "id": "c1", "author_id": "user-2", "author_name": "1301김철수", "content": "멋져요",
        "created_at": "2025-03-01T10:00:00Z", "likes": 2,
        "replies": [{"id": "r1", "author_id": "user-1", "author_name": "1405홍길동", "content": "감사합니다",
                     "created_at": "2025-03-01T11:00:00Z", "likes": 0, "parent_reply_id": None}],
    }])
    records.insert(Collection.ANALYSES, record)
    assert records.list(Collection.ANALYSES) == [record]

def test_insert_requires_unique_id(records):
    records.insert(Collection.ANALYSES, make_analysis("a1"))
    with pytest.raises(ValueError):
        records.insert(Collection.ANALYSES, make_analysis("a1"))
    with pytest.raises(ValueError):
        records.insert(Collection.ANALYSES, make_analysis(""))
    assert len(records.list(Collection.ANALYSES)) == 1

def test_collections_use_separate_keys(store, records):
    records.insert(Collection.AGENTS, {"id": "g1", "name": "진로 탐색 도우미"})
    assert store.keys() == ["huntfire_agents"]
    assert records.list(Collection.ANALYSES) == []

def test_update_merges_fields(records):
    records.insert(Collection.ANALYSES, make_analysis("a1"))
    records.insert(Collection.ANALYSES, make_analysis("a2"))

    assert records.update(Collection.ANALYSES, "a2", {"likes": 4}) is True
    stored = records.list(Collection.ANALYSES)
    assert [r["likes"] for r in stored] == [0, 4]
    assert stored[1]["student_name"] == "홍길동"

def test_update_unknown_id_does_not_write(store, records):
    """없는 ID를 갱신하면 blob이 한 글자도 바뀌지 않아야 함"""
    records.insert(Collection.ANALYSES, make_analysis("a1"))
    before = store.get("saenggibu_analyses")

    assert records.update(Collection.ANALYSES, "missing", {"likes": 100}) is False
    assert store.get("saenggibu_analyses") == before
    # 키가 없던 컬렉션에 대해서도 새 키가 생기면 안 됨
    assert records.update(Collection.AGENTS, "missing", {"likes": 1}) is False
    assert "huntfire_agents" not in store.keys()

def test_remove(records):
    records.insert(Collection.AGENTS, {"id": "g1", "name": "A"})
    records.insert(Collection.AGENTS, {"id": "g2", "name": "B"})

    assert records.remove(Collection.AGENTS, "g1") is True
    assert records.remove(Collection.AGENTS, "g1") is False
    assert [r["id"] for r in records.list(Collection.AGENTS)] == ["g2"]

def test_visibility_helpers(records):
    records.insert(Collection.ANALYSES, make_analysis("a1"))
    records.insert(Collection.ANALYSES, make_analysis("a2", user_id="user-2"))
    records.save_as_private(Collection.ANALYSES, make_analysis("a3"))

    assert [r["id"] for r in records.list_public(Collection.ANALYSES)] == ["a1", "a2"]
    assert [r["id"] for r in records.list_by_user(Collection.ANALYSES, "user-1")] == ["a1", "a3"]
    assert records.get(Collection.ANALYSES, "a3")["is_private"] is True
    assert records.get(Collection.ANALYSES, "nope") is None

def test_returned_records_are_detached(records):
    records.insert(Collection.ANALYSES, make_analysis("a1"))
    listed = records.list(Collection.ANALYSES)
    listed[0]["likes"] = 999
    assert records.get(Collection.ANALYSES, "a1")["likes"] == 0

def test_mutations_keep_non_object_entries(store, records):
    """조회에서는 빠지는 항목도 다른 레코드를 변경할 때 blob에서 사라지면 안 됨"""
    store.set("saenggibu_analyses", json.dumps([{"id": "a1", "likes": 0}, "legacy-entry", 7]))

    assert records.update(Collection.ANALYSES, "a1", {"likes": 1}) is True
    assert json.loads(store.get("saenggibu_analyses")) == [{"id": "a1", "likes": 1}, "legacy-entry", 7]

    records.insert(Collection.ANALYSES, make_analysis("a2"))
    assert json.loads(store.get("saenggibu_analyses"))[1:3] == ["legacy-entry", 7]

    assert records.remove(Collection.ANALYSES, "a1") is True
    assert json.loads(store.get("saenggibu_analyses"))[:2] == ["legacy-entry", 7]
    assert records.remove(Collection.ANALYSES, "legacy-entry") is False
