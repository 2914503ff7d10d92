# saenggibu/api/interactions/test_services.py
import json

import pytest

from saenggibu.api.interactions.services import InteractionService
from saenggibu.services.interaction_store import InteractionStore
from saenggibu.services.kv_store import MemoryKeyValueStore
from saenggibu.services.record_store import Collection, RecordStore

SCOPE = "user-1"

@pytest.fixture
def store():
    return MemoryKeyValueStore().open()

@pytest.fixture
def service(store):
    records = RecordStore(store)
    records.insert(Collection.ANALYSES, {
        "id": "a1", "student_name": "홍길동", "likes": 3, "saves": 1, "upload_date": "2025-03-01T09:00:00Z",
        "comments": [{"id": "c1", "author_id": "user-2", "author_name": "김철수", "content": "좋아요",
                      "created_at": "2025-03-01T10:00:00Z", "likes": 0, "replies": []}],
    })
    records.insert(Collection.AGENTS, {"id": "g1", "name": "진로 탐색 도우미", "likes": 0, "saves": 0})
    return InteractionService(records, InteractionStore(store))

def test_like_then_unlike_restores_count(service):
    first = service.toggle_like(Collection.ANALYSES, "a1", SCOPE)
    assert first == {"id": "a1", "is_liked": True, "likes": 4}
    assert "analyses:a1" in service.get_state(SCOPE).liked_ids

    second = service.toggle_like(Collection.ANALYSES, "a1", SCOPE)
    assert second == {"id": "a1", "is_liked": False, "likes": 3}
    assert service.record_store.get(Collection.ANALYSES, "a1")["likes"] == 3
    assert service.get_state(SCOPE).liked_ids == set()

def test_save_toggle_updates_saves_and_set(service):
    assert service.toggle_save(Collection.AGENTS, "g1", SCOPE) == {"id": "g1", "is_saved": True, "saves": 1}
    assert service.get_state(SCOPE).saved_ids == {"agents:g1"}
    assert service.toggle_save(Collection.AGENTS, "g1", SCOPE)["saves"] == 0

def test_counter_never_goes_negative(store, service):
    """집합에 ID가 있는데 카운터가 0이면 취소 후에도 0을 유지해야 함"""
    service.toggle_like(Collection.AGENTS, "g1", SCOPE)
    service.record_store.update(Collection.AGENTS, "g1", {"likes": 0})

    result = service.toggle_like(Collection.AGENTS, "g1", SCOPE)
    assert result == {"id": "g1", "is_liked": False, "likes": 0}

def test_sessions_toggle_independently(service):
    service.toggle_like(Collection.ANALYSES, "a1", "user-1")
    result = service.toggle_like(Collection.ANALYSES, "a1", "user-2")
    assert result["is_liked"] is True
    assert result["likes"] == 5

def test_unknown_record_is_a_no_op(store, service):
    before = {key: store.get(key) for key in store.keys()}
    assert service.toggle_like(Collection.ANALYSES, "missing", SCOPE) is None
    assert service.toggle_save(Collection.AGENTS, "missing", SCOPE) is None
    assert {key: store.get(key) for key in store.keys()} == before

def test_failed_persist_rolls_back_counter(service, monkeypatch):
    """상호작용 blob 기록이 실패하면 카운터 변경도 반영되지 않아야 함"""
    def broken_persist(state, scope=None):
        raise OSError("disk full")
    monkeypatch.setattr(service.interaction_store, "persist", broken_persist)

    with pytest.raises(OSError):
        service.toggle_like(Collection.ANALYSES, "a1", SCOPE)
    assert service.record_store.get(Collection.ANALYSES, "a1")["likes"] == 3

def test_toggle_comment_like(store, service):
    result = service.toggle_comment_like("a1", "c1", SCOPE)
    assert result == {"id": "c1", "is_liked": True, "likes": 1}
    assert service.get_state(SCOPE).liked_comment_ids == {"a1:c1"}

    stored = json.loads(store.get("saenggibu_analyses"))
    assert stored[0]["comments"][0]["likes"] == 1

    assert service.toggle_comment_like("a1", "c1", SCOPE)["likes"] == 0
    assert service.toggle_comment_like("a1", "missing", SCOPE) is None
    assert service.toggle_comment_like("missing", "c1", SCOPE) is None

def test_same_id_in_both_collections_toggles_independently(store):
    """에이전트와 분석 기록의 ID가 같아도 좋아요/저장 상태와 카운터가 섞이지 않아야 함"""
    records = RecordStore(store)
    records.insert(Collection.AGENTS, {"id": "1700000000000", "name": "면접 코치", "likes": 0, "saves": 0})
    records.insert(Collection.ANALYSES, {"id": "1700000000000", "student_name": "홍길동", "likes": 7, "saves": 0})
    service = InteractionService(records, InteractionStore(store))

    assert service.toggle_like(Collection.AGENTS, "1700000000000", SCOPE)["likes"] == 1
    result = service.toggle_like(Collection.ANALYSES, "1700000000000", SCOPE)
    assert result == {"id": "1700000000000", "is_liked": True, "likes": 8}
    assert service.get_state(SCOPE).liked_ids == {"agents:1700000000000", "analyses:1700000000000"}

    service.toggle_save(Collection.AGENTS, "1700000000000", SCOPE)
    assert service.toggle_save(Collection.ANALYSES, "1700000000000", SCOPE)["is_saved"] is True

def test_same_comment_id_in_different_records(store):
    records = RecordStore(store)
    for record_id in ("a1", "a2"):
        records.insert(Collection.ANALYSES, {
            "id": record_id, "student_name": "홍길동", "likes": 0, "saves": 0,
            "comments": [{"id": "c1", "author_id": "u", "author_name": "A", "content": "hi",
                          "created_at": "2025-03-01T10:00:00Z", "likes": 0, "replies": []}],
        })
    service = InteractionService(records, InteractionStore(store))

    service.toggle_comment_like("a1", "c1", SCOPE)
    assert service.toggle_comment_like("a2", "c1", SCOPE) == {"id": "c1", "is_liked": True, "likes": 1}
