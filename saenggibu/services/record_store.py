# saenggibu/services/record_store.py
import copy
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from saenggibu.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


def _has_id(entry: Any, record_id: str) -> bool:
    return isinstance(entry, dict) and entry.get('id') == record_id


class Collection(str, Enum):
    """레코드 컬렉션 종류. 값은 URL 경로에도 그대로 사용됩니다."""
    AGENTS = "agents"
    ANALYSES = "analyses"


class RecordStore:
    """
    컬렉션 단위 CRUD를 담당하는 서비스 클래스.
    각 컬렉션은 저장소의 키 하나에 JSON 배열 blob으로 저장되며,
    모든 변경은 컬렉션 전체를 다시 기록합니다 (항상 완전한 스냅샷 유지).
    """

    def __init__(self, store: KeyValueStore, agents_key: str = 'huntfire_agents',
                 analyses_key: str = 'saenggibu_analyses'):
        self.store = store
        self.keys = {
            Collection.AGENTS: agents_key,
            Collection.ANALYSES: analyses_key,
        }

    def key_for(self, collection: Collection) -> str:
        return self.keys[Collection(collection)]

    # --- 조회 ---
    def _load_raw(self, collection: Collection) -> List[Any]:
        """
        컬렉션 blob을 디코딩한 배열을 그대로 반환합니다.
        키가 없거나 blob이 손상된 경우 예외 대신 빈 목록을 반환합니다.
        """
        key = self.key_for(collection)
        raw = self.store.get(key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"손상된 컬렉션 blob을 빈 목록으로 처리합니다 (key: {key}): {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"배열이 아닌 컬렉션 blob을 빈 목록으로 처리합니다 (key: {key})")
            return []
        return data

    def list(self, collection: Collection) -> List[Dict[str, Any]]:
        """컬렉션의 레코드(객체 항목)만 반환합니다. 객체가 아닌 항목은 조회 결과에서만 빠집니다."""
        data = self._load_raw(collection)
        records = [item for item in data if isinstance(item, dict)]
        if len(records) != len(data):
            logger.warning(f"객체가 아닌 항목 {len(data) - len(records)}개를 건너뜁니다 (key: {self.key_for(collection)})")
        return records

    def get(self, collection: Collection, record_id: str) -> Optional[Dict[str, Any]]:
        for record in self.list(collection):
            if record.get('id') == record_id:
                return record
        return None

    def list_public(self, collection: Collection) -> List[Dict[str, Any]]:
        """비공개가 아닌 레코드만 반환합니다. is_private 필드가 없으면 공개로 취급합니다."""
        return [r for r in self.list(collection) if not r.get('is_private')]

    def list_by_user(self, collection: Collection, user_id: str) -> List[Dict[str, Any]]:
        """특정 사용자가 소유한 레코드 목록을 반환합니다."""
        return [r for r in self.list(collection) if r.get('user_id') == user_id]

    # --- 변경 ---
    # 변경 작업은 디코딩한 배열 전체를 기준으로 하여, 객체가 아닌 항목도 그대로 다시 기록합니다.
    def insert(self, collection: Collection, record: Dict[str, Any]) -> Dict[str, Any]:
        """레코드를 컬렉션 끝에 추가하고 전체 blob을 다시 기록합니다."""
        if not isinstance(record, dict) or not record.get('id'):
            raise ValueError("레코드에는 'id' 필드가 필요합니다.")
        with self.store.transaction():
            entries = self._load_raw(collection)
            if any(_has_id(entry, record['id']) for entry in entries):
                raise ValueError(f"이미 존재하는 레코드 ID입니다: {record['id']}")
            entries.append(copy.deepcopy(record))
            self._write(collection, entries)
        logger.info(f"레코드 추가 (collection: {Collection(collection).value}, id: {record['id']})")
        return record

    def update(self, collection: Collection, record_id: str, updates: Dict[str, Any]) -> bool:
        """
        ID가 일치하는 레코드에 일부 필드를 병합합니다.
        해당 ID가 없으면 아무것도 기록하지 않고 False를 반환합니다.
        """
        with self.store.transaction():
            entries = self._load_raw(collection)
            for index, entry in enumerate(entries):
                if _has_id(entry, record_id):
                    entries[index] = {**entry, **copy.deepcopy(updates)}
                    self._write(collection, entries)
                    return True
        logger.debug(f"갱신할 레코드가 없습니다 (collection: {Collection(collection).value}, id: {record_id})")
        return False

    def remove(self, collection: Collection, record_id: str) -> bool:
        """ID가 일치하는 레코드를 제거합니다. 제거된 레코드가 있으면 True를 반환합니다."""
        with self.store.transaction():
            entries = self._load_raw(collection)
            remaining = [entry for entry in entries if not _has_id(entry, record_id)]
            if len(remaining) == len(entries):
                return False
            self._write(collection, remaining)
        logger.info(f"레코드 삭제 (collection: {Collection(collection).value}, id: {record_id})")
        return True

    def save_as_private(self, collection: Collection, record: Dict[str, Any]) -> Dict[str, Any]:
        """레코드를 비공개로 표시한 사본을 추가합니다."""
        return self.insert(collection, {**record, 'is_private': True})

    def _write(self, collection: Collection, records: List[Any]) -> None:
        self.store.set(self.key_for(collection), json.dumps(records, ensure_ascii=False))
