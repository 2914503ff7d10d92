# saenggibu/api/interactions/services.py

import copy
import logging
from typing import Optional, Dict, Any

from saenggibu.models.interaction import InteractionState, member_key
from saenggibu.services.interaction_store import InteractionStore
from saenggibu.services.record_store import Collection, RecordStore

logger = logging.getLogger(__name__)

def _as_count(value: Any) -> int:
    """저장된 카운터 값을 0 이상의 정수로 정규화합니다."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, int(value))

class InteractionService:
    """
    좋아요/저장 토글을 담당하는 서비스 클래스.
    - 멤버십 집합 변경과 레코드 카운터 ±1 변경을 하나의 저장소 트랜잭션으로 묶어
      두 쓰기가 함께 반영되거나 함께 취소되도록 합니다.
    """
    def __init__(self, record_store: RecordStore, interaction_store: InteractionStore):
        self.record_store = record_store
        self.interaction_store = interaction_store
        self.store = record_store.store

    def get_state(self, scope: Optional[str] = None) -> InteractionState:
        return self.interaction_store.load(scope)

    def toggle_like(self, collection: Collection, record_id: str, scope: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """레코드 좋아요를 누르거나 취소합니다. 레코드가 없으면 None을 반환합니다."""
        result = self._toggle_membership(collection, record_id, scope, 'liked_ids', 'likes')
        if result is None:
            return None
        is_liked, likes = result
        return {"id": record_id, "is_liked": is_liked, "likes": likes}

    def toggle_save(self, collection: Collection, record_id: str, scope: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """레코드 저장을 누르거나 취소합니다. 레코드가 없으면 None을 반환합니다."""
        result = self._toggle_membership(collection, record_id, scope, 'saved_ids', 'saves')
        if result is None:
            return None
        is_saved, saves = result
        return {"id": record_id, "is_saved": is_saved, "saves": saves}

    def toggle_comment_like(self, record_id: str, comment_id: str, scope: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """분석 기록에 달린 댓글의 좋아요를 누르거나 취소합니다."""
        with self.store.transaction():
            record = self.record_store.get(Collection.ANALYSES, record_id)
            if record is None:
                return None
            comments = copy.deepcopy(record.get('comments') or [])
            target = next((c for c in comments if isinstance(c, dict) and c.get('id') == comment_id), None)
            if target is None:
                return None

            state = self.interaction_store.load(scope)
            member = member_key(record_id, comment_id)
            current = _as_count(target.get('likes'))
            if member in state.liked_comment_ids:
                state.liked_comment_ids.discard(member)
                target['likes'] = max(0, current - 1)
                is_liked = False
            else:
                state.liked_comment_ids.add(member)
                target['likes'] = current + 1
                is_liked = True

            self.record_store.update(Collection.ANALYSES, record_id, {'comments': comments})
            self.interaction_store.persist(state, scope)

        logger.info(f"댓글 좋아요 토글 (record_id: {record_id}, comment_id: {comment_id}, is_liked: {is_liked})")
        return {"id": comment_id, "is_liked": is_liked, "likes": target['likes']}

    def _toggle_membership(self, collection: Collection, record_id: str, scope: Optional[str],
                           set_name: str, counter_field: str):
        """
        집합에 ID가 있으면 제거하고 카운터를 1 감소(0 미만으로 내려가지 않음),
        없으면 추가하고 카운터를 1 증가시킵니다.
        """
        with self.store.transaction():
            record = self.record_store.get(collection, record_id)
            if record is None:
                logger.debug(f"토글 대상 레코드가 없습니다 (collection: {Collection(collection).value}, id: {record_id})")
                return None

            state = self.interaction_store.load(scope)
            members = getattr(state, set_name)
            member = member_key(Collection(collection).value, record_id)
            current = _as_count(record.get(counter_field))
            if member in members:
                members.discard(member)
                new_count = max(0, current - 1)
                active = False
            else:
                members.add(member)
                new_count = current + 1
                active = True

            self.record_store.update(collection, record_id, {counter_field: new_count})
            self.interaction_store.persist(state, scope)

        logger.info(f"{counter_field} 토글 (collection: {Collection(collection).value}, id: {record_id}, active: {active})")
        return active, new_count
