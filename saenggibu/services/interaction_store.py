# saenggibu/services/interaction_store.py
import json
import logging
from typing import Optional

from saenggibu.models.interaction import InteractionState
from saenggibu.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class InteractionStore:
    """
    세션별 상호작용 상태(좋아요/저장/댓글 좋아요 집합)를 저장소 blob 하나로 읽고 씁니다.
    """

    def __init__(self, store: KeyValueStore, key: str = 'huntfire_interaction'):
        self.store = store
        self.key = key

    def key_for(self, scope: Optional[str] = None) -> str:
        return f"{self.key}:{scope}" if scope else self.key

    def load(self, scope: Optional[str] = None) -> InteractionState:
        """저장된 상태를 읽습니다. 없거나 손상된 경우 세 집합이 모두 비어 있는 상태를 반환합니다."""
        key = self.key_for(scope)
        raw = self.store.get(key)
        if raw is None:
            return InteractionState()
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"손상된 상호작용 blob을 빈 상태로 처리합니다 (key: {key}): {e}")
            return InteractionState()
        return InteractionState.from_blob(data)

    def persist(self, state: InteractionState, scope: Optional[str] = None) -> None:
        """집합을 배열로 직렬화하여 blob 하나로 기록합니다."""
        self.store.set(self.key_for(scope), json.dumps(state.to_blob(), ensure_ascii=False))
