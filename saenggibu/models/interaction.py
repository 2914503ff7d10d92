# saenggibu/models/interaction.py
from dataclasses import dataclass, field
from typing import Any, Dict, Set

def _as_id_set(value: Any) -> Set[str]:
    """저장된 배열을 집합으로 변환합니다. 배열이 아니면 빈 집합입니다."""
    if not isinstance(value, list):
        return set()
    return {str(item) for item in value if isinstance(item, (str, int)) and not isinstance(item, bool)}

def member_key(namespace: str, item_id: str) -> str:
    """
    멤버십 집합에 들어가는 항목 이름.
    레코드는 '<collection>:<record_id>', 댓글은 '<record_id>:<comment_id>' 형태로
    컬렉션/기록마다 ID 공간을 분리합니다.
    """
    return f"{namespace}:{item_id}"

@dataclass
class InteractionState:
    """
    현재 세션의 좋아요/저장/댓글 좋아요 멤버십 집합.
    각 항목은 member_key()로 만든 이름이며, 저장 시에는 순서와 무관한 배열로 직렬화합니다.
    """
    liked_ids: Set[str] = field(default_factory=set)
    saved_ids: Set[str] = field(default_factory=set)
    liked_comment_ids: Set[str] = field(default_factory=set)

    def to_blob(self) -> Dict[str, Any]:
        # 정렬해서 기록하여 같은 상태는 항상 같은 blob이 되도록 합니다.
        return {
            "liked_ids": sorted(self.liked_ids),
            "saved_ids": sorted(self.saved_ids),
            "liked_comment_ids": sorted(self.liked_comment_ids),
        }

    @classmethod
    def from_blob(cls, data: Any) -> "InteractionState":
        if not isinstance(data, dict):
            return cls()
        return cls(
            liked_ids=_as_id_set(data.get("liked_ids")),
            saved_ids=_as_id_set(data.get("saved_ids")),
            liked_comment_ids=_as_id_set(data.get("liked_comment_ids")),
        )
