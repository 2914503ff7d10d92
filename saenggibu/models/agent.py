# saenggibu/models/agent.py
from dataclasses import dataclass, field
from typing import Optional

from saenggibu.utils.datetime_utils import now_iso

@dataclass
class AgentRecord:
    """
    'huntfire_agents' 컬렉션 blob에 저장되는 에이전트 문서 구조.
    """
    id: str
    name: str
    description: str = ""
    goal: str = ""
    user_id: Optional[str] = None
    likes: int = 0
    saves: int = 0
    is_private: bool = False
    created_at: str = field(default_factory=now_iso)
