# saenggibu/models/analysis.py
from dataclasses import dataclass, field
from typing import Optional, List

from saenggibu.utils.datetime_utils import now_iso

@dataclass
class Author:
    """댓글/답글 작성자 정보. 세션 클레임에서 만들어집니다."""
    user_id: str
    display_name: str

@dataclass
class Reply:
    """
    댓글 내부 'replies' 배열에 저장되는 답글.
    parent_reply_id가 있으면 같은 댓글의 다른 답글에 단 답글이지만, 저장 구조는 평평한 목록입니다.
    """
    id: str
    author_id: str
    author_name: str
    content: str
    created_at: str = field(default_factory=now_iso)
    likes: int = 0
    parent_reply_id: Optional[str] = None

@dataclass
class Comment:
    """분석 기록 내부 'comments' 배열에 저장되는 댓글."""
    id: str
    author_id: str
    author_name: str
    content: str
    created_at: str = field(default_factory=now_iso)
    likes: int = 0
    replies: List[Reply] = field(default_factory=list)

@dataclass
class AnalysisRecord:
    """
    'saenggibu_analyses' 컬렉션 blob에 저장되는 생활기록부 분석 결과.
    업로드 파이프라인이 생성하며, 이후에는 좋아요/저장/댓글로만 변경됩니다.
    """
    id: str
    user_id: str
    student_name: str
    overall_score: float
    student_id: Optional[str] = None
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    likes: int = 0
    saves: int = 0
    is_private: bool = False
    comments: List[Comment] = field(default_factory=list)
    upload_date: str = field(default_factory=now_iso)
