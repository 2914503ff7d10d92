# saenggibu/api/comments/services.py

import copy
import logging
from dataclasses import asdict
from typing import Optional, Dict, Any, List, Callable

from saenggibu.models.analysis import Author, Comment, Reply
from saenggibu.models.interaction import member_key
from saenggibu.services.record_store import Collection, RecordStore
from saenggibu.utils.datetime_utils import DateTimeUtils
from saenggibu.utils.ids import generate_id

logger = logging.getLogger(__name__)

class CommentService:
    """
    분석 기록에 포함된 댓글/답글 스레드를 담당하는 서비스 클래스.
    - 댓글과 답글은 추가만 가능하며 수정/삭제 경로는 없습니다.
    - 답글은 댓글마다 평평한 목록으로 저장되고, parent_reply_id는 표시용 참조입니다.
    """
    def __init__(self, record_store: RecordStore, id_factory: Callable[[], str] = generate_id):
        self.record_store = record_store
        self.store = record_store.store
        self.id_factory = id_factory

    def _next_id(self, taken: set) -> str:
        """이미 사용 중인 ID와 겹치지 않는 새 ID를 만듭니다."""
        new_id = self.id_factory()
        while new_id in taken:
            new_id = self.id_factory()
        return new_id

    def add_comment(self, record_id: str, content: str, author: Author) -> Optional[Dict[str, Any]]:
        """
        새 댓글을 추가합니다.
        내용이 비어 있거나 공백뿐이면, 또는 기록이 없으면 아무것도 하지 않고 None을 반환합니다.
        """
        text = (content or '').strip()
        if not text:
            return None

        with self.store.transaction():
            record = self.record_store.get(Collection.ANALYSES, record_id)
            if record is None:
                return None
            comments = copy.deepcopy(record.get('comments') or [])
            taken = {c.get('id') for c in comments if isinstance(c, dict)}

            new_comment = Comment(
                id=self._next_id(taken),
                author_id=author.user_id,
                author_name=author.display_name,
                content=text
            )
            comment_dict = asdict(new_comment)
            comments.append(comment_dict)
            self.record_store.update(Collection.ANALYSES, record_id, {'comments': comments})

        logger.info(f"댓글 작성 (record_id: {record_id}, comment_id: {new_comment.id})")
        return comment_dict

    def add_reply(self, record_id: str, comment_id: str, content: str, author: Author) -> Optional[Dict[str, Any]]:
        """댓글에 답글을 추가합니다."""
        return self._append_reply(record_id, comment_id, content, author, parent_reply_id=None)

    def add_nested_reply(self, record_id: str, comment_id: str, parent_reply_id: str,
                         content: str, author: Author) -> Optional[Dict[str, Any]]:
        """
        답글에 대한 답글을 추가합니다.
        같은 댓글 안에 parent_reply_id 답글이 없으면 아무것도 하지 않습니다.
        """
        if not parent_reply_id:
            return None
        return self._append_reply(record_id, comment_id, content, author, parent_reply_id=parent_reply_id)

    def _append_reply(self, record_id: str, comment_id: str, content: str, author: Author,
                      parent_reply_id: Optional[str]) -> Optional[Dict[str, Any]]:
        text = (content or '').strip()
        if not text:
            return None

        with self.store.transaction():
            record = self.record_store.get(Collection.ANALYSES, record_id)
            if record is None:
                return None
            comments = copy.deepcopy(record.get('comments') or [])
            target = next((c for c in comments if isinstance(c, dict) and c.get('id') == comment_id), None)
            if target is None:
                return None

            replies = target.get('replies') or []
            taken = {r.get('id') for r in replies if isinstance(r, dict)}
            if parent_reply_id is not None and parent_reply_id not in taken:
                logger.debug(f"부모 답글이 없습니다 (comment_id: {comment_id}, parent_reply_id: {parent_reply_id})")
                return None

            new_reply = Reply(
                id=self._next_id(taken),
                author_id=author.user_id,
                author_name=author.display_name,
                content=text,
                parent_reply_id=parent_reply_id
            )
            reply_dict = asdict(new_reply)
            target['replies'] = replies + [reply_dict]
            self.record_store.update(Collection.ANALYSES, record_id, {'comments': comments})

        logger.info(f"답글 작성 (record_id: {record_id}, comment_id: {comment_id}, reply_id: {new_reply.id})")
        return reply_dict

    def get_thread(self, record_id: str, liked_comment_ids: Optional[set] = None) -> Optional[List[Dict[str, Any]]]:
        """
        표시용 댓글 목록을 반환합니다.
        - 댓글은 작성 시각 내림차순(최신순)
        - 답글은 저장된 순서 그대로, parent_reply_id와 무관하게 한 단계 들여쓰기(depth=1)
        """
        record = self.record_store.get(Collection.ANALYSES, record_id)
        if record is None:
            return None

        liked_comment_ids = liked_comment_ids or set()
        comments = [copy.deepcopy(c) for c in (record.get('comments') or []) if isinstance(c, dict)]
        for comment in comments:
            comment['is_liked'] = member_key(record_id, comment.get('id')) in liked_comment_ids
            replies = [r for r in (comment.get('replies') or []) if isinstance(r, dict)]
            for reply in replies:
                reply['depth'] = 1
                reply['is_nested'] = reply.get('parent_reply_id') is not None
            comment['replies'] = replies

        def newest_first(item):
            index, comment = item
            created_at = DateTimeUtils.coerce_datetime(comment.get('created_at'))
            # 같은 시각이면 나중에 저장된 댓글이 먼저 옵니다.
            return (created_at.timestamp() if created_at else float('-inf'), index)

        return [comment for _, comment in sorted(enumerate(comments), key=newest_first, reverse=True)]
