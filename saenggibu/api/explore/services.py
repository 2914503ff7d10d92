# saenggibu/api/explore/services.py
"""
탐색 피드 계산 서비스
레코드 저장소와 상호작용 상태를 읽어 트렌딩/맞춤 추천/검색 목록을 만듭니다.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from saenggibu.models.interaction import InteractionState, member_key
from saenggibu.services.interaction_store import InteractionStore
from saenggibu.services.record_store import Collection, RecordStore
from saenggibu.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

TAB_OPTIONS = ('all', 'saved')
SORT_OPTIONS = ('recent', 'popular')

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class FeedProfile:
    """컬렉션별로 피드 알고리즘이 사용할 필드 이름을 정의합니다."""
    name_field: str
    timestamp_field: str
    id_field: Optional[str] = None
    strength_field: Optional[str] = None
    improvement_field: Optional[str] = None


FEED_PROFILES = {
    Collection.ANALYSES: FeedProfile(
        name_field='student_name',
        timestamp_field='upload_date',
        id_field='student_id',
        strength_field='strengths',
        improvement_field='improvements',
    ),
    Collection.AGENTS: FeedProfile(
        name_field='name',
        timestamp_field='created_at',
        strength_field='description',
        improvement_field='goal',
    ),
}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ''

def _texts(value: Any) -> List[str]:
    """문자열 또는 문자열 목록 필드를 문자열 목록으로 정규화합니다."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []

def _count(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


class FeedService:
    """
    탐색 화면의 목록을 계산하는 서비스 클래스.
    모든 결과는 저장소와 분리된 사본이므로 호출자가 수정해도 저장 상태에 영향이 없습니다.
    """

    def __init__(self, record_store: RecordStore, interaction_store: InteractionStore,
                 clock: Optional[Callable[[], datetime]] = None,
                 trending_window: timedelta = timedelta(hours=24),
                 trending_limit: int = 3, recommendation_limit: int = 10):
        self.record_store = record_store
        self.interaction_store = interaction_store
        self.clock = clock or DateTimeUtils.now
        self.trending_window = trending_window
        self.trending_limit = trending_limit
        self.recommendation_limit = recommendation_limit

    # --- 트렌딩 ---
    def trending(self, collection: Collection = Collection.ANALYSES, window: Optional[timedelta] = None,
                 scope: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        기간 내에 생성된 공개 레코드를 좋아요 수 내림차순으로 정렬하여 최대 trending_limit개 반환합니다.
        좋아요 수가 같으면 저장된 순서를 유지합니다.
        """
        profile = FEED_PROFILES[Collection(collection)]
        cutoff = self.clock() - (window if window is not None else self.trending_window)

        recent = []
        for record in self.record_store.list_public(collection):
            created_at = DateTimeUtils.coerce_datetime(record.get(profile.timestamp_field))
            if created_at is not None and created_at > cutoff:
                recent.append(record)

        ranked = sorted(recent, key=lambda r: _count(r.get('likes')), reverse=True)
        return self._decorate(ranked[:self.trending_limit], collection, self.interaction_store.load(scope))

    # --- 맞춤 추천 ---
    def score(self, record: Dict[str, Any], query: str, profile: FeedProfile, now: datetime) -> float:
        """
        추천 점수 = 검색어 매칭 보너스 + 좋아요*2 + 저장*3 + max(0, 10 - 생성 후 경과 일수)
        검색어 보너스는 이름/학번 +10, 강점 +5, 보완점 +3 이며 여러 필드가 매칭되면 합산됩니다.
        """
        score = 0.0

        if query:
            q = query.lower()
            primary = [_text(record.get(profile.name_field))]
            if profile.id_field:
                primary.append(_text(record.get(profile.id_field)))
            if any(q in value.lower() for value in primary):
                score += 10
            if profile.strength_field and any(q in s.lower() for s in _texts(record.get(profile.strength_field))):
                score += 5
            if profile.improvement_field and any(q in i.lower() for i in _texts(record.get(profile.improvement_field))):
                score += 3

        score += _count(record.get('likes')) * 2
        score += _count(record.get('saves')) * 3

        # 최신성 (소수점 일 단위, 반올림하지 않음)
        created_at = DateTimeUtils.coerce_datetime(record.get(profile.timestamp_field))
        if created_at is not None:
            score += max(0.0, 10 - DateTimeUtils.days_between(created_at, now))

        return score

    def recommended(self, query: str = '', collection: Collection = Collection.ANALYSES,
                    scope: Optional[str] = None) -> List[Dict[str, Any]]:
        """모든 공개 레코드의 추천 점수를 계산하여 상위 recommendation_limit개를 반환합니다."""
        profile = FEED_PROFILES[Collection(collection)]
        now = self.clock()
        scored = [(self.score(record, query or '', profile, now), record)
                  for record in self.record_store.list_public(collection)]
        scored.sort(key=lambda item: item[0], reverse=True)
        top = [record for _, record in scored[:self.recommendation_limit]]
        return self._decorate(top, collection, self.interaction_store.load(scope))

    # --- 목록/검색/정렬 ---
    def matches(self, record: Dict[str, Any], query: str, profile: FeedProfile) -> bool:
        """검색어가 학번+이름, 이름, 학번, 강점 전체 텍스트, 보완점 전체 텍스트 중 하나에 포함되는지 확인합니다."""
        name = _text(record.get(profile.name_field))
        record_id = _text(record.get(profile.id_field)) if profile.id_field else ''
        candidates = [f"{record_id}{name}", name, record_id]
        if profile.strength_field:
            candidates.append(" ".join(_texts(record.get(profile.strength_field))))
        if profile.improvement_field:
            candidates.append(" ".join(_texts(record.get(profile.improvement_field))))
        return any(query in value.lower() for value in candidates if value)

    def list_and_filter(self, tab: str = 'all', query: str = '', sort_by: str = 'recent',
                        collection: Collection = Collection.ANALYSES,
                        scope: Optional[str] = None) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """
        공개 레코드를 탭/검색어로 거르고 정렬합니다.
        - tab: 'all' 전체, 'saved' 저장한 레코드만
        - sort_by: 'recent' 생성 시각 내림차순, 'popular' 좋아요 내림차순
        'popular' 정렬에서는 1위 레코드에 is_top 표시를 하고 그 ID를 함께 반환합니다.
        """
        if tab not in TAB_OPTIONS:
            raise ValueError(f"지원하지 않는 탭입니다: {tab}")
        if sort_by not in SORT_OPTIONS:
            raise ValueError(f"지원하지 않는 정렬 기준입니다: {sort_by}")

        profile = FEED_PROFILES[Collection(collection)]
        state = self.interaction_store.load(scope)
        records = self.record_store.list_public(collection)

        if tab == 'saved':
            records = [r for r in records if member_key(Collection(collection).value, r.get('id')) in state.saved_ids]

        q = (query or '').strip().lower()
        if q:
            records = [r for r in records if self.matches(r, q, profile)]

        if sort_by == 'recent':
            def recency(record):
                created_at = DateTimeUtils.coerce_datetime(record.get(profile.timestamp_field))
                # 시각이 없는 레코드는 맨 뒤로 보냅니다.
                return (created_at is not None, created_at or _OLDEST)
            records = sorted(records, key=recency, reverse=True)
        else:
            records = sorted(records, key=lambda r: _count(r.get('likes')), reverse=True)

        top_id = records[0].get('id') if sort_by == 'popular' and records else None
        decorated = self._decorate(records, collection, state)
        if sort_by == 'popular':
            for item in decorated:
                item['is_top'] = item.get('id') == top_id
        return decorated, top_id

    def _decorate(self, records: List[Dict[str, Any]], collection: Collection,
                  state: InteractionState) -> List[Dict[str, Any]]:
        """세션 기준 좋아요/저장 여부를 표시한 사본 목록을 만듭니다."""
        namespace = Collection(collection).value
        decorated = []
        for record in records:
            item = copy.deepcopy(record)
            member = member_key(namespace, item.get('id'))
            item['is_liked'] = member in state.liked_ids
            item['is_saved'] = member in state.saved_ids
            decorated.append(item)
        return decorated
