# saenggibu/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간/날짜 처리를 위한 중앙화된 유틸리티 모듈

이 모듈의 목적:
1. 저장소에 기록되는 모든 시각을 UTC ISO 문자열로 통일
2. 업로드 시각 등 외부에서 들어온 문자열의 관대한 파싱
3. 피드 계산(트렌딩 기간, 최신성 점수)에 필요한 시간 간격 계산
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 datetime 객체로 파싱

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00
        """
        try:
            return DateTimeUtils._parse_iso(iso_string)
        except Exception as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def _parse_iso(iso_string: str) -> datetime:
        """로그 없이 파싱만 수행합니다. 실패 시 ValueError 등을 그대로 전파합니다."""
        if not iso_string:
            raise ValueError("빈 문자열은 파싱할 수 없습니다")

        # 'Z' 접미사 처리 (UTC 표시)
        if iso_string.endswith('Z'):
            iso_string = iso_string[:-1] + '+00:00'

        dt = dateutil_parser.isoparse(iso_string)

        # timezone-naive인 경우 UTC로 가정
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)

        return dt.astimezone(timezone.utc)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 ISO 포맷 문자열로 변환"""
        try:
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            else:
                dt = dt.astimezone(timezone.utc)

            # ISO 포맷으로 변환 (Z 접미사 포함)
            return dt.isoformat().replace('+00:00', 'Z')

        except Exception as e:
            logger.error(f"ISO 문자열 변환 실패: {dt} - {e}")
            raise ValueError(f"datetime 객체를 ISO 문자열로 변환할 수 없습니다: {dt}")

    @staticmethod
    def coerce_datetime(value: Any) -> Optional[datetime]:
        """
        저장된 레코드의 시각 필드를 datetime으로 변환합니다.
        변환할 수 없는 값은 예외 대신 None을 반환합니다 (읽기 경로는 항상 관대해야 함).
        피드 계산마다 호출되므로 실패는 debug 로그로만 남깁니다.

        허용 값:
        - ISO 문자열
        - datetime 객체
        - Unix timestamp (밀리초, 기존 클라이언트의 Date.now() 값)
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        try:
            if isinstance(value, (int, float)):
                return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
            if isinstance(value, str):
                return DateTimeUtils._parse_iso(value)
        except (ValueError, OverflowError, OSError) as e:
            logger.debug(f"저장된 시각 값을 해석하지 못했습니다: {value!r} - {e}")
        return None

    @staticmethod
    def days_between(start: datetime, end: datetime) -> float:
        """두 시각 사이의 간격을 소수점 일 단위로 반환 (반올림하지 않음)"""
        return (end - start).total_seconds() / SECONDS_PER_DAY

    @staticmethod
    def from_timestamp_ms(timestamp_ms: Union[int, float]) -> datetime:
        """
        Unix timestamp (밀리초)를 UTC datetime 객체로 변환

        Args:
            timestamp_ms: Unix timestamp in milliseconds

        Returns:
            UTC timezone-aware datetime 객체
        """
        try:
            if not isinstance(timestamp_ms, (int, float)):
                raise ValueError("timestamp_ms는 숫자여야 합니다")

            return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)

        except Exception as e:
            logger.error(f"timestamp_ms 변환 실패: {timestamp_ms} - {e}")
            raise ValueError(f"잘못된 timestamp 형식입니다: {timestamp_ms}")

    @staticmethod
    def to_timestamp_ms(dt: datetime) -> int:
        """datetime 객체를 Unix timestamp (밀리초)로 변환"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)


# 편의를 위한 글로벌 함수들
def now_iso() -> str:
    """현재 UTC 시간을 ISO 문자열로 반환 (레코드의 created_at 기록용)"""
    return DateTimeUtils.to_iso_string(DateTimeUtils.now())

def to_iso(dt: datetime) -> str:
    """datetime을 ISO 문자열로 변환"""
    return DateTimeUtils.to_iso_string(dt)
