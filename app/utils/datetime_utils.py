# app/utils/datetime_utils.py
"""
입양 신청/주문/알림 문서에서 쓰는 시각 처리 유틸리티

- 저장되는 모든 타임스탬프는 timezone-aware UTC
- 주문 번호의 날짜부(YYMMDD)와 당일 일련번호 집계 구간은 UTC 하루 기준
- 이관된 문서에 ISO 문자열로 남아 있는 타임스탬프도 읽을 때 datetime 으로 변환
"""

import logging
import re
from datetime import datetime, date, timezone, time, timedelta
from typing import Any, Tuple, Optional
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

# 2024-01-15T10:30:00[.ffffff][Z|+05:30]
_ISO_DATETIME = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$')


class DateTimeUtils:
    """UTC 기준 시각 변환 모음"""

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 UTC datetime 으로 파싱합니다. 시간대가 없으면 UTC 로 간주합니다.

        :raises ValueError: 빈 문자열이거나 해석할 수 없는 형식
        """
        if not iso_string:
            raise ValueError("빈 문자열은 파싱할 수 없습니다")
        try:
            dt = dateutil_parser.isoparse(iso_string)
        except (ValueError, OverflowError) as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}") from e

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        저장 직전 문서의 날짜 값을 UTC datetime 으로 맞춥니다 (dict/list 재귀).
        date 는 해당 날짜 00:00 UTC 로, naive datetime 은 UTC 로 간주합니다.
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        if isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore 에서 읽은 값을 UTC datetime 으로 정규화합니다 (dict/list 재귀).
        ISO 형식 문자열만 datetime 으로 바꾸고, 그 외 문자열은 그대로 둡니다.
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        if isinstance(obj, str) and _ISO_DATETIME.match(obj):
            return DateTimeUtils.parse_iso_datetime(obj)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.from_firestore(item) for item in obj]
        return obj

    @staticmethod
    def day_range(moment: Optional[datetime] = None) -> Tuple[datetime, datetime]:
        """주어진 시각이 속한 UTC 하루의 [시작, 다음날 시작) 구간. 당일 주문 수 집계에 사용됩니다."""
        moment = DateTimeUtils.for_firestore(moment or DateTimeUtils.now())
        start = datetime.combine(moment.date(), time.min).replace(tzinfo=timezone.utc)
        return start, start + timedelta(days=1)

    @staticmethod
    def to_yymmdd(moment: Optional[datetime] = None) -> str:
        """주문 번호 날짜부 (UTC 기준 'YYMMDD')"""
        moment = DateTimeUtils.for_firestore(moment or DateTimeUtils.now())
        return moment.strftime('%y%m%d')
