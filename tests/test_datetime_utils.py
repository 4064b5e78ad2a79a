# tests/test_datetime_utils.py
"""
시각 처리 유틸리티 테스트

사용법: python -m pytest tests/test_datetime_utils.py -v
"""

import pytest
from datetime import datetime, date, timezone, timedelta
from app.utils.datetime_utils import DateTimeUtils


def test_parse_iso_datetime():
    """ISO 포맷 파싱 테스트"""
    test_cases = [
        "2024-01-15T10:30:00Z",
        "2024-01-15T10:30:00+05:30",
        "2024-01-15T10:30:00.123456Z",
        "2024-01-15T10:30:00"
    ]

    for iso_string in test_cases:
        dt = DateTimeUtils.parse_iso_datetime(iso_string)
        assert isinstance(dt, datetime)
        assert dt.tzinfo == timezone.utc  # UTC로 정규화되어야 함

    assert DateTimeUtils.parse_iso_datetime("2024-01-15T10:30:00+05:30").hour == 5


def test_for_firestore():
    """저장용 변환: date/naive datetime -> UTC datetime"""
    order_doc = {
        'delivery_date': date(2024, 1, 15),
        'created_at': datetime(2024, 1, 15, 10, 30),
        'payment_details': {'paid_on': date(2023, 12, 25)},
        'history': [{'updated_at': datetime(2024, 1, 1)}],
        'order_number': 'ORD-240115-0001',
    }

    converted = DateTimeUtils.for_firestore(order_doc)

    assert converted['delivery_date'] == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert isinstance(converted['payment_details']['paid_on'], datetime)
    assert converted['history'][0]['updated_at'].tzinfo == timezone.utc
    assert converted['created_at'].tzinfo == timezone.utc
    assert converted['order_number'] == 'ORD-240115-0001'


def test_for_firestore_converts_aware_datetimes_to_utc():
    ist = timezone(timedelta(hours=5, minutes=30))
    converted = DateTimeUtils.for_firestore(datetime(2024, 1, 15, 5, 30, tzinfo=ist))
    assert converted == datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)
    assert converted.tzinfo == timezone.utc


def test_from_firestore_normalizes_naive_datetimes():
    converted = DateTimeUtils.from_firestore({'items': [datetime(2024, 1, 1)]})
    assert converted['items'][0].tzinfo == timezone.utc


def test_from_firestore_parses_iso_strings_only():
    """이관된 문서의 ISO 문자열 타임스탬프는 datetime 으로, 일반 문자열은 그대로"""
    converted = DateTimeUtils.from_firestore({
        'created_at': '2024-01-15T10:30:00.000Z',
        'name': 'Bruno',
        'phone': '9876543210',
        'order_number': 'ORD-240115-0001',
    })
    assert converted['created_at'] == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert converted['name'] == 'Bruno'
    assert converted['phone'] == '9876543210'
    assert converted['order_number'] == 'ORD-240115-0001'
    assert DateTimeUtils.from_firestore(None) is None


def test_day_range():
    """주문 번호 채번용 UTC 하루 구간"""
    moment = datetime(2024, 3, 9, 23, 59, 59, tzinfo=timezone.utc)
    start, end = DateTimeUtils.day_range(moment)
    assert start == datetime(2024, 3, 9, tzinfo=timezone.utc)
    assert end - start == timedelta(days=1)
    assert start <= moment < end

    # 다른 시간대의 시각은 UTC 날짜 기준으로 계산
    ist = timezone(timedelta(hours=5, minutes=30))
    start, _ = DateTimeUtils.day_range(datetime(2024, 3, 10, 2, 0, tzinfo=ist))
    assert start == datetime(2024, 3, 9, tzinfo=timezone.utc)


def test_to_yymmdd():
    assert DateTimeUtils.to_yymmdd(datetime(2024, 3, 9, 12, 0, tzinfo=timezone.utc)) == "240309"


def test_error_handling():
    """오류 처리 테스트"""
    # 잘못된 ISO 포맷
    with pytest.raises(ValueError):
        DateTimeUtils.parse_iso_datetime("invalid-date")

    # 빈 문자열
    with pytest.raises(ValueError):
        DateTimeUtils.parse_iso_datetime("")
