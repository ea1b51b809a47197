# petbiz/utils/test_datetime_utils.py
"""
통합 시간 관리 유틸리티 기능 테스트

사용법: python -m pytest petbiz/utils/test_datetime_utils.py -v
"""

import pytest
from datetime import datetime, date, time, timezone, timedelta
from petbiz.utils.datetime_utils import DateTimeUtils

def test_parse_iso_datetime():
    """ISO 포맷 파싱 테스트"""
    test_cases = [
        "2024-01-15T10:30:00Z",
        "2024-01-15T10:30:00+09:00",
        "2024-01-15T10:30:00.123456Z",
        "2024-01-15T10:30:00"
    ]

    for iso_string in test_cases:
        dt = DateTimeUtils.parse_iso_datetime(iso_string)
        assert dt.tzinfo == timezone.utc  # UTC로 정규화되어야 함

    assert DateTimeUtils.parse_iso_datetime("2024-01-15T10:30:00+09:00").hour == 1

def test_parse_date_string():
    for date_string in ["2024-01-15", "2024/01/15", "01-15-2024"]:
        assert DateTimeUtils.parse_date_string(date_string) == date(2024, 1, 15)

@pytest.mark.parametrize("value, expected", [
    ("09:00 AM", time(9, 0)),
    ("9:30 pm", time(21, 30)),
    ("14:15", time(14, 15)),
    (" 12:00 PM ", time(12, 0)),
])
def test_parse_time_string(value, expected):
    """예약 시간 문자열 파싱 테스트"""
    assert DateTimeUtils.parse_time_string(value) == expected

def test_parse_time_string_rejects_garbage():
    with pytest.raises(ValueError):
        DateTimeUtils.parse_time_string("soon")
    with pytest.raises(ValueError):
        DateTimeUtils.parse_time_string("")

def test_for_firestore():
    """Firestore 변환 테스트"""
    test_data = {
        'appointment_date': date(2025, 3, 12),
        'timestamp': datetime(2024, 1, 15, 10, 30),
        'nested': {
            'follow_up_date': date(2025, 4, 1)
        },
        'list_data': [
            {'uploaded_at': datetime(2024, 1, 1)}
        ]
    }

    converted = DateTimeUtils.for_firestore(test_data)

    # date는 자정(UTC) datetime으로 변환되어야 함
    assert converted['appointment_date'] == datetime(2025, 3, 12, tzinfo=timezone.utc)
    assert isinstance(converted['nested']['follow_up_date'], datetime)
    assert converted['list_data'][0]['uploaded_at'].tzinfo == timezone.utc
    assert converted['timestamp'].tzinfo == timezone.utc

def test_from_firestore_keeps_naive_values_as_utc():
    naive = datetime(2025, 3, 10, 9, 0)
    result = DateTimeUtils.from_firestore({'created_at': naive, 'items': [naive]})
    assert result['created_at'] == datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
    assert result['items'][0].tzinfo == timezone.utc

def test_validate_datetime_field():
    """datetime 필드 검증 테스트"""
    valid_cases = [
        "2024-01-15T10:30:00Z",
        datetime(2024, 1, 15, 10, 30),
        datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    ]

    for case in valid_cases:
        result = DateTimeUtils.validate_datetime_field(case)
        assert result.tzinfo == timezone.utc

def test_validate_date_field():
    """date 필드 검증 테스트"""
    valid_cases = [
        "2024-01-15",
        date(2024, 1, 15),
        datetime(2024, 1, 15, 10, 30),
        datetime(2024, 1, 15, tzinfo=timezone.utc),
    ]

    for case in valid_cases:
        assert DateTimeUtils.validate_date_field(case) == date(2024, 1, 15)

    # 다른 타임존의 datetime은 UTC 기준 날짜로 변환
    kst = timezone(timedelta(hours=9))
    assert DateTimeUtils.validate_date_field(datetime(2024, 1, 16, 5, 0, tzinfo=kst)) == date(2024, 1, 15)

def test_add_days():
    assert DateTimeUtils.add_days(date(2025, 2, 27), 7) == date(2025, 3, 6)

def test_error_handling():
    """오류 처리 테스트"""
    with pytest.raises(ValueError):
        DateTimeUtils.parse_iso_datetime("invalid-date")

    with pytest.raises(ValueError):
        DateTimeUtils.parse_iso_datetime("")

    with pytest.raises(ValueError):
        DateTimeUtils.validate_datetime_field(None)

    with pytest.raises(ValueError):
        DateTimeUtils.validate_date_field(12345)
