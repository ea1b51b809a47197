# petbiz/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간/날짜 처리를 위한 중앙화된 유틸리티 모듈

이 모듈의 목적:
1. 모든 시간 관련 작업을 표준화 (백엔드는 UTC로 통일)
2. Firestore 저장/조회 시의 날짜 변환 통일
3. 예약 날짜(YYYY-MM-DD)와 시간 문자열("09:00 AM") 파싱 통일
"""

import logging
from datetime import datetime, date, timezone, time, timedelta
from typing import Any
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 UTC datetime 객체로 파싱

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00
        """
        try:
            if not iso_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)

            # timezone-naive인 경우 UTC로 가정
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"ISO datetime parse failed: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def parse_date_string(date_string: str) -> date:
        """
        날짜 문자열을 date 객체로 파싱 (2024-01-15, 2024/01/15, 01-15-2024)
        """
        try:
            if not date_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")
            return dateutil_parser.parse(date_string).date()
        except Exception as e:
            logger.error(f"Date string parse failed: {date_string} - {e}")
            raise ValueError(f"잘못된 날짜 형식입니다: {date_string}")

    @staticmethod
    def parse_time_string(time_string: str) -> time:
        """
        예약 시간 문자열을 time 객체로 파싱합니다.
        "09:00 AM", "9:30 pm", "14:15" 형식을 지원합니다.
        """
        try:
            if not time_string or not time_string.strip():
                raise ValueError("빈 문자열은 파싱할 수 없습니다")
            parsed = dateutil_parser.parse(time_string.strip(), default=datetime(2000, 1, 1))
            return parsed.time()
        except Exception as e:
            logger.warning(f"Time string parse failed: {time_string} - {e}")
            raise ValueError(f"잘못된 시간 형식입니다: {time_string}")

    @staticmethod
    def add_days(d: date, days: int) -> date:
        """날짜에 일 수를 더함"""
        return d + timedelta(days=days)

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환

        변환 규칙:
        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> timezone-aware datetime (UTC)
        - dict/list 내부 재귀적 변환
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)

        if isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)

        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}

        if isinstance(obj, (list, tuple)):
            return [DateTimeUtils.for_firestore(item) for item in obj]

        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 데이터의 datetime 필드를 UTC timezone-aware datetime으로 변환

        Firestore의 DatetimeWithNanoseconds도 datetime의 하위 클래스이므로 같은 규칙을 따릅니다.
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)

        if isinstance(obj, dict):
            return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}

        if isinstance(obj, list):
            return [DateTimeUtils.from_firestore(item) for item in obj]

        return obj

    @staticmethod
    def validate_datetime_field(value: Any, field_name: str = "datetime") -> datetime:
        """
        저장소나 API 요청에서 받은 datetime 값을 검증하고 UTC datetime으로 변환

        Raises:
            ValueError: 잘못된 형식이거나 파싱할 수 없는 경우
        """
        if value is None:
            raise ValueError(f"{field_name}은 필수 필드입니다")

        if isinstance(value, str):
            return DateTimeUtils.parse_iso_datetime(value)

        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)

        raise ValueError(f"잘못된 {field_name} 형식입니다: {value}")

    @staticmethod
    def validate_date_field(value: Any, field_name: str = "date") -> date:
        """
        저장소나 API 요청에서 받은 date 값을 검증하고 변환

        Firestore에 자정(UTC) datetime으로 저장된 날짜도 date로 되돌립니다.
        """
        if value is None:
            raise ValueError(f"{field_name}은 필수 필드입니다")

        if isinstance(value, str):
            return DateTimeUtils.parse_date_string(value)

        # datetime은 date의 하위 클래스이므로 먼저 검사해야 함
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc)
            return value.date()

        if isinstance(value, date):
            return value

        raise ValueError(f"잘못된 {field_name} 형식입니다: {value}")
