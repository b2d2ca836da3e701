# community_app/utils/datetime_utils.py
"""
시간 값 변환 유틸리티

Firestore에 저장된 createdAt은 문서가 만들어진 시기에 따라 형태가 제각각입니다.
(Firestore Timestamp, datetime, 예전 화면이 남긴 ISO 문자열, 밀리초 숫자)
목록 정렬은 전부 밀리초 정수로 통일해서 비교하며, 백엔드의 시간대는 UTC입니다.
"""

import logging
from datetime import datetime, date, timezone, time
from typing import Any, Optional
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

class DateTimeUtils:
    """저장/정렬용 시간 변환 모음"""

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 문자열 -> UTC datetime. 시간대가 없으면 UTC로 간주합니다.

        Raises:
            ValueError: 빈 문자열이나 해석할 수 없는 문자열
        """
        if not iso_string:
            raise ValueError("빈 문자열은 파싱할 수 없습니다")
        try:
            dt = dateutil_parser.isoparse(iso_string)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}") from e
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        저장 직전 변환. date는 그날 00:00 UTC로, naive datetime은 UTC로 맞추며
        dict/list 안쪽까지 재귀적으로 적용합니다.
        """
        if isinstance(obj, datetime):
            return obj.replace(tzinfo=timezone.utc) if obj.tzinfo is None else obj.astimezone(timezone.utc)
        if isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def to_timestamp_ms(value: Any) -> int:
        """
        저장된 시간 값을 Unix 밀리초로 변환합니다.

        Raises:
            ValueError: 변환할 수 없는 값
        """
        if isinstance(value, bool):
            raise ValueError("bool은 timestamp가 아닙니다")
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            value = DateTimeUtils.parse_iso_datetime(value)
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return int(value.timestamp() * 1000)
        # DatetimeWithNanoseconds 등 Firestore 타임스탬프
        if hasattr(value, 'timestamp'):
            return int(value.timestamp() * 1000)
        raise ValueError(f"timestamp로 변환할 수 없습니다: {type(value)}")


def to_millis(value: Any) -> Optional[int]:
    """정렬용 변환. 값이 없거나 깨져 있으면 None (정렬 시 0으로 취급)"""
    if value is None:
        return None
    try:
        return DateTimeUtils.to_timestamp_ms(value)
    except ValueError as e:
        logger.warning(f"createdAt 변환 실패, 0으로 정렬합니다: {value!r} ({e})")
        return None
