# community_app/utils/test_datetime_utils.py
"""
시간 변환 유틸리티 테스트

사용법: python -m pytest community_app/utils/test_datetime_utils.py -v
"""

import pytest
from datetime import datetime, date, timezone, timedelta
from community_app.utils.datetime_utils import DateTimeUtils, to_millis

@pytest.mark.parametrize("iso_string", [
    "2024-01-15T10:30:00Z",
    "2024-01-15T10:30:00+09:00",
    "2024-01-15T10:30:00.123456Z",
    "2024-01-15T10:30:00",
])
def test_parse_iso_normalizes_to_utc(iso_string):
    dt = DateTimeUtils.parse_iso_datetime(iso_string)
    assert dt.tzinfo == timezone.utc

def test_to_timestamp_ms_accepts_every_stored_shape():
    """Firestore에 저장된 여러 형태의 createdAt을 밀리초로 변환"""
    aware = datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)
    expected = int(aware.timestamp() * 1000)

    assert DateTimeUtils.to_timestamp_ms(aware) == expected
    assert DateTimeUtils.to_timestamp_ms(datetime(2024, 1, 15)) == expected  # naive -> UTC
    assert DateTimeUtils.to_timestamp_ms("2024-01-15T00:00:00Z") == expected
    assert DateTimeUtils.to_timestamp_ms("2024-01-15T09:00:00+09:00") == expected
    assert DateTimeUtils.to_timestamp_ms(expected) == expected

def test_to_millis_is_lenient():
    """정렬용 변환은 실패 시 None"""
    assert to_millis(None) is None
    assert to_millis("not-a-date") is None
    assert to_millis(True) is None
    assert to_millis(object()) is None
    assert to_millis(300) == 300

def test_for_firestore_makes_everything_aware():
    converted = DateTimeUtils.for_firestore({
        'day': date(2020, 1, 15),
        'expires_at': datetime(2024, 1, 15, 10, 30),
        'nested': {'event_date': date(2023, 12, 25)},
        'list_data': [{'created_at': datetime(2024, 1, 1, 9, tzinfo=timezone(timedelta(hours=9)))}],
    })

    assert converted['day'] == datetime(2020, 1, 15, tzinfo=timezone.utc)
    assert converted['expires_at'].tzinfo == timezone.utc
    assert converted['nested']['event_date'].tzinfo == timezone.utc
    assert converted['list_data'][0]['created_at'] == datetime(2024, 1, 1, tzinfo=timezone.utc)

def test_error_handling():
    with pytest.raises(ValueError):
        DateTimeUtils.parse_iso_datetime("invalid-date")

    with pytest.raises(ValueError):
        DateTimeUtils.parse_iso_datetime("")

    with pytest.raises(ValueError):
        DateTimeUtils.to_timestamp_ms(object())
