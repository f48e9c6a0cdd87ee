"""
core/tools/time/utils.py - 날짜/시간 관련 유틸리티 함수들

AWS API가 반환하는 datetime은 대부분 tz-aware(UTC)지만,
테스트 더블이나 일부 응답은 naive datetime을 줄 수 있으므로
비교 전에 항상 ensure_utc로 정규화합니다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def ensure_utc(dt: datetime) -> datetime:
    """datetime을 UTC tz-aware로 정규화합니다.

    naive datetime은 UTC로 간주합니다.

    Args:
        dt: 변환할 datetime

    Returns:
        datetime: tzinfo=UTC인 datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso8601(dt: Optional[datetime]) -> Optional[str]:
    """datetime을 ISO-8601 UTC 문자열(Z 접미사)로 변환합니다.

    마이크로초는 0이 아닐 때만 포함합니다.

    Example:
        to_iso8601(datetime(2024, 2, 29, 12, 37, 10, tzinfo=timezone.utc))
        # "2024-02-29T12:37:10Z"
    """
    if dt is None:
        return None
    utc = ensure_utc(dt)
    if utc.microsecond:
        return utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def utc_now() -> datetime:
    """현재 UTC 시각 (tz-aware)"""
    return datetime.now(timezone.utc)
