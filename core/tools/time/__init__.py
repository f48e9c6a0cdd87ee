# core/tools/time - 날짜/시간 유틸리티
"""
날짜/시간 유틸리티

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    "Clock",
    "SystemClock",
    "ensure_utc",
    "to_iso8601",
    "utc_now",
]

_UTILS_ATTRS = {"ensure_utc", "to_iso8601", "utc_now"}
_CLOCK_ATTRS = {"Clock", "SystemClock"}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _UTILS_ATTRS:
        from . import utils

        return getattr(utils, name)

    if name in _CLOCK_ATTRS:
        from . import clock

        return getattr(clock, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
