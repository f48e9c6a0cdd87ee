"""
tests/core/tools/test_time_utils.py - core/tools/time 테스트

시간 변환 유틸리티와 시계 추상화를 검증합니다.
"""

import threading
import time
from datetime import datetime, timedelta, timezone

from core.tools.time.clock import SystemClock
from core.tools.time.utils import ensure_utc, to_iso8601, utc_now

KST = timezone(timedelta(hours=9))


class TestEnsureUtc:
    """ensure_utc 테스트"""

    def test_naive_is_treated_as_utc(self):
        result = ensure_utc(datetime(2024, 2, 29, 12, 0, 0))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12

    def test_converts_other_timezone(self):
        result = ensure_utc(datetime(2024, 3, 1, 9, 0, 0, tzinfo=KST))

        assert result == datetime(2024, 3, 1, 0, 0, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc


class TestToIso8601:
    """to_iso8601 테스트"""

    def test_z_suffix(self):
        assert to_iso8601(datetime(2024, 2, 29, 12, 37, 10, tzinfo=timezone.utc)) == "2024-02-29T12:37:10Z"

    def test_microseconds_kept_when_present(self):
        value = datetime(2024, 2, 29, 12, 37, 10, 123456, tzinfo=timezone.utc)
        assert to_iso8601(value) == "2024-02-29T12:37:10.123456Z"

    def test_non_utc_input_converted(self):
        assert to_iso8601(datetime(2024, 3, 1, 9, 0, 0, tzinfo=KST)) == "2024-03-01T00:00:00Z"

    def test_none(self):
        assert to_iso8601(None) is None


class TestUtcNow:
    """utc_now 테스트"""

    def test_has_timezone_info(self):
        assert utc_now().tzinfo == timezone.utc

    def test_is_current_time(self):
        diff = abs((utc_now() - datetime.now(timezone.utc)).total_seconds())
        assert diff < 5


class TestSystemClock:
    """SystemClock 테스트"""

    def test_monotonic_increases(self):
        clock = SystemClock()
        first = clock.monotonic()
        time.sleep(0.01)
        assert clock.monotonic() > first

    def test_now_utc_is_aware(self):
        assert SystemClock().now_utc().tzinfo == timezone.utc

    def test_sleep_completes(self):
        assert SystemClock().sleep(0.01, threading.Event()) is True

    def test_sleep_without_event(self):
        assert SystemClock().sleep(0.01) is True

    def test_sleep_interrupted_by_cancel(self):
        """취소 신호가 설정되면 즉시 False 반환"""
        cancel_event = threading.Event()
        threading.Timer(0.05, cancel_event.set).start()

        start = time.monotonic()
        assert SystemClock().sleep(10.0, cancel_event) is False
        assert time.monotonic() - start < 5

    def test_zero_sleep_with_cancelled_event(self):
        cancel_event = threading.Event()
        cancel_event.set()
        assert SystemClock().sleep(0, cancel_event) is False
