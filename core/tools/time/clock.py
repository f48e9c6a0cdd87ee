"""
core/tools/time/clock.py - 시계 추상화

폴링/백오프/타임아웃 로직이 실제 시간에 의존하지 않도록
monotonic 시간, 현재 UTC 시각, 취소 가능한 sleep을 하나의 인터페이스로 묶습니다.
테스트에서는 FakeClock으로 교체합니다.

Example:
    clock = SystemClock()
    deadline = clock.monotonic() + 300
    while clock.monotonic() < deadline:
        if not clock.sleep(3.0, cancel_event):
            break  # 취소됨
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from typing import Optional, Protocol

from .utils import utc_now


class Clock(Protocol):
    """시계 인터페이스"""

    def monotonic(self) -> float:
        """단조 증가 시간 (초)"""
        ...

    def now_utc(self) -> datetime:
        """현재 UTC 시각 (tz-aware)"""
        ...

    def sleep(self, seconds: float, cancel_event: Optional[threading.Event] = None) -> bool:
        """seconds 동안 대기

        Returns:
            끝까지 대기했으면 True, cancel_event로 중단되었으면 False
        """
        ...


class SystemClock:
    """실제 시스템 시계"""

    def monotonic(self) -> float:
        return time.monotonic()

    def now_utc(self) -> datetime:
        return utc_now()

    def sleep(self, seconds: float, cancel_event: Optional[threading.Event] = None) -> bool:
        if seconds <= 0:
            return not (cancel_event is not None and cancel_event.is_set())
        if cancel_event is None:
            time.sleep(seconds)
            return True
        # Event.wait는 신호가 설정되면 True를 반환
        return not cancel_event.wait(seconds)
