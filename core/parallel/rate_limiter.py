"""
core/parallel/rate_limiter.py - Token Bucket Rate Limiter

여러 워커 스레드가 같은 AWS 서비스를 호출할 때 API 쓰로틀링을 예방합니다.
서비스별로 하나의 limiter를 공유합니다.

Example:
    limiter = get_rate_limiter("iam")
    if not limiter.acquire():
        raise RetryableError(...)
    iam.list_users()
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterConfig:
    """Rate limiter 설정

    Attributes:
        requests_per_second: 초당 토큰 리필 속도
        burst_size: 최대 토큰 수 (순간 허용량)
        wait_timeout: acquire() 최대 대기 시간 (초)
    """

    requests_per_second: float = 10.0
    burst_size: int = 20
    wait_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be > 0, got {self.requests_per_second}")
        if self.burst_size < 1:
            raise ValueError(f"burst_size must be >= 1, got {self.burst_size}")


# 서비스별 기본 설정 (IAM은 계정 단위 글로벌 한도가 낮음)
SERVICE_RATE_LIMITS: dict[str, RateLimiterConfig] = {
    "iam": RateLimiterConfig(requests_per_second=10, burst_size=20),
    "sts": RateLimiterConfig(requests_per_second=10, burst_size=20),
    "default": RateLimiterConfig(requests_per_second=10, burst_size=20),
}


class TokenBucketRateLimiter:
    """스레드 세이프 Token Bucket

    토큰은 requests_per_second 속도로 burst_size까지 채워지며,
    호출 1회당 토큰 1개를 소비합니다.
    """

    def __init__(self, config: RateLimiterConfig | None = None):
        self.config = config or RateLimiterConfig()
        self._tokens = float(self.config.burst_size)
        self._last_refill = time.monotonic()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(
            float(self.config.burst_size),
            self._tokens + elapsed * self.config.requests_per_second,
        )
        self._last_refill = now

    def acquire(self, tokens: int = 1) -> bool:
        """토큰 획득 (부족하면 wait_timeout까지 대기)

        Returns:
            획득 성공 시 True, 타임아웃 시 False
        """
        deadline = time.monotonic() + self.config.wait_timeout

        while True:
            with self._lock:
                self._refill()
                if self._tokens >= tokens:
                    self._tokens -= tokens
                    return True
                wait = (tokens - self._tokens) / self.config.requests_per_second

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.debug("Rate limiter 대기 시간 초과")
                return False
            time.sleep(min(wait, remaining))


_limiters: dict[str, TokenBucketRateLimiter] = {}
_limiters_lock = threading.Lock()


def get_rate_limiter(service: str) -> TokenBucketRateLimiter:
    """서비스별 공유 rate limiter 반환 (없으면 생성)"""
    with _limiters_lock:
        limiter = _limiters.get(service)
        if limiter is None:
            config = SERVICE_RATE_LIMITS.get(service, SERVICE_RATE_LIMITS["default"])
            limiter = TokenBucketRateLimiter(
                RateLimiterConfig(
                    requests_per_second=config.requests_per_second,
                    burst_size=config.burst_size,
                    wait_timeout=config.wait_timeout,
                )
            )
            _limiters[service] = limiter
        return limiter


def reset_rate_limiters() -> None:
    """공유 limiter 캐시 초기화 (테스트용)"""
    with _limiters_lock:
        _limiters.clear()
