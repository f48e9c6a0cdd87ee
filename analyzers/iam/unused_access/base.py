"""
analyzers/iam/unused_access/base.py - IAM API 호출 공통 베이스

모든 원격 호출은 서비스별 rate limiter 토큰을 먼저 획득한 뒤 실행되며,
botocore 예외는 wrap_aws_error로 core.exceptions 계층으로 변환됩니다.
"""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import RetryableError
from core.parallel.decorators import wrap_aws_error
from core.parallel.rate_limiter import TokenBucketRateLimiter, get_rate_limiter

logger = logging.getLogger(__name__)


class IAMCaller:
    """Rate limiting + 예외 변환이 적용된 IAM 호출 베이스"""

    service = "iam"

    def __init__(self, client: Any, rate_limiter: TokenBucketRateLimiter | None = None):
        self._client = client
        self._rate_limiter = rate_limiter or get_rate_limiter(self.service)

    def _call(self, operation: str, identifier: str, **kwargs: Any) -> dict[str, Any]:
        """IAM API 호출

        Args:
            operation: boto3 client 메서드 이름 (예: "list_users")
            identifier: 로깅/예외용 식별자 (Principal ARN 등)
            **kwargs: API 파라미터

        Raises:
            RetryableError: 스로틀링, 일시적 네트워크 오류, rate limiter 대기 시간 초과
            AuthError: 자격 증명/권한 오류
            PermanentError: 그 외 재시도 불가 오류
        """
        if not self._rate_limiter.acquire():
            raise RetryableError(operation, identifier, "rate limiter 대기 시간 초과", error_code="RateLimitTimeout")

        try:
            response: dict[str, Any] = getattr(self._client, operation)(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise wrap_aws_error(e, operation, identifier) from e
        return response

    def _paginate(self, operation: str, identifier: str, result_key: str, **kwargs: Any) -> list[Any]:
        """Marker/IsTruncated 페이지네이션 (같은 Marker가 반복되면 중단)"""
        items: list[Any] = []
        seen_markers: set[str] = set()
        marker: str | None = None

        while True:
            params = dict(kwargs)
            if marker:
                params["Marker"] = marker
            page = self._call(operation, identifier, **params)
            items.extend(page.get(result_key, []))

            if not page.get("IsTruncated"):
                break
            marker = page.get("Marker")
            if not marker or marker in seen_markers:
                logger.warning(f"{operation} 페이지네이션 중단: 잘못되었거나 반복된 Marker [{identifier}]")
                break
            seen_markers.add(marker)

        return items
