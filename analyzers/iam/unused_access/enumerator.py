"""
analyzers/iam/unused_access/enumerator.py - IAM Principal 열거

계정의 모든 사용자와 역할을 Marker 페이지네이션으로 조회합니다.
enumerate()는 호출할 때마다 새 생성기를 반환하므로 재시작할 수 있고,
페이지 단위로 재시도하므로 재시도 중 이미 yield된 Principal이 중복되지 않습니다.

Example:
    enumerator = PrincipalEnumerator(iam, account_id="123456789012")
    for principal in enumerator.enumerate():
        print(principal.arn)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from typing import Any

from core.exceptions import AuthError, EnumerationError, PermanentError, RetryableError
from core.parallel.decorators import RetryConfig
from core.parallel.rate_limiter import TokenBucketRateLimiter
from core.tools.time.clock import Clock, SystemClock

from .base import IAMCaller
from .types import Principal, PrincipalType

logger = logging.getLogger(__name__)

# 종류별 목록 API와 응답 키
_LIST_OPERATIONS: dict[PrincipalType, tuple[str, str]] = {
    PrincipalType.USER: ("list_users", "Users"),
    PrincipalType.ROLE: ("list_roles", "Roles"),
}


class PrincipalEnumerator(IAMCaller):
    """사용자 → 역할 순서로 Principal을 지연 열거"""

    def __init__(
        self,
        client: Any,
        account_id: str = "",
        retry_config: RetryConfig | None = None,
        clock: Clock | None = None,
        cancel_event: threading.Event | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
    ):
        super().__init__(client, rate_limiter)
        self.account_id = account_id
        self._retry = retry_config or RetryConfig()
        self._clock = clock or SystemClock()
        self._cancel_event = cancel_event

    def enumerate(self) -> Iterator[Principal]:
        """Principal 생성기 반환

        Raises (순회 중):
            EnumerationError: 목록 조회 실패 (재시도 소진, 권한 오류 등)
        """
        return self._generate()

    def _generate(self) -> Iterator[Principal]:
        seen_arns: set[str] = set()
        counts = {PrincipalType.USER: 0, PrincipalType.ROLE: 0}

        for principal_type in (PrincipalType.USER, PrincipalType.ROLE):
            for item in self._iter_items(principal_type):
                principal = self._to_principal(item, principal_type)
                if principal.arn in seen_arns:
                    logger.debug(f"중복 Principal 무시: {principal.arn}")
                    continue
                seen_arns.add(principal.arn)
                counts[principal_type] += 1
                yield principal

        logger.info(f"Principal 열거 완료: 사용자 {counts[PrincipalType.USER]}, 역할 {counts[PrincipalType.ROLE]}")

    def _iter_items(self, principal_type: PrincipalType) -> Iterator[dict[str, Any]]:
        operation, result_key = _LIST_OPERATIONS[principal_type]
        seen_markers: set[str] = set()
        marker: str | None = None
        page_number = 0

        while not self._cancelled:
            page = self._fetch_page(operation, principal_type, marker)
            if page is None:
                return
            page_number += 1
            logger.debug(f"{operation} 페이지 {page_number}: {len(page.get(result_key, []))}개")
            yield from page.get(result_key, [])

            if not page.get("IsTruncated"):
                return
            marker = page.get("Marker")
            if not marker:
                logger.warning(f"{operation}: IsTruncated=true인데 Marker가 없어 중단")
                return
            if marker in seen_markers:
                logger.warning(f"{operation}: 반복된 Marker 감지, 페이지네이션 중단")
                return
            seen_markers.add(marker)

    def _fetch_page(
        self,
        operation: str,
        principal_type: PrincipalType,
        marker: str | None,
    ) -> dict[str, Any] | None:
        """페이지 하나 조회 (재시도 포함, 취소 시 None)"""
        params = {"Marker": marker} if marker else {}

        for attempt in range(self._retry.max_retries + 1):
            try:
                return self._call(operation, principal_type.value, **params)
            except RetryableError as e:
                if attempt >= self._retry.max_retries:
                    raise EnumerationError(
                        principal_type.value, f"{operation} 재시도 {attempt}회 후 실패", cause=e
                    ) from e
                delay = self._retry.get_delay(attempt)
                logger.debug(f"{operation} 시도 {attempt + 1} 실패, {delay:.2f}초 후 재시도")
                if not self._clock.sleep(delay, self._cancel_event):
                    return None
            except (AuthError, PermanentError) as e:
                raise EnumerationError(principal_type.value, f"{operation} 실패", cause=e) from e

        return None

    @property
    def _cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    def _to_principal(self, item: dict[str, Any], principal_type: PrincipalType) -> Principal:
        arn = item["Arn"]
        if principal_type is PrincipalType.USER:
            name = item.get("UserName", "")
        else:
            name = item.get("RoleName", "")

        # arn:aws:iam::<account>:user/<name>
        arn_parts = arn.split(":")
        account_id = arn_parts[4] if len(arn_parts) > 5 and arn_parts[4] else self.account_id

        return Principal(
            arn=arn,
            name=name or arn.rsplit("/", 1)[-1],
            principal_type=principal_type,
            account_id=account_id,
            path=item.get("Path", "/"),
            create_date=item.get("CreateDate"),
            password_last_used=item.get("PasswordLastUsed"),
        )
