"""
analyzers/iam/unused_access/requester.py - Last-accessed 보고서 생성 요청

Principal 하나당 GenerateServiceLastAccessedDetails를 한 번 호출하여
비동기 작업을 시작하고 JobId를 담은 AccessReportJob을 반환합니다.
"""

from __future__ import annotations

import logging
from typing import Any

from core.exceptions import PermanentError, SkipReason
from core.parallel.rate_limiter import TokenBucketRateLimiter
from core.tools.time.clock import Clock, SystemClock

from .base import IAMCaller
from .types import AccessReportJob, Granularity, JobState, Principal

logger = logging.getLogger(__name__)


class AccessReportRequester(IAMCaller):
    """Last-accessed 보고서 작업 요청기"""

    def __init__(
        self,
        client: Any,
        granularity: Granularity = Granularity.SERVICE_LEVEL,
        clock: Clock | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
    ):
        super().__init__(client, rate_limiter)
        self.granularity = granularity
        self._clock = clock or SystemClock()

    def request(self, principal: Principal) -> AccessReportJob:
        """보고서 생성 작업 시작

        Returns:
            state=Requested인 AccessReportJob

        Raises:
            RetryableError: 스로틀링 (호출자가 재시도)
            PermanentError: Principal 삭제(NotFound), JobId 누락(MalformedReport) 등
            AuthError: 권한 오류
        """
        response = self._call(
            "generate_service_last_accessed_details",
            principal.arn,
            Arn=principal.arn,
            Granularity=self.granularity.value,
        )

        job_id = response.get("JobId")
        if not job_id:
            raise PermanentError(principal.arn, SkipReason.MALFORMED_REPORT, "응답에 JobId가 없습니다")

        logger.debug(f"보고서 작업 요청 [{principal.arn}]: {job_id} ({self.granularity.value})")
        return AccessReportJob(
            principal=principal,
            job_id=job_id,
            state=JobState.REQUESTED,
            requested_at=self._clock.monotonic(),
        )
