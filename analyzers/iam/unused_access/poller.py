"""
analyzers/iam/unused_access/poller.py - Last-accessed 작업 폴링

작업마다 독립적인 고정 간격으로 GetServiceLastAccessedDetails를 호출하여
Requested/InProgress → Completed | Failed로 상태를 전이합니다.

- 스로틀링 응답 시 간격을 지수적으로 늘리고(지터 포함, 상한 max_poll_interval),
  성공 응답 한 번이면 기본 간격으로 되돌립니다.
- 마지막 대기는 마감 시각에서 끝나고 그 시점에 한 번 더 조회합니다.
  그때도 완료되지 않았으면 작업을 Failed(Timeout)로 처리합니다.
- 스로틀링이 max_throttle_retries를 넘으면 PermanentError(Throttled).
- cancel_event가 설정되면 대기를 중단하고 PermanentError(Cancelled).

모든 시간은 Clock을 통해 얻으므로 FakeClock으로 결정적으로 테스트할 수 있습니다.
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Any

from core.exceptions import PermanentError, RetryableError, SkipReason
from core.parallel.rate_limiter import TokenBucketRateLimiter
from core.tools.time.clock import Clock, SystemClock

from .base import IAMCaller
from .types import AccessReportJob, ActionAccessRecord, JobState, PollerConfig, ServiceAccessRecord

logger = logging.getLogger(__name__)


class PollBackoff:
    """작업 하나의 폴링 간격 상태

    스로틀링: nominal = min(cap, nominal * multiplier)
              interval = min(cap, nominal + uniform(0, jitter_ratio * nominal))
    성공:     interval = nominal = poll_interval
    """

    def __init__(self, config: PollerConfig, rng: random.Random | None = None):
        self._config = config
        self._rng = rng or random.Random()
        self._nominal = config.poll_interval
        self.current = config.poll_interval

    def on_throttle(self) -> float:
        config = self._config
        self._nominal = min(config.max_poll_interval, self._nominal * config.backoff_multiplier)
        jitter = self._rng.uniform(0, config.jitter_ratio * self._nominal)
        self.current = min(config.max_poll_interval, self._nominal + jitter)
        return self.current

    def on_success(self) -> float:
        self._nominal = self._config.poll_interval
        self.current = self._config.poll_interval
        return self.current


class ReportPoller(IAMCaller):
    """Last-accessed 작업 폴러"""

    def __init__(
        self,
        client: Any,
        config: PollerConfig | None = None,
        clock: Clock | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
        rng: random.Random | None = None,
    ):
        super().__init__(client, rate_limiter)
        self.config = config or PollerConfig()
        self._clock = clock or SystemClock()
        self._rng = rng

    # =========================================================================
    # 단일 폴링
    # =========================================================================

    def poll(self, job: AccessReportJob) -> AccessReportJob:
        """작업 상태를 한 번 조회하여 갱신

        마감 시각이 지났더라도 먼저 조회하며, 여전히 IN_PROGRESS일 때만 Failed(Timeout).

        Raises:
            RetryableError: 스로틀링 (상태 변경 없음)
            PermanentError: 알 수 없는 상태, 필수 필드 누락, Principal 삭제
            AuthError: 권한 오류
        """
        if job.is_terminal:
            return job

        arn = job.principal.arn
        response = self._call("get_service_last_accessed_details", arn, JobId=job.job_id)
        job.poll_count += 1
        status = response.get("JobStatus")

        if status == "COMPLETED":
            records = list(self._parse_records(arn, response))
            records.extend(self._fetch_remaining_pages(job, response))
            job.records = tuple(records)
            job.state = JobState.COMPLETED
            job.completed_at = self._clock.monotonic()
            logger.debug(f"작업 완료 [{arn}]: 서비스 {len(job.records)}개, 폴링 {job.poll_count}회")
        elif status == "IN_PROGRESS":
            job.state = JobState.IN_PROGRESS
            if self._timed_out(job):
                self._fail_timeout(job)
        elif status == "FAILED":
            error = response.get("Error") or {}
            self._fail(job, SkipReason.JOB_FAILED, error.get("Message") or error.get("Code") or "작업 실패")
        else:
            raise PermanentError(arn, SkipReason.MALFORMED_REPORT, f"알 수 없는 JobStatus: {status!r}")

        return job

    # =========================================================================
    # 완료까지 대기
    # =========================================================================

    def wait(self, job: AccessReportJob, cancel_event: threading.Event | None = None) -> AccessReportJob:
        """작업이 Completed 또는 Failed가 될 때까지 폴링

        Returns:
            종료 상태의 AccessReportJob

        Raises:
            PermanentError: Throttled(스로틀링 한도 초과), Cancelled, 기타 영구 오류
            AuthError: 권한 오류
        """
        arn = job.principal.arn
        backoff = PollBackoff(self.config, self._rng)
        throttles = 0
        interval = backoff.current

        while not job.is_terminal:
            if not self._clock.sleep(self._bounded_interval(job, interval), cancel_event):
                raise PermanentError(arn, SkipReason.CANCELLED, "폴링 중 취소됨")

            try:
                self.poll(job)
            except RetryableError as e:
                if self._timed_out(job):
                    self._fail_timeout(job)
                    break
                throttles += 1
                if throttles > self.config.max_throttle_retries:
                    raise PermanentError(
                        arn, SkipReason.THROTTLED, f"스로틀링 {throttles}회로 폴링 중단", cause=e
                    ) from e
                interval = backoff.on_throttle()
                logger.debug(f"폴링 스로틀링 [{arn}] {throttles}회, 다음 간격 {interval:.2f}초")
            else:
                interval = backoff.on_success()

        if job.state is JobState.FAILED:
            logger.warning(f"보고서 작업 실패 [{arn}]: {job.failure_reason} {job.error_message}")
        return job

    # =========================================================================
    # 내부 헬퍼
    # =========================================================================

    def _timed_out(self, job: AccessReportJob) -> bool:
        return self._clock.monotonic() - job.requested_at >= self.config.job_timeout

    def _bounded_interval(self, job: AccessReportJob, interval: float) -> float:
        """타임아웃 시점을 넘겨 대기하지 않도록 간격 제한"""
        remaining = job.requested_at + self.config.job_timeout - self._clock.monotonic()
        return max(0.0, min(interval, remaining))

    def _fail_timeout(self, job: AccessReportJob) -> None:
        self._fail(job, SkipReason.TIMEOUT, f"{self.config.job_timeout:.0f}초 내에 완료되지 않음")

    def _fail(self, job: AccessReportJob, reason: SkipReason, message: str) -> None:
        job.state = JobState.FAILED
        job.failure_reason = reason
        job.error_message = message
        job.completed_at = self._clock.monotonic()

    def _fetch_remaining_pages(self, job: AccessReportJob, first_page: dict[str, Any]) -> list[ServiceAccessRecord]:
        arn = job.principal.arn
        records: list[ServiceAccessRecord] = []
        seen_markers: set[str] = set()
        page = first_page

        while page.get("IsTruncated"):
            marker = page.get("Marker")
            if not marker or marker in seen_markers:
                raise PermanentError(arn, SkipReason.MALFORMED_REPORT, "보고서 페이지네이션 Marker 오류")
            seen_markers.add(marker)
            page = self._call("get_service_last_accessed_details", arn, JobId=job.job_id, Marker=marker)
            records.extend(self._parse_records(arn, page))

        return records

    @staticmethod
    def _parse_records(arn: str, response: dict[str, Any]) -> list[ServiceAccessRecord]:
        records: list[ServiceAccessRecord] = []
        for item in response.get("ServicesLastAccessed", []):
            namespace = item.get("ServiceNamespace")
            if not namespace:
                raise PermanentError(arn, SkipReason.MALFORMED_REPORT, "ServiceNamespace가 없는 항목")

            tracked = item.get("TrackedActionsLastAccessed")
            actions: tuple[ActionAccessRecord, ...] | None = None
            if tracked is not None:
                actions = tuple(
                    ActionAccessRecord(action_name=a["ActionName"], last_accessed=a.get("LastAccessedTime"))
                    for a in tracked
                    if a.get("ActionName")
                )

            records.append(
                ServiceAccessRecord(
                    service_namespace=namespace,
                    last_accessed=item.get("LastAuthenticated"),
                    actions=actions,
                    service_name=item.get("ServiceName", ""),
                )
            )
        return records
