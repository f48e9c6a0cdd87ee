"""
analyzers/iam/unused_access/orchestrator.py - 미사용 액세스 분석 오케스트레이터

파이프라인:
    Enumerator → (필터) → [Resolver → Requester → Poller → Evaluator → Builder] × N

Principal 작업은 BoundedParallelExecutor에서 최대 max_workers개씩 병렬 실행되며,
각 작업은 Pending → Requesting → Polling → Evaluating → Built | Skipped(사유)로 진행합니다.

실행 전체 중단 조건:
    - EnumerationError: Principal 목록 조회 실패
    - AuthError: 서로 다른 Principal에서 연속으로 auth_failure_threshold회 발생

그 외 Principal 단위 오류는 해당 Principal만 스킵하고 계속 진행합니다.

Example:
    config = AnalysisConfig.create(region="us-east-1", unused_access_age_days=90,
                                   owner_account="123456789012")
    analyzer = UnusedAccessAnalyzer(iam_client, config, cancel_event=cancel_event)
    result = analyzer.run()
    print(len(result.findings), result.summary_by_reason())
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

from core.exceptions import AuthError, PermanentError, RetryableError, SkipReason
from core.parallel.executor import BoundedParallelExecutor, ParallelConfig
from core.parallel.rate_limiter import TokenBucketRateLimiter
from core.parallel.types import TaskResult
from core.tools.time.clock import Clock, SystemClock
from core.tools.time.utils import ensure_utc

from .activity import PrincipalActivityInspector
from .builder import FindingBuilder
from .enumerator import PrincipalEnumerator
from .evaluator import UnusedPermissionEvaluator
from .policies import GrantedPermissionResolver, GrantedPermissions
from .poller import ReportPoller
from .requester import AccessReportRequester
from .types import (
    AnalysisConfig,
    AnalysisResult,
    Finding,
    FindingType,
    JobState,
    Principal,
    PrincipalOutcome,
    PrincipalType,
    RunStatus,
    SkippedPrincipal,
    TaskState,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ACTIVITY_TYPES = frozenset(
    {
        FindingType.UNUSED_IAM_ROLE,
        FindingType.UNUSED_IAM_USER_PASSWORD,
        FindingType.UNUSED_IAM_USER_ACCESS_KEY,
    }
)


class _TaskProgress:
    """작업 하나의 현재 상태 (스킵 시 실패 단계 기록용)"""

    def __init__(self) -> None:
        self.state = TaskState.PENDING


class UnusedAccessAnalyzer:
    """미사용 액세스 분석 엔진"""

    def __init__(
        self,
        client: Any,
        config: AnalysisConfig,
        *,
        clock: Clock | None = None,
        cancel_event: threading.Event | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
        enumerator: PrincipalEnumerator | None = None,
        resolver: GrantedPermissionResolver | None = None,
        requester: AccessReportRequester | None = None,
        poller: ReportPoller | None = None,
        evaluator: UnusedPermissionEvaluator | None = None,
        builder: FindingBuilder | None = None,
        activity: PrincipalActivityInspector | None = None,
        on_progress: Callable[[PrincipalOutcome], None] | None = None,
    ):
        """초기화

        Args:
            client: boto3 IAM client
            config: 실행 설정
            clock: 시계 (테스트용 FakeClock 주입)
            cancel_event: 공유 취소 신호 (SIGINT 핸들러가 설정)
            rate_limiter: IAM rate limiter (None이면 서비스 공유 limiter)
            enumerator ~ activity: 구성 요소 주입 (None이면 기본 생성)
            on_progress: Principal 작업 완료 콜백 (워커 스레드에서 호출)
        """
        self.config = config
        self.clock = clock or SystemClock()
        self.cancel_event = cancel_event or threading.Event()
        self.on_progress = on_progress

        self.enumerator = enumerator or PrincipalEnumerator(
            client,
            account_id=config.owner_account,
            retry_config=config.retry,
            clock=self.clock,
            cancel_event=self.cancel_event,
            rate_limiter=rate_limiter,
        )
        self.resolver = resolver or GrantedPermissionResolver(client, rate_limiter)
        self.requester = requester or AccessReportRequester(client, config.granularity, self.clock, rate_limiter)
        self.poller = poller or ReportPoller(client, config.poller, self.clock, rate_limiter)
        self.evaluator = evaluator or UnusedPermissionEvaluator(config)
        self.builder = builder or FindingBuilder(config.owner_account)
        self.activity = activity or PrincipalActivityInspector(client, config, rate_limiter)

        self._auth_lock = threading.Lock()
        self._auth_failures: set[str] = set()
        self._fatal_error: AuthError | None = None
        self._filtered_count = 0

    # =========================================================================
    # 실행
    # =========================================================================

    def run(self) -> AnalysisResult:
        """분석 실행

        Returns:
            AnalysisResult (취소 시 status=Cancelled)

        Raises:
            EnumerationError: Principal 목록 조회 실패
            AuthError: 반복된 인증 실패
        """
        start = self.clock.monotonic()
        self._filtered_count = 0
        logger.info(
            f"분석 시작: region={self.config.region}, 기준={self.config.unused_access_age.days}일, "
            f"workers={self.config.max_workers}, types={sorted(t.value for t in self.config.finding_types)}"
        )

        executor = BoundedParallelExecutor(ParallelConfig(max_workers=self.config.max_workers), self.cancel_event)
        exec_result = executor.execute(
            self._filtered(self.enumerator.enumerate()),
            self._analyze_principal,
            key=lambda p: p.arn,
            on_complete=self._notify,
        )

        if self._fatal_error is not None:
            raise self._fatal_error

        if exec_result.has_any_failure():
            logger.warning(exec_result.get_error_summary())

        findings: list[Finding] = []
        skipped: list[SkippedPrincipal] = []
        analyzed = 0

        for task in exec_result.results:
            outcome = task.data if task.success else None
            if outcome is None:
                # _analyze_principal 외부의 예기치 않은 오류
                message = task.error.message if task.error else "알 수 없는 오류"
                skipped.append(self._unexpected_skip(task.identifier, message))
                continue
            if outcome.skipped is not None:
                skipped.append(outcome.skipped)
                continue
            analyzed += 1
            findings.extend(outcome.findings)

        status = RunStatus.CANCELLED if self.cancel_event.is_set() else RunStatus.SUCCESS
        result = AnalysisResult(
            findings=sorted(findings, key=lambda f: f.sort_key),
            skipped=sorted(skipped, key=lambda s: s.arn),
            analyzed_count=analyzed,
            filtered_count=self._filtered_count,
            status=status,
            duration_seconds=self.clock.monotonic() - start,
        )
        logger.info(
            f"분석 종료 [{status.value}]: 분석 {analyzed}, 스킵 {len(skipped)}, "
            f"제외 {self._filtered_count}, Finding {len(result.findings)}"
        )
        return result

    def _filtered(self, principals: Iterable[Principal]) -> Iterator[Principal]:
        """설정된 필터 적용"""
        for principal in principals:
            if self.config.exclude_service_linked_roles and principal.is_service_linked:
                logger.debug(f"서비스 연결 역할 제외: {principal.arn}")
                self._filtered_count += 1
                continue
            if self.config.skip_recently_created and self._recently_created(principal):
                logger.debug(f"최근 생성된 Principal 제외: {principal.arn}")
                self._filtered_count += 1
                continue
            yield principal

    def _recently_created(self, principal: Principal) -> bool:
        if principal.create_date is None:
            return False
        return self.config.now - ensure_utc(principal.create_date) < self.config.unused_access_age

    def _notify(self, task: TaskResult[PrincipalOutcome]) -> None:
        if self.on_progress is not None and task.data is not None:
            self.on_progress(task.data)

    # =========================================================================
    # Principal 작업
    # =========================================================================

    def _analyze_principal(self, principal: Principal) -> PrincipalOutcome:
        """Principal 하나 분석 (워커 스레드)"""
        progress = _TaskProgress()

        try:
            findings: list[Finding] = []

            if self.config.wants(FindingType.UNUSED_PERMISSION):
                finding = self._analyze_permissions(principal, progress)
                if finding is not None:
                    findings.append(finding)

            if self.config.finding_types & _ACTIVITY_TYPES:
                progress.state = TaskState.EVALUATING
                activity = self._with_retry(principal, lambda: self.activity.inspect(principal))
                for finding_type, detail in activity:
                    finding = self.builder.build(principal, [detail], finding_type)
                    if finding is not None:
                        findings.append(finding)

        except AuthError as e:
            self._record_auth_failure(principal, e)
            return self._skip(principal, progress, SkipReason.ACCESS_DENIED, str(e))
        except PermanentError as e:
            return self._skip(principal, progress, e.reason, str(e))

        self._record_auth_success()
        progress.state = TaskState.BUILT
        logger.debug(f"분석 완료 [{principal.arn}]: Finding {len(findings)}개")
        return PrincipalOutcome(principal=principal, state=TaskState.BUILT, findings=tuple(findings))

    def _analyze_permissions(self, principal: Principal, progress: _TaskProgress) -> Finding | None:
        granted: GrantedPermissions | None = None
        if self.config.resolve_granted_policies:
            granted = self._with_retry(principal, lambda: self.resolver.resolve(principal))

        progress.state = TaskState.REQUESTING
        job = self._with_retry(principal, lambda: self.requester.request(principal))

        progress.state = TaskState.POLLING
        job = self.poller.wait(job, self.cancel_event)
        if job.state is JobState.FAILED:
            raise PermanentError(
                principal.arn,
                job.failure_reason or SkipReason.JOB_FAILED,
                job.error_message or "보고서 작업 실패",
            )

        progress.state = TaskState.EVALUATING
        details = self.evaluator.evaluate(principal, job.records, granted)
        return self.builder.build(principal, details)

    def _with_retry(self, principal: Principal, func: Callable[[], T]) -> T:
        """RetryableError 재시도 (소진 시 PermanentError(Throttled))"""
        retry = self.config.retry

        for attempt in range(retry.max_retries + 1):
            if self.cancel_event.is_set():
                raise PermanentError(principal.arn, SkipReason.CANCELLED, "실행 취소됨")
            try:
                return func()
            except RetryableError as e:
                if attempt >= retry.max_retries:
                    raise PermanentError(
                        principal.arn, SkipReason.THROTTLED, f"재시도 {attempt}회 후 실패: {e}", cause=e
                    ) from e
                delay = retry.get_delay(attempt)
                logger.debug(f"[{principal.arn}] {e.operation} 시도 {attempt + 1} 실패, {delay:.2f}초 후 재시도")
                if not self.clock.sleep(delay, self.cancel_event):
                    raise PermanentError(principal.arn, SkipReason.CANCELLED, "재시도 대기 중 취소됨") from e

        raise PermanentError(principal.arn, SkipReason.THROTTLED, "재시도 횟수 초과")

    def _skip(
        self,
        principal: Principal,
        progress: _TaskProgress,
        reason: SkipReason,
        message: str,
    ) -> PrincipalOutcome:
        failed_at = progress.state
        if reason is SkipReason.CANCELLED:
            logger.debug(f"Principal 취소 [{principal.arn}] ({failed_at.value})")
        else:
            logger.warning(f"Principal 스킵 [{principal.arn}] {reason.value} ({failed_at.value}): {message}")
        skipped = SkippedPrincipal(
            arn=principal.arn,
            principal_type=principal.principal_type,
            reason=reason,
            message=message,
            failed_at=failed_at,
        )
        return PrincipalOutcome(principal=principal, state=TaskState.SKIPPED, skipped=skipped)

    def _unexpected_skip(self, arn: str, message: str) -> SkippedPrincipal:
        principal_type = PrincipalType.ROLE if ":role/" in arn else PrincipalType.USER
        return SkippedPrincipal(arn=arn, principal_type=principal_type, reason=SkipReason.ERROR, message=message)

    # =========================================================================
    # 인증 실패 누적
    # =========================================================================

    def _record_auth_failure(self, principal: Principal, error: AuthError) -> None:
        with self._auth_lock:
            self._auth_failures.add(principal.arn)
            count = len(self._auth_failures)
            if count >= self.config.auth_failure_threshold and self._fatal_error is None:
                self._fatal_error = AuthError(
                    error.operation,
                    f"서로 다른 Principal {count}개에서 연속 인증 실패 - 자격 증명을 확인하세요",
                    error_code=error.error_code,
                    cause=error,
                )
                logger.error(f"반복된 인증 실패로 실행 중단: {error}")
                self.cancel_event.set()

    def _record_auth_success(self) -> None:
        with self._auth_lock:
            self._auth_failures.clear()
