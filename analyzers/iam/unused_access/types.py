"""
analyzers/iam/unused_access/types.py - 미사용 액세스 분석 데이터 모델

Principal, Last-accessed 작업, 서비스/액션 접근 기록, Finding 및
실행 설정/결과 타입을 정의합니다.

Finding 직렬화 형식 (unused_findings.json 배열 항목):
    {
      "resource": "arn:aws:iam::123456789012:role/TestRole",
      "resource_type": "AwsIamRole",
      "resource_owner_account": "123456789012",
      "id": "<uuid4>",
      "finding_details": [
        {"UnusedPermissionDetails": {"actions": null, "service_namespace": "s3",
                                     "last_accessed": "2024-02-29T12:37:10Z"}}
      ],
      "finding_type": "UnusedPermission"
    }
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, ClassVar, Union

from core.config import settings
from core.exceptions import ConfigError, SkipReason
from core.parallel.decorators import RetryConfig
from core.tools.time.clock import Clock, SystemClock
from core.tools.time.utils import ensure_utc, to_iso8601

# =============================================================================
# 열거형
# =============================================================================


class ResourceType(Enum):
    """Finding 대상 리소스 타입"""

    AWS_IAM_USER = "AwsIamUser"
    AWS_IAM_ROLE = "AwsIamRole"


class PrincipalType(Enum):
    """IAM Principal 종류"""

    USER = "User"
    ROLE = "Role"

    @property
    def resource_type(self) -> ResourceType:
        if self is PrincipalType.USER:
            return ResourceType.AWS_IAM_USER
        return ResourceType.AWS_IAM_ROLE


class FindingType(Enum):
    """Finding 종류"""

    UNUSED_PERMISSION = "UnusedPermission"
    UNUSED_IAM_ROLE = "UnusedIamRole"
    UNUSED_IAM_USER_PASSWORD = "UnusedIamUserPassword"
    UNUSED_IAM_USER_ACCESS_KEY = "UnusedIamUserAccessKey"

    @classmethod
    def from_value(cls, value: str) -> FindingType:
        """문자열(대소문자 무시)을 FindingType으로 변환

        Raises:
            ConfigError: 알 수 없는 값
        """
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        valid = ", ".join(m.value for m in cls)
        raise ConfigError("finding_type", f"알 수 없는 Finding 타입: {value} (허용: {valid})")


class Granularity(Enum):
    """Last-accessed 보고서 세분도 (GenerateServiceLastAccessedDetails Granularity)"""

    SERVICE_LEVEL = "SERVICE_LEVEL"
    ACTION_LEVEL = "ACTION_LEVEL"


class JobState(Enum):
    """Last-accessed 작업 상태

    Requested → InProgress → Completed | Failed
    """

    REQUESTED = "Requested"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"


class TaskState(Enum):
    """Principal 작업 상태

    Pending → Requesting → Polling → Evaluating → Built | Skipped
    """

    PENDING = "Pending"
    REQUESTING = "Requesting"
    POLLING = "Polling"
    EVALUATING = "Evaluating"
    BUILT = "Built"
    SKIPPED = "Skipped"


class RunStatus(Enum):
    """전체 실행 종료 상태"""

    SUCCESS = "Success"
    CANCELLED = "Cancelled"


# =============================================================================
# Principal / 보고서
# =============================================================================


@dataclass(frozen=True)
class Principal:
    """분석 대상 IAM 사용자 또는 역할

    Attributes:
        arn: Principal ARN
        name: 사용자/역할 이름
        principal_type: User | Role
        account_id: 소유 계정 ID
        path: IAM 경로 (서비스 연결 역할 판별용)
        create_date: 생성 시각
        password_last_used: 콘솔 비밀번호 마지막 사용 시각 (사용자만)
    """

    arn: str
    name: str
    principal_type: PrincipalType
    account_id: str
    path: str = "/"
    create_date: datetime | None = None
    password_last_used: datetime | None = None

    @property
    def resource_type(self) -> ResourceType:
        return self.principal_type.resource_type

    @property
    def is_service_linked(self) -> bool:
        return self.principal_type is PrincipalType.ROLE and self.path.startswith("/aws-service-role/")


@dataclass(frozen=True)
class ActionAccessRecord:
    """액션 단위 마지막 접근 기록 (last_accessed None = 접근 이력 없음)"""

    action_name: str
    last_accessed: datetime | None = None


@dataclass(frozen=True)
class ServiceAccessRecord:
    """서비스 단위 마지막 접근 기록

    Attributes:
        service_namespace: 서비스 네임스페이스 (예: "s3")
        last_accessed: 마지막 인증 시각 (None = 접근 이력 없음)
        actions: 액션 단위 기록 (ACTION_LEVEL 보고서에서 추적되는 서비스만)
        service_name: 서비스 표시 이름
    """

    service_namespace: str
    last_accessed: datetime | None = None
    actions: tuple[ActionAccessRecord, ...] | None = None
    service_name: str = ""


@dataclass
class AccessReportJob:
    """Last-accessed 보고서 생성 작업

    Requester가 생성하고 Poller만 상태를 변경합니다.
    requested_at/completed_at은 Clock.monotonic() 기준 초입니다.
    """

    principal: Principal
    job_id: str
    state: JobState = JobState.REQUESTED
    requested_at: float = 0.0
    completed_at: float | None = None
    records: tuple[ServiceAccessRecord, ...] = ()
    failure_reason: SkipReason | None = None
    error_message: str = ""
    poll_count: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)


# =============================================================================
# Finding
# =============================================================================


@dataclass(frozen=True)
class UnusedPermissionDetails:
    """미사용 권한 상세

    actions가 None이면 서비스 전체가 미사용입니다.
    """

    KEY: ClassVar[str] = "UnusedPermissionDetails"

    service_namespace: str
    actions: tuple[str, ...] | None = None
    last_accessed: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "actions": list(self.actions) if self.actions is not None else None,
            "service_namespace": self.service_namespace,
            "last_accessed": to_iso8601(self.last_accessed),
        }

    @property
    def sort_key(self) -> str:
        return self.service_namespace


@dataclass(frozen=True)
class UnusedIamRoleDetails:
    KEY: ClassVar[str] = "UnusedIamRoleDetails"

    last_accessed: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"last_accessed": to_iso8601(self.last_accessed)}

    @property
    def sort_key(self) -> str:
        return ""


@dataclass(frozen=True)
class UnusedIamUserPasswordDetails:
    KEY: ClassVar[str] = "UnusedIamUserPasswordDetails"

    last_accessed: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"last_accessed": to_iso8601(self.last_accessed)}

    @property
    def sort_key(self) -> str:
        return ""


@dataclass(frozen=True)
class UnusedIamUserAccessKeyDetails:
    KEY: ClassVar[str] = "UnusedIamUserAccessKeyDetails"

    access_key_id: str
    last_accessed: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_accessed": to_iso8601(self.last_accessed),
            "access_key_id": self.access_key_id,
        }

    @property
    def sort_key(self) -> str:
        return self.access_key_id


FindingDetail = Union[
    UnusedPermissionDetails,
    UnusedIamRoleDetails,
    UnusedIamUserPasswordDetails,
    UnusedIamUserAccessKeyDetails,
]


@dataclass(frozen=True)
class Finding:
    """Principal 하나의 미사용 액세스 Finding (불변)"""

    resource: str
    resource_type: ResourceType
    resource_owner_account: str
    id: str
    finding_type: FindingType
    finding_details: tuple[FindingDetail, ...]

    @property
    def sort_key(self) -> tuple[str, str, str]:
        first = self.finding_details[0].sort_key if self.finding_details else ""
        return (self.resource, self.finding_type.value, first)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource": self.resource,
            "resource_type": self.resource_type.value,
            "resource_owner_account": self.resource_owner_account,
            "id": self.id,
            "finding_details": [{detail.KEY: detail.to_dict()} for detail in self.finding_details],
            "finding_type": self.finding_type.value,
        }


# =============================================================================
# 설정
# =============================================================================


@dataclass(frozen=True)
class PollerConfig:
    """Last-accessed 작업 폴링 설정

    Attributes:
        poll_interval: 기본 폴링 간격 (초)
        max_poll_interval: 스로틀링 백오프 상한 (초)
        backoff_multiplier: 스로틀링 시 간격 배수
        jitter_ratio: 백오프 간격에 더하는 지터 비율 (0 이상 1 미만)
        job_timeout: 작업 요청 후 최대 대기 시간 (초)
        max_throttle_retries: 작업당 스로틀링 허용 횟수
    """

    poll_interval: float = settings.POLL_INTERVAL_SECONDS
    max_poll_interval: float = settings.MAX_POLL_INTERVAL_SECONDS
    backoff_multiplier: float = settings.BACKOFF_MULTIPLIER
    jitter_ratio: float = settings.BACKOFF_JITTER_RATIO
    job_timeout: float = settings.JOB_TIMEOUT_SECONDS
    max_throttle_retries: int = settings.MAX_THROTTLE_RETRIES

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ConfigError("poll_interval", f"0보다 커야 합니다: {self.poll_interval}")
        if self.max_poll_interval < self.poll_interval:
            raise ConfigError("max_poll_interval", "poll_interval 이상이어야 합니다")
        if not 0 <= self.jitter_ratio < 1:
            raise ConfigError("jitter_ratio", f"0 이상 1 미만이어야 합니다: {self.jitter_ratio}")
        # 지터를 더해도 연속 백오프 간격이 단조 증가하는 조건
        if self.backoff_multiplier <= 1 + self.jitter_ratio:
            raise ConfigError("backoff_multiplier", "1 + jitter_ratio보다 커야 합니다")
        if self.job_timeout <= 0:
            raise ConfigError("job_timeout", f"0보다 커야 합니다: {self.job_timeout}")
        if self.max_throttle_retries < 0:
            raise ConfigError("max_throttle_retries", "0 이상이어야 합니다")


@dataclass(frozen=True)
class AnalysisConfig:
    """실행 단위 분석 설정 (불변)

    now는 실행 시작 시 한 번만 캡처되며 모든 비교에 동일하게 사용됩니다.
    AnalysisConfig.create()로 생성하세요.
    """

    region: str
    unused_access_age: timedelta
    now: datetime
    owner_account: str = ""
    granularity: Granularity = Granularity.SERVICE_LEVEL
    max_workers: int = settings.DEFAULT_MAX_WORKERS
    finding_types: frozenset[FindingType] = frozenset({FindingType.UNUSED_PERMISSION})
    skip_recently_created: bool = False
    exclude_service_linked_roles: bool = False
    resolve_granted_policies: bool = True
    auth_failure_threshold: int = settings.AUTH_FAILURE_THRESHOLD
    poller: PollerConfig = field(default_factory=PollerConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    @classmethod
    def create(
        cls,
        region: str,
        unused_access_age_days: int = settings.DEFAULT_UNUSED_ACCESS_AGE_DAYS,
        *,
        now: datetime | None = None,
        clock: Clock | None = None,
        finding_types: set[FindingType] | frozenset[FindingType] | None = None,
        **kwargs: Any,
    ) -> AnalysisConfig:
        """설정 생성 및 검증

        Args:
            region: AWS 리전
            unused_access_age_days: 미사용 판단 기준 일수
            now: 기준 시각 (None이면 clock의 현재 UTC 시각)
            clock: 기준 시각을 읽을 시계 (None이면 SystemClock)
            finding_types: 생성할 Finding 종류 (None이면 UnusedPermission만)
            **kwargs: 나머지 필드

        Raises:
            ConfigError: 잘못된 값
        """
        if not region:
            raise ConfigError("region", "리전이 비어 있습니다")
        if unused_access_age_days < 0:
            raise ConfigError("unused_access_age", f"0 이상이어야 합니다: {unused_access_age_days}")

        max_workers = kwargs.get("max_workers", settings.DEFAULT_MAX_WORKERS)
        if not 1 <= max_workers <= 100:
            raise ConfigError("max_workers", f"1~100 범위여야 합니다: {max_workers}")

        threshold = kwargs.get("auth_failure_threshold", settings.AUTH_FAILURE_THRESHOLD)
        if threshold < 1:
            raise ConfigError("auth_failure_threshold", "1 이상이어야 합니다")

        types = frozenset(finding_types) if finding_types is not None else frozenset({FindingType.UNUSED_PERMISSION})
        if not types:
            raise ConfigError("finding_type", "최소 하나의 Finding 타입이 필요합니다")

        return cls(
            region=region,
            unused_access_age=timedelta(days=unused_access_age_days),
            now=ensure_utc(now) if now is not None else (clock or SystemClock()).now_utc(),
            finding_types=types,
            **kwargs,
        )

    def wants(self, finding_type: FindingType) -> bool:
        return finding_type in self.finding_types


# =============================================================================
# 실행 결과
# =============================================================================


@dataclass(frozen=True)
class SkippedPrincipal:
    """스킵된 Principal과 사유"""

    arn: str
    principal_type: PrincipalType
    reason: SkipReason
    message: str = ""
    failed_at: TaskState = TaskState.PENDING


@dataclass(frozen=True)
class PrincipalOutcome:
    """Principal 작업 하나의 최종 결과"""

    principal: Principal
    state: TaskState
    findings: tuple[Finding, ...] = ()
    skipped: SkippedPrincipal | None = None


@dataclass
class AnalysisResult:
    """전체 분석 결과

    Attributes:
        findings: resource ARN → finding_type 순으로 정렬된 Finding
        skipped: 스킵된 Principal 목록 (ARN 순)
        analyzed_count: 분석이 완료된 Principal 수
        filtered_count: 필터(최근 생성, 서비스 연결 역할)로 제외된 Principal 수
        status: Success | Cancelled
        duration_seconds: 소요 시간
    """

    findings: list[Finding] = field(default_factory=list)
    skipped: list[SkippedPrincipal] = field(default_factory=list)
    analyzed_count: int = 0
    filtered_count: int = 0
    status: RunStatus = RunStatus.SUCCESS
    duration_seconds: float = 0.0

    @property
    def is_cancelled(self) -> bool:
        return self.status is RunStatus.CANCELLED

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def summary_by_reason(self) -> dict[SkipReason, int]:
        """스킵 사유별 건수"""
        return dict(Counter(s.reason for s in self.skipped))
