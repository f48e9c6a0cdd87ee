"""
core/parallel/types.py - 병렬 실행 결과 타입

병렬 실행기(BoundedParallelExecutor)가 반환하는 작업 단위 결과와
에러 분류 타입을 정의합니다.

주요 구성 요소:
- ErrorCategory: AWS API 에러 분류
- TaskError: 실패한 작업의 에러 정보
- TaskResult: 단일 작업 결과 (성공 데이터 또는 에러)
- ParallelExecutionResult: 전체 실행 결과 집계
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """AWS API 에러 분류"""

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    TIMEOUT = "timeout"
    EXPIRED_TOKEN = "expired_token"
    INVALID_REQUEST = "invalid_request"
    SERVICE_ERROR = "service_error"
    UNKNOWN = "unknown"


@dataclass
class TaskError:
    """실패한 작업의 에러 정보

    Attributes:
        identifier: 작업 식별자 (Principal ARN 등)
        category: 에러 카테고리
        error_code: AWS 에러 코드 또는 예외 클래스명
        message: 에러 메시지
        retries: 실패 전 재시도 횟수
        original_exception: 원본 예외 (선택사항)
        timestamp: 에러 발생 시각
    """

    identifier: str
    category: ErrorCategory
    error_code: str
    message: str
    retries: int = 0
    original_exception: BaseException | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"[{self.identifier}] {self.error_code}: {self.message}"


@dataclass
class TaskResult(Generic[T]):
    """단일 작업 결과

    Attributes:
        identifier: 작업 식별자
        success: 성공 여부
        data: 성공 시 반환 데이터
        error: 실패 시 에러 정보
        duration_ms: 실행 시간 (밀리초)
    """

    identifier: str
    success: bool
    data: T | None = None
    error: TaskError | None = None
    duration_ms: float = 0.0

    def __str__(self) -> str:
        status = "OK" if self.success else "FAIL"
        return f"[{self.identifier}] {status} ({self.duration_ms:.0f}ms)"


@dataclass
class ParallelExecutionResult(Generic[T]):
    """전체 병렬 실행 결과

    결과는 완료 순서대로 저장되므로 순서에 의존하지 않아야 합니다.
    """

    results: list[TaskResult[T]] = field(default_factory=list)

    @property
    def successful(self) -> list[TaskResult[T]]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[TaskResult[T]]:
        return [r for r in self.results if not r.success]

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def error_count(self) -> int:
        return len(self.failed)

    def has_any_failure(self) -> bool:
        return self.error_count > 0

    def get_errors(self) -> list[TaskError]:
        return [r.error for r in self.results if r.error is not None]

    def get_errors_by_category(self) -> dict[ErrorCategory, list[TaskError]]:
        """카테고리별 에러 그룹화"""
        grouped: dict[ErrorCategory, list[TaskError]] = defaultdict(list)
        for error in self.get_errors():
            grouped[error.category].append(error)
        return dict(grouped)

    def get_error_summary(self) -> str:
        """에러 요약 문자열"""
        errors = self.get_errors()
        if not errors:
            return ""

        lines = [f"총 {len(errors)}개 작업 실패"]
        for category, items in sorted(self.get_errors_by_category().items(), key=lambda kv: kv[0].value):
            lines.append(f"  [{category.value}] {len(items)}건")
            for item in items[:5]:
                lines.append(f"    - {item.identifier}: {item.error_code}")
            if len(items) > 5:
                lines.append(f"    ... 외 {len(items) - 5}건")
        return "\n".join(lines)
