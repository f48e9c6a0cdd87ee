"""
core/parallel - 병렬 처리 모듈

다수의 Principal 작업을 제한된 동시성으로 안전하게 처리합니다.

주요 구성 요소:
- BoundedParallelExecutor: 백프레셔/취소를 지원하는 병렬 실행기
- TokenBucketRateLimiter: API 쓰로틀링 방지
- wrap_aws_error: botocore 예외 → core.exceptions 변환
- get_client: retry/타임아웃이 설정된 boto3 client

Example:
    from core.parallel import BoundedParallelExecutor, ParallelConfig

    executor = BoundedParallelExecutor(ParallelConfig(max_workers=10), cancel_event)
    result = executor.execute(principals, analyze, key=lambda p: p.arn)

    if result.error_count > 0:
        print(result.get_error_summary())
"""

from .client import get_client
from .decorators import (
    RETRYABLE_ERROR_CODES,
    RetryConfig,
    categorize_error,
    get_error_code,
    is_retryable,
    wrap_aws_error,
)
from .executor import BoundedParallelExecutor, ParallelConfig
from .rate_limiter import (
    RateLimiterConfig,
    TokenBucketRateLimiter,
    get_rate_limiter,
    reset_rate_limiters,
)
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

__all__: list[str] = [
    # Executor
    "BoundedParallelExecutor",
    "ParallelConfig",
    # Client (retry 적용)
    "get_client",
    # Decorators
    "RetryConfig",
    "RETRYABLE_ERROR_CODES",
    "categorize_error",
    "get_error_code",
    "is_retryable",
    "wrap_aws_error",
    # Rate Limiter
    "TokenBucketRateLimiter",
    "RateLimiterConfig",
    "get_rate_limiter",
    "reset_rate_limiters",
    # Types
    "ErrorCategory",
    "TaskError",
    "TaskResult",
    "ParallelExecutionResult",
]
