"""
core/parallel/decorators.py - AWS API 에러 분류 및 재시도 유틸리티

AWS API 호출의 에러 분류, 재시도 가능 여부 판단,
지수 백오프 재시도 설정을 제공합니다.

주요 구성 요소:
- RetryConfig: 재시도 설정 (지수 백오프 + 지터)
- categorize_error: 예외를 ErrorCategory로 분류
- get_error_code: 예외에서 에러 코드 추출
- is_retryable: 재시도 가능 여부 판단
- wrap_aws_error: botocore 예외를 core.exceptions 계층으로 변환
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from core.exceptions import (
    AnalyzerError,
    AuthError,
    PermanentError,
    RetryableError,
    SkipReason,
    is_access_denied,
    is_credential_error,
    is_not_found,
    is_throttling,
)

from .types import ErrorCategory

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """재시도 설정

    Attributes:
        max_retries: 최대 재시도 횟수 (0이면 재시도 안함)
        base_delay: 기본 대기 시간 (초)
        max_delay: 최대 대기 시간 (초)
        exponential_base: 지수 백오프 밑수
        jitter: 지터 사용 여부 (대기 시간에 랜덤성 추가)
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def get_delay(self, attempt: int) -> float:
        """재시도 대기 시간 계산

        Exponential backoff with optional jitter.

        Args:
            attempt: 현재 시도 횟수 (0부터 시작)

        Returns:
            대기 시간 (초)
        """
        delay = self.base_delay * (self.exponential_base**attempt)
        delay = min(delay, self.max_delay)

        if self.jitter:
            # Full jitter: [0, delay]
            delay = random.uniform(0, delay)

        return delay


# 재시도 가능한 AWS 에러 코드
RETRYABLE_ERROR_CODES: set[str] = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
    "ServiceUnavailable",
    "ServiceUnavailableException",
    "ServiceFailure",
    "InternalError",
    "InternalServiceError",
    "RequestTimeout",
    "RequestTimeoutException",
}


def categorize_error(error: Exception) -> ErrorCategory:
    """예외 객체를 분석하여 ErrorCategory로 분류

    ClientError의 경우 response에서 에러 코드를 추출하고,
    네트워크/타임아웃 에러는 타입으로 분류합니다.

    Args:
        error: 분류할 예외

    Returns:
        에러 카테고리
    """
    if is_throttling(error):
        return ErrorCategory.THROTTLING
    if is_access_denied(error):
        return ErrorCategory.ACCESS_DENIED
    if is_not_found(error):
        return ErrorCategory.NOT_FOUND

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_code = response.get("Error", {}).get("Code", "")

        if error_code in ("ExpiredToken", "ExpiredTokenException"):
            return ErrorCategory.EXPIRED_TOKEN
        if is_credential_error(error):
            return ErrorCategory.INVALID_CREDENTIALS
        if "Timeout" in error_code:
            return ErrorCategory.TIMEOUT
        if error_code in RETRYABLE_ERROR_CODES:
            return ErrorCategory.SERVICE_ERROR
        if error_code in ("InvalidInput", "ValidationError", "MalformedPolicyDocument"):
            return ErrorCategory.INVALID_REQUEST

    if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
        return ErrorCategory.INVALID_CREDENTIALS
    if isinstance(error, ReadTimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, (EndpointConnectionError, BotoConnectionError, ConnectionError, TimeoutError)):
        return ErrorCategory.NETWORK

    return ErrorCategory.UNKNOWN


def get_error_code(error: Exception) -> str:
    """예외 객체에서 에러 코드 문자열 추출

    ClientError의 경우 response에서 Code를 추출하고,
    그 외에는 예외 클래스명을 반환합니다.
    """
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        code: str = response.get("Error", {}).get("Code", "Unknown")
        return code
    error_code = getattr(error, "error_code", None)
    if isinstance(error_code, str) and error_code:
        return error_code
    return error.__class__.__name__


def is_retryable(error: Exception) -> bool:
    """재시도 가능한 에러인지 확인

    RETRYABLE_ERROR_CODES에 포함된 에러 코드이거나
    네트워크/타임아웃 에러인 경우 True를 반환합니다.
    """
    if isinstance(error, RetryableError):
        return True
    if isinstance(error, AnalyzerError):
        return False

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_code = response.get("Error", {}).get("Code", "")
        return error_code in RETRYABLE_ERROR_CODES

    return categorize_error(error) in (ErrorCategory.NETWORK, ErrorCategory.TIMEOUT)


def wrap_aws_error(error: Exception, operation: str, identifier: str) -> AnalyzerError:
    """botocore 예외를 core.exceptions 계층으로 변환

    - 스로틀링/네트워크/5xx → RetryableError
    - 자격 증명 오류/권한 거부 → AuthError
    - NoSuchEntity → PermanentError(NOT_FOUND)
    - 그 외 → PermanentError(ERROR)

    Args:
        error: ClientError 또는 BotoCoreError
        operation: API 작업 이름 (예: "generate_service_last_accessed_details")
        identifier: 관련 Principal ARN 또는 작업 식별자

    Returns:
        변환된 예외 (호출자가 raise ... from error)
    """
    if isinstance(error, AnalyzerError):
        return error

    code = get_error_code(error)
    category = categorize_error(error)

    if is_retryable(error):
        return RetryableError(operation, identifier, str(error), error_code=code, cause=error)

    if category in (ErrorCategory.ACCESS_DENIED, ErrorCategory.INVALID_CREDENTIALS, ErrorCategory.EXPIRED_TOKEN):
        return AuthError(operation, str(error), identifier=identifier, error_code=code, cause=error)

    if category == ErrorCategory.NOT_FOUND:
        return PermanentError(identifier, SkipReason.NOT_FOUND, f"{operation}: {code}", cause=error)

    if isinstance(error, (ClientError, BotoCoreError)):
        logger.debug(f"분류되지 않은 AWS 오류 [{operation}] {identifier}: {code}")

    return PermanentError(identifier, SkipReason.ERROR, f"{operation}: {code}", cause=error)
