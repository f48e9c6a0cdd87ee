"""
core/exceptions.py - 통합 예외 계층 구조

애플리케이션 전체에서 사용되는 예외 클래스들을 정의합니다.
실행 전체를 중단하는 시스템 오류와, 단일 Principal 작업에 한정되는
작업 오류를 구분합니다.

예외 계층 구조:
    AnalyzerError (베이스)
    ├── ConfigError (설정/자격 증명 누락) - 치명적, API 호출 전 중단
    ├── EnumerationError (Principal 목록 조회 실패) - 치명적
    ├── AuthError (자격 증명/권한 오류) - 반복 시 치명적
    └── TaskFailure (Principal 단위 작업 오류)
        ├── RetryableError (스로틀링, 일시적 네트워크 오류)
        └── PermanentError (Principal 삭제, 잘못된 보고서, 타임아웃) - 해당 Principal만 스킵

Usage:
    from core.exceptions import PermanentError, SkipReason

    if not job_id:
        raise PermanentError(arn, SkipReason.MALFORMED_REPORT, "JobId 없음")
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class AnalyzerError(Exception):
    """Unused Access Analyzer 기본 예외 클래스

    모든 커스텀 예외의 베이스 클래스입니다.

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


# =============================================================================
# 치명적 예외 (실행 전체 중단)
# =============================================================================


class ConfigError(AnalyzerError):
    """설정 관련 예외 (자격 증명, 리전, 잘못된 옵션 값)"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


class EnumerationError(AnalyzerError):
    """Principal 목록 조회 실패

    부분 결과를 신뢰할 수 없으므로 실행 전체를 중단합니다.
    """

    def __init__(
        self,
        principal_type: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"Principal 조회 실패 [{principal_type}]: {message}"
        super().__init__(full_message, cause)
        self.principal_type = principal_type
        self.details["principal_type"] = principal_type


class AuthError(AnalyzerError):
    """자격 증명 또는 권한 오류

    단일 Principal에서 발생하면 해당 작업만 스킵되지만,
    서로 다른 Principal에서 반복되면 Orchestrator가 실행을 중단합니다.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        identifier: Optional[str] = None,
        error_code: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        full_message = f"인증 오류 [{operation}]: {message}"
        super().__init__(full_message, cause)
        self.operation = operation
        self.identifier = identifier
        self.error_code = error_code
        self.details.update(
            {
                "operation": operation,
                "identifier": identifier,
                "error_code": error_code,
            }
        )


# =============================================================================
# Principal 작업 예외
# =============================================================================


class SkipReason(Enum):
    """Principal 작업이 스킵된 사유"""

    THROTTLED = "Throttled"  # 재시도 소진
    TIMEOUT = "Timeout"  # 작업이 제한 시간 내 완료되지 않음
    NOT_FOUND = "NotFound"  # 실행 중 Principal 삭제
    JOB_FAILED = "JobFailed"  # 원격 작업이 FAILED 상태로 종료
    MALFORMED_REPORT = "MalformedReport"  # 응답에 필수 필드 누락
    ACCESS_DENIED = "AccessDenied"  # 단일 Principal에 대한 권한 부족
    CANCELLED = "Cancelled"  # 실행 취소
    ERROR = "Error"  # 분류되지 않은 영구 오류

    def __str__(self) -> str:
        return self.value


class TaskFailure(AnalyzerError):
    """Principal 단위 작업 오류 베이스"""

    def __init__(
        self,
        identifier: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause)
        self.identifier = identifier
        self.details["identifier"] = identifier


class RetryableError(TaskFailure):
    """재시도 가능한 오류 (스로틀링, 일시적 네트워크 장애)

    Attributes:
        operation: 실패한 API 작업 이름
        error_code: AWS 에러 코드 또는 예외 클래스명
    """

    def __init__(
        self,
        operation: str,
        identifier: str,
        message: str,
        error_code: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(identifier, f"{operation} 재시도 필요: {message}", cause)
        self.operation = operation
        self.error_code = error_code
        self.details.update({"operation": operation, "error_code": error_code})


class PermanentError(TaskFailure):
    """영구 오류 - 해당 Principal은 스킵되고 실행은 계속됩니다.

    Attributes:
        reason: 스킵 사유
    """

    def __init__(
        self,
        identifier: str,
        reason: SkipReason,
        message: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(identifier, f"[{reason.value}] {message}", cause)
        self.reason = reason
        self.details["reason"] = reason.value


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================

ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedAccess",
    "UnauthorizedOperation",
}

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
}

NOT_FOUND_CODES = {
    "NoSuchEntity",
    "NoSuchEntityException",
    "ResourceNotFoundException",
    "NotFoundException",
}

CREDENTIAL_ERROR_CODES = {
    "InvalidClientTokenId",
    "UnrecognizedClientException",
    "SignatureDoesNotMatch",
    "IncompleteSignature",
    "ExpiredToken",
    "ExpiredTokenException",
    "AuthFailure",
}


def _error_code(error: Exception) -> str:
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {}).get("Code", "")
    return ""


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인"""
    return _error_code(error) in ACCESS_DENIED_CODES


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인"""
    return _error_code(error) in THROTTLING_CODES


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인"""
    return _error_code(error) in NOT_FOUND_CODES


def is_credential_error(error: Exception) -> bool:
    """자격 증명 자체가 잘못되었거나 만료된 오류인지 확인"""
    return _error_code(error) in CREDENTIAL_ERROR_CODES

