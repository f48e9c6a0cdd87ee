# core/auth/types/types.py
"""
core/auth/types/types.py - AWS 인증 모듈의 핵심 타입 정의

포함 항목:
    - ProviderType: 자격 증명 출처 (STATIC_CREDENTIALS, DEFAULT_CHAIN)
    - CallerIdentity: STS GetCallerIdentity 결과
    - Provider: 인증 Provider가 구현해야 하는 추상 기본 클래스 (ABC)

에러는 core.exceptions의 ConfigError / AuthError를 사용합니다.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import boto3


# =============================================================================
# Provider Type Enum
# =============================================================================


class ProviderType(Enum):
    """자격 증명 출처

    - StaticCredentials: CLI 인자로 전달된 Access Key / Secret Key
    - DefaultChain: boto3 기본 자격 증명 체인 (환경변수, 프로파일, 인스턴스 역할 등)
    """

    STATIC_CREDENTIALS = "static-credentials"
    DEFAULT_CHAIN = "default-chain"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Caller Identity
# =============================================================================


@dataclass(frozen=True)
class CallerIdentity:
    """STS GetCallerIdentity 결과

    Attributes:
        account_id: AWS 계정 ID (12자리)
        arn: 호출자 ARN
        user_id: 호출자 고유 ID
    """

    account_id: str
    arn: str
    user_id: str = ""

    @property
    def display_name(self) -> str:
        """ARN에서 사람이 읽기 쉬운 이름 추출

        Example:
            arn:aws:iam::111111111111:user/alice → "user-alice"
            arn:aws:sts::111111111111:assumed-role/Admin/session → "assumed-Admin"
        """
        resource = self.arn.split(":", 5)[-1] if self.arn.count(":") >= 5 else ""
        if resource.startswith("user/"):
            return f"user-{resource.rsplit('/', 1)[-1]}"
        if resource.startswith("role/"):
            return f"role-{resource.rsplit('/', 1)[-1]}"
        if resource.startswith("assumed-role/"):
            parts = resource.split("/")
            if len(parts) >= 2:
                return f"assumed-{parts[1]}"
        return "unknown"


# =============================================================================
# Provider Interface (Abstract Base Class)
# =============================================================================


class Provider(ABC):
    """인증 Provider 인터페이스

    authenticate()로 자격 증명을 검증한 뒤 get_session()으로 boto3 Session을 얻습니다.
    """

    @abstractmethod
    def type(self) -> ProviderType:
        """Provider 타입 반환"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider 표시 이름"""

    @abstractmethod
    def authenticate(self) -> CallerIdentity:
        """자격 증명 검증

        Raises:
            ConfigError: 자격 증명을 찾을 수 없음
            AuthError: 자격 증명이 유효하지 않거나 만료됨
        """

    @abstractmethod
    def is_authenticated(self) -> bool:
        """인증 완료 여부"""

    @abstractmethod
    def get_session(self) -> boto3.Session:
        """인증된 boto3 Session 반환"""

    @abstractmethod
    def get_default_region(self) -> str:
        """기본 리전 반환"""
