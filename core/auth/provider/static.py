"""
core/auth/provider/static.py - 정적/기본 체인 자격 증명 Provider

CLI 인자로 받은 Access Key / Secret Key가 있으면 그것으로 세션을 만들고,
없으면 boto3 기본 자격 증명 체인(환경변수, 공유 설정 파일 등)을 사용합니다.
authenticate()는 STS GetCallerIdentity로 자격 증명을 검증하고 계정 ID를 얻습니다.

Usage:
    config = StaticCredentialsConfig.from_cli(access_key, secret_key, region)
    provider = StaticCredentialsProvider(config)
    identity = provider.authenticate()
    session = provider.get_session()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, PartialCredentialsError

from core.config import get_default_region
from core.exceptions import AuthError, ConfigError
from core.parallel.client import get_client

from ..types import CallerIdentity, Provider, ProviderType

logger = logging.getLogger(__name__)

_EXPIRED_CODES = {"ExpiredToken", "ExpiredTokenException", "RequestExpired"}
_INVALID_CODES = {"InvalidClientTokenId", "SignatureDoesNotMatch", "UnrecognizedClientException", "AuthFailure"}


@dataclass
class StaticCredentialsConfig:
    """자격 증명 설정

    Attributes:
        access_key_id: AWS Access Key ID (없으면 기본 체인 사용)
        secret_access_key: AWS Secret Access Key
        session_token: 임시 자격 증명 세션 토큰 (선택)
        region: 리전 (없으면 환경변수 → us-east-1)
    """

    access_key_id: str | None = None
    secret_access_key: str | None = field(default=None, repr=False)
    session_token: str | None = field(default=None, repr=False)
    region: str = field(default_factory=get_default_region)

    def __post_init__(self) -> None:
        if bool(self.access_key_id) != bool(self.secret_access_key):
            missing = "secret_access_key" if self.access_key_id else "access_key_id"
            raise ConfigError(missing, "Access Key와 Secret Key는 함께 지정해야 합니다")
        if not self.region:
            raise ConfigError("region", "리전이 비어 있습니다")

    @classmethod
    def from_cli(
        cls,
        access_key: str | None,
        secret_key: str | None,
        region: str | None = None,
    ) -> StaticCredentialsConfig:
        """CLI 인자로 설정 생성 (리전 미지정 시 환경변수/기본값)"""
        return cls(
            access_key_id=access_key or None,
            secret_access_key=secret_key or None,
            region=region or get_default_region(),
        )

    @property
    def uses_explicit_keys(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    @property
    def name(self) -> str:
        return "static-credentials" if self.uses_explicit_keys else "default-chain"


class StaticCredentialsProvider(Provider):
    """정적 자격 증명 / 기본 체인 Provider"""

    def __init__(self, config: StaticCredentialsConfig):
        self.config = config
        self._name = config.name
        self._default_region = config.region
        self._session: boto3.Session | None = None
        self._identity: CallerIdentity | None = None
        self._authenticated = False

    def type(self) -> ProviderType:
        if self.config.uses_explicit_keys:
            return ProviderType.STATIC_CREDENTIALS
        return ProviderType.DEFAULT_CHAIN

    @property
    def name(self) -> str:
        return self._name

    @property
    def identity(self) -> CallerIdentity | None:
        return self._identity

    def _create_session(self) -> boto3.Session:
        if self.config.uses_explicit_keys:
            return boto3.Session(
                aws_access_key_id=self.config.access_key_id,
                aws_secret_access_key=self.config.secret_access_key,
                aws_session_token=self.config.session_token,
                region_name=self._default_region,
            )
        return boto3.Session(region_name=self._default_region)

    def authenticate(self) -> CallerIdentity:
        """STS GetCallerIdentity로 자격 증명 검증

        Raises:
            ConfigError: 자격 증명을 찾을 수 없음
            AuthError: 자격 증명이 유효하지 않거나 만료, 또는 STS 호출 실패
        """
        session = self._create_session()

        try:
            sts = get_client(session, "sts", region_name=self._default_region)
            response = sts.get_caller_identity()
        except (NoCredentialsError, PartialCredentialsError) as e:
            raise ConfigError("credentials", "AWS 자격 증명을 찾을 수 없습니다", cause=e) from e
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            if code in _EXPIRED_CODES:
                message = "임시 자격증명이 만료되었습니다"
            elif code in _INVALID_CODES:
                message = "유효하지 않은 AWS 자격증명입니다"
            else:
                message = f"자격 증명 확인 실패 ({code})"
            raise AuthError("GetCallerIdentity", message, error_code=code, cause=e) from e
        except BotoCoreError as e:
            raise AuthError("GetCallerIdentity", "STS 호출 실패", cause=e) from e

        self._identity = CallerIdentity(
            account_id=response["Account"],
            arn=response.get("Arn", ""),
            user_id=response.get("UserId", ""),
        )
        self._session = session
        self._authenticated = True
        logger.debug(f"인증 완료 [{self._name}]: {self._identity.display_name} ({self._identity.account_id})")
        return self._identity

    def is_authenticated(self) -> bool:
        return self._authenticated

    def get_session(self) -> boto3.Session:
        if not self.is_authenticated() or self._session is None:
            raise AuthError("get_session", "인증이 필요합니다")
        return self._session

    def get_default_region(self) -> str:
        return self._default_region
