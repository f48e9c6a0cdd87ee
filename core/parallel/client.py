"""
core/parallel/client.py - boto3 client 생성 헬퍼

Retry(standard 모드) + 타임아웃 + 연결 풀이 설정된 boto3 client를 생성합니다.
SDK 내부 재시도는 짧게 두고, 스로틀링 백오프는 분석기(Poller/Requester)가
직접 제어합니다.

Example:
    from core.parallel.client import get_client

    iam = get_client(session, "iam", max_pool_connections=config.max_workers + 5)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, cast

from botocore.config import Config

from core.config import settings

if TYPE_CHECKING:
    import boto3

RetryMode = Literal["legacy", "standard", "adaptive"]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_MODE: RetryMode = "standard"
DEFAULT_MAX_POOL_CONNECTIONS = 15  # max_workers(10) 이상 권장


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    connect_timeout: int = settings.API_CONNECT_TIMEOUT,
    read_timeout: int = settings.API_READ_TIMEOUT,
    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS,
    **kwargs: Any,
) -> Any:
    """Retry가 적용된 boto3 client 생성

    Args:
        session: boto3 Session
        service_name: AWS 서비스 이름 (iam, sts 등)
        region_name: 리전 (None이면 세션 기본값)
        max_attempts: SDK 최대 시도 횟수 (기본: 3)
        retry_mode: 재시도 모드 ('standard' 또는 'adaptive')
        connect_timeout: 연결 타임아웃 (초)
        read_timeout: 읽기 타임아웃 (초)
        max_pool_connections: HTTP 연결 풀 크기 (max_workers 이상 권장)
        **kwargs: session.client()에 전달할 추가 인자

    Returns:
        boto3 client
    """
    config = Config(
        retries={"max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        max_pool_connections=max_pool_connections,
    )

    # 기존 config가 있으면 병합
    if "config" in kwargs:
        existing = kwargs.pop("config")
        config = config.merge(existing)

    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name,
        config=config,
        **kwargs,
    )
