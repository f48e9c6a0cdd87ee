"""
core/config.py - 중앙 설정 관리

프로젝트 전역 기본값과 환경변수 헬퍼를 제공합니다.
실행별 분석 설정(AnalysisConfig)은 여기서 읽은 기본값으로 한 번 생성되며,
전역 가변 상태는 두지 않습니다.

환경변수:
    AWS_REGION / AWS_DEFAULT_REGION: 기본 리전
    UA_MAX_WORKERS: 동시 처리 Principal 수
    UA_JOB_TIMEOUT: Last-accessed 작업 타임아웃 (초)
    UA_POLL_INTERVAL: 작업 상태 폴링 간격 (초)
    UA_LANG: 출력 언어 (ko, en)

Usage:
    from core.config import settings, get_default_region

    region = get_default_region()  # "us-east-1"
    workers = get_env_int("UA_MAX_WORKERS", settings.DEFAULT_MAX_WORKERS)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

__version__ = "0.3.0"


@dataclass(frozen=True)
class Settings:
    """프로젝트 기본 설정 (불변)"""

    # AWS
    DEFAULT_REGION: str = "us-east-1"
    API_CONNECT_TIMEOUT: int = 10
    API_READ_TIMEOUT: int = 30

    # 분석
    DEFAULT_UNUSED_ACCESS_AGE_DAYS: int = 90
    DEFAULT_MAX_WORKERS: int = 10

    # Last-accessed 작업 폴링
    POLL_INTERVAL_SECONDS: float = 3.0
    MAX_POLL_INTERVAL_SECONDS: float = 30.0
    BACKOFF_MULTIPLIER: float = 2.0
    BACKOFF_JITTER_RATIO: float = 0.2
    JOB_TIMEOUT_SECONDS: float = 300.0
    MAX_THROTTLE_RETRIES: int = 8

    # 실행 중단 기준
    AUTH_FAILURE_THRESHOLD: int = 3

    # 출력
    OUTPUT_FILENAME: str = "unused_findings.json"


settings = Settings()


def get_version() -> str:
    """버전 문자열 반환"""
    return __version__


def get_default_region() -> str:
    """기본 리전 반환

    AWS_REGION → AWS_DEFAULT_REGION → Settings.DEFAULT_REGION 순서로 확인합니다.
    """
    return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or settings.DEFAULT_REGION


def get_env_int(name: str, default: int) -> int:
    """환경변수를 int로 변환 (변환 실패 시 기본값)"""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_env_float(name: str, default: float) -> float:
    """환경변수를 float로 변환 (변환 실패 시 기본값)"""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


__all__ = [
    "Settings",
    "settings",
    "get_version",
    "get_default_region",
    "get_env_int",
    "get_env_float",
]
