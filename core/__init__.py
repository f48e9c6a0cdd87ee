# core/__init__.py
"""
core - IAM Unused Access Analyzer 인프라

분석 엔진(analyzers/)과 CLI(cli/)가 공유하는 인프라 패키지입니다.

아키텍처:
    core/
    ├── auth/           # AWS 자격 증명 확인 (STS GetCallerIdentity)
    ├── parallel/       # 병렬 처리 (executor, rate limiter, retry, client)
    ├── tools/          # 시간/시계, 파일 I/O 유틸리티
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import settings, get_default_region
    region = get_default_region()  # "us-east-1"

    # 예외 처리
    from core.exceptions import PermanentError, SkipReason, is_access_denied
    try:
        iam.get_role(RoleName=name)
    except ClientError as e:
        if is_access_denied(e):
            print("권한이 없습니다")

    # 인증
    from core.auth import StaticCredentialsConfig, StaticCredentialsProvider
    provider = StaticCredentialsProvider(StaticCredentialsConfig.from_cli(None, None))
    identity = provider.authenticate()
"""

from core import auth, config, exceptions, parallel, tools

__all__: list[str] = [
    # 서브패키지
    "auth",
    "tools",
    "parallel",
    # 모듈
    "config",
    "exceptions",
]
