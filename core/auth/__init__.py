# core/auth/__init__.py
"""
AWS 인증 모듈 (core/auth)

자격 증명 우선순위:
    1. CLI 인자 (-a/--access-key, -s/--secret-key) - 둘 다 지정해야 함
    2. boto3 기본 자격 증명 체인 (AWS_ACCESS_KEY_ID 등 환경변수, 공유 설정 파일)

리전 우선순위:
    1. CLI 인자 (-r/--region)
    2. AWS_REGION → AWS_DEFAULT_REGION
    3. us-east-1

사용 예시:
    from core.auth import StaticCredentialsConfig, StaticCredentialsProvider

    provider = StaticCredentialsProvider(StaticCredentialsConfig.from_cli(ak, sk, region))
    identity = provider.authenticate()  # STS GetCallerIdentity
    session = provider.get_session()

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    "ProviderType",
    "Provider",
    "CallerIdentity",
    "StaticCredentialsProvider",
    "StaticCredentialsConfig",
]

_IMPORT_MAPPING = {
    "ProviderType": (".types", "ProviderType"),
    "Provider": (".types", "Provider"),
    "CallerIdentity": (".types", "CallerIdentity"),
    "StaticCredentialsProvider": (".provider", "StaticCredentialsProvider"),
    "StaticCredentialsConfig": (".provider", "StaticCredentialsConfig"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        import importlib

        module_name, attr_name = _IMPORT_MAPPING[name]
        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
