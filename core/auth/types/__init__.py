# core/auth/types/__init__.py
"""
AWS 인증 모듈의 공통 타입 및 인터페이스 정의

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = [
    "ProviderType",
    "Provider",
    "CallerIdentity",
]

_IMPORT_MAPPING = {
    "ProviderType": (".types", "ProviderType"),
    "Provider": (".types", "Provider"),
    "CallerIdentity": (".types", "CallerIdentity"),
}


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in _IMPORT_MAPPING:
        import importlib

        module_name, attr_name = _IMPORT_MAPPING[name]
        module = importlib.import_module(module_name, __name__)
        return getattr(module, attr_name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
