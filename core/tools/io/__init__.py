# core/tools/io - 파일 입출력 모듈
"""
파일 입출력 유틸리티

구조:
    core/tools/io/file/   - 기본 파일 I/O (원자적 JSON 쓰기)

사용 예시:
    from core.tools.io.file import write_json
"""

__all__ = ["file"]


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name == "file":
        from core.tools.io import file

        return file

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
