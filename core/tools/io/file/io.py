"""
core/tools/io/file/io.py - 파일 I/O 유틸리티

결과 파일은 임시 파일에 먼저 쓴 뒤 os.replace로 교체하므로,
쓰기 도중 중단되어도 기존 파일이 깨지거나 반쯤 쓰인 파일이 남지 않습니다.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union


def ensure_dir(path: Union[str, Path]) -> Path:
    """디렉토리 존재 확인 및 생성

    Args:
        path: 디렉토리 경로

    Returns:
        생성된 경로 객체
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_text_atomic(
    filepath: Union[str, Path],
    content: str,
    encoding: str = "utf-8",
) -> Path:
    """파일을 원자적으로 쓰기

    같은 디렉토리에 임시 파일을 만들고 fsync 후 os.replace로 교체합니다.

    Args:
        filepath: 대상 파일 경로
        content: 작성할 내용
        encoding: 인코딩 (기본값: utf-8)

    Returns:
        작성된 파일의 절대 경로

    Raises:
        OSError: 쓰기 실패 (임시 파일은 정리됨)
    """
    target = Path(filepath).resolve()
    ensure_dir(target.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    return target


def write_json(
    filepath: Union[str, Path],
    data: Any,
    indent: int = 2,
) -> Path:
    """JSON 파일을 원자적으로 쓰기

    Args:
        filepath: 파일 경로
        data: 저장할 데이터
        indent: 들여쓰기 (기본값: 2)

    Returns:
        작성된 파일의 절대 경로

    Raises:
        OSError: 쓰기 실패
        TypeError: 직렬화할 수 없는 값 포함
    """
    content = json.dumps(data, ensure_ascii=False, indent=indent)
    return write_text_atomic(filepath, content + "\n")
