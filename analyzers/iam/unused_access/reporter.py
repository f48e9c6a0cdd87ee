"""
analyzers/iam/unused_access/reporter.py - Finding JSON 출력

Finding 목록을 JSON 배열로 원자적으로 기록합니다.
취소되었거나 치명적 오류로 중단된 실행에서는 호출하지 않습니다.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from core.config import settings
from core.tools.io.file.io import write_json

from .types import Finding

logger = logging.getLogger(__name__)


def write_findings(findings: Sequence[Finding], path: str | Path = settings.OUTPUT_FILENAME) -> Path:
    """Finding을 JSON 배열로 저장

    Args:
        findings: 정렬된 Finding 목록 (빈 목록이면 "[]")
        path: 출력 경로 (기본: 현재 디렉토리의 unused_findings.json)

    Returns:
        작성된 파일의 절대 경로

    Raises:
        OSError: 쓰기 실패 (기존 파일은 그대로 유지)
    """
    output = write_json(path, [finding.to_dict() for finding in findings])
    logger.info(f"Finding {len(findings)}개 저장: {output}")
    return output
