"""
analyzers/iam/unused_access/evaluator.py - 미사용 권한 판정

판정 규칙 (모든 Finding 타입 공통):
    unused ⇔ last_accessed가 없음 OR (now - last_accessed) > threshold

경계값(now - last_accessed == threshold)은 미사용이 아닙니다.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from core.tools.time.utils import ensure_utc

from .policies import GrantedPermissions
from .types import AnalysisConfig, Principal, ServiceAccessRecord, UnusedPermissionDetails

logger = logging.getLogger(__name__)


def is_unused(last_accessed: datetime | None, now: datetime, threshold: timedelta) -> bool:
    """접근 시각이 기준보다 오래되었거나 없는지 판정"""
    if last_accessed is None:
        return True
    return ensure_utc(now) - ensure_utc(last_accessed) > threshold


class UnusedPermissionEvaluator:
    """완료된 보고서를 미사용 권한 상세 목록으로 변환

    결과는 service_namespace 순으로 정렬되므로 입력 순서와 무관하게 결정적입니다.
    """

    def __init__(self, config: AnalysisConfig):
        self.config = config

    def evaluate(
        self,
        principal: Principal,
        records: Iterable[ServiceAccessRecord],
        granted: GrantedPermissions | None = None,
    ) -> list[UnusedPermissionDetails]:
        """보고서 평가

        Args:
            principal: 대상 Principal
            records: 완료된 보고서의 서비스 기록
            granted: 부여된 권한 (None이면 보고서의 모든 서비스를 부여된 것으로 간주)

        Returns:
            미사용 권한 상세 목록 (없으면 빈 리스트)
        """
        details: list[UnusedPermissionDetails] = []
        seen: set[str] = set()

        for record in sorted(records, key=lambda r: r.service_namespace):
            if record.service_namespace in seen:
                logger.debug(f"중복 서비스 기록 무시 [{principal.arn}]: {record.service_namespace}")
                continue
            seen.add(record.service_namespace)

            if granted is not None and not granted.references_service(record.service_namespace):
                continue

            detail = self._evaluate_record(record, granted)
            if detail is not None:
                details.append(detail)

        return details

    def _evaluate_record(
        self,
        record: ServiceAccessRecord,
        granted: GrantedPermissions | None,
    ) -> UnusedPermissionDetails | None:
        now, threshold = self.config.now, self.config.unused_access_age

        # 액션 단위 데이터가 있으면 액션별로 판정
        if record.actions:
            unused_actions = sorted(
                {
                    action.action_name
                    for action in record.actions
                    if (granted is None or granted.references_action(record.service_namespace, action.action_name))
                    and is_unused(action.last_accessed, now, threshold)
                }
            )
            if not unused_actions:
                return None
            return UnusedPermissionDetails(
                service_namespace=record.service_namespace,
                actions=tuple(unused_actions),
                last_accessed=record.last_accessed,
            )

        if not is_unused(record.last_accessed, now, threshold):
            return None
        return UnusedPermissionDetails(
            service_namespace=record.service_namespace,
            actions=None,
            last_accessed=record.last_accessed,
        )
