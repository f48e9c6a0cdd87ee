"""
analyzers/iam/unused_access/builder.py - Finding 생성
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence

from .types import Finding, FindingDetail, FindingType, Principal


def _new_id() -> str:
    return str(uuid.uuid4())


class FindingBuilder:
    """평가 결과 + Principal 메타데이터 → Finding

    상세가 비어 있으면 Finding을 만들지 않습니다.
    """

    def __init__(self, owner_account: str = "", id_factory: Callable[[], str] = _new_id):
        self.owner_account = owner_account
        self._id_factory = id_factory

    def build(
        self,
        principal: Principal,
        details: Sequence[FindingDetail],
        finding_type: FindingType = FindingType.UNUSED_PERMISSION,
    ) -> Finding | None:
        if not details:
            return None

        return Finding(
            resource=principal.arn,
            resource_type=principal.resource_type,
            resource_owner_account=self.owner_account or principal.account_id,
            id=self._id_factory(),
            finding_type=finding_type,
            finding_details=tuple(details),
        )
