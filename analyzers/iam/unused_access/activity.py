"""
analyzers/iam/unused_access/activity.py - Principal 활동 점검

권한 단위가 아닌 Principal 자체의 사용 여부를 점검합니다 (선택 기능).

- UnusedIamRole: 역할의 RoleLastUsed가 기준보다 오래되었거나 없음
- UnusedIamUserPassword: 기준보다 오래 전에 만든 콘솔 비밀번호가 기준 기간 동안 미사용
- UnusedIamUserAccessKey: 기준보다 오래 전에 만든 Access Key가 기준 기간 동안 미사용

판정 규칙은 evaluator.is_unused와 동일합니다.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from core.exceptions import PermanentError, SkipReason
from core.parallel.rate_limiter import TokenBucketRateLimiter
from core.tools.time.utils import ensure_utc

from .base import IAMCaller
from .evaluator import is_unused
from .types import (
    AnalysisConfig,
    FindingDetail,
    FindingType,
    Principal,
    PrincipalType,
    UnusedIamRoleDetails,
    UnusedIamUserAccessKeyDetails,
    UnusedIamUserPasswordDetails,
)

logger = logging.getLogger(__name__)


class PrincipalActivityInspector(IAMCaller):
    """역할/비밀번호/Access Key 사용 여부 점검"""

    def __init__(self, client: Any, config: AnalysisConfig, rate_limiter: TokenBucketRateLimiter | None = None):
        super().__init__(client, rate_limiter)
        self.config = config

    def inspect(self, principal: Principal) -> list[tuple[FindingType, FindingDetail]]:
        """설정된 활동 Finding 타입에 대해 점검

        Returns:
            (FindingType, 상세) 목록. Access Key는 키마다 별도 항목.
        """
        results: list[tuple[FindingType, FindingDetail]] = []

        if principal.principal_type is PrincipalType.ROLE:
            if self.config.wants(FindingType.UNUSED_IAM_ROLE):
                detail = self._inspect_role(principal)
                if detail is not None:
                    results.append((FindingType.UNUSED_IAM_ROLE, detail))
            return results

        if self.config.wants(FindingType.UNUSED_IAM_USER_PASSWORD):
            password = self._inspect_password(principal)
            if password is not None:
                results.append((FindingType.UNUSED_IAM_USER_PASSWORD, password))

        if self.config.wants(FindingType.UNUSED_IAM_USER_ACCESS_KEY):
            for key_detail in self._inspect_access_keys(principal):
                results.append((FindingType.UNUSED_IAM_USER_ACCESS_KEY, key_detail))

        return results

    def _older_than_threshold(self, created: datetime | None) -> bool:
        if created is None:
            return False
        return self.config.now - ensure_utc(created) > self.config.unused_access_age

    def _inspect_role(self, principal: Principal) -> UnusedIamRoleDetails | None:
        # ListRoles 응답에는 RoleLastUsed가 없으므로 GetRole로 조회
        role = self._call("get_role", principal.arn, RoleName=principal.name)["Role"]
        last_used = (role.get("RoleLastUsed") or {}).get("LastUsedDate")
        if not is_unused(last_used, self.config.now, self.config.unused_access_age):
            return None
        return UnusedIamRoleDetails(last_accessed=last_used)

    def _inspect_password(self, principal: Principal) -> UnusedIamUserPasswordDetails | None:
        try:
            profile = self._call("get_login_profile", principal.arn, UserName=principal.name)["LoginProfile"]
        except PermanentError as e:
            if e.reason is SkipReason.NOT_FOUND:
                # 콘솔 비밀번호 없음
                return None
            raise

        if not self._older_than_threshold(profile.get("CreateDate")):
            return None
        if not is_unused(principal.password_last_used, self.config.now, self.config.unused_access_age):
            return None
        return UnusedIamUserPasswordDetails(last_accessed=principal.password_last_used)

    def _inspect_access_keys(self, principal: Principal) -> list[UnusedIamUserAccessKeyDetails]:
        details: list[UnusedIamUserAccessKeyDetails] = []
        keys = self._paginate("list_access_keys", principal.arn, "AccessKeyMetadata", UserName=principal.name)

        for key in sorted(keys, key=lambda k: k.get("AccessKeyId", "")):
            key_id = key.get("AccessKeyId")
            if not key_id or not self._older_than_threshold(key.get("CreateDate")):
                continue
            response = self._call("get_access_key_last_used", principal.arn, AccessKeyId=key_id)
            last_used = (response.get("AccessKeyLastUsed") or {}).get("LastUsedDate")
            if is_unused(last_used, self.config.now, self.config.unused_access_age):
                details.append(UnusedIamUserAccessKeyDetails(access_key_id=key_id, last_accessed=last_used))

        logger.debug(f"Access Key 점검 [{principal.arn}]: {len(keys)}개 중 미사용 {len(details)}개")
        return details
