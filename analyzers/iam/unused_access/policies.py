"""
analyzers/iam/unused_access/policies.py - 부여된 권한 해석

Principal에 연결된 관리형 정책, 인라인 정책, (사용자의 경우) 그룹 정책을 조회하여
Allow 문에서 허용된 액션 패턴을 모읍니다. 평가기는 이 결과로
"해당 서비스/액션이 실제로 부여되어 있는가"를 판단합니다.

- 액션 패턴은 대소문자를 무시하고 와일드카드(*, ?)를 지원합니다.
- Allow + NotAction 문은 사실상 광범위한 허용이므로 "*"로 취급합니다.
- 관리형 정책 문서는 Principal 간에 공유되므로 스레드 세이프 캐시에 보관합니다.

Example:
    resolver = GrantedPermissionResolver(iam)
    granted = resolver.resolve(principal)
    granted.references_service("s3")              # True
    granted.references_action("s3", "GetObject")  # True
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from fnmatch import fnmatchcase
from typing import Any
from urllib.parse import unquote

from core.parallel.rate_limiter import TokenBucketRateLimiter

from .base import IAMCaller
from .types import Principal, PrincipalType

logger = logging.getLogger(__name__)


# =============================================================================
# 정책 문서 파싱
# =============================================================================


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def load_policy_document(document: Any) -> dict[str, Any]:
    """정책 문서를 dict로 변환

    boto3는 보통 디코딩된 dict를 반환하지만, URL 인코딩된 JSON 문자열이 올 수도 있습니다.
    """
    if isinstance(document, dict):
        return document
    if isinstance(document, str):
        text = document.strip()
        if not text.startswith("{"):
            text = unquote(text)
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("정책 문서 파싱 실패")
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def extract_allowed_actions(document: Any) -> tuple[str, ...]:
    """정책 문서에서 Allow 액션 패턴 추출 (소문자)"""
    policy = load_policy_document(document)
    actions: list[str] = []

    for statement in _as_list(policy.get("Statement")):
        if not isinstance(statement, dict) or statement.get("Effect") != "Allow":
            continue
        if "NotAction" in statement:
            actions.append("*")
            continue
        actions.extend(str(action).lower() for action in _as_list(statement.get("Action")))

    return tuple(actions)


# =============================================================================
# GrantedPermissions
# =============================================================================


class GrantedPermissions:
    """Principal에 부여된 액션 패턴 집합"""

    def __init__(self, patterns: Iterable[str] = ()):
        self._patterns = frozenset(p.strip().lower() for p in patterns if p and p.strip())
        self._grants_all = "*" in self._patterns or "*:*" in self._patterns

    @property
    def patterns(self) -> frozenset[str]:
        return self._patterns

    def references_service(self, service_namespace: str) -> bool:
        """서비스 네임스페이스를 참조하는 패턴이 있는지"""
        if self._grants_all:
            return True
        namespace = service_namespace.lower()
        for pattern in self._patterns:
            service_part = pattern.split(":", 1)[0]
            if fnmatchcase(namespace, service_part):
                return True
        return False

    def references_action(self, service_namespace: str, action_name: str) -> bool:
        """service:action을 허용하는 패턴이 있는지

        action_name은 "GetObject" 또는 "s3:GetObject" 형식 모두 허용합니다.
        """
        if self._grants_all:
            return True
        if ":" in action_name:
            full = action_name.lower()
        else:
            full = f"{service_namespace}:{action_name}".lower()
        return any(fnmatchcase(full, pattern) for pattern in self._patterns)

    def __repr__(self) -> str:
        return f"GrantedPermissions({sorted(self._patterns)!r})"


# =============================================================================
# Resolver
# =============================================================================


class GrantedPermissionResolver(IAMCaller):
    """Principal별 부여 권한 조회"""

    def __init__(self, client: Any, rate_limiter: TokenBucketRateLimiter | None = None):
        super().__init__(client, rate_limiter)
        self._managed_cache: dict[str, tuple[str, ...]] = {}
        self._cache_lock = threading.Lock()

    def resolve(self, principal: Principal) -> GrantedPermissions:
        """Principal에 부여된 권한 조회

        Raises:
            RetryableError / AuthError / PermanentError: IAM 호출 실패
        """
        if principal.principal_type is PrincipalType.USER:
            patterns = self._resolve_user(principal)
        else:
            patterns = self._resolve_role(principal)

        granted = GrantedPermissions(patterns)
        logger.debug(f"부여 권한 [{principal.arn}]: 패턴 {len(granted.patterns)}개")
        return granted

    def _resolve_user(self, principal: Principal) -> list[str]:
        arn, name = principal.arn, principal.name
        patterns: list[str] = []

        attached = self._paginate("list_attached_user_policies", arn, "AttachedPolicies", UserName=name)
        for policy in attached:
            patterns.extend(self._managed_policy_actions(policy["PolicyArn"]))

        for policy_name in self._paginate("list_user_policies", arn, "PolicyNames", UserName=name):
            response = self._call("get_user_policy", arn, UserName=name, PolicyName=policy_name)
            patterns.extend(extract_allowed_actions(response.get("PolicyDocument")))

        for group in self._paginate("list_groups_for_user", arn, "Groups", UserName=name):
            patterns.extend(self._resolve_group(arn, group["GroupName"]))

        return patterns

    def _resolve_group(self, identifier: str, group_name: str) -> list[str]:
        patterns: list[str] = []

        attached = self._paginate("list_attached_group_policies", identifier, "AttachedPolicies", GroupName=group_name)
        for policy in attached:
            patterns.extend(self._managed_policy_actions(policy["PolicyArn"]))

        for policy_name in self._paginate("list_group_policies", identifier, "PolicyNames", GroupName=group_name):
            response = self._call("get_group_policy", identifier, GroupName=group_name, PolicyName=policy_name)
            patterns.extend(extract_allowed_actions(response.get("PolicyDocument")))

        return patterns

    def _resolve_role(self, principal: Principal) -> list[str]:
        arn, name = principal.arn, principal.name
        patterns: list[str] = []

        attached = self._paginate("list_attached_role_policies", arn, "AttachedPolicies", RoleName=name)
        for policy in attached:
            patterns.extend(self._managed_policy_actions(policy["PolicyArn"]))

        for policy_name in self._paginate("list_role_policies", arn, "PolicyNames", RoleName=name):
            response = self._call("get_role_policy", arn, RoleName=name, PolicyName=policy_name)
            patterns.extend(extract_allowed_actions(response.get("PolicyDocument")))

        return patterns

    def _managed_policy_actions(self, policy_arn: str) -> tuple[str, ...]:
        """관리형 정책 기본 버전의 Allow 액션 (캐시)"""
        with self._cache_lock:
            cached = self._managed_cache.get(policy_arn)
        if cached is not None:
            return cached

        policy = self._call("get_policy", policy_arn, PolicyArn=policy_arn)["Policy"]
        version = self._call(
            "get_policy_version",
            policy_arn,
            PolicyArn=policy_arn,
            VersionId=policy["DefaultVersionId"],
        )
        actions = extract_allowed_actions(version["PolicyVersion"].get("Document"))

        with self._cache_lock:
            self._managed_cache[policy_arn] = actions
        return actions
