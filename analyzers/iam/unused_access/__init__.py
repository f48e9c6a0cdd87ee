"""
analyzers/iam/unused_access - IAM 미사용 액세스 분석

공개 IAM API(Principal 목록, 연결 정책, Service Last Accessed 보고서)만으로
사용되지 않는 권한을 가진 사용자/역할을 찾아 Finding으로 출력합니다.

구성 요소:
    enumerator.py   - PrincipalEnumerator: 사용자/역할 열거
    policies.py     - GrantedPermissionResolver: 부여된 권한 해석
    requester.py    - AccessReportRequester: 보고서 작업 요청
    poller.py       - ReportPoller: 작업 폴링 (백오프, 타임아웃, 취소)
    evaluator.py    - UnusedPermissionEvaluator: 미사용 판정
    builder.py      - FindingBuilder: Finding 생성
    activity.py     - PrincipalActivityInspector: 역할/비밀번호/Access Key 사용 여부
    orchestrator.py - UnusedAccessAnalyzer: 전체 파이프라인
    reporter.py     - write_findings: JSON 출력

Example:
    from analyzers.iam.unused_access import AnalysisConfig, UnusedAccessAnalyzer, write_findings

    config = AnalysisConfig.create("us-east-1", 90, owner_account=account_id)
    result = UnusedAccessAnalyzer(iam, config).run()
    write_findings(result.findings)
"""

from .builder import FindingBuilder
from .enumerator import PrincipalEnumerator
from .evaluator import UnusedPermissionEvaluator, is_unused
from .orchestrator import UnusedAccessAnalyzer
from .policies import GrantedPermissionResolver, GrantedPermissions
from .poller import PollBackoff, ReportPoller
from .reporter import write_findings
from .requester import AccessReportRequester
from .types import (
    AccessReportJob,
    AnalysisConfig,
    AnalysisResult,
    Finding,
    FindingType,
    Granularity,
    JobState,
    PollerConfig,
    Principal,
    PrincipalType,
    ResourceType,
    RunStatus,
    ServiceAccessRecord,
    SkippedPrincipal,
    TaskState,
)

__all__: list[str] = [
    "UnusedAccessAnalyzer",
    "PrincipalEnumerator",
    "GrantedPermissionResolver",
    "GrantedPermissions",
    "AccessReportRequester",
    "ReportPoller",
    "PollBackoff",
    "UnusedPermissionEvaluator",
    "is_unused",
    "FindingBuilder",
    "write_findings",
    "AccessReportJob",
    "AnalysisConfig",
    "AnalysisResult",
    "Finding",
    "FindingType",
    "Granularity",
    "JobState",
    "PollerConfig",
    "Principal",
    "PrincipalType",
    "ResourceType",
    "RunStatus",
    "ServiceAccessRecord",
    "SkippedPrincipal",
    "TaskState",
]
