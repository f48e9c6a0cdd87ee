"""
tests/analyzers/iam/unused_access/test_orchestrator.py - UnusedAccessAnalyzer 테스트

IAM 클라이언트는 MagicMock, 시계는 FakeClock을 사용합니다.
결정적인 순서가 필요한 테스트는 max_workers=1로 실행합니다.
"""

import threading
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from analyzers.iam.unused_access.orchestrator import UnusedAccessAnalyzer
from analyzers.iam.unused_access.types import (
    AnalysisConfig,
    FindingType,
    PollerConfig,
    RunStatus,
    TaskState,
)
from conftest import ACCOUNT_ID, NOW, create_mock_client_error
from core.exceptions import AuthError, EnumerationError, SkipReason

STALE = NOW - timedelta(days=120)
RECENT = NOW - timedelta(days=3)


def user(name, create_date=NOW - timedelta(days=365)):
    return {"UserName": name, "Arn": f"arn:aws:iam::{ACCOUNT_ID}:user/{name}", "Path": "/", "CreateDate": create_date}


def role(name, path="/", create_date=NOW - timedelta(days=365)):
    return {
        "RoleName": name,
        "Arn": f"arn:aws:iam::{ACCOUNT_ID}:role{path}{name}",
        "Path": path,
        "CreateDate": create_date,
    }


def completed(*records):
    return {"JobStatus": "COMPLETED", "ServicesLastAccessed": list(records), "IsTruncated": False}


def s3(last_authenticated=None):
    record = {"ServiceName": "Amazon S3", "ServiceNamespace": "s3"}
    if last_authenticated is not None:
        record["LastAuthenticated"] = last_authenticated
    return record


def make_client(users=(), roles=(), reports=None):
    """reports: Principal 이름 → GetServiceLastAccessedDetails 응답 (기본: s3 미사용)"""
    reports = reports or {}
    client = MagicMock()
    client.list_users.return_value = {"Users": list(users), "IsTruncated": False}
    client.list_roles.return_value = {"Roles": list(roles), "IsTruncated": False}
    client.generate_service_last_accessed_details.side_effect = lambda Arn, Granularity: {"JobId": f"job:{Arn}"}

    def get_details(JobId, **kwargs):
        name = JobId.rsplit("/", 1)[-1]
        response = reports.get(name, completed(s3()))
        if isinstance(response, Exception):
            raise response
        return response

    client.get_service_last_accessed_details.side_effect = get_details
    return client


@pytest.fixture
def make_analyzer(fake_clock, fast_limiter):
    def factory(client, cancel_event=None, on_progress=None, **config_kwargs):
        config_kwargs.setdefault("resolve_granted_policies", False)
        config_kwargs.setdefault("owner_account", ACCOUNT_ID)
        config = AnalysisConfig.create("us-east-1", 90, now=NOW, **config_kwargs)
        return UnusedAccessAnalyzer(
            client,
            config,
            clock=fake_clock,
            cancel_event=cancel_event,
            rate_limiter=fast_limiter,
            on_progress=on_progress,
        )

    return factory


class TestRun:
    """정상 실행"""

    def test_no_principals(self, make_analyzer):
        result = make_analyzer(make_client()).run()

        assert result.findings == []
        assert result.skipped == []
        assert result.analyzed_count == 0
        assert result.status is RunStatus.SUCCESS

    def test_findings_only_for_stale_principals(self, make_analyzer):
        client = make_client(
            users=[user("bob"), user("alice")],
            roles=[role("TestRole")],
            reports={"bob": completed(s3(RECENT)), "TestRole": completed(s3(STALE))},
        )

        result = make_analyzer(client).run()

        assert result.analyzed_count == 3
        assert [f.resource.rsplit("/", 1)[-1] for f in result.findings] == ["TestRole", "alice"]
        role_finding = result.findings[0]
        assert role_finding.resource_type.value == "AwsIamRole"
        assert role_finding.finding_type is FindingType.UNUSED_PERMISSION
        assert role_finding.finding_details[0].last_accessed == STALE

    def test_progress_callback(self, make_analyzer):
        outcomes = []
        client = make_client(users=[user("alice"), user("bob")])

        make_analyzer(client, on_progress=outcomes.append).run()

        assert sorted(o.principal.name for o in outcomes) == ["alice", "bob"]
        assert all(o.state is TaskState.BUILT for o in outcomes)

    def test_transient_throttle_is_retried(self, make_analyzer):
        client = make_client(users=[user("alice")])
        responses = iter([create_mock_client_error("Throttling"), {"JobId": "job:alice"}])

        def generate(Arn, Granularity):
            response = next(responses)
            if isinstance(response, Exception):
                raise response
            return response

        client.generate_service_last_accessed_details.side_effect = generate

        result = make_analyzer(client).run()

        assert len(result.findings) == 1
        assert result.skipped == []


class TestSkips:
    """Principal 단위 실패는 해당 Principal만 스킵"""

    def test_timed_out_principal_skipped_others_continue(self, make_analyzer):
        client = make_client(
            users=[user("alice"), user("bob"), user("carol")],
            reports={"bob": {"JobStatus": "IN_PROGRESS"}},
        )

        result = make_analyzer(client, max_workers=1, poller=PollerConfig(job_timeout=10.0)).run()

        assert [f.resource.rsplit("/", 1)[-1] for f in result.findings] == ["alice", "carol"]
        assert len(result.skipped) == 1
        skipped = result.skipped[0]
        assert skipped.arn.endswith("/bob")
        assert skipped.reason is SkipReason.TIMEOUT
        assert skipped.failed_at is TaskState.POLLING
        assert result.status is RunStatus.SUCCESS

    def test_failed_job(self, make_analyzer):
        client = make_client(
            users=[user("alice")],
            reports={"alice": {"JobStatus": "FAILED", "Error": {"Message": "boom"}}},
        )

        result = make_analyzer(client).run()

        assert result.summary_by_reason() == {SkipReason.JOB_FAILED: 1}

    def test_principal_deleted(self, make_analyzer):
        client = make_client(users=[user("alice"), user("bob")])

        def generate(Arn, Granularity):
            if Arn.endswith("/bob"):
                raise create_mock_client_error("NoSuchEntity")
            return {"JobId": Arn}

        client.generate_service_last_accessed_details.side_effect = generate

        result = make_analyzer(client).run()

        assert result.analyzed_count == 1
        assert result.skipped[0].reason is SkipReason.NOT_FOUND
        assert result.skipped[0].failed_at is TaskState.REQUESTING

    def test_malformed_report(self, make_analyzer):
        client = make_client(
            users=[user("alice")],
            reports={"alice": completed({"ServiceName": "no namespace"})},
        )

        result = make_analyzer(client).run()

        assert result.skipped[0].reason is SkipReason.MALFORMED_REPORT

    def test_unexpected_error_skipped_and_summarized(self, fake_clock, fast_limiter, caplog):
        client = make_client(users=[user("alice"), user("bob")])
        builder = MagicMock()
        builder.build.side_effect = ValueError("broken detail")
        config = AnalysisConfig.create(
            "us-east-1", 90, now=NOW, owner_account=ACCOUNT_ID, resolve_granted_policies=False, max_workers=1
        )
        analyzer = UnusedAccessAnalyzer(client, config, clock=fake_clock, rate_limiter=fast_limiter, builder=builder)

        with caplog.at_level("WARNING", logger="analyzers.iam.unused_access.orchestrator"):
            result = analyzer.run()

        assert result.findings == []
        assert [s.reason for s in result.skipped] == [SkipReason.ERROR, SkipReason.ERROR]
        assert result.skipped[0].message == "broken detail"
        assert "총 2개 작업 실패" in caplog.text


class TestAuthFailures:
    """반복된 인증 실패"""

    def test_escalates_after_threshold(self, make_analyzer):
        client = make_client(users=[user(f"user{i}") for i in range(5)])
        client.generate_service_last_accessed_details.side_effect = create_mock_client_error("AccessDenied")

        with pytest.raises(AuthError):
            make_analyzer(client, max_workers=1).run()

        assert client.generate_service_last_accessed_details.call_count == 3

    def test_below_threshold_skips(self, make_analyzer):
        client = make_client(users=[user("alice"), user("bob")])
        client.generate_service_last_accessed_details.side_effect = create_mock_client_error("AccessDenied")

        result = make_analyzer(client, max_workers=1).run()

        assert result.summary_by_reason() == {SkipReason.ACCESS_DENIED: 2}

    def test_success_resets_count(self, make_analyzer):
        client = make_client(users=[user("u1"), user("ok"), user("u2"), user("u3")])

        def generate(Arn, Granularity):
            if not Arn.endswith("/ok"):
                raise create_mock_client_error("AccessDenied")
            return {"JobId": Arn}

        client.generate_service_last_accessed_details.side_effect = generate

        result = make_analyzer(client, max_workers=1).run()

        assert result.analyzed_count == 1
        assert len(result.skipped) == 3

    def test_enumeration_failure_is_fatal(self, make_analyzer):
        client = make_client()
        client.list_users.side_effect = create_mock_client_error("AccessDenied")

        with pytest.raises(EnumerationError):
            make_analyzer(client).run()


class TestCancellation:
    def test_cancelled_before_start(self, make_analyzer):
        cancel_event = threading.Event()
        cancel_event.set()
        client = make_client(users=[user("alice")])

        result = make_analyzer(client, cancel_event=cancel_event).run()

        assert result.is_cancelled
        assert result.findings == []
        client.generate_service_last_accessed_details.assert_not_called()

    def test_cancelled_while_polling(self, make_analyzer, fake_clock):
        fake_clock.cancel_after_sleeps = 1
        client = make_client(users=[user("alice")])

        result = make_analyzer(client, cancel_event=threading.Event()).run()

        assert result.status is RunStatus.CANCELLED
        assert result.skipped[0].reason is SkipReason.CANCELLED
        assert result.findings == []


class TestFilters:
    def test_service_linked_and_recent_excluded(self, make_analyzer):
        client = make_client(
            users=[user("alice"), user("newbie", create_date=RECENT)],
            roles=[role("AWSServiceRoleForSupport", path="/aws-service-role/support.amazonaws.com/")],
        )

        result = make_analyzer(client, skip_recently_created=True, exclude_service_linked_roles=True).run()

        assert result.filtered_count == 2
        assert result.analyzed_count == 1
        assert client.generate_service_last_accessed_details.call_count == 1

    def test_filters_off_by_default(self, make_analyzer):
        client = make_client(users=[user("newbie", create_date=RECENT)])

        result = make_analyzer(client).run()

        assert result.filtered_count == 0
        assert result.analyzed_count == 1


class TestActivityFindings:
    def test_role_activity_only(self, make_analyzer):
        client = make_client(roles=[role("Idle"), role("Busy")])
        client.get_role.side_effect = lambda RoleName: {
            "Role": {"RoleLastUsed": {"LastUsedDate": RECENT} if RoleName == "Busy" else {}}
        }

        result = make_analyzer(client, finding_types={FindingType.UNUSED_IAM_ROLE}).run()

        assert [f.finding_type for f in result.findings] == [FindingType.UNUSED_IAM_ROLE]
        assert result.findings[0].resource.endswith("/Idle")
        client.generate_service_last_accessed_details.assert_not_called()

    def test_granted_policies_limit_findings(self, make_analyzer):
        client = make_client(
            roles=[role("TestRole")],
            reports={"TestRole": completed(s3(), {"ServiceNamespace": "ec2"})},
        )
        client.list_attached_role_policies.return_value = {"AttachedPolicies": [], "IsTruncated": False}
        client.list_role_policies.return_value = {"PolicyNames": ["inline"], "IsTruncated": False}
        client.get_role_policy.return_value = {
            "PolicyDocument": {"Statement": [{"Effect": "Allow", "Action": "s3:*", "Resource": "*"}]}
        }

        result = make_analyzer(client, resolve_granted_policies=True).run()

        details = result.findings[0].finding_details
        assert [d.service_namespace for d in details] == ["s3"]
