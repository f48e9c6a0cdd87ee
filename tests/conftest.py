"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(mock_iam_client, fake_clock):
        # mock_iam_client: MagicMock IAM 클라이언트
        # fake_clock: 즉시 진행되는 결정적 시계
        pass
"""

import os
import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.parallel.rate_limiter import RateLimiterConfig, TokenBucketRateLimiter, reset_rate_limiters  # noqa: E402

ACCOUNT_ID = "123456789012"
NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment():
    """테스트 환경 설정"""
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

    yield

    reset_rate_limiters()


# =============================================================================
# 시계 / Rate limiter
# =============================================================================


class FakeClock:
    """결정적 테스트용 시계

    sleep()은 실제로 대기하지 않고 monotonic 값만 전진시킵니다.
    cancel_event가 설정되어 있거나 cancel_after_sleeps번째 sleep에 도달하면 False를 반환합니다.
    """

    def __init__(self, start: float = 1000.0, now: datetime = NOW):
        self._lock = threading.Lock()
        self._start = start
        self._monotonic = start
        self._now = now
        self.sleeps: List[float] = []
        self.cancel_after_sleeps: Optional[int] = None

    def monotonic(self) -> float:
        with self._lock:
            return self._monotonic

    def now_utc(self) -> datetime:
        with self._lock:
            return self._now + timedelta(seconds=self._monotonic - self._start)

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._monotonic += seconds

    def sleep(self, seconds: float, cancel_event: Optional[threading.Event] = None) -> bool:
        with self._lock:
            self.sleeps.append(seconds)
            if self.cancel_after_sleeps is not None and len(self.sleeps) >= self.cancel_after_sleeps:
                if cancel_event is not None:
                    cancel_event.set()
            if cancel_event is not None and cancel_event.is_set():
                return False
            self._monotonic += max(0.0, seconds)
            return True


@pytest.fixture
def fake_clock():
    """즉시 진행되는 FakeClock"""
    return FakeClock()


@pytest.fixture
def fast_limiter():
    """대기 없는 rate limiter"""
    return TokenBucketRateLimiter(RateLimiterConfig(requests_per_second=100000.0, burst_size=100000, wait_timeout=1.0))


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def mock_boto3_session():
    """boto3.Session 모킹"""
    with patch("boto3.Session") as mock_session_class:
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        mock_session.client.return_value = MagicMock()
        mock_session.region_name = "us-east-1"

        yield mock_session


@pytest.fixture
def mock_iam_client():
    """IAM 클라이언트 모킹"""
    mock_client = MagicMock()

    mock_client.list_users.return_value = {
        "Users": [
            {
                "UserName": "test-user",
                "UserId": "AIDATEST123",
                "Path": "/",
                "Arn": f"arn:aws:iam::{ACCOUNT_ID}:user/test-user",
                "CreateDate": datetime(2023, 1, 1, tzinfo=timezone.utc),
            }
        ],
        "IsTruncated": False,
    }

    mock_client.list_roles.return_value = {
        "Roles": [
            {
                "RoleName": "test-role",
                "RoleId": "AROATEST123",
                "Path": "/",
                "Arn": f"arn:aws:iam::{ACCOUNT_ID}:role/test-role",
                "CreateDate": datetime(2023, 1, 1, tzinfo=timezone.utc),
            }
        ],
        "IsTruncated": False,
    }

    yield mock_client


@pytest.fixture
def mock_sts_client():
    """STS 클라이언트 모킹"""
    mock_client = MagicMock()

    mock_client.get_caller_identity.return_value = {
        "UserId": "AIDATEST123",
        "Account": ACCOUNT_ID,
        "Arn": f"arn:aws:iam::{ACCOUNT_ID}:user/test-user",
    }

    yield mock_client


# =============================================================================
# 유틸리티 함수
# =============================================================================


def create_mock_response(
    data: Dict[str, Any],
    marker: Optional[str] = None,
) -> Dict[str, Any]:
    """IAM 페이지네이션 응답 생성 헬퍼 (Marker/IsTruncated)"""
    response = data.copy()
    response["IsTruncated"] = marker is not None
    if marker:
        response["Marker"] = marker
    return response


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "TestOperation",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


def make_principal(
    name: str = "alice",
    principal_type: str = "User",
    create_date: Optional[datetime] = None,
    path: str = "/",
):
    """테스트용 Principal 생성 헬퍼"""
    from analyzers.iam.unused_access.types import Principal, PrincipalType

    ptype = PrincipalType(principal_type)
    kind = "user" if ptype is PrincipalType.USER else "role"
    return Principal(
        arn=f"arn:aws:iam::{ACCOUNT_ID}:{kind}{path}{name}",
        name=name,
        principal_type=ptype,
        account_id=ACCOUNT_ID,
        path=path,
        create_date=create_date or datetime(2023, 1, 1, tzinfo=timezone.utc),
    )


# =============================================================================
# moto 통합
# =============================================================================


@pytest.fixture
def aws_credentials():
    """moto 사용 시 AWS 자격 증명 설정"""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def moto_iam(aws_credentials):
    """moto를 사용한 IAM 모킹"""
    moto = pytest.importorskip("moto")

    with moto.mock_aws():
        import boto3

        iam = boto3.client("iam", region_name="us-east-1")
        yield iam
