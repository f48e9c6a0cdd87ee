"""
tests/analyzers/iam/unused_access/test_requester.py - AccessReportRequester 테스트
"""

from unittest.mock import MagicMock

import pytest

from analyzers.iam.unused_access.requester import AccessReportRequester
from analyzers.iam.unused_access.types import Granularity, JobState
from conftest import create_mock_client_error, make_principal
from core.exceptions import PermanentError, RetryableError, SkipReason


@pytest.fixture
def client():
    client = MagicMock()
    client.generate_service_last_accessed_details.return_value = {"JobId": "job-123"}
    return client


class TestAccessReportRequester:
    """request 테스트"""

    def test_request_returns_requested_job(self, client, fake_clock, fast_limiter):
        principal = make_principal("alice")
        requester = AccessReportRequester(client, clock=fake_clock, rate_limiter=fast_limiter)

        job = requester.request(principal)

        assert job.job_id == "job-123"
        assert job.state is JobState.REQUESTED
        assert job.principal is principal
        assert job.requested_at == fake_clock.monotonic()
        client.generate_service_last_accessed_details.assert_called_once_with(
            Arn=principal.arn, Granularity="SERVICE_LEVEL"
        )

    def test_action_level_granularity(self, client, fake_clock, fast_limiter):
        requester = AccessReportRequester(client, Granularity.ACTION_LEVEL, fake_clock, fast_limiter)

        requester.request(make_principal("alice"))

        assert client.generate_service_last_accessed_details.call_args.kwargs["Granularity"] == "ACTION_LEVEL"

    def test_missing_job_id_is_malformed(self, client, fake_clock, fast_limiter):
        client.generate_service_last_accessed_details.return_value = {}

        with pytest.raises(PermanentError) as exc_info:
            AccessReportRequester(client, clock=fake_clock, rate_limiter=fast_limiter).request(make_principal())

        assert exc_info.value.reason is SkipReason.MALFORMED_REPORT

    def test_throttling_is_retryable(self, client, fake_clock, fast_limiter):
        client.generate_service_last_accessed_details.side_effect = create_mock_client_error("Throttling")

        with pytest.raises(RetryableError):
            AccessReportRequester(client, clock=fake_clock, rate_limiter=fast_limiter).request(make_principal())

    def test_deleted_principal(self, client, fake_clock, fast_limiter):
        client.generate_service_last_accessed_details.side_effect = create_mock_client_error("NoSuchEntity")

        with pytest.raises(PermanentError) as exc_info:
            AccessReportRequester(client, clock=fake_clock, rate_limiter=fast_limiter).request(make_principal())

        assert exc_info.value.reason is SkipReason.NOT_FOUND

    def test_rate_limiter_timeout(self, client, fake_clock):
        limiter = MagicMock()
        limiter.acquire.return_value = False

        with pytest.raises(RetryableError) as exc_info:
            AccessReportRequester(client, clock=fake_clock, rate_limiter=limiter).request(make_principal())

        assert exc_info.value.error_code == "RateLimitTimeout"
        client.generate_service_last_accessed_details.assert_not_called()
