# tests/cli/test_app.py
"""
Tests for cli/app.py - Main CLI entry point

Tests cover:
- Version / help
- Option validation and configuration errors
- Authentication failure
- Successful run writes the findings file
- Cancelled and fatal runs exit without writing a file
"""

import json
import logging
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from analyzers.iam.unused_access.builder import FindingBuilder
from analyzers.iam.unused_access.types import (
    AnalysisResult,
    FindingType,
    Granularity,
    PrincipalType,
    RunStatus,
    SkippedPrincipal,
    UnusedPermissionDetails,
)
from cli.app import EXIT_CANCELLED, EXIT_FATAL, EXIT_OK, _requested_lang, cli
from cli.i18n import set_lang
from conftest import ACCOUNT_ID, make_principal
from core.auth.types import CallerIdentity
from core.exceptions import AuthError, EnumerationError, SkipReason

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def restore_cli_state(monkeypatch):
    """CLI 실행이 바꾸는 전역 상태(언어, 루트 logger) 복원"""
    monkeypatch.delenv("UA_MAX_WORKERS", raising=False)
    monkeypatch.delenv("UA_LANG", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    set_lang("ko")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_provider():
    with patch("cli.app.StaticCredentialsProvider") as provider_class:
        provider = provider_class.return_value
        provider.authenticate.return_value = CallerIdentity(
            account_id=ACCOUNT_ID,
            arn=f"arn:aws:iam::{ACCOUNT_ID}:user/auditor",
        )
        provider.get_session.return_value = MagicMock()
        yield provider


@pytest.fixture
def mock_client():
    with patch("cli.app.get_client") as get_client:
        get_client.return_value = MagicMock()
        yield get_client


@pytest.fixture
def mock_analyzer():
    """UnusedAccessAnalyzer 클래스 모킹 (run() 결과는 테스트에서 설정)"""
    with patch("cli.app.UnusedAccessAnalyzer") as analyzer_class:
        analyzer_class.return_value.run.return_value = AnalysisResult()
        yield analyzer_class


def stale_finding():
    builder = FindingBuilder(ACCOUNT_ID, id_factory=lambda: "finding-1")
    return builder.build(make_principal("TestRole", principal_type="Role"), [UnusedPermissionDetails("s3")])


def analysis_config(analyzer_class):
    """UnusedAccessAnalyzer(iam, config, ...)에 전달된 config"""
    return analyzer_class.call_args.args[1]


# =============================================================================
# Basic Options
# =============================================================================


class TestBasicOptions:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.3.0" in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["-h"])

        assert result.exit_code == 0
        assert "--unused-access-age" in result.output
        assert "--concurrency" in result.output

    def test_help_defaults_to_korean(self, runner):
        result = runner.invoke(cli, ["-h"])

        assert "결과 파일 경로" in result.output
        assert "Output file path" not in result.output

    def test_help_follows_lang_option(self, runner):
        result = runner.invoke(cli, ["--lang", "en", "--help"])

        assert result.exit_code == 0
        assert "Analyze unused permissions" in result.output
        assert "Output file path" in result.output
        assert "결과 파일 경로" not in result.output

    def test_help_lang_after_help_flag(self, runner):
        result = runner.invoke(cli, ["--help", "--lang=en"])

        assert result.exit_code == 0
        assert "Unused access age threshold in days" in result.output

    def test_help_follows_lang_env(self, runner, monkeypatch):
        monkeypatch.setenv("UA_LANG", "en")

        result = runner.invoke(cli, ["--help"])

        assert "Output file path" in result.output

    @pytest.mark.parametrize(
        "args,expected",
        [
            (["--lang", "en"], "en"),
            (["-u", "30", "--lang=en"], "en"),
            (["--lang"], "ko"),
            ([], "ko"),
        ],
    )
    def test_requested_lang(self, args, expected):
        assert _requested_lang(args) == expected

    def test_negative_age_rejected(self, runner, mock_provider):
        result = runner.invoke(cli, ["-u", "-1"])

        assert result.exit_code == 2
        mock_provider.authenticate.assert_not_called()

    def test_concurrency_out_of_range(self, runner):
        result = runner.invoke(cli, ["-c", "0"])

        assert result.exit_code == 2


# =============================================================================
# Fatal Errors
# =============================================================================


class TestFatalErrors:
    def test_access_key_without_secret(self, runner, mock_provider, tmp_path):
        output = tmp_path / "findings.json"

        result = runner.invoke(cli, ["-a", "AKIAEXAMPLE", "-o", str(output)])

        assert result.exit_code == EXIT_FATAL
        assert "설정 오류" in result.output
        mock_provider.authenticate.assert_not_called()
        assert not output.exists()

    def test_authentication_failure(self, runner, mock_provider, mock_analyzer, tmp_path):
        mock_provider.authenticate.side_effect = AuthError("GetCallerIdentity", "잘못된 자격 증명")
        output = tmp_path / "findings.json"

        result = runner.invoke(cli, ["-o", str(output)])

        assert result.exit_code == EXIT_FATAL
        assert "인증 실패" in result.output
        mock_analyzer.assert_not_called()
        assert not output.exists()

    def test_enumeration_failure(self, runner, mock_provider, mock_client, mock_analyzer, tmp_path):
        mock_analyzer.return_value.run.side_effect = EnumerationError("User", "list_users 실패")
        output = tmp_path / "findings.json"

        result = runner.invoke(cli, ["-o", str(output), "--lang", "en"])

        assert result.exit_code == EXIT_FATAL
        assert "Analysis aborted" in result.output
        assert not output.exists()

    def test_repeated_auth_failures(self, runner, mock_provider, mock_client, mock_analyzer, tmp_path):
        mock_analyzer.return_value.run.side_effect = AuthError("GenerateServiceLastAccessedDetails", "반복 실패")
        output = tmp_path / "findings.json"

        result = runner.invoke(cli, ["-o", str(output)])

        assert result.exit_code == EXIT_FATAL
        assert not output.exists()


# =============================================================================
# Runs
# =============================================================================


class TestRun:
    def test_success_writes_findings(self, runner, mock_provider, mock_client, mock_analyzer, tmp_path):
        mock_analyzer.return_value.run.return_value = AnalysisResult(findings=[stale_finding()], analyzed_count=1)
        output = tmp_path / "findings.json"

        result = runner.invoke(cli, ["-u", "30", "-r", "ap-northeast-2", "-o", str(output)])

        assert result.exit_code == EXIT_OK
        data = json.loads(output.read_text(encoding="utf-8"))
        assert len(data) == 1
        assert data[0]["id"] == "finding-1"
        assert data[0]["resource_type"] == "AwsIamRole"

        config = analysis_config(mock_analyzer)
        assert config.unused_access_age.days == 30
        assert config.region == "ap-northeast-2"
        assert config.owner_account == ACCOUNT_ID
        assert config.finding_types == frozenset({FindingType.UNUSED_PERMISSION})

    def test_empty_run_writes_empty_array(self, runner, mock_provider, mock_client, mock_analyzer, tmp_path):
        output = tmp_path / "findings.json"

        result = runner.invoke(cli, ["-o", str(output)])

        assert result.exit_code == EXIT_OK
        assert json.loads(output.read_text(encoding="utf-8")) == []

    def test_options_forwarded(self, runner, mock_provider, mock_client, mock_analyzer, tmp_path):
        output = tmp_path / "findings.json"

        result = runner.invoke(
            cli,
            [
                "-o",
                str(output),
                "-g",
                "action",
                "-c",
                "4",
                "--job-timeout",
                "60",
                "-t",
                "UnusedIamRole",
                "-t",
                "unusedpermission",
                "--skip-recent",
                "--exclude-service-linked",
            ],
        )

        assert result.exit_code == EXIT_OK
        config = analysis_config(mock_analyzer)
        assert config.granularity is Granularity.ACTION_LEVEL
        assert config.max_workers == 4
        assert config.poller.job_timeout == 60.0
        assert config.finding_types == frozenset({FindingType.UNUSED_IAM_ROLE, FindingType.UNUSED_PERMISSION})
        assert config.skip_recently_created is True
        assert config.exclude_service_linked_roles is True
        assert mock_client.call_args.kwargs["max_pool_connections"] == 9

    def test_concurrency_from_environment(
        self, runner, mock_provider, mock_client, mock_analyzer, tmp_path, monkeypatch
    ):
        monkeypatch.setenv("UA_MAX_WORKERS", "7")

        result = runner.invoke(cli, ["-o", str(tmp_path / "findings.json")])

        assert result.exit_code == EXIT_OK
        assert analysis_config(mock_analyzer).max_workers == 7

    def test_skipped_summary(self, runner, mock_provider, mock_client, mock_analyzer, tmp_path):
        skipped = [
            SkippedPrincipal(f"arn:aws:iam::{ACCOUNT_ID}:user/u{i}", PrincipalType.USER, SkipReason.TIMEOUT)
            for i in range(4)
        ]
        mock_analyzer.return_value.run.return_value = AnalysisResult(skipped=skipped, analyzed_count=2)

        result = runner.invoke(cli, ["-o", str(tmp_path / "findings.json"), "--lang", "en"])

        assert result.exit_code == EXIT_OK
        assert "Skipped principals" in result.output
        assert "Timeout" in result.output
        assert "(+1)" in result.output

    def test_cancelled_run(self, runner, mock_provider, mock_client, mock_analyzer, tmp_path):
        mock_analyzer.return_value.run.return_value = AnalysisResult(
            findings=[stale_finding()],
            status=RunStatus.CANCELLED,
        )
        output = tmp_path / "findings.json"

        result = runner.invoke(cli, ["-o", str(output)])

        assert result.exit_code == EXIT_CANCELLED
        assert not output.exists()

    def test_cancel_event_shared_with_analyzer(self, runner, mock_provider, mock_client, mock_analyzer, tmp_path):
        runner.invoke(cli, ["-o", str(tmp_path / "findings.json")])

        kwargs = mock_analyzer.call_args.kwargs
        assert kwargs["cancel_event"].is_set() is False
        assert callable(kwargs["on_progress"])
