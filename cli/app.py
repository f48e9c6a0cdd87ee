"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 단일 명령 CLI입니다. 자격 증명 확인 → 분석 실행 → 결과 저장 순서로
진행하며, 결과는 종료 코드로 구분합니다.

명령어 구조:
    aws-unused-analyzer                         # 기본 자격 증명 체인, 90일 기준
    aws-unused-analyzer -u 30 -r ap-northeast-2
    aws-unused-analyzer -a AKIA... -s ****      # 정적 자격 증명
    aws-unused-analyzer -t UnusedPermission -t UnusedIamRole
    aws-unused-analyzer --version

종료 코드:
    0   성공 (Finding이 없어도 빈 배열 파일 작성)
    1   치명적 오류 (설정, 인증, Principal 조회 실패) - 파일 미작성
    130 취소 (Ctrl+C) - 파일 미작성

Usage:
    $ aws-unused-analyzer
    $ python -m cli.app
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
from collections import defaultdict
from typing import Any

import click

from analyzers.iam.unused_access import (
    AnalysisConfig,
    AnalysisResult,
    FindingType,
    Granularity,
    PollerConfig,
    UnusedAccessAnalyzer,
    write_findings,
)
from cli.i18n import lang_from_env, set_lang, t
from cli.ui import (
    console,
    parallel_progress,
    print_error,
    print_header,
    print_info,
    print_success,
    print_table,
    print_warning,
    setup_logging,
)
from core.auth import StaticCredentialsConfig, StaticCredentialsProvider
from core.config import get_env_float, get_env_int, get_version, settings
from core.exceptions import AuthError, ConfigError, EnumerationError
from core.parallel import get_client

logger = logging.getLogger(__name__)

VERSION = get_version()

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CANCELLED = 130

_GRANULARITY = {
    "service": Granularity.SERVICE_LEVEL,
    "action": Granularity.ACTION_LEVEL,
}

# 스킵 테이블에 표시할 예시 Principal 수
_SKIP_EXAMPLES = 3


# =============================================================================
# 다국어 도움말
# =============================================================================


def _requested_lang(args: list[str]) -> str:
    """파싱 전 인자에서 --lang 값을 읽음 (없으면 UA_LANG)"""
    for index, arg in enumerate(args):
        if arg == "--lang" and index + 1 < len(args):
            return args[index + 1]
        if arg.startswith("--lang="):
            return arg.split("=", 1)[1]
    return lang_from_env()


class _LocalizedHelp:
    """help에 메시지 키를 저장하고, 읽을 때 현재 언어로 번역"""

    _help_key: str | None = None

    @property
    def help(self) -> str | None:
        return t(self._help_key) if self._help_key else None

    @help.setter
    def help(self, value: str | None) -> None:
        self._help_key = value


class LocalizedCommand(_LocalizedHelp, click.Command):
    """도움말을 출력 시점의 언어로 번역하는 Click 명령

    make_context에서 --lang(없으면 UA_LANG)을 먼저 적용하므로
    --help 출력도 선택한 언어를 따릅니다.
    """

    def make_context(
        self,
        info_name: str | None,
        args: list[str],
        parent: click.Context | None = None,
        **extra: Any,
    ) -> click.Context:
        set_lang(_requested_lang(args))
        return super().make_context(info_name, args, parent=parent, **extra)


class LocalizedOption(_LocalizedHelp, click.Option):
    pass


def localized_option(*param_decls: str, **attrs: Any) -> Any:
    return click.option(*param_decls, cls=LocalizedOption, **attrs)


@click.command(
    name="aws-unused-analyzer",
    cls=LocalizedCommand,
    help="cli.app_help",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@localized_option("-r", "--region", default=None, help="cli.region_help")
@localized_option("-a", "--access-key", "access_key", default=None, help="cli.access_key_help")
@localized_option("-s", "--secret-key", "secret_key", default=None, help="cli.secret_key_help")
@localized_option(
    "-u",
    "--unused-access-age",
    "unused_access_age",
    type=click.IntRange(min=0),
    default=settings.DEFAULT_UNUSED_ACCESS_AGE_DAYS,
    show_default=True,
    help="cli.age_help",
)
@localized_option(
    "-c",
    "--concurrency",
    type=click.IntRange(1, 100),
    default=lambda: get_env_int("UA_MAX_WORKERS", settings.DEFAULT_MAX_WORKERS),
    help="cli.concurrency_help",
)
@localized_option(
    "-g",
    "--granularity",
    type=click.Choice(list(_GRANULARITY), case_sensitive=False),
    default="service",
    show_default=True,
    help="cli.granularity_help",
)
@localized_option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False),
    default=settings.OUTPUT_FILENAME,
    show_default=True,
    help="cli.output_help",
)
@localized_option(
    "--job-timeout",
    "job_timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=lambda: get_env_float("UA_JOB_TIMEOUT", settings.JOB_TIMEOUT_SECONDS),
    help="cli.job_timeout_help",
)
@localized_option(
    "-t",
    "--finding-type",
    "finding_types",
    multiple=True,
    type=click.Choice([ft.value for ft in FindingType], case_sensitive=False),
    help="cli.finding_type_help",
)
@localized_option("--skip-recent", is_flag=True, default=False, help="cli.skip_recent_help")
@localized_option(
    "--exclude-service-linked",
    "exclude_service_linked",
    is_flag=True,
    default=False,
    help="cli.exclude_service_linked_help",
)
@localized_option("--lang", type=click.Choice(["ko", "en"]), default=lang_from_env, help="cli.lang_help")
@localized_option("-v", "--verbose", is_flag=True, default=False, help="cli.verbose_help")
@click.version_option(version=VERSION, prog_name="aws-unused-analyzer")
def cli(
    region: str | None,
    access_key: str | None,
    secret_key: str | None,
    unused_access_age: int,
    concurrency: int,
    granularity: str,
    output: str,
    job_timeout: float,
    finding_types: tuple[str, ...],
    skip_recent: bool,
    exclude_service_linked: bool,
    lang: str,
    verbose: bool,
) -> None:
    set_lang(lang)
    setup_logging(verbose)

    exit_code = run_analysis(
        region=region,
        access_key=access_key,
        secret_key=secret_key,
        unused_access_age=unused_access_age,
        concurrency=concurrency,
        granularity=_GRANULARITY[granularity.lower()],
        output=output,
        job_timeout=job_timeout,
        finding_types=finding_types,
        skip_recent=skip_recent,
        exclude_service_linked=exclude_service_linked,
    )
    sys.exit(exit_code)


# =============================================================================
# 실행 흐름
# =============================================================================


def run_analysis(
    *,
    region: str | None,
    access_key: str | None,
    secret_key: str | None,
    unused_access_age: int,
    concurrency: int,
    granularity: Granularity,
    output: str,
    job_timeout: float,
    finding_types: tuple[str, ...],
    skip_recent: bool,
    exclude_service_linked: bool,
) -> int:
    """인증 → 분석 → 저장

    Returns:
        프로세스 종료 코드
    """
    print_header(t("analyzer.title"))

    # 1. 설정/자격 증명
    try:
        cred_config = StaticCredentialsConfig.from_cli(access_key, secret_key, region)
        types = {FindingType.from_value(value) for value in finding_types} or None
        poller = PollerConfig(
            poll_interval=get_env_float("UA_POLL_INTERVAL", settings.POLL_INTERVAL_SECONDS),
            job_timeout=job_timeout,
        )
    except ConfigError as e:
        print_error(t("common.config_error", message=e.message))
        return EXIT_FATAL

    source = "credential_source_static" if cred_config.uses_explicit_keys else "credential_source_default"
    print_info(t(f"analyzer.{source}"))

    provider = StaticCredentialsProvider(cred_config)
    try:
        with console.status(t("analyzer.authenticating")):
            identity = provider.authenticate()
    except ConfigError as e:
        print_error(t("common.config_error", message=e.message))
        return EXIT_FATAL
    except AuthError as e:
        print_error(t("common.auth_failed", message=e.message))
        return EXIT_FATAL

    print_success(
        t(
            "analyzer.authenticated",
            account=identity.account_id,
            identity=identity.display_name,
            region=cred_config.region,
        )
    )

    # 2. 분석 설정
    try:
        config = AnalysisConfig.create(
            cred_config.region,
            unused_access_age,
            finding_types=types,
            owner_account=identity.account_id,
            granularity=granularity,
            max_workers=concurrency,
            skip_recently_created=skip_recent,
            exclude_service_linked_roles=exclude_service_linked,
            poller=poller,
        )
    except ConfigError as e:
        print_error(t("common.config_error", message=e.message))
        return EXIT_FATAL

    print_info(
        t(
            "analyzer.config_summary",
            days=unused_access_age,
            workers=config.max_workers,
            granularity=granularity.value,
        )
    )

    iam = get_client(
        provider.get_session(),
        "iam",
        region_name=config.region,
        max_pool_connections=config.max_workers + 5,
    )

    # 3. 분석 실행
    cancel_event = threading.Event()
    previous_handler = _install_sigint_handler(cancel_event)
    console.print(f"[dim]{t('analyzer.ctrl_c_hint')}[/dim]")

    try:
        with parallel_progress(t("analyzer.progress")) as tracker:
            analyzer = UnusedAccessAnalyzer(
                iam,
                config,
                cancel_event=cancel_event,
                on_progress=tracker.on_outcome,
            )
            result = analyzer.run()
    except (EnumerationError, AuthError) as e:
        print_error(t("analyzer.fatal", message=e.message))
        return EXIT_FATAL
    finally:
        _restore_sigint_handler(previous_handler)

    if result.is_cancelled:
        print_warning(t("analyzer.cancelled"))
        return EXIT_CANCELLED

    # 4. 저장
    try:
        path = write_findings(result.findings, output)
    except OSError as e:
        print_error(t("analyzer.write_failed", message=str(e)))
        return EXIT_FATAL

    _print_summary(result)
    print_success(t("analyzer.output_written", path=path))
    return EXIT_OK


def _install_sigint_handler(cancel_event: threading.Event) -> Any:
    """SIGINT → 취소 신호 (메인 스레드에서만 설치 가능)"""
    if threading.current_thread() is not threading.main_thread():
        return None

    def _handler(signum: int, frame: Any) -> None:
        if not cancel_event.is_set():
            cancel_event.set()
            console.print(f"[yellow]{t('analyzer.cancel_requested')}[/yellow]")

    return signal.signal(signal.SIGINT, _handler)


def _restore_sigint_handler(previous: Any) -> None:
    if previous is not None:
        signal.signal(signal.SIGINT, previous)


def _print_summary(result: AnalysisResult) -> None:
    console.print()
    print_info(
        t(
            "analyzer.summary",
            analyzed=result.analyzed_count,
            skipped=result.skipped_count,
            filtered=result.filtered_count,
            findings=len(result.findings),
            seconds=result.duration_seconds,
        )
    )

    if not result.skipped:
        return

    examples: dict[str, list[str]] = defaultdict(list)
    for skipped in result.skipped:
        examples[skipped.reason.value].append(skipped.arn)

    rows = []
    for reason, count in sorted(result.summary_by_reason().items(), key=lambda item: (-item[1], item[0].value)):
        arns = examples[reason.value]
        sample = ", ".join(arn.rsplit("/", 1)[-1] for arn in arns[:_SKIP_EXAMPLES])
        if len(arns) > _SKIP_EXAMPLES:
            sample += f" (+{len(arns) - _SKIP_EXAMPLES})"
        rows.append([reason.value, count, sample])

    print_table(
        t("analyzer.skipped_title"),
        [t("analyzer.col_reason"), t("analyzer.col_count"), t("analyzer.col_examples")],
        rows,
    )


if __name__ == "__main__":
    cli()
