"""
cli/i18n/messages/cli_commands.py - CLI Command Messages

Contains translations for CLI help text.
"""

from __future__ import annotations

CLI_MESSAGES = {
    "app_help": {
        "ko": "IAM 사용자/역할의 미사용 권한을 분석하여 unused_findings.json으로 저장합니다.",
        "en": "Analyze unused permissions of IAM users/roles and write unused_findings.json.",
    },
    "region_help": {
        "ko": "AWS 리전 (기본: AWS_REGION 환경변수 또는 us-east-1)",
        "en": "AWS region (default: AWS_REGION or us-east-1)",
    },
    "access_key_help": {
        "ko": "AWS Access Key ID (--secret-key와 함께 사용)",
        "en": "AWS access key ID (use together with --secret-key)",
    },
    "secret_key_help": {
        "ko": "AWS Secret Access Key (--access-key와 함께 사용)",
        "en": "AWS secret access key (use together with --access-key)",
    },
    "age_help": {
        "ko": "미사용 판단 기준 일수",
        "en": "Unused access age threshold in days",
    },
    "concurrency_help": {
        "ko": "동시에 분석할 Principal 수 (1~100)",
        "en": "Number of principals analyzed concurrently (1-100)",
    },
    "granularity_help": {
        "ko": "Last-accessed 보고서 세분도 (service: 서비스 단위, action: 액션 단위)",
        "en": "Last-accessed report granularity (service or action level)",
    },
    "output_help": {
        "ko": "결과 파일 경로",
        "en": "Output file path",
    },
    "job_timeout_help": {
        "ko": "보고서 작업 최대 대기 시간 (초)",
        "en": "Maximum wait per report job (seconds)",
    },
    "finding_type_help": {
        "ko": "생성할 Finding 타입 (반복 지정 가능, 기본: UnusedPermission)",
        "en": "Finding type to produce (repeatable, default: UnusedPermission)",
    },
    "skip_recent_help": {
        "ko": "기준 기간 내에 생성된 Principal 제외",
        "en": "Skip principals created within the threshold",
    },
    "exclude_service_linked_help": {
        "ko": "서비스 연결 역할(/aws-service-role/) 제외",
        "en": "Exclude service-linked roles (/aws-service-role/)",
    },
    "lang_help": {
        "ko": "출력 언어",
        "en": "Output language",
    },
    "verbose_help": {
        "ko": "상세 로그 출력",
        "en": "Verbose logging",
    },
}
