"""
cli/i18n/messages/analyzer.py - Unused Access Analyzer Messages

Contains translations for the analysis run: authentication, progress,
summary and fatal errors.
"""

from __future__ import annotations

ANALYZER_MESSAGES = {
    # =========================================================================
    # Start / Authentication
    # =========================================================================
    "title": {
        "ko": "IAM 미사용 액세스 분석",
        "en": "IAM Unused Access Analysis",
    },
    "authenticating": {
        "ko": "자격 증명 확인 중...",
        "en": "Verifying credentials...",
    },
    "authenticated": {
        "ko": "계정 {account} ({identity}) / 리전 {region}",
        "en": "Account {account} ({identity}) / region {region}",
    },
    "credential_source_static": {
        "ko": "CLI 인자 자격 증명 사용",
        "en": "Using credentials from CLI arguments",
    },
    "credential_source_default": {
        "ko": "기본 자격 증명 체인 사용 (환경변수/프로파일)",
        "en": "Using default credential chain (environment/profile)",
    },
    "config_summary": {
        "ko": "기준 {days}일, 동시 작업 {workers}개, 세분도 {granularity}",
        "en": "Threshold {days} days, {workers} workers, granularity {granularity}",
    },
    # =========================================================================
    # Progress
    # =========================================================================
    "progress": {
        "ko": "Principal 분석",
        "en": "Analyzing principals",
    },
    "ctrl_c_hint": {
        "ko": "Ctrl+C: 취소",
        "en": "Ctrl+C: Cancel",
    },
    "cancel_requested": {
        "ko": "취소 요청됨 - 진행 중인 작업을 마무리하는 중...",
        "en": "Cancellation requested - finishing in-flight work...",
    },
    # =========================================================================
    # Summary
    # =========================================================================
    "summary": {
        "ko": "분석 {analyzed}개, 스킵 {skipped}개, 제외 {filtered}개, Finding {findings}개 ({seconds:.1f}초)",
        "en": "Analyzed {analyzed}, skipped {skipped}, excluded {filtered}, {findings} findings ({seconds:.1f}s)",
    },
    "output_written": {
        "ko": "결과 저장: {path}",
        "en": "Results written: {path}",
    },
    "skipped_title": {
        "ko": "스킵된 Principal",
        "en": "Skipped principals",
    },
    "col_reason": {
        "ko": "사유",
        "en": "Reason",
    },
    "col_count": {
        "ko": "건수",
        "en": "Count",
    },
    "col_examples": {
        "ko": "예시",
        "en": "Examples",
    },
    # =========================================================================
    # Abort
    # =========================================================================
    "cancelled": {
        "ko": "취소됨 - 결과 파일을 작성하지 않았습니다",
        "en": "Cancelled - no output file written",
    },
    "fatal": {
        "ko": "분석 중단: {message}",
        "en": "Analysis aborted: {message}",
    },
    "write_failed": {
        "ko": "결과 파일 저장 실패: {message}",
        "en": "Failed to write output file: {message}",
    },
}
