"""
cli/i18n/messages/common.py - Common Messages

Contains translations shared across commands.
"""

from __future__ import annotations

COMMON_MESSAGES = {
    "version": {
        "ko": "버전",
        "en": "Version",
    },
    "done": {
        "ko": "완료",
        "en": "Done",
    },
    "error": {
        "ko": "오류",
        "en": "Error",
    },
    "config_error": {
        "ko": "설정 오류: {message}",
        "en": "Configuration error: {message}",
    },
    "auth_failed": {
        "ko": "인증 실패: {message}",
        "en": "Authentication failed: {message}",
    },
}
