"""
cli/i18n - CLI 메시지 다국어 지원

한국어(ko)가 기본이며 영어(en)를 선택할 수 있습니다.
언어는 CLI 시작 시 한 번 정해지며(--lang 또는 UA_LANG) 컨텍스트 변수에 보관됩니다.

메시지 키는 "namespace.key" 형식입니다:
    common.*    공통 (설정/인증 오류 등)
    cli.*       옵션 도움말
    analyzer.*  분석 진행/요약/중단 메시지

Usage:
    from cli.i18n import set_lang, t

    set_lang("en")
    t("analyzer.output_written", path="unused_findings.json")
    # "Results written: unused_findings.json"
"""

from __future__ import annotations

import logging
import os
from contextvars import ContextVar
from typing import Any

logger = logging.getLogger(__name__)

SUPPORTED_LANGS = ("ko", "en")
DEFAULT_LANG = "ko"
LANG_ENV_VAR = "UA_LANG"

_current_lang: ContextVar[str] = ContextVar("lang", default=DEFAULT_LANG)


def _normalize(lang: str | None) -> str:
    value = (lang or "").strip().lower()
    return value if value in SUPPORTED_LANGS else DEFAULT_LANG


def get_lang() -> str:
    """현재 언어"""
    return _current_lang.get()


def set_lang(lang: str | None) -> None:
    """현재 언어 설정 (지원하지 않는 값이면 기본 언어)"""
    _current_lang.set(_normalize(lang))


def lang_from_env() -> str:
    """UA_LANG 환경변수의 언어 (없거나 잘못된 값이면 기본 언어)"""
    return _normalize(os.environ.get(LANG_ENV_VAR))


def t(key: str, lang: str | None = None, **kwargs: Any) -> str:
    """메시지 번역

    Args:
        key: "namespace.key" 형식의 메시지 키
        lang: 언어 지정 (None이면 현재 언어)
        **kwargs: 메시지 포맷 인자

    Returns:
        번역된 문자열. 키가 없으면 키 자체, 해당 언어가 없으면 한국어.
        포맷 인자가 맞지 않으면 포맷하지 않은 원문을 반환합니다.
    """
    from cli.i18n.messages import MESSAGES

    entry = MESSAGES.get(key)
    if entry is None:
        return key

    text = entry.get(_normalize(lang) if lang is not None else get_lang()) or entry.get(DEFAULT_LANG, key)
    if not kwargs:
        return text

    try:
        return text.format(**kwargs)
    except (KeyError, IndexError, ValueError) as e:
        logger.debug(f"메시지 포맷 실패 [{key}]: {e}")
        return text


__all__ = [
    "t",
    "get_lang",
    "set_lang",
    "lang_from_env",
    "SUPPORTED_LANGS",
    "DEFAULT_LANG",
    "LANG_ENV_VAR",
]
