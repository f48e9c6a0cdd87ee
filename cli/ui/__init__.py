# cli/ui - 콘솔 UI 컴포넌트 (rich)
"""
콘솔 UI 모듈

CLI 전용 출력/진행 표시 컴포넌트
"""

from .console import (
    SYMBOL_ERROR,
    SYMBOL_INFO,
    SYMBOL_SUCCESS,
    SYMBOL_WARNING,
    console,
    get_console,
    print_error,
    print_header,
    print_info,
    print_success,
    print_table,
    print_warning,
    setup_logging,
)
from .progress import ParallelTracker, parallel_progress

__all__: list[str] = [
    "console",
    "get_console",
    "setup_logging",
    "print_success",
    "print_error",
    "print_warning",
    "print_info",
    "print_header",
    "print_table",
    "SYMBOL_SUCCESS",
    "SYMBOL_ERROR",
    "SYMBOL_WARNING",
    "SYMBOL_INFO",
    "ParallelTracker",
    "parallel_progress",
]
