"""
cli/ui/progress.py - 병렬 분석 진행 표시

총 작업 수를 미리 알 수 없는(Principal을 지연 열거하는) 병렬 분석을 위한
스레드 세이프 진행 추적기입니다.

Example:
    with parallel_progress("Principal 분석") as tracker:
        result = analyzer.run()  # on_progress=tracker.on_outcome

    success, skipped = tracker.stats
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.progress import Progress, ProgressColumn, SpinnerColumn, Task, TaskID, TextColumn, TimeElapsedColumn
from rich.text import Text

from .console import console as default_console

if TYPE_CHECKING:
    from rich.console import Console

    from analyzers.iam.unused_access.types import PrincipalOutcome


class SuccessFailColumn(ProgressColumn):
    """성공/스킵 건수 컬럼: '40✓ 2✗'"""

    def __init__(self, tracker: ParallelTracker) -> None:
        super().__init__()
        self._tracker = tracker

    def render(self, task: Task) -> Text:
        success, failed = self._tracker.stats
        text = Text()
        text.append(f"{success}", style="green")
        text.append("✓ ", style="green")
        text.append(f"{failed}", style="red")
        text.append("✗", style="red")
        return text


class ParallelTracker:
    """스레드 세이프 병렬 진행 추적기

    워커 스레드에서 on_complete()/on_outcome()을 호출해도 안전합니다.
    """

    def __init__(self, progress: Progress, task_id: TaskID) -> None:
        self._progress = progress
        self._task_id = task_id
        self._lock = threading.Lock()
        self._success = 0
        self._failed = 0

    def on_complete(self, success: bool) -> None:
        with self._lock:
            if success:
                self._success += 1
            else:
                self._failed += 1
            completed = self._success + self._failed
        self._progress.update(self._task_id, completed=completed)

    def on_outcome(self, outcome: PrincipalOutcome) -> None:
        """Principal 작업 결과 기록 (UnusedAccessAnalyzer.on_progress 콜백)"""
        self.on_complete(outcome.skipped is None)

    @property
    def stats(self) -> tuple[int, int]:
        """(성공, 실패) 건수"""
        with self._lock:
            return (self._success, self._failed)


@contextmanager
def parallel_progress(
    description: str,
    console: Console | None = None,
) -> Generator[ParallelTracker, None, None]:
    """병렬 작업 진행 표시 컨텍스트

    Args:
        description: 진행 바 설명
        console: 출력 콘솔 (None이면 전역 콘솔)
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("{task.completed}"),
        TimeElapsedColumn(),
        console=console or default_console,
        transient=True,
    )
    task_id = progress.add_task(description, total=None)
    tracker = ParallelTracker(progress, task_id)
    progress.columns = (*progress.columns, SuccessFailColumn(tracker))

    with progress:
        yield tracker
