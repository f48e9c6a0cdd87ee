# tests/cli/test_progress.py
"""
cli/ui/progress 모듈 단위 테스트

병렬 분석 진행 추적기 (ParallelTracker, parallel_progress)
"""

import io
from concurrent.futures import ThreadPoolExecutor

from rich.console import Console
from rich.progress import Progress

from analyzers.iam.unused_access.types import PrincipalOutcome, PrincipalType, SkippedPrincipal, TaskState
from cli.ui.progress import ParallelTracker, SuccessFailColumn, parallel_progress
from conftest import make_principal
from core.exceptions import SkipReason


def quiet_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False)


# =============================================================================
# ParallelTracker 테스트
# =============================================================================


class TestParallelTracker:
    """ParallelTracker 단위 테스트"""

    def test_initial_stats(self):
        with Progress(console=quiet_console()) as progress:
            tracker = ParallelTracker(progress, progress.add_task("test", total=None))

            assert tracker.stats == (0, 0)

    def test_on_complete_updates_progress(self):
        with Progress(console=quiet_console()) as progress:
            task_id = progress.add_task("test", total=None)
            tracker = ParallelTracker(progress, task_id)

            tracker.on_complete(True)
            tracker.on_complete(True)
            tracker.on_complete(False)

            assert tracker.stats == (2, 1)
            assert progress.tasks[0].completed == 3

    def test_on_outcome(self):
        principal = make_principal()
        built = PrincipalOutcome(principal=principal, state=TaskState.BUILT)
        skipped = PrincipalOutcome(
            principal=principal,
            state=TaskState.SKIPPED,
            skipped=SkippedPrincipal(principal.arn, PrincipalType.USER, SkipReason.TIMEOUT),
        )

        with Progress(console=quiet_console()) as progress:
            tracker = ParallelTracker(progress, progress.add_task("test", total=None))
            tracker.on_outcome(built)
            tracker.on_outcome(skipped)

            assert tracker.stats == (1, 1)

    def test_thread_safety(self):
        """워커 스레드에서 동시 호출"""
        with Progress(console=quiet_console()) as progress:
            tracker = ParallelTracker(progress, progress.add_task("test", total=None))

            with ThreadPoolExecutor(max_workers=8) as pool:
                list(pool.map(lambda i: tracker.on_complete(i % 4 != 0), range(400)))

            assert tracker.stats == (300, 100)


# =============================================================================
# SuccessFailColumn 테스트
# =============================================================================


class TestSuccessFailColumn:
    def test_render(self):
        with Progress(console=quiet_console()) as progress:
            task_id = progress.add_task("test", total=None)
            tracker = ParallelTracker(progress, task_id)
            tracker.on_complete(True)
            tracker.on_complete(False)

            text = SuccessFailColumn(tracker).render(progress.tasks[0])

            assert text.plain == "1✓ 1✗"


# =============================================================================
# parallel_progress 테스트
# =============================================================================


class TestParallelProgress:
    def test_yields_tracker(self):
        with parallel_progress("Principal 분석", console=quiet_console()) as tracker:
            tracker.on_complete(True)

        assert isinstance(tracker, ParallelTracker)
        assert tracker.stats == (1, 0)
