"""
core/parallel/executor.py - 백프레셔 병렬 실행기

지연(lazy) 생성기에서 작업 항목을 하나씩 꺼내 ThreadPoolExecutor에서 처리합니다.
동시 실행 중인 작업이 max_workers에 도달하면 생성기를 더 진행하지 않으므로,
페이지 단위 목록 조회처럼 느린 생산자와 함께 써도 메모리가 늘어나지 않습니다.

주요 구성 요소:
- ParallelConfig: 병렬 실행 설정 (워커 수)
- BoundedParallelExecutor: 취소 가능한 제한 병렬 실행기

Example:
    from core.parallel import BoundedParallelExecutor, ParallelConfig

    executor = BoundedParallelExecutor(ParallelConfig(max_workers=10), cancel_event)
    result = executor.execute(
        enumerator.enumerate(),
        analyze_principal,
        key=lambda p: p.arn,
    )
    print(f"성공: {result.success_count}, 실패: {result.error_count}")
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TypeVar

from .decorators import categorize_error, get_error_code
from .types import ParallelExecutionResult, TaskError, TaskResult

logger = logging.getLogger(__name__)

T = TypeVar("T")
I = TypeVar("I")  # noqa: E741

# 포화 상태에서 취소 신호를 확인하는 간격 (초)
_ADMIT_CHECK_INTERVAL = 0.1


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 작업 수 (1~100)
    """

    max_workers: int = 10

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > 100:
            self.max_workers = 100


class BoundedParallelExecutor:
    """제한 병렬 실행기

    특징:
    - 생산자(iterable)는 단일 스레드에서 순차적으로 소비
    - 세마포어로 in-flight 작업 수 제한 (포화 시 생산자 일시 정지)
    - cancel_event 설정 시 신규 작업 투입 중단, 실행 중인 작업은 완료까지 대기
    - 생산자 예외는 실행 중인 작업을 모두 마친 뒤 다시 발생
    - 작업 함수의 예외는 실패 TaskResult로 변환

    Example:
        executor = BoundedParallelExecutor(ParallelConfig(max_workers=5))
        result = executor.execute(items, process, key=str)
    """

    def __init__(
        self,
        config: ParallelConfig | None = None,
        cancel_event: threading.Event | None = None,
    ):
        """초기화

        Args:
            config: 병렬 실행 설정 (None이면 기본값)
            cancel_event: 공유 취소 신호 (None이면 내부 생성)
        """
        self.config = config or ParallelConfig()
        self.cancel_event = cancel_event or threading.Event()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def execute(
        self,
        items: Iterable[I],
        func: Callable[[I], T],
        key: Callable[[I], str] = str,
        on_complete: Callable[[TaskResult[T]], None] | None = None,
    ) -> ParallelExecutionResult[T]:
        """항목별로 func를 병렬 실행

        Args:
            items: 작업 항목 (지연 생성기 가능)
            func: 항목 하나를 처리하는 함수 (워커 스레드에서 호출)
            key: 항목 식별자 함수 (TaskResult.identifier)
            on_complete: 작업 완료 콜백 (워커 스레드에서 호출, 스레드 세이프해야 함)

        Returns:
            ParallelExecutionResult[T]: 완료된 작업 결과 (순서 보장 없음)

        Raises:
            생산자(items) 순회 중 발생한 예외 (실행 중 작업 완료 후)
        """
        max_workers = self.config.max_workers
        slots = threading.BoundedSemaphore(max_workers)
        futures: dict[Future[TaskResult[T]], str] = {}
        producer_error: BaseException | None = None
        admitted = 0
        start_time = time.monotonic()

        logger.debug(f"병렬 실행 시작: max_workers={max_workers}")

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            iterator = iter(items)
            while not self.cancelled:
                # 빈 슬롯이 생길 때까지 생산자를 진행하지 않음
                if not self._wait_for_slot(slots):
                    break

                try:
                    item = next(iterator)
                except StopIteration:
                    slots.release()
                    break
                except Exception as e:
                    slots.release()
                    producer_error = e
                    logger.debug(f"생산자 예외 발생, 실행 중 작업 {len(futures)}개 완료 대기: {e}")
                    break

                identifier = key(item)
                future = executor.submit(self._execute_single, func, item, identifier)
                future.add_done_callback(lambda _f: slots.release())
                if on_complete is not None:
                    future.add_done_callback(lambda f: on_complete(f.result()))
                futures[future] = identifier
                admitted += 1

            if self.cancelled:
                logger.info(f"취소 요청: 신규 작업 투입 중단 (실행 중 {sum(not f.done() for f in futures)}개 대기)")

        results: list[TaskResult[T]] = [future.result() for future in as_completed(futures)]

        if producer_error is not None:
            raise producer_error

        exec_result = ParallelExecutionResult(results=results)
        total_time = (time.monotonic() - start_time) * 1000
        logger.debug(
            f"병렬 실행 완료: 투입 {admitted}, 완료 {exec_result.total_count}, 성공 {exec_result.success_count}, "
            f"실패 {exec_result.error_count}, 총 {total_time:.0f}ms"
        )
        return exec_result

    def _wait_for_slot(self, slots: threading.BoundedSemaphore) -> bool:
        """슬롯 확보 (취소되면 False)"""
        while not slots.acquire(timeout=_ADMIT_CHECK_INTERVAL):
            if self.cancelled:
                return False
        if self.cancelled:
            slots.release()
            return False
        return True

    def _execute_single(self, func: Callable[[I], T], item: I, identifier: str) -> TaskResult[T]:
        """단일 작업 실행 (워커 스레드 내에서 호출)"""
        start_time = time.monotonic()
        try:
            data = func(item)
            return TaskResult(
                identifier=identifier,
                success=True,
                data=data,
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
        except Exception as e:
            logger.error(f"작업 실행 중 예외 [{identifier}]: {e}")
            _clear_exception_chain(e)
            return TaskResult(
                identifier=identifier,
                success=False,
                error=TaskError(
                    identifier=identifier,
                    category=categorize_error(e),
                    error_code=get_error_code(e),
                    message=str(e),
                    original_exception=e,
                ),
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
