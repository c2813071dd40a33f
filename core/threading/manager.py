"""
Thread Manager for the transition compositor.

Owns a single fixed-size compute pool used for row-partitioned pixel work
(luma wipe, separable blur). Work is strictly fork/join: a batch of
independent tasks is submitted and the caller blocks until every one has
finished.
"""
import itertools
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, Future, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.logging.logger import get_logger, is_verbose_logging, is_perf_metrics_enabled

logger = get_logger(__name__)

RowRange = Tuple[int, int]

_pool_ids = itertools.count(1)


def partition_rows(total_rows: int, worker_count: int) -> List[RowRange]:
    """Split ``[0, total_rows)`` into ``worker_count`` contiguous ranges.

    Ranges are half-open ``(start, stop)`` tuples in ascending order whose
    sizes differ by at most one row. When there are fewer rows than workers
    the trailing ranges are empty ``(total_rows, total_rows)``; no range ever
    extends past the image.

    Args:
        total_rows: Number of rows to cover (negative values count as 0)
        worker_count: Number of partitions (values below 1 count as 1)

    Returns:
        List of exactly ``max(1, worker_count)`` ranges
    """
    total = max(0, int(total_rows))
    count = max(1, int(worker_count))
    base, extra = divmod(total, count)

    ranges: List[RowRange] = []
    start = 0
    for index in range(count):
        stop = start + base + (1 if index < extra else 0)
        ranges.append((start, stop))
        start = stop
    return ranges


@dataclass
class TaskResult:
    """Container for task execution results"""
    success: bool
    result: Any = None
    error: Optional[Exception] = None
    execution_time: float = 0.0
    task_id: Optional[str] = None


class Task:
    """Wrapper for executable tasks with metadata"""
    def __init__(self, func: Callable, *args, task_id: str = None, **kwargs):
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self.task_id = task_id or f"task_{id(self)}"
        self.created_at = time.time()
        self.future: Optional[Future] = None


class ThreadManager:
    """
    Fixed-size compute pool shared by the pixel processors.

    Features:
    - One ThreadPoolExecutor sized to the available hardware parallelism
    - Fork/join helper for row-partitioned work
    - Task results and submitted/completed/failed statistics
    """
    def __init__(self, max_workers: Optional[int] = None):
        """
        Initialize thread manager.

        Args:
            max_workers: Worker count; None or values below 1 use os.cpu_count()
        """
        self._shutdown = False
        cpu_count = os.cpu_count() or 1
        self._max_workers = int(max_workers) if max_workers and int(max_workers) > 0 else cpu_count

        self._lock = threading.Lock()
        self._active_tasks: Dict[str, Task] = {}
        self._stats = {'submitted': 0, 'completed': 0, 'failed': 0}
        self._task_ids = itertools.count(1)
        self._thread_prefix = f"compute_pool_{next(_pool_ids)}"

        try:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix=self._thread_prefix,
            )
        except Exception as e:
            logger.error("Failed to initialize compute pool: %s", e)
            raise RuntimeError("Failed to initialize compute thread pool") from e

        logger.info("ThreadManager initialized with COMPUTE=%d workers", self._max_workers)

    @property
    def worker_count(self) -> int:
        """Number of workers in the compute pool."""
        return self._max_workers

    @property
    def in_worker_thread(self) -> bool:
        """True when called from one of this pool's own workers."""
        return threading.current_thread().name.startswith(self._thread_prefix + "_")

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def submit_task(self, func: Callable, *args, task_id: str = None,
                    callback: Callable[[TaskResult], None] = None, **kwargs) -> Future:
        """
        Submit a task to the compute pool.

        Args:
            func: Function to execute
            *args: Positional arguments for func
            task_id: Optional unique identifier
            callback: Optional callback receiving the TaskResult
            **kwargs: Keyword arguments for func

        Returns:
            Future resolving to a TaskResult (never raises the task's error)
        """
        if self._shutdown:
            raise RuntimeError("Thread manager is shut down")

        task = Task(func, *args, task_id=task_id, **kwargs)

        def wrapped_func() -> TaskResult:
            start_time = time.perf_counter()
            try:
                result = task.func(*task.args, **task.kwargs)
                task_result = TaskResult(
                    success=True,
                    result=result,
                    execution_time=time.perf_counter() - start_time,
                    task_id=task.task_id,
                )
                self._record('completed')
            except Exception as e:
                task_result = TaskResult(
                    success=False,
                    error=e,
                    execution_time=time.perf_counter() - start_time,
                    task_id=task.task_id,
                )
                logger.error(f"Task {task.task_id} failed: {e}")
                self._record('failed')
            finally:
                with self._lock:
                    self._active_tasks.pop(task.task_id, None)

            if callback:
                try:
                    callback(task_result)
                except Exception as e:
                    logger.error(f"Callback for task {task.task_id} failed: {e}")

            return task_result

        with self._lock:
            self._active_tasks[task.task_id] = task
            self._stats['submitted'] += 1
        task.future = self._executor.submit(wrapped_func)

        if is_verbose_logging():
            logger.debug(f"Submitted task {task.task_id} to compute pool")
        return task.future

    def run_partitioned(self, func: Callable[[int, int], Any], total_rows: int,
                        label: str = "rows") -> List[TaskResult]:
        """
        Run ``func(start, stop)`` over row partitions and wait for all of them.

        Empty partitions are not submitted. The call returns only after every
        submitted task has finished; the first failure is re-raised. Called
        from one of this pool's workers, the partitions run inline on that
        worker so the batch cannot wait on itself.

        Args:
            func: Callable processing rows ``[start, stop)``
            total_rows: Number of rows to cover
            label: Short name used in task ids and logs

        Returns:
            TaskResults in partition order
        """
        ranges = [r for r in partition_rows(total_rows, self._max_workers) if r[1] > r[0]]
        if not ranges:
            return []

        start_time = time.perf_counter()
        batch = next(self._task_ids)
        if self.in_worker_thread:
            results = [self._run_inline(func, start, stop, f"{label}_{batch}_{start}_{stop}")
                       for start, stop in ranges]
        else:
            futures = [
                self.submit_task(func, start, stop, task_id=f"{label}_{batch}_{start}_{stop}")
                for start, stop in ranges
            ]
            wait(futures)
            results = [f.result() for f in futures]

        for task_result in results:
            if not task_result.success:
                raise task_result.error

        if is_verbose_logging() and is_perf_metrics_enabled():
            logger.debug(
                "[PERF] %s: %d rows in %d partitions, %.2fms",
                label, total_rows, len(ranges), (time.perf_counter() - start_time) * 1000.0,
            )
        return results

    def get_active_tasks(self) -> List[str]:
        """Get list of currently active task IDs"""
        with self._lock:
            return list(self._active_tasks.keys())

    def get_pool_stats(self) -> Dict[str, int]:
        """Get statistics for the compute pool"""
        with self._lock:
            stats = dict(self._stats)
        stats['max_workers'] = self._max_workers
        return stats

    def shutdown(self, wait: bool = True) -> None:
        """
        Shutdown the compute pool.

        Args:
            wait: Whether to wait for active tasks
        """
        if self._shutdown:
            return
        self._shutdown = True

        pending = self.get_active_tasks()
        if pending:
            logger.info("Compute pool has %d pending tasks during shutdown", len(pending))
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        with self._lock:
            self._active_tasks.clear()

        logger.info("Thread manager shut down complete")

    def _run_inline(self, func: Callable, start: int, stop: int, task_id: str) -> TaskResult:
        self._record('submitted')
        started = time.perf_counter()
        try:
            result = func(start, stop)
        except Exception as e:
            logger.error(f"Task {task_id} failed: {e}")
            self._record('failed')
            return TaskResult(False, error=e, execution_time=time.perf_counter() - started, task_id=task_id)
        self._record('completed')
        return TaskResult(True, result=result, execution_time=time.perf_counter() - started, task_id=task_id)

    def _record(self, key: str) -> None:
        with self._lock:
            self._stats[key] += 1

    def __enter__(self) -> "ThreadManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)
