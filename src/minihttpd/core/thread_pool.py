"""
=============================================================================
THREAD POOL IMPLEMENTATION
=============================================================================

A fixed set of worker threads pulling tasks from one shared queue. The
accept loop is the only producer: every accepted connection becomes one
task, so at most `num_workers` connections are served at the same time.

=============================================================================
THREAD POOL ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           ThreadPool                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   execute(fn, *args) ──► ┌───┬───┬───┬───┬───┐  (bounded queue,     │
    │                          │ T │ T │ T │   │   │   blocks when full)  │
    │                          └─┬─┴───┴───┴───┴───┘                      │
    │                            │  get()                                 │
    │            ┌───────────────┼───────────────┬───────────────┐        │
    │            ▼               ▼               ▼               ▼        │
    │       ┌─────────┐     ┌─────────┐     ┌─────────┐     ┌─────────┐   │
    │       │Worker-0 │     │Worker-1 │     │Worker-2 │     │Worker-3 │   │
    │       └─────────┘     └─────────┘     └─────────┘     └─────────┘   │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WORKER LIFECYCLE
=============================================================================

    def run(self):
        while not shutdown:
            task = queue.get()      ← BLOCKS until a task is available
            if task is None:        ← stop sentinel
                break
            execute(task)           ← exceptions are logged, never fatal
            queue.task_done()

Shutdown puts one None sentinel per worker on the queue; each worker
consumes exactly one and exits. With wait=True the sentinels are queued
only after every pending task has completed.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states, for monitoring."""

    IDLE = "idle"        # Waiting for a task
    BUSY = "busy"        # Executing a task
    STOPPED = "stopped"  # Thread exited


@dataclass
class Task:
    """A deferred call: `func(*args, **kwargs)`."""

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.monotonic)

    def __call__(self) -> Any:
        return self.func(*self.args, **self.kwargs)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the shared queue.

    A task that raises is logged with its traceback and counted in
    `tasks_failed`; the worker then takes the next task.
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int, poll_interval: float = 1.0):
        """
        Args:
            task_queue: Queue to pull tasks from.
            worker_id: Identifier used in the thread name and logs.
            poll_interval: Seconds between checks of the stop flag while idle.
        """
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.poll_interval = poll_interval

        self.state = WorkerState.IDLE
        self._stop_event = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._stop_event.is_set():
            try:
                task = self.task_queue.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.monotonic()

        try:
            task()
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in "
                f"{time.monotonic() - start_time:.3f}s"
            )
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(
                f"Worker {self.worker_id} task failed after "
                f"{time.monotonic() - start_time:.3f}s: {e}"
            )
        finally:
            self.state = WorkerState.IDLE

    def stop(self):
        """Ask the worker to exit after its current task."""
        self._stop_event.set()


class ThreadPool:
    """
    Fixed-size thread pool.

    Usage:
        pool = ThreadPool(num_workers=4)
        pool.start()
        pool.execute(handle_connection, conn)
        pool.shutdown()

    Or as a context manager, which shuts down gracefully on exit:

        with ThreadPool(num_workers=4) as pool:
            pool.execute(work, 42)
    """

    def __init__(self, num_workers: int = 4, queue_size: int = 100, poll_interval: float = 1.0):
        """
        Args:
            num_workers: Number of worker threads, created by start().
            queue_size: Maximum number of waiting tasks. execute() blocks
                        while the queue is full. 0 means unbounded.
            poll_interval: Seconds idle workers wait before re-checking
                           for shutdown.

        Raises:
            ValueError: If num_workers < 1 or queue_size < 0.
        """
        if num_workers < 1:
            raise ValueError("num_workers must be >= 1")
        if queue_size < 0:
            raise ValueError("queue_size must be >= 0")

        self.size = num_workers
        self.max_queue_size = queue_size
        self.poll_interval = poll_interval

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutting_down = False

    def __repr__(self) -> str:
        return (
            f"ThreadPool(num_workers={self.size}, queue_size={self.max_queue_size}, "
            f"started={self._started})"
        )

    def start(self) -> "ThreadPool":
        """Create and start the worker threads. Calling it twice is a no-op."""
        with self._lock:
            if self._started:
                return self

            logger.info(f"Starting thread pool with {self.size} workers")
            self._workers = []
            for worker_id in range(self.size):
                worker = Worker(self._task_queue, worker_id, self.poll_interval)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutting_down = False
        return self

    def execute(self, func: Callable[..., Any], *args, **kwargs) -> None:
        """
        Queue `func(*args, **kwargs)` for execution by some worker.

        Returns as soon as the task is queued; blocks only while the queue
        is full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutting_down:
            raise RuntimeError("Thread pool is shutting down")

        self._task_queue.put(Task(func=func, args=args, kwargs=kwargs))

    submit = execute

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop the pool.

        Args:
            wait: Run every already-queued task before stopping. If False,
                  tasks still in the queue are abandoned.
            timeout: Upper bound in seconds on waiting for queued tasks.
                     None waits as long as it takes.
        """
        with self._lock:
            if not self._started or self._shutting_down:
                return
            self._shutting_down = True

        logger.info("Shutting down thread pool...")

        if wait:
            self._wait_for_tasks(timeout)
        else:
            self._drain_queue()

        if not wait or timeout is not None:
            for worker in self._workers:
                worker.stop()

        for _ in self._workers:
            try:
                self._task_queue.put(None, timeout=self.poll_interval)
            except queue.Full:
                logger.debug("Task queue full, worker will stop on its next poll")

        for worker in self._workers:
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning(f"{worker.name} did not stop in time")

        with self._lock:
            self._started = False

        logger.info("Thread pool shutdown complete")

    def _wait_for_tasks(self, timeout: Optional[float]) -> bool:
        """Block until every queued task is done, or until `timeout`."""
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._task_queue.all_tasks_done:
            while self._task_queue.unfinished_tasks:
                if deadline is None:
                    self._task_queue.all_tasks_done.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning("Shutdown timeout, abandoning queued tasks")
                    return False
                self._task_queue.all_tasks_done.wait(remaining)
        return True

    def _drain_queue(self) -> int:
        dropped = 0
        while True:
            try:
                self._task_queue.get_nowait()
            except queue.Empty:
                break
            self._task_queue.task_done()
            dropped += 1
        if dropped:
            logger.warning(f"Abandoned {dropped} queued tasks")
        return dropped

    def __enter__(self) -> "ThreadPool":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
        return False

    # ─────────────────────────────────────────────────────────────────────
    # MONITORING
    # ─────────────────────────────────────────────────────────────────────

    @property
    def num_workers(self) -> int:
        """Number of live worker threads."""
        return sum(1 for w in self._workers if w.is_alive())

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def pending_tasks(self) -> int:
        """Tasks queued but not yet picked up by a worker."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts, for logs and debugging."""
        return {
            "workers": {
                "total": len(self._workers),
                "alive": self.num_workers,
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self.pending_tasks,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
