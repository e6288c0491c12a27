"""Fixed-size pool of worker threads for calculation tasks."""

from __future__ import annotations

import threading
from collections import deque
from typing import Callable, Deque, List

from .logger import LogLevel, log

Task = Callable[[], None]


class ThreadPool:
    """Runs submitted tasks on a fixed number of worker threads.

    Tasks are taken in submission order.  On shutdown the workers finish every
    task already queued before they exit.
    """

    def __init__(self, thread_amount: int = 4) -> None:
        if thread_amount < 0:
            raise ValueError("thread amount must not be negative")
        self._tasks: Deque[Task] = deque()
        self._cond = threading.Condition()
        self._stopping = False
        self._threads: List[threading.Thread] = [
            threading.Thread(target=self._work, name=f"taotu-worker-{i}", daemon=True)
            for i in range(thread_amount)
        ]
        for thread in self._threads:
            thread.start()

    def _work(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._stopping or bool(self._tasks))
                if not self._tasks:
                    return
                task = self._tasks.popleft()
            try:
                task()
            except Exception as exc:
                log(LogLevel.ERROR, "A calculation task failed: %r!!!", exc)

    def add_task(self, task: Task) -> None:
        """Queue ``task`` for a worker; refused once the pool is shutting down."""
        with self._cond:
            if self._stopping:
                raise RuntimeError("fail to add a task into the calculation thread pool")
            self._tasks.append(task)
            self._cond.notify()

    def shutdown(self) -> None:
        """Let the workers drain the queue, then wait for them to exit."""
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join()

    def __enter__(self) -> "ThreadPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()