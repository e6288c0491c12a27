"""Asynchronous file logger that alternates between two log files."""

from __future__ import annotations

import atexit
import queue
import threading
import time
from enum import IntEnum
from pathlib import Path
from typing import IO, Optional

LOG_NAME = "log.txt"
LOG_FILE_MAX_BYTES = 1024 * 1024 * 1024
STANDARD_LOG_FILE_BYTES = LOG_FILE_MAX_BYTES // 2
LOG_BUFFER_SIZE = 1024 * 1024 * 16

_STOP = object()


class LogLevel(IntEnum):
    """Severity of a log record."""

    DEBUG = 0
    WARN = 1
    ERROR = 2

    @property
    def prefix(self) -> str:
        return f"Log({self.name.capitalize()}): "


class Logger:
    """Buffers records in memory and writes them to disk on a background thread.

    When the current file has reached ``file_byte_limit`` bytes, writing moves
    on to the next file; only two rotated files (``n0_`` and ``n1_`` prefixed)
    are used in turn.  Records are dropped when the buffer is full.
    """

    file_byte_limit: int = STANDARD_LOG_FILE_BYTES
    buffer_size: int = LOG_BUFFER_SIZE

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._time_lock = threading.Lock()
        self._started = False
        self._queue: Optional[queue.Queue] = None
        self._thread: Optional[threading.Thread] = None
        self._file: Optional[IO[bytes]] = None
        self._path: Optional[Path] = None
        self._file_bytes = 0
        self._file_seq = 0
        self._time_sec = 0
        self._time_str = ""

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def path(self) -> Optional[Path]:
        """Base path of the log (rotated files are named after it)."""
        return self._path

    def _rotated_path(self) -> Path:
        assert self._path is not None
        return self._path.with_name(f"n{self._file_seq & 1}_{self._path.name}")

    def _write_header(self) -> None:
        assert self._file is not None
        self._file.write(f"Current file sequence: {self._file_seq}\n".encode())

    def start(self, log_file_name: str = LOG_NAME) -> None:
        """Open the log file and start the writer thread (no-op if running)."""
        with self._lock:
            if not self._started:
                self._file_seq = 0
                self._file_bytes = 0
                handle = None
                if log_file_name:
                    self._path = Path(log_file_name)
                    try:
                        handle = self._path.open("wb")
                    except OSError:
                        handle = None
                if handle is None:
                    self._path = Path(LOG_NAME)
                    handle = self._rotated_path().open("wb")
                self._file = handle
                self._write_header()
                self._file.flush()
                self._queue = queue.Queue(maxsize=max(self.buffer_size - 1, 1))
                self._thread = threading.Thread(
                    target=self._write_down, args=(self._queue,), daemon=True
                )
                self._started = True
                self._thread.start()
        self._timestamp()

    def end(self) -> None:
        """Write out every buffered record, stop the writer and close the file."""
        with self._lock:
            if not self._started:
                return
            assert self._queue is not None and self._thread is not None
            self._queue.put(_STOP)
            self._thread.join()
            if self._file is not None:
                self._file.close()
            self._file = None
            self._queue = None
            self._thread = None
            self._started = False

    def record(self, level: LogLevel, message: str, *args: object) -> None:
        """Queue a record; ``args`` are applied to ``message`` printf-style."""
        level = LogLevel(level)
        text = message % args if args else message
        buffer = self._queue
        if buffer is None:
            raise RuntimeError("logger is not started")
        line = f"{self._timestamp()} {level.prefix}{text}\n"
        try:
            buffer.put_nowait(line)
        except queue.Full:
            # Records already on disk are worth more than new ones.
            pass

    def _timestamp(self) -> str:
        now = int(time.time())
        if now > self._time_sec:
            with self._time_lock:
                now = int(time.time())
                if now > self._time_sec:
                    self._time_sec = now
                    self._time_str = f"[ {time.asctime(time.localtime(now))} ]"
        return self._time_str

    def _write_down(self, buffer: queue.Queue) -> None:
        while True:
            batch = [buffer.get()]
            while True:
                try:
                    batch.append(buffer.get_nowait())
                except queue.Empty:
                    break
            stop = False
            for item in batch:
                if item is _STOP:
                    stop = True
                else:
                    self._write_line(item)
            assert self._file is not None
            self._file.flush()
            if stop:
                return

    def _write_line(self, line: str) -> None:
        assert self._file is not None
        if self._file_bytes >= self.file_byte_limit:
            self._file.flush()
            self._file.close()
            self._file_seq += 1
            self._file = self._rotated_path().open("wb")
            self._file_bytes = 0
            self._write_header()
        data = line.encode("utf-8", errors="replace")
        self._file.write(data)
        self._file_bytes += len(data)


_LOGGER = Logger()
atexit.register(_LOGGER.end)


def get_logger() -> Logger:
    """Return the process-wide logger."""
    return _LOGGER


def start_log(log_file_name: str = LOG_NAME) -> None:
    """Start the process-wide logger writing to ``log_file_name``."""
    _LOGGER.start(log_file_name)


def end_log() -> None:
    """Stop the process-wide logger."""
    _LOGGER.end()


def log(level: LogLevel, message: str, *args: object) -> None:
    """Record a message on the process-wide logger, starting it if needed."""
    if not _LOGGER.is_started:
        _LOGGER.start(LOG_NAME)
    _LOGGER.record(level, message, *args)