"""I/O multiplexing over the sockets of one event loop."""

from __future__ import annotations

import errno
import select
import socket
import threading
from enum import IntFlag
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .time_point import TimePoint

if TYPE_CHECKING:
    from .eventer import Eventer

INITIAL_POLL_SIZE = 16


class Events(IntFlag):
    """Readiness flags as used by poll(2) and epoll(7)."""

    NONE = 0
    IN = select.POLLIN
    PRI = select.POLLPRI
    OUT = select.POLLOUT
    ERR = select.POLLERR
    HUP = select.POLLHUP
    NVAL = select.POLLNVAL
    RDHUP = getattr(select, "POLLRDHUP", 0x2000)
    READ = IN | PRI
    WRITE = OUT


class Poller:
    """Waits for readiness of registered eventers.

    Uses epoll where the platform has it and poll otherwise.  Registrations
    made from another thread while a poll is blocking wake it up, so the
    change is seen without waiting for the timeout.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._eventers: Dict[int, "Eventer"] = {}
        self._epoll = select.epoll() if hasattr(select, "epoll") else None
        self._poll = None if self._epoll is not None else select.poll()
        self._max_events = INITIAL_POLL_SIZE
        self._wake_reader, self._wake_writer = socket.socketpair()
        self._wake_reader.setblocking(False)
        self._wake_writer.setblocking(False)
        self._polling_thread: Optional[int] = None
        self._closed = False
        self._register(self._wake_reader.fileno(), Events.IN)

    def __len__(self) -> int:
        with self._lock:
            return len(self._eventers)

    def __enter__(self) -> "Poller":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("poller is closed")

    def _register(self, fd: int, events: int) -> None:
        if self._epoll is not None:
            self._epoll.register(fd, int(events))
        else:
            assert self._poll is not None
            self._poll.register(fd, int(events))

    def _modify(self, fd: int, events: int) -> None:
        if self._epoll is not None:
            self._epoll.modify(fd, int(events))
        else:
            assert self._poll is not None
            self._poll.modify(fd, int(events))

    def _unregister(self, fd: int) -> None:
        if self._epoll is not None:
            self._epoll.unregister(fd)
        else:
            assert self._poll is not None
            self._poll.unregister(fd)

    def _wake(self) -> None:
        polling = self._polling_thread
        if polling is not None and polling != threading.get_ident():
            try:
                self._wake_writer.send(b"\0")
            except OSError:
                pass

    def _drain_wake(self) -> None:
        while True:
            try:
                if not self._wake_reader.recv(4096):
                    return
            except OSError:
                return

    def _registered(self, eventer: "Eventer") -> int:
        fd = eventer.fileno()
        if self._eventers.get(fd) is not eventer:
            raise KeyError(f"fd({fd}) is not registered in this poller")
        return fd

    def add(self, eventer: "Eventer") -> None:
        """Start watching ``eventer`` for the events it asks for."""
        with self._lock:
            self._check_open()
            fd = eventer.fileno()
            if fd in self._eventers:
                raise FileExistsError(errno.EEXIST, f"fd({fd}) is already registered")
            self._register(fd, eventer.events)
            self._eventers[fd] = eventer
            self._wake()

    def modify(self, eventer: "Eventer") -> None:
        """Update the watched events of a registered ``eventer``."""
        with self._lock:
            self._check_open()
            fd = self._registered(eventer)
            self._modify(fd, eventer.events)
            self._wake()

    def remove(self, eventer: "Eventer") -> None:
        """Stop watching ``eventer``."""
        with self._lock:
            self._check_open()
            fd = self._registered(eventer)
            del self._eventers[fd]
            try:
                self._unregister(fd)
            except OSError as exc:
                # A closed descriptor has already left the kernel's set.
                if exc.errno not in (errno.EBADF, errno.ENOENT):
                    raise
            self._wake()

    def poll(self, timeout_milliseconds: int) -> Tuple[TimePoint, List["Eventer"]]:
        """Wait up to the timeout (negative: forever) for ready eventers.

        Returns the time the wait ended and the eventers that are ready, each
        having received its triggered events.
        """
        self._check_open()
        self._polling_thread = threading.get_ident()
        try:
            if self._epoll is not None:
                timeout = -1 if timeout_milliseconds < 0 else timeout_milliseconds / 1000
                raw = self._epoll.poll(timeout, self._max_events)
            else:
                assert self._poll is not None
                raw = self._poll.poll(
                    None if timeout_milliseconds < 0 else timeout_milliseconds
                )
        finally:
            self._polling_thread = None
        return_time = TimePoint()
        active: List["Eventer"] = []
        wake_fd = self._wake_reader.fileno()
        with self._lock:
            for fd, events in raw:
                if fd == wake_fd:
                    self._drain_wake()
                    continue
                eventer = self._eventers.get(fd)
                if eventer is None:
                    continue
                eventer.receive_events(Events(events))
                active.append(eventer)
        if self._epoll is not None and len(raw) == self._max_events:
            self._max_events *= 2
        return return_time, active

    def close(self) -> None:
        """Release the poller; further use raises ``RuntimeError``."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._epoll is not None:
                self._epoll.close()
            self._wake_reader.close()
            self._wake_writer.close()
            self._eventers.clear()