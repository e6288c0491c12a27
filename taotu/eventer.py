"""One watched socket together with its event callbacks."""

from __future__ import annotations

import socket
from typing import Callable, Optional, Union

from .logger import LogLevel, log
from .poller import Events, Poller
from .time_point import TimePoint

NormalCallback = Callable[[], None]
ReadCallback = Callable[[TimePoint], None]


class Eventer:
    """Registers a descriptor with a poller and dispatches its events.

    Callbacks are plain attributes: ``read_callback`` takes the time the poll
    ended; ``write_callback``, ``close_callback`` and ``error_callback`` take
    no arguments.
    """

    def __init__(self, poller: Poller, sock: Union[socket.socket, int]) -> None:
        self._poller = poller
        self._fd = sock if isinstance(sock, int) else sock.fileno()
        self._in_events = Events.NONE
        self._out_events = Events.NONE
        self._handling = False
        self._registered = False
        self.read_callback: Optional[ReadCallback] = None
        self.write_callback: Optional[NormalCallback] = None
        self.close_callback: Optional[NormalCallback] = None
        self.error_callback: Optional[NormalCallback] = None
        poller.add(self)
        self._registered = True

    def fileno(self) -> int:
        return self._fd

    @property
    def events(self) -> Events:
        """Events this eventer asks the poller to watch."""
        return self._out_events

    def work(self, time_point: TimePoint) -> None:
        """Run the callbacks matching the events last received."""
        self._handling = True
        try:
            events = self._in_events
            if events & Events.HUP and not events & Events.IN:
                if self.close_callback is not None:
                    self.close_callback()
            if events & Events.NVAL:
                log(
                    LogLevel.WARN,
                    "An I/O multiplexing event is triggered now: fd(%d) is not open!",
                    self._fd,
                )
            if events & (Events.NVAL | Events.ERR):
                if self.error_callback is not None:
                    log(
                        LogLevel.ERROR,
                        "An I/O multiplexing event is triggered now: "
                        "fd(%d) occurs an error!!!",
                        self._fd,
                    )
                    self.error_callback()
            if events & (Events.IN | Events.PRI | Events.RDHUP):
                if self.read_callback is not None:
                    self.read_callback(time_point)
            if events & Events.OUT:
                if self.write_callback is not None:
                    self.write_callback()
        finally:
            self._handling = False

    def receive_events(self, events: Events) -> None:
        """Record the events the poller found ready."""
        self._in_events = Events(events)

    def has_no_event(self) -> bool:
        return self._out_events == Events.NONE

    def has_read_events(self) -> bool:
        return bool(self._out_events & Events.READ)

    def has_write_events(self) -> bool:
        return bool(self._out_events & Events.WRITE)

    def enable_read(self) -> None:
        self._out_events |= Events.READ
        self._update()

    def disable_read(self) -> None:
        self._out_events &= ~Events.READ
        self._update()

    def enable_write(self) -> None:
        self._out_events |= Events.WRITE
        self._update()

    def disable_write(self) -> None:
        self._out_events &= ~Events.WRITE
        self._update()

    def disable_all(self) -> None:
        self._out_events = Events.NONE
        self._update()

    def remove(self) -> None:
        """Stop watching this descriptor; calling again does nothing."""
        self._out_events = Events.NONE
        if self._registered:
            self._registered = False
            self._poller.remove(self)

    def _update(self) -> None:
        if not self._registered:
            raise RuntimeError(f"eventer for fd({self._fd}) has been removed")
        self._poller.modify(self)

    def __repr__(self) -> str:
        return f"Eventer(fd={self._fd}, events={self._out_events!r})"