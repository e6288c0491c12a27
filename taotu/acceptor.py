"""Listening socket that accepts new TCP connections."""

from __future__ import annotations

import errno
import os
import socket
from typing import Callable, Optional

from .eventer import Eventer
from .logger import LogLevel, log
from .net_address import NetAddress
from .poller import Poller
from .socketer import Socketer

MAX_EVENT_AMOUNT = 600000

NewConnectionCallback = Callable[[socket.socket, NetAddress], None]


class Acceptor:
    """Binds, listens and hands every accepted socket to a callback.

    ``new_connection_callback`` receives the non-blocking connected socket and
    the peer address; without a callback accepted sockets are closed.
    """

    def __init__(
        self, poller: Poller, listen_address: NetAddress, reuse_port: bool = False
    ) -> None:
        sock = socket.socket(listen_address.family, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        sock.setblocking(False)
        self._socketer = Socketer(sock)
        try:
            self._socketer.set_reuse_address(True)
            self._socketer.set_reuse_port(reuse_port)
            self._socketer.bind(listen_address)
        except OSError:
            self._socketer.close()
            raise
        self._fd = sock.fileno()
        self._eventer = Eventer(poller, sock)
        self._eventer.read_callback = lambda _time_point: self.handle_read()
        self._is_listening = False
        # Spare descriptor released to shed connections when out of descriptors.
        self._idle = open(os.devnull, "rb")
        self.new_connection_callback: Optional[NewConnectionCallback] = None

    def fileno(self) -> int:
        return self._socketer.fileno()

    @property
    def is_listening(self) -> bool:
        return self._is_listening

    @property
    def local_address(self) -> NetAddress:
        sock = self._socketer.socket
        return NetAddress.from_sockaddr(sock.family, sock.getsockname())

    def listen(self) -> None:
        """Start listening and watching for incoming connections."""
        self._is_listening = True
        self._socketer.listen()
        self._eventer.enable_read()
        log(LogLevel.DEBUG, "Acceptor with fd(%d) is listening.", self._fd)

    def handle_read(self) -> None:
        """Accept one pending connection and pass it on."""
        try:
            conn, peer_address = self._socketer.accept()
        except OSError as exc:
            log(
                LogLevel.ERROR,
                "Acceptor with Fd(%d) failed to accept a new TCP connection!!!",
                self._fd,
            )
            if exc.errno == errno.EMFILE:
                self._shed_pending()
            return
        if conn.fileno() > MAX_EVENT_AMOUNT:
            log(
                LogLevel.ERROR,
                "Acceptor with Fd(%d) failed to accept a new TCP connection!!!",
                self._fd,
            )
            conn.close()
            return
        if self.new_connection_callback is not None:
            self.new_connection_callback(conn, peer_address)
        else:
            log(LogLevel.ERROR, "Acceptor with fd(%d) is closing!!!", self._fd)
            conn.close()

    def _shed_pending(self) -> None:
        self._idle.close()
        try:
            conn, _ = self._socketer.socket.accept()
            conn.close()
        except OSError:
            pass
        finally:
            self._idle = open(os.devnull, "rb")

    def close(self) -> None:
        """Stop listening and release the socket."""
        log(LogLevel.DEBUG, "Acceptor with fd(%d) is closing.", self._fd)
        self._is_listening = False
        self._eventer.remove()
        self._socketer.close()
        self._idle.close()

    def __enter__(self) -> "Acceptor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()