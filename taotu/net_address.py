"""IPv4/IPv6 socket address values."""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Tuple, Union

_FAMILY_NAMES = {socket.AF_INET: "IPv4", socket.AF_INET6: "IPv6"}


@dataclass(frozen=True)
class NetAddress:
    """An IP address and port, independent of the address family."""

    family: int = socket.AF_INET
    ip: str = "0.0.0.0"
    port: int = 0

    def __post_init__(self) -> None:
        if self.family not in _FAMILY_NAMES:
            raise ValueError(f"unsupported address family: {self.family!r}")
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")
        try:
            packed = socket.inet_pton(self.family, self.ip)
        except (OSError, TypeError) as exc:
            raise ValueError(
                f"{_FAMILY_NAMES[self.family]} presentation format "
                f"({self.ip}) failed to convert to network format"
            ) from exc
        object.__setattr__(self, "family", socket.AddressFamily(self.family))
        object.__setattr__(self, "ip", socket.inet_ntop(self.family, packed))

    @classmethod
    def listening(
        cls, port: int = 0, loop_back: bool = False, use_ipv6: bool = False
    ) -> "NetAddress":
        """Wildcard or loopback address on ``port``."""
        if use_ipv6:
            return cls(socket.AF_INET6, "::1" if loop_back else "::", port)
        return cls(socket.AF_INET, "127.0.0.1" if loop_back else "0.0.0.0", port)

    @classmethod
    def from_ip(cls, ip: str, port: int, use_ipv6: bool = False) -> "NetAddress":
        """Parse ``ip``; it is taken as IPv6 if asked or if it holds a colon."""
        family = socket.AF_INET6 if use_ipv6 or ":" in ip else socket.AF_INET
        return cls(family, ip, port)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Tuple) -> "NetAddress":
        """Build from a socket-module address tuple such as ``getpeername()``."""
        host = str(sockaddr[0]).split("%", 1)[0]
        return cls(family, host, int(sockaddr[1]))

    def sockaddr(self) -> Union[Tuple[str, int], Tuple[str, int, int, int]]:
        """Address tuple suitable for ``bind`` and ``connect``."""
        if self.family == socket.AF_INET6:
            return (self.ip, self.port, 0, 0)
        return (self.ip, self.port)

    def __str__(self) -> str:
        if self.family == socket.AF_INET6:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"