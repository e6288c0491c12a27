# taotu

taotu provides the parts a reactor-style TCP program is built from: a
poller over the operating system's I/O multiplexing, eventers that dispatch
readiness to callbacks, an acceptor for listening sockets, a growable I/O
buffer with room for a header, microsecond time points and a timer, a load
balancer, a worker thread pool, a background file logger and a
length-prefixed message codec.

It needs nothing beyond the standard library and runs on Python 3.10 or
newer. The poller uses epoll where available and poll otherwise, so it is
meant for POSIX systems (Linux first of all).

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## What is not included

The package has no ready-made event loop that owns connections, no
connection object with buffered sending, no outgoing connector, no server or
client classes, and no command-line programs. You drive the poller yourself,
as shown below, and decide what to do with each accepted socket.

## Modules

### Addresses — `taotu.net_address`

`NetAddress` is a frozen value holding a family, an IP and a port. The IP is
checked and normalised when the address is made; a bad IP or a port outside
0–65535 raises `ValueError`.

```python
from taotu.net_address import NetAddress

any_v4 = NetAddress.listening(4567, False, False)     # 0.0.0.0:4567
loopback_v6 = NetAddress.listening(4567, True, True)  # [::1]:4567
server = NetAddress.from_ip("127.0.0.1", 4567, False)
server.sockaddr()                                     # ("127.0.0.1", 4567)
```

An address written with a colon is taken as IPv6 even when IPv6 is not
requested. `NetAddress.from_sockaddr(family, tuple)` builds one from what
`getpeername()` or `accept()` return.

### Polling and dispatch — `taotu.poller`, `taotu.eventer`, `taotu.acceptor`

A `Poller` watches `Eventer`s. An eventer registers itself with its poller
when it is made, asks for read and write events through `enable_read()`,
`enable_write()` and their `disable_*` counterparts, and runs its
`read_callback`, `write_callback`, `close_callback` and `error_callback`
from `work(time_point)`. `Poller.poll(timeout_milliseconds)` returns the
time the wait ended together with the ready eventers. Changes made from
another thread wake a blocking poll.

`Acceptor` binds and listens on an address and passes every accepted
non-blocking socket and its peer address to `new_connection_callback`;
without a callback the socket is closed.

```python
from taotu.acceptor import Acceptor
from taotu.net_address import NetAddress
from taotu.poller import Poller

def on_connection(sock, peer):
    print("connection from", peer)
    sock.close()

with Poller() as poller:
    acceptor = Acceptor(poller, NetAddress.listening(4567, True, False), False)
    acceptor.new_connection_callback = on_connection
    acceptor.listen()
    while True:
        when, ready = poller.poll(1000)
        for eventer in ready:
            eventer.work(when)
```

`Socketer` (in `taotu.socketer`) wraps a socket with `bind`, `listen`,
`accept`, `shutdown_write` and setters for `TCP_NODELAY`, `SO_REUSEADDR`,
`SO_REUSEPORT` and `SO_KEEPALIVE`; failures are raised as `OSError`.

### Buffers — `taotu.io_buffer`

`IoBuffer` keeps eight bytes free in front of its data, so a length header
can be written after the body is known:

```python
from taotu.io_buffer import IoBuffer

buf = IoBuffer(1024)
buf.append(b"hello")
buf.prepend_int(5, 4)          # big-endian 32-bit length header
assert buf.peek_int(4) == 5
assert buf.retrieve_int(4) == 5
assert buf.retrieve_all() == b"hello"
```

Integers are written and read big-endian and signed, in sizes of 1, 2, 4 or
8 bytes. `find_crlf()` and `find_eol()` return offsets into the readable
data or `None`. Asking for more bytes than are readable raises `ValueError`.
`read_from(sock)` and `write_to(sock)` move data between the buffer and a
socket with one call each.

### Framing messages — `taotu.codec`

A frame is a four-byte big-endian length followed by the body.

```python
from taotu.codec import encode_message

frame = encode_message("hi")   # b"\x00\x00\x00\x02hi"
```

`LengthHeaderCodec(callback).on_message(connection, io_buffer, time_point)`
takes every complete frame out of `io_buffer` and calls
`callback(connection, body, time_point)` for each; an incomplete frame is
left in the buffer. A length above 65536 or below zero makes it call
`connection.shutdown_write()` and stop. `send(connection, message)` passes a
framed `IoBuffer` to `connection.send`.

### Time — `taotu.time_point`, `taotu.timer`

`TimePoint(duration_microseconds, start, repeated)` is a point that many
microseconds after `start` (or after now); a repeated point keeps its
duration as `context` and may carry a `continue_callback`.

```python
from taotu.time_point import TimePoint
from taotu.timer import Timer

timer = Timer()
timer.add_task(TimePoint(500_000), lambda: print("half a second later"))
timer.min_wait_milliseconds()          # time until the earliest task
for time_point, task in timer.pop_expired():
    task()
```

With no tasks, `min_wait_milliseconds()` returns 10000.

### Balancing — `taotu.balancer`

`Balancer(managers, strategy).pick()` chooses from a sequence of objects
that have an `eventer_amount` (a number or a method returning one).
`BalancerStrategy.ROUND_ROBIN` cycles through them;
`BalancerStrategy.MIN_EVENTS` picks, among all but the first, the one with
the fewest.

### Worker threads — `taotu.thread_pool`

```python
from taotu.thread_pool import ThreadPool

with ThreadPool(4) as pool:
    pool.add_task(lambda: print("done on a worker"))
```

Tasks run in submission order; `shutdown()` (or leaving the `with` block)
lets the workers finish what is queued. Adding a task after shutdown raises
`RuntimeError`.

### Logging — `taotu.logger`

Call `start_log(name)` once to choose the file, `log(level, message, *args)`
to record with printf-style arguments, and `end_log()` to flush and close.
`log` starts the logger on `log.txt` in the working directory if it is not
running; the poller, eventers and acceptor log this way. Records are
prefixed with the time and with `Log(Debug): `, `Log(Warn): ` or
`Log(Error): `, and are written by a background thread. When a file grows
past its limit, writing moves on to files named `n0_<name>` and `n1_<name>`
in turn.