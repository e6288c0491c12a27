"""Reactor building blocks: poller, eventers, acceptor, I/O buffer, timers, balancer, thread pool, logger and message codec."""

__version__ = "0.1.0"