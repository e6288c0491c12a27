import socket

import pytest

from taotu.acceptor import Acceptor
from taotu.logger import end_log
from taotu.net_address import NetAddress
from taotu.poller import Poller


@pytest.fixture(autouse=True)
def _log_in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    yield
    end_log()


@pytest.fixture
def poller():
    p = Poller()
    yield p
    p.close()


@pytest.fixture
def acceptor(poller):
    a = Acceptor(poller, NetAddress.listening(0, loop_back=True))
    yield a
    a.close()


def _connect(acceptor):
    client = socket.create_connection(("127.0.0.1", acceptor.local_address.port), timeout=2)
    return client


def test_listen_sets_flag_and_registers(acceptor, poller):
    assert not acceptor.is_listening
    acceptor.listen()
    assert acceptor.is_listening
    assert len(poller) == 1
    assert acceptor.local_address.ip == "127.0.0.1"


@pytest.mark.timeout(10)
def test_poll_and_work_accepts_connection(acceptor, poller):
    accepted = []
    acceptor.new_connection_callback = lambda conn, peer: accepted.append((conn, peer))
    acceptor.listen()
    client = _connect(acceptor)
    try:
        return_time, active = poller.poll(2000)
        for eventer in active:
            eventer.work(return_time)
        assert len(accepted) == 1
        conn, peer = accepted[0]
        assert peer.ip == "127.0.0.1"
        assert peer.port == client.getsockname()[1]
        assert conn.getblocking() is False
        conn.close()
    finally:
        client.close()


@pytest.mark.timeout(10)
def test_accepted_socket_talks_to_client(acceptor):
    accepted = []
    acceptor.new_connection_callback = lambda conn, peer: accepted.append(conn)
    acceptor.listen()
    client = _connect(acceptor)
    try:
        acceptor.handle_read()
        conn = accepted[0]
        conn.setblocking(True)
        client.sendall(b"hello")
        assert conn.recv(16) == b"hello"
        conn.close()
    finally:
        client.close()


@pytest.mark.timeout(10)
def test_without_callback_connection_is_closed(acceptor):
    acceptor.listen()
    client = _connect(acceptor)
    try:
        acceptor.handle_read()
        assert client.recv(16) == b""
    finally:
        client.close()


def test_handle_read_without_pending_connection(acceptor):
    accepted = []
    acceptor.new_connection_callback = lambda conn, peer: accepted.append(conn)
    acceptor.listen()
    acceptor.handle_read()
    assert accepted == []


def test_close_releases_socket_and_registration(poller):
    acc = Acceptor(poller, NetAddress.listening(0, loop_back=True))
    acc.listen()
    acc.close()
    assert not acc.is_listening
    assert len(poller) == 0
    assert acc.fileno() == -1


def test_binding_a_listening_port_again_fails(acceptor, poller):
    acceptor.listen()
    port = acceptor.local_address.port
    with pytest.raises(OSError):
        Acceptor(poller, NetAddress.listening(port, loop_back=True))
    assert len(poller) == 1