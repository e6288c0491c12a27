import socket

import pytest

from taotu.eventer import Eventer
from taotu.logger import end_log
from taotu.poller import Events, Poller
from taotu.time_point import TimePoint


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
def pair():
    a, b = socket.socketpair()
    yield a, b
    a.close()
    b.close()


def _recording(eventer):
    calls = []
    eventer.read_callback = lambda tp: calls.append(("read", tp))
    eventer.write_callback = lambda: calls.append(("write", None))
    eventer.close_callback = lambda: calls.append(("close", None))
    eventer.error_callback = lambda: calls.append(("error", None))
    return calls


def test_new_eventer_is_registered_without_events(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    assert eventer.has_no_event()
    assert eventer.fileno() == a.fileno()
    assert len(poller) == 1


def test_read_events_toggle(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    eventer.enable_read()
    assert eventer.has_read_events()
    assert eventer.events == Events.READ
    eventer.disable_read()
    assert not eventer.has_read_events()
    assert eventer.has_no_event()


def test_write_events_toggle_and_disable_all(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    eventer.enable_write()
    eventer.enable_read()
    assert eventer.has_write_events()
    eventer.disable_write()
    assert not eventer.has_write_events()
    assert eventer.has_read_events()
    eventer.disable_all()
    assert eventer.events == Events.NONE


def test_work_dispatches_read_with_time_point(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    calls = _recording(eventer)
    tp = TimePoint()
    eventer.receive_events(Events.IN)
    eventer.work(tp)
    assert calls == [("read", tp)]
    assert calls[0][1] is tp


def test_hangup_without_input_closes(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    calls = _recording(eventer)
    eventer.receive_events(Events.HUP)
    eventer.work(TimePoint())
    assert [name for name, _ in calls] == ["close"]


def test_hangup_with_input_reads_instead(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    calls = _recording(eventer)
    eventer.receive_events(Events.HUP | Events.IN)
    eventer.work(TimePoint())
    assert [name for name, _ in calls] == ["read"]


def test_rdhup_and_pri_trigger_read(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    calls = _recording(eventer)
    eventer.receive_events(Events.RDHUP)
    eventer.work(TimePoint())
    eventer.receive_events(Events.PRI)
    eventer.work(TimePoint())
    assert [name for name, _ in calls] == ["read", "read"]


def test_callback_order_error_read_write(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    calls = _recording(eventer)
    eventer.receive_events(Events.ERR | Events.IN | Events.OUT)
    eventer.work(TimePoint())
    assert [name for name, _ in calls] == ["error", "read", "write"]


def test_missing_callbacks_are_skipped(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    seen = []
    eventer.write_callback = lambda: seen.append("write")
    eventer.receive_events(Events.IN | Events.OUT | Events.HUP)
    eventer.work(TimePoint())
    assert seen == ["write"]


def test_remove_unregisters_once(poller, pair):
    a, _ = pair
    eventer = Eventer(poller, a)
    eventer.enable_read()
    eventer.remove()
    eventer.remove()
    assert len(poller) == 0
    assert eventer.has_no_event()
    with pytest.raises(RuntimeError):
        eventer.enable_read()


def test_poll_then_work_reads_data(poller, pair):
    a, b = pair
    eventer = Eventer(poller, a)
    received = []
    eventer.read_callback = lambda tp: received.append(a.recv(16))
    eventer.enable_read()
    b.send(b"ping")
    return_time, active = poller.poll(1000)
    for ready in active:
        ready.work(return_time)
    assert active == [eventer]
    assert received == [b"ping"]