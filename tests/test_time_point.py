import time

from taotu.time_point import TimePoint, now_microseconds


def _absolute(microseconds):
    origin = TimePoint()
    return TimePoint(microseconds - origin.microseconds, start=origin)


def test_now_microseconds_tracks_wall_clock():
    before = int(time.time() * 1_000_000)
    value = now_microseconds()
    after = int(time.time() * 1_000_000)
    assert before - 1000 <= value <= after + 1000


def test_default_is_now():
    before = now_microseconds()
    point = TimePoint.now()
    after = now_microseconds()
    assert before <= point.microseconds <= after
    assert point.context == 0


def test_duration_from_start():
    start = TimePoint()
    point = TimePoint(500, start)
    assert point.microseconds == start.microseconds + 500


def test_duration_from_now():
    before = now_microseconds()
    point = TimePoint(2_000_000)
    assert point.microseconds >= before + 2_000_000


def test_repeated_keeps_context():
    assert TimePoint(700, TimePoint(), repeated=True).context == 700
    assert TimePoint(700, TimePoint()).context == 0


def test_milliseconds_truncate():
    assert _absolute(2_500_999).milliseconds == 2500
    assert _absolute(-1_500).milliseconds == -1


def test_ordering_and_equality():
    start = TimePoint()
    early, late = TimePoint(1, start), TimePoint(2, start)
    assert early < late
    assert early <= late
    assert late > early
    assert TimePoint(1, start) == early
    assert len({early, TimePoint(1, start)}) == 1


def test_equality_ignores_context():
    start = TimePoint()
    assert TimePoint(5, start, repeated=True) == TimePoint(5, start)


def test_continue_callback_only_for_repeated():
    one_shot = TimePoint(10)
    one_shot.set_continue_callback(lambda: True)
    assert one_shot.continue_callback is None

    repeated = TimePoint(10, repeated=True)
    predicate = lambda: False  # noqa: E731
    repeated.set_continue_callback(predicate)
    assert repeated.continue_callback is predicate
    assert repeated.continue_callback() is False