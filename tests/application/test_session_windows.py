from datetime import datetime

from lexis.application.session_windows import session_window, window_label

TIMES = ["08:00", "12:00", "18:00"]


def _at(hhmm):
    hours, minutes = (int(p) for p in hhmm.split(":"))
    return datetime(2025, 3, 10, hours, minutes)


def test_first_window_opens_at_midnight():
    window = session_window(TIMES, 0, _at("07:00"))

    assert window.start == datetime(2025, 3, 10, 0, 0)
    assert window.end == datetime(2025, 3, 10, 9, 59)
    assert window.status == "ready"
    assert window.can_start


def test_middle_window_splits_the_gaps():
    window = session_window(TIMES, 1, _at("11:00"))

    assert window_label(window) == "10:00 - 14:59"
    assert window.can_start


def test_future_window_is_locked():
    window = session_window(TIMES, 2, _at("12:00"))

    assert window.status == "locked"
    assert window.minutes_until_start == 180
    assert not window.can_start


def test_past_window_is_missed():
    window = session_window(TIMES, 0, _at("13:00"))
    assert window.status == "missed"
    assert window.minutes_until_start is None


def test_last_window_runs_to_end_of_day():
    window = session_window(TIMES, 2, _at("23:30"))
    assert window.end.hour == 23 and window.end.minute == 59
    assert window.status == "ready"


def test_single_session_covers_whole_day():
    window = session_window(["09:00"], 0, _at("21:00"))
    assert window_label(window) == "00:00 - 23:59"
    assert window.can_start
