import sys
import time

from composekit.spinner import Spinner


def test_fresh_spinner_shows_first_frame():
    s = Spinner(chars=["a", "b", "c"], done="x")
    assert str(s) == "a"


def test_spinner_advances_after_interval():
    s = Spinner(chars=["a", "b"], done="x", started=time.monotonic() - 1)
    assert str(s) == "b"
    assert str(s) == "a"


def test_stopped_spinner_shows_done():
    s = Spinner(chars=["a", "b"], done="x")
    s.stop()
    assert s.stopped is True
    assert str(s) == "x"


def test_index_stays_in_range():
    s = Spinner(chars=["a", "b", "c"], done="x", started=time.monotonic() - 1)
    frames = [str(s) for _ in range(10)]
    assert set(frames) <= {"a", "b", "c"}
    assert 0 <= s.index < 3


def test_default_frames():
    s = Spinner()
    if sys.platform == "win32":
        assert s.chars == ["-"]
        assert s.done == "-"
    else:
        assert s.done == "⠿"
        assert len(s.chars) == 10
        assert s.chars[0] == "⠋"