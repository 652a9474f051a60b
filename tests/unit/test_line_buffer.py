from memo.utils.line_buffer import LineBuffer


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_complete_lines_are_released_partial_tail_kept():
    clock = _Clock()
    buf = LineBuffer(timeout=0.5, clock=clock)
    buf.write("hello wor")
    assert buf.flush() == ""
    buf.write("ld\nnext")
    assert buf.flush() == "hello world\n"
    assert buf.pending() == "next"


def test_partial_line_released_after_idle_timeout():
    clock = _Clock()
    buf = LineBuffer(timeout=0.5, clock=clock)
    buf.write("thinking...")
    clock.now += 0.49
    assert buf.flush() == ""
    clock.now += 0.01
    assert buf.flush() == "thinking..."
    assert buf.pending() == ""


def test_force_flush_strips_trailing_newlines():
    buf = LineBuffer(clock=_Clock())
    buf.write("a\nb\n\n")
    assert buf.flush(force=True) == "a\nb"
    assert buf.flush(force=True) == ""


def test_partial_line_released_after_gap_between_writes():
    clock = _Clock()
    buf = LineBuffer(timeout=0.5, clock=clock)
    buf.write("partial")
    clock.now += 5
    buf.write(" more")
    assert buf.flush() == "partial more"


def test_unbroken_stream_is_released_once_per_timeout():
    clock = _Clock()
    buf = LineBuffer(timeout=0.5, clock=clock)
    for _ in range(4):
        clock.now += 0.2
        buf.write("x")
        buf.flush()
    # first release at 0.6s, the remaining fragment waits for the next window
    assert buf.pending() == "x"
    clock.now += 0.4
    assert buf.flush() == "x"


def test_releasing_lines_restarts_the_timeout():
    clock = _Clock()
    buf = LineBuffer(timeout=0.5, clock=clock)
    clock.now += 1
    buf.write("line\ntail")
    assert buf.flush() == "line\n"
    clock.now += 0.3
    assert buf.flush() == ""
    assert buf.flush(force=True) == "tail"
