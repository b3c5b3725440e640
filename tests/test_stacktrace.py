from traceback import FrameSummary

from zapkit.stacktrace import (
    StackDepth,
    StackFormatter,
    Stacktrace,
    capture_stacktrace,
    take_stacktrace,
)


def _outer_one():
    return _inner_one()


def _inner_one():
    return take_stacktrace(1)


def _outer_two():
    return _middle_two()


def _middle_two():
    return _inner_two()


def _inner_two():
    return take_stacktrace(2)


def test_take_stacktrace():
    lines = take_stacktrace(0).split("\n")
    assert lines
    assert "test_take_stacktrace" in lines[0]


def test_take_stacktrace_with_skip():
    lines = _outer_one().split("\n")
    assert lines[0].endswith("._outer_one")


def test_take_stacktrace_with_skip_inner_func():
    lines = _outer_two().split("\n")
    assert lines[0].endswith("._outer_two")


def test_take_stacktrace_deep_stack():
    depth = 500

    def recurse(n):
        if n > 0:
            return recurse(n - 1)
        return take_stacktrace(0)

    trace = recurse(depth)
    assert trace.split("\n")[0].endswith(".recurse")
    assert sum(1 for line in trace.split("\n") if line.endswith(".recurse")) >= depth


def test_capture_first_frame_only():
    stack = capture_stacktrace(0, StackDepth.FIRST)
    assert stack.count() == 1
    frame, more = stack.next()
    assert more is False
    assert frame.name.endswith("test_capture_first_frame_only")
    assert stack.count() == 1


def test_capture_beyond_stack_is_empty():
    stack = capture_stacktrace(100_000, StackDepth.FULL)
    assert stack.count() == 0
    frame, more = stack.next()
    assert more is False
    assert frame.name == ""


def test_formatter_joins_frames():
    formatter = StackFormatter()
    formatter.format_frame(FrameSummary("/a.py", 3, "pkg.f", lookup_line=False))
    formatter.format_frame(FrameSummary("/b.py", 4, "pkg.g", lookup_line=False))
    assert formatter.getvalue() == "pkg.f\n\t/a.py:3\npkg.g\n\t/b.py:4"


def test_format_stack_drops_outermost_frame():
    frames = [
        FrameSummary("/a.py", 1, "m.a", lookup_line=False),
        FrameSummary("/b.py", 2, "m.b", lookup_line=False),
        FrameSummary("/c.py", 3, "m.main", lookup_line=False),
    ]
    formatter = StackFormatter()
    formatter.format_stack(Stacktrace(frames))
    assert formatter.getvalue() == "m.a\n\t/a.py:1\nm.b\n\t/b.py:2"