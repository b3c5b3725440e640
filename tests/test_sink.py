import pytest

from zapkit import sink as sink_module
from zapkit.sink import (
    NopCloserSink,
    SinkNotFoundError,
    SinkRegistry,
    normalize_scheme,
    register_sink,
)
from zapkit.testing_writers import Buffer, Discarder


def test_register_sink_and_open():
    registry = SinkRegistry()
    buf = Buffer()
    calls = {"mem": 0, "nop": 0}

    def mem_factory(parts):
        assert parts.scheme == "mem"
        calls["mem"] += 1
        return NopCloserSink(buf)

    def nop_factory(parts):
        assert parts.scheme == "no-op.1234"
        calls["nop"] += 1
        return NopCloserSink(Discarder())

    registry.register_sink("MEM", mem_factory)
    registry.register_sink("no-op.1234", nop_factory)

    mem = registry.new_sink("mem://somewhere")
    registry.new_sink("no-op.1234://somewhere-else")
    assert calls == {"mem": 1, "nop": 1}

    mem.write(b"foo")
    assert buf.getvalue() == "foo"


@pytest.mark.parametrize(
    "scheme, message",
    [
        ("", "empty string"),
        ("FILE", "already registered"),
        ("42", "not a valid scheme"),
        ("http*", "not a valid scheme"),
    ],
)
def test_register_sink_errors(scheme, message):
    registry = SinkRegistry()
    with pytest.raises(ValueError, match=message):
        registry.register_sink(scheme, lambda parts: NopCloserSink(Discarder()))


@pytest.mark.parametrize(
    "scheme, expected",
    [("mem", "mem"), ("MEM", "mem"), ("No-Op.1234", "no-op.1234"), ("a+b", "a+b")],
)
def test_normalize_scheme(scheme, expected):
    assert normalize_scheme(scheme) == expected


@pytest.mark.parametrize("scheme, message", [("9a", "start with a letter"), ("ab*", "may not contain")])
def test_normalize_scheme_rejects(scheme, message):
    with pytest.raises(ValueError, match=message):
        normalize_scheme(scheme)


def test_unknown_scheme():
    registry = SinkRegistry()
    with pytest.raises(SinkNotFoundError) as info:
        registry.new_sink("mem://somewhere")
    assert info.value.scheme == "mem"
    assert '"mem"' in str(info.value)


def test_module_register_sink_uses_default_registry(monkeypatch):
    fresh = SinkRegistry()
    monkeypatch.setattr(sink_module, "DEFAULT_REGISTRY", fresh)
    buf = Buffer()
    register_sink("mem", lambda parts: NopCloserSink(buf))
    fresh.new_sink("mem://x").write(b"abc")
    assert buf.getvalue() == "abc"
    with pytest.raises(ValueError, match="already registered"):
        register_sink("mem", lambda parts: NopCloserSink(buf))


def test_stdout_sink_writes_and_close_is_noop(capsys):
    registry = SinkRegistry()
    out = registry.new_sink("stdout")
    assert out.write(b"hello") == 5
    out.sync()
    out.close()
    assert capsys.readouterr().out == "hello"


def test_relative_file_sink(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    registry = SinkRegistry()
    sink = registry.new_sink("relative.log")
    assert sink.write(b"line\n") == 5
    sink.sync()
    sink.close()
    assert (tmp_path / "relative.log").read_bytes() == b"line\n"


def test_absolute_and_file_url_append(tmp_path):
    path = tmp_path / "abs.log"
    registry = SinkRegistry()
    first = registry.new_sink(str(path))
    first.write(b"one")
    first.close()
    second = registry.new_sink("file://localhost" + str(path))
    second.write(b"two")
    second.close()
    assert path.read_bytes() == b"onetwo"


@pytest.mark.parametrize(
    "suffix_url, message",
    [
        ("file://host01.test.com{}", "empty or use localhost"),
        ("file://user@localhost{}", "user and password not allowed"),
        ("file://localhost{}#foo", "fragments not allowed"),
        ("file://localhost{}?foo=bar", "query parameters not allowed"),
        ("file://localhost:8080{}", "ports not allowed"),
    ],
)
def test_file_url_restrictions(tmp_path, suffix_url, message):
    registry = SinkRegistry()
    with pytest.raises(ValueError, match=message):
        registry.new_sink(suffix_url.format(tmp_path / "x.log"))


def test_unparseable_url():
    registry = SinkRegistry()
    with pytest.raises(ValueError, match="can't parse"):
        registry.new_sink("://foo.log")