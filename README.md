# zapkit

Small, dependency-free building blocks for structured, leveled logging.

## Installation

```
pip install zapkit
```

For running the test suite:

```
pip install "zapkit[test]"
pytest
```

## What is inside

| Module | Purpose |
| --- | --- |
| `zapkit.level` | `Level` (debug, info, warn, error, dpanic, panic, fatal), `LevelEnablerFunc`, and `AtomicLevel`: a thread-safe level that can be changed while the program runs. Also `new_atomic_level_at` and `parse_atomic_level`. |
| `zapkit.http_handler` | `handle_level_request` and `level_app`: a small JSON endpoint that reports or changes an `AtomicLevel`. |
| `zapkit.sink` | `SinkRegistry`, `register_sink`, `normalize_scheme`, `NopCloserSink` and `SinkNotFoundError`: open log destinations by URL, with `file` handled out of the box. |
| `zapkit.writer` | `open_paths`, `combine_write_syncers`, `MultiWriteSyncer`, `LockedWriteSyncer` and `OpenSinksError`: open several destinations at once and write to all of them under one lock. |
| `zapkit.buffered` | `BufferedWriteSyncer` and `add_sync`: buffer writes in memory and flush when the buffer fills or on a fixed interval. |
| `zapkit.stacktrace` | `capture_stacktrace`, `take_stacktrace`, `Stacktrace`, `StackDepth` and `StackFormatter`: readable stack traces. |
| `zapkit.clock` | `SystemClock` (and `DEFAULT_CLOCK`) and `MockClock`, with `Ticker`: sources of time that can be swapped for tests. |
| `zapkit.timing` | `time_to_millis`, plus `timeout`, `sleep` and `initialize` for scaling test timeouts (also read from the `TEST_TIMEOUT_SCALE` environment variable at import). |
| `zapkit.color` | `Color`: wrap text in ANSI colour codes. |
| `zapkit.pool` | `Pool`: reuse objects built by a factory. |
| `zapkit.exit` | `exit_with`, `stub` and `with_stub`: end the process, or record that it would have ended. |
| `zapkit.testing_writers` | `Buffer`, `Syncer`, `Discarder`, `FailWriter`, `ShortWriter`: writers for testing log output. |

## Levels

```python
from zapkit.level import Level, parse_atomic_level

level = parse_atomic_level("info")
level.enabled(Level.parse("debug"))   # False
level.set_level(Level.parse("debug"))
level.marshal_text()                   # b"debug"
str(level)                             # "debug"
```

`Level.parse` accepts names in lower case or all capitals; the empty string
means `info`, and anything else raises `ValueError`.

## Changing the level over HTTP

`level_app(level)` returns a WSGI application serving an `AtomicLevel`:

- `GET` answers `{"level":"info"}`.
- `PUT` with `Content-Type: application/x-www-form-urlencoded` reads `level=debug` from the body, or from the query string if the body has none.
- `PUT` with any other content type expects a JSON body such as `{"level":"warn"}`.
- A bad request answers 400, any other method 405, both with `{"error": "..."}`.

```python
from wsgiref.simple_server import make_server
from zapkit.http_handler import level_app
from zapkit.level import AtomicLevel

make_server("localhost", 8080, level_app(AtomicLevel())).serve_forever()
```

`handle_level_request(level, method, content_type, query, body)` does the same
work without a server and returns the status code and the JSON payload as a
dict, which is handy in tests.

## Destinations

Paths without a scheme are files (relative paths work too); `stdout` and
`stderr` are the standard streams. `file://` URLs may not carry a user, port,
query or fragment, and may only name `localhost` as host. Other schemes can be
added with `register_sink`; scheme names are matched case-insensitively and an
unknown scheme raises `SinkNotFoundError`.

```python
from zapkit.writer import open_paths

writer, close = open_paths("stdout", "/var/log/app.log")
writer.write(b"hello\n")
close()
```

Every path that cannot be opened is reported together in one
`OpenSinksError`, after anything already opened has been closed. Pass
`registry=` to use a `SinkRegistry` other than the default one.

## Buffered writing

```python
from zapkit.buffered import BufferedWriteSyncer, add_sync

with open("app.log", "ab") as fh:
    with BufferedWriteSyncer(add_sync(fh)) as ws:
        ws.write(b"line\n")
    # leaving the block calls stop(): flushes what is left and stops the flusher
```

By default up to 256 kB is buffered and data is flushed at least every 30
seconds; `size`, `flush_interval` and `clock` change that. With a `MockClock`,
flushes happen only when `add` moves time forward.

## Regenerating benchmark tables

```
zapkit-readme < template.md > README.md
```

reads a template on standard input, runs `go test -bench=<name> -benchmem` in
a `benchmarks` directory below the current one for `BenchmarkAddingFields`,
`BenchmarkAccumulatedContext` and `BenchmarkWithoutFields`, and writes the
template to standard output with `{{ .BenchmarkAddingFields }}` and the like
replaced by Markdown tables. Only `{{ .Field }}` actions (with optional `{{-`
and `-}}` trimming) are understood. On failure it prints the error and exits
with status 1.

## What this package does not do

There is no logger here: no entry type, no encoders, no `info`/`error`
logging methods and no configuration loading. The modules are parts to build
one from — levels, destinations, writers, clocks and stack traces. The
benchmark suite that `zapkit-readme` measures is not included either; the
command needs that directory and the `go` tool to be present.