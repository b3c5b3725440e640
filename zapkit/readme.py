"""Generate the README from a template by filling in benchmark result tables."""

from __future__ import annotations

import argparse
import re
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Iterable, Optional

LIBRARY_NAME_TO_MARKDOWN_NAME: dict[str, str] = {
    "Zap": ":zap: zap",
    "Zap.Sugar": ":zap: zap (sugared)",
    "stdlib.Println": "standard library",
    "sirupsen/logrus": "logrus",
    "go-kit/kit/log": "go-kit",
    "inconshreveable/log15": "log15",
    "apex/log": "apex/log",
    "rs/zerolog": "zerolog",
    "slog": "slog",
}

TABLE_HEADER = (
    "| Package | Time | Time % to zap | Objects Allocated |",
    "| :------ | :--: | :-----------: | :---------------: |",
)

BENCHMARK_NAMES = (
    "BenchmarkAddingFields",
    "BenchmarkAccumulatedContext",
    "BenchmarkWithoutFields",
)

BENCHMARK_DIR = "benchmarks"

_UNITS: dict[str, int] = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_NUMBER = re.compile(r"([0-9]*)(?:\.([0-9]*))?")
_UNIT = re.compile(r"[^0-9.]*")
_INTEGER = re.compile(r"[+-]?[0-9]+")
_FIELD = re.compile(r"\.([A-Za-z_][A-Za-z0-9_]*)")
_TRIM_SPACE = " \t\r\n"
_MAX_DURATION = 2**63 - 1


def parse_duration(text: str) -> int:
    """Parse a duration such as ``"1.5ms"`` or ``"2h45m"`` into nanoseconds."""
    invalid = ValueError(f'invalid duration "{text}"')
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return 0
    if rest == "":
        raise invalid

    total = 0
    while rest:
        number = _NUMBER.match(rest)
        assert number is not None
        whole, fraction = number.group(1), number.group(2)
        if not whole and not fraction:
            raise invalid
        rest = rest[number.end():]

        unit_match = _UNIT.match(rest)
        assert unit_match is not None
        unit = unit_match.group(0)
        if not unit:
            raise ValueError(f'missing unit in duration "{text}"')
        scale = _UNITS.get(unit)
        if scale is None:
            raise ValueError(f'unknown unit "{unit}" in duration "{text}"')
        rest = rest[unit_match.end():]

        value = Fraction(int(whole or "0"))
        if fraction:
            value += Fraction(int(fraction), 10 ** len(fraction))
        total += int(value * scale)
        if total > _MAX_DURATION + (1 if negative else 0):
            raise invalid

    return -total if negative else total


def _atoi(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f'invalid integer: "{text}"')
    return int(text)


def _percent(value: int, baseline: int) -> str:
    if baseline == 0:
        if value == 0:
            return "+NaN%"
        return "+Inf%" if value > 0 else "-Inf%"
    change = (value / baseline) * 100 - 100
    return f"{change:+.0f}%"


@dataclass
class BenchmarkRow:
    """One library's result in a benchmark, with the zap baseline to compare to."""

    name: str
    time: int
    allocated_bytes: int
    allocated_objects: int
    zap_time: int = 0
    zap_allocated_bytes: int = 0
    zap_allocated_objects: int = 0

    def __str__(self) -> str:
        change = _percent(self.time, self.zap_time)
        return (
            f"| {self.name} | {self.time} ns/op | {change} | "
            f"{self.allocated_objects} allocs/op"
        )


def find_unique_substring(lines: Iterable[str], substring: str) -> str:
    """Return the one line containing ``substring``, or "" if none does."""
    found = ""
    for line in lines:
        if substring in line:
            if found:
                raise ValueError(f"input has duplicate substring {substring}")
            found = line
    return found


def get_benchmark_row(
    lines: Iterable[str],
    benchmark_name: str,
    library_name: str,
    baseline: Optional[BenchmarkRow],
) -> Optional[BenchmarkRow]:
    """Parse the result line for ``library_name``; None if it did not run."""
    line = find_unique_substring(lines, f"{benchmark_name}/{library_name}-")
    if not line:
        return None
    columns = line.split("\t")
    if len(columns) < 5:
        raise ValueError(f"unknown benchmark line: {line}")
    duration_text = columns[2].strip().removesuffix("/op").replace(" ", "")
    row = BenchmarkRow(
        name=LIBRARY_NAME_TO_MARKDOWN_NAME.get(library_name, ""),
        time=parse_duration(duration_text),
        allocated_bytes=_atoi(columns[3].strip().removesuffix(" B/op")),
        allocated_objects=_atoi(columns[4].strip().removesuffix(" allocs/op")),
    )
    if baseline is not None:
        row.zap_time = baseline.time
        row.zap_allocated_bytes = baseline.allocated_bytes
        row.zap_allocated_objects = baseline.allocated_objects
    return row


def sort_rows(rows: Iterable[BenchmarkRow]) -> list[BenchmarkRow]:
    """Order rows with zap's own first, each part by increasing time."""
    return sorted(rows, key=lambda row: ("zap" not in row.name, row.time))


def get_benchmark_output(benchmark_name: str) -> list[str]:
    """Run one benchmark in the benchmarks directory and return its output lines."""
    command = ["go", "test", f"-bench={benchmark_name}", "-benchmem"]
    try:
        result = subprocess.run(
            command,
            cwd=BENCHMARK_DIR,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise RuntimeError(
            f"error running 'go test -bench=\"{benchmark_name}\"': {exc}\n"
        ) from exc
    output = result.stdout or ""
    if result.returncode != 0:
        raise RuntimeError(
            f"error running 'go test -bench=\"{benchmark_name}\"': "
            f"exit status {result.returncode}\n{output}"
        )
    return output.split("\n")


def get_benchmark_rows(benchmark_name: str) -> str:
    """Run a benchmark and render its results as a Markdown table."""
    output = get_benchmark_output(benchmark_name)
    baseline = get_benchmark_row(output, benchmark_name, "Zap", None)
    rows = []
    for library_name in LIBRARY_NAME_TO_MARKDOWN_NAME:
        row = get_benchmark_row(output, benchmark_name, library_name, baseline)
        if row is not None:
            rows.append(row)
    table = list(TABLE_HEADER)
    table.extend(str(row) for row in sort_rows(rows))
    return "\n".join(table)


def _get_template_data() -> dict[str, str]:
    return {name: get_benchmark_rows(name) for name in BENCHMARK_NAMES}


def _lookup(data: Any, name: str) -> Any:
    if isinstance(data, Mapping):
        if name in data:
            return data[name]
    elif hasattr(data, name):
        return getattr(data, name)
    raise ValueError(f"can't evaluate field {name}")


def render_template(template_text: str, data: Any) -> str:
    """Fill ``{{ .Field }}`` actions in ``template_text`` from ``data``.

    ``data`` may be a mapping or an object with attributes. The ``{{-`` and
    ``-}}`` markers trim the whitespace next to an action.
    """
    pieces: list[str] = []
    pos = 0
    while True:
        start = template_text.find("{{", pos)
        if start < 0:
            pieces.append(template_text[pos:])
            break
        end = template_text.find("}}", start + 2)
        if end < 0:
            raise ValueError("unclosed action")
        literal = template_text[pos:start]
        inner = template_text[start + 2 : end]

        trim_left = len(inner) > 1 and inner[0] == "-" and inner[1] in _TRIM_SPACE
        if trim_left:
            inner = inner[1:]
            literal = literal.rstrip(_TRIM_SPACE)
        trim_right = len(inner) > 1 and inner[-1] == "-" and inner[-2] in _TRIM_SPACE
        if trim_right:
            inner = inner[:-1]

        pieces.append(literal)
        action = inner.strip(_TRIM_SPACE)
        match = _FIELD.fullmatch(action)
        if match is None:
            raise ValueError(f"unsupported template action: {{{{{action}}}}}")
        pieces.append(str(_lookup(data, match.group(1))))

        pos = end + 2
        if trim_right:
            while pos < len(template_text) and template_text[pos] in _TRIM_SPACE:
                pos += 1
    return "".join(pieces)


def main(argv: Optional[list[str]] = None) -> int:
    """Read a template from stdin and write the filled-in README to stdout."""
    parser = argparse.ArgumentParser(
        prog="readme",
        description="Generate the README from a template read on standard input.",
    )
    parser.parse_args(argv)
    try:
        data = _get_template_data()
        template_text = sys.stdin.read()
        output = render_template(template_text, data)
    except (OSError, ValueError, RuntimeError) as exc:
        print(exc, file=sys.stderr)
        return 1
    sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())