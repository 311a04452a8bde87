# fast5vcd/core/waveform.py
"""
Value Change Dump (VCD) writer.

A WaveformTimeline writes its header as soon as it is created, collects
samples for each registered Variable in memory and serializes declarations
and value changes when it is closed:

    $date Oct 19, 2026 9:05:07 $end
    $timescale 1000 ns $end
    $scope module top $end
    $var wire 16 ! read_raw $end
    $enddefinitions $end
    $dumpvars
    b0000000000000000 !
    $end
    #2000
    b0000000000000001 !
"""
from __future__ import annotations

import logging
import math
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import IO, Iterable

import numpy as np

from .buffer import SampleBuffer
from .exceptions import (
    CapacityExceeded,
    InvalidVariable,
    TimelineClosed,
    WaveformIOError,
)


logger = logging.getLogger(__name__)

# Identifier symbols, assigned in table order. One symbol per variable.
IDENTIFIERS = "!\"#$%&'()*+"
VARIABLE_NAME_MAX = 29

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass(slots=True, eq=False)
class Variable:
    """
    One named scalar series of a WaveformTimeline.

    Only valid while its timeline is open; `close()` releases the samples.
    """
    name: str
    identifier: str
    width: int
    kind: str                       # "wire" or "real"
    period: float                   # seconds between samples
    start_time: float = 0.0
    _timeline: "WaveformTimeline | None" = field(default=None, repr=False)
    _buffer: SampleBuffer | None = field(default=None, repr=False)

    @property
    def dtype(self) -> np.dtype:
        return self._live_buffer().dtype

    @property
    def n(self) -> int:
        return len(self._live_buffer())

    @property
    def samples(self) -> np.ndarray:
        return self._live_buffer().view()

    def append(self, values: np.ndarray | Iterable[float]) -> None:
        if self._timeline is None:
            raise TimelineClosed(f"Variable '{self.name}' is no longer attached to a timeline.")
        self._timeline.append(self, values)

    def format_value(self, value) -> str:
        if self.kind == "real":
            return f"r{float(value):.16g} {self.identifier}"
        bits = int(value) & ((1 << self.width) - 1)
        if self.width == 1:
            return f"{bits}{self.identifier}"
        return f"b{bits:0{self.width}b} {self.identifier}"

    def _live_buffer(self) -> SampleBuffer:
        if self._buffer is None:
            raise TimelineClosed(f"Variable '{self.name}' was released by close().")
        return self._buffer

    def _release(self) -> None:
        if self._buffer is not None:
            self._buffer.release()
        self._buffer = None
        self._timeline = None


def _differs(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Elementwise a != b, with NaN equal to NaN."""
    if a.dtype.kind == "f":
        return ~((a == b) | (np.isnan(a) & np.isnan(b)))
    return a != b


def _open_destination(destination: str | os.PathLike | IO[str] | None) -> tuple[IO[str], bool]:
    """Return (stream, owned). Only streams opened here are closed by us."""
    if destination is None:
        return sys.stdout, False
    if isinstance(destination, (str, os.PathLike)):
        try:
            return open(destination, "w", encoding="ascii", newline="\n"), True
        except OSError as e:
            raise WaveformIOError(f"Cannot open '{destination}' for writing: {e}") from e
    if hasattr(destination, "write"):
        return destination, False
    raise TypeError("destination must be None, a path or a writable text stream.")


class WaveformTimeline:
    """
    In-memory multi-variable time series serialized as a VCD document.

    Open -> Closed. Variables are registered and fed while open; close()
    writes declarations and value changes, releases every buffer and closes
    the destination if the timeline opened it.
    """

    def __init__(
        self,
        destination: str | os.PathLike | IO[str] | None = None,
        timescale: float = 1e-6,
        *,
        date: datetime | None = None,
    ) -> None:
        if not math.isfinite(timescale) or timescale <= 0:
            raise ValueError("timescale must be a positive number of seconds.")
        timescale_ns = round(timescale * 1e9)
        if timescale_ns < 1:
            raise ValueError("timescale must be at least 1 ns.")

        self._timescale = timescale
        self._variables: list[Variable] = []
        self._closed = False
        self._stream, self._owns_stream = _open_destination(destination)

        when = date if date is not None else datetime.now(timezone.utc)
        self._write(
            f"$date {_MONTHS[when.month - 1]} {when.day}, {when.year} "
            f"{when.hour}:{when.minute:02d}:{when.second:02d} $end\n"
            f"$timescale {timescale_ns} ns $end\n"
            "$scope module top $end\n"
        )

    # ---- state ----
    @property
    def timescale(self) -> float:
        return self._timescale

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def variables(self) -> tuple[Variable, ...]:
        return tuple(self._variables)

    def __enter__(self) -> "WaveformTimeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._closed:
            self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise TimelineClosed("Timeline is closed.")

    # ---- registration / append ----
    def register_variable(
        self,
        name: str,
        sample_rate: float,
        *,
        dtype: np.dtype | type = np.int16,
        width: int | None = None,
    ) -> Variable:
        """
        Register a new variable sampled at `sample_rate` Hz.

        Integer and bool dtypes become `wire` variables of `width` bits
        (default: the dtype's bit size, 1 for bool). Float dtypes become
        64-bit `real` variables. Names longer than VARIABLE_NAME_MAX are
        truncated.
        """
        self._ensure_open()

        if not isinstance(name, str) or not name.strip():
            raise InvalidVariable("Variable name must be a non-empty string.")
        if any(c.isspace() for c in name):
            raise InvalidVariable(f"Variable name '{name}' must not contain whitespace.")
        name = name[:VARIABLE_NAME_MAX]
        if any(v.name == name for v in self._variables):
            raise InvalidVariable(f"Variable '{name}' already registered.")

        if not math.isfinite(sample_rate) or sample_rate <= 0:
            raise InvalidVariable(f"sample_rate must be positive, got {sample_rate}.")

        dt = np.dtype(dtype)
        if dt.kind in "biu":
            kind = "wire"
            max_width = 1 if dt.kind == "b" else dt.itemsize * 8
            if width is None:
                width = max_width
            if not 1 <= width <= max_width:
                raise InvalidVariable(f"width must be within 1..{max_width} for {dt}, got {width}.")
        elif dt.kind == "f":
            kind = "real"
            if width not in (None, 64):
                raise InvalidVariable("real variables are always 64 bits wide.")
            width = 64
        else:
            raise InvalidVariable(f"Unsupported sample dtype {dt}.")

        if len(self._variables) >= len(IDENTIFIERS):
            raise CapacityExceeded(
                f"Cannot register '{name}': all {len(IDENTIFIERS)} identifiers are in use."
            )

        var = Variable(
            name=name,
            identifier=IDENTIFIERS[len(self._variables)],
            width=width,
            kind=kind,
            period=1.0 / sample_rate,
            _timeline=self,
            _buffer=SampleBuffer(dt),
        )
        self._variables.append(var)
        logger.debug("Registered variable %s as '%s' (%s %d)", name, var.identifier, kind, width)
        return var

    def append(self, variable: Variable, values: np.ndarray | Iterable[float]) -> None:
        """Append a run of samples to `variable`."""
        self._ensure_open()
        if variable._timeline is not self:
            raise InvalidVariable(f"Variable '{variable.name}' belongs to another timeline.")

        try:
            variable._live_buffer().append(np.asarray(values))
        except (TypeError, ValueError) as e:
            raise InvalidVariable(f"Cannot append to '{variable.name}': {e}") from e

    # ---- serialization ----
    def close(self) -> None:
        """Write declarations and value changes, release buffers, close the stream."""
        self._ensure_open()
        self._closed = True
        try:
            self._write_body()
        finally:
            for var in self._variables:
                var._release()
            self._close_stream()

    def _write_body(self) -> None:
        active = [v for v in self._variables if v.n > 0]

        for var in active:
            self._write(f"$var {var.kind} {var.width} {var.identifier} {var.name} $end\n")
        self._write("$enddefinitions $end\n")

        series = [self._reduce(var) for var in active]

        # variables starting after time 0 announce their first value as a change
        self._write("$dumpvars\n")
        for var, (t, values) in zip(active, series):
            if t[0] <= 0:
                self._write(var.format_value(values[0]) + "\n")
        self._write("$end\n")

        times: list[np.ndarray] = []
        owners: list[np.ndarray] = []
        positions: list[np.ndarray] = []
        for i, (t, v) in enumerate(series):
            changed = np.flatnonzero(_differs(v[1:], v[:-1])) + 1
            if t[0] > 0:
                changed = np.concatenate(([0], changed))
            times.append(t[changed])
            owners.append(np.full(changed.size, i, dtype=np.intp))
            positions.append(changed)

        if not times:
            return
        all_t = np.concatenate(times)
        all_owner = np.concatenate(owners)
        all_pos = np.concatenate(positions)
        order = np.lexsort((all_owner, all_t))

        lines: list[str] = []
        current: int | None = None
        for k in order:
            t = int(all_t[k])
            if t != current:
                lines.append(f"#{t}\n")
                current = t
            owner = int(all_owner[k])
            lines.append(active[owner].format_value(series[owner][1][all_pos[k]]) + "\n")
        self._write("".join(lines))
        logger.info("Wrote %d value change records for %d variables", all_t.size, len(active))

    def _reduce(self, var: Variable) -> tuple[np.ndarray, np.ndarray]:
        """
        Map samples to timestamps in timescale units.

        Several samples falling on the same timestamp keep only the last one.
        """
        samples = var.samples
        idx = np.arange(samples.size, dtype=np.float64)
        t = np.rint((var.start_time + idx * var.period) / self._timescale).astype(np.int64)
        last = np.ones(t.size, dtype=bool)
        last[:-1] = t[1:] != t[:-1]
        return t[last], samples[last]

    def _write(self, text: str) -> None:
        try:
            self._stream.write(text)
        except OSError as e:
            raise WaveformIOError(f"Cannot write waveform: {e}") from e

    def _close_stream(self) -> None:
        try:
            if self._owns_stream:
                self._stream.close()
            else:
                self._stream.flush()
        except OSError as e:
            raise WaveformIOError(f"Cannot close waveform: {e}") from e
