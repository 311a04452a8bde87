# fast5vcd/io/export.py
from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import IO, Iterable

import numpy as np

from fast5vcd.core import (
    VARIABLE_NAME_MAX,
    InvalidCalibration,
    WaveformTimeline,
)
from fast5vcd.io.fast5 import Fast5File
from fast5vcd.io.navigator import DEFAULT_EVENT_ANALYSIS


RAW_SUFFIX = "_raw"
EVENTS_SUFFIX = "_ev"

_WHITESPACE_RE = re.compile(r"\s+")


def variable_name(path: str | Path, suffix: str) -> str:
    """'reads/run 01.fast5' + '_raw' -> 'run_01_raw', kept within VARIABLE_NAME_MAX."""
    stem = _WHITESPACE_RE.sub("_", Path(path).stem) or "read"
    return stem[:VARIABLE_NAME_MAX - len(suffix)] + suffix


def events_to_steps(events: np.ndarray) -> np.ndarray:
    """Expand events into one mean value per sample.

    Sample k (counted from the first event's start) takes the mean of the
    last event starting at or before k, so gaps hold the previous level.
    """
    if events.size == 0:
        return np.empty(0, dtype=np.float64)
    rel = events["start"] - events["start"][0]
    total = int((rel + events["length"]).max())
    marks = np.searchsorted(rel, np.arange(total), side="right") - 1
    return events["mean"][marks].astype(np.float64)


def export_waveform(
    paths: Iterable[str | Path],
    destination: str | os.PathLike | IO[str] | None = None,
    *,
    raw: bool = True,
    events: bool = False,
    timescale: float = 1e-6,
    analysis: str | None = DEFAULT_EVENT_ANALYSIS,
    logger: logging.Logger | None = None,
    date: datetime | None = None,
) -> list[str]:
    """Write raw signals and/or event levels of FAST5 files as one VCD document.

    Each file contributes `<stem>_raw` (int16 samples) and/or `<stem>_ev`
    (event means, real) sampled at the channel's sampling rate. Files
    without the requested read are skipped with a warning. When a file
    contributes both, they are placed on its shared sample clock.

    Returns the names of the registered variables.
    """
    log = logger or logging.getLogger(__name__)
    names: list[str] = []

    with WaveformTimeline(destination, timescale, date=date) as timeline:
        for path in paths:
            with Fast5File(path, analysis=analysis, logger=log) as f5:
                rate = f5.channel_id.sampling_rate
                if rate <= 0:
                    raise InvalidCalibration(f"{f5.info.filename}: sampling_rate is {rate}")

                raw_var = ev_var = None
                raw_start = ev_start = 0

                if raw:
                    info = f5.raw_info
                    if info is None or info.sample_count == 0:
                        log.warning("%s: no raw samples to export", f5.info.filename)
                    else:
                        raw_var = timeline.register_variable(
                            variable_name(path, RAW_SUFFIX), rate, dtype=np.int16
                        )
                        raw_var.append(f5.read_raw())
                        raw_start = info.start_time
                        names.append(raw_var.name)

                if events:
                    info = f5.events_info
                    steps = None
                    if info is not None and info.event_count > 0:
                        records = f5.read_events()
                        steps = events_to_steps(records)
                    if steps is None or steps.size == 0:
                        log.warning("%s: no events to export", f5.info.filename)
                    else:
                        ev_var = timeline.register_variable(
                            variable_name(path, EVENTS_SUFFIX), rate, dtype=np.float64
                        )
                        ev_var.append(steps)
                        ev_start = int(records["start"][0])
                        names.append(ev_var.name)

                # both series of a file share the sample clock
                if raw_var is not None and ev_var is not None:
                    origin = min(raw_start, ev_start)
                    raw_var.start_time = (raw_start - origin) / rate
                    ev_var.start_time = (ev_start - origin) / rate

    log.info("Exported %d variables", len(names))
    return names
