# test/conftest.py
from __future__ import annotations

from pathlib import Path

import h5py
import numpy as np
import pytest

from fast5vcd.core import EVENT_DTYPE


READ_ID = "3b0d1f4e-7c2a-4a55-9e1b-0c7f2d1a9e63"

CHANNEL_ATTRS = {
    "channel_number": "123",
    "digitisation": (8192.0, np.float64),
    "offset": (6.0, np.float64),
    "range": (1467.61, np.float64),
    "sampling_rate": (4000.0, np.float64),
}

RAW_ATTRS = {
    "duration": (10, np.uint32),
    "median_before": (219.8, np.float64),
    "read_id": (READ_ID.encode(), "S64"),
    "read_number": (812, np.int32),
    "start_mux": (2, np.uint8),
    "start_time": (1234567, np.uint64),
}

EVENT_ATTRS = {
    "duration": (16, np.uint32),
    "median_before": (219.8, np.float64),
    "read_id": READ_ID,
    "read_number": (812, np.int32),
    "scaling_used": (1, np.int32),
    "start_mux": (2, np.uint8),
    "start_time": (1234567, np.uint64),
}

SIGNAL = np.array([480, 480, 482, 490, 490, 475, 475, 475, 500, -12], dtype=np.int16)

EVENTS = np.array(
    [
        (1234567, 4, 80.5, 1.5, 2.25),
        (1234571, 6, 95.25, 2.0, 4.0),
        (1234577, 1, 70.0, 0.5, 0.25),
        (1234578, 5, 88.125, 1.25, 1.5625),
    ],
    dtype=EVENT_DTYPE,
)

_DEFAULT = object()


def _set_attrs(obj: h5py.HLObject, attrs: dict) -> None:
    for name, value in attrs.items():
        if isinstance(value, tuple):
            data, dtype = value
            obj.attrs.create(name, data, dtype=dtype)
        else:
            obj.attrs[name] = value


def write_fast5(
    path: Path,
    *,
    file_version=1.1,
    global_key: bool = True,
    channel_attrs=_DEFAULT,
    raw_reads=_DEFAULT,
    analyses=_DEFAULT,
    sequences: bool = False,
) -> Path:
    """Write a minimal FAST5 file.

    raw_reads:
        {read_name: (attrs, signal)}; None for no /Raw group, {} for an
        empty /Raw/Reads. A None signal leaves the dataset out.
    analyses:
        {analysis: {read_name: (attrs, events)}}; None for no /Analyses.
    """
    if channel_attrs is _DEFAULT:
        channel_attrs = CHANNEL_ATTRS
    if raw_reads is _DEFAULT:
        raw_reads = {"Read_812": (RAW_ATTRS, SIGNAL)}
    if analyses is _DEFAULT:
        analyses = {"EventDetection_000": {"Read_812": (EVENT_ATTRS, EVENTS)}}

    with h5py.File(path, "w") as f:
        if file_version is not None:
            f.attrs.create("file_version", file_version, dtype=np.float64)

        if global_key:
            key = f.create_group("UniqueGlobalKey")
            if channel_attrs is not None:
                _set_attrs(key.create_group("channel_id"), channel_attrs)

        if raw_reads is not None:
            reads = f.create_group("Raw/Reads")
            for name, (attrs, signal) in raw_reads.items():
                group = reads.create_group(name)
                _set_attrs(group, attrs)
                if signal is not None:
                    group.create_dataset("Signal", data=signal)

        if analyses is not None:
            root = f.create_group("Analyses")
            for analysis, reads in analyses.items():
                group_reads = root.create_group(f"{analysis}/Reads")
                for name, (attrs, events) in reads.items():
                    group = group_reads.create_group(name)
                    _set_attrs(group, attrs)
                    if events is not None:
                        group.create_dataset("Events", data=events)

        if sequences:
            f.create_group("Sequences")

    return path


@pytest.fixture
def make_fast5(tmp_path):
    """Factory: make_fast5(name="read.fast5", **write_fast5 options) -> Path."""

    def _make(name: str = "read.fast5", **kwargs) -> Path:
        return write_fast5(tmp_path / name, **kwargs)

    return _make


@pytest.fixture
def fast5_path(make_fast5) -> Path:
    return make_fast5()
