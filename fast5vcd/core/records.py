# fast5vcd/core/records.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator

import numpy as np

from .exceptions import InvalidCalibration


# Field widths of the fixed-size string fields. Downstream tools rely on them.
FILENAME_MAX = 255
READ_ID_MAX = 63
CHANNEL_NUMBER_MAX = 15

# Field order and widths mirror the EventDetection "Events" compound type.
EVENT_DTYPE = np.dtype(
    [
        ("start", np.int64),
        ("length", np.int64),
        ("mean", np.float64),
        ("stdv", np.float64),
        ("variance", np.float64),
    ]
)
EVENT_FIELDS: tuple[str, ...] = EVENT_DTYPE.names  # type: ignore[assignment]


def bounded_str(value: str | bytes, max_len: int) -> str:
    """Return `value` as text, cut at the first NUL and truncated to `max_len`.

    Fixed-length strings arrive as bytes padded with NULs; variable-length
    strings arrive as str. Both end up as plain text of at most `max_len`
    characters.
    """
    if max_len < 0:
        raise ValueError("max_len must be >= 0")
    if isinstance(value, (bytes, np.bytes_)):
        text = bytes(value).split(b"\0", 1)[0].decode("utf-8", errors="replace")
    elif isinstance(value, str):
        text = value.split("\0", 1)[0]
    else:
        raise TypeError(f"expected str or bytes, got {type(value).__name__}")
    return text[:max_len]


@dataclass(frozen=True, slots=True)
class FileVersion:
    """
    FAST5 file version split into major/minor parts.

    The container stores the version as one float where the minor part is
    the first two decimal digits (1.1 -> 1.10, 1.99 -> 1.99).
    """
    major: int = 0
    minor: int = 0

    @classmethod
    def from_float(cls, version: float) -> "FileVersion":
        major = math.floor(version)
        minor = round((version - major) * 100)
        return cls(major=int(major), minor=int(minor))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Top-level identity of an opened FAST5 file."""
    filename: str
    version: FileVersion
    has_raw: bool = False
    has_analyses: bool = False
    has_sequences: bool = False


@dataclass(frozen=True, slots=True)
class ChannelCalibration:
    """
    ADC to picoamp mapping of one acquisition channel.

    The decoder only exposes the coefficients; `to_picoamps` is a helper
    for callers holding raw int16 samples.
    """
    channel_number: str = ""
    digitisation: float = 0.0
    offset: float = 0.0
    range: float = 0.0
    sampling_rate: float = 0.0

    @property
    def scale(self) -> float:
        if self.digitisation == 0:
            raise InvalidCalibration("digitisation is 0, cannot compute scale.")
        return self.range / self.digitisation

    def to_picoamps(self, raw: np.ndarray | Iterable[int]) -> np.ndarray:
        scale = self.scale
        samples = np.asarray(raw, dtype=np.float64)
        return (samples + self.offset) * scale


@dataclass(frozen=True, slots=True)
class RawReadInfo:
    """Metadata of the raw signal capture found under /Raw/Reads."""
    group: str = ""
    dataset: str = ""
    read_name: str = ""
    duration: int = 0
    median_before: float = 0.0
    read_id: str = ""
    read_number: int = 0
    start_mux: int = 0
    start_time: int = 0
    sample_count: int = 0


@dataclass(frozen=True, slots=True)
class EventDetectionInfo:
    """Metadata of the event segmentation run under /Analyses."""
    group: str = ""
    dataset: str = ""
    analysis: str = ""
    read_name: str = ""
    duration: int = 0
    median_before: float = 0.0
    read_id: str = ""
    read_number: int = 0
    scaling_used: int = 0
    start_mux: int = 0
    start_time: float = 0.0
    event_count: int = 0


@dataclass(frozen=True, slots=True)
class Event:
    """One detected segment: `length` samples starting at sample `start`."""
    start: int
    length: int
    mean: float
    stdv: float
    variance: float

    @classmethod
    def from_record(cls, record: np.void) -> "Event":
        return cls(
            start=int(record["start"]),
            length=int(record["length"]),
            mean=float(record["mean"]),
            stdv=float(record["stdv"]),
            variance=float(record["variance"]),
        )


def iter_events(events: np.ndarray) -> Iterator[Event]:
    """Yield `Event` records from an array of `EVENT_DTYPE`."""
    if events.dtype != EVENT_DTYPE:
        raise TypeError(f"expected EVENT_DTYPE array, got {events.dtype}")
    for record in events:
        yield Event.from_record(record)
