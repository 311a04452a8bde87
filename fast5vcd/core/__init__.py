# fast5vcd/core/__init__.py
"""
Core domain objects for fast5vcd.

This module defines the format-agnostic data model:
- FileInfo / FileVersion: identity of an opened FAST5 file
- ChannelCalibration: ADC to picoamp coefficients of one channel
- RawReadInfo / EventDetectionInfo: metadata of the raw and event reads
- Event: one detected segment (EVENT_DTYPE for bulk arrays)
- WaveformTimeline / Variable: VCD document built from sample streams

The core layer is independent from HDF5 and h5py.
"""

from .records import (
    FILENAME_MAX,
    READ_ID_MAX,
    CHANNEL_NUMBER_MAX,
    EVENT_DTYPE,
    EVENT_FIELDS,
    bounded_str,
    FileVersion,
    FileInfo,
    ChannelCalibration,
    RawReadInfo,
    EventDetectionInfo,
    Event,
    iter_events,
)
from .buffer import SampleBuffer
from .waveform import IDENTIFIERS, VARIABLE_NAME_MAX, Variable, WaveformTimeline
from .exceptions import (
    CoreError,
    GroupNotFound,
    DatasetNotFound,
    AttributeNotFound,
    AttributeTypeMismatch,
    InvalidEventLayout,
    InvalidCalibration,
    OutOfRange,
    ContainerError,
    NotAFast5File,
    WaveformIOError,
    InvalidVariable,
    CapacityExceeded,
    TimelineClosed,
)


__all__ = [
    # records
    "FILENAME_MAX",
    "READ_ID_MAX",
    "CHANNEL_NUMBER_MAX",
    "EVENT_DTYPE",
    "EVENT_FIELDS",
    "bounded_str",
    "FileVersion",
    "FileInfo",
    "ChannelCalibration",
    "RawReadInfo",
    "EventDetectionInfo",
    "Event",
    "iter_events",

    # waveform
    "SampleBuffer",
    "IDENTIFIERS",
    "VARIABLE_NAME_MAX",
    "Variable",
    "WaveformTimeline",

    # exceptions
    "CoreError",
    "GroupNotFound",
    "DatasetNotFound",
    "AttributeNotFound",
    "AttributeTypeMismatch",
    "InvalidEventLayout",
    "InvalidCalibration",
    "OutOfRange",
    "ContainerError",
    "NotAFast5File",
    "WaveformIOError",
    "InvalidVariable",
    "CapacityExceeded",
    "TimelineClosed",
]
