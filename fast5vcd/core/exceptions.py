# fast5vcd/core/exceptions.py
from __future__ import annotations


class CoreError(Exception):
    """Base error for all fast5vcd exceptions."""


# ---- Lookup errors (expected-absent structures, behave like KeyError) ----
class GroupNotFound(CoreError, KeyError):
    """Raised when a required group (or its single read sub-group) is absent."""


class DatasetNotFound(CoreError, KeyError):
    """Raised when the dataset attached to a record is absent."""


class AttributeNotFound(CoreError, KeyError):
    """Raised by a container when an attribute does not exist."""


# ---- Decode errors ----
class AttributeTypeMismatch(CoreError, TypeError):
    """Raised when an attribute value cannot be coerced to the field type."""


class InvalidEventLayout(CoreError, TypeError):
    """Raised when an event dataset's compound type does not match Event."""


class InvalidCalibration(CoreError, ValueError):
    """Raised when calibration coefficients cannot convert samples."""


class OutOfRange(CoreError, IndexError):
    """Raised when a range read asks for more elements than the dataset holds."""


# ---- I/O errors ----
class ContainerError(CoreError, OSError):
    """Raised when the source container cannot be opened or accessed."""


class NotAFast5File(ContainerError):
    """Raised when an HDF5 file lacks the structures every FAST5 file carries."""


class WaveformIOError(CoreError, OSError):
    """Raised when the waveform destination cannot be opened or written."""


# ---- Waveform timeline errors ----
class InvalidVariable(CoreError, ValueError):
    """Raised when a variable is registered or fed with invalid inputs."""


class CapacityExceeded(CoreError):
    """Raised when the timeline's identifier alphabet is exhausted."""


class TimelineClosed(CoreError, RuntimeError):
    """Raised when a closed timeline (or one of its variables) is used."""
