from __future__ import annotations

import logging
import math
import os
from typing import Any

import h5py
import numpy as np

from fast5vcd.core import (
    CHANNEL_NUMBER_MAX,
    EVENT_DTYPE,
    EVENT_FIELDS,
    FILENAME_MAX,
    READ_ID_MAX,
    AttributeNotFound,
    AttributeTypeMismatch,
    ChannelCalibration,
    EventDetectionInfo,
    FileInfo,
    FileVersion,
    GroupNotFound,
    InvalidEventLayout,
    NotAFast5File,
    OutOfRange,
    RawReadInfo,
    bounded_str,
)
from fast5vcd.io.container import ContainerAccessor, RawAttribute
from fast5vcd.io.navigator import (
    DEFAULT_EVENT_ANALYSIS,
    locate_event_group,
    locate_raw_group,
)


logger = logging.getLogger(__name__)

ROOT = "/"
GLOBAL_KEY = "/UniqueGlobalKey"
CHANNEL_ID = "/UniqueGlobalKey/channel_id"
RAW_SIGNAL = "Signal"
EVENTS = "Events"

_INTEGER_FIELDS = ("start", "length")


# ----------------------------------------------------------------------
# Attribute coercion
# ----------------------------------------------------------------------
def _scalar(raw: RawAttribute) -> Any:
    value = raw.value
    if isinstance(value, np.ndarray):
        if value.size != 1:
            raise AttributeTypeMismatch(
                f"'{raw.name}' holds {value.size} elements, expected a scalar"
            )
        value = value.reshape(-1)[0]
    return value


def coerce_number(raw: RawAttribute, target: np.dtype) -> int | float:
    """Widen a numeric attribute to `target` (an integer or float dtype).

    The value is taken at its stored width. Integer targets reject
    non-integral floats and values outside the target range; numeric text
    is parsed.
    """
    target = np.dtype(target)
    value = _scalar(raw)

    if isinstance(value, (bytes, str)):
        text = bounded_str(value, len(value)).strip()
        try:
            value = float(text) if target.kind == "f" else int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError as e:
                raise AttributeTypeMismatch(f"'{raw.name}' = {text!r} is not a number") from e

    if isinstance(value, (bool, np.bool_)):
        raise AttributeTypeMismatch(f"'{raw.name}' is boolean, expected {target}")

    if target.kind == "f":
        if isinstance(value, (int, float, np.integer, np.floating)):
            return float(value)
        raise AttributeTypeMismatch(f"'{raw.name}' of type {raw.dtype} is not numeric")

    if isinstance(value, (int, np.integer)):
        number = int(value)
    elif isinstance(value, (float, np.floating)) and float(value).is_integer():
        number = int(value)
    else:
        raise AttributeTypeMismatch(f"'{raw.name}' = {value!r} is not an integer")

    info = np.iinfo(target)
    if not info.min <= number <= info.max:
        raise AttributeTypeMismatch(f"'{raw.name}' = {number} does not fit {target}")
    return number


def coerce_string(raw: RawAttribute, max_len: int) -> str:
    """Decode a fixed- or variable-length string attribute, truncated to `max_len`."""
    value = _scalar(raw)
    if isinstance(value, (bytes, str)):
        return bounded_str(value, max_len)
    if isinstance(value, np.integer):
        return bounded_str(str(int(value)), max_len)
    raise AttributeTypeMismatch(f"'{raw.name}' of type {raw.dtype} is not a string")


class _FieldReader:
    """Read attributes of one group, each falling back to a default on failure."""

    def __init__(
        self,
        container: ContainerAccessor,
        group: str,
        record: str,
        log: logging.Logger,
    ):
        self._container = container
        self._group = group
        self._record = record
        self._log = log

    def _read(self, name: str) -> RawAttribute | None:
        try:
            return self._container.read_attribute(self._group, name)
        except AttributeNotFound:
            self._log.warning(
                "%s: attribute '%s' not found in '%s'", self._record, name, self._group
            )
            return None

    def number(self, name: str, dtype: type, default: int | float = 0) -> Any:
        raw = self._read(name)
        if raw is None:
            return default
        try:
            return coerce_number(raw, np.dtype(dtype))
        except AttributeTypeMismatch as e:
            self._log.warning(
                "%s: cannot decode '%s' in '%s' (%s), using %r",
                self._record, name, self._group, e, default,
            )
            return default

    def string(self, name: str, max_len: int, default: str = "") -> str:
        raw = self._read(name)
        if raw is None:
            return default
        info = h5py.check_string_dtype(raw.dtype)
        if info is not None:
            self._log.debug(
                "%s: '%s' is a %s string",
                self._record, name,
                "variable-length" if info.length is None else f"{info.length}-byte",
            )
        try:
            return coerce_string(raw, max_len)
        except AttributeTypeMismatch as e:
            self._log.warning(
                "%s: cannot decode '%s' in '%s' (%s), using %r",
                self._record, name, self._group, e, default,
            )
            return default


def _element_count(container: ContainerAccessor, dataset: str, record: str, log: logging.Logger) -> int:
    """First-dimension extent of `dataset` (DatasetNotFound propagates)."""
    extent = container.dataset_extent(dataset)
    if not extent:
        log.warning("%s: dataset '%s' is scalar, treating as empty", record, dataset)
        return 0
    if len(extent) > 1:
        log.debug("%s: dataset '%s' has shape %s, using first dimension", record, dataset, extent)
    return int(extent[0])


# ----------------------------------------------------------------------
# Record decoders
# ----------------------------------------------------------------------
def decode_file_info(
    container: ContainerAccessor,
    path: str | os.PathLike,
    *,
    log: logging.Logger = logger,
) -> FileInfo:
    """Identity of the file: name, version and which top-level groups exist."""
    try:
        raw = container.read_attribute(ROOT, "file_version")
    except AttributeNotFound as e:
        raise NotAFast5File(f"'{path}': attribute '/file_version' not found") from e
    try:
        version = coerce_number(raw, np.dtype(np.float64))
    except AttributeTypeMismatch as e:
        raise NotAFast5File(f"'{path}': unreadable '/file_version' ({e})") from e
    if not math.isfinite(version):
        raise NotAFast5File(f"'{path}': '/file_version' is {version}")

    if not container.link_exists(GLOBAL_KEY):
        raise NotAFast5File(f"'{path}': group '{GLOBAL_KEY}' not found")

    info = FileInfo(
        filename=bounded_str(os.path.basename(os.fspath(path)), FILENAME_MAX),
        version=FileVersion.from_float(version),
        has_raw=container.link_exists("/Raw"),
        has_analyses=container.link_exists("/Analyses"),
        has_sequences=container.link_exists("/Sequences"),
    )
    log.info("%s: file_version = %s", info.filename, info.version)
    return info


def decode_channel_calibration(
    container: ContainerAccessor,
    *,
    log: logging.Logger = logger,
) -> ChannelCalibration:
    if not container.link_exists(CHANNEL_ID):
        raise GroupNotFound(CHANNEL_ID)

    fields = _FieldReader(container, CHANNEL_ID, "ChannelCalibration", log)
    return ChannelCalibration(
        channel_number=fields.string("channel_number", CHANNEL_NUMBER_MAX),
        digitisation=fields.number("digitisation", np.float64, 0.0),
        offset=fields.number("offset", np.float64, 0.0),
        range=fields.number("range", np.float64, 0.0),
        sampling_rate=fields.number("sampling_rate", np.float64, 0.0),
    )


def decode_raw_read_info(
    container: ContainerAccessor,
    *,
    log: logging.Logger = logger,
) -> RawReadInfo:
    """Metadata of the read under /Raw/Reads (GroupNotFound when absent)."""
    location = locate_raw_group(container, log=log)
    dataset = location.child(RAW_SIGNAL)
    log.info("Raw signal: %s", dataset)

    fields = _FieldReader(container, location.group, "RawReadInfo", log)
    return RawReadInfo(
        group=location.group,
        dataset=dataset,
        read_name=location.read_name,
        duration=fields.number("duration", np.uint32),
        median_before=fields.number("median_before", np.float64, 0.0),
        read_id=fields.string("read_id", READ_ID_MAX),
        read_number=fields.number("read_number", np.uint32),
        start_mux=fields.number("start_mux", np.int32),
        start_time=fields.number("start_time", np.uint64),
        sample_count=_element_count(container, dataset, "RawReadInfo", log),
    )


def decode_event_detection_info(
    container: ContainerAccessor,
    analysis: str | None = DEFAULT_EVENT_ANALYSIS,
    *,
    log: logging.Logger = logger,
) -> EventDetectionInfo:
    """Metadata of the read under /Analyses/<analysis>/Reads (GroupNotFound when absent)."""
    location = locate_event_group(container, analysis, log=log)
    dataset = location.child(EVENTS)
    log.info("Event detection events: %s", dataset)

    fields = _FieldReader(container, location.group, "EventDetectionInfo", log)
    return EventDetectionInfo(
        group=location.group,
        dataset=dataset,
        analysis=location.analysis or "",
        read_name=location.read_name,
        duration=fields.number("duration", np.uint32),
        median_before=fields.number("median_before", np.float64, 0.0),
        read_id=fields.string("read_id", READ_ID_MAX),
        read_number=fields.number("read_number", np.uint32),
        scaling_used=fields.number("scaling_used", np.int64),
        start_mux=fields.number("start_mux", np.int32),
        start_time=fields.number("start_time", np.float64, 0.0),
        event_count=_element_count(container, dataset, "EventDetectionInfo", log),
    )


# ----------------------------------------------------------------------
# Range readers
# ----------------------------------------------------------------------
def _check_range(offset: int, count: int | None, total: int, what: str) -> tuple[int, int]:
    if count is None:
        count = total - offset
    if offset < 0 or count < 0 or offset + count > total:
        raise OutOfRange(
            f"{what}: requested [{offset}, {offset + count}) but only {total} elements exist"
        )
    return offset, count


def validate_event_layout(dtype: np.dtype, dataset: str = "Events") -> None:
    """Check a container compound type against EVENT_DTYPE, field by field.

    All five fields must exist, in Event order (other fields may sit in
    between), with integer start/length and numeric statistics no wider
    than 64 bits.
    """
    names = dtype.names
    if names is None:
        raise InvalidEventLayout(f"'{dataset}' is not a compound dataset ({dtype})")

    missing = [n for n in EVENT_FIELDS if n not in names]
    if missing:
        raise InvalidEventLayout(f"'{dataset}' lacks fields: {', '.join(missing)}")

    positions = [names.index(n) for n in EVENT_FIELDS]
    if positions != sorted(positions):
        raise InvalidEventLayout(
            f"'{dataset}' fields are out of order: {[names[p] for p in sorted(positions)]}"
        )

    for name in EVENT_FIELDS:
        field_dtype = dtype.fields[name][0]
        allowed = "iu" if name in _INTEGER_FIELDS else "iuf"
        if field_dtype.kind not in allowed or field_dtype.itemsize > 8:
            raise InvalidEventLayout(
                f"'{dataset}' field '{name}' has type {field_dtype}, "
                f"expected {EVENT_DTYPE.fields[name][0]}"
            )


def read_samples(
    container: ContainerAccessor,
    info: RawReadInfo,
    offset: int = 0,
    count: int | None = None,
    *,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """Read `count` raw int16 samples starting at `offset`.

    With `out`, the samples are written into it (shape (count,), int16) and
    it is returned; nothing is written when the range is invalid.
    """
    offset, count = _check_range(offset, count, info.sample_count, info.dataset)
    if out is not None and (out.shape != (count,) or out.dtype != np.int16):
        raise ValueError(f"out must be an int16 array of shape ({count},)")

    raw = container.read_range(info.dataset, offset, count)
    if raw.shape[0] != count:
        raise OutOfRange(f"{info.dataset}: dataset returned {raw.shape[0]} of {count} samples")

    if out is None:
        return np.array(raw, dtype=np.int16, order="C")
    out[...] = raw
    return out


def read_events(
    container: ContainerAccessor,
    info: EventDetectionInfo,
    offset: int = 0,
    count: int | None = None,
) -> np.ndarray:
    """Read `count` events starting at `offset` as an EVENT_DTYPE array."""
    validate_event_layout(container.dataset_dtype(info.dataset), info.dataset)
    offset, count = _check_range(offset, count, info.event_count, info.dataset)

    raw = container.read_range(info.dataset, offset, count)
    if raw.shape[0] != count:
        raise OutOfRange(f"{info.dataset}: dataset returned {raw.shape[0]} of {count} events")

    events = np.empty(count, dtype=EVENT_DTYPE)
    for name in EVENT_FIELDS:
        events[name] = raw[name]
    return events
