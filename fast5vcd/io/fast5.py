from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from fast5vcd.core import (
    ChannelCalibration,
    EventDetectionInfo,
    FileInfo,
    GroupNotFound,
    RawReadInfo,
)
from fast5vcd.io.container import ContainerAccessor, open_container
from fast5vcd.io.decoder import (
    decode_channel_calibration,
    decode_event_detection_info,
    decode_file_info,
    decode_raw_read_info,
    read_events,
    read_samples,
)
from fast5vcd.io.navigator import DEFAULT_EVENT_ANALYSIS


_MISSING = object()


class Fast5File:
    """Decode session over one FAST5 file.

    FileInfo is decoded when the file is opened; the other records are
    decoded on first access and cached. `raw_info` and `events_info` are
    None when the file has no such read.

    Not thread-safe: use one Fast5File per thread.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        analysis: str | None = DEFAULT_EVENT_ANALYSIS,
        logger: logging.Logger | None = None,
        container: ContainerAccessor | None = None,
    ):
        self.path = Path(path)
        self._log = logger or logging.getLogger(__name__)
        self._analysis = analysis
        self._container = container if container is not None else open_container(self.path)
        try:
            self.info: FileInfo = decode_file_info(self._container, self.path, log=self._log)
        except Exception:
            self._container.close()
            raise

        self._channel_id: ChannelCalibration | None = None
        self._raw_info: RawReadInfo | None | object = _MISSING
        self._events_info: EventDetectionInfo | None | object = _MISSING

    def __enter__(self) -> "Fast5File":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._container.close()

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    @property
    def channel_id(self) -> ChannelCalibration:
        """Channel calibration (GroupNotFound propagates: every FAST5 file has one)."""
        if self._channel_id is None:
            self._channel_id = decode_channel_calibration(self._container, log=self._log)
        return self._channel_id

    @property
    def raw_info(self) -> RawReadInfo | None:
        if self._raw_info is _MISSING:
            try:
                self._raw_info = decode_raw_read_info(self._container, log=self._log)
            except GroupNotFound as e:
                self._log.info("%s: no raw read (%s)", self.info.filename, e)
                self._raw_info = None
        return self._raw_info  # type: ignore[return-value]

    @property
    def events_info(self) -> EventDetectionInfo | None:
        if self._events_info is _MISSING:
            try:
                self._events_info = decode_event_detection_info(
                    self._container, self._analysis, log=self._log
                )
            except GroupNotFound as e:
                self._log.info("%s: no event detection read (%s)", self.info.filename, e)
                self._events_info = None
        return self._events_info  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Bulk data
    # ------------------------------------------------------------------
    def _require_raw(self) -> RawReadInfo:
        info = self.raw_info
        if info is None:
            raise GroupNotFound(f"{self.info.filename}: no raw read")
        return info

    def _require_events(self) -> EventDetectionInfo:
        info = self.events_info
        if info is None:
            raise GroupNotFound(f"{self.info.filename}: no event detection read")
        return info

    def read_raw(self, offset: int = 0, count: int | None = None) -> np.ndarray:
        return read_samples(self._container, self._require_raw(), offset, count)

    def read_events(self, offset: int = 0, count: int | None = None) -> np.ndarray:
        return read_events(self._container, self._require_events(), offset, count)

    def raw_picoamps(self, offset: int = 0, count: int | None = None) -> np.ndarray:
        """Raw samples converted with the channel calibration."""
        return self.channel_id.to_picoamps(self.read_raw(offset, count))


def open_fast5(path: str | Path, **kwargs) -> Fast5File:
    return Fast5File(path, **kwargs)
