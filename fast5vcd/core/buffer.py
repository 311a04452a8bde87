# fast5vcd/core/buffer.py
from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


_INITIAL_CAPACITY = 1024


@dataclass(slots=True)
class SampleBuffer:
    """
    Growable, owned 1D sample buffer.

    Capacity doubles whenever an append does not fit, so the total cost of
    appending N samples is O(N). Previously appended samples are never
    modified by a resize. `release()` drops the storage; the buffer is empty
    afterwards and can be refilled.
    """
    dtype: np.dtype
    _data: np.ndarray = field(init=False, repr=False)
    _size: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.dtype = np.dtype(self.dtype)
        self._data = np.empty(0, dtype=self.dtype)

    def __len__(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return int(self._data.size)

    def append(self, values: np.ndarray) -> None:
        v = np.asarray(values)
        if v.ndim != 1:
            raise ValueError(f"expected 1D samples, got shape {v.shape}")
        if v.size == 0:
            return
        v = self._cast(v)

        needed = self._size + v.size
        if needed > self.capacity:
            self._grow(needed)
        self._data[self._size:needed] = v
        self._size = needed

    def _cast(self, v: np.ndarray) -> np.ndarray:
        """Integer input into an integer or bool buffer is range checked, not wrapped."""
        if self.dtype.kind in "biu" and v.dtype.kind in "biu":
            if v.dtype.kind != "b":
                if self.dtype.kind == "b":
                    lo, hi = 0, 1
                else:
                    limits = np.iinfo(self.dtype)
                    lo, hi = int(limits.min), int(limits.max)
                if int(v.min()) < lo or int(v.max()) > hi:
                    raise ValueError(f"samples out of range {lo}..{hi} for {self.dtype}")
            return v.astype(self.dtype, casting="unsafe", copy=False)
        return v.astype(self.dtype, casting="same_kind", copy=False)

    def _grow(self, needed: int) -> None:
        capacity = max(self.capacity, _INITIAL_CAPACITY)
        while capacity < needed:
            capacity *= 2
        grown = np.empty(capacity, dtype=self.dtype)
        grown[:self._size] = self._data[:self._size]
        self._data = grown

    def view(self) -> np.ndarray:
        """Read-only view of the filled part of the buffer."""
        out = self._data[:self._size]
        out.flags.writeable = False
        return out

    def release(self) -> None:
        self._data = np.empty(0, dtype=self.dtype)
        self._size = 0
