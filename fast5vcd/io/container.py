from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import h5py  # HDF5 engine behind every FAST5 container
import numpy as np

from fast5vcd.core import (
    AttributeNotFound,
    ContainerError,
    DatasetNotFound,
    GroupNotFound,
)


@dataclass(frozen=True, slots=True)
class RawAttribute:
    """
    An attribute as stored in the container, before any coercion.

    `dtype` is the advertised on-disk type; `value` is what the engine
    returned for it (numpy scalar, bytes for fixed-length strings, str for
    variable-length strings).
    """

    name: str
    value: Any
    dtype: np.dtype


@runtime_checkable
class ContainerAccessor(Protocol):
    """Protocol for hierarchical containers read by the decoder.

    Paths are absolute ("/Raw/Reads"). Implementations raise
    GroupNotFound / DatasetNotFound / AttributeNotFound for missing
    objects and ContainerError for engine failures.
    """

    def close(self) -> None:
        ...

    def link_exists(self, path: str) -> bool:
        ...

    def list_children(self, path: str) -> list[str]:
        ...

    def has_attribute(self, path: str, name: str) -> bool:
        ...

    def read_attribute(self, path: str, name: str) -> RawAttribute:
        ...

    def dataset_extent(self, path: str) -> tuple[int, ...]:
        ...

    def dataset_dtype(self, path: str) -> np.dtype:
        ...

    def read_range(self, path: str, offset: int, count: int) -> np.ndarray:
        ...


def _split_path(path: str) -> list[str]:
    return [p for p in path.split("/") if p]


class H5pyContainer:
    """Concrete ContainerAccessor over a read-only h5py.File."""

    def __init__(self, path: str | Path):
        self.path = str(path)
        try:
            self._file = h5py.File(self.path, "r")
        except OSError as e:
            raise ContainerError(f"Cannot open '{self.path}': {e}") from e

    def __enter__(self) -> "H5pyContainer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return not self._file.id.valid

    def close(self) -> None:
        if not self.closed:
            self._file.close()

    # ------------------------------------------------------------------
    # Links and groups
    # ------------------------------------------------------------------
    def link_exists(self, path: str) -> bool:
        # Walk one level at a time so a missing ancestor is a plain False.
        node = "/"
        for part in _split_path(path):
            node = f"{node.rstrip('/')}/{part}"
            try:
                if node not in self._file:
                    return False
            except OSError as e:
                raise ContainerError(f"Cannot resolve '{node}' in '{self.path}': {e}") from e
        return True

    def _get(self, path: str) -> h5py.HLObject:
        try:
            return self._file[path]
        except KeyError as e:
            raise GroupNotFound(path) from e
        except OSError as e:
            raise ContainerError(f"Cannot access '{path}' in '{self.path}': {e}") from e

    def list_children(self, path: str) -> list[str]:
        obj = self._get(path)
        if not isinstance(obj, h5py.Group):
            raise GroupNotFound(f"'{path}' is not a group")
        return sorted(obj.keys())

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------
    def has_attribute(self, path: str, name: str) -> bool:
        return name in self._get(path).attrs

    def read_attribute(self, path: str, name: str) -> RawAttribute:
        attrs = self._get(path).attrs
        if name not in attrs:
            raise AttributeNotFound(f"{path}@{name}")
        try:
            dtype = attrs.get_id(name).dtype
            value = attrs[name]
        except OSError as e:
            raise ContainerError(f"Cannot read '{path}@{name}': {e}") from e
        return RawAttribute(name=name, value=value, dtype=dtype)

    # ------------------------------------------------------------------
    # Datasets
    # ------------------------------------------------------------------
    def _dataset(self, path: str) -> h5py.Dataset:
        try:
            obj = self._get(path)
        except GroupNotFound as e:
            raise DatasetNotFound(path) from e
        if not isinstance(obj, h5py.Dataset):
            raise DatasetNotFound(f"'{path}' is not a dataset")
        return obj

    def dataset_extent(self, path: str) -> tuple[int, ...]:
        shape = self._dataset(path).shape
        return tuple(shape) if shape is not None else ()

    def dataset_dtype(self, path: str) -> np.dtype:
        return self._dataset(path).dtype

    def read_range(self, path: str, offset: int, count: int) -> np.ndarray:
        """Read elements [offset, offset + count) along the first dimension."""
        dset = self._dataset(path)
        try:
            return dset[offset:offset + count]
        except OSError as e:
            raise ContainerError(f"Cannot read '{path}' [{offset}:{offset + count}]: {e}") from e


def open_container(path: str | Path) -> H5pyContainer:
    return H5pyContainer(path)
