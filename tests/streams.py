"""Builders for IDX byte streams and byte sources with unusual read behaviour."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy.typing as npt

    from idxarray.core.dtype import IdxDType


def make_header(type_code: int, shape: Sequence[int]) -> bytes:
    return bytes([0, 0, type_code, len(shape)]) + np.array(shape, dtype=">u4").tobytes()


def make_stream(dtype: type[IdxDType[Any]], data: npt.ArrayLike) -> bytes:
    arr = np.asarray(data, dtype=dtype.native_dtype())
    assert dtype.type_code is not None
    return make_header(dtype.type_code, arr.shape) + arr.astype(dtype.to_numpy).tobytes()


class ShortReadSource(io.BytesIO):
    """Returns at most ``limit`` bytes per read and records every requested size."""

    def __init__(self, data: bytes, limit: int = 1) -> None:
        super().__init__(data)
        self.limit = limit
        self.requests: list[int] = []

    def read(self, size: int | None = -1, /) -> bytes:
        self.requests.append(-1 if size is None else size)
        if size is None or size < 0 or size > self.limit:
            size = self.limit
        return super().read(size)


class FailingSource(io.BytesIO):
    """Raises ``OSError`` once more than ``fail_after`` bytes have been requested."""

    def __init__(self, data: bytes, fail_after: int) -> None:
        super().__init__(data)
        self.fail_after = fail_after

    def read(self, size: int | None = -1, /) -> bytes:
        if size is None or size < 0 or self.tell() + size > self.fail_after:
            raise OSError("device not ready")
        return super().read(size)


class OversizedReadSource(io.BytesIO):
    """Returns ``extra`` bytes more than requested once ``after`` bytes have been read."""

    def __init__(self, data: bytes, after: int, extra: int = 1) -> None:
        super().__init__(data)
        self.after = after
        self.extra = extra

    def read(self, size: int | None = -1, /) -> bytes:
        if size is not None and size >= 0 and self.tell() >= self.after:
            size += self.extra
        return super().read(size)
