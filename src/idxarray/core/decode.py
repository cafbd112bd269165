from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from idxarray.errors import IdxIOError, UnexpectedEndError

if TYPE_CHECKING:
    import numpy.typing as npt

    from idxarray.abc.source import ByteSource
    from idxarray.core.dtype import IdxDType, TScalar

__all__ = ["read_array", "read_exact", "read_scalar"]


def read_exact(source: ByteSource, size: int) -> bytes:
    """
    Read exactly ``size`` bytes from ``source``.

    Short reads are retried until enough bytes have been gathered. Nothing is returned
    unless all ``size`` bytes were read.

    Parameters
    ----------
    source : ByteSource
        The byte source to read from.
    size : int
        The number of bytes to read.

    Returns
    -------
    bytes

    Raises
    ------
    UnexpectedEndError
        If the source is exhausted before ``size`` bytes were read.
    IdxIOError
        If the source raises an ``OSError``, or returns more bytes than were requested.
        An ``OSError`` that is not already an ``IdxIOError`` is chained as the cause.
    """
    if size < 0:
        raise ValueError(f"Expected a non-negative number of bytes, got {size}.")
    parts: list[bytes] = []
    received = 0
    while received < size:
        requested = size - received
        try:
            chunk = source.read(requested)
        except IdxIOError:
            raise
        except OSError as e:
            raise IdxIOError(f"Failed to read {size} bytes from {source!r}.") from e
        if not chunk:
            raise UnexpectedEndError(size, received)
        if len(chunk) > requested:
            raise IdxIOError(
                f"Expected at most {requested} bytes from {source!r}, got {len(chunk)}."
            )
        parts.append(chunk)
        received += len(chunk)
    return b"".join(parts)


def read_scalar(source: ByteSource, dtype: type[IdxDType[TScalar]]) -> TScalar:
    """
    Read one big-endian value of ``dtype`` from ``source``.

    The source advances by exactly ``dtype.byte_count`` bytes on success.
    """
    return dtype.decode(read_exact(source, dtype.byte_count))


def read_array(
    source: ByteSource, dtype: type[IdxDType[Any]], count: int, *, block_size: int
) -> npt.NDArray[Any]:
    """
    Read ``count`` consecutive values of ``dtype`` from ``source`` into a 1-dimensional
    native-order array.

    No single request to the source asks for more than ``block_size`` bytes, rounded
    down to a whole number of elements (at least one element per request).
    """
    per_block = max(1, block_size // dtype.byte_count)
    parts = []
    remaining = count
    while remaining > 0:
        n = min(per_block, remaining)
        parts.append(dtype.decode_array(read_exact(source, n * dtype.byte_count)))
        remaining -= n
    if not parts:
        return np.empty(0, dtype=dtype.native_dtype())
    if len(parts) == 1:
        return parts[0]
    return np.concatenate(parts)
