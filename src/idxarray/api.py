from __future__ import annotations

import io
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from idxarray.core.reader import IdxReader
from idxarray.storage import FileSource

if TYPE_CHECKING:
    from collections.abc import Iterator

    import numpy as np
    import numpy.typing as npt

    from idxarray.abc.source import ByteSource
    from idxarray.core.config import ZeroDimensionPolicy
    from idxarray.core.dtype import IdxDType
    from idxarray.storage import CompressionLiteral

__all__ = ["load", "open_file", "open_reader"]


def _as_source(data: ByteSource | bytes | bytearray | memoryview) -> ByteSource:
    if isinstance(data, bytes | bytearray | memoryview):
        return io.BytesIO(data)
    return data


def open_reader(
    source: ByteSource | bytes | bytearray | memoryview,
    *,
    zero_dimension_policy: ZeroDimensionPolicy | None = None,
) -> IdxReader:
    """
    Parse the header of an IDX stream.

    Parameters
    ----------
    source : ByteSource or bytes-like
        A binary file object positioned at the start of the stream, or the stream contents.
    zero_dimension_policy : {"scalar", "empty"}, optional
        How many elements a stream without dimensions holds. Defaults to the
        ``zero_dimension_policy`` config value.

    Returns
    -------
    IdxReader
    """
    return IdxReader.open(_as_source(source), zero_dimension_policy=zero_dimension_policy)


@contextmanager
def open_file(
    path: Path | str,
    *,
    compression: CompressionLiteral = "infer",
    zero_dimension_policy: ZeroDimensionPolicy | None = None,
) -> Iterator[IdxReader]:
    """
    Open an IDX file and parse its header. The file is closed when the context exits.

    Examples
    --------
    >>> with open_file("train-images-idx3-ubyte.gz") as reader:  # doctest: +SKIP
    ...     images = reader.typed(Uint8).read_array()
    """
    with FileSource(path, compression=compression) as source:
        yield IdxReader.open(source, zero_dimension_policy=zero_dimension_policy)


def load(
    source: ByteSource | bytes | bytearray | memoryview | Path | str,
    *,
    dtype: str | np.dtype[Any] | type[np.generic] | type[IdxDType[Any]] | None = None,
    compression: CompressionLiteral = "infer",
    zero_dimension_policy: ZeroDimensionPolicy | None = None,
) -> npt.NDArray[Any]:
    """
    Read a whole IDX stream into a numpy array with the shape declared in its header.

    Parameters
    ----------
    source : ByteSource, bytes-like, Path or str
        A path to an IDX file, a binary file object, or the stream contents.
    dtype : str, numpy dtype, numpy scalar type or IdxDType class, optional
        The expected element data type. A different declared type raises
        ``TypeMismatchError``.
    compression : {"infer", "gzip", None}, optional
        Compression of the file when ``source`` is a path.
    zero_dimension_policy : {"scalar", "empty"}, optional
        How many elements a stream without dimensions holds.

    Returns
    -------
    numpy.ndarray
        A native byte order array.
    """
    if isinstance(source, Path | str):
        with open_file(
            source, compression=compression, zero_dimension_policy=zero_dimension_policy
        ) as reader:
            return _read_all(reader, dtype)
    return _read_all(open_reader(source, zero_dimension_policy=zero_dimension_policy), dtype)


def _read_all(
    reader: IdxReader, dtype: str | np.dtype[Any] | type[np.generic] | type[IdxDType[Any]] | None
) -> npt.NDArray[Any]:
    if dtype is None:
        return reader.dynamic().read_array()
    return reader.typed(dtype).read_array()
