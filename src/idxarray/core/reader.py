"""
Element access for IDX streams.

An ``IdxReader`` holds a parsed header and the byte source positioned at the first
element. The element type is only known once the header has been read, so the reader
offers two ways to consume the elements:

- ``IdxReader.typed(dtype)`` checks the declared type against the one the caller expects
  and returns a ``TypedReader`` whose values are all of that type. A mismatch raises
  ``TypeMismatchError`` without consuming any bytes, so the call can be retried.
- ``IdxReader.dynamic()`` returns a ``DynamicReader`` whose values carry their data type
  as a ``TaggedScalar``.

Either call hands the byte source over to the returned reader; an ``IdxReader`` can be
handed over once. Both readers decode through the same ``_ElementStream``, which produces
exactly ``count`` elements in row-major order and then reports exhaustion. Trailing bytes
after the last element are never read.
"""

from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, overload

from idxarray.core.config import config, parse_block_size, parse_zero_dimension_policy
from idxarray.core.decode import read_array, read_scalar
from idxarray.core.dtype import TScalar, get_dtype_class_from_name
from idxarray.core.header import IdxHeader, parse_header
from idxarray.errors import ReaderStateError, TypeMismatchError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Self

    import numpy as np
    import numpy.typing as npt

    from idxarray.abc.source import ByteSource
    from idxarray.core.config import ZeroDimensionPolicy
    from idxarray.core.dtype import IdxDType

__all__ = ["DynamicReader", "IdxReader", "TaggedScalar", "TypedReader"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _element_count(header: IdxHeader, policy: ZeroDimensionPolicy) -> int:
    if header.ndim == 0 and policy == "empty":
        return 0
    return header.size


@dataclass(frozen=True)
class TaggedScalar:
    """A decoded value together with the data type it was decoded as."""

    dtype: type[IdxDType[Any]]
    value: np.generic

    def is_(self, dtype: type[IdxDType[Any]]) -> bool:
        return self.dtype is dtype


class _ElementStream:
    """
    Sequential, bounded decoding of the elements that follow a header.

    Any exception raised while decoding puts the stream in a terminal failed state.
    """

    def __init__(self, source: ByteSource, header: IdxHeader, count: int) -> None:
        self._source = source
        self.header = header
        self.count = count
        self.position = 0
        self._error: Exception | None = None

    @property
    def remaining(self) -> int:
        return self.count - self.position

    def _check_usable(self) -> None:
        if self._error is not None:
            raise ReaderStateError(
                f"The reader failed after {self.position} of {self.count} elements "
                "and can not be resumed."
            ) from self._error

    def next(self) -> np.generic | None:
        self._check_usable()
        if self.position >= self.count:
            return None
        try:
            value = read_scalar(self._source, self.header.dtype)
        except Exception as e:
            self._error = e
            raise
        self.position += 1
        if self.position == self.count:
            logger.debug("Decoded all %d elements of %s", self.count, self.header.dtype.name)
        return value

    def read_array(self) -> npt.NDArray[Any]:
        self._check_usable()
        start = self.position
        block_size = parse_block_size(config.get("read.block_size"))
        try:
            data = read_array(self._source, self.header.dtype, self.remaining, block_size=block_size)
        except Exception as e:
            self._error = e
            raise
        self.position = self.count
        if start == 0 and self.count == self.header.size:
            return data.reshape(self.header.shape)
        return data


class _ElementReader(ABC, Generic[T]):
    _stream: _ElementStream

    def __init__(self, stream: _ElementStream) -> None:
        self._stream = stream

    @abstractmethod
    def _wrap(self, value: np.generic) -> T: ...

    @property
    def header(self) -> IdxHeader:
        return self._stream.header

    @property
    def shape(self) -> tuple[int, ...]:
        return self._stream.header.shape

    @property
    def count(self) -> int:
        """The total number of elements this reader produces."""
        return self._stream.count

    @property
    def position(self) -> int:
        """The number of elements produced so far."""
        return self._stream.position

    @property
    def remaining(self) -> int:
        return self._stream.remaining

    def __iter__(self) -> Self:
        return self

    def __next__(self) -> T:
        value = self.read_next()
        if value is None:
            raise StopIteration
        return value

    def read_next(self) -> T | None:
        """
        Decode the next element, or return ``None`` once all elements have been produced.

        Raises
        ------
        IdxIOError
            If the source fails or ends before the element is complete. The reader can
            not be used afterwards.
        ReaderStateError
            If an earlier call failed.
        """
        value = self._stream.next()
        if value is None:
            return None
        return self._wrap(value)

    def read_array(self) -> npt.NDArray[Any]:
        """
        Decode all remaining elements into a native-order numpy array.

        The array has the shape declared in the header when no element has been consumed
        yet, and is 1-dimensional otherwise.
        """
        return self._stream.read_array()

    def iter_indexed(self) -> Iterator[tuple[tuple[int, ...], T]]:
        """
        Iterate over the remaining elements together with their row-major index.
        """
        coords = itertools.product(*(range(s) for s in self.shape))
        yield from zip(itertools.islice(coords, self.position, None), self, strict=False)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(dtype={self.header.dtype.name}, shape={self.shape}, "
            f"position={self.position}/{self.count})"
        )


class TypedReader(_ElementReader[TScalar]):
    """Produces elements of a single data type that was checked against the header."""

    @property
    def dtype(self) -> type[IdxDType[TScalar]]:
        return self._stream.header.dtype

    def _wrap(self, value: np.generic) -> TScalar:
        return value  # type: ignore[return-value]


class DynamicReader(_ElementReader[TaggedScalar]):
    """Produces elements tagged with the data type declared in the header."""

    @property
    def dtype(self) -> type[IdxDType[Any]]:
        return self._stream.header.dtype

    def _wrap(self, value: np.generic) -> TaggedScalar:
        return TaggedScalar(dtype=self._stream.header.dtype, value=value)


class IdxReader:
    """
    A parsed IDX header together with the byte source that holds its elements.

    Parameters
    ----------
    source : ByteSource
        The byte source, positioned at the first element byte.
    header : IdxHeader
        The header already read from ``source``.
    zero_dimension_policy : {"scalar", "empty"}, optional
        How many elements a stream without dimensions holds: one (``"scalar"``) or none
        (``"empty"``). Defaults to the ``zero_dimension_policy`` config value.
    """

    header: IdxHeader

    def __init__(
        self,
        source: ByteSource,
        header: IdxHeader,
        *,
        zero_dimension_policy: ZeroDimensionPolicy | None = None,
    ) -> None:
        if zero_dimension_policy is None:
            zero_dimension_policy = config.get("zero_dimension_policy")
        policy = parse_zero_dimension_policy(zero_dimension_policy)
        self._source: ByteSource | None = source
        self.header = header
        self._count = _element_count(header, policy)

    @classmethod
    def open(
        cls, source: ByteSource, *, zero_dimension_policy: ZeroDimensionPolicy | None = None
    ) -> Self:
        """
        Parse the header at the start of ``source`` and wrap the rest of the stream.

        Raises
        ------
        WrongHeaderError, UnknownDataTypeError, IdxIOError
            See ``parse_header``.
        """
        header = parse_header(source)
        return cls(source, header, zero_dimension_policy=zero_dimension_policy)

    @property
    def dtype(self) -> type[IdxDType[Any]]:
        return self.header.dtype

    @property
    def shape(self) -> tuple[int, ...]:
        return self.header.shape

    @property
    def count(self) -> int:
        return self._count

    @property
    def claimed(self) -> bool:
        """Whether the byte source has been handed to a typed or dynamic reader."""
        return self._source is None

    def _check_unclaimed(self) -> ByteSource:
        if self._source is None:
            raise ReaderStateError(
                "The byte source of this reader has already been handed to another reader."
            )
        return self._source

    def _claim(self, mode: str) -> _ElementStream:
        source = self._check_unclaimed()
        self._source = None
        logger.debug("Handing %s to a %s reader", self.header.dtype.name, mode)
        return _ElementStream(source, self.header, self._count)

    @overload
    def typed(self, dtype: type[IdxDType[TScalar]]) -> TypedReader[TScalar]: ...

    @overload
    def typed(self, dtype: str | np.dtype[Any] | type[np.generic]) -> TypedReader[Any]: ...

    def typed(
        self, dtype: str | np.dtype[Any] | type[np.generic] | type[IdxDType[Any]]
    ) -> TypedReader[Any]:
        """
        Get a reader for elements of ``dtype``.

        ``dtype`` is an ``IdxDType`` class, a data type name such as ``"int16"``, a numpy
        dtype or a numpy scalar type.

        Raises
        ------
        TypeMismatchError
            If ``dtype`` is not the data type declared in the header. The reader is left
            untouched, so ``typed`` can be called again or ``dynamic`` used instead.
        ValueError
            If ``dtype`` does not name an IDX data type.
        ReaderStateError
            If the byte source was already handed to another reader.
        """
        self._check_unclaimed()
        requested = get_dtype_class_from_name(dtype)
        if requested is not self.header.dtype:
            raise TypeMismatchError(requested, self.header.dtype)
        return TypedReader(self._claim("typed"))

    def dynamic(self) -> DynamicReader:
        """
        Get a reader whose elements are tagged with their data type.

        Raises
        ------
        ReaderStateError
            If the byte source was already handed to another reader.
        """
        return DynamicReader(self._claim("dynamic"))

    def __repr__(self) -> str:
        return f"IdxReader(dtype={self.header.dtype.name}, shape={self.shape}, count={self.count})"
