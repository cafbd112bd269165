from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from typing_extensions import ReadOnly, TypedDict

from idxarray.core.decode import read_exact, read_scalar
from idxarray.core.dtype import IdxDType, Uint32, get_dtype_class
from idxarray.errors import WrongHeaderError

if TYPE_CHECKING:
    from idxarray.abc.source import ByteSource

__all__ = ["IdxHeader", "IdxHeaderDict", "parse_header", "parse_magic", "parse_type_code"]

logger = logging.getLogger(__name__)

MAGIC_NBYTES = 4


class IdxHeaderDict(TypedDict):
    data_type: ReadOnly[str]
    shape: ReadOnly[list[int]]


def parse_magic(first: int, second: int) -> None:
    if first != 0 or second != 0:
        raise WrongHeaderError(first, second)


def parse_type_code(data: int) -> type[IdxDType[Any]]:
    return get_dtype_class(data)


@dataclass(frozen=True)
class IdxHeader:
    """
    The leading metadata of an IDX stream: the element data type and the size of each
    dimension, outermost first.
    """

    dtype: type[IdxDType[Any]]
    shape: tuple[int, ...]

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        """
        The number of elements described by the shape.

        A stream without dimensions describes a single scalar element.
        """
        return math.prod(self.shape)

    @property
    def header_nbytes(self) -> int:
        return MAGIC_NBYTES + Uint32.byte_count * self.ndim

    @property
    def payload_nbytes(self) -> int:
        return self.size * self.dtype.byte_count

    def to_dict(self) -> IdxHeaderDict:
        return {"data_type": self.dtype.name, "shape": list(self.shape)}


def parse_header(source: ByteSource) -> IdxHeader:
    """
    Read and validate the header at the start of ``source``.

    On success ``source`` is positioned at the first element byte. No element bytes are
    read.

    Parameters
    ----------
    source : ByteSource

    Returns
    -------
    IdxHeader

    Raises
    ------
    WrongHeaderError
        If either of the first two bytes is nonzero.
    UnknownDataTypeError
        If the third byte is not a known type code.
    IdxIOError
        If the source fails or ends before the header is complete.
    """
    first, second, type_code, ndim = read_exact(source, MAGIC_NBYTES)
    parse_magic(first, second)
    dtype = parse_type_code(type_code)
    shape = tuple(int(read_scalar(source, Uint32)) for _ in range(ndim))
    header = IdxHeader(dtype=dtype, shape=shape)
    logger.debug("Parsed IDX header: dtype=%s shape=%s", dtype.name, shape)
    return header
