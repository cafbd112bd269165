"""
Decoding of IDX files: the big-endian, type-tagged, multi-dimensional binary array format
used by datasets such as MNIST.
"""

from idxarray.abc.source import ByteSource
from idxarray.api import load, open_file, open_reader
from idxarray.core.config import config
from idxarray.core.dtype import (
    ELEMENT_DTYPES,
    Float32,
    Float64,
    IdxDType,
    Int8,
    Int16,
    Int32,
    Uint8,
    get_dtype_class,
)
from idxarray.core.header import IdxHeader, parse_header
from idxarray.core.reader import DynamicReader, IdxReader, TaggedScalar, TypedReader
from idxarray.errors import (
    BaseIdxError,
    IdxIOError,
    ReaderStateError,
    TypeMismatchError,
    UnexpectedEndError,
    UnknownDataTypeError,
    WrongHeaderError,
)

__version__ = "0.1.0"

__all__ = [
    "ELEMENT_DTYPES",
    "BaseIdxError",
    "ByteSource",
    "DynamicReader",
    "Float32",
    "Float64",
    "IdxDType",
    "IdxHeader",
    "IdxIOError",
    "IdxReader",
    "Int8",
    "Int16",
    "Int32",
    "ReaderStateError",
    "TaggedScalar",
    "TypeMismatchError",
    "TypedReader",
    "Uint8",
    "UnexpectedEndError",
    "UnknownDataTypeError",
    "WrongHeaderError",
    "__version__",
    "config",
    "get_dtype_class",
    "load",
    "open_file",
    "open_reader",
    "parse_header",
]
