"""
# Overview

This module defines the closed set of element data types an IDX stream can declare.

Each data type is a class deriving from ``IdxDType``. The classes are never instantiated:
the class object itself is the data type, and its class variables describe it (the type
code used in the stream header, how many bytes one element occupies, and the numpy dtype
that decodes it). Class variables can not be changed once the class has been declared.

The IDX format stores every multi-byte value most-significant byte first. ``to_numpy`` is
therefore always an explicitly big-endian numpy dtype, and decoding goes through it on every
platform, for integers and floating point numbers alike. Decoded values are returned in
native byte order.

## Type codes

```text
0x08: Uint8   (1 byte)
0x09: Int8    (1 byte)
0x0B: Int16   (2 bytes)
0x0C: Int32   (4 bytes)
0x0D: Float32 (4 bytes)
0x0E: Float64 (8 bytes)
```

Codes 0x0A and 0x0F and above are reserved by the format and are rejected.

``Uint32`` is not an element type. It has no type code and exists to decode the dimension
sizes that follow the header.

## Examples

```python
from idxarray.core.dtype import Int16, get_dtype_class

get_dtype_class(0x0B)  # Int16
Int16.decode(b"\\xff\\xfe")  # np.int16(-2)
```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

import numpy as np

from idxarray.errors import UnknownDataTypeError

if TYPE_CHECKING:
    import numpy.typing as npt

__all__ = [
    "ELEMENT_DTYPES",
    "Float32",
    "Float64",
    "IdxDType",
    "Int8",
    "Int16",
    "Int32",
    "Uint8",
    "Uint32",
    "get_dtype_class",
    "get_dtype_class_from_name",
]

TScalar = TypeVar("TScalar", bound=np.generic)


class FrozenClassVariables(type):
    def __setattr__(cls, attr: str, value: object) -> None:
        # private and dunder attributes are managed by Python and typing
        if not attr.startswith("_") and hasattr(cls, attr):
            raise AttributeError(f"Attribute {attr} on IdxDType class can not be changed once set.")
        super().__setattr__(attr, value)


class IdxDType(Generic[TScalar], metaclass=FrozenClassVariables):
    name: ClassVar[str]
    type_code: ClassVar[int | None]  # None for types that never appear in a header
    byte_count: ClassVar[int]
    to_numpy: ClassVar[np.dtype[Any]]

    def __init_subclass__(  # enforces all required fields are set and basic sanity checks
        cls,
        **kwargs: object,
    ) -> None:
        required_attrs = [
            "name",
            "type_code",
            "byte_count",
            "to_numpy",
        ]
        for attr in required_attrs:
            if not hasattr(cls, attr):
                raise ValueError(f"{attr} is a required attribute for an IDX dtype.")

        cls._validate()

        super().__init_subclass__(**kwargs)

    @classmethod
    def _validate(cls) -> None:
        if cls.byte_count <= 0:
            raise ValueError("byte_count must be a positive integer.")
        if cls.to_numpy.itemsize != cls.byte_count:
            raise ValueError(
                f"byte_count {cls.byte_count} does not match the item size of {cls.to_numpy}."
            )
        if cls.byte_count > 1 and cls.to_numpy.byteorder != ">":
            raise ValueError(f"{cls.to_numpy} must be an explicitly big-endian numpy dtype.")

    @classmethod
    def native_dtype(cls) -> np.dtype[Any]:
        """The numpy dtype of decoded values, in the byte order of the running platform."""
        return cls.to_numpy.newbyteorder("=")

    @classmethod
    def decode(cls, data: bytes) -> TScalar:
        """
        Decode exactly ``byte_count`` big-endian bytes into one value.

        Parameters
        ----------
        data : bytes
            The encoded value.

        Returns
        -------
        numpy scalar
            The decoded value in native byte order.
        """
        if len(data) != cls.byte_count:
            raise ValueError(
                f"Expected {cls.byte_count} bytes to decode a {cls.name} value, got {len(data)}."
            )
        value = np.frombuffer(data, dtype=cls.to_numpy)[0]
        return cast(TScalar, cls.native_dtype().type(value))

    @classmethod
    def decode_array(cls, data: bytes) -> npt.NDArray[Any]:
        """
        Decode a sequence of big-endian elements into a 1-dimensional native-order array.
        """
        if len(data) % cls.byte_count != 0:
            raise ValueError(
                f"Expected a multiple of {cls.byte_count} bytes to decode {cls.name} values, "
                f"got {len(data)}."
            )
        return np.frombuffer(data, dtype=cls.to_numpy).astype(cls.native_dtype())


class Uint8(IdxDType[np.uint8]):
    name = "uint8"
    type_code = 0x08
    byte_count = 1
    to_numpy = np.dtype(">u1")


class Int8(IdxDType[np.int8]):
    name = "int8"
    type_code = 0x09
    byte_count = 1
    to_numpy = np.dtype(">i1")


class Int16(IdxDType[np.int16]):
    name = "int16"
    type_code = 0x0B
    byte_count = 2
    to_numpy = np.dtype(">i2")


class Int32(IdxDType[np.int32]):
    name = "int32"
    type_code = 0x0C
    byte_count = 4
    to_numpy = np.dtype(">i4")


class Float32(IdxDType[np.float32]):
    name = "float32"
    type_code = 0x0D
    byte_count = 4
    to_numpy = np.dtype(">f4")


class Float64(IdxDType[np.float64]):
    name = "float64"
    type_code = 0x0E
    byte_count = 8
    to_numpy = np.dtype(">f8")


class Uint32(IdxDType[np.uint32]):
    name = "uint32"
    type_code = None
    byte_count = 4
    to_numpy = np.dtype(">u4")


ELEMENT_DTYPES: tuple[type[IdxDType[Any]], ...] = (Uint8, Int8, Int16, Int32, Float32, Float64)

_TYPE_CODES: dict[int, type[IdxDType[Any]]] = {
    cast(int, dtype.type_code): dtype for dtype in ELEMENT_DTYPES
}


def get_dtype_class(type_code: int) -> type[IdxDType[Any]]:
    """
    Get the element data type declared by a header type code.

    Raises
    ------
    UnknownDataTypeError
        If the code is not one of the codes defined by the format.
    """
    try:
        return _TYPE_CODES[type_code]
    except KeyError as e:
        raise UnknownDataTypeError(type_code, tuple(_TYPE_CODES)) from e


def get_dtype_class_from_name(
    data: str | np.dtype[Any] | type[np.generic] | type[IdxDType[Any]],
) -> type[IdxDType[Any]]:
    """
    Get the element data type matching a name such as ``"int16"``, or a numpy dtype or
    scalar type such as ``np.int16`` of either byte order. ``IdxDType`` classes are
    returned as-is.
    """
    if isinstance(data, type) and issubclass(data, IdxDType):
        return data
    if isinstance(data, type) and issubclass(data, np.generic):
        data = np.dtype(data)
    if isinstance(data, str):
        for dtype in ELEMENT_DTYPES:
            if dtype.name == data:
                return dtype
        try:
            data = np.dtype(data)
        except TypeError as e:
            raise ValueError(f"Unknown data type name {data!r}.") from e
    if isinstance(data, np.dtype):
        for dtype in ELEMENT_DTYPES:
            if dtype.native_dtype() == data.newbyteorder("="):
                return dtype
    raise ValueError(
        f"No IDX data type matches {data!r}. Expected one of "
        f"{tuple(dtype.name for dtype in ELEMENT_DTYPES)}."
    )
