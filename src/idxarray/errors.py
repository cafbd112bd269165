from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from idxarray.core.dtype import IdxDType

__all__ = [
    "BaseIdxError",
    "IdxIOError",
    "ReaderStateError",
    "TypeMismatchError",
    "UnexpectedEndError",
    "UnknownDataTypeError",
    "WrongHeaderError",
]


class BaseIdxError(ValueError):
    """
    Base class for idxarray errors.
    """

    _msg: ClassVar[str] = "{}"

    def __init__(self, *args: object) -> None:
        super().__init__(self._msg.format(*args))


class IdxIOError(BaseIdxError, OSError):
    """
    Raised when the underlying byte source fails or ends early.

    The originating exception, if any, is available as ``__cause__``.
    """


class UnexpectedEndError(IdxIOError):
    """Raised when the byte source is exhausted before a full value could be read."""

    _msg = "Unexpected end of stream. Expected {} bytes, got {}."

    def __init__(self, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(expected, received)


class WrongHeaderError(BaseIdxError):
    """Raised when the two leading magic bytes of a stream are not both zero."""

    _msg = "Invalid magic prefix. Expected (0x00, 0x00), got ({:#04x}, {:#04x})."

    def __init__(self, first: int, second: int) -> None:
        self.magic = (first, second)
        super().__init__(first, second)


class UnknownDataTypeError(BaseIdxError):
    """Raised when the type code byte does not name a supported data type."""

    _msg = "Unknown data type code {:#04x}. Expected one of {}."

    def __init__(self, type_code: int, known: tuple[int, ...]) -> None:
        self.type_code = type_code
        super().__init__(type_code, tuple(f"{c:#04x}" for c in known))


class TypeMismatchError(BaseIdxError, TypeError):
    """
    Raised when a reader is requested for a data type other than the one declared
    in the header.

    No bytes beyond the header have been consumed when this is raised, so the
    request can be retried with the declared data type.
    """

    _msg = "Requested data type {!r} does not match the declared data type {!r}."

    def __init__(self, expected: type[IdxDType], actual: type[IdxDType]) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(expected.name, actual.name)


class ReaderStateError(BaseIdxError, RuntimeError):
    """Raised when a reader is used after hand-off or after a terminal failure."""
