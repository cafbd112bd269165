from __future__ import annotations

from typing import Protocol, runtime_checkable

__all__ = ["ByteSource"]


@runtime_checkable
class ByteSource(Protocol):
    """
    The byte-oriented input consumed by the decoder.

    Any binary file object satisfies this protocol: ``open(path, "rb")``, ``io.BytesIO``,
    ``gzip.GzipFile`` or ``socket.makefile("rb")``. A read may return fewer bytes than
    requested; an empty result signals the end of the stream. No peeking or seeking is
    required.
    """

    def read(self, size: int = -1, /) -> bytes: ...
