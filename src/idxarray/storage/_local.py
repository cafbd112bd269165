from __future__ import annotations

import gzip
import logging
import zlib
from pathlib import Path
from typing import IO, TYPE_CHECKING, Literal, cast

from idxarray.errors import IdxIOError

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

__all__ = ["CompressionLiteral", "FileSource", "parse_compression"]

logger = logging.getLogger(__name__)

CompressionLiteral = Literal["infer", "gzip", None]
GZIP_SUFFIXES = (".gz", ".gzip")


def parse_compression(data: object, path: Path) -> Literal["gzip", None]:
    """
    Resolve the compression of ``path``. ``"infer"`` selects gzip for a ``.gz`` or
    ``.gzip`` suffix and no compression otherwise.
    """
    if data == "infer":
        return "gzip" if path.suffix.lower() in GZIP_SUFFIXES else None
    if data in ("gzip", None):
        return cast(Literal["gzip", None], data)
    raise ValueError(f"Expected one of ('infer', 'gzip', None) for compression, got {data!r}.")


class FileSource:
    """
    Byte source reading an IDX file from the local file system.

    Parameters
    ----------
    path : str or Path
        Location of the file.
    compression : {"infer", "gzip", None}, optional
        Compression of the file. ``"infer"`` (the default) decides from the file suffix.
        Gzip files are decompressed while they are read.

    Attributes
    ----------
    path
    compression
    """

    path: Path
    compression: Literal["gzip", None]

    _file: IO[bytes] | None

    def __init__(self, path: Path | str, *, compression: CompressionLiteral = "infer") -> None:
        self.path = Path(path)
        self.compression = parse_compression(compression, self.path)
        self._file = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> None:
        if self._file is not None:
            raise ValueError("file source is already open")
        logger.debug("Opening %s (compression=%s)", self.path, self.compression)
        if self.compression == "gzip":
            self._file = cast(IO[bytes], gzip.open(self.path, "rb"))
        else:
            self._file = self.path.open("rb")

    def read(self, size: int = -1, /) -> bytes:
        if self._file is None:
            raise ValueError(f"file source for {str(self.path)!r} is not open")
        try:
            return self._file.read(size)
        except (EOFError, zlib.error) as e:
            raise IdxIOError(f"Failed to decompress {str(self.path)!r}.") from e

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r}, compression={self.compression!r})"
