from __future__ import annotations

import gzip
import io
import zlib
from pathlib import Path

import numpy as np
import pytest
from streams import make_stream

import idxarray
from idxarray import (
    Float32,
    IdxReader,
    Int16,
    TypeMismatchError,
    Uint8,
    UnexpectedEndError,
    load,
    open_file,
    open_reader,
)
from idxarray.storage import FileSource
from idxarray.storage._local import parse_compression

IMAGES = np.arange(2 * 4 * 4, dtype="uint8").reshape(2, 4, 4)


@pytest.fixture
def idx_path(tmp_path: Path) -> Path:
    path = tmp_path / "images-idx3-ubyte"
    path.write_bytes(make_stream(Uint8, IMAGES))
    return path


@pytest.fixture
def gzip_path(tmp_path: Path) -> Path:
    path = tmp_path / "images-idx3-ubyte.gz"
    with gzip.open(path, "wb") as f:
        f.write(make_stream(Uint8, IMAGES))
    return path


@pytest.mark.parametrize("wrap", [bytes, bytearray, memoryview, io.BytesIO])
def test_open_reader(wrap: type) -> None:
    reader = open_reader(wrap(make_stream(Int16, [[1, -1]])))
    assert isinstance(reader, IdxReader)
    assert reader.dtype is Int16
    assert reader.shape == (1, 2)
    assert list(reader.typed(Int16)) == [1, -1]


def test_open_reader_zero_dimension_policy() -> None:
    reader = open_reader(bytes.fromhex("00 00 0C 00"), zero_dimension_policy="empty")
    assert reader.count == 0


def test_open_file(idx_path: Path) -> None:
    with open_file(idx_path) as reader:
        assert reader.header.to_dict() == {"data_type": "uint8", "shape": [2, 4, 4]}
        np.testing.assert_array_equal(reader.typed(Uint8).read_array(), IMAGES)


def test_open_file_str_path(idx_path: Path) -> None:
    with open_file(str(idx_path)) as reader:
        assert reader.shape == (2, 4, 4)


def test_open_file_gzip(gzip_path: Path) -> None:
    with open_file(gzip_path) as reader:
        np.testing.assert_array_equal(reader.dynamic().read_array(), IMAGES)


def test_open_file_closes_source(idx_path: Path) -> None:
    with open_file(idx_path) as reader:
        typed = reader.typed(Uint8)
    with pytest.raises(ValueError, match="is not open"):
        typed.read_next()


def test_open_file_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        with open_file(tmp_path / "missing-idx1-ubyte"):
            pass


def test_open_file_gzip_forced_on_plain_file(idx_path: Path) -> None:
    with pytest.raises(idxarray.IdxIOError) as excinfo:
        with open_file(idx_path, compression="gzip"):
            pass
    assert isinstance(excinfo.value.__cause__, OSError)


def test_open_file_truncated_gzip(tmp_path: Path) -> None:
    path = tmp_path / "labels-idx1-ubyte.gz"
    path.write_bytes(gzip.compress(make_stream(Uint8, np.arange(200)))[:-12])
    with open_file(path) as reader:
        typed = reader.typed(Uint8)
        with pytest.raises(idxarray.IdxIOError, match="Failed to decompress") as excinfo:
            typed.read_array()
        assert isinstance(excinfo.value.__cause__, EOFError)
        with pytest.raises(idxarray.ReaderStateError):
            typed.read_next()


def test_open_file_corrupt_gzip(tmp_path: Path) -> None:
    # The second gzip member starts with a deflate block of the reserved type.
    data = make_stream(Uint8, np.arange(200))
    second = bytearray(gzip.compress(data[100:]))
    second[10] = 0xFF
    path = tmp_path / "labels-idx1-ubyte.gz"
    path.write_bytes(gzip.compress(data[:100]) + bytes(second))
    with open_file(path) as reader:
        typed = reader.typed(Uint8)
        with pytest.raises(idxarray.IdxIOError, match="Failed to decompress") as excinfo:
            typed.read_array()
        assert isinstance(excinfo.value.__cause__, zlib.error)
        with pytest.raises(idxarray.ReaderStateError):
            typed.read_next()


class TestLoad:
    @staticmethod
    def test_path(idx_path: Path) -> None:
        result = load(idx_path)
        np.testing.assert_array_equal(result, IMAGES)
        assert result.dtype == np.dtype("uint8")

    @staticmethod
    def test_gzip(gzip_path: Path) -> None:
        np.testing.assert_array_equal(load(str(gzip_path), dtype="uint8"), IMAGES)

    @staticmethod
    def test_bytes() -> None:
        expected = np.array([[0.5, -0.25]], dtype="float32")
        result = load(make_stream(Float32, expected), dtype=Float32)
        np.testing.assert_array_equal(result, expected)

    @staticmethod
    def test_numpy_dtype() -> None:
        result = load(io.BytesIO(make_stream(Int16, [300, -300])), dtype=np.dtype(">i2"))
        np.testing.assert_array_equal(result, [300, -300])
        assert result.dtype.isnative

    @staticmethod
    @pytest.mark.parametrize("dtype", ["int16", Float32, np.dtype("int8")])
    def test_dtype_mismatch(idx_path: Path, dtype: object) -> None:
        with pytest.raises(TypeMismatchError):
            load(idx_path, dtype=dtype)  # type: ignore[arg-type]

    @staticmethod
    def test_numpy_scalar_type(idx_path: Path) -> None:
        np.testing.assert_array_equal(load(idx_path, dtype=np.uint8), IMAGES)

    @staticmethod
    def test_truncated() -> None:
        with pytest.raises(UnexpectedEndError):
            load(make_stream(Uint8, IMAGES)[:-1])


class TestFileSource:
    @staticmethod
    @pytest.mark.parametrize(
        ("compression", "name", "expected"),
        [
            ("infer", "a-idx1-ubyte", None),
            ("infer", "a-idx1-ubyte.gz", "gzip"),
            ("infer", "a-idx1-ubyte.GZIP", "gzip"),
            ("gzip", "a-idx1-ubyte", "gzip"),
            (None, "a-idx1-ubyte.gz", None),
        ],
    )
    def test_parse_compression(compression: object, name: str, expected: str | None) -> None:
        assert parse_compression(compression, Path(name)) == expected

    @staticmethod
    def test_parse_compression_invalid() -> None:
        with pytest.raises(ValueError, match="for compression"):
            parse_compression("zstd", Path("a.zst"))

    @staticmethod
    def test_open_twice(idx_path: Path) -> None:
        with FileSource(idx_path) as source:
            assert source.is_open
            with pytest.raises(ValueError, match="already open"):
                source.open()
        assert not source.is_open

    @staticmethod
    def test_read(idx_path: Path) -> None:
        with FileSource(idx_path, compression=None) as source:
            assert source.read(4) == bytes.fromhex("00 00 08 03")

    @staticmethod
    def test_repr(idx_path: Path) -> None:
        source = FileSource(idx_path)
        assert repr(source) == f"FileSource({str(idx_path)!r}, compression=None)"
