"""
The config module is responsible for managing the configuration of idxarray and is based
on the Donfig python library. It controls how streams without dimensions are counted and
how large a single request to a byte source may be during bulk reads.

Values can be set for a block of code with ``config.set``::

    from idxarray.core.config import config

    with config.set({"zero_dimension_policy": "empty"}):
        ...

or through environment variables such as ``IDXARRAY_ZERO_DIMENSION_POLICY=empty``.
"""

from __future__ import annotations

from typing import Any, Literal, cast

from donfig import Config as DConfig

ZeroDimensionPolicy = Literal["scalar", "empty"]
ZERO_DIMENSION_POLICIES: tuple[ZeroDimensionPolicy, ...] = ("scalar", "empty")


class Config(DConfig):  # type: ignore[misc]
    """
    Configuration for idxarray. ``IDXARRAY_*`` environment variables override the
    defaults below, and ``reset`` restores them.
    """

    def reset(self) -> None:
        self.clear()
        self.refresh()


config = Config(
    "idxarray",
    defaults=[
        {
            "zero_dimension_policy": "scalar",
            "read": {"block_size": 1 << 20},
        }
    ],
)


def parse_zero_dimension_policy(data: Any) -> ZeroDimensionPolicy:
    if data in ZERO_DIMENSION_POLICIES:
        return cast(ZeroDimensionPolicy, data)
    raise ValueError(
        f"Expected one of {ZERO_DIMENSION_POLICIES} for zero_dimension_policy, got {data!r} instead."
    )


def parse_block_size(data: Any) -> int:
    if isinstance(data, int) and not isinstance(data, bool) and data > 0:
        return data
    raise ValueError(f"Expected a positive integer for read.block_size, got {data!r} instead.")
