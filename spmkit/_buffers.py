"""
Foreign buffer ownership.

The native engine allocates every buffer it returns and must free it
itself. The helpers here copy such a buffer into Python-owned memory and
invoke the matching native release function exactly once, whatever happens
during the copy. Model bytes headed for the native loader are materialized
to a temporary file that is removed on every exit path.
"""

import ctypes
import os
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .exceptions import ForeignContractViolation

__all__ = ["receive_ids", "receive_string", "discard", "temporary_model_file"]

TEMP_PREFIX = "spmkit-"


def receive_ids(pointer: Any, count: int, release: Callable[[Any], None]) -> list[int]:
    """Copy ``count`` int32 values from a native buffer, then release it.

    A NULL pointer with ``count == 0`` is an empty result and nothing is
    released. A NULL pointer with a non-zero count is a broken native
    contract.

    Raises
    ------
        ForeignContractViolation: If the pointer is NULL but count is not 0.
    """
    if not pointer:
        if count:
            raise ForeignContractViolation(
                f"Native engine returned a NULL id buffer with count={count}",
                details={"count": count},
            )
        return []

    try:
        return pointer[:count]
    finally:
        release(pointer)


def receive_string(address: int | None, release: Callable[[Any], None]) -> str:
    """Copy a NUL-terminated native string, then release it.

    Invalid UTF-8 from the engine is replaced, not trusted. A NULL address
    decodes to an empty string.
    """
    if not address:
        return ""

    try:
        raw = ctypes.string_at(address)
    finally:
        release(address)
    return raw.decode("utf-8", errors="replace")


def discard(pointer: Any, release: Callable[[Any], None]) -> None:
    """Release a native buffer without reading it (failure paths)."""
    if pointer:
        release(pointer)


@contextmanager
def temporary_model_file(
    data: bytes,
    *,
    suffix: str = ".model",
    dir: str | os.PathLike | None = None,
) -> Iterator[Path]:
    """Write ``data`` to a uniquely named file and yield its path.

    The file is removed when the block exits, whether it succeeds or raises.

    Example:
        >>> with temporary_model_file(model_bytes) as path:
        ...     processor.load(path)
    """
    fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=suffix, dir=dir)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
