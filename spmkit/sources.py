"""Model sources: a model file on disk or the model's bytes in memory."""

import os
from dataclasses import dataclass, field
from typing import Union

from .exceptions import ValidationError

__all__ = ["ModelPath", "ModelBytes", "ModelSource", "as_model_source", "describe"]


@dataclass(frozen=True)
class ModelPath:
    """A model file on disk, handed to the native loader as-is."""

    path: str | os.PathLike

    def __fspath__(self) -> str:
        return os.fspath(self.path)


@dataclass(frozen=True)
class ModelBytes:
    """A serialized model held in memory.

    The native loader only accepts paths, so the bytes are written to a
    temporary file for the duration of the load.
    """

    data: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.data, (bytearray, memoryview)):
            object.__setattr__(self, "data", bytes(self.data))
        elif not isinstance(self.data, bytes):
            # bytes(n) would silently build n zero bytes
            raise ValidationError(
                f"Model bytes must be bytes, bytearray or memoryview, got {type(self.data).__name__}",
                details={"type": type(self.data).__name__},
            )

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"ModelBytes(<{len(self.data)} bytes>)"


ModelSource = Union[ModelPath, ModelBytes]


def as_model_source(value: "ModelSource | str | os.PathLike | bytes | bytearray | memoryview") -> ModelSource:
    """Coerce a path or bytes-like value to a ModelSource.

    Raises
    ------
        ValidationError: If ``value`` is neither a path nor bytes-like.
    """
    if isinstance(value, (ModelPath, ModelBytes)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ModelBytes(value)
    if isinstance(value, (str, os.PathLike)):
        return ModelPath(value)
    raise ValidationError(
        f"Model source must be a path or bytes, got {type(value).__name__}",
        details={"type": type(value).__name__},
    )


def describe(source: ModelSource) -> str:
    """Short label for messages and logs."""
    if isinstance(source, ModelBytes):
        return f"<{len(source)} bytes>"
    return os.fsdecode(source.path)
