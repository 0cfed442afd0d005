"""
Text encoding and decoding.

Provides the Tokenizer class, an application-facing wrapper around a
loaded Processor.
"""

import os
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from ._logging import scoped_logger
from .exceptions import SpmError
from .processor import Processor
from .resources import find_model
from .sources import ModelPath, ModelSource, as_model_source, describe

logger = scoped_logger("tokenizer")

_T = TypeVar("_T")


def _rewrap(exc: SpmError, context: str, model: str) -> SpmError:
    """Same error type, message prefixed with context; code/status/details kept."""
    return type(exc)(
        f"{context}: {exc}",
        code=exc.code,
        details={**exc.details, "model": model},
        status=exc.status,
    )


class Tokenizer:
    """
    Text-to-token encoder and token-to-text decoder.

    Owns a Processor with a loaded model. Safe to share between threads:
    calls are serialized by the processor.

    Attributes
    ----------
    model : str
        The model's path, or ``<N bytes>`` for in-memory models.
    vocab_size : int
        Number of pieces in the vocabulary.
    eos_id : int | None
        End-of-sequence id, None if the model disables it.
    bos_id : int | None
        Beginning-of-sequence id, None if the model disables it.

    Example:
        >>> tokenizer = Tokenizer("tokenizer.model")
        >>> ids = tokenizer.encode("Hello world")
        >>> text = tokenizer.decode(ids)
    """

    __slots__ = ("_processor", "_model")

    def __init__(
        self,
        model: "ModelSource | str | os.PathLike | bytes",
        *,
        lib: Any = None,
    ):
        """
        Load a tokenizer model.

        Args:
            model: Path to a ``.model`` file, or the model's bytes.
            lib: Native library to bind (defaults to the process-wide one).

        Raises
        ------
            LoadError: If the engine refuses the model.
            CreationError: If the native processor cannot be created.
            ValidationError: If ``model`` is not a path or bytes.
        """
        source = as_model_source(model)
        self._model = describe(source)
        logger.debug("Creating tokenizer", extra={"path": self._model})
        try:
            self._processor = Processor(source, lib=lib)
        except SpmError as exc:
            raise _rewrap(exc, "Failed to open tokenizer", self._model) from exc

    @classmethod
    def from_resource(
        cls,
        name: str = "tokenizer",
        extension: str | None = "model",
        *,
        search_paths: Iterable[str | os.PathLike] | None = None,
        package: str | None = None,
        lib: Any = None,
    ) -> "Tokenizer":
        """
        Locate a named model resource and load it.

        See ``spmkit.find_model`` for the lookup order.

        Raises
        ------
            ResourceNotFoundError: If the resource cannot be found.
            LoadError: If the engine refuses the model.
        """
        path = find_model(name, extension, search_paths=search_paths, package=package)
        return cls(ModelPath(path), lib=lib)

    def _call(self, fn: Callable[..., _T], *args: Any) -> _T:
        try:
            return fn(*args)
        except SpmError as exc:
            raise _rewrap(exc, f"Tokenizer '{self._model}'", self._model) from exc

    @property
    def processor(self) -> Processor:
        """The underlying Processor."""
        return self._processor

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Release the native processor. Safe to call multiple times."""
        self._processor.close()

    def __enter__(self) -> "Tokenizer":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Tokenizer({self._model!r})"

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def model(self) -> str:
        """The model's path, or ``<N bytes>`` for in-memory models."""
        return self._model

    @property
    def vocab_size(self) -> int:
        """Number of pieces in the vocabulary."""
        return self._call(self.processor.vocab_size)

    @property
    def eos_id(self) -> int | None:
        """End-of-sequence id, or None if the model has none."""
        value = self._call(self.processor.eos_id)
        return value if value >= 0 else None

    @property
    def bos_id(self) -> int | None:
        """Beginning-of-sequence id, or None if the model has none."""
        value = self._call(self.processor.bos_id)
        return value if value >= 0 else None

    # =========================================================================
    # Core Encoding/Decoding
    # =========================================================================

    def encode(self, text: str | list[str]) -> list[int] | list[list[int]]:
        """
        Convert text to token ids.

        Args:
            text: A string, or a list of strings to encode one by one.

        Returns
        -------
            A list of ids for a string; a list of id lists for a list.

        Raises
        ------
            EncodeError: If the engine fails to encode.
            ValidationError: If text is not a str or list of str.
        """
        processor = self.processor
        if isinstance(text, list):
            return [self._call(processor.encode, item) for item in text]
        return self._call(processor.encode, text)

    def decode(self, ids: Iterable[int]) -> str:
        """
        Convert token ids back to text.

        Raises
        ------
            DecodeError: If the engine fails to decode.
            ValidationError: If an id is not a signed 32-bit integer.
        """
        return self._call(self.processor.decode, ids)

    def count_tokens(self, text: str) -> int:
        """Number of tokens ``text`` encodes to."""
        return len(self._call(self.processor.encode, text))
