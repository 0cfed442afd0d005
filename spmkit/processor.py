"""
Native SentencePiece processor.

Provides the Processor class, which owns one native engine handle for its
lifetime and serializes every call made through it.
"""

import enum
import operator
import os
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from ._bindings import (
    call_bos_id,
    call_decode,
    call_encode,
    call_eos_id,
    call_processor_free,
    call_processor_load,
    call_processor_new,
    call_vocab_size,
    get_lib,
    succeeded,
)
from ._buffers import temporary_model_file
from ._logging import scoped_logger
from .exceptions import (
    ClosedError,
    CreationError,
    DecodeError,
    EncodeError,
    ForeignContractViolation,
    LoadError,
    LockTimeoutError,
    StateError,
    ValidationError,
)
from .sources import ModelBytes, ModelSource, as_model_source, describe

logger = scoped_logger("processor")

# Returned by eos_id()/bos_id()/vocab_size() while no model is loaded.
NO_MODEL = -1

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


class ProcessorState(enum.Enum):
    """Lifecycle of a Processor."""

    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    FAILED = "failed"  # A load was attempted and refused
    CLOSED = "closed"


class Processor:
    """
    Owner of one native SentencePiece engine handle.

    All native calls on an instance (load, encode, decode, introspection and
    free) run under a single per-instance lock, so a Processor can be shared
    between threads. A caller may block while another caller's call is in
    flight; pass ``timeout=`` to give up waiting instead. An in-flight native
    call is never interrupted.

    A model can be loaded once per instance. If the engine refuses it, create
    a new Processor rather than retrying.

    Example:
        >>> with Processor("tokenizer.model") as sp:
        ...     ids = sp.encode("hello")
        ...     text = sp.decode(ids)
    """

    __slots__ = ("_lib", "_handle", "_state", "_lock", "_model", "_poisoned")

    def __init__(
        self,
        model: "ModelSource | str | os.PathLike | bytes | None" = None,
        *,
        lib: Any = None,
    ):
        """
        Create a native processor, optionally loading a model.

        Args:
            model: Model to load immediately (path or bytes). When omitted,
                call ``load()`` before encoding.
            lib: Native library to bind. Defaults to the process-wide
                library from ``get_lib()``.

        Raises
        ------
            CreationError: If the native constructor returns a NULL handle.
            LoadError: If ``model`` is given and the engine refuses it. The
                new handle is freed before the error propagates.
            LibraryNotFoundError: If the native library cannot be located.
        """
        self._handle = 0
        self._state = ProcessorState.UNINITIALIZED
        self._lock = threading.Lock()
        self._model: str | None = None
        self._poisoned = False
        self._lib = lib if lib is not None else get_lib()

        handle = call_processor_new(self._lib)
        if not handle:
            logger.error("Native constructor returned NULL")
            raise CreationError(details={"operation": "create"})
        self._handle = handle
        logger.debug("Processor created")

        if model is not None:
            try:
                self.load(model)
            except BaseException:
                self.close()
                raise

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """
        Free the native handle.

        Waits for any in-flight call to finish. Safe to call multiple times;
        every other operation raises ClosedError afterwards.
        """
        with self._lock:
            handle, self._handle = self._handle, 0
            self._state = ProcessorState.CLOSED
            if handle:
                call_processor_free(self._lib, handle)
                logger.debug("Processor closed")

    def __enter__(self) -> "Processor":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __del__(self):
        try:
            if getattr(self, "_handle", 0):
                self.close()
        except Exception:
            pass

    def __copy__(self):
        raise TypeError("Processor owns a native handle and cannot be copied")

    def __deepcopy__(self, memo: dict) -> "Processor":
        raise TypeError("Processor owns a native handle and cannot be copied")

    def __reduce__(self):
        raise TypeError("Processor owns a native handle and cannot be pickled")

    def __repr__(self) -> str:
        return f"Processor(state={self._state.value!r}, model={self._model!r})"

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> ProcessorState:
        """Current lifecycle state."""
        return self._state

    @property
    def loaded(self) -> bool:
        """True once a model has been loaded successfully."""
        return self._state is ProcessorState.LOADED

    @property
    def closed(self) -> bool:
        """True after close()."""
        return self._state is ProcessorState.CLOSED

    @property
    def model(self) -> str | None:
        """Label of the loaded model (its path, or its size for bytes)."""
        return self._model

    # =========================================================================
    # Serialization
    # =========================================================================

    @contextmanager
    def _serialized(self, operation: str, timeout: float | None) -> Iterator[int]:
        """Hold the instance lock and yield the live handle."""
        if timeout is None:
            acquired = self._lock.acquire()
        elif timeout < 0:
            raise ValidationError(f"timeout must be >= 0, got {timeout!r}")
        else:
            acquired = self._lock.acquire(timeout=timeout)
        if not acquired:
            raise LockTimeoutError(
                f"Timed out after {timeout}s waiting to {operation}",
                details={"operation": operation, "timeout": timeout},
            )
        try:
            if self._state is ProcessorState.CLOSED:
                raise ClosedError(details={"operation": operation})
            if self._poisoned:
                raise StateError(
                    "Processor is unusable: the native engine broke its buffer contract",
                    code="PROCESSOR_POISONED",
                    details={"operation": operation},
                )
            yield self._handle
        finally:
            self._lock.release()

    def _poison(self, operation: str, exc: ForeignContractViolation) -> None:
        self._poisoned = True
        logger.error(
            "Native engine broke its buffer contract",
            extra={"operation": operation, **exc.details},
        )

    # =========================================================================
    # Loading
    # =========================================================================

    def load(
        self,
        source: "ModelSource | str | os.PathLike | bytes",
        *,
        timeout: float | None = None,
    ) -> None:
        """
        Load a model from a path or from bytes.

        Bytes are written to a temporary file for the duration of the load;
        the file is removed afterwards whether the load succeeds or not.

        Args:
            source: Path to a ``.model`` file, the model's bytes, or a
                ModelPath/ModelBytes.
            timeout: Seconds to wait for the instance lock.

        Raises
        ------
            LoadError: If the engine refuses the model. ``status`` holds the
                engine's return code.
            StateError: If a load was already attempted on this instance.
            ClosedError: If the processor is closed.
            ValidationError: If ``source`` is not a path or bytes, or the
                path contains a NUL character.
        """
        source = as_model_source(source)
        label = describe(source)
        if isinstance(source, ModelBytes):
            with temporary_model_file(source.data) as path:
                self._load_path(os.fspath(path), label, timeout)
            return

        path = os.fspath(source)
        # The engine takes a C string; anything after a NUL would be dropped.
        nul = "\x00" if isinstance(path, str) else b"\x00"
        if nul in path:
            raise ValidationError(
                "Model path must not contain NUL characters",
                details={"position": path.index(nul)},
            )
        self._load_path(path, label, timeout)

    def _load_path(self, path: str, label: str, timeout: float | None) -> None:
        with self._serialized("load", timeout) as handle:
            if self._state is ProcessorState.LOADED:
                raise StateError(
                    f"A model is already loaded ({self._model})",
                    code="MODEL_ALREADY_LOADED",
                    details={"model": self._model},
                )
            if self._state is ProcessorState.FAILED:
                raise StateError(
                    "A previous load failed; create a new Processor",
                    code="MODEL_LOAD_ATTEMPTED",
                )

            logger.debug("Loading model", extra={"path": label})
            status = call_processor_load(self._lib, handle, os.fsencode(path))
            if not succeeded(status):
                self._state = ProcessorState.FAILED
                logger.error("Model load refused", extra={"path": label, "status": status})
                raise LoadError(
                    f"Failed to load SentencePiece model (status={status}).",
                    details={"path": label},
                    status=status,
                )

            self._state = ProcessorState.LOADED
            self._model = label
            logger.debug("Model loaded", extra={"path": label})

    # =========================================================================
    # Encode / Decode
    # =========================================================================

    def encode(self, text: str, *, timeout: float | None = None) -> list[int]:
        """
        Encode UTF-8 text to token ids.

        Args:
            text: Text to encode. Must not contain NUL characters.
            timeout: Seconds to wait for the instance lock.

        Returns
        -------
            A new list of token ids.

        Raises
        ------
            EncodeError: If no model is loaded or the engine reports failure.
            ValidationError: If ``text`` is not a str or contains NUL.
            ClosedError: If the processor is closed.
        """
        if not isinstance(text, str):
            raise ValidationError(f"text must be str, got {type(text).__name__}")
        if "\x00" in text:
            raise ValidationError(
                "text must not contain NUL characters",
                details={"position": text.index("\x00")},
            )
        text_bytes = text.encode("utf-8")

        with self._serialized("encode", timeout) as handle:
            if self._state is not ProcessorState.LOADED:
                raise EncodeError("No model loaded", code="MODEL_NOT_LOADED")
            try:
                status, ids = call_encode(self._lib, handle, text_bytes)
            except ForeignContractViolation as exc:
                self._poison("encode", exc)
                raise

        if not succeeded(status):
            raise EncodeError(
                f"Failed to encode text (status={status}).",
                details={"text_bytes": len(text_bytes)},
                status=status,
            )
        return ids

    def decode(self, ids: Iterable[int], *, timeout: float | None = None) -> str:
        """
        Decode token ids to text.

        Args:
            ids: Token ids. Each must fit in a signed 32-bit integer.
            timeout: Seconds to wait for the instance lock.

        Raises
        ------
            DecodeError: If no model is loaded or the engine reports failure.
            ValidationError: If an id is not an integer or is out of range.
            ClosedError: If the processor is closed.
        """
        narrowed = _narrow_ids(ids)

        with self._serialized("decode", timeout) as handle:
            if self._state is not ProcessorState.LOADED:
                raise DecodeError("No model loaded", code="MODEL_NOT_LOADED")
            status, text = call_decode(self._lib, handle, narrowed)

        if not succeeded(status):
            raise DecodeError(
                f"Failed to decode ids (status={status}).",
                details={"num_ids": len(narrowed)},
                status=status,
            )
        return text

    # =========================================================================
    # Introspection
    # =========================================================================

    def eos_id(self, *, timeout: float | None = None) -> int:
        """End-of-sequence id, or NO_MODEL (-1) if no model is loaded."""
        return self._introspect("eos_id", call_eos_id, timeout)

    def bos_id(self, *, timeout: float | None = None) -> int:
        """Beginning-of-sequence id, or NO_MODEL (-1) if no model is loaded."""
        return self._introspect("bos_id", call_bos_id, timeout)

    def vocab_size(self, *, timeout: float | None = None) -> int:
        """Vocabulary size, or NO_MODEL (-1) if no model is loaded."""
        return self._introspect("vocab_size", call_vocab_size, timeout)

    def _introspect(
        self, operation: str, call: Callable[[Any, int], int], timeout: float | None
    ) -> int:
        with self._serialized(operation, timeout) as handle:
            # No-handle fallback: the engine is never asked without a model.
            if self._state is not ProcessorState.LOADED:
                logger.debug("No model loaded, returning sentinel", extra={"operation": operation})
                return NO_MODEL
            return call(self._lib, handle)


def _narrow_ids(ids: Iterable[int]) -> list[int]:
    """Validate ids as signed 32-bit integers."""
    if isinstance(ids, (str, bytes)):
        raise ValidationError(f"ids must be integers, got {type(ids).__name__}")
    narrowed = []
    for position, value in enumerate(ids):
        try:
            token_id = operator.index(value)
        except TypeError:
            raise ValidationError(
                f"Token id at position {position} is not an integer: {value!r}",
                details={"position": position},
            ) from None
        if not _INT32_MIN <= token_id <= _INT32_MAX:
            raise ValidationError(
                f"Token id {token_id} at position {position} does not fit in int32",
                details={"position": position, "id": token_id},
            )
        narrowed.append(token_id)
    return narrowed
