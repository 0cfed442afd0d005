"""
spmkit exceptions.

This module defines the exception hierarchy for spmkit:

    SpmError (base)
    ├── CreationError - Native constructor returned a NULL handle
    ├── LoadError - Engine refused the model (status preserved)
    ├── EncodeError - Encoding failed or no model is loaded
    ├── DecodeError - Decoding failed or no model is loaded
    ├── ResourceNotFoundError - Named model resource could not be resolved
    ├── LibraryNotFoundError - Native shared library could not be located
    ├── StateError - Operation not valid in the processor's current state
    │   └── ClosedError - Processor has been closed
    ├── LockTimeoutError - Gave up waiting for the processor lock
    └── ValidationError - Invalid argument value

    ForeignContractViolation - The native engine broke its buffer contract.
        Deliberately NOT an SpmError: there is no safe recovery.

Usage:
    try:
        processor.load("missing.model")
    except spmkit.LoadError as e:
        print(f"Engine refused the model (status={e.status})")
    except spmkit.SpmError as e:
        print(f"Error {e.code}: {e}")
        print(f"Details: {e.details}")
"""

from typing import Any

__all__ = [
    # Base
    "SpmError",
    # Lifecycle
    "CreationError",
    "LoadError",
    # Encode / decode
    "EncodeError",
    "DecodeError",
    # Lookup
    "ResourceNotFoundError",
    "LibraryNotFoundError",
    # State
    "StateError",
    "ClosedError",
    "LockTimeoutError",
    # Validation
    "ValidationError",
    # Unrecoverable
    "ForeignContractViolation",
]


class SpmError(Exception):
    """
    Base exception for all spmkit errors.

    Attributes
    ----------
    message : str
        Human-readable error description.
    code : str
        Stable, string-based error code (e.g., "MODEL_LOAD_FAILED").
        Use this for programmatic error handling.
    details : dict[str, Any]
        Structured context (e.g., {"path": "...", "operation": "load"}).
    status : int | None
        The raw status code returned by the native engine, verbatim.
        None when the error did not originate from a native call.

    Example
    -------
    >>> try:
    ...     processor.load("/nonexistent/tokenizer.model")
    ... except spmkit.SpmError as e:
    ...     print(e.code, e.status)
    MODEL_LOAD_FAILED 1
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.status = status

    @property
    def message(self) -> str:
        return self.args[0]

    def __repr__(self) -> str:
        if self.status is None:
            return f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r})"
        return (
            f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r}, "
            f"status={self.status!r})"
        )


# =============================================================================
# Lifecycle Errors
# =============================================================================


class CreationError(SpmError, RuntimeError):
    """
    The native constructor failed to produce a processor handle.

    Native allocation failure is not transient in practice, so there is
    no retry. Nothing is leaked: a NULL handle owns no native state.
    """

    def __init__(
        self,
        message: str = "Failed to create SentencePiece processor.",
        code: str = "PROCESSOR_CREATE_FAILED",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


class LoadError(SpmError, RuntimeError):
    """
    The native loader refused the model.

    Common causes:
    - Model file missing or unreadable
    - Corrupt model file
    - Model format not understood by this engine build

    The engine's status code is kept in ``status``. Loading is not retried:
    the same model will fail the same way.
    """

    def __init__(
        self,
        message: str,
        code: str = "MODEL_LOAD_FAILED",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


# =============================================================================
# Encode / Decode Errors
# =============================================================================


class EncodeError(SpmError, RuntimeError):
    """
    Encoding text to token ids failed.

    Raised when the engine reports a failure status, or with code
    ``MODEL_NOT_LOADED`` when no model has been loaded yet. The processor
    remains usable for later calls.
    """

    def __init__(
        self,
        message: str,
        code: str = "ENCODE_FAILED",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


class DecodeError(SpmError, RuntimeError):
    """
    Decoding token ids to text failed.

    Raised when the engine reports a failure status, or with code
    ``MODEL_NOT_LOADED`` when no model has been loaded yet.
    """

    def __init__(
        self,
        message: str,
        code: str = "DECODE_FAILED",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


# =============================================================================
# Lookup Errors
# =============================================================================


class ResourceNotFoundError(SpmError, FileNotFoundError):
    """
    A named model resource could not be resolved to a path.

    Recoverable: pass an explicit model path instead.
    """

    def __init__(
        self,
        message: str,
        code: str = "RESOURCE_NOT_FOUND",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


class LibraryNotFoundError(SpmError, OSError):
    """
    The native SentencePiece library could not be located or opened.

    Set ``SPMKIT_LIBRARY`` to the shared library's path to override
    discovery.
    """

    def __init__(
        self,
        message: str,
        code: str = "LIBRARY_NOT_FOUND",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


# =============================================================================
# State Errors
# =============================================================================


class StateError(SpmError, RuntimeError):
    """
    Operation is not valid in the processor's current state.

    Examples: loading a second model into the same processor, or using a
    processor after the engine broke its buffer contract.
    """

    def __init__(
        self,
        message: str,
        code: str = "STATE_ERROR",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


class ClosedError(StateError):
    """Operation attempted on a processor that has been closed."""

    def __init__(
        self,
        message: str = "Processor is closed",
        code: str = "PROCESSOR_CLOSED",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


class LockTimeoutError(SpmError, TimeoutError):
    """
    Gave up waiting for another caller's in-flight operation.

    The in-flight native call is never interrupted; only this caller's
    wait is abandoned.
    """

    def __init__(
        self,
        message: str,
        code: str = "LOCK_TIMEOUT",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(SpmError, ValueError):
    """
    Invalid argument value.

    Raised before any native call is made, for example:
    - Text containing NUL characters
    - Token ids outside the signed 32-bit range
    - Model sources of an unsupported type
    """

    def __init__(
        self,
        message: str,
        code: str = "INVALID_ARGUMENT",
        details: dict[str, Any] | None = None,
        status: int | None = None,
    ):
        super().__init__(message, code, details, status)


# =============================================================================
# Unrecoverable
# =============================================================================


class ForeignContractViolation(SystemError):
    """
    The native engine returned a buffer that breaks its own contract.

    For example a NULL pointer paired with a non-zero element count. Once
    foreign memory bounds are in doubt nothing can be trusted, so this is
    not part of the ``SpmError`` hierarchy and should not be caught as a
    routine failure. The processor that observed it refuses further native
    calls.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}
