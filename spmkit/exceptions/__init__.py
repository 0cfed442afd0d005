"""
spmkit exceptions.

This module defines the exception hierarchy for spmkit:

    SpmError (base)
    ├── CreationError - Native constructor returned a NULL handle
    ├── LoadError - Engine refused the model
    ├── EncodeError - Encoding failed
    ├── DecodeError - Decoding failed
    ├── ResourceNotFoundError - Named model resource not found
    ├── LibraryNotFoundError - Native library not found
    ├── StateError - Invalid processor state
    │   └── ClosedError - Processor has been closed
    ├── LockTimeoutError - Lock wait timed out
    └── ValidationError - Invalid parameter value

    ForeignContractViolation - Unrecoverable native contract break
"""

from .exceptions import (
    ClosedError,
    CreationError,
    DecodeError,
    EncodeError,
    ForeignContractViolation,
    LibraryNotFoundError,
    LoadError,
    LockTimeoutError,
    ResourceNotFoundError,
    SpmError,
    StateError,
    ValidationError,
)

# =============================================================================
# Public API - See spmkit/__init__.py for documentation mapping guidelines
# =============================================================================
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
