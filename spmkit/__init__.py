"""
spmkit - Python bindings for a native SentencePiece tokenizer.

spmkit binds a pre-compiled SentencePiece C library through ctypes. The
tokenization itself happens in the native engine; spmkit owns the native
handle, copies every buffer the engine returns into Python memory, frees
it through the engine, and serializes calls so one processor can be shared
between threads.

Quick Start
-----------

    >>> import spmkit
    >>>
    >>> tokenizer = spmkit.Tokenizer("tokenizer.model")
    >>> ids = tokenizer.encode("Hello world")
    >>> tokenizer.decode(ids)
    'Hello world'
    >>> tokenizer.eos_id, tokenizer.vocab_size
    (2, 32000)

Loading from memory (the bytes are written to a temporary file that is
removed as soon as the engine has read it):

    >>> data = open("tokenizer.model", "rb").read()
    >>> tokenizer = spmkit.Tokenizer(data)

Locating a bundled model:

    >>> tokenizer = spmkit.Tokenizer.from_resource("tokenizer", package="myapp.assets")


Core Classes
------------

- `Tokenizer` - Application-facing encoder/decoder with context in errors
- `Processor` - Low-level owner of one native handle (explicit load,
  ``timeout=`` on every call, sentinel introspection before load)


Configuration
-------------

- ``SPMKIT_LIBRARY`` - path to the native shared library
- ``SPMKIT_MODEL_PATH`` - extra directories searched by ``find_model``
- ``SPMKIT_LOG_LEVEL`` / ``SPMKIT_LOG_FORMAT`` - logging (see ``setup_logging``)
"""

from spmkit._logging import logger as _logger
from spmkit._logging import setup_logging
from spmkit._version import __version__ as __version__

# Exceptions (commonly-used exceptions at root; all via spmkit.exceptions)
from spmkit.exceptions import (
    ClosedError as ClosedError,
)
from spmkit.exceptions import (
    CreationError as CreationError,
)
from spmkit.exceptions import (
    DecodeError as DecodeError,
)
from spmkit.exceptions import (
    EncodeError as EncodeError,
)
from spmkit.exceptions import (
    ForeignContractViolation as ForeignContractViolation,
)
from spmkit.exceptions import (
    LoadError as LoadError,
)
from spmkit.exceptions import (
    ResourceNotFoundError as ResourceNotFoundError,
)
from spmkit.exceptions import (
    SpmError,
)
from spmkit.exceptions import (
    StateError as StateError,
)
from spmkit.exceptions import (
    ValidationError as ValidationError,
)

# Processor
from spmkit.processor import NO_MODEL, Processor, ProcessorState

# Resources
from spmkit.resources import find_model

# Sources
from spmkit.sources import ModelBytes, ModelPath

# Tokenizer
from spmkit.tokenizer import Tokenizer


def set_log_level(level: str) -> None:
    """Set logging verbosity level.

    Args:
        level: One of 'trace', 'debug', 'info', 'warn', 'error', 'off'.
               Default is 'warn' (silent operation).

    Example:
        >>> import spmkit
        >>> spmkit.set_log_level('debug')  # Enable debug output
        >>> spmkit.set_log_level('warn')   # Back to silent (default)
    """
    from spmkit._logging import parse_level

    _logger.setLevel(parse_level(level))


# =============================================================================
# Public API
# =============================================================================
#
# Only symbols that deserve top-level documentation. Everything else stays
# importable from its submodule (e.g. from spmkit._bindings import set_lib).
#
__all__ = [
    # Tokenizer
    "Tokenizer",
    # Processor
    "Processor",
    "ProcessorState",
    "NO_MODEL",
    # Sources
    "ModelPath",
    "ModelBytes",
    "find_model",
    # Logging
    "setup_logging",
    "set_log_level",
    # Exceptions
    "SpmError",
]
