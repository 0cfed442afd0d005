"""
FFI bindings for the native SentencePiece C API.

Justification: Provides library discovery and the C call wrappers that handle
ctypes memory management (output pointer params, byref, array creation).
Every buffer the engine hands back goes through ``_buffers`` so it is copied
and released in exactly one place.

Native contract::

    void*  spm_processor_new(void);
    void   spm_processor_free(void* p);
    int    spm_processor_load(void* p, const char* model_path);
    int    spm_encode(void* p, const char* text, int32_t** ids, size_t* size);
    void   spm_ids_free(int32_t* ids);
    int    spm_decode(void* p, const int32_t* ids, size_t size, char** out);
    void   spm_string_free(char* s);
    int    spm_eos_id(void* p);
    int    spm_bos_id(void* p);
    int    spm_vocab_size(void* p);

Status convention: ``0`` is success, every other value is failure.
"""

import ctypes
import ctypes.util
import os
import sys
import threading
from pathlib import Path
from typing import Any

from ._buffers import discard, receive_ids, receive_string
from ._logging import scoped_logger
from .exceptions import LibraryNotFoundError

logger = scoped_logger("library")

STATUS_OK = 0

# Function signatures: name -> (restype, argtypes).
# String out-params are c_void_p (not c_char_p) so the raw address survives
# for spm_string_free; c_char_p would hand back a bytes copy and lose it.
SIGNATURES: dict[str, tuple[Any, list[Any]]] = {
    "spm_processor_new": (ctypes.c_void_p, []),
    "spm_processor_free": (None, [ctypes.c_void_p]),
    "spm_processor_load": (ctypes.c_int, [ctypes.c_void_p, ctypes.c_char_p]),
    "spm_encode": (
        ctypes.c_int,
        [
            ctypes.c_void_p,
            ctypes.c_char_p,
            ctypes.POINTER(ctypes.POINTER(ctypes.c_int32)),
            ctypes.POINTER(ctypes.c_size_t),
        ],
    ),
    "spm_ids_free": (None, [ctypes.POINTER(ctypes.c_int32)]),
    "spm_decode": (
        ctypes.c_int,
        [
            ctypes.c_void_p,
            ctypes.POINTER(ctypes.c_int32),
            ctypes.c_size_t,
            ctypes.POINTER(ctypes.c_void_p),
        ],
    ),
    "spm_string_free": (None, [ctypes.c_void_p]),
    "spm_eos_id": (ctypes.c_int, [ctypes.c_void_p]),
    "spm_bos_id": (ctypes.c_int, [ctypes.c_void_p]),
    "spm_vocab_size": (ctypes.c_int, [ctypes.c_void_p]),
}


def succeeded(status: int) -> bool:
    """Return True if a native status code means success."""
    return status == STATUS_OK


# =============================================================================
# Library Loading
# =============================================================================

_lib: Any = None
_lib_lock = threading.Lock()


def _library_filename() -> str:
    if sys.platform == "win32":
        return "spm_c.dll"
    if sys.platform == "darwin":
        return "libspm_c.dylib"
    return "libspm_c.so"


def _library_candidates() -> list[str]:
    """Candidate library locations, in lookup order."""
    override = os.environ.get("SPMKIT_LIBRARY")
    if override:
        # An explicit override is authoritative; don't fall back silently.
        return [override]

    candidates = [str(Path(__file__).parent / _library_filename())]
    for name in ("spm_c", "sentencepiece_c"):
        found = ctypes.util.find_library(name)
        if found:
            candidates.append(found)
    return candidates


def configure(lib: Any) -> Any:
    """Apply ``SIGNATURES`` to a loaded library and return it.

    Raises
    ------
        LibraryNotFoundError: If the library lacks a required symbol.
    """
    missing = [name for name in SIGNATURES if not hasattr(lib, name)]
    if missing:
        raise LibraryNotFoundError(
            f"Native library is missing required symbols: {', '.join(missing)}",
            details={"missing": missing},
        )
    for name, (restype, argtypes) in SIGNATURES.items():
        func = getattr(lib, name)
        func.restype = restype
        func.argtypes = argtypes
    return lib


def load_library(path: str | os.PathLike | None = None) -> ctypes.CDLL:
    """Open and configure the native library.

    Args:
        path: Explicit library path. When omitted, ``SPMKIT_LIBRARY`` is
            used, then the package directory, then the system search path.

    Raises
    ------
        LibraryNotFoundError: If no candidate could be opened.
    """
    candidates = [os.fspath(path)] if path is not None else _library_candidates()
    errors: dict[str, str] = {}
    for candidate in candidates:
        try:
            lib = ctypes.CDLL(candidate)
        except OSError as exc:
            errors[candidate] = str(exc)
            continue
        logger.debug("Loaded native library", extra={"path": candidate})
        return configure(lib)

    logger.error("Native library not found", extra={"candidates": candidates})
    raise LibraryNotFoundError(
        "Could not load the native SentencePiece library. "
        "Set SPMKIT_LIBRARY to its path.",
        details={"candidates": candidates, "errors": errors},
    )


def get_lib() -> Any:
    """Return the process-wide native library, loading it on first use."""
    global _lib
    with _lib_lock:
        if _lib is None:
            _lib = load_library()
        return _lib


def set_lib(lib: Any) -> Any:
    """Replace the process-wide native library and return the previous one.

    ``lib`` must already expose the functions in ``SIGNATURES`` with their
    types configured (see ``configure``). Pass None to force rediscovery
    on the next ``get_lib()``.
    """
    global _lib
    with _lib_lock:
        previous, _lib = _lib, lib
        return previous


# =============================================================================
# Call Wrappers
# =============================================================================


def call_processor_new(lib: Any) -> int:
    """Call spm_processor_new and return the handle (0 if NULL)."""
    return lib.spm_processor_new() or 0


def call_processor_free(lib: Any, handle: int) -> None:
    """Free the processor handle."""
    lib.spm_processor_free(handle)


def call_processor_load(lib: Any, handle: int, path: bytes) -> int:
    """Call spm_processor_load and return its raw status."""
    return lib.spm_processor_load(handle, path)


def call_encode(lib: Any, handle: int, text: bytes) -> tuple[int, list[int]]:
    """Call spm_encode and return (status, ids).

    The id buffer is released before returning on every path, including a
    failure status where the engine still wrote a buffer.
    """
    out_ids = ctypes.POINTER(ctypes.c_int32)()
    out_size = ctypes.c_size_t(0)
    status = lib.spm_encode(handle, text, ctypes.byref(out_ids), ctypes.byref(out_size))

    if not succeeded(status):
        discard(out_ids, lib.spm_ids_free)
        return (status, [])

    return (status, receive_ids(out_ids, out_size.value, lib.spm_ids_free))


def call_decode(lib: Any, handle: int, ids: list[int]) -> tuple[int, str]:
    """Call spm_decode and return (status, text).

    ``ids`` must already be within the signed 32-bit range.
    """
    num_ids = len(ids)
    ids_array = (ctypes.c_int32 * num_ids)(*ids) if num_ids else None

    out_text = ctypes.c_void_p()
    status = lib.spm_decode(handle, ids_array, num_ids, ctypes.byref(out_text))

    if not succeeded(status):
        discard(out_text.value, lib.spm_string_free)
        return (status, "")

    return (status, receive_string(out_text.value, lib.spm_string_free))


def call_eos_id(lib: Any, handle: int) -> int:
    """Get the end-of-sequence id."""
    return lib.spm_eos_id(handle)


def call_bos_id(lib: Any, handle: int) -> int:
    """Get the beginning-of-sequence id."""
    return lib.spm_bos_id(handle)


def call_vocab_size(lib: Any, handle: int) -> int:
    """Get vocabulary size."""
    return lib.spm_vocab_size(handle)
