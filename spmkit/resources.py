"""
Model file discovery.

Resolves a named model resource (e.g. ``tokenizer.model``) to a filesystem
path. Lookup order:

1. Package data of ``package`` (via ``importlib.resources``)
2. Each directory in ``search_paths``
3. Each directory in ``SPMKIT_MODEL_PATH`` (``os.pathsep``-separated)
4. The current working directory
"""

import importlib.resources
import os
from collections.abc import Iterable
from pathlib import Path

from ._logging import scoped_logger
from .exceptions import ResourceNotFoundError

logger = scoped_logger("resources")

__all__ = ["find_model"]


def _env_search_paths() -> list[str]:
    value = os.environ.get("SPMKIT_MODEL_PATH", "")
    return [entry for entry in value.split(os.pathsep) if entry]


def find_model(
    name: str = "tokenizer",
    extension: str | None = "model",
    *,
    search_paths: Iterable[str | os.PathLike] | None = None,
    package: str | None = None,
) -> Path:
    """
    Resolve a named model resource to a path.

    Args:
        name: Resource name without extension.
        extension: File extension, without the dot. None or "" means
            ``name`` is the full file name.
        search_paths: Extra directories to search, in order.
        package: Importable package whose data files are searched first.

    Returns
    -------
        Absolute path of the first match.

    Raises
    ------
        ResourceNotFoundError: If no location holds the file. ``details``
            lists every location tried.

    Example:
        >>> path = find_model("tokenizer", package="myapp.assets")
    """
    filename = f"{name}.{extension}" if extension else name
    tried: list[str] = []

    if package is not None:
        try:
            candidate = importlib.resources.files(package).joinpath(filename)
        except ModuleNotFoundError:
            tried.append(f"package:{package} (not importable)")
        else:
            # The native loader needs a real file, not a zip member.
            if isinstance(candidate, Path) and candidate.is_file():
                logger.debug("Model resolved from package", extra={"path": str(candidate)})
                return candidate.resolve()
            tried.append(f"package:{package}")

    directories = [*(search_paths or ()), *_env_search_paths(), os.getcwd()]
    for directory in directories:
        candidate = Path(directory).expanduser() / filename
        tried.append(str(candidate))
        if candidate.is_file():
            logger.debug("Model resolved", extra={"path": str(candidate)})
            return candidate.resolve()

    raise ResourceNotFoundError(
        f"Tokenizer model not found: {filename}.",
        details={"name": filename, "searched": tried},
    )
