"""
Global pytest fixtures for spmkit tests.

This module provides:
- Fault handling for native crashes
- The instrumented stub engine standing in for the native library
- Model file and temp directory helpers
- Ready-made Processor and Tokenizer fixtures

No real native library is needed: every test binds ``StubEngine``, whose
entry points are ctypes callbacks with the production signatures.
"""

import faulthandler
import tempfile

import pytest

from tests.fixtures import StubEngine

# Enable faulthandler to trace native crashes (segfaults)
faulthandler.enable()

MODEL_BYTES = b"stub sentencepiece model\x00\x01\x02"


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def stub_engine():
    """Fresh instrumented stub engine."""
    return StubEngine()


@pytest.fixture
def model_file(tmp_path):
    """A model file on disk the stub engine accepts."""
    path = tmp_path / "tokenizer.model"
    path.write_bytes(MODEL_BYTES)
    return path


@pytest.fixture
def temp_dir(tmp_path, monkeypatch):
    """Redirect tempfile to an isolated, initially empty directory."""
    directory = tmp_path / "tmp"
    directory.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(directory))
    return directory


@pytest.fixture
def processor(stub_engine, model_file):
    """Processor with a model loaded."""
    from spmkit import Processor

    proc = Processor(model_file, lib=stub_engine)
    yield proc
    proc.close()


@pytest.fixture
def tokenizer(stub_engine, model_file):
    """Tokenizer with a model loaded."""
    from spmkit import Tokenizer

    tok = Tokenizer(model_file, lib=stub_engine)
    yield tok
    tok.close()


@pytest.fixture
def spmkit():
    """The spmkit package."""
    import spmkit

    return spmkit


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "memory: marks allocation/release accounting tests")
