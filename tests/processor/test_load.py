"""
Model loading tests.

Covers loading from a path and from bytes, the pinned status convention
(0 = success, anything else = failure), and removal of the temporary file
used for in-memory models.
"""

import os
from pathlib import Path

import pytest

from spmkit import ModelBytes, ModelPath, Processor, ProcessorState
from spmkit.exceptions import LoadError, StateError, ValidationError
from tests.conftest import MODEL_BYTES


class TestLoadFromPath:
    """Tests for load(path)."""

    def test_load_str_path(self, stub_engine, model_file):
        """load() accepts a str path."""
        proc = Processor(lib=stub_engine)
        proc.load(str(model_file))

        assert proc.loaded
        assert stub_engine.loaded_paths == [str(model_file)]
        proc.close()

    def test_load_pathlike(self, stub_engine, model_file):
        """load() accepts os.PathLike."""
        proc = Processor(lib=stub_engine)
        proc.load(Path(model_file))

        assert proc.loaded
        proc.close()

    def test_load_model_path(self, stub_engine, model_file):
        """load() accepts an explicit ModelPath."""
        proc = Processor(lib=stub_engine)
        proc.load(ModelPath(model_file))

        assert proc.loaded
        proc.close()

    def test_missing_path_handed_to_engine(self, stub_engine, tmp_path):
        """A missing path is not pre-validated; the engine decides."""
        proc = Processor(lib=stub_engine)
        missing = tmp_path / "missing.model"

        with pytest.raises(LoadError) as exc_info:
            proc.load(missing)

        assert stub_engine.loaded_paths == [str(missing)]
        assert exc_info.value.details["path"] == str(missing)
        proc.close()

    @pytest.mark.parametrize("suffix", ["\x00trailing.model", "\x00"])
    def test_nul_in_path_rejected(self, stub_engine, model_file, suffix):
        """A path the engine would see truncated at a NUL never reaches it."""
        proc = Processor(lib=stub_engine)
        path = str(model_file) + suffix

        with pytest.raises(ValidationError) as exc_info:
            proc.load(path)

        assert exc_info.value.details["position"] == len(str(model_file))
        assert "spm_processor_load" not in stub_engine.calls
        assert proc.state is ProcessorState.UNINITIALIZED
        proc.close()

    def test_nul_in_bytes_path_rejected(self, stub_engine, model_file):
        proc = Processor(lib=stub_engine)

        with pytest.raises(ValidationError):
            proc.load(ModelPath(os.fsencode(model_file) + b"\x00x"))

        assert stub_engine.loaded_paths == []
        proc.close()

    def test_nul_rejected_by_constructor(self, stub_engine, model_file):
        """Processor(model) frees its handle when the path is rejected."""
        with pytest.raises(ValidationError):
            Processor(str(model_file) + "\x00", lib=stub_engine)

        assert stub_engine.live_handles == 0
        assert "spm_processor_load" not in stub_engine.calls

    def test_invalid_source_type(self, stub_engine):
        """Sources that are neither paths nor bytes raise ValidationError."""
        proc = Processor(lib=stub_engine)

        with pytest.raises(ValidationError):
            proc.load(12345)

        assert "spm_processor_load" not in stub_engine.calls
        proc.close()


class TestStatusConvention:
    """Status 0 is success; every other value is failure."""

    def test_zero_is_success(self, stub_engine, model_file):
        stub_engine.load_status = 0
        proc = Processor(lib=stub_engine)

        proc.load(model_file)

        assert proc.loaded
        proc.close()

    @pytest.mark.parametrize("status", [1, -1, 7])
    def test_nonzero_is_failure(self, stub_engine, model_file, status):
        """Non-zero status raises LoadError with the status preserved."""
        stub_engine.load_status = status
        proc = Processor(lib=stub_engine)

        with pytest.raises(LoadError) as exc_info:
            proc.load(model_file)

        assert exc_info.value.status == status
        assert exc_info.value.code == "MODEL_LOAD_FAILED"
        assert f"status={status}" in str(exc_info.value)
        assert not proc.loaded
        proc.close()


class TestLoadFromBytes:
    """Tests for load(bytes)."""

    def test_engine_reads_the_bytes(self, stub_engine, temp_dir):
        """The engine is handed a file containing exactly the model bytes."""
        proc = Processor(lib=stub_engine)
        proc.load(MODEL_BYTES)

        assert proc.loaded
        assert stub_engine.loaded_contents == [MODEL_BYTES]
        proc.close()

    def test_bytearray_and_memoryview(self, stub_engine, temp_dir):
        """bytearray and memoryview are accepted as model bytes."""
        for data in (bytearray(MODEL_BYTES), memoryview(MODEL_BYTES)):
            proc = Processor(lib=stub_engine)
            proc.load(data)
            assert proc.loaded
            proc.close()

        assert stub_engine.loaded_contents == [MODEL_BYTES, MODEL_BYTES]

    @pytest.mark.parametrize("value", [4, "model", [1, 2, 3], None])
    def test_model_bytes_rejects_non_bytes(self, value):
        """ModelBytes(4) is a typo, not a 4-byte model."""
        with pytest.raises(ValidationError) as exc_info:
            ModelBytes(value)

        assert exc_info.value.details["type"] == type(value).__name__

    def test_model_bytes_normalizes_to_bytes(self):
        assert ModelBytes(bytearray(b"ab")).data == b"ab"
        assert ModelBytes(memoryview(b"ab")).data == b"ab"

    def test_model_label_hides_bytes(self, stub_engine, temp_dir):
        """The model label for bytes is its size, not a temp path."""
        proc = Processor(ModelBytes(MODEL_BYTES), lib=stub_engine)

        assert proc.model == f"<{len(MODEL_BYTES)} bytes>"
        proc.close()

    def test_temp_file_name_pattern(self, stub_engine, temp_dir):
        """The temporary file lives in the temp dir with a unique spmkit- name."""
        proc = Processor(MODEL_BYTES, lib=stub_engine)

        loaded = Path(stub_engine.loaded_paths[0])
        assert loaded.parent == temp_dir
        assert loaded.name.startswith("spmkit-")
        assert loaded.suffix == ".model"
        proc.close()

    def test_temp_file_removed_after_success(self, stub_engine, temp_dir):
        """No temporary file survives a successful load."""
        proc = Processor(MODEL_BYTES, lib=stub_engine)

        assert not os.path.exists(stub_engine.loaded_paths[0])
        assert list(temp_dir.glob("spmkit-*")) == []
        proc.close()

    def test_temp_file_removed_after_failure(self, stub_engine, temp_dir):
        """No temporary file survives a refused load."""
        stub_engine.load_status = 3
        proc = Processor(lib=stub_engine)

        with pytest.raises(LoadError) as exc_info:
            proc.load(MODEL_BYTES)

        assert exc_info.value.status == 3
        assert list(temp_dir.glob("spmkit-*")) == []
        proc.close()

    def test_temp_file_removed_when_state_rejects(self, processor, temp_dir):
        """Even a load rejected by state leaves no temporary file."""
        with pytest.raises(StateError):
            processor.load(MODEL_BYTES)

        assert list(temp_dir.glob("spmkit-*")) == []

    def test_unique_names(self, stub_engine, temp_dir):
        """Each bytes load uses a new file name."""
        for _ in range(3):
            Processor(MODEL_BYTES, lib=stub_engine).close()

        assert len(set(stub_engine.loaded_paths)) == 3
