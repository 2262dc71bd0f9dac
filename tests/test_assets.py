"""Tests for asset sources."""

import asyncio

import pytest

from toxicity_guard.assets import AssetSource, DirectoryAssetSource, InMemoryAssetSource
from toxicity_guard.exceptions import LoadError, ResourceNotFoundError, UnreadableResourceError


class TestDirectoryAssetSource:
    """Test reading resources from disk."""

    def test_load_file(self, tmp_path):
        (tmp_path / "vocab.txt").write_bytes(b"[PAD]\nhello\n")
        source = DirectoryAssetSource(tmp_path)

        assert asyncio.run(source.load("vocab.txt")) == b"[PAD]\nhello\n"

    def test_accepts_string_path(self, tmp_path):
        (tmp_path / "model.onnx").write_bytes(b"\x08\x01")
        source = DirectoryAssetSource(str(tmp_path))

        assert source.path_for("model.onnx") == tmp_path / "model.onnx"
        assert asyncio.run(source.load("model.onnx")) == b"\x08\x01"

    def test_missing_file(self, tmp_path):
        source = DirectoryAssetSource(tmp_path)

        with pytest.raises(ResourceNotFoundError) as exc_info:
            asyncio.run(source.load("vocab.txt"))

        assert exc_info.value.resource == "vocab.txt"
        assert str(tmp_path) in str(exc_info.value)

    def test_directory_is_not_a_resource(self, tmp_path):
        (tmp_path / "vocab.txt").mkdir()

        with pytest.raises(ResourceNotFoundError):
            asyncio.run(DirectoryAssetSource(tmp_path).load("vocab.txt"))

    def test_read_error_is_unreadable(self, tmp_path, monkeypatch):
        (tmp_path / "vocab.txt").write_bytes(b"x")
        source = DirectoryAssetSource(tmp_path)

        def broken_read(self):
            raise PermissionError("permission denied")

        monkeypatch.setattr("pathlib.Path.read_bytes", broken_read)

        with pytest.raises(UnreadableResourceError, match="permission denied"):
            asyncio.run(source.load("vocab.txt"))

    def test_repr(self, tmp_path):
        assert repr(DirectoryAssetSource(tmp_path)) == f"DirectoryAssetSource({str(tmp_path)!r})"


class TestInMemoryAssetSource:
    """Test the dict-backed source."""

    def test_load(self):
        source = InMemoryAssetSource({"vocab.txt": b"a\nb\n"})
        assert asyncio.run(source.load("vocab.txt")) == b"a\nb\n"

    def test_missing(self):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            asyncio.run(InMemoryAssetSource().load("vocab.txt"))

        assert isinstance(exc_info.value, LoadError)
        assert exc_info.value.__cause__ is None

    def test_copies_initial_mapping(self):
        resources = {"a": b"1"}
        source = InMemoryAssetSource(resources)
        resources["b"] = b"2"

        assert "b" not in source.resources


class TestAssetSourceProtocol:
    """Test protocol conformance."""

    def test_implementations_conform(self, tmp_path):
        assert isinstance(DirectoryAssetSource(tmp_path), AssetSource)
        assert isinstance(InMemoryAssetSource(), AssetSource)

    def test_other_objects_do_not_conform(self):
        assert not isinstance(object(), AssetSource)
