"""Unit tests for versionstore.documents.pointer — atomic latest pointer."""

import errno
import os
from unittest.mock import patch

import pytest

from versionstore.documents.pointer import (
    POINTER_NAME,
    pointer_resolves,
    read_pointer_target,
    resolve_pointer,
    write_pointer,
)
from versionstore.engine.errors import CorruptionError

V1 = "2024-03-02T10:15:30.123Z"
V2 = "2024-03-02T10:15:31.000Z"

needs_symlink = pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
needs_nofollow = pytest.mark.skipif(not hasattr(os, "O_NOFOLLOW"), reason="needs O_NOFOLLOW")


@pytest.fixture
def doc_dir(store_root):
    directory = store_root / "notes"
    directory.mkdir()
    for version_id in (V1, V2):
        (directory / version_id).write_text(version_id, encoding="utf-8")
    return directory


class TestWritePointer:
    @needs_symlink
    def test_symlink_mode(self, doc_dir):
        assert write_pointer(doc_dir, V1, mode="symlink") == "symlink"
        pointer = doc_dir / POINTER_NAME
        assert pointer.is_symlink()
        assert os.readlink(pointer) == V1
        assert pointer.read_text(encoding="utf-8") == V1

    def test_file_mode(self, doc_dir):
        assert write_pointer(doc_dir, V1, mode="file", fsync=False) == "file"
        pointer = doc_dir / POINTER_NAME
        assert not pointer.is_symlink()
        assert pointer.read_text(encoding="utf-8") == V1

    def test_repoint_replaces(self, doc_dir):
        write_pointer(doc_dir, V1, mode="file", fsync=False)
        write_pointer(doc_dir, V2, mode="file", fsync=False)
        assert resolve_pointer(doc_dir) == V2

    @needs_symlink
    def test_switching_modes(self, doc_dir):
        write_pointer(doc_dir, V1, mode="symlink")
        write_pointer(doc_dir, V2, mode="file", fsync=False)
        assert not (doc_dir / POINTER_NAME).is_symlink()
        assert resolve_pointer(doc_dir) == V2

    def test_auto_falls_back_to_file(self, doc_dir):
        with patch("versionstore.documents.pointer.os.symlink", side_effect=OSError("no symlinks")):
            assert write_pointer(doc_dir, V1, mode="auto", fsync=False) == "file"
        assert resolve_pointer(doc_dir) == V1

    def test_symlink_mode_does_not_fall_back(self, doc_dir):
        with patch("versionstore.documents.pointer.os.symlink", side_effect=OSError("no symlinks")):
            with pytest.raises(OSError):
                write_pointer(doc_dir, V1, mode="symlink")
        assert read_pointer_target(doc_dir) is None

    def test_rejects_non_id(self, doc_dir):
        with pytest.raises(ValueError):
            write_pointer(doc_dir, "../../etc/passwd")

    def test_no_temp_files_left(self, doc_dir):
        write_pointer(doc_dir, V1, fsync=False)
        write_pointer(doc_dir, V2, fsync=False)
        assert sorted(os.listdir(doc_dir)) == sorted([V1, V2, POINTER_NAME])

    def test_failed_replace_cleans_up(self, doc_dir):
        with patch("versionstore.documents.pointer.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_pointer(doc_dir, V1, mode="file", fsync=False)
        assert sorted(os.listdir(doc_dir)) == sorted([V1, V2])


class TestResolvePointer:
    def test_missing_pointer(self, doc_dir):
        assert resolve_pointer(doc_dir) is None
        assert not pointer_resolves(doc_dir)

    def test_missing_directory(self, store_root):
        assert resolve_pointer(store_root / "nope") is None
        assert not pointer_resolves(store_root / "nope")

    @needs_symlink
    def test_absolute_symlink_target(self, doc_dir):
        os.symlink(doc_dir / V1, doc_dir / POINTER_NAME)
        assert resolve_pointer(doc_dir) == V1

    @needs_symlink
    def test_dangling_symlink_is_corruption(self, doc_dir):
        os.symlink("2030-01-01T00:00:00.000Z", doc_dir / POINTER_NAME)
        with pytest.raises(CorruptionError) as exc_info:
            resolve_pointer(doc_dir)
        assert exc_info.value.target == "2030-01-01T00:00:00.000Z"
        assert not pointer_resolves(doc_dir)

    def test_malformed_pointer_file(self, doc_dir):
        (doc_dir / POINTER_NAME).write_text("garbage", encoding="utf-8")
        with pytest.raises(CorruptionError, match="malformed"):
            resolve_pointer(doc_dir)
        assert not pointer_resolves(doc_dir)

    def test_binary_pointer_file(self, doc_dir):
        (doc_dir / POINTER_NAME).write_bytes(b"\xff\xfe\x00")
        with pytest.raises(CorruptionError):
            resolve_pointer(doc_dir)

    def test_pointer_file_with_trailing_newline(self, doc_dir):
        (doc_dir / POINTER_NAME).write_text(V2 + "\n", encoding="utf-8")
        assert resolve_pointer(doc_dir) == V2
        assert pointer_resolves(doc_dir)


class TestPointerTypeSwap:
    @needs_symlink
    @needs_nofollow
    def test_symlink_appearing_after_readlink_is_not_read_as_file(self, doc_dir):
        (doc_dir / V1).write_text("document body", encoding="utf-8")
        write_pointer(doc_dir, V1, mode="symlink")
        real_readlink = os.readlink
        calls = []

        def swapped_readlink(path):
            # first look sees a regular pointer file; a writer then swaps in the symlink
            calls.append(path)
            if len(calls) == 1:
                raise OSError(errno.EINVAL, "Invalid argument")
            return real_readlink(path)

        with patch("versionstore.documents.pointer.os.readlink", side_effect=swapped_readlink):
            assert resolve_pointer(doc_dir) == V1
        assert len(calls) == 2

    @needs_symlink
    @needs_nofollow
    def test_gives_up_when_type_keeps_changing(self, doc_dir):
        write_pointer(doc_dir, V1, mode="symlink")
        with patch(
            "versionstore.documents.pointer.os.readlink",
            side_effect=OSError(errno.EINVAL, "Invalid argument"),
        ):
            with pytest.raises(OSError) as exc_info:
                read_pointer_target(doc_dir)
            assert exc_info.value.errno == errno.ELOOP
            assert not pointer_resolves(doc_dir)

    def test_pointer_file_read_without_following(self, doc_dir):
        write_pointer(doc_dir, V2, mode="file", fsync=False)
        assert read_pointer_target(doc_dir) == V2
