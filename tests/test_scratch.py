from __future__ import annotations

import pytest

from iconify.util.scratch import scratch_dir


def test_scratch_dir_removed_on_success(tmp_path) -> None:
    with scratch_dir(root=tmp_path) as path:
        (path / "file.bin").write_bytes(b"x")
        assert path.is_dir()
    assert not path.exists()


def test_scratch_dir_removed_on_error(tmp_path) -> None:
    with pytest.raises(RuntimeError):
        with scratch_dir(root=tmp_path) as path:
            raise RuntimeError("mid-pipeline failure")
    assert not path.exists()


def test_scratch_dirs_are_unique(tmp_path) -> None:
    with scratch_dir(root=tmp_path, prefix="iconify-") as a, scratch_dir(root=tmp_path, prefix="iconify-") as b:
        assert a != b
        assert a.name.startswith("iconify-")
