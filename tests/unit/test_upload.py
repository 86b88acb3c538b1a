from __future__ import annotations

from pathlib import Path

import pytest

from booktrade.services.upload import UploadError, stage_upload, transient_upload


def test_stage_upload_copies_under_unique_name(tmp_path: Path):
    src = tmp_path / "Stock Export.XLSX"
    src.write_bytes(b"PK\x03\x04data")
    upload_dir = tmp_path / "uploads"
    first = stage_upload(src, upload_dir)
    second = stage_upload(src, upload_dir)
    assert first != second
    assert first.parent == upload_dir
    assert first.suffix == ".xlsx"
    assert first.read_bytes() == src.read_bytes()
    assert src.exists()


def test_stage_upload_missing_source(tmp_path: Path):
    with pytest.raises(UploadError, match="not found"):
        stage_upload(tmp_path / "nope.xlsx", tmp_path / "uploads")


def test_transient_upload_removes_file(tmp_path: Path):
    path = tmp_path / "u.xlsx"
    path.write_bytes(b"x")
    with transient_upload(path) as p:
        assert p.exists()
    assert not path.exists()


def test_transient_upload_removes_file_on_error(tmp_path: Path):
    path = tmp_path / "u.xlsx"
    path.write_bytes(b"x")
    with pytest.raises(RuntimeError):
        with transient_upload(path):
            raise RuntimeError("boom")
    assert not path.exists()


def test_transient_upload_tolerates_already_removed(tmp_path: Path):
    path = tmp_path / "u.xlsx"
    path.write_bytes(b"x")
    with transient_upload(path):
        with transient_upload(path):
            pass
    assert not path.exists()
