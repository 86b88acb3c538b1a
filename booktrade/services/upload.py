from __future__ import annotations

import logging
import shutil
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

"""Transient upload handling.

An upload is a copy of the incoming workbook placed under the upload
directory with a random name. The orchestrator owns that copy for the
duration of one ingestion and deletes it on every exit path.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "UploadError",
    "stage_upload",
    "transient_upload",
]


class UploadError(Exception):
    pass


def stage_upload(source_file: Path, upload_dir: Path) -> Path:
    """Copy `source_file` into `upload_dir` under a unique name and return the copy."""
    if not source_file.is_file():
        raise UploadError(f"upload file not found: {source_file}")
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        target = upload_dir / f"{uuid.uuid4().hex}{source_file.suffix.lower()}"
        shutil.copyfile(source_file, target)
    except OSError as e:
        raise UploadError(f"cannot stage upload {source_file.name}: {e}") from e
    logger.debug("staged upload %s -> %s", source_file.name, target)
    return target


@contextmanager
def transient_upload(path: Path) -> Iterator[Path]:
    """Yield `path` and delete it afterwards, whatever happened in between."""
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
            logger.debug("removed transient upload %s", path)
        except OSError as e:
            logger.warning("could not remove transient upload %s: %s", path, e)
