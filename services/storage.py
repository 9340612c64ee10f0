# services/storage.py
"""
On-disk upload store for submitted article files
"""

import logging
import os
import time
from pathlib import Path
from typing import BinaryIO, Tuple

from flask import current_app
from werkzeug.utils import secure_filename

from core.errors import ArchiveIOError, ValidationError

logger = logging.getLogger(__name__)


def upload_folder() -> Path:
    folder = Path(os.path.abspath(current_app.config['UPLOAD_FOLDER']))
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def resolve_in(folder: Path, name: str) -> Path:
    """Map a stored name to a path inside ``folder``, refusing anything else"""
    if not isinstance(name, str) or not name or secure_filename(name) != name:
        raise ArchiveIOError(f"Invalid file name: {name!r}")
    return folder / name


def resolve_upload(name: str) -> Path:
    return resolve_in(upload_folder(), name)


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def open_unique(folder: Path, prefix: str, suffix: str) -> Tuple[str, BinaryIO]:
    """
    Create a new file named ``<prefix><suffix>`` in ``folder``

    When the name is taken, ``-1``, ``-2`` ... is appended to the prefix. The
    file is created exclusively, so concurrent callers never share a name.

    Returns:
        The file name and the file opened for binary writing
    """
    attempt = 0
    while True:
        name = f"{prefix}{suffix}" if attempt == 0 else f"{prefix}-{attempt}{suffix}"
        try:
            return name, open(folder / name, 'xb')
        except FileExistsError:
            attempt += 1


def save_upload(file_storage) -> str:
    """
    Store a multipart upload as ``<epoch ms>-<secure filename>``

    Returns:
        The stored file name, as referenced by Article.file
    """
    if file_storage is None or not file_storage.filename:
        raise ValidationError("An article file is required")

    original = secure_filename(file_storage.filename)
    extension = os.path.splitext(original)[1].lower()
    allowed = current_app.config.get('UPLOAD_EXTENSIONS')
    if allowed and extension not in allowed:
        raise ValidationError(f"File type {extension or '(none)'} is not allowed")

    folder = upload_folder()
    stored_name, handle = open_unique(folder, str(timestamp_ms()), f"-{original}")
    try:
        with handle:
            file_storage.save(handle)
    except OSError:
        (folder / stored_name).unlink(missing_ok=True)
        raise

    logger.info(f"Stored upload {stored_name}")
    return stored_name
