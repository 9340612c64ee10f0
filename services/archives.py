# services/archives.py
"""
On-demand zip archives of uploaded files, staged for a short download window
"""

import logging
import os
import zipfile
from pathlib import Path
from typing import List

from flask import current_app
from kombu.exceptions import OperationalError

from core.errors import ArchiveIOError, ValidationError
from services.storage import open_unique, resolve_in, resolve_upload, timestamp_ms
from tasks.archive_cleanup import delete_archive

logger = logging.getLogger(__name__)


def archive_folder() -> Path:
    # Paths handed to worker tasks must be absolute
    folder = Path(os.path.abspath(current_app.config['ARCHIVE_FOLDER']))
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def archive_path(filename: str) -> Path:
    return resolve_in(archive_folder(), filename)


def build_archive(file_names: List[str]) -> str:
    """
    Zip the named uploads into the staging folder

    Args:
        file_names: Names of files already present in the upload folder

    Returns:
        The archive file name (``<epoch ms>.zip``, or ``<epoch ms>-<n>.zip``
        when another archive was built in the same millisecond), fully written

    The archive is deleted ``ARCHIVE_TTL_SECONDS`` after creation whether or
    not it has been downloaded.
    """
    if not isinstance(file_names, list) or not file_names:
        raise ValidationError("files must be a non-empty array of file names")

    sources = []
    for name in file_names:
        path = resolve_upload(name)
        if not path.is_file():
            raise ArchiveIOError(f"Uploaded file not found: {name}")
        sources.append((name, path))

    folder = archive_folder()
    filename, handle = open_unique(folder, str(timestamp_ms()), '.zip')
    target = folder / filename

    try:
        with handle, zipfile.ZipFile(handle, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
            for name, path in sources:
                archive.write(path, arcname=name)
    except OSError as e:
        target.unlink(missing_ok=True)
        raise ArchiveIOError(f"Archive {filename} could not be written", details=str(e))

    ttl = current_app.config.get('ARCHIVE_TTL_SECONDS', 60)
    try:
        delete_archive.apply_async(args=[str(target)], countdown=ttl)
    except OperationalError as e:
        # The periodic purge still removes the file once it is older than the TTL
        logger.error(f"Could not schedule deletion of {filename}: {e}")

    logger.info(f"Archive {filename} built from {len(sources)} files, expires in {ttl}s")
    return filename
