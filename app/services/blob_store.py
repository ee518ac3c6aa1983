from __future__ import annotations

import hashlib
import logging
from pathlib import Path, PurePath

from app.config import settings
from app.core.submission_payload import FilePayload


logger = logging.getLogger(__name__)


class BlobStorageError(RuntimeError):
    pass


class UnsupportedMediaTypeError(ValueError):
    pass


class LocalBlobStore:
    """Content-addressed file store on local disk.

    Files are named by the SHA-256 of their bytes, so storing the same upload
    twice yields the same URL.
    """

    def __init__(self, root: str | Path | None = None, url_prefix: str | None = None):
        self.root = Path(root or settings.upload_dir)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip('/')

    def put(self, data: bytes, filename: str = '') -> str:
        if not data:
            raise BlobStorageError('Cannot store empty file')
        digest = hashlib.sha256(data).hexdigest()
        suffix = PurePath(filename or '').suffix.lower()[:16]
        stored_name = f'{digest}{suffix}'
        target = self.root / stored_name
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            if not target.exists():
                target.write_bytes(data)
        except OSError as exc:
            raise BlobStorageError(f'Failed to store file: {exc}') from exc
        logger.info('blob_stored name=%s size=%s', stored_name, len(data))
        return f'{self.url_prefix}/{stored_name}'


def check_mime_type(content_type: str | None, filename: str = '') -> None:
    mime = (content_type or '').split(';', 1)[0].strip().lower()
    if mime not in settings.upload_allowed_mime_types:
        logger.warning('upload_rejected reason=mime_type mime=%s filename=%s', mime or '-', filename)
        raise UnsupportedMediaTypeError('Invalid file type')


def store_upload(
    data: bytes,
    *,
    filename: str,
    content_type: str | None,
    store: LocalBlobStore | None = None,
) -> FilePayload:
    check_mime_type(content_type, filename)
    url = (store or default_blob_store).put(data, filename)
    return FilePayload(url=url, name=filename or PurePath(url).name, size=len(data))


default_blob_store = LocalBlobStore()
