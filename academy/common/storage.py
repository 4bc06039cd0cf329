"""
Object storage for uploaded files.

Objects live in buckets (one directory each under UPLOAD_DIR) and are
addressed by a key that may contain slashes. Every object is public and is
served back under STORAGE_PUBLIC_BASE_URL/<bucket>/<key>.
"""
import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

BUCKETS = ("uploads", "course-images", "certificates")


class StorageError(Exception):
    pass


def get_file_extension(filename: str) -> str:
    """Get file extension from filename."""
    if '.' not in filename:
        return ''
    return filename.rsplit('.', 1)[1].lower()


def allowed_file(filename: str, allowed_extensions) -> bool:
    """Check if file extension is allowed."""
    ext = get_file_extension(filename or '')
    return bool(ext) and ext in {e.lower() for e in allowed_extensions}


def file_size(file) -> int:
    """Size of an uploaded stream, leaving the read position at the start."""
    file.seek(0, os.SEEK_END)
    size = file.tell()
    file.seek(0)
    return size


def generate_key(original_filename: str, prefix: str = '') -> str:
    """Unique object key ``<prefix>/<uuid>.<ext>`` for an uploaded file."""
    ext = get_file_extension(original_filename)
    name = str(uuid.uuid4())
    if ext:
        name = f"{name}.{secure_filename(ext)}"
    prefix = prefix.strip('/')
    return f"{prefix}/{name}" if prefix else name


class LocalObjectStorage:
    """Bucket/key store on the local filesystem."""

    def __init__(self, root: str, public_base_url: str = '/uploads'):
        self.root = os.path.abspath(root)
        self.public_base_url = public_base_url.rstrip('/')

    def path_for(self, bucket: str, key: str) -> str:
        """Absolute path of an object; refuses unknown buckets and keys escaping the bucket."""
        if bucket not in BUCKETS:
            raise StorageError(f"Unknown bucket: {bucket}")
        bucket_root = os.path.join(self.root, bucket)
        full_path = os.path.normpath(os.path.join(bucket_root, key.replace('\\', '/')))
        if os.path.commonpath([bucket_root, full_path]) != bucket_root or full_path == bucket_root:
            raise StorageError(f"Invalid object key: {key}")
        return full_path

    def upload(self, bucket: str, key: str, file) -> str:
        """Store a werkzeug FileStorage (or any object with .save) and return its public URL."""
        full_path = self.path_for(bucket, key)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        file.save(full_path)
        return self.public_url(bucket, key)

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{bucket}/{key.lstrip('/')}"

    def local_file_url(self, url: str):
        """
        ``file://`` URL of a stored object given its public URL, or None when
        the URL does not point at an existing object of this store.
        """
        prefix = f"{self.public_base_url}/"
        if not url or not url.startswith(prefix):
            return None
        bucket, _, key = url[len(prefix):].partition('/')
        try:
            full_path = self.path_for(bucket, key)
        except StorageError:
            return None
        if not os.path.isfile(full_path):
            return None
        return f"file://{full_path}"


def init_storage(app) -> None:
    app.extensions['storage'] = LocalObjectStorage(
        app.config['UPLOAD_DIR'], app.config['STORAGE_PUBLIC_BASE_URL']
    )


def get_storage() -> LocalObjectStorage:
    return current_app.extensions['storage']
