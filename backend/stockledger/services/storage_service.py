# Overview: Image upload storage; turns uploaded files into stable references.

"""
Uploaded images live in UPLOAD_FOLDER under random names and are referenced
from Item.images as "<UPLOAD_URL_PREFIX>/<filename>". The catalog owns the
files: an item delete (or an edit that drops a reference) releases them.
"""
from __future__ import annotations

import os
import uuid

from flask import current_app
from werkzeug.datastructures import FileStorage

from ..validation import ValidationError


class UploadError(ValidationError):
    """Rejected upload (type, size or count)."""


def upload_folder() -> str:
    return current_app.config["UPLOAD_FOLDER"]


def _extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def _file_size(file: FileStorage) -> int:
    stream = file.stream
    pos = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size


def validate_upload(file: FileStorage) -> str:
    """Return the normalized extension or raise UploadError."""
    allowed = current_app.config["ALLOWED_IMAGE_EXTENSIONS"]
    ext = _extension(file.filename)
    mimetype = (file.mimetype or "").lower()
    if ext not in allowed or not any(kind in mimetype for kind in allowed):
        raise UploadError("Only images (jpeg, jpg, png, webp) are allowed")

    max_bytes = current_app.config["MAX_IMAGE_BYTES"]
    if _file_size(file) > max_bytes:
        raise UploadError(f"Image {file.filename} exceeds {max_bytes // (1024 * 1024)}MB")
    return ext


def save_images(files: list[FileStorage]) -> list[str]:
    """
    Persist uploaded images and return their references, in upload order.

    All files are validated before any is written, so a rejected batch
    leaves nothing behind.
    """
    files = [f for f in files if f and f.filename]
    if not files:
        return []

    limit = current_app.config["MAX_IMAGES_PER_REQUEST"]
    if len(files) > limit:
        raise UploadError(f"At most {limit} images per request")

    extensions = [validate_upload(f) for f in files]

    folder = upload_folder()
    os.makedirs(folder, exist_ok=True)
    prefix = current_app.config["UPLOAD_URL_PREFIX"]

    refs = []
    for file, ext in zip(files, extensions):
        filename = f"{uuid.uuid4()}.{ext}"
        file.save(os.path.join(folder, filename))
        refs.append(f"{prefix}/{filename}")
    return refs


def resolve_path(ref: str) -> str | None:
    """Map an image reference to its file path (None if it is not ours)."""
    prefix = current_app.config["UPLOAD_URL_PREFIX"].rstrip("/") + "/"
    if not ref or not ref.startswith(prefix):
        return None
    filename = os.path.basename(ref[len(prefix):])
    if not filename:
        return None
    return os.path.join(upload_folder(), filename)


def release_images(refs: list[str]) -> int:
    """Delete the files behind `refs`; missing files are skipped. Returns count removed."""
    removed = 0
    for ref in refs:
        path = resolve_path(ref)
        if path and os.path.isfile(path):
            os.remove(path)
            removed += 1
    return removed
