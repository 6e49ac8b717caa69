import os
import time
import uuid
import logging
from dataclasses import dataclass, asdict

from app.errors import AppError
from app.settings import settings

logger = logging.getLogger(__name__)

MIME_SUBDIRS = {
    "application/pdf": "pdfs",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "docs",
}
ALLOWED_MIME_TYPES = list(MIME_SUBDIRS)
READ_CHUNK_SIZE = 64 * 1024


@dataclass
class StoredFile:
    original_name: str
    filename: str
    path: str
    size: int
    mime_type: str
    extension: str

    def dict(self) -> dict:
        return asdict(self)


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def validate_upload(filename: str, content_type: str | None, size: int) -> None:
    allowed = settings.allowed_extensions
    ext = file_extension(filename).lstrip(".")
    if ext not in allowed:
        raise AppError(f"File type not allowed. Allowed types: {', '.join(allowed)}", 400)
    if content_type not in ALLOWED_MIME_TYPES:
        raise AppError(
            f"Invalid file type. Allowed MIME types: {', '.join(ALLOWED_MIME_TYPES)}", 400)
    if size <= 0:
        raise AppError("Uploaded file is empty", 400)
    if size > settings.MAX_FILE_SIZE:
        raise _too_large()


def _too_large() -> AppError:
    return AppError(f"File too large. Maximum size: {round(settings.MAX_FILE_SIZE / 1024 / 1024)}MB", 400)


async def read_upload(upload, chunk_size: int = READ_CHUNK_SIZE) -> bytes:
    """Read an uploaded file, stopping as soon as it passes MAX_FILE_SIZE."""
    limit = settings.MAX_FILE_SIZE
    if (getattr(upload, "size", None) or 0) > limit:
        raise _too_large()
    chunks, total = [], 0
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise _too_large()
        chunks.append(chunk)
    return b"".join(chunks)


def store_upload(filename: str, content_type: str | None, content: bytes) -> StoredFile:
    validate_upload(filename, content_type, len(content))
    subdir = MIME_SUBDIRS.get(content_type or "", "others")
    target_dir = os.path.join(settings.UPLOAD_DIR, subdir)
    os.makedirs(target_dir, exist_ok=True)

    ext = file_extension(filename)
    stored_name = f"{uuid.uuid4()}-{int(time.time() * 1000)}{ext}"
    path = os.path.join(target_dir, stored_name)
    with open(path, "wb") as out:
        out.write(content)
    logger.info("File upload: %s (%d bytes) -> %s", filename, len(content), path)
    return StoredFile(
        original_name=filename,
        filename=stored_name,
        path=path,
        size=len(content),
        mime_type=content_type or "",
        extension=ext,
    )


def cleanup_file(path: str | None) -> None:
    if not path:
        return
    try:
        if os.path.exists(path):
            os.remove(path)
            logger.info("Cleaned up file: %s", path)
    except OSError as exc:
        logger.error("Error cleaning up file %s: %s", path, exc)
