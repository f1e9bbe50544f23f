"""
Attachment storage for complaint uploads.

- Filename sanitization and unique name generation.
- Per-type validation (images and PDFs) of extension, MIME type and size.
- Saving bytes under a base directory and safe deletion.
"""

import mimetypes
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Set

from gov_complaints.core.exceptions import StorageError, ValidationError
from gov_complaints.core.logging import get_logger
from gov_complaints.models.base.enums import AttachmentType

logger = get_logger(__name__)

DIR_PERMISSIONS = 0o755
FILE_PERMISSIONS = 0o644

IMAGE_MIME_TYPES = {'image/jpeg', 'image/png', 'image/gif', 'image/webp'}
PDF_MIME_TYPES = {'application/pdf'}


@dataclass
class IncomingFile:
    """A file received from a client, before it is stored."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


class AttachmentUploader(Protocol):
    """Storage backend used by the complaint service."""

    def upload(
        self,
        file: IncomingFile,
        destination_path: str,
        file_type: AttachmentType,
    ) -> Dict[str, Any]:
        """Store one file and return file_name, file_path, file_type, mime_type, file_size."""
        ...

    def delete(self, file_path: str) -> None:
        ...


def safe_filename(filename: str) -> str:
    """Strip directory components and unsafe characters from a client filename."""
    if not filename or not isinstance(filename, str):
        raise ValidationError("file", "Filename must be a non-empty string")

    name = os.path.basename(filename.replace("\\", "/"))

    safe_chars = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789._- ")
    name = "".join(ch for ch in name if ch in safe_chars).strip()
    name = name.lstrip(".-")

    if not name:
        raise ValidationError("file", "Filename contains no valid characters")

    if len(name) > 255:
        stem, ext = os.path.splitext(name)
        name = stem[:255 - len(ext)] + ext

    return name


def generate_unique_filename(original_name: str) -> str:
    """Keep the extension, append a random token to the stem."""
    stem, ext = os.path.splitext(safe_filename(original_name))
    return f"{stem}_{secrets.token_hex(8)}{ext.lower()}"


class LocalFileUploader:
    """
    Stores attachments on the local filesystem under ``base_dir``.

    Returned ``file_path`` values are relative to ``base_dir`` so rows stay
    valid if the storage root moves.
    """

    def __init__(
        self,
        base_dir: str,
        max_file_size: int = 10 * 1024 * 1024,
        image_extensions: Optional[Set[str]] = None,
    ):
        self.base_dir = Path(base_dir)
        self.max_file_size = max_file_size
        self._rules = {
            AttachmentType.IMAGE: (
                {f".{ext.lstrip('.').lower()}" for ext in (image_extensions or {"jpg", "jpeg", "png", "gif", "webp"})},
                IMAGE_MIME_TYPES,
            ),
            AttachmentType.PDF: ({".pdf"}, PDF_MIME_TYPES),
        }

    def validate(self, file: IncomingFile, file_type: AttachmentType) -> str:
        """
        Check one file against the rules for its attachment type.

        Returns:
            The MIME type that will be recorded

        Raises:
            ValidationError: Keyed ``images`` or ``pdfs``
        """
        field = "images" if file_type == AttachmentType.IMAGE else "pdfs"
        extensions, mime_types = self._rules[file_type]

        ext = os.path.splitext(file.filename or "")[1].lower()
        if ext not in extensions:
            raise ValidationError(field, f"File type not allowed: {file.filename}")

        mime_type = file.content_type or mimetypes.guess_type(file.filename)[0] or ""
        if mime_type not in mime_types:
            raise ValidationError(field, f"MIME type not allowed: {mime_type or 'unknown'}")

        if not 0 < file.size <= self.max_file_size:
            raise ValidationError(field, f"File size must be between 1 and {self.max_file_size} bytes.")

        return mime_type

    def upload(
        self,
        file: IncomingFile,
        destination_path: str,
        file_type: AttachmentType,
    ) -> Dict[str, Any]:
        mime_type = self.validate(file, file_type)

        stored_name = generate_unique_filename(file.filename)
        relative_path = Path(destination_path) / stored_name
        target = self.base_dir / relative_path

        try:
            target.parent.mkdir(parents=True, exist_ok=True, mode=DIR_PERMISSIONS)
            target.write_bytes(file.content)
            target.chmod(FILE_PERMISSIONS)
        except OSError as e:
            logger.error(f"Failed to save file {relative_path}: {e}")
            raise StorageError(f"Failed to save file: {file.filename}") from e

        logger.info(f"File saved: {relative_path}")

        return {
            "file_name": safe_filename(file.filename),
            "file_path": relative_path.as_posix(),
            "file_type": file_type.value,
            "mime_type": mime_type,
            "file_size": file.size,
        }

    def delete(self, file_path: str) -> None:
        """Remove a stored file. A missing file is logged, not raised."""
        target = self.base_dir / file_path
        try:
            if target.is_file():
                target.unlink()
                logger.info(f"File deleted: {file_path}")
            else:
                logger.warning(f"File not found or not a file: {file_path}")
        except OSError as e:
            logger.error(f"Failed to delete file {file_path}: {e}")
            raise StorageError(f"Failed to delete file: {file_path}") from e
