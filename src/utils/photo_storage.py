"""Out-of-band storage for complaint photos.

Photos live on disk under UPLOAD_DIR; complaints keep only the relative
reference returned by `PhotoStorage.save`.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import ALLOWED_PHOTO_TYPES, MAX_PHOTO_SIZE
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

PHOTO_SUBDIR = "pengaduan"

# Extension fallback when the client sends no usable content type
_EXTENSION_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}


class PhotoStorage:
    """Stores uploaded photos in a directory tree."""

    def __init__(self, base_dir: Path, max_size: int = MAX_PHOTO_SIZE):
        """Initialize PhotoStorage.

        Args:
            base_dir: Root directory for uploads.
            max_size: Maximum accepted photo size in bytes.
        """
        self.base_dir = Path(base_dir)
        self.max_size = max_size

    def _resolve_content_type(self, filename: Optional[str], content_type: Optional[str]) -> str:
        if content_type in ALLOWED_PHOTO_TYPES:
            return content_type
        extension = ""
        if filename and "." in filename:
            extension = filename.lower().rsplit(".", 1)[-1]
        resolved = _EXTENSION_TYPES.get(extension)
        if resolved is None:
            raise ValidationError(
                "Invalid photo type. Allowed types: jpg, png, gif, webp"
            )
        return resolved

    def save(
        self,
        content: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> str:
        """Write photo bytes to disk.

        Args:
            content: Raw file content.
            filename: Original upload name, used for type detection.
            content_type: MIME type sent by the client.

        Returns:
            Reference relative to base_dir, e.g. "pengaduan/<uuid>.jpg".

        Raises:
            ValidationError: If the photo is empty, too large or not an image.
        """
        if not content:
            raise ValidationError("Uploaded photo is empty")
        if len(content) > self.max_size:
            raise ValidationError(
                f"Photo size exceeds maximum allowed size of {self.max_size // (1024 * 1024)}MB"
            )
        resolved_type = self._resolve_content_type(filename, content_type)
        extension = ALLOWED_PHOTO_TYPES[resolved_type]

        target_dir = self.base_dir / PHOTO_SUBDIR
        target_dir.mkdir(parents=True, exist_ok=True)
        name = f"{uuid.uuid4().hex}{extension}"
        with open(target_dir / name, "wb") as f:
            f.write(content)

        ref = f"{PHOTO_SUBDIR}/{name}"
        logger.info("Stored photo %s (%d bytes)", ref, len(content))
        return ref

    def path_for(self, ref: str) -> Path:
        """Absolute path of a stored reference, refusing paths outside base_dir."""
        path = (self.base_dir / ref).resolve()
        if self.base_dir.resolve() not in path.parents:
            raise ValidationError("Invalid photo reference")
        return path

    def delete(self, ref: Optional[str]) -> None:
        """Remove a stored photo; missing files are ignored."""
        if not ref:
            return
        path = self.path_for(ref)
        if path.exists():
            path.unlink()
            logger.info("Removed photo %s", ref)
        else:
            logger.warning("Photo %s not found for removal", ref)


@dataclass
class PhotoUpload:
    """Photo bytes received with a complaint, not yet stored."""

    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None
