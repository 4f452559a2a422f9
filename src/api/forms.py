"""Request parsing shared by the complaint creation routes.

Complaints can be submitted either as JSON or as a multipart form carrying an
optional photo in the `foto` field.
"""

from typing import Dict, Optional, Tuple

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from config import MAX_PHOTO_SIZE
from core.exceptions import ValidationError
from schemas.complaint import ComplaintCreate
from utils.photo_storage import PhotoUpload

PHOTO_FIELD = "foto"

_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_complaint_submission(
    request: Request,
) -> Tuple[Dict[str, Optional[str]], Optional[PhotoUpload]]:
    """Parse complaint fields and the optional photo from a request.

    Args:
        request: Incoming request, JSON or form encoded.

    Returns:
        Tuple of (fields keyed by snake_case name, photo or None).

    Raises:
        ValidationError: If the body cannot be parsed.
    """
    content_type = request.headers.get("content-type", "")
    photo = None

    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        raw = {key: value for key, value in form.items() if isinstance(value, str)}
        upload = form.get(PHOTO_FIELD)
        if isinstance(upload, StarletteUploadFile):
            # One byte past the limit is enough to detect an oversized part
            content = await upload.read(MAX_PHOTO_SIZE + 1)
            if len(content) > MAX_PHOTO_SIZE:
                raise ValidationError(
                    f"Photo size exceeds maximum allowed size of {MAX_PHOTO_SIZE // (1024 * 1024)}MB"
                )
            # Browsers send an empty part when no file was picked
            if content:
                photo = PhotoUpload(content, upload.filename, upload.content_type)
    else:
        try:
            raw = await request.json()
        except ValueError:
            raise ValidationError("Request body must be valid JSON")
        if not isinstance(raw, dict):
            raise ValidationError("Request body must be a JSON object")

    try:
        data = ComplaintCreate.model_validate(raw)
    except PydanticValidationError:
        raise ValidationError("Invalid complaint data")
    return data.model_dump(exclude_unset=True), photo
