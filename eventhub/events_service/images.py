"""
Event image uploads: type and size checks.

Only JPEG and PNG are accepted, both by MIME type and file extension, up to
5 MiB. Accepted images are stored as bytes and rendered as data URIs.
"""

import os
from dataclasses import dataclass
from typing import Optional

from werkzeug.datastructures import FileStorage

from eventhub.common.errors import ValidationError
from eventhub.events_service.models import EventImage

MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_CONTENT_TYPES = ["image/jpeg", "image/jpg", "image/png"]
ALLOWED_EXTENSIONS = [".jpeg", ".jpg", ".png"]


@dataclass
class UploadedImage:
    filename: str
    content_type: str
    data: bytes


def read_upload(file: Optional[FileStorage]) -> Optional[UploadedImage]:
    """Read a multipart file field. Reads at most one byte past the limit."""
    if file is None or not file.filename:
        return None
    data = file.stream.read(MAX_IMAGE_BYTES + 1)
    return UploadedImage(filename=file.filename, content_type=file.mimetype or "", data=data)


def validate_image(upload: UploadedImage) -> EventImage:
    """
    Raises:
        ValidationError: wrong type, empty, or larger than 5 MiB.
    """
    content_type = (upload.content_type or "").lower()
    extension = os.path.splitext(upload.filename or "")[1].lower()

    if content_type not in ALLOWED_CONTENT_TYPES or extension not in ALLOWED_EXTENSIONS:
        raise ValidationError("Only JPEG, JPG and PNG files are allowed",
                              fields={"image": "Only JPEG, JPG and PNG files are allowed"})
    if not upload.data:
        raise ValidationError("Image file is empty", fields={"image": "Image file is empty"})
    if len(upload.data) > MAX_IMAGE_BYTES:
        raise ValidationError("Image must be 5MB or smaller", fields={"image": "Image must be 5MB or smaller"})

    return EventImage(data=upload.data, content_type=content_type)
