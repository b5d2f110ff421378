"""
Profile photo storage on the local filesystem.
"""

import logging
import random
import re
import time
from pathlib import Path
from typing import Optional, Tuple

from moneybook.config import settings
from moneybook.exceptions import PayloadTooLarge, ValidationFailed

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png"}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}
PHOTO_FILENAME_PATTERN = re.compile(r"^profile-\d+-\d+\.(jpg|jpeg|png)$", re.IGNORECASE)
PHOTO_URL_PREFIX = "/uploads/profile-photos"


def photo_dir() -> Path:
    return Path(settings.photo_dir)


def is_valid_photo_filename(filename: str) -> bool:
    return bool(PHOTO_FILENAME_PATTERN.match(filename))


def check_photo(filename: Optional[str], content_type: Optional[str], size: int) -> str:
    """Validate an upload and return its normalized extension."""
    ext = Path(filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS or (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise ValidationFailed(
            "Only JPG and PNG files are allowed",
            errors=[{"field": "photo", "message": "Only JPG and PNG files are allowed"}]
        )
    if size > settings.max_photo_bytes:
        raise PayloadTooLarge(f"File too large. Maximum size is {settings.max_photo_bytes // (1024 * 1024)}MB")
    if size == 0:
        raise ValidationFailed(
            "Uploaded file is empty",
            errors=[{"field": "photo", "message": "Uploaded file is empty"}]
        )
    return ext


def save_photo(content: bytes, original_filename: Optional[str], content_type: Optional[str]) -> Tuple[str, str]:
    """Write the photo to disk and return ``(filename, public_url)``."""
    ext = check_photo(original_filename, content_type, len(content))

    target_dir = photo_dir()
    target_dir.mkdir(parents=True, exist_ok=True)

    filename = f"profile-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"
    with open(target_dir / filename, "wb") as f:
        f.write(content)

    return filename, f"{PHOTO_URL_PREFIX}/{filename}"


def delete_photo(filename: Optional[str]) -> None:
    """Remove a stored photo; a missing file is not an error."""
    if not filename or not is_valid_photo_filename(filename):
        return
    path = photo_dir() / filename
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Failed to delete profile photo {filename}: {e}")
