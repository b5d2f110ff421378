"""
Protected serving of uploaded profile photos.

Directory listings are refused and only filenames of the shape the photo
service generates are ever looked up on disk.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import FileResponse

from moneybook.exceptions import ForbiddenError, NotFoundError
from moneybook.services import photo_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("", include_in_schema=False)
@router.get("/", include_in_schema=False)
def uploads_root():
    raise ForbiddenError("Access to uploads directory is forbidden")


@router.get("/profile-photos", include_in_schema=False)
@router.get("/profile-photos/", include_in_schema=False)
def photos_root():
    raise ForbiddenError("Access to profile photos directory is forbidden")


@router.get("/profile-photos/{filename}")
def get_profile_photo(filename: str):
    if not photo_service.is_valid_photo_filename(filename):
        raise NotFoundError("File not found")

    path = photo_service.photo_dir() / filename
    if not path.is_file():
        raise NotFoundError("File not found")

    logger.debug(f"Serving profile photo {filename}")
    return FileResponse(path)
