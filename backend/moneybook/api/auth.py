"""
Authentication and profile endpoints.
"""

from typing import Any, Optional, Tuple, Type, TypeVar

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from moneybook.database import get_db
from moneybook.dependencies import get_current_user, limit_auth_attempts
from moneybook.exceptions import ValidationFailed
from moneybook.models import User
from moneybook.schemas.auth import (
    AuthData,
    ChangePasswordRequest,
    DeleteAccountRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
    VerifyData,
)
from moneybook.schemas.common import ApiResponse, envelope
from moneybook.services import auth_service, photo_service

SchemaT = TypeVar("SchemaT", bound=BaseModel)

router = APIRouter(prefix="/auth", tags=["auth"])


async def read_body(request: Request) -> Tuple[Any, Optional[auth_service.PhotoUpload]]:
    """
    Read either a JSON body or multipart form fields.

    A multipart ``photo`` file is split off from the other fields.
    """
    if request.headers.get("content-type", "").startswith("multipart/form-data"):
        form = await request.form()
        photo = None
        upload = form.get("photo")
        if isinstance(upload, StarletteUploadFile) and upload.filename:
            photo = auth_service.PhotoUpload(await upload.read(), upload.filename, upload.content_type)
        return {key: value for key, value in form.items() if key != "photo"}, photo

    try:
        return await request.json(), None
    except ValueError:
        raise ValidationFailed("Request body must be valid JSON")


def validate_body(schema: Type[SchemaT], raw: Any) -> SchemaT:
    try:
        return schema.model_validate(raw)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=201,
    dependencies=[Depends(limit_auth_attempts)]
)
async def register(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Register a new user and sign them in.

    Accepts a JSON body, or multipart form fields with an optional ``photo`` file.
    """
    raw, photo = await read_body(request)
    payload = validate_body(RegisterRequest, raw)

    _, auth_data = auth_service.register(db, payload, photo)
    return envelope("User registered successfully", auth_data)


@router.post(
    "/login",
    response_model=ApiResponse[AuthData],
    dependencies=[Depends(limit_auth_attempts)]
)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db)
):
    _, auth_data = auth_service.login(db, payload.email, payload.password)
    return envelope("Login successful", auth_data)


@router.get("/profile", response_model=ApiResponse[UserResponse])
def get_profile(current_user: User = Depends(get_current_user)):
    return envelope("Profile retrieved successfully", UserResponse.model_validate(current_user))


@router.put("/profile", response_model=ApiResponse[UserResponse])
async def update_profile(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update name and/or email; a multipart request may also carry a new ``photo``."""
    raw, photo = await read_body(request)
    payload = validate_body(UpdateProfileRequest, raw)
    if photo is not None:
        photo_service.check_photo(photo.filename, photo.content_type, len(photo.content))

    user = auth_service.update_profile(db, current_user, payload)
    if photo is not None:
        user = auth_service.replace_photo(db, user, photo.content, photo.filename, photo.content_type)
    return envelope("Profile updated successfully", UserResponse.model_validate(user))


@router.put("/profile/photo", response_model=ApiResponse[UserResponse])
async def update_profile_photo(
    photo: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Replace the profile photo (JPG or PNG)."""
    content = await photo.read()
    user = auth_service.replace_photo(db, current_user, content, photo.filename, photo.content_type)
    return envelope("Profile photo updated successfully", UserResponse.model_validate(user))


@router.put("/change-password", response_model=ApiResponse[None])
def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    auth_service.change_password(db, current_user, payload)
    return envelope("Password changed successfully")


@router.post("/logout", response_model=ApiResponse[None])
def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    return envelope("Logged out successfully")


@router.delete("/account", response_model=ApiResponse[None])
def delete_account(
    payload: DeleteAccountRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    auth_service.delete_account(db, current_user, payload.password)
    return envelope("Account deleted successfully")


@router.get("/verify", response_model=ApiResponse[VerifyData])
def verify(
    request: Request,
    current_user: User = Depends(get_current_user)
):
    claims = request.state.claims
    return envelope("Token is valid", VerifyData(
        user=UserResponse.model_validate(current_user),
        token_expires=claims.expires_at,
    ))
