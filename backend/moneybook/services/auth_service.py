"""Registration, login and account management."""

import logging
from typing import NamedTuple, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moneybook.config import settings
from moneybook.exceptions import ConflictError, UnauthorizedError
from moneybook.models import Category, Transaction, User
from moneybook.schemas.auth import (
    AuthData,
    ChangePasswordRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from moneybook.security import hash_password, verify_password
from moneybook.services import photo_service
from moneybook.services.token_service import issue_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class PhotoUpload(NamedTuple):
    content: bytes
    filename: Optional[str]
    content_type: Optional[str]


def email_exists(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(User.id).filter(User.email == email.strip().lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def build_auth_data(user: User) -> AuthData:
    token, claims = issue_token(user)
    return AuthData(
        user=UserResponse.model_validate(user),
        token=token,
        expires_in=settings.jwt_expires_minutes * 60,
        expires_at=claims.expires_at,
    )


def register(db: Session, payload: RegisterRequest, photo: Optional[PhotoUpload] = None) -> Tuple[User, AuthData]:
    """Create the user; an optional photo is written first and removed again if the insert fails."""
    if email_exists(db, payload.email):
        raise ConflictError("Email already registered")

    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
    )
    photo_filename = None
    if photo is not None:
        photo_filename, user.photo_url = photo_service.save_photo(
            photo.content, photo.filename, photo.content_type
        )
        user.photo_filename = photo_filename

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        photo_service.delete_photo(photo_filename)
        raise ConflictError("Email already registered")
    except Exception:
        db.rollback()
        photo_service.delete_photo(photo_filename)
        raise
    db.refresh(user)

    logger.info(f"Registered user {user.id}")
    return user, build_auth_data(user)


def login(db: Session, email: str, password: str) -> Tuple[User, AuthData]:
    """Both an unknown email and a wrong password give the same answer."""
    user = db.query(User).filter(User.email == email.strip().lower()).first()

    if not user or not verify_password(password, user.password):
        logger.info("Failed login attempt")
        raise UnauthorizedError(INVALID_CREDENTIALS)

    return user, build_auth_data(user)


def update_profile(db: Session, user: User, payload: UpdateProfileRequest) -> User:
    if payload.email and payload.email != user.email:
        if email_exists(db, payload.email, exclude_id=user.id):
            raise ConflictError("Email already taken by another user")
        user.email = payload.email

    if payload.name:
        user.name = payload.name

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email already taken by another user")
    db.refresh(user)
    return user


def replace_photo(db: Session, user: User, content: bytes, filename: Optional[str],
                  content_type: Optional[str]) -> User:
    """
    Store a new profile photo and point the user at it.

    The previous file is removed only after the new reference is committed,
    so a failure part way never leaves the user without a photo.
    """
    new_filename, new_url = photo_service.save_photo(content, filename, content_type)
    old_filename = user.photo_filename

    user.photo_filename = new_filename
    user.photo_url = new_url
    try:
        db.commit()
    except Exception:
        db.rollback()
        photo_service.delete_photo(new_filename)
        raise
    db.refresh(user)

    if old_filename and old_filename != new_filename:
        photo_service.delete_photo(old_filename)
    return user


def change_password(db: Session, user: User, payload: ChangePasswordRequest) -> None:
    if not verify_password(payload.current_password, user.password):
        raise UnauthorizedError("Current password is incorrect")

    user.password = hash_password(payload.new_password)
    db.commit()
    logger.info(f"User {user.id} changed password")


def delete_account(db: Session, user: User, password: str) -> None:
    """Hard delete after re-checking the password; a valid session alone is not enough."""
    if not verify_password(password, user.password):
        raise UnauthorizedError("Password is incorrect")

    user_id = user.id
    photo_filename = user.photo_filename

    # Transactions reference categories, so they go first
    db.query(Transaction).filter(Transaction.user_id == user_id).delete(synchronize_session=False)
    db.query(Category).filter(Category.user_id == user_id).delete(synchronize_session=False)
    db.delete(user)
    db.commit()

    photo_service.delete_photo(photo_filename)
    logger.info(f"Deleted account {user_id}")
