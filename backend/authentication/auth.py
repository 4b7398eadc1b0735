from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBearer,
    OAuth2PasswordBearer,
)
from sqlalchemy.orm import Session, selectinload

import repositories.db_models as db_models
from models.config import settings
from models.exceptions import AuthenticationException, InactiveUserException
from repositories.database import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")
optional_bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token_subject(token: str) -> str | None:
    """
    Return the `sub` claim of a valid token.

    Raises:
        jwt.exceptions.InvalidTokenError: If the token is invalid or expired.
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    subject = payload.get("sub")
    return str(subject) if subject is not None else None


def get_user_by_email(db: Session, email: str) -> db_models.User | None:
    return (
        db.query(db_models.User)
        .options(selectinload(db_models.User.role_rows))
        .filter(db_models.User.email == email)
        .first()
    )


def authenticate_user(db: Session, email: str, password: str) -> db_models.User | None:
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> db_models.User:
    """
    Get the current authenticated user from the JWT token.

    Raises:
        AuthenticationException: If credentials are invalid or user not found.
    """
    try:
        email = decode_token_subject(token)
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")

    if email is None:
        raise AuthenticationException("Could not validate credentials")

    user = get_user_by_email(db, email)
    if user is None:
        raise AuthenticationException("Could not validate credentials")
    return user


async def get_current_active_user(
    current_user: db_models.User = Depends(get_current_user),
) -> db_models.User:
    """
    Get the current user and verify the account is not banned.

    Raises:
        InactiveUserException: If the account has been deactivated by an admin.
    """
    if not current_user.is_active:
        raise InactiveUserException("Account has been suspended")
    return current_user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(
        optional_bearer_scheme
    ),
    db: Session = Depends(get_db),
) -> Optional[db_models.User]:
    """
    Get current user if authenticated, otherwise return None.

    An expired token raises so the client knows to log in again; a malformed
    token is treated as anonymous.
    """
    if credentials is None:
        return None

    try:
        email = decode_token_subject(credentials.credentials)
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        return None

    if email is None:
        return None
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    return user
