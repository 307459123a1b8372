"""
Bearer-token authentication.

Passwords are stored as pbkdf2_sha256 hashes; tokens are HS256 JWTs whose
``sub`` claim is the username.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..config import settings
from ..dependencies import get_db
from ..domain.models import User
from ..infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def issue_token(user: User, expires_minutes: Optional[int] = None) -> Tuple[str, int]:
    """Returns (token, lifetime in seconds)."""
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    claims = {
        "sub": user.username,
        "admin": bool(user.is_admin),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM), minutes * 60


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def username_from_token(token: str) -> str:
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.PyJWTError:
        raise _unauthorized("Invalid token")
    if not claims.get("sub"):
        raise _unauthorized("Invalid token")
    return claims["sub"]


def _bootstrap_admin(uow: UnitOfWork, username: str, password: str) -> Optional[User]:
    # Only outside production, and only with the configured credentials
    if settings.is_production or username != settings.admin_user or password != settings.admin_pass:
        return None
    user = uow.users.add(User(username=username, password_hash=hash_password(password), is_admin=True))
    uow.commit()
    logger.info(f"Bootstrapped admin user '{username}'")
    return user


def authenticate(uow: UnitOfWork, username: str, password: str) -> Optional[User]:
    """The matching user, or None. Unknown users and wrong passwords look the same."""
    user = uow.users.by_username(username)
    if user is None:
        return _bootstrap_admin(uow, username, password)
    if not verify_password(password, user.password_hash):
        logger.warning(f"Failed login for '{username}'")
        return None
    return user


def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    user = UnitOfWork(db).users.by_username(username_from_token(token))
    if user is None:
        raise _unauthorized("User not found")
    return user
