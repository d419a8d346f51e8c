from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from app.core.config import settings
from app.database import get_db
from app import crud, models
import logging
import uuid

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_from_token(db: Session, token: str) -> Optional[models.User]:
    """resolve an access token to an active user, None for anything invalid"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("token_type") != "access":
        return None

    username: Optional[str] = payload.get("sub")
    if username is None:
        return None

    user = crud.get_user_by_username(db, username=username)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    user = get_user_from_token(db, credentials.credentials)
    if user is None:
        raise credentials_exception
    return user


def get_current_active_superuser(
    current_user: models.User = Depends(get_current_user),
) -> models.User:
    if not current_user.is_superuser:
        raise HTTPException(status_code=403, detail="The user doesn't have enough privileges")
    return current_user


def create_access_token(data: dict) -> Tuple[str, str, datetime]:
    """create access token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    jti = str(uuid.uuid4())
    to_encode.update({"exp": expire, "token_type": "access", "jti": jti})
    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, jti, expire


def audit_log(message: str):
    logger.info(f"[AUDIT] {datetime.now(timezone.utc).isoformat()} - {message}")
