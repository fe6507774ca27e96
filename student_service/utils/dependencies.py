import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from student_service.config import settings
from student_service.database import get_store
from student_service.models.schemas import Identity, UserRole

logger = logging.getLogger(__name__)

# Tokens are issued by the external identity provider
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.IDENTITY_TOKEN_URL)


def decode_identity(token: str) -> Identity:
    """Verify a bearer token and build the caller identity from its claims"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected token: {e}")
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    try:
        role = UserRole(payload.get("role", UserRole.STUDENT.value))
    except ValueError:
        raise credentials_exception

    return Identity(
        id=str(user_id),
        name=payload.get("name"),
        email=payload.get("email"),
        role=role,
    )


async def get_current_user(token: str = Depends(oauth2_scheme)) -> Identity:
    """Dependency to get current user from JWT token"""
    return decode_identity(token)


async def get_current_student(current_user: Identity = Depends(get_current_user)) -> Identity:
    """Dependency to check if user is a student"""
    if current_user.role != UserRole.STUDENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only students can access this resource"
        )
    return current_user


def get_document_store():
    return get_store()
