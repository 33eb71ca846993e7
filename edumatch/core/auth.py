"""
Authentication Utility - JWT verification.

Tokens are issued by the external auth provider; this service only
verifies them. Claims used:
- sub:  opaque identity of the signed-in user
- role: 'student' or 'college'

Provides:
- JWT token creation/verification
- FastAPI dependencies that map the identity to a profile document
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from edumatch.core.config import get_settings
from edumatch.core.exceptions import NotFoundError
from edumatch.schemas.schemas import UserRole
from edumatch.services.document_store import DocumentStore, get_document_store
from edumatch.services.profile_service import CollegeService, StudentService

settings = get_settings()

# Bearer token extractor
bearer_scheme = HTTPBearer()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token (used by tooling and tests)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    FastAPI dependency - Get current authenticated identity.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    profile_id = payload.get("sub")
    if not profile_id:
        raise credentials_exception

    return {"profile_id": profile_id, "role": payload.get("role")}


async def get_current_student(
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store)
) -> dict:
    """Dependency - Require student role and get student_id."""
    if user["role"] != UserRole.student.value:
        raise HTTPException(status_code=403, detail="Students only")

    try:
        user["student_id"] = StudentService(store).resolve_student_id(user["profile_id"])
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return user


async def get_current_college(
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store)
) -> dict:
    """Dependency - Require college role and get college_id."""
    if user["role"] != UserRole.college.value:
        raise HTTPException(status_code=403, detail="Colleges only")

    try:
        user["college_id"] = CollegeService(store).resolve_college_id(user["profile_id"])
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return user
