# app/core/dependencies.py
import logging
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import SessionAuthenticator
from app.database import get_db
from app.domains.chat.access import AccessCredential
from app.domains.user.service import UserService
from app.exceptions.chat import AuthenticationMissingError, ChatAccessDeniedError
from models import User, UserRole

logger = logging.getLogger(__name__)

# auto_error=False so chat endpoints can fall back to a referee token
security = HTTPBearer(auto_error=False)
auth = SessionAuthenticator()

REFEREE_TOKEN_HEADER = "X-Referee-Token"


async def validate_token(
    token: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Validate and decode the session JWT.

    Returns:
        dict: Decoded token payload

    Raises:
        AuthenticationMissingError: If no bearer token was sent
        HTTPException: If token is invalid or expired
    """
    if not token or not token.credentials:
        raise AuthenticationMissingError()
    return auth.verify_token(token.credentials)


async def _load_user(request: Request, payload: dict, db: AsyncSession) -> User:
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload - malformed user ID",
        ) from e

    user = await UserService(db).get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    # Add user info to request state for logging
    request.state.user_id = user.id
    return user


async def get_current_user(
    request: Request,
    payload: dict = Depends(validate_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user from JWT payload.

    Returns:
        User: Current authenticated user

    Raises:
        HTTPException: If user not found or inactive
    """
    return await _load_user(request, payload, db)


async def get_current_recruiter(user: User = Depends(get_current_user)) -> User:
    """Require the authenticated user to be a recruiter."""
    if user.role != UserRole.RECRUITER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Recruiter access required")
    return user


async def get_chat_credential(
    request: Request,
    token: str | None = Query(None, description="Referee access token from the invitation link"),
    referee_token: str | None = Header(None, alias=REFEREE_TOKEN_HEADER),
    bearer: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AccessCredential:
    """Work out who is calling a chat endpoint.

    A referee token, from the query string or the ``X-Referee-Token``
    header, takes precedence over a bearer session. Only recruiter sessions
    can reach a chat; any other session is treated as a failed lookup.
    """
    presented = (token or referee_token or "").strip()
    if presented:
        return AccessCredential.referee(presented)

    if not bearer or not bearer.credentials:
        raise AuthenticationMissingError()

    user = await _load_user(request, auth.verify_token(bearer.credentials), db)
    if user.role != UserRole.RECRUITER:
        logger.warning("Chat access denied: user %s is not a recruiter", user.id)
        raise ChatAccessDeniedError()
    return AccessCredential.recruiter(user.id)
