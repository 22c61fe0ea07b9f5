"""Security related functions."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
from fastapi import HTTPException, status
from jwt import InvalidTokenError

from app.core.config import settings


class SessionAuthenticator:
    """
    Issues and verifies session JSON Web Tokens.

    Session tokens identify an authenticated platform user (recruiter or
    employee). The ``sub`` claim carries the user id and ``role`` the user's
    role. Referees never hold a session token; they reach a chat with the
    capability token from their invitation link instead.

    :ivar secret_key: The secret key used to sign and verify JWT tokens.
    :type secret_key: str
    :ivar algorithm: The JWT signing algorithm.
    :type algorithm: str
    """

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None):
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm

    def create_access_token(
        self,
        user_id: UUID | str,
        role: str,
        email: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a signed session token for a user."""
        expire = datetime.now(UTC) + (
            expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        )
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "role": role,
            "exp": expire,
        }
        if email:
            payload["email"] = email
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> dict:
        """
        Verifies a session token's signature and expiry and returns its payload.
        If the token is invalid, it raises an HTTPException with proper status
        code and error detail.

        :param token: The JWT token to be verified.
        :return: A dictionary containing the decoded payload of the token if validation succeeds.
        """
        try:
            return jwt.decode(
                token,
                key=self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid authentication token: {str(e)}",
            ) from e
