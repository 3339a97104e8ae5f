# app/core/dependencies.py
"""FastAPI dependencies shared by the domain routers."""

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import TokenAuthenticator
from app.database import get_db
from app.domains.journal.summarizer import CompletionClient
from app.domains.user.service import UserService
from app.exceptions.ai import AIConfigurationError
from models import User

logger = logging.getLogger(__name__)

security = HTTPBearer()
auth = TokenAuthenticator()

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


async def validate_token(token: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Decode the bearer token issued by the auth provider.

    Returns:
        dict: Verified token claims

    Raises:
        HTTPException: 401 when the token is missing, invalid or expired
    """
    if not token or not token.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is required",
            headers=BEARER_CHALLENGE,
        )

    try:
        return await auth.verify_token(token.credentials)
    except HTTPException as e:
        e.headers = e.headers or BEARER_CHALLENGE
        raise
    except Exception as e:
        logger.error("Token validation error: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers=BEARER_CHALLENGE,
        ) from e


async def get_current_user(
    request: Request,
    payload: dict = Depends(validate_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the token subject to a local user, creating it on first sight.

    Raises:
        HTTPException: 401 without a subject, 403 for a deactivated account
    """
    auth_user_id = payload.get("sub")
    if not auth_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload - missing user ID",
        )

    try:
        user = await UserService(db).get_or_create_user(auth_user_id, payload)
    except Exception as e:
        logger.error("User authentication error: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication service error",
        ) from e

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    request.state.user_id = user.id
    request.state.auth_user_id = auth_user_id
    return user


def get_completion_client(request: Request) -> CompletionClient:
    """Text-generation client built by the application lifespan."""
    client = getattr(request.app.state, "completion_client", None)
    if client is None:
        raise AIConfigurationError("AI service not configured")
    return client
