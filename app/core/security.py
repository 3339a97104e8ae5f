"""Security related functions."""

import jwt
from fastapi import HTTPException, status
from jwt import InvalidTokenError

from app.core.config import Settings, settings


class TokenAuthenticator:
    """
    Verifies bearer tokens issued by the hosted authentication provider.

    Tokens are HS256-signed JWTs whose ``sub`` claim identifies the user and
    whose ``aud`` claim names the audience configured in settings.

    :ivar secret_key: The secret used to verify token signatures.
    :type secret_key: str
    :ivar algorithm: The JWT signing algorithm.
    :type algorithm: str
    """

    def __init__(self, config: Settings | None = None):
        config = config or settings
        self.secret_key = config.jwt_secret
        self.algorithm = config.algorithm
        self.audience = config.jwt_audience
        self.verify_expiry = config.verify_token_expiry

    async def verify_token(self, token: str) -> dict:
        """
        Verify and decode a bearer token.

        :param token: The JWT token to be verified.
        :return: The decoded token payload.
        :raises HTTPException: 401 when the token is invalid or auth is not configured.
        """
        if not self.secret_key:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication is not configured",
            )

        try:
            return jwt.decode(
                token,
                key=self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={
                    "verify_aud": bool(self.audience),
                    "verify_exp": self.verify_expiry,
                    "require": ["sub"],
                },
            )
        except InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid authentication token: {str(e)}",
            ) from e
