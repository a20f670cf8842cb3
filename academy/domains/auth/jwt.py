# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

Access tokens are created at login and registration and carry the user id,
role and email so that request handling does not need a database lookup.

Example:
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user_id=7, role="Student", email="a@b.c")
    >>> jwt_manager.decode_token(token).sub
    '7'
"""

import logging
import secrets
from datetime import timedelta

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from academy.core.config.settings import JWTSettings
from academy.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (user id as string).
        role: User role (Student, Teacher or Admin).
        email: User email at issue time.
        name: User display name at issue time.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT id.
    """

    sub: str
    role: str
    email: str
    name: str = ""
    exp: int
    iat: int
    jti: str

    @property
    def user_id(self) -> int:
        return int(self.sub)


class JWTError(Exception):
    """Base exception for JWT operations."""


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""


class JWTManager:
    """JWT token creation and validation.

    Args:
        settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    @property
    def expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return self._settings.access_token_expire_minutes * 60

    def create_access_token(
        self,
        user_id: int,
        role: str,
        email: str,
        name: str = "",
    ) -> str:
        """Create a signed access token.

        Args:
            user_id: User id.
            role: User role.
            email: User email.
            name: User display name.

        Returns:
            JWT access token string.
        """
        now = utc_now()
        exp = now + timedelta(minutes=self._settings.access_token_expire_minutes)
        payload = {
            "sub": str(user_id),
            "role": role,
            "email": email,
            "name": name,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate a token.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature or claims are invalid.
        """
        try:
            claims = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JoseJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        try:
            return TokenPayload(**claims)
        except ValidationError as e:
            logger.debug("Token claims rejected: %s", e)
            raise InvalidTokenError("Token claims are incomplete") from e
