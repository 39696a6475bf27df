import jwt
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Iterable

from club_manager.core.config import (
    JWT_ALGORITHM,
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    JWT_SECRET_KEY,
)
from club_manager.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access_token"


class JWTManager:
    def __init__(
        self,
        secret_key: str = JWT_SECRET_KEY,
        algorithm: str = JWT_ALGORITHM,
        expire_minutes: int = JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_expire_minutes = expire_minutes

    def create_access_token(
        self,
        user_id: uuid.UUID,
        roles: Iterable[str] = (),
        extra_data: Dict[str, Any] = None,
    ) -> str:
        """
        Create a signed access token.

        The role claims are informational only: authorization always reloads
        the account from storage.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "roles": sorted(roles),
            "exp": now + timedelta(minutes=self.access_token_expire_minutes),
            "iat": now,
            "type": ACCESS_TOKEN_TYPE,
        }
        if extra_data:
            payload.update(extra_data)

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"JWT token created for user {user_id}")
        return token

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and verify an access token.

        Raises:
            AuthenticationError: expired, malformed or wrong token type
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token has expired")
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            logger.warning("Invalid JWT token provided")
            raise AuthenticationError("Invalid token")

        if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
            raise AuthenticationError("Invalid token type")

        return payload

    def subject(self, token: str) -> uuid.UUID:
        payload = self.decode_token(token)
        try:
            return uuid.UUID(payload["sub"])
        except ValueError:
            raise AuthenticationError("Invalid token subject")


jwt_manager = JWTManager()
