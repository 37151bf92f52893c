"""Bearer token verification and the admin guard."""
import logging
from dataclasses import dataclass
from typing import Optional
import jwt
from motor.motor_asyncio import AsyncIOMotorDatabase

from database.repositories.admin_repo import AdminRepository
from shared.config import settings
from shared.exceptions import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminPrincipal:
    """A verified admin, identified by email."""
    email: str


class TokenVerifier:
    """Decodes identity tokens and returns the principal's email."""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None
    ):
        self.secret = secret or settings.auth_jwt_secret
        self.algorithm = algorithm or settings.auth_jwt_algorithm
        self.audience = audience if audience is not None else settings.auth_jwt_audience

    def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None}
            )
        except jwt.PyJWTError as e:
            logger.warning(f"Token verification failed: {e}")
            raise UnauthorizedError("Unauthorized: Invalid token") from e

        email = payload.get("email")
        if not email:
            raise UnauthorizedError("Unauthorized: Token has no email")
        return email


async def authorize_admin(
    token: Optional[str],
    verifier: TokenVerifier,
    db: AsyncIOMotorDatabase
) -> AdminPrincipal:
    """Verify a bearer token and check the admin registry."""
    if not token:
        raise UnauthorizedError("Unauthorized: Missing token")

    email = verifier.verify(token)
    if not await AdminRepository(db).is_admin(email):
        logger.warning(f"Access denied for {email}: Not in admins collection")
        raise ForbiddenError()
    return AdminPrincipal(email=email)
