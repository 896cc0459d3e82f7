"""
WriterID Portal Backend — Authentication Service
=================================================

What:  Account registration, password login and bearer token handling for
       the internal API.
How:   Passwords are hashed with bcrypt. Tokens are HS256 JWTs (PyJWT)
       carrying sub (user id), email, iat, exp, iss and aud; decoding
       requires exp and sub and checks issuer and audience.

The executor callback API does not use this; it authenticates with the
static X-API-Key header (see dependencies.require_api_key).
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
import jwt

from writerid_portal.config import settings
from writerid_portal.exceptions import AuthenticationError, ConflictError
from writerid_portal.models import User
from writerid_portal.repository import UnitOfWork
from writerid_portal.schemas.auth import RegisterRequest, TokenResponse, UserResponse

logger = logging.getLogger(__name__)


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password
        return False


class AuthService:

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
        expire_hours: Optional[int] = None,
    ):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.issuer = issuer or settings.jwt_issuer
        self.audience = audience or settings.jwt_audience
        self.ttl = timedelta(hours=expire_hours or settings.jwt_expire_hours)

    # ── Tokens ────────────────────────────────────────────────────────────

    def create_access_token(self, user: User) -> Tuple[str, datetime]:
        now = datetime.now(timezone.utc)
        expires_at = now + self.ttl
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "iss": self.issuer,
            "aud": self.audience,
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return token, expires_at

    def decode_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Invalid authentication token") from e

    def user_id_from_token(self, token: str) -> uuid.UUID:
        payload = self.decode_token(token)
        try:
            return uuid.UUID(str(payload["sub"]))
        except ValueError as e:
            raise AuthenticationError("Invalid authentication token") from e

    # ── Accounts ──────────────────────────────────────────────────────────

    async def register(self, uow: UnitOfWork, data: RegisterRequest) -> UserResponse:
        email = data.email.lower()
        existing = await uow.users.first_or_default(User.email == email, include_inactive=True)
        if existing is not None:
            raise ConflictError(
                "An account with this email already exists",
                context={"field": "email"},
            )

        user = User(
            email=email,
            first_name=data.first_name,
            last_name=data.last_name,
            password_hash=hash_password(data.password),
        )
        await uow.users.add(user)
        await uow.commit()
        logger.info("Registered user %s", user.id)
        return UserResponse.model_validate(user)

    async def login(self, uow: UnitOfWork, email: str, password: str) -> TokenResponse:
        user = await uow.users.first_or_default(User.email == email.lower())
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt for %s", email)
            raise AuthenticationError("Invalid email or password")

        token, expires_at = self.create_access_token(user)
        logger.info("User %s logged in", user.id)
        return TokenResponse(
            token=token,
            expiration=expires_at,
            user=UserResponse.model_validate(user),
        )

    async def get_user(self, uow: UnitOfWork, user_id: uuid.UUID) -> User:
        """Resolves the token subject to an active user."""
        user = await uow.users.get_by_id(user_id)
        if user is None:
            raise AuthenticationError("User account is no longer active")
        return user
