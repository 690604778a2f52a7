from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Protocol

from jose import JWTError, jwt
from passlib.context import CryptContext

from .errors import Forbidden, NotFound, Unauthenticated
from .store import utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a hash this context knows
        return False


class IdentityProvider(Protocol):
    async def verify_id_token(self, token: str) -> Dict[str, Any]: ...


class ClaimsRegistry(Protocol):
    async def get_user(self, email: str) -> Dict[str, Any]: ...

    async def get_user_claims(self, email: str) -> Dict[str, Any]: ...

    async def set_user_claims(self, email: str, claims: Dict[str, Any]) -> None: ...

    async def set_user_password(self, email: str, password_hash: str) -> None: ...


class JWTIdentityProvider:
    """
    Signs and verifies identity tokens. Custom claims (such as ``admin``)
    are stored per account and copied into every token minted afterwards,
    so a user has to fetch a new token before a claim change takes effect.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
        registry: Optional[ClaimsRegistry] = None,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        self.registry = registry

    def create_token(
        self, subject: str, claims: Optional[Dict[str, Any]] = None, expires_delta: Optional[timedelta] = None
    ) -> str:
        to_encode = dict(claims or {})
        expire = utcnow() + (expires_delta or timedelta(minutes=self.expire_minutes))
        to_encode.update({"sub": subject, "email": subject, "exp": expire})
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    async def verify_id_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise Unauthenticated("Unauthorized: Invalid token") from e

    async def issue_token(self, email: str) -> str:
        claims = await self._registry().get_user_claims(email)
        return self.create_token(email, claims)

    async def set_custom_claims(self, email: str, claims: Dict[str, Any]) -> None:
        await self._registry().set_user_claims(email, claims)
        logger.info("Custom claims for %s set to %s", email, claims)

    async def set_password(self, email: str, password: str) -> None:
        await self._registry().set_user_password(email, hash_password(password))
        logger.info("Password set for %s", email)

    async def authenticate(self, email: str, password: str) -> str:
        """Check an email/password pair and mint a token with the account's claims."""
        if self.registry is None:
            raise Unauthenticated("Sign-in is not available")
        try:
            user = await self.registry.get_user(email)
        except NotFound:
            user = None
        if user is None or not verify_password(password, user.get("passwordHash")):
            logger.warning("Failed sign-in for %s", email)
            raise Unauthenticated("Invalid email or password")
        logger.info("Signed in %s", email)
        return self.create_token(email, dict(user.get("claims") or {}))

    def _registry(self) -> ClaimsRegistry:
        if self.registry is None:
            raise NotFound("No account registry configured")
        return self.registry


def extract_bearer(authorization: Optional[str]) -> str:
    if not authorization:
        raise Unauthenticated()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated()
    return token.strip()


class AuthGate:
    """Single-shot admin check: bearer token -> verified identity with admin claim."""

    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    async def authorize(self, authorization: Optional[str]) -> Dict[str, Any]:
        token = extract_bearer(authorization)
        try:
            identity = await self.provider.verify_id_token(token)
        except Unauthenticated:
            raise
        except Exception as e:
            # Provider outage or malformed response
            logger.warning("Identity provider error: %s", e)
            raise Unauthenticated("Unauthorized: Invalid token") from e

        if not identity.get("admin"):
            logger.warning("Rejected non-admin identity %s", identity.get("sub"))
            raise Forbidden()
        return identity
