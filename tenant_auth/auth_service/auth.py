import logging
import os
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TTL_DAYS = 7

# PBKDF2 parameters match the stored user records: the hex salt string itself
# is the KDF salt, and the derived key is stored hex encoded.
PBKDF2_DIGEST = "sha512"
PBKDF2_ROUNDS = 1000
PBKDF2_KEYLEN = 64
SALT_BYTES = 16


def _derive(password: str, salt: str) -> str:
    return pbkdf2_hmac(PBKDF2_DIGEST, password, salt, PBKDF2_ROUNDS, PBKDF2_KEYLEN).hex()


def set_password(password: str) -> tuple[str, str]:
    """Return a fresh ``(salt, hash)`` pair for ``password``."""
    salt = secrets.token_hex(SALT_BYTES)
    return salt, _derive(password, salt)


def verify_password(plain_password: str, salt: str, hashed_password: str) -> bool:
    if not salt or not hashed_password:
        return False
    return consteq(_derive(plain_password, salt), hashed_password)


async def set_password_async(password: str) -> tuple[str, str]:
    return await run_in_threadpool(set_password, password)


async def verify_password_async(plain_password: str, salt: str, hashed_password: str) -> bool:
    return await run_in_threadpool(verify_password, plain_password, salt, hashed_password)


def load_signing_key(settings: Settings) -> str:
    """
    Resolve the JWT signing secret.

    A mounted secret file wins over the JWT_SECRET environment variable. When
    neither is available the key is empty; startup continues, but issuing a
    token then raises ConfigurationError.
    """
    path = settings.JWT_SECRET_FILE
    if path and os.path.isfile(path):
        try:
            with open(path, encoding="utf-8") as fh:
                secret = fh.read().strip()
        except OSError as e:
            logger.warning("Could not read JWT secret file %s: %s", path, e)
        else:
            if secret:
                logger.info("JWT signing key loaded from %s", path)
                return secret

    if settings.JWT_SECRET:
        return settings.JWT_SECRET

    logger.warning(
        "No JWT signing key configured (JWT_SECRET_FILE=%s, JWT_SECRET unset); "
        "registration and login fail until one is set",
        path,
    )
    return ""


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    email: str
    name: str
    role: str
    external_id: str
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None

    def identity(self) -> tuple:
        return (self.subject, self.email, self.name, self.role, self.external_id)


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of a token check: either ``claims`` or an ``error`` reason."""
    claims: Optional[TokenClaims] = None
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.claims is not None


class TokenIssuer:
    """Mints and checks HS256 session tokens with one process-wide key."""

    def __init__(
        self,
        secret: str,
        algorithm: str = ALGORITHM,
        ttl: timedelta = timedelta(days=TOKEN_TTL_DAYS),
        clock: Callable[[], datetime] = None,
    ):
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            load_signing_key(settings),
            algorithm=settings.JWT_ALGORITHM,
            ttl=timedelta(days=settings.TOKEN_TTL_DAYS),
        )

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def ensure_configured(self) -> None:
        if not self._secret:
            raise ConfigurationError("Token signing key is not configured.")

    def issue(self, claims: TokenClaims) -> str:
        self.ensure_configured()
        issued = self._clock()
        expire = issued + self._ttl
        payload = {
            "sub": claims.subject,
            "email": claims.email,
            "name": claims.name,
            "role": claims.role,
            "externalId": claims.external_id,
            "iat": int(issued.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenVerification:
        if not self._secret:
            return TokenVerification(error="unconfigured")
        try:
            data = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            return TokenVerification(error="expired")
        except jwt.InvalidSignatureError:
            return TokenVerification(error="bad_signature")
        except jwt.PyJWTError as e:
            logger.debug("Rejected malformed token: %s", e)
            return TokenVerification(error="malformed")

        return TokenVerification(
            claims=TokenClaims(
                subject=data["sub"],
                email=data.get("email"),
                name=data.get("name"),
                role=data.get("role"),
                external_id=data.get("externalId"),
                issued_at=data.get("iat"),
                expires_at=data["exp"],
            )
        )
