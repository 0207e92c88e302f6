"""
Registration, login and token checks on top of the tenant stores.
"""
import logging
from typing import List, Optional

from passlib.utils import consteq
from starlette.requests import Request

from .auth import TokenClaims, TokenIssuer, set_password_async, verify_password_async
from .db import TenantRegistry
from .errors import (
    AuthenticationError,
    AuthorizationError,
    AuthServiceError,
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    TokenInvalidError,
    ValidationError,
)
from .models import ROLES, User, new_internal_id
from .repository import UserRepository
from .schemas import UserCreate
from .utils.event_logger import log_auth_event

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _check_text(*values: Optional[str]) -> None:
    # JSON allows lone surrogate escapes that cannot be encoded or stored.
    for value in values:
        if value is None:
            continue
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValidationError("Invalid request body.") from e


def claims_for(user: User) -> TokenClaims:
    return TokenClaims(
        subject=user.internal_id,
        email=user.email,
        name=user.name,
        role=user.role,
        external_id=user.external_id,
    )


class AuthService:
    def __init__(self, registry: TenantRegistry, tokens: TokenIssuer, admin_key: Optional[str] = None):
        self.registry = registry
        self.tokens = tokens
        self._admin_key = admin_key

    async def repository(self, tenant_id) -> UserRepository:
        store = await self.registry.resolve(tenant_id)
        return UserRepository(store)

    def check_admin_key(self, supplied: Optional[str]) -> None:
        # Admin accounts cannot be created until ADMIN_KEY is configured.
        if not self._admin_key or supplied is None:
            raise AuthorizationError("Invalid admin key.")
        if not consteq(supplied.encode("utf-8"), self._admin_key.encode("utf-8")):
            raise AuthorizationError("Invalid admin key.")

    async def register(self, tenant_id, payload: UserCreate, request: Request = None) -> str:
        try:
            user = await self._register(tenant_id, payload)
        except AuthServiceError as e:
            log_auth_event("register_failure", tenant_id, request, email=payload.email, reason=e.message)
            raise

        log_auth_event("register_success", tenant_id, request, user_id=user.internal_id, email=user.email)
        return self.tokens.issue(claims_for(user))

    async def _register(self, tenant_id, payload: UserCreate) -> User:
        if _blank(payload.name) or _blank(payload.email) or not payload.password or _blank(payload.role):
            raise ValidationError("All fields required.")
        _check_text(payload.name, payload.email, payload.password, payload.role,
                    payload.admin_key, payload.external_id)
        role = payload.role.strip()
        if role not in ROLES:
            raise ValidationError("Invalid role.")
        if role == "admin":
            self.check_admin_key(payload.admin_key)
        # Fail before anything is written if no token could be issued.
        self.tokens.ensure_configured()

        users = await self.repository(tenant_id)
        email = payload.email.strip()

        # Advisory only; the unique index on email is what actually holds.
        if await users.find_by_email(email) is not None:
            raise ConflictError("Email already registered.")

        internal_id = new_internal_id()
        external_id = internal_id if _blank(payload.external_id) else payload.external_id.strip()
        salt, password_hash = await set_password_async(payload.password)

        user = User(
            internal_id=internal_id,
            external_id=external_id,
            email=email,
            name=payload.name.strip(),
            role=role,
            password_salt=salt,
            password_hash=password_hash,
        )
        try:
            return await users.create(user)
        except DuplicateKeyError as e:
            raise ConflictError("Email or external id already registered.") from e

    async def login(self, tenant_id, email: Optional[str], password: Optional[str],
                    request: Request = None) -> str:
        try:
            user = await self._login(tenant_id, email, password)
            token = self.tokens.issue(claims_for(user))
        except AuthServiceError as e:
            log_auth_event("login_failure", tenant_id, request, email=email, reason=e.message)
            raise

        log_auth_event("login_success", tenant_id, request, user_id=user.internal_id, email=user.email)
        return token

    async def _login(self, tenant_id, email: Optional[str], password: Optional[str]) -> User:
        if _blank(email) or not password:
            raise ValidationError("All fields required.")
        _check_text(email, password)
        self.tokens.ensure_configured()

        users = await self.repository(tenant_id)
        user = await users.find_by_email(email.strip())
        if user is None:
            raise AuthenticationError("Incorrect username.")

        if not await verify_password_async(password, user.password_salt, user.password_hash):
            raise AuthenticationError("Incorrect password.")
        return user

    def verify_token(self, token: Optional[str]) -> TokenClaims:
        """Return the claims of a valid token; expiry and tampering look the same."""
        if _blank(token):
            raise ValidationError("Token is required.")
        result = self.tokens.verify(token.strip())
        if not result.valid:
            logger.info("Token rejected: %s", result.error)
            raise TokenInvalidError("Invalid token.")
        return result.claims

    async def get_user_name(self, tenant_id, user_id: Optional[str]) -> str:
        if _blank(user_id):
            raise ValidationError("User ID required.")
        users = await self.repository(tenant_id)
        user = await users.find_by_external_id(user_id.strip())
        if user is None:
            raise NotFoundError("User not found.")
        return user.name

    async def list_external_ids(self, tenant_id) -> List[str]:
        users = await self.repository(tenant_id)
        return await users.list_external_ids()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service
