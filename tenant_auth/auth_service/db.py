"""
Tenant store resolution.

Each tenant identifier maps to its own logical database, named by
``TENANT_DATABASE_URL_TEMPLATE``. Stores are opened on first use, cached by
the ``TenantRegistry`` for the life of the process and disposed on shutdown.
"""
import asyncio
import logging
import os
import re
from typing import Dict, List

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from starlette.concurrency import run_in_threadpool

from .errors import TenantResolutionError

logger = logging.getLogger(__name__)

Base = declarative_base()

TENANT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,63}$")


def create_tenant_engine(url: str) -> Engine:
    """Build an engine for one tenant database URL."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    database = parsed.database
    if not database or database == ":memory:":
        # An in-memory database lives inside one connection; share it.
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    directory = os.path.dirname(os.path.abspath(database))
    os.makedirs(directory, exist_ok=True)
    return create_engine(url, connect_args={"check_same_thread": False})


class TenantStore:
    """Live handle to one tenant's isolated user database."""

    def __init__(self, tenant_id: str, engine: Engine):
        self.tenant_id = tenant_id
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False,
                                         expire_on_commit=False)

    def session(self) -> Session:
        return self.SessionLocal()

    def init_schema(self) -> None:
        from .models import User  # Import here to avoid circular dependency

        Base.metadata.create_all(bind=self.engine, tables=[User.__table__])

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Tenant store %s ping failed: %s", self.tenant_id, e)
            return False

    def dispose(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"TenantStore(tenant_id={self.tenant_id!r}, url={self.engine.url!s})"


class TenantRegistry:
    """
    Process-wide cache of open tenant stores.

    ``resolve`` is single-flight per tenant: concurrent first requests for the
    same tenant wait on one lock and share one engine. Cached stores are
    handed out without locking.
    """

    def __init__(self, url_template: str):
        self._url_template = url_template
        self._stores: Dict[str, TenantStore] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @staticmethod
    def normalize(tenant_id) -> str:
        if tenant_id is None:
            raise TenantResolutionError("Tenant is required.")
        tenant = str(tenant_id).strip()
        if not tenant:
            raise TenantResolutionError("Tenant is required.")
        if not TENANT_ID_PATTERN.match(tenant):
            raise TenantResolutionError("Invalid tenant.")
        return tenant

    def database_url(self, tenant_id: str) -> str:
        return self._url_template.format(tenant=tenant_id)

    async def resolve(self, tenant_id) -> TenantStore:
        tenant = self.normalize(tenant_id)

        store = self._stores.get(tenant)
        if store is not None:
            return store

        lock = self._locks.setdefault(tenant, asyncio.Lock())
        async with lock:
            store = self._stores.get(tenant)
            if store is None:
                store = await run_in_threadpool(self._open, tenant)
                self._stores[tenant] = store
        return store

    def _open(self, tenant: str) -> TenantStore:
        engine = None
        try:
            engine = create_tenant_engine(self.database_url(tenant))
            store = TenantStore(tenant, engine)
            store.init_schema()
        except (SQLAlchemyError, OSError) as e:
            if engine is not None:
                engine.dispose()
            logger.error("Failed to open tenant store %s: %s", tenant, e)
            raise TenantResolutionError(
                f"Tenant store unavailable: {tenant}", status_code=500
            ) from e

        logger.info("Opened tenant store %s at %s", tenant, engine.url)
        return store

    async def ping(self, tenant_id) -> bool:
        store = await self.resolve(tenant_id)
        return await run_in_threadpool(store.ping)

    def tenants(self) -> List[str]:
        return sorted(self._stores)

    def __contains__(self, tenant_id) -> bool:
        return tenant_id in self._stores

    async def close(self) -> None:
        stores = list(self._stores.values())
        self._stores.clear()
        self._locks.clear()
        for store in stores:
            await run_in_threadpool(store.dispose)
            logger.info("Closed tenant store %s", store.tenant_id)
