"""Tests for tenant store resolution and caching."""
import asyncio
import os
import threading
import time

import pytest

from tenant_auth.auth_service.db import TenantRegistry, TenantStore
from tenant_auth.auth_service.errors import TenantResolutionError


@pytest.fixture
def template(tmp_path):
    return f"sqlite:///{tmp_path}/{{tenant}}.db"


def test_resolve_opens_tenant_database(tmp_path, template):
    registry = TenantRegistry(template)

    async def run():
        store = await registry.resolve("t1")
        await registry.close()
        return store

    store = asyncio.run(run())
    assert isinstance(store, TenantStore)
    assert store.tenant_id == "t1"
    assert os.path.exists(tmp_path / "t1.db")


def test_resolve_returns_cached_store(template):
    registry = TenantRegistry(template)

    async def run():
        first = await registry.resolve("t1")
        second = await registry.resolve(" t1 ")
        await registry.close()
        return first, second

    first, second = asyncio.run(run())
    assert first is second


def test_distinct_tenants_get_distinct_stores(tmp_path, template):
    registry = TenantRegistry(template)

    async def run():
        a = await registry.resolve("tenant-a")
        b = await registry.resolve("tenant_b")
        tenants = registry.tenants()
        await registry.close()
        return a, b, tenants

    a, b, tenants = asyncio.run(run())
    assert a is not b
    assert a.engine is not b.engine
    assert tenants == ["tenant-a", "tenant_b"]
    assert os.path.exists(tmp_path / "tenant-a.db")
    assert os.path.exists(tmp_path / "tenant_b.db")


def test_concurrent_first_resolve_opens_once(template):
    """Many concurrent first requests for one tenant share a single store."""
    registry = TenantRegistry(template)
    opened = []
    lock = threading.Lock()
    original_open = registry._open

    def slow_open(tenant):
        with lock:
            opened.append(tenant)
        time.sleep(0.05)
        return original_open(tenant)

    registry._open = slow_open

    async def run():
        stores = await asyncio.gather(*(registry.resolve("busy") for _ in range(10)))
        await registry.close()
        return stores

    stores = asyncio.run(run())
    assert opened == ["busy"]
    assert len({id(store) for store in stores}) == 1


@pytest.mark.parametrize("tenant_id", [None, "", "   "])
def test_missing_tenant_is_rejected(template, tenant_id):
    registry = TenantRegistry(template)
    with pytest.raises(TenantResolutionError) as exc_info:
        asyncio.run(registry.resolve(tenant_id))
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Tenant is required."


@pytest.mark.parametrize("tenant_id", ["../etc", "a/b", "t 1", "x" * 64])
def test_unsafe_tenant_is_rejected(template, tenant_id):
    registry = TenantRegistry(template)
    with pytest.raises(TenantResolutionError) as exc_info:
        asyncio.run(registry.resolve(tenant_id))
    assert exc_info.value.status_code == 400
    assert registry.tenants() == []


def test_unreachable_store_is_not_cached(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    registry = TenantRegistry(f"sqlite:///{blocker}/{{tenant}}.db")

    with pytest.raises(TenantResolutionError) as exc_info:
        asyncio.run(registry.resolve("t1"))

    assert exc_info.value.status_code == 500
    assert "t1" not in registry


def test_in_memory_template_keeps_tenants_apart():
    registry = TenantRegistry("sqlite://")

    async def run():
        a = await registry.resolve("a")
        b = await registry.resolve("b")
        alive = await registry.ping("a")
        await registry.close()
        return a, b, alive

    a, b, alive = asyncio.run(run())
    assert a.engine is not b.engine
    assert alive is True


def test_close_empties_cache(template):
    registry = TenantRegistry(template)

    async def run():
        await registry.resolve("t1")
        await registry.close()

    asyncio.run(run())
    assert registry.tenants() == []
