"""
Dev Monitor Router - Development-only endpoints for inspecting tenant stores.
"""
import ipaddress
import logging

from fastapi import APIRouter, Depends, Request

from ..errors import NotFoundError
from ..schemas import ExternalIdList
from ..service import AuthService, get_auth_service

router = APIRouter(prefix="/dev", tags=["dev-monitor"])
logger = logging.getLogger(__name__)


def is_dev_mode(request: Request) -> bool:
    """Check if DEV_MODE is enabled."""
    return request.app.state.settings.DEV_MODE


def is_local_request(request: Request) -> bool:
    """Check if request originates from loopback or a private network."""
    if not request.client:
        # No client info, most likely an in-process or internal request
        return True

    host = request.client.host
    if host == "localhost":
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_loopback or address.is_private


@router.get("/tenants/{tenant}/external-ids", response_model=ExternalIdList)
async def get_external_ids(
    tenant: str,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    """
    List the external ids registered in a tenant (development only).

    Raises:
        404: If DEV_MODE is not enabled
    """
    client = request.client.host if request.client else "unknown"
    if not is_dev_mode(request):
        logger.warning("Attempt to access dev external ids with DEV_MODE disabled from IP %s", client)
        raise NotFoundError("Not found.")

    # DEV_MODE is the access control; the address check only feeds the log
    if not is_local_request(request):
        logger.info("Dev external ids accessed from non-local IP: %s (allowed in DEV_MODE)", client)

    external_ids = await service.list_external_ids(tenant)
    logger.info("Dev external ids accessed: tenant=%s, results=%s, ip=%s", tenant, len(external_ids), client)
    return ExternalIdList(tenant=tenant, external_ids=external_ids)
