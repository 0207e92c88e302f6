"""
Logging setup and the authentication event log.
"""
from datetime import datetime, timezone
from typing import Optional
import sys
import logging
import os

from starlette.requests import Request

from ..config import Settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


ALLOWED_EVENT_TYPES = {
    "register_success",
    "register_failure",
    "login_success",
    "login_failure",
}


def configure_logging(settings: Settings) -> None:
    """
    Send logs to stdout and, when LOG_DIR is writable, to LOG_DIR/auth_events.log.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    # Continue without the file handler if the directory cannot be created
    try:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(settings.LOG_DIR, "auth_events.log")))
    except OSError as e:
        print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def client_ip(request: Optional[Request]) -> Optional[str]:
    """Client address, falling back to the first X-Forwarded-For hop."""
    if request is None:
        return None
    if request.client:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return None


def log_auth_event(
    event_type: str,
    tenant: str,
    request: Optional[Request] = None,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    reason: Optional[str] = None,
) -> None:
    """
    Log an authentication event.

    Args:
        event_type: One of: register_success, register_failure,
                    login_success, login_failure
        tenant: Tenant identifier from the request path
        request: Incoming request, used for the client ip
        user_id: Internal id of the user, when known
        email: Email the caller presented
        reason: Short failure reason

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    level = logging.INFO if event_type.endswith("_success") else logging.WARNING
    logger.log(
        level,
        "AUTH %s tenant=%s user_id=%s email=%s ip=%s reason=%s timestamp=%s",
        event_type, tenant, user_id, email, client_ip(request), reason,
        datetime.now(timezone.utc).isoformat(),
    )
