"""
Unit tests for event logger utility.
"""
import logging

import pytest
from unittest.mock import Mock

from tenant_auth.auth_service.config import Settings
from tenant_auth.auth_service.utils.event_logger import client_ip, configure_logging, log_auth_event

LOGGER = "tenant_auth.auth_service.utils.event_logger"


@pytest.fixture
def mock_request():
    """Create a mock Request object."""
    request = Mock()
    request.client = Mock()
    request.client.host = "192.168.1.1"
    request.headers = {"user-agent": "Mozilla/5.0 Test Browser"}
    return request


def test_log_auth_event_writes_line(caplog, mock_request):
    with caplog.at_level(logging.INFO, logger=LOGGER):
        log_auth_event("login_success", "t1", mock_request, user_id="abc", email="ana@x.si")

    assert "AUTH login_success tenant=t1 user_id=abc email=ana@x.si ip=192.168.1.1" in caplog.text


def test_failures_are_warnings(caplog, mock_request):
    with caplog.at_level(logging.INFO, logger=LOGGER):
        log_auth_event("login_failure", "t1", mock_request, email="ana@x.si", reason="bad password")

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert "reason=bad password" in record.getMessage()


def test_invalid_event_type_raises(mock_request):
    with pytest.raises(ValueError):
        log_auth_event("password_reset", "t1", mock_request)


def test_client_ip_uses_forwarded_for_without_client():
    request = Mock()
    request.client = None
    request.headers = {"x-forwarded-for": "203.0.113.9, 10.0.0.1"}
    assert client_ip(request) == "203.0.113.9"


def test_client_ip_without_request():
    assert client_ip(None) is None


def test_register_and_login_are_logged(client, register_data, caplog):
    with caplog.at_level(logging.INFO, logger=LOGGER):
        client.post("/t1/register", json=register_data)
        client.post("/t1/login", json={"email": "ana@x.si", "password": "wrong"})

    assert "AUTH register_success tenant=t1" in caplog.text
    assert "AUTH login_failure tenant=t1" in caplog.text
    # passwords never reach the log
    assert "wrong" not in caplog.text


def test_configure_logging_survives_unwritable_log_dir(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")
    configure_logging(Settings(_env_file=None, LOG_DIR=str(blocker / "logs")))
    assert "Could not set up file logging" in capsys.readouterr().err


@pytest.mark.parametrize("path,body", [
    ("/t1/login", {"password": "pw"}),
    ("/bad.tenant/login", {"email": "ana@x.si", "password": "pw"}),
])
def test_every_login_failure_is_logged(client, caplog, path, body):
    with caplog.at_level(logging.INFO, logger=LOGGER):
        client.post(path, json=body)

    assert "AUTH login_failure" in caplog.text
