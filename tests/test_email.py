"""Tests for coach application emails."""

import pytest

from services import email_service as email_module
from services.email_service import EmailService, rejection_body


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.messages = []
        self.logged_in = None
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, msg):
        self.messages.append(msg)


@pytest.fixture
def configured_service():
    service = EmailService()
    service.smtp_server = "smtp.example.com"
    service.smtp_port = 587
    service.smtp_username = "team@bitewise.app"
    service.smtp_password = "app-password"
    service.from_name = "BiteWise"
    return service


def test_missing_credentials_do_not_send(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)
    service = EmailService()
    service.smtp_username = ""
    service.smtp_password = ""

    result = service.send_email("coach@example.com", "Hi", "<p>hi</p>")

    assert result["success"] is False
    assert FakeSMTP.instances == []


@pytest.mark.asyncio
async def test_approval_email_is_sent(monkeypatch, configured_service):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)

    result = await configured_service.send_coach_approval("coach@example.com", "Dana")

    assert result["success"] is True
    smtp = FakeSMTP.instances[0]
    assert smtp.logged_in == ("team@bitewise.app", "app-password")
    msg = smtp.messages[0]
    assert msg["To"] == "coach@example.com"
    assert msg["Subject"] == email_module.APPROVAL_SUBJECT


def test_smtp_failure_is_reported(monkeypatch, configured_service):
    class BrokenSMTP(FakeSMTP):
        def login(self, username, password):
            raise OSError("connection refused")

    monkeypatch.setattr(email_module.smtplib, "SMTP", BrokenSMTP)

    result = configured_service.send_email("coach@example.com", "Hi", "<p>hi</p>")

    assert result == {"success": False, "error": "connection refused"}


def test_rejection_body_escapes_reason():
    body = rejection_body("<b>Dana</b>", reason="missing <certificate>")
    assert "&lt;b&gt;Dana&lt;/b&gt;" in body
    assert "missing &lt;certificate&gt;" in body
