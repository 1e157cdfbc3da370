import smtplib

import pytest

from app.core.config import Settings
from app.services import email as email_service
from app.services.email import EmailClient, deliver_code


class RecordingSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.sent.append(msg)


class FailingSMTP(RecordingSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPRecipientsRefused({msg["To"]: (550, b"rejected")})


def _settings(**overrides):
    values = {
        "DATABASE_URL": "sqlite://",
        "SECRET_KEY": "test",
        "EMAIL_HOST": "smtp.test.local",
        "EMAIL_PORT": 587,
        "EMAIL_USER": "noreply@test.com",
        "EMAIL_PASS": "secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(autouse=True)
def reset_instances():
    RecordingSMTP.instances = []


def test_unconfigured_client_reports_failure():
    client = EmailClient(_settings(EMAIL_USER=None, EMAIL_PASS=None))
    result = client.send_code("user@test.com", "123456")
    assert result.success is False
    assert result.error == "Email service not configured"


def test_send_code_uses_starttls(monkeypatch):
    monkeypatch.setattr(email_service.smtplib, "SMTP", RecordingSMTP)
    client = EmailClient(_settings())

    result = client.send_code("user@test.com", "4821", kind="reset")
    assert result.success is True
    assert result.message_id

    smtp = RecordingSMTP.instances[0]
    assert smtp.started_tls is True
    assert smtp.logged_in == ("noreply@test.com", "secret")
    msg = smtp.sent[0]
    assert msg["To"] == "user@test.com"
    assert msg["Subject"] == "Your password reset code"
    assert "4821" in msg.get_content()
    assert "5 minutes" in msg.get_content()


def test_port_465_uses_ssl(monkeypatch):
    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", RecordingSMTP)
    client = EmailClient(_settings(EMAIL_PORT=465))

    assert client.send_code("user@test.com", "123456").success is True
    assert RecordingSMTP.instances[0].started_tls is False


def test_smtp_failure_is_reported_not_raised(monkeypatch):
    monkeypatch.setattr(email_service.smtplib, "SMTP", FailingSMTP)
    client = EmailClient(_settings())

    result = client.send_approval_decision("mentor@test.com", "Mentor", approved=False, reason="Incomplete")
    assert result.success is False
    assert result.error


def test_rejection_mail_includes_reason(monkeypatch):
    monkeypatch.setattr(email_service.smtplib, "SMTP", RecordingSMTP)
    client = EmailClient(_settings())

    client.send_approval_decision("mentor@test.com", "Mentor", approved=False, reason="Incomplete profile")
    assert "Reason: Incomplete profile" in RecordingSMTP.instances[0].sent[0].get_content()


def test_unknown_code_kind():
    client = EmailClient(_settings())
    with pytest.raises(ValueError):
        client.send_code("user@test.com", "123456", kind="magic-link")

    # 백그라운드 발송 함수는 예외를 밖으로 내보내지 않음
    deliver_code(client, "user@test.com", "123456", "magic-link")
