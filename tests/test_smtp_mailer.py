from __future__ import annotations

from dataclasses import replace

import pytest

from authkit.infrastructure.clients.smtp_mailer import SmtpMailer, SmtpMailerSettings


SETTINGS = SmtpMailerSettings(
    enabled=True,
    host="smtp.example.com",
    port=587,
    user="mailer",
    password="mailer-pass",
    use_tls=True,
    starttls=True,
    from_email="no-reply@example.com",
    from_name="Authkit",
)


class FakeSMTP:
    instances: list[FakeSMTP] = []

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.calls: list[str] = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, user: str, password: str):
        self.calls.append(f"login:{user}")

    def send_message(self, message):
        self.calls.append("send")
        self.messages.append(message)


def test_disabled_mailer_sends_nothing(monkeypatch: pytest.MonkeyPatch):
    FakeSMTP.instances = []
    monkeypatch.setattr("authkit.infrastructure.clients.smtp_mailer.smtplib.SMTP", FakeSMTP)

    SmtpMailer(replace(SETTINGS, enabled=False)).send(to="alice@example.com", subject="s", html="<p>h</p>", text="t")

    assert FakeSMTP.instances == []


def test_starttls_mailer_logs_in_and_sends_multipart(monkeypatch: pytest.MonkeyPatch):
    FakeSMTP.instances = []
    monkeypatch.setattr("authkit.infrastructure.clients.smtp_mailer.smtplib.SMTP", FakeSMTP)

    SmtpMailer(SETTINGS).send(
        to="alice@example.com",
        subject="Your activation code",
        html="<p>482913</p>",
        text="482913",
    )

    server = FakeSMTP.instances[0]
    assert (server.host, server.port) == ("smtp.example.com", 587)
    assert server.calls == ["starttls", "login:mailer", "send"]
    message = server.messages[0]
    assert message["To"] == "alice@example.com"
    assert message["From"] == "Authkit <no-reply@example.com>"
    assert [part.get_content_type() for part in message.get_payload()] == ["text/plain", "text/html"]


def test_enabled_mailer_requires_host():
    with pytest.raises(RuntimeError):
        SmtpMailer(replace(SETTINGS, host="")).send(to="a@example.com", subject="s", html="h", text="t")
