from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from authkit.application.ports.mailer_port import MailerPort


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpMailerSettings:
    enabled: bool
    host: str
    port: int
    user: str
    password: str
    use_tls: bool
    starttls: bool
    from_email: str
    from_name: str


class SmtpMailer(MailerPort):
    def __init__(self, settings: SmtpMailerSettings):
        self._settings = settings

    def _create_message(self, *, to: str, subject: str, html: str, text: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self._settings.from_name} <{self._settings.from_email}>"
        msg["To"] = to
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def send(self, *, to: str, subject: str, html: str, text: str) -> None:
        if not self._settings.enabled:
            logger.warning("smtp_mailer: SMTP disabled, email not sent to=%s", to)
            return
        if not self._settings.host:
            raise RuntimeError("SMTP_HOST is required when SMTP is enabled.")

        message = self._create_message(to=to, subject=subject, html=html, text=text)
        try:
            if self._settings.use_tls and not self._settings.starttls:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(self._settings.host, self._settings.port, context=context) as server:
                    if self._settings.user:
                        server.login(self._settings.user, self._settings.password)
                    server.send_message(message)
            else:
                with smtplib.SMTP(self._settings.host, self._settings.port) as server:
                    if self._settings.starttls:
                        server.starttls(context=ssl.create_default_context())
                    if self._settings.user:
                        server.login(self._settings.user, self._settings.password)
                    server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("smtp_mailer: send failed to=%s error=%s", to, exc)
            raise

        logger.info("smtp_mailer: email sent to=%s", to)
