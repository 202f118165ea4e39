from __future__ import annotations

from typing import Protocol


class MailerPort(Protocol):
    def send(self, *, to: str, subject: str, html: str, text: str) -> None:
        ...
