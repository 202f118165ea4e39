from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Response

from authkit.shared.config import get_settings


REFRESH_COOKIE_PATH = "/v1"


def _cookie_max_age_seconds(refresh_expires_at: datetime) -> int:
    now = datetime.now(timezone.utc)
    return max(int((refresh_expires_at - now).total_seconds()), 0)


def set_refresh_cookie(response: Response, refresh_token: str, refresh_expires_at: datetime) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        httponly=True,
        samesite="lax",
        secure=settings.refresh_cookie_secure,
        max_age=_cookie_max_age_seconds(refresh_expires_at),
        path=REFRESH_COOKIE_PATH,
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(key=get_settings().refresh_cookie_name, path=REFRESH_COOKIE_PATH)


def client_ip(x_forwarded_for: str | None, fallback: str | None) -> str | None:
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip() or fallback
    return fallback
