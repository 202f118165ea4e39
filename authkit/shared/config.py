from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _list(name: str, default: str = "") -> tuple[str, ...]:
    value = _env(name, default) or ""
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class OAuthClientSettings:
    client_id: str
    client_secret: str
    callback_url: str

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret and self.callback_url)


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    jwt_secret: str
    jwt_access_ttl_minutes: int
    session_max_age_days: int
    refresh_cookie_name: str
    refresh_cookie_secure: bool
    activation_code_ttl_seconds: int
    activation_max_attempts: int
    oauth_state_ttl_seconds: int
    oauth_auto_link_verified_email: bool
    oauth_http_timeout_seconds: float
    google: OAuthClientSettings
    facebook: OAuthClientSettings
    github: OAuthClientSettings
    smtp_enabled: bool
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_use_tls: bool
    smtp_starttls: bool
    smtp_from_email: str
    smtp_from_name: str
    default_role: str
    profile_sync_fields: tuple[str, ...]
    cors_origins: tuple[str, ...]
    log_level: str


def _oauth_client(prefix: str) -> OAuthClientSettings:
    return OAuthClientSettings(
        client_id=_env(f"OAUTH_{prefix}_CLIENT_ID", "") or "",
        client_secret=_env(f"OAUTH_{prefix}_CLIENT_SECRET", "") or "",
        callback_url=_env(f"OAUTH_{prefix}_CALLBACK_URL", "") or "",
    )


def get_settings() -> Settings:
    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        jwt_secret=_env("JWT_SECRET", ""),
        jwt_access_ttl_minutes=int(_env("JWT_ACCESS_TTL_MINUTES", "15")),
        session_max_age_days=int(_env("SESSION_MAX_AGE_DAYS", "7")),
        refresh_cookie_name=_env("REFRESH_COOKIE_NAME", "refresh_token"),
        refresh_cookie_secure=_bool("REFRESH_COOKIE_SECURE", False),
        activation_code_ttl_seconds=int(_env("ACTIVATION_CODE_TTL_SECONDS", "900")),
        activation_max_attempts=int(_env("ACTIVATION_MAX_ATTEMPTS", "5")),
        oauth_state_ttl_seconds=int(_env("OAUTH_STATE_TTL_SECONDS", "600")),
        oauth_auto_link_verified_email=_bool("OAUTH_AUTO_LINK_VERIFIED_EMAIL", True),
        oauth_http_timeout_seconds=float(_env("OAUTH_HTTP_TIMEOUT_SECONDS", "10")),
        google=_oauth_client("GOOGLE"),
        facebook=_oauth_client("FACEBOOK"),
        github=_oauth_client("GITHUB"),
        smtp_enabled=_bool("SMTP_ENABLED", False),
        smtp_host=_env("SMTP_HOST", ""),
        smtp_port=int(_env("SMTP_PORT", "587")),
        smtp_user=_env("SMTP_USER", ""),
        smtp_password=_env("SMTP_PASSWORD", ""),
        smtp_use_tls=_bool("SMTP_USE_TLS", True),
        smtp_starttls=_bool("SMTP_STARTTLS", True),
        smtp_from_email=_env("SMTP_FROM_EMAIL", "no-reply@localhost"),
        smtp_from_name=_env("SMTP_FROM_NAME", "Authkit"),
        default_role=_env("DEFAULT_ROLE", "user"),
        profile_sync_fields=_list("PROFILE_SYNC_FIELDS", "name"),
        cors_origins=_list("CORS_ORIGINS", "*"),
        log_level=_env("LOG_LEVEL", "INFO"),
    )
