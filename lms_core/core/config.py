from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _parse_int(name: str, raw: str, *, minimum: int = 0) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    enrollment_cache_ttl: int = 300
    # PEM of the upstream auth service's ES256 signing key; None rejects every token
    jwt_public_key: str | None = None
    jwt_issuer: str = "auth-service"
    jwt_audience: str = "lms-core"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def _parse_pem(name: str, raw: str) -> str | None:
    # Single-line env values carry the PEM newlines as literal "\n".
    if not raw:
        return None
    pem = raw.replace("\\n", "\n")
    if not pem.startswith("-----BEGIN PUBLIC KEY-----"):
        raise ValueError(f"{name} must be a PEM-encoded public key")
    return pem


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    log_json = _parse_bool("LOG_JSON", _getenv("LOG_JSON", "false"))
    port = _parse_int("PORT", _getenv("PORT", "8000"), minimum=1)
    enrollment_cache_ttl = _parse_int(
        "ENROLLMENT_CACHE_TTL", _getenv("ENROLLMENT_CACHE_TTL", "300"), minimum=1
    )

    database_url = _getenv("DATABASE_URL", "") or None
    redis_url = _getenv("REDIS_URL", "") or None

    jwt_public_key = _parse_pem("JWT_PUBLIC_KEY", _getenv("JWT_PUBLIC_KEY", ""))
    if app_env_raw == "prod" and jwt_public_key is None:
        raise ValueError("JWT_PUBLIC_KEY is required when APP_ENV=prod")
    jwt_issuer = _getenv("JWT_ISSUER", "auth-service")
    jwt_audience = _getenv("JWT_AUDIENCE", "lms-core")
    if not jwt_issuer or not jwt_audience:
        raise ValueError("JWT_ISSUER and JWT_AUDIENCE must not be blank")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json,
        port=port,
        database_url=database_url,
        redis_url=redis_url,
        enrollment_cache_ttl=enrollment_cache_ttl,
        jwt_public_key=jwt_public_key,
        jwt_issuer=jwt_issuer,
        jwt_audience=jwt_audience,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
