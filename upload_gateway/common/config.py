from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_S3_REGION = "ap-northeast-1"
DEFAULT_S3_KEY_PREFIX = "blender-render/large-video-input/"
DEFAULT_CORS_ORIGINS: tuple[str, ...] = ("http://localhost:5173",)

# Older deployments export the credentials under these names.
LEGACY_ENV_ALIASES: dict[str, str] = {
    "S3_ACCESS_KEY_ID": "AWS_S3_IP",
    "S3_SECRET_ACCESS_KEY": "AWS_S3_SECRET",
    "S3_BUCKET": "AWS_S3_BUCKET",
}


class ConfigurationError(ValueError):
    """Raised when mandatory runtime configuration is missing or invalid."""


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_optional_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)


def _env(name: str) -> str | None:
    value = os.environ.get(name)
    if value:
        return value
    legacy = LEGACY_ENV_ALIASES.get(name)
    if legacy:
        return os.environ.get(legacy) or None
    return None


@dataclass
class Settings:
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_BUCKET: str | None = None
    S3_REGION: str = DEFAULT_S3_REGION
    S3_ENDPOINT_URL: str | None = None
    S3_ADDRESSING_STYLE: str = "path"
    S3_USE_SSL: bool = True
    S3_KEY_PREFIX: str = DEFAULT_S3_KEY_PREFIX
    S3_CONNECT_TIMEOUT: int = 5
    S3_READ_TIMEOUT: int = 60
    PRESIGN_EXPIRES_SECONDS: int | None = None
    VERIFY_UPLOAD_ON_PRESIGN: bool = False
    AUTH_HEADER_REQUIRED: bool = False
    CORS_ENABLED: bool = True
    CORS_ORIGINS: list[str] = field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )
    ENABLE_METRICS: bool = True
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "S3_BUCKET")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        if not self.S3_REGION:
            self.S3_REGION = DEFAULT_S3_REGION
        if self.PRESIGN_EXPIRES_SECONDS is not None and self.PRESIGN_EXPIRES_SECONDS <= 0:
            raise ConfigurationError("PRESIGN_EXPIRES_SECONDS must be positive")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        cors_origins_env = os.environ.get("CORS_ORIGINS")
        if cors_origins_env is None:
            cors_origins = list(DEFAULT_CORS_ORIGINS)
        else:
            cors_origins = _as_list(cors_origins_env)

        return cls(
            S3_ACCESS_KEY_ID=_env("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=_env("S3_SECRET_ACCESS_KEY"),
            S3_BUCKET=_env("S3_BUCKET"),
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_KEY_PREFIX=os.environ.get("S3_KEY_PREFIX", cls.S3_KEY_PREFIX),
            S3_CONNECT_TIMEOUT=int(
                os.environ.get("S3_CONNECT_TIMEOUT", cls.S3_CONNECT_TIMEOUT)
            ),
            S3_READ_TIMEOUT=int(
                os.environ.get("S3_READ_TIMEOUT", cls.S3_READ_TIMEOUT)
            ),
            PRESIGN_EXPIRES_SECONDS=_as_optional_int(
                os.environ.get("PRESIGN_EXPIRES_SECONDS")
            ),
            VERIFY_UPLOAD_ON_PRESIGN=_as_bool(
                os.environ.get("VERIFY_UPLOAD_ON_PRESIGN"),
                cls.VERIFY_UPLOAD_ON_PRESIGN,
            ),
            AUTH_HEADER_REQUIRED=_as_bool(
                os.environ.get("AUTH_HEADER_REQUIRED"), cls.AUTH_HEADER_REQUIRED
            ),
            CORS_ENABLED=_as_bool(os.environ.get("CORS_ENABLED"), cls.CORS_ENABLED),
            CORS_ORIGINS=cors_origins,
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
