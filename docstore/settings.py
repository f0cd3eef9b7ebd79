from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Remote store
    base_url: str
    app_secret: str
    timeout_seconds: float

    # Listing
    page_size: int

    # Identity tokens (empty secret: read claims without verifying the signature)
    jwt_secret: str
    jwt_alg: str
    jwt_audience: str

    # Debug
    debug_log_requests: bool

    # Local emulator (empty: talk to the remote store over HTTP)
    local_data_dir: str


def get_settings() -> Settings:
    base_url = os.getenv("DOCSTORE_BASE_URL", "http://127.0.0.1:8000").rstrip("/")
    app_secret = os.getenv("DOCSTORE_APP_SECRET", "")
    timeout_seconds = _env_float("DOCSTORE_TIMEOUT_SECONDS", 10.0)

    page_size = _env_int("DOCSTORE_PAGE_SIZE", 50)
    if page_size < 1:
        page_size = 50

    jwt_secret = os.getenv("DOCSTORE_JWT_SECRET", "")
    jwt_alg = os.getenv("DOCSTORE_JWT_ALG", "HS256")
    jwt_audience = os.getenv("DOCSTORE_JWT_AUDIENCE", "")

    debug_log_requests = _env_bool("DOCSTORE_DEBUG_LOG_REQUESTS", False)

    local_data_dir = os.getenv("DOCSTORE_LOCAL_DATA_DIR", "").strip()

    return Settings(
        base_url=base_url,
        app_secret=app_secret,
        timeout_seconds=timeout_seconds,
        page_size=page_size,
        jwt_secret=jwt_secret,
        jwt_alg=jwt_alg,
        jwt_audience=jwt_audience,
        debug_log_requests=debug_log_requests,
        local_data_dir=local_data_dir,
    )
