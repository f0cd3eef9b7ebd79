from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv

from .client import DataStoreClient
from .identity import IdentityProvider, JwtIdentityProvider, TokenProvider
from .local_store import DiskPartitionStore
from .local_transport import LocalTransport
from .settings import Settings, get_settings
from .transport import HttpTransport, Transport

logger = logging.getLogger(__name__)


def _no_token() -> str | None:
    return None


def create_client(
    *,
    token_provider: TokenProvider | None = None,
    identity: IdentityProvider | None = None,
    settings: Settings | None = None,
    env_file: str | None = "local.env",
) -> DataStoreClient:
    """
    Wire a DataStoreClient from environment settings.

    The token provider supplies bearer tokens for HTTP requests and, unless an
    explicit identity provider is passed, the user id (JWT `sub`) for the user
    partition.
    """
    if settings is None:
        if env_file:
            load_dotenv(env_file)
        settings = get_settings()

    tokens = token_provider or _no_token
    if identity is None:
        identity = JwtIdentityProvider(
            tokens,
            secret=settings.jwt_secret,
            algorithm=settings.jwt_alg,
            audience=settings.jwt_audience,
        )

    transport: Transport
    if settings.local_data_dir:
        logger.info("DOCSTORE: using local store at %s", settings.local_data_dir)
        transport = LocalTransport(DiskPartitionStore(Path(settings.local_data_dir)))
    else:
        transport = HttpTransport(
            settings.base_url,
            token_provider=tokens,
            app_secret=settings.app_secret,
            timeout=settings.timeout_seconds,
            debug_log_requests=settings.debug_log_requests,
        )

    return DataStoreClient(identity, transport, page_size=settings.page_size, owns_transport=True)
