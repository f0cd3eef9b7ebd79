from __future__ import annotations

import asyncio
from pathlib import Path

import jwt
import pytest
from pydantic import BaseModel

from docstore.bootstrap import create_client
from docstore.partitions import USER_PARTITION
from docstore.settings import get_settings


class Note(BaseModel):
    text: str


def test_settings_defaults(clean_env):
    s = get_settings()
    assert s.base_url == "http://127.0.0.1:8000"
    assert s.app_secret == ""
    assert s.timeout_seconds == 10.0
    assert s.page_size == 50
    assert s.jwt_secret == ""
    assert s.jwt_alg == "HS256"
    assert s.jwt_audience == ""
    assert s.debug_log_requests is False
    assert s.local_data_dir == ""


def test_settings_from_environment(clean_env, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DOCSTORE_BASE_URL", "https://store.example/v1/")
    monkeypatch.setenv("DOCSTORE_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("DOCSTORE_PAGE_SIZE", "7")
    monkeypatch.setenv("DOCSTORE_DEBUG_LOG_REQUESTS", "yes")
    s = get_settings()
    assert s.base_url == "https://store.example/v1"
    assert s.timeout_seconds == 2.5
    assert s.page_size == 7
    assert s.debug_log_requests is True


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_settings_ignore_bad_page_size(clean_env, monkeypatch: pytest.MonkeyPatch, raw: str):
    monkeypatch.setenv("DOCSTORE_PAGE_SIZE", raw)
    assert get_settings().page_size == 50


def test_create_client_with_local_store(clean_env, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("DOCSTORE_LOCAL_DATA_DIR", str(tmp_path))
    token = jwt.encode({"sub": "42"}, "local-dev-secret-local-dev-secret", algorithm="HS256")

    async def _run():
        async with create_client(token_provider=lambda: token, env_file=None) as client:
            created = await client.create(USER_PARTITION, "n1", Note(text="hi"))
            assert created.partition == "user-42"
            got = await client.read(USER_PARTITION, "n1", Note)
            assert got.value.text == "hi"

    asyncio.run(_run())
    assert (tmp_path / "partitions" / "user-42.json").exists()


def test_create_client_loads_env_file(clean_env, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    env_file = tmp_path / "local.env"
    env_file.write_text(f"DOCSTORE_LOCAL_DATA_DIR={tmp_path / 'data'}\n", encoding="utf-8")

    async def _run():
        async with create_client(token_provider=lambda: None, env_file=str(env_file)) as client:
            missing = await client.read(USER_PARTITION, "n1", Note)
            assert missing.error is not None
            assert missing.error.kind.value == "identity_unavailable"

    asyncio.run(_run())
