from __future__ import annotations

import asyncio
import json
from pathlib import Path

from pydantic import BaseModel

from docstore.client import DataStoreClient
from docstore.identity import StaticIdentityProvider
from docstore.local_store import DiskPartitionStore, KeyedLockRegistry, MemoryPartitionStore
from docstore.local_transport import LocalTransport
from docstore.transport import CONTINUATION_HEADER, PAGE_SIZE_HEADER, Method


class Note(BaseModel):
    text: str


def test_disk_store_roundtrip_and_corrupt_files(tmp_path: Path):
    store = DiskPartitionStore(tmp_path)
    assert store.load("user-1") == {}

    store.save("user-1", {"a": {"id": "a"}})
    assert store.load("user-1") == {"a": {"id": "a"}}
    assert store.path_for("user-1").exists()
    assert not store.path_for("user-1").with_suffix(".json.tmp").exists()

    store.path_for("broken").write_text("{not json", encoding="utf-8")
    assert store.load("broken") == {}

    store.path_for("empty").write_text("   ", encoding="utf-8")
    assert store.load("empty") == {}


def test_disk_store_keeps_partition_names_inside_its_directory(tmp_path: Path):
    store = DiskPartitionStore(tmp_path)
    assert store.path_for("team/../x").parent == store.directory


def test_disk_store_gives_similar_partition_names_separate_files(tmp_path: Path):
    store = DiskPartitionStore(tmp_path)
    names = ["team/a", "team_a", " team_a", "team%2Fa"]
    assert len({store.path_for(n) for n in names}) == len(names)

    async def _run():
        client = DataStoreClient(StaticIdentityProvider("42"), LocalTransport(store))
        for name in names:
            created = await client.create(name, "doc", Note(text=name))
            assert created.ok, name
        for name in names:
            got = await client.read(name, "doc", Note)
            assert got.value.text == name

    asyncio.run(_run())


def test_memory_store_does_not_share_state_with_callers():
    store = MemoryPartitionStore()
    records = {"a": {"document": {"text": "1"}}}
    store.save("p", records)
    records["a"]["document"]["text"] = "changed"
    loaded = store.load("p")
    assert loaded["a"]["document"]["text"] == "1"
    loaded["b"] = {}
    assert "b" not in store.load("p")


def test_lock_registry_returns_stable_locks():
    locks = KeyedLockRegistry()
    assert locks.lock_for("p") is locks.lock_for("p")
    assert locks.lock_for("p") is not locks.lock_for("q")


def test_client_on_disk_emulator_persists_across_transports(tmp_path: Path):
    identity = StaticIdentityProvider("42")

    async def _write():
        client = DataStoreClient(identity, LocalTransport(DiskPartitionStore(tmp_path)))
        created = await client.create("user-42", "note1", Note(text="hi"))
        assert created.ok

    async def _read():
        client = DataStoreClient(identity, LocalTransport(DiskPartitionStore(tmp_path)))
        got = await client.read("user-42", "note1", Note)
        assert got.value == Note(text="hi")
        assert await client.delete("user-42", "note1") is None

    asyncio.run(_write())
    on_disk = json.loads((tmp_path / "partitions" / "user-42.json").read_text(encoding="utf-8"))
    assert on_disk["note1"]["document"] == {"text": "hi"}
    assert on_disk["note1"]["PartitionKey"] == "user-42"
    asyncio.run(_read())


def test_local_transport_rejects_writes_to_readonly_partition():
    async def _run():
        transport = LocalTransport()
        response = await transport.send(
            Method.POST, "readonly", body={"id": "x", "PartitionKey": "readonly", "document": {}}
        )
        assert response.status_code == 403

    asyncio.run(_run())


def test_local_transport_validates_paging_headers():
    async def _run():
        transport = LocalTransport()
        bad_size = await transport.send(Method.GET, "p", headers={PAGE_SIZE_HEADER: "0"})
        bad_token = await transport.send(Method.GET, "p", headers={CONTINUATION_HEADER: "abc"})
        assert bad_size.status_code == 400
        assert bad_token.status_code == 400

    asyncio.run(_run())


def test_local_transport_create_requires_id():
    async def _run():
        response = await LocalTransport().send(Method.POST, "p", body={"document": {}})
        assert response.status_code == 400

    asyncio.run(_run())
