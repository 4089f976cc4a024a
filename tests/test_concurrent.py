"""Tests that the server handles many simultaneous reads and writes.

Writes are handed to the persistence worker from a thread pool while
lookups read the store directly; these tests check that concurrent
requests all succeed and that every key ends up with its last value.
"""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from golinks.database.codec import SnapshotCodec
from web_app import create_app


@pytest.fixture
async def client(service, test_config):
    app = create_app(service_instance=service, config=test_config)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


class TestConcurrentConnections:
    """Prove the server handles many simultaneous requests."""

    async def test_concurrent_sets_on_disjoint_keys(self, client):
        concurrency = 30
        tasks = [
            client.post(f"/api/set/key{i}", data={"url": f"example.com/page_{i}"})
            for i in range(concurrency)
        ]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        for i, r in enumerate(responses):
            if isinstance(r, Exception):
                pytest.fail(f"Request {i} raised: {r}")
            assert r.status_code == 200, f"Request {i}: status {r.status_code} body={r.text}"
            assert r.json()["target"] == f"example.com/page_{i}"

        stats = (await client.get("/api/stats")).json()
        assert stats["total_links"] == concurrency

    async def test_concurrent_reads_and_writes(self, client, service):
        keys = [f"k{i}" for i in range(10)]
        rounds = 5

        async def writer(key):
            for n in range(rounds):
                r = await client.post(f"/api/set/{key}", data={"url": f"{key}.example/{n}"})
                assert r.status_code == 200

        async def reader(key):
            for _ in range(rounds * 2):
                r = await client.get(f"/api/get/{key}")
                assert r.status_code in (200, 404)
                if r.status_code == 200:
                    assert r.json()["key"] == key

        await asyncio.gather(
            *[writer(key) for key in keys],
            *[reader(key) for key in keys],
        )

        for key in keys:
            r = await client.get(f"/api/get/{key}")
            assert r.json()["target"] == f"{key}.example/{rounds - 1}"

    async def test_concurrent_redirects(self, client):
        await client.post("/api/set/target", data={"url": "https://example.com/redirect-target"})

        tasks = [client.get("/v/target", follow_redirects=False) for _ in range(20)]
        responses = await asyncio.gather(*tasks)

        for r in responses:
            assert r.status_code == 307
            assert r.headers["location"] == "https://example.com/redirect-target"

    async def test_final_snapshot_matches_store(self, client, service, db_path):
        tasks = [
            client.post(f"/api/set/snap{i}", data={"url": f"example.com/{i}"})
            for i in range(20)
        ]
        await asyncio.gather(*tasks)

        await service.close()

        persisted = SnapshotCodec().decode(db_path.read_bytes())
        assert persisted == service.store.snapshot_copy()
        assert len(persisted) == 20
