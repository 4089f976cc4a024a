"""Tests for service layer."""

import pytest

from golinks.exceptions import InvalidInputError, RegistryClosedError
from golinks.service import GoLinksService
from golinks.worker import PersistenceWorker

from conftest import MemoryStorage


class TestGoLinksService:
    """Test go links service."""

    async def test_set_and_get(self, service):
        record = await service.set_link("docs", "example.com/docs")

        fetched = await service.get_link("docs")
        assert fetched == record
        assert record.created_at == record.updated_at

    async def test_update_preserves_created_at(self, service):
        ticks = iter([1000, 2000])
        service.clock = lambda: next(ticks)

        await service.set_link("go", "example.com/docs")
        record = await service.set_link("go", "example.org")

        assert record.to_dict() == {
            "key": "go",
            "target": "example.org",
            "created_at": 1000,
            "updated_at": 2000,
        }

    async def test_get_missing(self, service):
        assert await service.get_link("missing") is None
        assert await service.resolve("missing") is None

    async def test_resolve_adds_scheme(self, service):
        await service.set_link("docs", "example.com/docs")
        await service.set_link("secure", "https://example.com/login")

        assert await service.resolve("docs") == "http://example.com/docs"
        assert await service.resolve("secure") == "https://example.com/login"

    async def test_target_is_stripped(self, service):
        record = await service.set_link("docs", "  example.com/docs  ")

        assert record.target == "example.com/docs"

    async def test_invalid_key(self, service):
        with pytest.raises(InvalidInputError, match="Invalid key"):
            await service.set_link("", "example.com")

        with pytest.raises(InvalidInputError, match="Invalid key"):
            await service.set_link("has space", "example.com")

    async def test_invalid_url(self, service):
        with pytest.raises(InvalidInputError, match="Invalid URL"):
            await service.set_link("docs", "ftp://example.com/file")

        with pytest.raises(InvalidInputError, match="Invalid URL"):
            await service.set_link("docs", "")

    async def test_delete(self, service):
        await service.set_link("docs", "example.com/docs")

        assert await service.delete_link("docs")
        assert not await service.delete_link("docs")
        assert not await service.link_exists("docs")

    async def test_list_links_newest_first(self, service):
        ticks = iter([100, 200, 300])
        service.clock = lambda: next(ticks)

        await service.set_link("a", "a.example")
        await service.set_link("b", "b.example")
        await service.set_link("c", "c.example")

        records = await service.list_links(limit=2)
        assert [r.key for r in records] == ["c", "b"]

    async def test_statistics(self, service):
        await service.set_link("docs", "example.com/docs")

        stats = await service.get_statistics()
        assert stats["total_links"] == 1
        assert stats["submissions_applied"] == 1
        assert stats["running"]

    async def test_flush_persists(self, service, db_path):
        await service.set_link("docs", "example.com/docs")

        assert await service.flush()
        assert db_path.stat().st_size > 0

    async def test_health_check(self, service):
        health = await service.health_check()

        assert health == {"worker": True, "persistence": True, "overall": True}

    async def test_closed_service_rejects_writes(self, service):
        await service.close()

        with pytest.raises(RegistryClosedError):
            await service.set_link("docs", "example.com/docs")

        health = await service.health_check()
        assert not health["overall"]

    async def test_reopen_recovers_links(self, service, db_path, logger):
        await service.set_link("docs", "example.com/docs")
        await service.set_link("gh", "https://github.com")
        await service.close()

        reopened = GoLinksService.open(db_path=db_path, fsync=False, logger=logger)

        assert (await reopened.get_link("docs")).target == "example.com/docs"
        assert (await reopened.get_link("gh")).target == "https://github.com"

    async def test_worker_must_share_store(self, service):
        from golinks.database.store import RecordStore

        with pytest.raises(ValueError):
            GoLinksService(store=RecordStore(), worker=service.worker)

    async def test_health_reports_failed_snapshot(self, store, logger):
        storage = MemoryStorage()
        worker = PersistenceWorker(store=store, storage=storage, sync_interval=3600, logger=logger)
        svc = GoLinksService(store=store, worker=worker, logger=logger)
        svc.start()
        try:
            await svc.set_link("docs", "example.com/docs")

            storage.fail_writes = True
            assert not await svc.flush()
            health = await svc.health_check()
            assert health == {"worker": True, "persistence": False, "overall": False}

            storage.fail_writes = False
            assert await svc.flush()
            assert (await svc.health_check())["overall"]
        finally:
            await svc.close()
