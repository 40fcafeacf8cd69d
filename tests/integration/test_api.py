"""Integration tests for the HTTP API"""

import json
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from quotesync.api import main
from quotesync.core.models import Quote
from quotesync.service.quote_book import QuoteBook
from quotesync.storage.quote_repository import QuoteRepository
from quotesync.storage.sqlite_store import SQLiteKeyValueStore
from quotesync.sync.remote_source import SimulatedServerSource
from quotesync.sync.sync_service import SyncService


@pytest_asyncio.fixture
async def services(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Wire the app globals to a temporary store (lifespan is not run)"""
    store = SQLiteKeyValueStore(tmp_path / "test_api.db", scope="test")
    await store.connect()

    repository = QuoteRepository(store)
    await repository.save_quotes([Quote(text="A", category="X", updated_at=1)])
    server = SimulatedServerSource(store)
    sync_service = SyncService(repository, server)
    quote_book = QuoteBook(repository, lock=sync_service.lock)

    monkeypatch.setattr(main, "store", store)
    monkeypatch.setattr(main, "quote_book", quote_book)
    monkeypatch.setattr(main, "sync_service", sync_service)

    yield quote_book, sync_service, server
    await store.close()


@pytest_asyncio.fixture
async def client(services) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=main.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestQuoteEndpoints:
    """Quote CRUD surface"""

    @pytest.mark.asyncio
    async def test_root(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    @pytest.mark.asyncio
    async def test_list_quotes(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/quotes")

        assert response.json() == [{"text": "A", "category": "X", "updatedAt": 1}]

    @pytest.mark.asyncio
    async def test_add_quote(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/quotes", json={"text": "B", "category": "Y"})

        assert response.status_code == 201
        assert response.json()["text"] == "B"
        assert len((await client.get("/quotes")).json()) == 2

    @pytest.mark.asyncio
    async def test_add_blank_quote_is_422(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/quotes", json={"text": " ", "category": "Y"})

        assert response.status_code == 422
        assert "fill in both" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_random_quote(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/quotes/random", params={"category": "X"})

        assert response.status_code == 200
        assert response.json()["text"] == "A"
        assert (await client.get("/session/last-viewed")).json()["text"] == "A"

    @pytest.mark.asyncio
    async def test_random_empty_category_is_404(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/quotes/random", params={"category": "Nope"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_category_preference(self, client: httpx.AsyncClient) -> None:
        response = await client.put("/preferences/category", json={"category": "X"})

        assert response.json() == {"categories": ["X"], "selected": "X"}
        assert (await client.get("/categories")).json()["selected"] == "X"


class TestImportExportEndpoints:
    """Raw JSON import and file export"""

    @pytest.mark.asyncio
    async def test_import(self, client: httpx.AsyncClient) -> None:
        body = json.dumps([{"text": "B", "category": "Y"}, {"category": "Y"}])

        response = await client.post("/import", content=body)

        assert response.status_code == 200
        assert response.json() == {"total": 2, "imported": 1, "rejected": 1}

    @pytest.mark.asyncio
    async def test_import_invalid_json_is_422(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/import", content="nope")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_export(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/export")

        assert response.status_code == 200
        assert "quotes.json" in response.headers["content-disposition"]
        assert response.json() == [{"text": "A", "category": "X", "updatedAt": 1}]


class TestSyncEndpoints:
    """On-demand sync and status"""

    @pytest.mark.asyncio
    async def test_sync_reports_conflicts(self, client: httpx.AsyncClient, services) -> None:
        _, _, server = services
        await server.push_quotes([Quote(text="A", category="X", updated_at=5)])

        response = await client.post("/sync")

        body = response.json()
        assert body["merged_count"] == 1
        assert body["pushed"] is True
        assert body["conflicts"][0]["winner"] == "remote"
        assert body["conflicts"][0]["local"]["updatedAt"] == 1

        status = (await client.get("/sync/status")).json()
        assert status["last_sync"] is not None
        assert status["periodic"] is False

    @pytest.mark.asyncio
    async def test_sync_with_policy(self, client: httpx.AsyncClient, services) -> None:
        _, _, server = services
        await server.push_quotes([Quote(text="A", category="X", updated_at=0)])

        response = await client.post("/sync", params={"policy": "remote-wins"})

        assert response.json()["conflicts"][0]["winner"] == "remote"
        assert (await client.get("/quotes")).json()[0]["updatedAt"] == 0

    @pytest.mark.asyncio
    async def test_unknown_policy_is_422(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/sync", params={"policy": "coin-flip"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_stats(self, client: httpx.AsyncClient) -> None:
        await client.post("/sync")

        stats = (await client.get("/stats")).json()

        assert stats["syncs_completed"] == 1
        assert stats["reconciliations"] == 1


@pytest.mark.asyncio
async def test_uninitialized_service_is_503(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "quote_book", None)
    monkeypatch.setattr(main, "sync_service", None)
    transport = httpx.ASGITransport(app=main.app)

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/quotes")

    assert response.status_code == 503
