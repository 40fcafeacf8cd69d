"""FastAPI application for the quote service"""

import sys
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger
from pydantic import BaseModel

from quotesync.core.config import settings
from quotesync.core.exceptions import QuoteImportError, QuoteValidationError
from quotesync.core.models import ImportReport, MergePolicy, Quote, SyncReport
from quotesync.reconciliation.reconciler import QuoteReconciler
from quotesync.service.quote_book import QuoteBook
from quotesync.storage.quote_repository import QuoteRepository
from quotesync.storage.sqlite_store import SQLiteKeyValueStore
from quotesync.sync.remote_source import build_source
from quotesync.sync.sync_service import SyncService


# Global state
store: SQLiteKeyValueStore = None
quote_book: QuoteBook = None
sync_service: SyncService = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan (startup/shutdown)"""
    global store, quote_book, sync_service

    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL)

    # Startup
    store = SQLiteKeyValueStore(settings.DB_PATH, scope=settings.STORE_SCOPE)
    await store.connect()

    repository = QuoteRepository(store)
    await repository.seed_defaults()
    await repository.normalize()

    reconciler = QuoteReconciler(settings.MERGE_POLICY)
    sync_service = SyncService(
        repository,
        build_source(store),
        reconciler=reconciler,
        policy=settings.MERGE_POLICY,
    )
    quote_book = QuoteBook(repository, reconciler=reconciler, lock=sync_service.lock)

    if settings.SYNC_ENABLED:
        sync_service.start(settings.SYNC_INTERVAL_SECONDS)

    yield

    # Shutdown
    await sync_service.stop()
    await store.close()


app = FastAPI(
    title="Quote Sync",
    description="Quote of the day with local/remote reconciliation",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(QuoteValidationError)
@app.exception_handler(QuoteImportError)
async def quote_input_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# Request/Response models
class QuoteResponse(BaseModel):
    """Quote for API response"""
    text: str
    category: str
    updatedAt: int

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteResponse":
        return cls(**quote.to_record())


class AddQuoteRequest(BaseModel):
    """Request to add a quote"""
    text: str
    category: str


class CategoryPreferenceRequest(BaseModel):
    """Category filter to remember; null or "all" clears it"""
    category: Optional[str] = None


class CategoriesResponse(BaseModel):
    categories: List[str]
    selected: str


class ConflictResponse(BaseModel):
    """One conflict from the last sync"""
    local: QuoteResponse
    remote: QuoteResponse
    winner: str


class SyncResponse(BaseModel):
    """Result of a sync cycle"""
    skipped: bool
    remote_available: bool
    pushed: bool
    merged_count: int
    conflicts: List[ConflictResponse]

    @classmethod
    def from_report(cls, report: SyncReport) -> "SyncResponse":
        return cls(
            skipped=report.skipped,
            remote_available=report.remote_available,
            pushed=report.pushed,
            merged_count=report.merged_count,
            conflicts=[
                ConflictResponse(
                    local=QuoteResponse.from_quote(c.local),
                    remote=QuoteResponse.from_quote(c.remote),
                    winner=c.winner.value,
                )
                for c in report.conflicts
            ],
        )


def _require_services() -> tuple[QuoteBook, SyncService]:
    if not quote_book or not sync_service:
        raise HTTPException(status_code=503, detail="Quote service not initialized")
    return quote_book, sync_service


# Endpoints
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "Quote Sync",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/quotes", response_model=List[QuoteResponse])
async def list_quotes():
    book, _ = _require_services()
    return [QuoteResponse.from_quote(q) for q in await book.list_quotes()]


@app.get("/quotes/random", response_model=QuoteResponse)
async def random_quote(category: Optional[str] = None):
    """Random quote, filtered by ``category`` or the stored selection"""
    book, _ = _require_services()
    quote = await book.random_quote(category)
    if quote is None:
        raise HTTPException(status_code=404, detail="No quotes in this category.")
    return QuoteResponse.from_quote(quote)


@app.post("/quotes", response_model=QuoteResponse, status_code=201)
async def add_quote(request: AddQuoteRequest):
    book, _ = _require_services()
    quote = await book.add_quote(request.text, request.category)
    return QuoteResponse.from_quote(quote)


@app.get("/categories", response_model=CategoriesResponse)
async def list_categories():
    book, _ = _require_services()
    return CategoriesResponse(
        categories=await book.categories(),
        selected=await book.selected_category(),
    )


@app.put("/preferences/category", response_model=CategoriesResponse)
async def select_category(request: CategoryPreferenceRequest):
    book, _ = _require_services()
    await book.select_category(request.category)
    return CategoriesResponse(
        categories=await book.categories(),
        selected=await book.selected_category(),
    )


@app.get("/session/last-viewed", response_model=Optional[QuoteResponse])
async def last_viewed():
    """Last quote shown in this process; not kept across restarts"""
    book, _ = _require_services()
    return QuoteResponse.from_quote(book.last_viewed) if book.last_viewed else None


@app.post("/import", response_model=ImportReport)
async def import_quotes(request: Request):
    """Import a raw JSON array body"""
    book, _ = _require_services()
    return await book.import_quotes(await request.body())


@app.get("/export")
async def export_quotes():
    book, _ = _require_services()
    return Response(
        content=await book.export_quotes(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="quotes.json"'},
    )


@app.post("/sync", response_model=SyncResponse)
async def sync(policy: Optional[MergePolicy] = None):
    """Reconcile with the remote source now"""
    _, service = _require_services()
    return SyncResponse.from_report(await service.sync_now(policy))


@app.get("/sync/status")
async def sync_status():
    _, service = _require_services()
    report = service.last_report
    return {
        "periodic": service.running,
        "interval_seconds": settings.SYNC_INTERVAL_SECONDS,
        "last_sync": report.synced_at.isoformat() if report else None,
        "last_result": SyncResponse.from_report(report) if report else None,
    }


@app.get("/stats")
async def stats():
    _, service = _require_services()
    return service.get_stats()
