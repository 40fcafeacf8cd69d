"""Initialize the quote store and seed the starter quotes"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from quotesync.core.config import settings
from quotesync.storage.quote_repository import QuoteRepository
from quotesync.storage.sqlite_store import SQLiteKeyValueStore


async def init_database() -> None:
    """Create the database and write the default quotes if the store is empty"""
    store = SQLiteKeyValueStore(settings.DB_PATH, scope=settings.STORE_SCOPE)
    await store.connect()

    try:
        print(f"Quote store at: {settings.DB_PATH} (scope={settings.STORE_SCOPE})")
        repository = QuoteRepository(store)
        if await repository.seed_defaults():
            print(f"✓ Seeded {len(settings.DEFAULT_QUOTES)} default quotes")
        elif await repository.normalize():
            print("✓ Stored quotes normalized")
        else:
            print("✓ Store already initialized")
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(init_database())
