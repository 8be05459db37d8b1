from __future__ import annotations

import asyncio

import pytest

from fakes import MemoryTrophyStore, ScriptedSource
from trophybot.database.session import Database
from trophybot.database.sql_store import SqlTrophyStore


@pytest.fixture
def store() -> MemoryTrophyStore:
    return MemoryTrophyStore()


@pytest.fixture
def source() -> ScriptedSource:
    return ScriptedSource()


@pytest.fixture
def run_sql(tmp_path):
    """
    run_sql(fn) -> fn(SqlTrophyStore) on a fresh SQLite file, inside one
    event loop (aiosqlite connections are bound to their loop).
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'trophies.db'}"

    def _run(fn):
        async def _main():
            db = Database(url)
            await db.init_models()
            try:
                return await fn(SqlTrophyStore(db))
            finally:
                await db.close()

        return asyncio.run(_main())

    return _run
