# trophybot/database/tx.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit-or-rollback block on top of SQLAlchemy 2.x autobegin.

    - already inside a transaction -> SAVEPOINT (begin_nested)
    - otherwise -> a new transaction, committed on exit
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield session
    else:
        async with session.begin():
            yield session
