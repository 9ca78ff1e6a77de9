from __future__ import annotations

import json
import time
from collections.abc import Iterable as IterABC
from dataclasses import dataclass
from typing import Any, Optional

import aiosqlite

try:
    import asyncpg  # type: ignore
except Exception:  # pragma: no cover
    asyncpg = None  # type: ignore

from kbot.config import DATABASE_URL, SQLITE_PATH
from kbot.models import GuildSettings


SCHEMA_SQLITE = """
CREATE TABLE IF NOT EXISTS guild_settings (
    guild_id INTEGER PRIMARY KEY,
    document TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);
"""

SCHEMA_POSTGRES = """
CREATE TABLE IF NOT EXISTS guild_settings (
    guild_id BIGINT PRIMARY KEY,
    document TEXT NOT NULL,
    updated_at BIGINT NOT NULL
);
"""

UPSERT_SETTINGS = """
INSERT INTO guild_settings (guild_id, document, updated_at)
VALUES (?, ?, ?)
ON CONFLICT(guild_id)
DO UPDATE SET document = excluded.document,
              updated_at = excluded.updated_at
"""


class DBX:
    dialect: str

    @staticmethod
    def _norm_params(params: Any | None) -> list[Any]:
        """Normalize params into a list. Accepts scalars (int, str, etc.)."""
        if params is None:
            return []
        if isinstance(params, (list, tuple)):
            return list(params)
        # Don't treat strings/bytes as iterables for SQL params
        if isinstance(params, (str, bytes, bytearray)):
            return [params]
        if isinstance(params, IterABC):
            return list(params)
        return [params]

    def _q(self, sql: str) -> str:
        raise NotImplementedError

    async def execute(self, sql: str, params: Any = None) -> Any:
        raise NotImplementedError

    async def fetchone(self, sql: str, params: Any = None) -> Optional[Any]:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    # ---------------------------
    # Guild settings documents
    # ---------------------------
    async def get_guild_settings(self, guild_id: int) -> Optional[GuildSettings]:
        row = await self.fetchone(
            "SELECT document FROM guild_settings WHERE guild_id=?",
            (int(guild_id),),
        )
        if row is None:
            return None
        doc = json.loads(str(row["document"]) or "{}")
        if not isinstance(doc, dict):
            doc = {}
        return GuildSettings(guild_id=int(guild_id), document=doc)

    async def save_guild_settings(self, settings: GuildSettings) -> GuildSettings:
        await self.execute(
            UPSERT_SETTINGS,
            (int(settings.guild_id), json.dumps(settings.document, sort_keys=True), int(time.time())),
        )
        return settings

    async def ensure_guild_settings(self, guild_id: int) -> GuildSettings:
        existing = await self.get_guild_settings(guild_id)
        if existing is not None:
            return existing
        return await self.save_guild_settings(GuildSettings(guild_id=int(guild_id)))

    async def set_module_flag(self, guild_id: int, category: str, enabled: bool) -> GuildSettings:
        current = await self.ensure_guild_settings(guild_id)
        updated = current.with_module_flag(category, enabled)
        return await self.save_guild_settings(updated)


@dataclass
class SQLiteDBX(DBX):
    sqlite_path: str
    dialect: str = "sqlite"
    _conn: Optional[aiosqlite.Connection] = None

    async def init(self) -> "SQLiteDBX":
        self._conn = await aiosqlite.connect(self.sqlite_path)
        # Return rows as dict-like objects (so code can do row["col"]) like asyncpg.
        self._conn.row_factory = aiosqlite.Row
        await self._conn.executescript(SCHEMA_SQLITE)
        await self._conn.commit()
        return self

    def _q(self, sql: str) -> str:
        return sql

    async def execute(self, sql: str, params: Any = None) -> Any:
        assert self._conn is not None
        cur = await self._conn.execute(self._q(sql), tuple(self._norm_params(params)))
        await self._conn.commit()
        return cur.rowcount

    async def fetchone(self, sql: str, params: Any = None) -> Optional[Any]:
        assert self._conn is not None
        cur = await self._conn.execute(self._q(sql), tuple(self._norm_params(params)))
        return await cur.fetchone()

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None


@dataclass
class PostgresDBX(DBX):
    url: str
    dialect: str = "postgres"
    _pool: Any = None

    async def init(self) -> "PostgresDBX":
        if asyncpg is None:
            raise RuntimeError("asyncpg is not installed")
        self._pool = await asyncpg.create_pool(self.url, min_size=1, max_size=10, command_timeout=60)
        # asyncpg does not reliably accept multi-statement SQL via a single execute call.
        stmts = [s.strip() for s in SCHEMA_POSTGRES.split(";") if s.strip()]
        for s in stmts:
            await self.execute(s + ";")
        return self

    def _q(self, sql: str) -> str:
        # Replace ? -> $1, $2...
        out = []
        i = 1
        for ch in sql:
            if ch == "?":
                out.append(f"${i}")
                i += 1
            else:
                out.append(ch)
        return "".join(out)

    async def execute(self, sql: str, params: Any = None) -> Any:
        assert self._pool is not None
        async with self._pool.acquire() as conn:
            return await conn.execute(self._q(sql), *self._norm_params(params))

    async def fetchone(self, sql: str, params: Any = None) -> Optional[Any]:
        assert self._pool is not None
        async with self._pool.acquire() as conn:
            return await conn.fetchrow(self._q(sql), *self._norm_params(params))

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None


async def init_db(url: str | None = None, sqlite_path: str | None = None) -> DBX:
    """Initialize DB.

    - If url (default: config DATABASE_URL) looks like Postgres -> PostgresDBX
    - Else -> SQLiteDBX (local dev, default path: config SQLITE_PATH)
    """
    url = (url if url is not None else DATABASE_URL).strip()
    u = url.lower()
    is_pg = u.startswith("postgres://") or u.startswith("postgresql://")
    if is_pg:
        return await PostgresDBX(url=url).init()
    path = sqlite_path if sqlite_path is not None else SQLITE_PATH
    return await SQLiteDBX(sqlite_path=path).init()
