# persists the session credentials between runs, the client's "local storage"
import asyncio
import os.path
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

TOKEN_KEY = "storefront-token"
USER_KEY = "storefront-user"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS local_storage (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class CredentialStore:
    """
    Two keyed entries in a small sqlite file: the token and the serialized user.
    Both are written together and cleared together, never independently.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @asynccontextmanager
    async def connect(self):
        """Async context manager yielding an aiosqlite connection.

        Ensures the table exists on first use.
        """
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        conn = await aiosqlite.connect(self.path)
        try:
            if not self._initialized:
                async with self._init_lock:
                    if not self._initialized:
                        _logger.debug(f"Initializing credential store at {self.path}")
                        await conn.executescript(_SCHEMA)
                        await conn.commit()
                        self._initialized = True
            yield conn
        finally:
            await conn.close()

    async def load(self) -> Tuple[Optional[str], Optional[str]]:
        """Return (token, user_json); either may be None."""
        async with self.connect() as conn:
            cur = await conn.execute(
                "SELECT key, value FROM local_storage WHERE key IN (?, ?);",
                (TOKEN_KEY, USER_KEY),
            )
            rows = await cur.fetchall()
            await cur.close()
        values = {row[0]: row[1] for row in rows}
        return values.get(TOKEN_KEY), values.get(USER_KEY)

    async def save(self, token: str, user_json: str) -> None:
        async with self.connect() as conn:
            await conn.executemany(
                "INSERT OR REPLACE INTO local_storage(key, value) VALUES (?, ?);",
                [(TOKEN_KEY, token), (USER_KEY, user_json)],
            )
            await conn.commit()

    async def clear(self) -> None:
        async with self.connect() as conn:
            await conn.execute(
                "DELETE FROM local_storage WHERE key IN (?, ?);",
                (TOKEN_KEY, USER_KEY),
            )
            await conn.commit()
