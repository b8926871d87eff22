"""
Identifier Resolution

Resolves a company name or ticker to a SEC CIK (and a CIK back to a ticker)
over the SEC company/ticker reference table.
"""
import asyncio
import logging
import time
from typing import Callable, Optional

from .domain import ReferenceTable, format_cik
from .errors import SourceUnavailable
from .ports import ReferenceTableSource

logger = logging.getLogger(__name__)

# Cached "looked up, nothing matched" marker; distinct from a missing key
NOT_FOUND = object()


class ReferenceTableCache:
    """
    Loads the reference table, optionally memoized for `ttl_seconds`.

    ttl_seconds=0 re-fetches on every load.
    """

    def __init__(
        self,
        source: ReferenceTableSource,
        ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.source = source
        self.ttl = ttl_seconds
        self.clock = clock
        self._table: Optional[ReferenceTable] = None
        self._loaded_at = 0.0
        self._lock = asyncio.Lock()

    def _fresh(self) -> bool:
        return self._table is not None and self.clock() - self._loaded_at < self.ttl

    async def load(self) -> ReferenceTable:
        """Return the table; raise SourceUnavailable if it cannot be fetched"""
        if self.ttl > 0 and self._fresh():
            return self._table

        async with self._lock:
            # Another caller may have refreshed while we waited
            if self.ttl > 0 and self._fresh():
                return self._table

            payload = await self.source.fetch_reference_table()
            table = ReferenceTable.from_payload(payload)
            logger.info(f"Loaded reference table: {len(table)} rows")

            if self.ttl > 0:
                self._table = table
                self._loaded_at = self.clock()
            return table


class ResolutionCache:
    """Process-lifetime map of lookup key -> CIK or NOT_FOUND"""

    def __init__(self):
        self._entries: dict[str, object] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> object:
        """Return the cached CIK, NOT_FOUND, or None if never looked up"""
        return self._entries.get(key)

    def set(self, key: str, cik: Optional[str]) -> None:
        self._entries[key] = cik if cik is not None else NOT_FOUND

    def lock_for(self, key: str) -> asyncio.Lock:
        """Per-key lock so concurrent misses scan the table once"""
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def release_lock(self, key: str, lock: asyncio.Lock) -> None:
        """Forget the lock for `key` once its lookup is settled"""
        # A later lock_for may already have replaced it
        if self._locks.get(key) is lock:
            del self._locks[key]


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def match_cik(table: ReferenceTable, name: Optional[str], ticker: Optional[str]) -> Optional[str]:
    """
    Find the CIK for a (name, ticker) pair in one pass.

    Exact ticker equality wins wherever it appears in the table. Otherwise the
    first row whose name equals or contains the search name is used.
    """
    search_name = _normalize(name)
    search_ticker = _normalize(ticker)

    first_name_match = None
    for row in table.rows:
        if search_ticker and row.ticker.lower() == search_ticker:
            return row.cik
        if search_name and first_name_match is None and search_name in row.name.lower():
            first_name_match = row.cik

    return first_name_match


class IdentifierResolver:
    """Resolves names/tickers to CIKs with a cached lookup"""

    def __init__(
        self,
        table_cache: ReferenceTableCache,
        resolution_cache: Optional[ResolutionCache] = None
    ):
        self.table_cache = table_cache
        self.cache = resolution_cache if resolution_cache is not None else ResolutionCache()

    async def resolve(self, name: Optional[str] = None, ticker: Optional[str] = None) -> Optional[str]:
        """Return the 10-digit CIK for a company name or ticker, or None"""
        key = _normalize(ticker) or _normalize(name)
        if not key:
            return None

        lock = self.cache.lock_for(key)
        try:
            async with lock:
                if key in self.cache:
                    cached = self.cache.get(key)
                    return None if cached is NOT_FOUND else cached

                try:
                    table = await self.table_cache.load()
                except SourceUnavailable as e:
                    # Not cached: the next call may succeed
                    logger.warning(f"CIK resolution unavailable for {key!r}: {e}")
                    return None

                cik = match_cik(table, name, ticker)
                self.cache.set(key, cik)
        finally:
            self.cache.release_lock(key, lock)

        logger.info(f"Resolved {key!r} -> {cik}")
        return cik

    async def ticker_for_cik(self, cik: str) -> Optional[str]:
        """Reverse lookup: first ticker listed for a CIK"""
        try:
            padded = format_cik(cik)
            table = await self.table_cache.load()
        except ValueError:
            return None
        except SourceUnavailable as e:
            logger.warning(f"Ticker lookup unavailable for CIK {cik}: {e}")
            return None

        for row in table.rows:
            if row.cik == padded:
                return row.ticker or None
        return None

    async def all_ciks(self) -> list[str]:
        """Ordered, de-duplicated CIK universe of the reference table"""
        try:
            table = await self.table_cache.load()
        except SourceUnavailable as e:
            logger.warning(f"CIK universe unavailable: {e}")
            return []

        seen = set()
        ciks = []
        for row in table.rows:
            if row.cik not in seen:
                seen.add(row.cik)
                ciks.append(row.cik)
        return ciks
