"""
Batched Retrieval

Rate-limited fan-out over a large entity universe, and aggregation of the
per-entity results into a deduplicated, recency-sorted filing list.
"""
import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Iterable, Sequence

from .domain import Filing

logger = logging.getLogger(__name__)

PerEntityFetch = Callable[[str], Awaitable[list[Filing]]]

# SEC allows ~10 requests/second without an authenticated tier
DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY = 0.6


class BatchFetcher:
    """
    Fetches per-entity records in sequential, delay-spaced windows.

    Fetches inside a window run concurrently. Window n, including the delay
    after it, completes before window n+1 is issued.
    """

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        inter_batch_delay: float = DEFAULT_BATCH_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.batch_size = batch_size
        self.inter_batch_delay = inter_batch_delay
        self.sleep = sleep

    async def _fetch_one(self, entity: str, fetch: PerEntityFetch) -> list[Filing]:
        try:
            return list(await fetch(entity) or [])
        except Exception as e:
            logger.warning(f"Fetch failed for {entity}, treating as no results: {e}")
            return []

    async def fetch_all(self, entities: Sequence[str], fetch: PerEntityFetch) -> AsyncIterator[list[Filing]]:
        """
        Yield one result list per entity, window by window.

        Stop iterating to stop the scan: no further window is issued once the
        consumer breaks out.
        """
        for start in range(0, len(entities), self.batch_size):
            window = entities[start:start + self.batch_size]
            results = await asyncio.gather(*(self._fetch_one(e, fetch) for e in window))

            for result in results:
                yield result

            if start + self.batch_size < len(entities):
                await self.sleep(self.inter_batch_delay)


def aggregate(per_entity_results: Iterable[Iterable[Filing]], limit: int) -> list[Filing]:
    """
    Deduplicate, sort newest first, then truncate.

    First occurrence of a (cik, accession_number) wins. The sort is stable, so
    same-date filings keep discovery order.
    """
    seen = set()
    filings = []
    for result in per_entity_results:
        for filing in result:
            if filing.key not in seen:
                seen.add(filing.key)
                filings.append(filing)

    filings.sort(key=lambda f: f.filing_date, reverse=True)
    return filings[:max(limit, 0)]


async def collect_latest(
    fetcher: BatchFetcher,
    entities: Sequence[str],
    fetch: PerEntityFetch,
    limit: int
) -> list[Filing]:
    """
    Scan entities until `limit` distinct filings are collected.

    The scan stops on candidates, before sorting, so the result is the most
    recent of what was found rather than of the whole universe.
    """
    if limit <= 0:
        return []

    collected: list[Filing] = []
    seen = set()
    scanned = 0

    stream = fetcher.fetch_all(entities, fetch)
    try:
        async for result in stream:
            scanned += 1
            for filing in result:
                if filing.key in seen:
                    continue
                seen.add(filing.key)
                collected.append(filing)
                if len(collected) >= limit:
                    break
            if len(collected) >= limit:
                break
    finally:
        await stream.aclose()

    logger.info(f"Collected {len(collected)} filings after scanning {scanned}/{len(entities)} entities")
    return aggregate([collected], limit)
