import asyncio
import logging
from typing import List, Sequence

from jobsearch.errors import RateLimitError, RetrievalError
from jobsearch.services.providers.base import RawDocument, SearchProvider
from jobsearch.services.query_builder import EXCLUDE_TEXT, SIMILAR_JOB_DOMAINS, SearchStrategy

logger = logging.getLogger(__name__)


async def _run_strategy(provider: SearchProvider, strategy: SearchStrategy) -> List[RawDocument]:
    logger.info(f"Searching with {strategy.name} ({strategy.search_type}): {strategy.query}")
    return await provider.search(
        strategy.query,
        num_results=strategy.num_results,
        search_type=strategy.search_type,
        include_domains=strategy.include_domains,
        start_published_date=strategy.start_published_date,
        end_published_date=strategy.end_published_date,
        include_text=strategy.include_text,
        exclude_text=strategy.exclude_text,
    )


async def retrieve(provider: SearchProvider, strategies: Sequence[SearchStrategy]) -> List[RawDocument]:
    """
    Run every strategy concurrently and concatenate their documents.

    Documents keep strategy order so deduplication later keeps the copy
    from the earliest strategy. A failed strategy is logged and skipped.

    Raises:
        RateLimitError: every strategy failed and all failures were rate limits
        RetrievalError: every strategy failed
    """
    if not strategies:
        return []

    results = await asyncio.gather(
        *(_run_strategy(provider, strategy) for strategy in strategies),
        return_exceptions=True,
    )

    documents: List[RawDocument] = []
    failures: List[BaseException] = []
    for strategy, result in zip(strategies, results):
        if isinstance(result, BaseException):
            logger.error(f"{strategy.name} strategy failed: {result}")
            failures.append(result)
            continue
        if not result:
            logger.info(f"{strategy.name} strategy returned no results")
        else:
            logger.info(f"{strategy.name} found {len(result)} results")
        documents.extend(result)

    if len(failures) == len(strategies):
        if all(isinstance(f, RateLimitError) for f in failures):
            raise RateLimitError("Search provider rate limit exceeded") from failures[0]
        raise RetrievalError(
            f"All {len(strategies)} search strategies failed: {failures[0]}"
        ) from failures[0]

    return documents


async def retrieve_similar(
    provider: SearchProvider,
    url: str,
    num_results: int,
) -> List[RawDocument]:
    """Find pages similar to a posting; failures are logged and yield no documents."""
    try:
        return await provider.find_similar(
            url,
            num_results=num_results,
            include_domains=SIMILAR_JOB_DOMAINS,
            exclude_text=EXCLUDE_TEXT,
        )
    except RetrievalError as e:
        logger.warning(f"Finding similar jobs to {url} failed: {e}")
        return []
