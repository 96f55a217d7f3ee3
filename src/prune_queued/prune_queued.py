"""Remove queued URLs that have already been crawled."""

import logging

from frontier.models import FrontierState
from frontier.store import FrontierStore

logger = logging.getLogger(__name__)


async def prune_queued(store: FrontierStore) -> int:
    """Delete from Queued every URL already Visited or already archived.

    Such entries can be left behind by crawls interrupted between discovery
    and the final state transition. Returns the number of URLs removed.
    """
    queued = await store.list_all(FrontierState.QUEUED)
    logger.info("Checking %d queued urls", len(queued))

    pruned = 0
    for url in queued:
        if await store.exists(FrontierState.VISITED, url) or await store.has_article(url):
            await store.delete(FrontierState.QUEUED, url)
            logger.debug("Pruned %s", url)
            pruned += 1

    logger.info("Pruned %d of %d queued urls", pruned, len(queued))
    return pruned
