"""
Run independent read queries side by side and join their results.

``parallel`` launches every named sub-query at once, waits for all of them
to finish, and either returns every result keyed by name or raises the first
failure seen. Results of the other sub-queries are thrown away on failure,
never returned.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeout

from .errors import StoreError

logger = logging.getLogger(__name__)


def parallel(queries, timeout=None):
    """
    Args:
        queries: mapping of name -> zero-argument callable
        timeout: seconds to wait for the whole set; None waits indefinitely

    Returns:
        dict with the same keys holding each callable's return value
    """
    if not queries:
        return {}

    pool = ThreadPoolExecutor(max_workers=len(queries), thread_name_prefix="aggregate")
    futures = {pool.submit(fn): name for name, fn in queries.items()}
    results = {}
    first_error = None

    try:
        for future in as_completed(futures, timeout=timeout):
            error = future.exception()
            if error is None:
                results[futures[future]] = future.result()
            elif first_error is None:
                logger.warning("Sub-query %r failed: %s", futures[future], error)
                first_error = error
    except FuturesTimeout:
        pool.shutdown(wait=False, cancel_futures=True)
        pending = sorted(name for future, name in futures.items() if not future.done())
        logger.error("Aggregation timed out after %ss waiting for %s", timeout, pending)
        raise StoreError(f"Timed out waiting for {', '.join(pending)}")

    pool.shutdown(wait=True)
    if first_error is not None:
        raise first_error
    return results
