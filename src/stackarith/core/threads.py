"""Tile-parallel executor.

Splits a flat index space ``[0, count)`` into contiguous partitions, runs
one worker per partition on a thread pool that lives only for the call,
and joins all of them before returning. Workers read shared inputs and
write disjoint output elements, so no locking is needed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List

import numpy as np

from stackarith.errors import OperandValueError

__all__ = ["partition", "spin_off"]

logger = logging.getLogger(__name__)


def partition(count: int, num_threads: int) -> List[np.ndarray]:
    """Contiguous, disjoint index arrays covering ``range(count)``.

    Fewer than ``num_threads`` partitions are returned when there are fewer
    elements than threads. ``count == 0`` gives an empty list.
    """
    if num_threads < 1:
        raise OperandValueError(f"number of threads must be positive, not {num_threads}")
    if count <= 0:
        return []
    nparts = min(num_threads, count)
    return np.array_split(np.arange(count, dtype=np.intp), nparts)


def spin_off(worker: Callable[[np.ndarray, Any], None], count: int,
             num_threads: int, params: Any = None) -> None:
    """Run ``worker(indices, params)`` on every partition and wait for all.

    Parameters
    ----------
    worker : callable
        Called once per partition with that partition's flat indices and
        the shared ``params`` object.
    count : int
        Number of output elements.
    num_threads : int
        Maximum number of concurrent workers.
    params : object
        Read-only inputs plus the output array, shared by all workers.

    Raises
    ------
    Exception
        The first exception raised by any worker, after every partition has
        finished. There is no partial result.
    """
    parts = partition(count, num_threads)
    if not parts:
        return

    if len(parts) == 1:
        worker(parts[0], params)
        return

    logger.debug("Spinning off %d workers for %d elements", len(parts), count)
    with ThreadPoolExecutor(max_workers=len(parts),
                            thread_name_prefix="stackarith") as pool:
        futures = [pool.submit(worker, indices, params) for indices in parts]
    # Leaving the pool context is the join barrier.
    for future in futures:
        future.result()
