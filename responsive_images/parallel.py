"""
Parallel Processing for the responsive image engine

This module contains the ParallelProcessor class which runs independent
jobs (variant encodes, whole images) on a thread pool.
"""

import multiprocessing as mp
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ParallelProcessor:
    """Thread pool manager with ordered results"""

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers or mp.cpu_count()
        logger.debug(f"Initialized parallel processor with {self.max_workers} workers")

    def map_ordered(self, func: Callable[[T], R], items: Sequence[T]) -> List[R]:
        """Apply func to every item; results come back in submission order

        The first failing item (in submission order) re-raises its exception.
        """
        if len(items) <= 1 or self.max_workers == 1:
            return [func(item) for item in items]

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as executor:
            results = list(executor.map(func, items))

        return results
