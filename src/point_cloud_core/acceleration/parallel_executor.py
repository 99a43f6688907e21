"""
Parallel execution infrastructure for partition-based processing.

Provides PartitionParallelExecutor for distributing independent units of
work (resolution partitions) across worker threads. Workers only read
shared inputs and return their own results; the caller assembles them.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def default_worker_count() -> int:
    """cpu_count - 1, leaving one core for coordination. Minimum is 1."""
    return max(1, (os.cpu_count() or 1) - 1)


class PartitionParallelExecutor:
    """
    Parallel executor for partition-based processing.

    Distributes partitions to a thread pool and collects results in the
    same order as the input. A failing partition does not produce a partial
    result: after all submitted partitions have finished, the first failure
    (in input order) is re-raised unchanged so callers can handle its type.

    Example:
        executor = PartitionParallelExecutor(n_workers=4)
        results = executor.map_partitions(
            partitions=partition_list,
            worker_fn=transform_partition,
            worker_kwargs={'target_frame_id': 'map'}
        )
    """

    def __init__(self, n_workers: Optional[int] = None):
        """
        Initialize parallel executor.

        Args:
            n_workers: Number of worker threads. If None, uses cpu_count - 1.
                Minimum is 1 (sequential processing).
        """
        if n_workers is None:
            n_workers = default_worker_count()
        else:
            n_workers = max(1, int(n_workers))

        self.n_workers = n_workers
        logger.debug(
            f"Initialized PartitionParallelExecutor with {self.n_workers} workers "
            f"(total CPUs: {os.cpu_count()})"
        )

    @classmethod
    def from_config(cls, parallel_config) -> "PartitionParallelExecutor":
        """Create from a ParallelConfig section (disabled means one worker)."""
        if not parallel_config.enabled:
            return cls(n_workers=1)
        return cls(n_workers=parallel_config.n_workers)

    def map_partitions(
        self,
        partitions: List[Any],
        worker_fn: Callable,
        worker_kwargs: Optional[Dict[str, Any]] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> List[Any]:
        """
        Map worker function over partitions.

        Args:
            partitions: List of partitions to process
            worker_fn: Function with signature worker_fn(partition, **worker_kwargs) -> result
            worker_kwargs: Fixed keyword arguments passed to each worker call
            progress_callback: Optional callback called after each partition
                completes. Signature: callback(completed_count, total_count)

        Returns:
            List of results in same order as input partitions

        Raises:
            Exception: The first exception raised by a worker, in input order
        """
        worker_kwargs = worker_kwargs or {}
        n_partitions = len(partitions)

        if n_partitions == 0:
            logger.debug("No partitions to process")
            return []

        start_time = time.perf_counter()

        # If only 1 worker or 1 partition, use sequential processing (no pool overhead)
        if self.n_workers == 1 or n_partitions == 1:
            results = []
            for i, partition in enumerate(partitions):
                try:
                    results.append(worker_fn(partition, **worker_kwargs))
                except Exception as e:
                    logger.error(f"Error processing partition {i}: {type(e).__name__}: {e}")
                    raise
                if progress_callback:
                    progress_callback(i + 1, n_partitions)

            logger.debug(
                f"Sequential processing complete: {n_partitions} partitions in "
                f"{time.perf_counter() - start_time:.3f}s"
            )
            return results

        results = self._parallel_map(partitions, worker_fn, worker_kwargs, progress_callback)
        logger.debug(
            f"Parallel processing complete: {n_partitions} partitions with {self.n_workers} "
            f"workers in {time.perf_counter() - start_time:.3f}s"
        )
        return results

    def _parallel_map(
        self,
        partitions: List[Any],
        worker_fn: Callable,
        worker_kwargs: Dict[str, Any],
        progress_callback: Optional[Callable],
    ) -> List[Any]:
        n_partitions = len(partitions)
        results_dict: Dict[int, Any] = {}
        errors: List[Tuple[int, BaseException]] = []

        n_threads = min(self.n_workers, n_partitions)
        with ThreadPoolExecutor(max_workers=n_threads, thread_name_prefix="partition") as pool:
            futures = {
                pool.submit(worker_fn, partition, **worker_kwargs): idx
                for idx, partition in enumerate(partitions)
            }
            for completed, future in enumerate(as_completed(futures), start=1):
                idx = futures[future]
                error = future.exception()
                if error is not None:
                    errors.append((idx, error))
                    logger.error(f"Partition {idx} failed: {type(error).__name__}: {error}")
                else:
                    results_dict[idx] = future.result()

                if progress_callback:
                    progress_callback(completed, n_partitions)

        if errors:
            errors.sort(key=lambda item: item[0])
            logger.error(f"{len(errors)} partitions failed out of {n_partitions}")
            raise errors[0][1]

        return [results_dict[i] for i in range(n_partitions)]
