"""
Acceleration Module

Concurrent execution of independent units of work:
- PartitionParallelExecutor: ordered thread-pool map with atomic failure
"""

from .parallel_executor import PartitionParallelExecutor, default_worker_count

__all__ = [
    "PartitionParallelExecutor",
    "default_worker_count",
]
