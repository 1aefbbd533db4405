"""
This module provides the parallel processing core used to fan out per-page work. The
ParallelProcessingCore class runs an asynchronous processor over a list of items with a
bounded number of concurrent workers, per-item and overall timeouts, and progress logging.
The worker count is derived from CPU and memory headroom reported by psutil.

Results are returned as (index, result) pairs in input order. A failing item is logged and
its exception propagated, so callers that reduce the results never see a silently missing
item.
"""

import asyncio
import os
import time
from typing import List, Dict, Any, Callable, TypeVar, Awaitable, Tuple, Optional

import psutil

from wordswap.app.utils.constant.constant import DEFAULT_BATCH_TIMEOUT, DEFAULT_ITEM_TIMEOUT
from wordswap.app.utils.logging.logger import log_info, log_warning, log_error
from wordswap.app.utils.logging.secure_logging import log_batch_operation
from wordswap.app.utils.system_utils.error_handling import SecurityAwareErrorHandler

# Type variables for generic functions
T = TypeVar("T")
R = TypeVar("R")


class ParallelProcessingCore:
    """
    Core functionality for executing tasks in parallel with monitoring and resource-aware sizing.

    Features:
      - Determine the optimal number of workers from CPU load and memory usage.
      - Process items concurrently under a semaphore with individual and overall timeouts.
      - Track progress and log periodic updates.
      - Return results ordered by input index.
    """

    @classmethod
    def get_optimal_workers(
        cls,
        items_count: int,
        min_workers: int = 1,
        max_workers: int = 8,
    ) -> int:
        """
        Calculate the optimal number of parallel workers based on system resources.

        Args:
            items_count: Total number of items to process.
            min_workers: Minimum number of workers to use.
            max_workers: Maximum number of workers to use.

        Returns:
            The calculated optimal number of workers.
        """
        # Retrieve the number of CPU cores; default to 4 if not available.
        cpu_count = os.cpu_count() or 4
        # Calculate current CPU load as a fraction.
        current_load = psutil.cpu_percent(interval=None) / 100.0
        # Determine current memory usage as a fraction.
        current_memory_usage = psutil.virtual_memory().percent / 100.0
        # Compute the worker count based on CPU availability and current load.
        cpu_based_workers = max(1, int(cpu_count * (1 - current_load * 0.5)))
        # Scale down under memory pressure, never below a quarter of the CPU-based count.
        memory_factor = max(0.25, 1.0 - (current_memory_usage * 1.5))
        memory_based_workers = max(1, int(cpu_based_workers * memory_factor))
        # Limit by the number of items and the configured maximum.
        optimal_workers = min(memory_based_workers, max(items_count, 1), max_workers)
        optimal_workers = max(optimal_workers, min_workers)
        log_info(
            f"Calculated optimal workers: {optimal_workers} (CPU: {cpu_count}, Load: {current_load:.2f}, "
            f"Memory: {current_memory_usage:.2f})"
        )
        return optimal_workers

    @classmethod
    async def process_in_parallel(
        cls,
        items: List[T],
        processor: Callable[[T], Awaitable[R]],
        max_workers: Optional[int] = None,
        batch_timeout: Optional[float] = None,
        item_timeout: Optional[float] = None,
        operation_id: Optional[str] = None,
    ) -> List[Tuple[int, R]]:
        """
        Process a list of items concurrently.

        Args:
            items: A list of items to process.
            processor: An asynchronous function to process each item.
            max_workers: Upper bound for parallel workers; the actual count is resource-aware.
            batch_timeout: Overall timeout for processing the entire batch.
            item_timeout: Timeout for processing an individual item.
            operation_id: Optional unique identifier for the operation.

        Returns:
            A list of (index, result) tuples ordered by index.

        Raises:
            asyncio.TimeoutError: If an item or the whole batch exceeds its timeout.
            Exception: Any exception raised by ``processor`` for an item.
        """
        if not items:
            return []
        operation_id = operation_id or f"parallel_{time.time():.0f}"
        batch_timeout = batch_timeout or DEFAULT_BATCH_TIMEOUT
        item_timeout = item_timeout or DEFAULT_ITEM_TIMEOUT
        start_time = time.time()

        worker_count = cls.get_optimal_workers(len(items), max_workers=max_workers or 8)
        log_info(f"Creating semaphore with {worker_count} workers [operation_id={operation_id}]")
        semaphore = asyncio.Semaphore(worker_count)
        progress_data = cls._init_progress_data(start_time, len(items))

        tasks = [
            asyncio.create_task(
                cls._process_with_semaphore(
                    i, item, semaphore, processor, item_timeout, operation_id, progress_data
                ),
                name=f"{operation_id}_{i}",
            )
            for i, item in enumerate(items)
        ]
        try:
            results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=batch_timeout)
        except Exception as e:
            # Cancel whatever is still running before propagating.
            for task in tasks:
                if not task.done():
                    task.cancel()
            log_error(f"Parallel processing failed: {type(e).__name__} [operation_id={operation_id}]")
            raise

        log_batch_operation(
            f"Parallel processing {operation_id}", len(items), progress_data["completed"], time.time() - start_time
        )
        return sorted(results, key=lambda pair: pair[0])

    @staticmethod
    def _init_progress_data(start_time: float, total_items: int) -> Dict[str, Any]:
        """Initialize the dictionary used to track progress of the batch."""
        return {
            "completed": 0,
            "failed": 0,
            "last_progress_log": start_time,
            "total_items": total_items,
            "start_time": start_time,
        }

    @classmethod
    async def _process_with_semaphore(
        cls,
        index: int,
        item: T,
        semaphore: asyncio.Semaphore,
        processor: Callable[[T], Awaitable[R]],
        item_timeout: float,
        operation_id: str,
        progress_data: Dict[str, Any],
    ) -> Tuple[int, R]:
        """
        Process a single item under semaphore control and within a defined timeout.

        Args:
            index: The index of the item in the list.
            item: The item to be processed.
            semaphore: Semaphore used to limit concurrent processing.
            processor: Asynchronous function to process the item.
            item_timeout: Timeout for processing this item.
            operation_id: Operation identifier.
            progress_data: Dictionary for tracking progress.

        Returns:
            A tuple containing the index and the result of processing.
        """
        async with semaphore:
            try:
                result = await asyncio.wait_for(processor(item), timeout=item_timeout)
            except asyncio.TimeoutError:
                progress_data["failed"] += 1
                log_warning(
                    f"Item {index} processing timed out after {item_timeout}s [operation_id={operation_id}]"
                )
                raise
            except Exception as e:
                progress_data["failed"] += 1
                SecurityAwareErrorHandler.log_processing_error(e, "parallel_processing", f"item_{index}")
                raise
            cls._update_progress(index, operation_id, progress_data)
            return index, result

    @staticmethod
    def _update_progress(index: int, operation_id: str, progress_data: Dict[str, Any]) -> None:
        """
        Update progress metrics and log a progress line every five seconds and on completion.
        """
        progress_data["completed"] += 1
        current_time = time.time()
        elapsed = current_time - progress_data["start_time"]
        total_items = progress_data["total_items"]
        if (current_time - progress_data["last_progress_log"] > 5.0) or (
            progress_data["completed"] == total_items
        ):
            progress = progress_data["completed"] / total_items
            log_info(
                f"Progress: {progress_data['completed']}/{total_items} (Last processed index: {index}, "
                f"{progress * 100:.1f}%), Elapsed: {elapsed:.1f}s [operation_id={operation_id}]"
            )
            progress_data["last_progress_log"] = current_time
