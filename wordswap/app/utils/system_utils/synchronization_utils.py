"""
Synchronization utilities.

This module provides a thread lock with acquisition timeouts, priority tagging and logging,
plus the process-wide lock that serializes access to the PyMuPDF engine. PyMuPDF does not
support concurrent use from several threads, so every stage that opens, reads or writes a
document holds ``pdf_engine_lock`` while it touches the engine.
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from enum import Enum
from typing import Optional, Generator, Any

from wordswap.app.utils.constant.constant import DEFAULT_LOCK_TIMEOUT, DEFAULT_ENGINE_LOCK_TIMEOUT

# Configure module logger.
logger = logging.getLogger("synchronization_utils")


class LockPriority(Enum):
    """
    Priority levels used to tag locks in log output.

    Higher values are reserved for locks that guard shared engines.
    """
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class TimeoutLock:
    """
    Reentrant thread lock with a default acquisition timeout and detailed logging.
    """

    def __init__(
        self,
        name: str,
        priority: LockPriority = LockPriority.MEDIUM,
        timeout: Optional[float] = None,
        reentrant: bool = True,
    ):
        """
        Initialize a new TimeoutLock.

        Args:
            name (str): Name of the lock for logging and tracking.
            priority (LockPriority): Priority of the lock.
            timeout (Optional[float]): Timeout in seconds; uses default if None.
            reentrant (bool): True for a reentrant lock, False for non-reentrant.
        """
        self.name = name
        # Unique ID so several locks with the same name stay distinguishable in logs.
        self.id = f"{name}_{uuid.uuid4().hex[:8]}"
        self.priority = priority
        self.default_timeout = timeout or DEFAULT_LOCK_TIMEOUT
        self.lock = threading.RLock() if reentrant else threading.Lock()
        self.owner: Optional[int] = None
        # Counter for how many times the lock has been acquired.
        self.acquisition_count = 0
        # Counter for acquisitions that gave up after the timeout.
        self.timeout_count = 0

        logger.debug(
            f"Created lock '{name}' with ID {self.id} (priority={priority.name}, timeout={self.default_timeout}s)"
        )

    def acquire(self, blocking: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Acquire the lock, waiting at most ``timeout`` seconds.

        Args:
            blocking (bool): Whether to block until the lock is acquired.
            timeout (Optional[float]): Timeout value in seconds; if None, uses default.

        Returns:
            bool: True if the lock was acquired, False otherwise.
        """
        thread_name = threading.current_thread().name
        effective_timeout = timeout if timeout is not None else self.default_timeout
        wait_start = time.time()

        # Log contention when another thread currently holds the lock.
        if self.owner is not None and self.owner != threading.get_ident():
            logger.debug(f"Thread {thread_name} waiting for lock '{self.name}' held by {self.owner}")

        if blocking:
            acquired = self.lock.acquire(blocking=True, timeout=effective_timeout)
        else:
            acquired = self.lock.acquire(blocking=False)
        wait_time = time.time() - wait_start

        if acquired:
            self.owner = threading.get_ident()
            self.acquisition_count += 1
            logger.debug(f"Thread {thread_name} acquired lock '{self.name}' after {wait_time:.6f}s wait")
        else:
            self.timeout_count += 1
            logger.warning(
                f"Thread {thread_name} failed to acquire lock '{self.name}' after {wait_time:.6f}s wait "
                f"(timeout={effective_timeout}s)"
            )
        return acquired

    def release(self) -> None:
        """
        Release the lock. Errors from releasing an unowned lock are logged, not raised.
        """
        thread_name = threading.current_thread().name
        try:
            self.lock.release()
            if self.owner == threading.get_ident():
                self.owner = None
            logger.debug(f"Thread {thread_name} released lock '{self.name}'")
        except RuntimeError as e:
            logger.error(f"Error releasing lock '{self.name}': {e}")

    @contextmanager
    def acquire_timeout(
        self, timeout: Optional[float] = None
    ) -> Generator[bool, Any, None]:
        """
        Context manager for acquiring the lock with a timeout.

        Args:
            timeout (Optional[float]): Timeout override in seconds.

        Yields:
            bool: True if the lock was acquired, False otherwise.
        """
        acquired = self.acquire(timeout=timeout)
        try:
            yield acquired
        finally:
            if acquired:
                self.release()


# Process-wide lock guarding every PyMuPDF call.
pdf_engine_lock = TimeoutLock(
    "pymupdf_engine_lock",
    priority=LockPriority.HIGH,
    timeout=DEFAULT_ENGINE_LOCK_TIMEOUT,
)
