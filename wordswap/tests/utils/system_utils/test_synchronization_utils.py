import threading
import unittest

from wordswap.app.utils.system_utils.synchronization_utils import LockPriority, TimeoutLock, pdf_engine_lock


class TestTimeoutLock(unittest.TestCase):
    """Unit tests for TimeoutLock."""

    # acquire and release update the counters and owner
    def test_acquire_release(self):
        lock = TimeoutLock("unit_lock", priority=LockPriority.LOW, timeout=1)

        self.assertTrue(lock.acquire())
        self.assertEqual(lock.owner, threading.get_ident())
        self.assertEqual(lock.acquisition_count, 1)

        lock.release()

        self.assertIsNone(lock.owner)

    # the context manager yields True and releases on exit
    def test_acquire_timeout_context(self):
        lock = TimeoutLock("unit_lock", timeout=1)

        with lock.acquire_timeout() as acquired:
            self.assertTrue(acquired)

        self.assertIsNone(lock.owner)

    # a reentrant lock can be re-acquired by its owner
    def test_reentrant(self):
        lock = TimeoutLock("unit_lock", timeout=1, reentrant=True)

        with lock.acquire_timeout() as outer:
            with lock.acquire_timeout() as inner:
                self.assertTrue(outer)
                self.assertTrue(inner)

    # a lock held by another thread times out
    def test_timeout_from_other_thread(self):
        lock = TimeoutLock("unit_lock", timeout=1)
        holding = threading.Event()
        release = threading.Event()

        def holder():
            with lock.acquire_timeout():
                holding.set()
                release.wait(2)

        thread = threading.Thread(target=holder)
        thread.start()
        holding.wait(2)

        with lock.acquire_timeout(timeout=0.05) as acquired:
            self.assertFalse(acquired)

        release.set()
        thread.join()
        self.assertEqual(lock.timeout_count, 1)

    # releasing an unheld lock is logged, not raised
    def test_release_unheld(self):
        lock = TimeoutLock("unit_lock", reentrant=False)

        lock.release()

    # the engine lock is high priority
    def test_engine_lock(self):
        self.assertEqual(pdf_engine_lock.priority, LockPriority.HIGH)
        self.assertEqual(pdf_engine_lock.name, "pymupdf_engine_lock")
