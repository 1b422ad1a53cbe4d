# file_locking.py

"""
File locking for the YAML store using .lck files as semaphores.

Guards the read-modify-write cycle of the store file so that two processes
(for example two CLI invocations) cannot interleave a check and an insert.
"""

import logging
import os
import time
from pathlib import Path

from beeboard.errors import LockError

logger = logging.getLogger(__name__)

# Default timeout for acquiring locks (seconds)
DEFAULT_LOCK_TIMEOUT = 30.0
# Default retry interval (seconds)
DEFAULT_RETRY_INTERVAL = 0.05
# Maximum lock age before considering stale (seconds)
MAX_LOCK_AGE = 300


class FileLock:
    """
    A simple file-based lock using .lck files.

    Usage:
        with FileLock(store_path):
            # Critical section
            ...
    """

    def __init__(
        self,
        file_path: Path,
        timeout: float = DEFAULT_LOCK_TIMEOUT,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
    ):
        self.file_path = Path(file_path).resolve()
        self.lock_path = self.file_path.with_suffix(self.file_path.suffix + ".lck")
        self.timeout = timeout
        self.retry_interval = retry_interval
        self._held = False

    def _is_lock_stale(self) -> bool:
        """Check if lock file is older than MAX_LOCK_AGE."""
        try:
            return time.time() - self.lock_path.stat().st_mtime > MAX_LOCK_AGE
        except OSError:
            return False

    def _acquire(self) -> bool:
        if self.lock_path.exists() and self._is_lock_stale():
            logger.warning(f"Stale lock detected for {self.file_path}, removing it")
            try:
                self.lock_path.unlink()
            except OSError as e:
                logger.warning(f"Failed to remove stale lock: {e}")
                return False

        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            # O_EXCL makes creation the test-and-set
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            return False
        except OSError as e:
            logger.debug(f"Failed to create lock file: {e}")
            return False
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{os.getpid()} {time.time()}\n")
        return True

    def acquire(self) -> bool:
        """
        Acquire the lock, waiting up to timeout seconds.
        Returns True if lock was acquired, False otherwise.
        """
        start_time = time.time()
        while True:
            if self._acquire():
                self._held = True
                logger.debug(f"Acquired lock for {self.file_path}")
                return True
            if time.time() - start_time >= self.timeout:
                break
            time.sleep(self.retry_interval)

        logger.warning(
            f"Failed to acquire lock for {self.file_path} within {self.timeout}s timeout"
        )
        return False

    def release(self) -> None:
        if not self._held:
            return
        try:
            self.lock_path.unlink()
            logger.debug(f"Released lock for {self.file_path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            raise LockError(f"Failed to release lock for {self.file_path}: {e}") from e
        finally:
            self._held = False

    def __enter__(self):
        if not self.acquire():
            raise LockError(
                f"Could not acquire lock for {self.file_path} within {self.timeout}s"
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
