"""Shared pytest conftest hooks for all projects in the monorepo.

Provides common test infrastructure:
- Global test locking (timing-sensitive tests must not share the machine with another pytest run)
- Test suite timing limits (configurable via PYTEST_MAX_DURATION env var)
- Shared markers

Usage in each project's conftest.py:
    from imbue.imbue_common.conftest_hooks import register_conftest_hooks
    register_conftest_hooks(globals())

The register_conftest_hooks function uses a module-level guard so the hooks are only
registered once when several conftest.py files are discovered in the same session.
"""

import fcntl
import os
import time
from pathlib import Path
from typing import Final
from typing import TextIO

import pytest

# The lock file path - a constant location in /tmp so all pytest processes can find it
_GLOBAL_TEST_LOCK_PATH: Final[Path] = Path("/tmp/pytest_waiter_test_lock")

# Attribute name used to store the lock file handle on the session object.
# The handle must stay open for the duration of the test session so the flock is held.
_SESSION_LOCK_HANDLE_ATTR: Final[str] = "_global_test_lock_file_handle"

_LOCAL_MAX_DURATION_SECONDS: Final[float] = 120.0

_CI_MAX_DURATION_SECONDS: Final[float] = 60.0

_SHARED_MARKERS: Final[list[str]] = [
    "timing: marks tests whose assertions depend on wall-clock delays being honored",
]

_registered: bool = False


def _print_lock_message(message: str, fd: int = 2) -> None:
    """Print a message that will show even without pytest's -s flag."""
    os.write(fd, f"\n{message}\n".encode())


def _acquire_global_test_lock(lock_path: Path) -> TextIO:
    """Acquire an exclusive lock on the given path, returning the open file handle.

    The caller must keep the returned handle open for as long as the lock should be held.
    """
    lock_path.touch(exist_ok=True)
    lock_file_handle = lock_path.open("w")

    try:
        fcntl.flock(lock_file_handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        return lock_file_handle
    except BlockingIOError:
        pass

    _print_lock_message(
        "PYTEST GLOBAL LOCK: Another pytest process is running.\n"
        "Waiting for it to complete before starting this test run...",
    )
    fcntl.flock(lock_file_handle.fileno(), fcntl.LOCK_EX)
    _print_lock_message("PYTEST GLOBAL LOCK: Lock acquired, proceeding with tests.")
    return lock_file_handle


def _get_max_suite_duration() -> float:
    if "PYTEST_MAX_DURATION" in os.environ:
        return float(os.environ["PYTEST_MAX_DURATION"])
    if "CI" in os.environ:
        return _CI_MAX_DURATION_SECONDS
    return _LOCAL_MAX_DURATION_SECONDS


@pytest.hookimpl(tryfirst=True)
def _pytest_sessionstart(session: pytest.Session) -> None:
    """Acquire the global test lock, then record the start time.

    The start time is recorded after the lock is acquired so that time spent
    waiting for another run is not counted against the suite time limit.
    """
    lock_handle = _acquire_global_test_lock(lock_path=_GLOBAL_TEST_LOCK_PATH)
    setattr(session, _SESSION_LOCK_HANDLE_ATTR, lock_handle)  # noqa: B010
    setattr(session, "start_time", time.monotonic())  # noqa: B010


@pytest.hookimpl(trylast=True)
def _pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    """Fail the session if the whole suite ran longer than the configured limit."""
    if not hasattr(session, "start_time"):
        return
    duration = time.monotonic() - session.start_time
    max_duration = _get_max_suite_duration()
    if duration > max_duration:
        pytest.exit(
            f"Test suite took {duration:.2f}s, exceeding the {max_duration}s limit",
            returncode=1,
        )


@pytest.hookimpl(tryfirst=True)
def _pytest_configure(config: pytest.Config) -> None:
    """Register shared markers."""
    for marker in _SHARED_MARKERS:
        config.addinivalue_line("markers", marker)


def register_conftest_hooks(namespace: dict) -> None:
    """Register the common conftest hooks into the given namespace (typically globals()).

    The first conftest.py to call this function gets the hooks. Subsequent calls are no-ops.
    """
    global _registered
    if _registered:
        return
    _registered = True

    namespace["pytest_sessionstart"] = _pytest_sessionstart
    namespace["pytest_sessionfinish"] = _pytest_sessionfinish
    namespace["pytest_configure"] = _pytest_configure
