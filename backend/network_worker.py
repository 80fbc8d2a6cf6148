"""
Network Worker - runs blocking API calls in background threads.

Uses ThreadPoolExecutor so the UI never blocks on HTTP. Results are
delivered via Qt signals, which Qt queues onto the main thread.

Operations are identified as "<kind>:<seq>" so consumers can tell the
latest request of a kind from superseded ones.
"""

from concurrent.futures import ThreadPoolExecutor, Future
from typing import Callable, Optional
import threading
import traceback
import sys

from PySide6.QtCore import QObject, Signal

from .diagnostics import make_debug_printer, is_debug


_debug_print = make_debug_printer("WORKER")


def make_operation_id(kind: str, seq: int) -> str:
    return f"{kind}:{seq}"


def parse_operation_id(operation_id: str) -> tuple[str, int]:
    """Split "<kind>:<seq>"; returns (kind, -1) when there is no sequence."""
    kind, _, seq = operation_id.rpartition(':')
    if not kind:
        return operation_id, -1
    try:
        return kind, int(seq)
    except ValueError:
        return operation_id, -1


class NetworkWorker(QObject):
    """
    Runs blocking operations in background threads.

    Signals are delivered on the thread that owns the worker (the GUI thread).
    """

    # Args: (operation_id: str, result: object)
    operation_finished = Signal(str, object)

    # Args: (operation_id: str, error_message: str)
    operation_error = Signal(str, str)

    def __init__(self, max_workers: int = 3, parent=None):
        super().__init__(parent)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="network")
        self._pending: dict[str, Future] = {}
        self._lock = threading.Lock()
        self._shut_down = False

    def submit(self, operation_id: str, func: Callable, *args, **kwargs) -> None:
        """
        Submit a blocking operation.

        operation_finished or operation_error is emitted when it completes.
        Submissions after shutdown are ignored.
        """
        if self._shut_down:
            _debug_print(f"Ignoring '{operation_id}' after shutdown")
            return
        future = self._executor.submit(func, *args, **kwargs)
        with self._lock:
            self._pending[operation_id] = future
        future.add_done_callback(lambda f: self._on_done(operation_id, f))

    def _on_done(self, operation_id: str, future: Future) -> None:
        with self._lock:
            if self._pending.get(operation_id) is future:
                del self._pending[operation_id]

        if future.cancelled():
            _debug_print(f"Operation '{operation_id}' cancelled")
            return
        try:
            result = future.result()
        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            _debug_print(f"Operation '{operation_id}' failed: {error_msg}")
            if is_debug():
                traceback.print_exc(file=sys.stderr)
            self.operation_error.emit(operation_id, error_msg)
            return
        self.operation_finished.emit(operation_id, result)

    def is_pending(self, operation_id: str) -> bool:
        with self._lock:
            return operation_id in self._pending

    def cancel(self, operation_id: str) -> bool:
        """
        Attempt to cancel a pending operation.

        Returns True if cancelled, False if already running or completed.
        """
        with self._lock:
            future = self._pending.get(operation_id)
        if future:
            return future.cancel()
        return False

    def cancel_kind(self, kind: str) -> int:
        """Cancel every queued operation of a kind. Returns how many were cancelled."""
        with self._lock:
            futures = [f for op, f in self._pending.items() if parse_operation_id(op)[0] == kind]
        return sum(1 for f in futures if f.cancel())

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the executor, optionally waiting for running operations."""
        self._shut_down = True
        self._executor.shutdown(wait=wait, cancel_futures=True)


# Global worker instance (created lazily)
_global_worker: Optional[NetworkWorker] = None


def get_network_worker() -> NetworkWorker:
    """Get the global NetworkWorker instance."""
    global _global_worker
    if _global_worker is None:
        _global_worker = NetworkWorker()
    return _global_worker


def shutdown_network_worker() -> None:
    """Shutdown the global NetworkWorker without waiting for running calls."""
    global _global_worker
    if _global_worker is not None:
        _global_worker.shutdown(wait=False)
        _global_worker = None
