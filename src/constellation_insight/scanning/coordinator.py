"""Per-workspace single-flight gate for external scans.

At most one scan per workspace root is in flight in this process. Callers
arriving while a scan is pending attach to its shared future and observe
exactly that scan's outcome, success or failure. Thread callers (``run``)
and asyncio callers (``run_async``) share the same pending map.

Coordination is per process; separate OS processes each run their own scans.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Optional

from ..exceptions import ScanCancelledError, ScanError, ScanTimeoutError
from ..graph.models import GraphSnapshot
from ..logging_config import get_logger

logger = get_logger(__name__)

ScanFn = Callable[[], GraphSnapshot]


@dataclass(frozen=True)
class ScanTicket:
    """A caller's handle on the pending scan for one workspace root."""

    workspace_root: str
    future: Future
    started_new: bool

    @property
    def already_pending(self) -> bool:
        return not self.started_new


def _as_scan_error(exc: Exception, workspace_root: str) -> ScanError:
    if isinstance(exc, ScanError):
        return exc
    return ScanError(str(exc) or type(exc).__name__, workspace_root)


def _check_owner(ticket: ScanTicket) -> None:
    if not ticket.started_new:
        raise RuntimeError("only the ticket that started a scan can complete it")


class ScanCoordinator:
    """Thread-safe single-flight registry of pending scans."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[str, Future] = {}
        # Abandoned leader future -> future for callers who arrive while its scan drains
        self._draining: dict[Future, Future] = {}

    def acquire(self, workspace_root: str) -> ScanTicket:
        """Attach to the pending scan for ``workspace_root`` or register a new one.

        The ticket with ``started_new`` set owns the scan and must finish it
        with ``resolve`` or ``reject``.
        """
        with self._lock:
            future = self._pending.get(workspace_root)
            if future is not None:
                return ScanTicket(workspace_root, future, started_new=False)
            future = Future()
            self._pending[workspace_root] = future
            return ScanTicket(workspace_root, future, started_new=True)

    def resolve(self, ticket: ScanTicket, snapshot: GraphSnapshot) -> None:
        self._release(ticket).set_result(snapshot)

    def reject(self, ticket: ScanTicket, error: BaseException) -> None:
        self._release(ticket).set_exception(error)

    def abandon(self, ticket: ScanTicket, error: BaseException) -> bool:
        """Fail everyone waiting on ``ticket`` while its scan keeps running.

        The root stays pending until the scan really finishes. Callers that
        arrive in the meantime attach to a draining future which receives the
        late outcome. Returns False if the scan had already finished.
        """
        _check_owner(ticket)
        root = ticket.workspace_root
        with self._lock:
            if self._pending.get(root) is not ticket.future:
                return False
            drain: Future = Future()
            self._pending[root] = drain
            self._draining[ticket.future] = drain
        ticket.future.set_exception(error)
        return True

    def _release(self, ticket: ScanTicket) -> Future:
        # The pending entry goes first so anyone woken by the future and
        # calling again can start a fresh scan.
        _check_owner(ticket)
        with self._lock:
            drain = self._draining.pop(ticket.future, None)
            owned = ticket.future if drain is None else drain
            if self._pending.get(ticket.workspace_root) is owned:
                del self._pending[ticket.workspace_root]
        return owned

    def is_pending(self, workspace_root: str) -> bool:
        with self._lock:
            return workspace_root in self._pending

    def pending_roots(self) -> list[str]:
        with self._lock:
            return sorted(self._pending)

    def _execute(self, ticket: ScanTicket, scan: ScanFn) -> None:
        """Run the owner's scan and settle the shared future with its outcome."""
        logger.debug(f"Starting scan for {ticket.workspace_root}")
        try:
            snapshot = scan()
        except Exception as exc:
            error = _as_scan_error(exc, ticket.workspace_root)
            if error is not exc:
                error.__cause__ = exc
            self.reject(ticket, error)
        except BaseException:
            self.reject(ticket, ScanCancelledError(ticket.workspace_root))
            raise
        else:
            self.resolve(ticket, snapshot)

    # ── Thread callers ─────────────────────────────────────────────

    def run(
        self,
        workspace_root: str,
        scan: ScanFn,
        wait_timeout: Optional[float] = None,
    ) -> GraphSnapshot:
        """Run ``scan`` unless one is already pending, then return the shared result.

        Raises:
            ScanError: The scan failed (all attached callers get the same error)
            ScanTimeoutError: This caller gave up waiting on another caller's scan
        """
        ticket = self.acquire(workspace_root)
        if ticket.already_pending:
            logger.debug(f"Attached to pending scan for {workspace_root}")
            return self._wait(ticket, wait_timeout)

        self._execute(ticket, scan)
        return ticket.future.result()

    def _wait(self, ticket: ScanTicket, timeout: Optional[float]) -> GraphSnapshot:
        try:
            return ticket.future.result(timeout=timeout)
        except FutureTimeoutError:
            raise ScanTimeoutError(timeout or 0, ticket.workspace_root) from None

    # ── Asyncio callers ────────────────────────────────────────────

    async def run_async(
        self,
        workspace_root: str,
        scan: ScanFn,
        timeout: Optional[float] = None,
    ) -> GraphSnapshot:
        """Asyncio twin of ``run``.

        The owning task runs the blocking scan in a worker thread. ``timeout``
        bounds both the owner's wait and a follower's wait. A worker thread
        cannot be stopped, so an owner that times out or is cancelled abandons
        the scan: attached callers fail with ``ScanTimeoutError`` or
        ``ScanCancelledError`` and the root stays pending until the thread
        finishes. Cancelling a follower never cancels the shared scan.
        """
        ticket = self.acquire(workspace_root)
        if ticket.already_pending:
            logger.debug(f"Attached to pending scan for {workspace_root}")
            return await self._wait_async(ticket, timeout)

        asyncio.get_running_loop().run_in_executor(None, self._execute, ticket, scan)
        waiter = asyncio.shield(asyncio.wrap_future(ticket.future))
        try:
            return await (asyncio.wait_for(waiter, timeout) if timeout else waiter)
        except asyncio.TimeoutError:
            error = ScanTimeoutError(timeout or 0, workspace_root)
            if self.abandon(ticket, error):
                logger.warning(
                    f"Scan for {workspace_root} exceeded {timeout:g}s; "
                    "no new scan starts until it finishes"
                )
            raise error from None
        except asyncio.CancelledError:
            self.abandon(ticket, ScanCancelledError(workspace_root))
            raise

    async def _wait_async(self, ticket: ScanTicket, timeout: Optional[float]) -> GraphSnapshot:
        waiter = asyncio.shield(asyncio.wrap_future(ticket.future))
        try:
            if timeout is None:
                return await waiter
            return await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError:
            raise ScanTimeoutError(timeout or 0, ticket.workspace_root) from None
