"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Execution engine: runs a preload chain as one cancellable operation.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Literal

from ...preload.errors import TaskRejection
from ...preload.protocols import Cancellable
from ...preload.types import Descriptor, PreloadChain, Single
from ..session import Session

logger = logging.getLogger("navload.runtime")

ChainStatus = Literal["finished", "failed", "cancelled"]

BatchFailurePolicy = Literal["keep", "cancel"]


@dataclass(frozen=True, slots=True)
class ChainResult:
    """
    Terminal result of one chain execution.

    Attributes:
        status: ``finished``, ``failed`` or ``cancelled``.
        elapsed_ms: Wall time from first stage start to settlement.
        error: First failure; also kept for cancelled runs so that redirect
            signals raised while cancelling still reach the classifier.
    """

    status: ChainStatus
    elapsed_ms: float
    error: BaseException | None = None


def _log_late_failure(future: asyncio.Future[Any]) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.debug("Load task failed after its batch had already failed: %r", error)


class ChainExecution:
    """One run of a chain, bound to the session it reports into."""

    def __init__(
        self,
        chain: PreloadChain,
        session: Session,
        *,
        batch_failure_policy: BatchFailurePolicy = "keep",
    ) -> None:
        self.chain = chain
        self.session = session
        self._batch_failure_policy = batch_failure_policy
        self._in_flight: list[Cancellable] = []
        session.attach(self._cancel_in_flight)

    def cancel(self) -> None:
        """
        Cancel cooperatively.

        Later stages are not launched and cancellable in-flight awaitables are
        asked to stop; plain coroutines keep running and their results are
        discarded.
        """
        self.session.cancel()

    def _cancel_in_flight(self) -> None:
        for handle in list(self._in_flight):
            handle.cancel()

    def _track(self, awaitable: Awaitable[Any]) -> None:
        if isinstance(awaitable, Cancellable):
            self._in_flight.append(awaitable)

    def _untrack(self, awaitable: Awaitable[Any]) -> None:
        if awaitable in self._in_flight:
            self._in_flight.remove(awaitable)

    async def run(self) -> ChainResult:
        """Run all stages in order and settle the session exactly once."""
        started = time.monotonic()
        self.session.start()
        error: BaseException | None = None

        try:
            for index, stage in enumerate(self.chain.stages):
                if self.session.cancelled:
                    logger.debug("Chain cancelled before stage %d", index)
                    break
                if isinstance(stage, Single):
                    await self._run_single(stage.descriptor)
                else:
                    await self._run_batch(stage.descriptors)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                self.session.settle("cancelled")
                raise
            if not self.session.cancelled:
                error = TaskRejection("Load task was cancelled outside of its navigation")
        except Exception as exc:
            error = exc

        elapsed_ms = (time.monotonic() - started) * 1000
        if self.session.cancelled:
            self.session.settle("cancelled")
            return ChainResult(status="cancelled", elapsed_ms=elapsed_ms, error=error)
        if error is not None:
            self.session.settle("failed", error)
            return ChainResult(status="failed", elapsed_ms=elapsed_ms, error=error)
        self.session.settle("finished")
        return ChainResult(status="finished", elapsed_ms=elapsed_ms)

    async def _run_single(self, descriptor: Descriptor) -> None:
        awaitable = descriptor.task()
        self._track(awaitable)
        try:
            await awaitable
        finally:
            self._untrack(awaitable)

    async def _run_batch(self, descriptors: tuple[Descriptor, ...]) -> None:
        awaitables = [descriptor.task() for descriptor in descriptors]
        for awaitable in awaitables:
            self._track(awaitable)
        futures = [asyncio.ensure_future(awaitable) for awaitable in awaitables]

        try:
            _, pending = await asyncio.wait(
                futures, return_when=asyncio.FIRST_EXCEPTION
            )
        finally:
            for awaitable in awaitables:
                self._untrack(awaitable)

        # Submission order decides which failure wins when several settled together.
        failure: BaseException | None = None
        interrupted = False
        for future in futures:
            if not future.done():
                continue
            if future.cancelled():
                interrupted = True
                continue
            exc = future.exception()
            if exc is not None and failure is None:
                failure = exc

        if failure is not None:
            for future in pending:
                future.add_done_callback(_log_late_failure)
                if self._batch_failure_policy == "cancel":
                    future.cancel()
            logger.debug(
                "Batch of %d failed with %d sibling(s) still running",
                len(futures),
                len(pending),
            )
            raise failure
        if interrupted and not self.session.cancelled:
            raise TaskRejection("Load task was cancelled outside of its navigation")


class ExecutionEngine:
    """Turns preload chains into cancellable executions."""

    def __init__(self, *, batch_failure_policy: BatchFailurePolicy = "keep") -> None:
        self.batch_failure_policy = batch_failure_policy

    def prepare(self, chain: PreloadChain, session: Session) -> ChainExecution:
        """Bind ``chain`` to ``session``; the session becomes cancellable at once."""
        return ChainExecution(
            chain,
            session,
            batch_failure_policy=self.batch_failure_policy,
        )

    async def execute(self, chain: PreloadChain, session: Session) -> ChainResult:
        return await self.prepare(chain, session).run()
