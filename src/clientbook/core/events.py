"""Domain events and the in-process event dispatcher.

Events are immutable snapshots taken after a write has committed. They
never hold live ORM rows, so queued listeners can run after the request
session has closed.

Listeners registered with ``queued=False`` run inline inside
``dispatch()`` and their errors propagate to the caller. Queued listeners
are put on an asyncio queue and consumed by a background worker; their
failures are logged and never reach the request that triggered them.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base class for domain events."""


@dataclass(frozen=True, slots=True)
class UserLoggedIn(DomainEvent):
    user_id: int
    user_uuid: str
    username: str
    device_name: str
    ip_address: str | None = None


@dataclass(frozen=True, slots=True)
class UserLoggedOut(DomainEvent):
    user_id: int
    user_uuid: str
    all_devices: bool = False


@dataclass(frozen=True, slots=True)
class CustomerCreated(DomainEvent):
    customer_id: int
    customer_uuid: str
    name: str
    email: str


@dataclass(frozen=True, slots=True)
class CustomerUpdated(DomainEvent):
    customer_id: int
    customer_uuid: str
    changes: dict[str, dict[str, Any]] = field(default_factory=dict)
    """Changed fields as ``{field: {"old": ..., "new": ...}}``."""


@dataclass(frozen=True, slots=True)
class CustomerDeleted(DomainEvent):
    customer_id: int
    customer_uuid: str
    force: bool = False


@dataclass(frozen=True, slots=True)
class CustomerRestored(DomainEvent):
    customer_id: int
    customer_uuid: str


Listener = Callable[[Any], Awaitable[None] | None]


@dataclass(slots=True)
class _QueuedJob:
    listener: Listener
    event: DomainEvent


class EventDispatcher:
    """Routes domain events to registered listeners.

    Example:
        events = EventDispatcher()
        events.listen(CustomerCreated, send_welcome, queued=True)
        await events.start()
        await events.dispatch(CustomerCreated(...))
    """

    def __init__(self) -> None:
        self._listeners: dict[type[DomainEvent], list[tuple[Listener, bool]]] = defaultdict(list)
        self._queue: asyncio.Queue[_QueuedJob] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._running = False
        self._processed = 0
        self._failed = 0

    def listen(
        self,
        event_type: type[DomainEvent],
        listener: Listener,
        *,
        queued: bool = False,
    ) -> None:
        """Register a listener for an event type."""
        self._listeners[event_type].append((listener, queued))

    def listeners_for(self, event_type: type[DomainEvent]) -> list[Listener]:
        return [listener for listener, _ in self._listeners.get(event_type, [])]

    async def dispatch(self, event: DomainEvent) -> None:
        """Deliver an event to its listeners.

        Must only be called after the write that produced the event has
        committed.
        """
        for listener, queued in self._listeners.get(type(event), []):
            if queued:
                self._queue.put_nowait(_QueuedJob(listener=listener, event=event))
            else:
                await _invoke(listener, event)

    async def start(self) -> None:
        """Start the background worker for queued listeners."""
        if self._running:
            return

        self._running = True
        self._worker = asyncio.create_task(self._work())
        logger.info("event_worker_started")

    async def stop(self) -> None:
        """Stop the background worker. Jobs still queued are run first."""
        await self.drain()
        self._running = False
        if self._worker:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        logger.info("event_worker_stopped", processed=self._processed, failed=self._failed)

    async def drain(self) -> None:
        """Run every queued job and wait until the queue is empty."""
        while True:
            try:
                job = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            await self._run(job)
        # a job picked up by the worker may still be in flight
        await self._queue.join()

    async def _work(self) -> None:
        while self._running:
            job = await self._queue.get()
            await self._run(job)

    async def _run(self, job: _QueuedJob) -> None:
        try:
            await _invoke(job.listener, job.event)
            self._processed += 1
        except Exception as exc:
            self._failed += 1
            logger.exception(
                "listener_failed",
                listener=getattr(job.listener, "__qualname__", type(job.listener).__name__),
                event=type(job.event).__name__,
                error=str(exc),
            )
        finally:
            self._queue.task_done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def get_stats(self) -> dict[str, int]:
        return {
            "pending": self.pending,
            "processed": self._processed,
            "failed": self._failed,
        }


async def _invoke(listener: Listener, event: DomainEvent) -> None:
    result = listener(event)
    if inspect.isawaitable(result):
        await result
