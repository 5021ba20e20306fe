"""
Kubernetes watching/streaming and the per-key queueing of the reconciliations.

Every watched resource kind is streamed in a separate asyncio task
in the never-ending loop (see :func:`watcher`). The watch-events are converted
to the keys of the associations by the processors (see :mod:`processing`),
and the keys are put to the shared work queue.

The work queue deduplicates the keys: a key added several times before
it is taken by a worker is reconciled once. A key is never given to two workers
at the same time: if it is added while being reconciled, it is put back to
the queue only when the current reconciliation is done.

The workers take the keys from the queue and reconcile them. The outcome
of every reconciliation decides if and when the key is added again: after
a fixed delay (e.g. for the pending associations), or with the error backoff.
"""
import asyncio
import collections.abc
import dataclasses
import enum
import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Protocol

from kassoc._cogs.aiokits import aiotasks
from kassoc._cogs.clients import watching
from kassoc._cogs.configs import configuration
from kassoc._cogs.structs import bodies, references
from kassoc._core.actions import requeueing

logger = logging.getLogger(__name__)


class WatchStreamProcessor(Protocol):
    async def __call__(
            self,
            *,
            raw_event: bodies.RawEvent,
    ) -> None:
        ...


class Reconciler(Protocol):
    async def reconcile(self, key: references.ObjectKey) -> requeueing.Outcome:
        ...


# An end-of-stream marker sent from the queue to the workers.
class EOS(enum.Enum):
    token = enum.auto()


if TYPE_CHECKING:
    KeysQueue = asyncio.Queue[references.ObjectKey | EOS]
else:
    KeysQueue = asyncio.Queue


@dataclasses.dataclass
class Backoff:
    delays: Iterator[float]
    last: float = 0


class WorkQueue:
    """
    A queue of keys with deduplication, delayed additions, and error backoffs.

    The keys are "dirty" when they are queued, and "processing" when taken
    by a worker and not yet marked as done. A dirty key can be processing
    at the same time: it means it was changed during its reconciliation.
    """

    def __init__(self, *, settings: configuration.OperatorSettings) -> None:
        super().__init__()
        self._settings = settings
        self._queue: KeysQueue = asyncio.Queue()
        self._dirty: set[references.ObjectKey] = set()
        self._processing: set[references.ObjectKey] = set()
        self._timers: dict[references.ObjectKey, asyncio.TimerHandle] = {}
        self._backoffs: dict[references.ObjectKey, Backoff] = {}
        self._closed = False

    def __len__(self) -> int:
        return len(self._dirty)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, key: references.ObjectKey) -> None:
        if self._closed or key in self._dirty:
            return
        self._dirty.add(key)
        if key not in self._processing:
            self._queue.put_nowait(key)

    def add_after(self, key: references.ObjectKey, delay: float) -> None:
        """
        Add the key after a delay. Of several delayed additions, the earliest one wins.
        """
        if self._closed:
            return
        if delay <= 0:
            self.add(key)
            return

        loop = asyncio.get_running_loop()
        when = loop.time() + delay
        timer = self._timers.get(key)
        if timer is not None and timer.when() <= when:
            return
        if timer is not None:
            timer.cancel()
        self._timers[key] = loop.call_at(when, self._add_delayed, key)

    def _add_delayed(self, key: references.ObjectKey) -> None:
        self._timers.pop(key, None)
        self.add(key)

    def add_rate_limited(self, key: references.ObjectKey) -> None:
        """
        Add the key after the next backoff delay: the more failures, the longer.

        When the configured delays are over, the last one is used again.
        """
        backoff = self._backoffs.get(key)
        if backoff is None:
            backoff = self._backoffs[key] = Backoff(iter(self._settings.queueing.error_delays))
        backoff.last = next(backoff.delays, backoff.last)
        self.add_after(key, backoff.last)

    def forget(self, key: references.ObjectKey) -> None:
        """ Reset the backoff delays of the key (e.g. after a success). """
        self._backoffs.pop(key, None)

    async def get(self) -> references.ObjectKey | None:
        """
        Take the next key for processing, or ``None`` if the queue is shut down.
        """
        key = await self._queue.get()
        if isinstance(key, EOS):
            self._queue.put_nowait(key)  # for other workers.
            return None
        self._dirty.discard(key)
        self._processing.add(key)
        return key

    def done(self, key: references.ObjectKey) -> None:
        self._processing.discard(key)
        if key in self._dirty and not self._closed:
            self._queue.put_nowait(key)

    def shutdown(self) -> None:
        """
        Stop accepting new keys, and let the workers exit after the current keys.
        """
        self._closed = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._queue.put_nowait(EOS.token)


async def watcher(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        processor: WatchStreamProcessor,
) -> None:
    """
    Watch one resource kind in one namespace (or cluster-wide) and process the events.

    The watcher is a never-ending task (unless an error happens or it is cancelled).
    The processors are fast and never block: they only put the keys to the queue.
    """
    stream = watching.infinite_watch(
        settings=settings,
        resource=resource,
        namespace=namespace,
    )
    async for raw_event in stream:

        # Whatever is bookmarked there, don't let it go to the processor.
        if isinstance(raw_event, watching.Bookmark):
            continue

        await processor(raw_event=raw_event)


async def worker(
        *,
        queue: WorkQueue,
        reconciler: Reconciler,
        settings: configuration.OperatorSettings,
) -> None:
    """
    Take the keys from the queue and reconcile them one by one until shut down.
    """
    while True:
        key = await queue.get()
        if key is None:
            break
        try:
            await reconcile_key(key=key, queue=queue, reconciler=reconciler, settings=settings)
        finally:
            queue.done(key)


async def reconcile_key(
        *,
        key: references.ObjectKey,
        queue: WorkQueue,
        reconciler: Reconciler,
        settings: configuration.OperatorSettings,
) -> None:
    """
    Reconcile a single key within the time limits, and re-queue it as decided.
    """
    try:
        outcome = await asyncio.wait_for(
            reconciler.reconcile(key),
            timeout=settings.queueing.reconcile_timeout,
        )
    except asyncio.TimeoutError as e:
        timeout = settings.queueing.reconcile_timeout
        outcome = requeueing.Outcome(requeueing.NO_REQUEUE, e)
        logger.error(f"Reconciliation of {key} has timed out after {timeout}s.")
    except Exception as e:
        outcome = requeueing.Outcome(requeueing.NO_REQUEUE, e)

    if outcome.exception is not None:
        logger.error(f"Reconciliation of {key} has failed: {outcome.exception!r}",
                     exc_info=outcome.exception)
        queue.add_rate_limited(key)
    elif outcome.result.requeue_after:
        queue.forget(key)
        queue.add_after(key, outcome.result.requeue_after)
    elif outcome.result.requeue:
        queue.add_rate_limited(key)
    else:
        queue.forget(key)


async def run_workers(
        *,
        queue: WorkQueue,
        reconciler: Reconciler,
        settings: configuration.OperatorSettings,
) -> None:
    """
    Run the pool of workers until cancelled, then let them finish gracefully.

    On cancellation, the queue is shut down, and the workers are given
    some time to finish their current reconciliations before being cancelled.
    """
    limit = settings.queueing.worker_limit
    tasks = [
        asyncio.create_task(
            worker(queue=queue, reconciler=reconciler, settings=settings),
            name=f'worker #{idx}')
        for idx in range(1, max(1, limit) + 1)
    ]
    try:
        await aiotasks.wait(tasks)
        await aiotasks.reraise(tasks)
    finally:
        queue.shutdown()
        exiting_task = asyncio.create_task(_wait_for_workers(tasks=tasks, settings=settings))
        while not exiting_task.done():
            try:
                await asyncio.shield(exiting_task)
            except asyncio.CancelledError:
                pass  # double-cancelled: the workers still need to be stopped.


async def _wait_for_workers(
        *,
        tasks: collections.abc.Collection[aiotasks.Task],
        settings: configuration.OperatorSettings,
) -> None:
    _, pending = await aiotasks.wait(tasks, timeout=settings.queueing.exit_timeout)
    if pending:
        logger.warning(f"Reconciliations are not finished in time; cancelling {len(pending)}.")
    await aiotasks.stop(pending, title="worker", logger=logger)
