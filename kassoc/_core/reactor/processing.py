"""
Conversion of the low-level watch-events to the keys of the associations.

The association's own events re-queue that association. The events of the
Elasticsearch clusters and Kibanas re-queue the associations that refer to them,
as registered in the dynamic watches; other clusters and Kibanas are ignored.

The processors never reconcile anything themselves: they only put the keys
to the queue, so that the watch-streams are never blocked.
"""
import logging

from kassoc._cogs.structs import bodies, references
from kassoc._core.engines import watches
from kassoc._core.reactor import queueing

logger = logging.getLogger(__name__)


def get_key(body: bodies.RawBody) -> references.ObjectKey:
    meta = body.get('metadata', {})
    return references.ObjectKey(namespace=meta.get('namespace', ''), name=meta.get('name', ''))


async def process_association_event(
        *,
        raw_event: bodies.RawEvent,
        queue: queueing.WorkQueue,
) -> None:
    key = get_key(raw_event['object'])
    queue.add(key)


async def process_related_event(
        *,
        raw_event: bodies.RawEvent,
        registry: watches.DynamicEnqueuer,
        queue: queueing.WorkQueue,
) -> None:
    key = get_key(raw_event['object'])
    for watcher in sorted(registry.watchers_of(key)):
        logger.debug(f"Re-queueing {watcher} due to {raw_event['type'] or 'listed'} {key}.")
        queue.add(watcher)
