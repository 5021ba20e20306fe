"""
Dynamic watches: which associations to re-reconcile when other objects change.

The Elasticsearch clusters and Kibanas are watched as whole resource kinds,
but most of their events are irrelevant. The registry keeps only the objects
referenced by at least one live association: an event for such an object
re-queues the referencing associations; events for other objects are ignored.

The registrations are named, so that they can be replaced or removed by name
without knowing what exactly was watched before (e.g. when the association's
references change, or when the association is deleted).

The registry is shared by all the concurrent reconciliations and by the watchers.
It is guarded by a lock, and none of its operations awaits inside of it.
"""
import dataclasses
import threading

from kassoc._cogs.structs import references


class WatchRegistrationError(Exception):
    """ Raised when a watch cannot be registered as requested. """


@dataclasses.dataclass(frozen=True)
class NamedWatch:
    name: str
    watched: references.ObjectKey
    watcher: references.ObjectKey


def watch_name(key: references.ObjectKey, kind: str) -> str:
    return f'{key.namespace}-{key.name}-{kind}-watch'


class DynamicEnqueuer:
    """
    A registry of named watches for one resource kind.

    Adding a watch with an existing name replaces the old one (an upsert).
    Removing an absent name is not an error.
    """

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self._watches: dict[str, NamedWatch] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._watches)

    @property
    def registrations(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._watches)

    def add_handler(self, watch: NamedWatch) -> None:
        if not watch.name:
            raise WatchRegistrationError(f"A watch must have a name: {watch!r}")
        if not watch.watched.name:
            raise WatchRegistrationError(f"A watch must have a watched object: {watch!r}")
        with self._lock:
            self._watches[watch.name] = watch

    def remove_handler_for_key(self, name: str) -> None:
        with self._lock:
            self._watches.pop(name, None)

    def watchers_of(self, watched: references.ObjectKey) -> frozenset[references.ObjectKey]:
        with self._lock:
            return frozenset(watch.watcher for watch in self._watches.values()
                             if watch.watched == watched)


@dataclasses.dataclass(frozen=True)
class DynamicWatches:
    elasticsearch_clusters: DynamicEnqueuer = dataclasses.field(default_factory=DynamicEnqueuer)
    kibanas: DynamicEnqueuer = dataclasses.field(default_factory=DynamicEnqueuer)
