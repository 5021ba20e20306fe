"""
Scheduling decisions of the reconciliation: whether and when to repeat it.

The statuses of the associations map to the scheduling decisions here and only
here: ``Pending`` means "retry shortly, the condition is expected to resolve";
``Established`` and ``Failed`` mean "done until something changes", i.e. until
a watch-event for the association or for its referenced objects arrives.
"""
import dataclasses

from kassoc._cogs.structs import associations

# How soon the pending associations are retried.
PENDING_REQUEUE_DELAY: float = 10

# How soon the paused associations are re-checked for being unpaused.
PAUSE_REQUEUE_DELAY: float = 20


@dataclasses.dataclass(frozen=True)
class Result:
    """
    A scheduling decision of a single reconciliation.

    With ``requeue_after``, the key is re-queued after that delay (in seconds).
    With ``requeue`` only, the key is re-queued with the error-like backoff.
    With neither, the key is not re-queued until the next watch-event.
    """
    requeue: bool = False
    requeue_after: float | None = None


@dataclasses.dataclass(frozen=True)
class Outcome:
    """ A scheduling decision together with the error that accompanies it, if any. """
    result: Result
    exception: BaseException | None = None


NO_REQUEUE = Result()
DEFAULT_REQUEUE = Result(requeue=True, requeue_after=PENDING_REQUEUE_DELAY)
PAUSE_REQUEUE = Result(requeue=True, requeue_after=PAUSE_REQUEUE_DELAY)


def result_from_status(status: associations.AssociationStatus) -> Result:
    match status:
        case associations.AssociationStatus.PENDING:
            return DEFAULT_REQUEUE
        case associations.AssociationStatus.ESTABLISHED | associations.AssociationStatus.FAILED:
            return NO_REQUEUE
        case _:
            return NO_REQUEUE
