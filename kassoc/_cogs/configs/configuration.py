"""
All configuration flags, options, settings to fine-tune the operator.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).

The settings are created once per operator in :func:`kassoc.operator`
(or passed there explicitly), and then passed down to all the routines
as a keyword argument. The CLI options override some of the defaults.
"""
import dataclasses
from collections.abc import Iterable


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: float | None = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the whole API request (connecting, sending, receiving).
    """

    connect_timeout: float | None = None
    """
    A timeout for establishing the connection to the API server.
    If ``None``, only the total request timeout applies.
    """

    error_backoffs: float | Iterable[float] = (1, 2, 4, 8)
    """
    Backoff intervals in case of retryable errors of the API requests.

    The retryable errors are the connection errors, timeouts, and HTTP 5xx.
    The number of intervals defines the number of retries; when they are over,
    the last error is escalated to the caller. Set to ``[]`` to not retry.
    """


@dataclasses.dataclass
class WatchingSettings:

    server_timeout: float | None = None
    """
    The maximum duration of one streaming request.
    If ``None``, then obey the server-side timeouts (they seem to be random).
    """

    client_timeout: float | None = None
    """
    An HTTP/HTTPS session timeout to use in watch requests.
    """

    connect_timeout: float | None = None
    """
    An HTTP/HTTPS connection timeout to use in watch requests.
    """

    reconnect_backoff: float = 0.1
    """
    How long should a pause be between watch requests (to prevent API flooding).
    """


@dataclasses.dataclass
class QueueingSettings:
    """
    Settings for how the association keys are queued and reconciled.
    """

    worker_limit: int = 1
    """
    How many associations can be reconciled simultaneously.

    Regardless of this number, one association is never reconciled
    by two workers at the same time.
    """

    reconcile_timeout: float | None = 5 * 60
    """
    For how long a single reconciliation can run before it is cancelled.

    A cancelled reconciliation is treated as a failed one, and is retried
    with the error delays. Set to ``None`` to not limit the duration.
    """

    exit_timeout: float = 2.0
    """
    How soon the workers are cancelled when the operator is going to exit.
    This is the time given to the workers to finish the current reconciliations.
    """

    error_delays: Iterable[float] = (1, 1, 2, 3, 5, 8, 13, 21, 34, 55, 89, 144, 233, 377, 610)
    """
    Backoff intervals for re-queueing the associations after failed reconciliations.

    Every further error of the same association leads to the next, even bigger
    delay (10m is enough for a default maximum). Every success resets the delays,
    and it goes from the beginning on the next error.

    To retry immediately (at your own risk), set it to ``[]`` or ``()``.
    """


@dataclasses.dataclass
class PersistenceSettings:

    finalizer: str = 'finalizer.associations.k8s.elastic.co/dynamic-watches'
    """
    A string marker to be put on a list of finalizers to block the association
    from being deleted until its dynamic watches are removed.
    """


@dataclasses.dataclass
class AssociationSettings:

    pause_annotation: str = 'common.k8s.elastic.co/pause'
    """
    An annotation that marks the association as paused when set to ``"true"``.
    Paused associations are neither reconciled nor cleaned up, only re-queued.
    """


@dataclasses.dataclass
class OperatorSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
    queueing: QueueingSettings = dataclasses.field(default_factory=QueueingSettings)
    persistence: PersistenceSettings = dataclasses.field(default_factory=PersistenceSettings)
    association: AssociationSettings = dataclasses.field(default_factory=AssociationSettings)
