import asyncio
import functools
import logging
import signal
import threading
from collections.abc import Callable, Collection

from kassoc._cogs.aiokits import aiotasks
from kassoc._cogs.clients import auth, stores
from kassoc._cogs.configs import configuration
from kassoc._cogs.structs import credentials, references
from kassoc._core.engines import watches
from kassoc._core.intents import piggybacking
from kassoc._core.reactor import processing, queueing, reconciling

logger = logging.getLogger(__name__)


def run(
        *,
        loop_factory: Callable[[], asyncio.AbstractEventLoop] | None = None,
        settings: configuration.OperatorSettings | None = None,
        clusterwide: bool = False,
        namespaces: Collection[str] = (),
        connection: credentials.ConnectionInfo | None = None,
        stop_flag: asyncio.Event | None = None,
) -> None:
    """
    Run the whole operator synchronously.

    This function should be used to run an operator in normal sync mode.
    The event loop is created anew and closed on exit.
    """
    try:
        with asyncio.Runner(loop_factory=loop_factory) as runner:
            runner.run(operator(
                settings=settings,
                clusterwide=clusterwide,
                namespaces=namespaces,
                connection=connection,
                stop_flag=stop_flag,
            ))
    except asyncio.CancelledError:
        pass


async def operator(
        *,
        settings: configuration.OperatorSettings | None = None,
        clusterwide: bool = False,
        namespaces: Collection[str] = (),
        connection: credentials.ConnectionInfo | None = None,
        stop_flag: asyncio.Event | None = None,
) -> None:
    """
    Run the whole operator asynchronously.

    This function should be used to run an operator in an asyncio event-loop
    if the operator is orchestrated explicitly and manually.

    The operator logs in (unless the connection is given explicitly),
    and keeps the authenticated session for all its tasks until it exits.
    """
    info = connection if connection is not None else piggybacking.login(logger=logger)
    context = auth.APIContext(info)
    token = auth.context_var.set(context)
    try:
        operator_tasks = await spawn_tasks(
            settings=settings,
            clusterwide=clusterwide,
            namespaces=namespaces,
            stop_flag=stop_flag,
        )
        await run_tasks(operator_tasks)
    finally:
        auth.context_var.reset(token)
        await context.close()


async def spawn_tasks(
        *,
        settings: configuration.OperatorSettings | None = None,
        clusterwide: bool = False,
        namespaces: Collection[str] = (),
        stop_flag: asyncio.Event | None = None,
) -> Collection[aiotasks.Task]:
    """
    Spawn all the tasks needed to run the operator.

    There is one watcher per watched resource kind per namespace,
    one pool of workers, and one stop-flag checker. All of them are
    root tasks: once any of them exits, the whole operator exits.
    """
    loop = asyncio.get_running_loop()
    settings = settings if settings is not None else configuration.OperatorSettings()
    targets = _resolve_namespaces(clusterwide=clusterwide, namespaces=namespaces)

    # The operator's shared state: the keys to reconcile and the association-to-object links.
    signal_flag: aiotasks.Future = loop.create_future()
    queue = queueing.WorkQueue(settings=settings)
    dynamic_watches = watches.DynamicWatches()
    reconciler = reconciling.AssociationReconciler(
        store=stores.APIResourceStore(settings=settings),
        dynamic_watches=dynamic_watches,
        settings=settings,
    )

    processors: dict[references.Resource, queueing.WatchStreamProcessor] = {
        references.ASSOCIATIONS: functools.partial(
            processing.process_association_event,
            queue=queue),
        references.ELASTICSEARCH_CLUSTERS: functools.partial(
            processing.process_related_event,
            registry=dynamic_watches.elasticsearch_clusters,
            queue=queue),
        references.KIBANAS: functools.partial(
            processing.process_related_event,
            registry=dynamic_watches.kibanas,
            queue=queue),
    }

    tasks: list[aiotasks.Task] = []
    tasks.append(asyncio.create_task(
        name="stop-flag checker",
        coro=_stop_flag_checker(
            signal_flag=signal_flag,
            stop_flag=stop_flag)))

    for resource, processor in processors.items():
        for namespace in targets:
            where = f'in {namespace!r}' if namespace is not None else 'cluster-wide'
            tasks.append(aiotasks.create_guarded_task(
                name=f"watcher for {resource.plural} {where}", logger=logger,
                coro=queueing.watcher(
                    settings=settings,
                    resource=resource,
                    namespace=namespace,
                    processor=processor)))

    tasks.append(aiotasks.create_guarded_task(
        name="reconciliation workers", logger=logger,
        coro=queueing.run_workers(
            queue=queue,
            reconciler=reconciler,
            settings=settings)))

    # Ensure that all guarded tasks got control for a moment to enter the guard.
    await asyncio.sleep(0)

    # On Ctrl+C or pod termination, cancel all tasks gracefully.
    if threading.current_thread() is threading.main_thread():
        try:
            loop.add_signal_handler(signal.SIGINT, signal_flag.set_result, signal.SIGINT)
            loop.add_signal_handler(signal.SIGTERM, signal_flag.set_result, signal.SIGTERM)
        except NotImplementedError:
            logger.warning("OS signals are ignored: can't add signal handler in Windows.")
    else:
        logger.warning("OS signals are ignored: running not in the main thread.")

    return tasks


async def run_tasks(
        root_tasks: Collection[aiotasks.Task],
) -> None:
    """
    Orchestrate the tasks and terminate them gracefully when needed.

    The root tasks are expected to run forever. Once any of them exits,
    the whole operator and all other root tasks should exit. The reconciliation
    workers are given some time to finish their current reconciliations.
    """
    # Run the infinite tasks until one of them fails/exits (they never exit normally).
    # If the operator is cancelled, propagate the cancellation to all the root tasks.
    try:
        root_done, root_pending = await aiotasks.wait(root_tasks, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        await aiotasks.stop(root_tasks, title="Root", logger=logger)
        raise

    # If the operator is intact, but one of the root tasks has exited (successfully or not),
    # cancel all the remaining root tasks.
    root_cancelled, _ = await aiotasks.stop(root_pending, title="Root", logger=logger)

    # If succeeded or if cancellation is silenced, re-raise from failed tasks (if any).
    await aiotasks.reraise(root_done | root_cancelled)


def _resolve_namespaces(
        *,
        clusterwide: bool,
        namespaces: Collection[str],
) -> list[references.Namespace]:
    if clusterwide and namespaces:
        raise TypeError("Either namespaces or cluster-wide mode can be used. Got both.")
    elif namespaces:
        return [references.NamespaceName(namespace) for namespace in namespaces]
    elif not clusterwide:
        logger.warning("Neither namespaces nor cluster-wide mode are specified. "
                       "Assuming cluster-wide mode: all namespaces are served.")
    return [None]


async def _stop_flag_checker(
        signal_flag: aiotasks.Future,
        stop_flag: asyncio.Event | None,
) -> None:
    """
    A top-level task for external stopping by setting a stop-flag. Once set,
    this task will exit, and thus all other top-level tasks will be cancelled.
    """
    flags: list[aiotasks.Future] = [signal_flag]
    if stop_flag is not None:
        flags.append(asyncio.create_task(stop_flag.wait(), name="stop-flag waiter"))

    # Wait until one of the stoppers is set/raised.
    try:
        done, pending = await asyncio.wait(flags, return_when=asyncio.FIRST_COMPLETED)
        result = done.pop().result()
    except asyncio.CancelledError:
        pass  # operator is stopping for any other reason
    else:
        if isinstance(result, signal.Signals):
            logger.info("Signal %s is received. Operator is stopping.", result.name)
        else:
            logger.info("Stop-flag is raised. Operator is stopping.")
    finally:
        for flag in flags[1:]:
            flag.cancel()
