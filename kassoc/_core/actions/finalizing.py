"""
The finalizer protocol: the cleanup that must happen before the deletion.

It is an explicit two-phase protocol. For the live objects, the finalizer's
name is put into the object's ``metadata.finalizers`` (if not yet there),
so that Kubernetes does not delete the object physically. For the objects
marked for deletion, the cleanup is executed, and only then the name is removed,
thus allowing the deletion. If the cleanup fails, the name stays, and the whole
handling is retried later -- so the cleanup must tolerate repeated execution.
"""
import dataclasses
from collections.abc import Awaitable, Callable

from kassoc._cogs.clients import stores
from kassoc._cogs.helpers import typedefs
from kassoc._cogs.structs import bodies, finalizers, patches, references


@dataclasses.dataclass(frozen=True)
class Finalizer:
    name: str
    execute: Callable[[], Awaitable[None]]


async def handle(
        *,
        store: stores.ResourceStore,
        resource: references.Resource,
        body: bodies.RawBody,
        finalizer: Finalizer,
        logger: typedefs.Logger,
) -> None:
    """
    Ensure the finalizer on a live object, or execute & remove it on a deleted one.

    The API errors are escalated to the caller. A conflict (HTTP 409) means that
    the object has been changed since it was read; the caller should retry.
    """
    meta = body.get('metadata', {})
    key = references.ObjectKey(namespace=meta.get('namespace', ''), name=meta.get('name', ''))
    patch = patches.Patch()

    if not finalizers.is_deletion_ongoing(body):
        if not finalizers.is_deletion_blocked(body, finalizer.name):
            logger.debug(f"Adding the finalizer {finalizer.name!r}, thus preventing the deletion.")
            finalizers.block_deletion(body=body, patch=patch, finalizer=finalizer.name)

    elif finalizers.is_deletion_blocked(body, finalizer.name):
        await finalizer.execute()
        logger.debug(f"Removing the finalizer {finalizer.name!r}, thus allowing the deletion.")
        finalizers.allow_deletion(body=body, patch=patch, finalizer=finalizer.name)

    if patch:
        await store.patch(resource, key, patch, logger=logger)
