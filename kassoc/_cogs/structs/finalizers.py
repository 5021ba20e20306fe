"""
All the functions to manipulate the object finalization and deletion.

Finalizers are used to block the actual deletion until the finalizers
are removed, meaning that the operator has done all its duties
to "release" the object (e.g. to stop watching the related objects).

The finalizers are a list, which cannot be merge-patched item by item:
the whole list is replaced. To not lose the finalizers of other controllers
added in the meantime, the patches are guarded by the object's resource version,
so that they fail with HTTP 409 Conflict if the object has changed since read.
"""
from kassoc._cogs.structs import bodies, patches


def is_deletion_ongoing(
        body: bodies.RawBody,
) -> bool:
    return body.get('metadata', {}).get('deletionTimestamp', None) is not None


def is_deletion_blocked(
        body: bodies.RawBody,
        finalizer: str,
) -> bool:
    finalizers = body.get('metadata', {}).get('finalizers', [])
    return finalizer in finalizers


def block_deletion(
        *,
        body: bodies.RawBody,
        patch: patches.Patch,
        finalizer: str,
) -> None:
    finalizers = list(body.get('metadata', {}).get('finalizers', []))
    if finalizer not in finalizers:
        finalizers.append(finalizer)
        _set_finalizers(body=body, patch=patch, finalizers=finalizers)


def allow_deletion(
        *,
        body: bodies.RawBody,
        patch: patches.Patch,
        finalizer: str,
) -> None:
    finalizers = list(body.get('metadata', {}).get('finalizers', []))
    if finalizer in finalizers:
        finalizers = [name for name in finalizers if name != finalizer]
        _set_finalizers(body=body, patch=patch, finalizers=finalizers)


def _set_finalizers(
        *,
        body: bodies.RawBody,
        patch: patches.Patch,
        finalizers: list[str],
) -> None:
    patch.meta['finalizers'] = finalizers
    resource_version = body.get('metadata', {}).get('resourceVersion')
    if resource_version is not None:
        patch.meta['resourceVersion'] = resource_version
