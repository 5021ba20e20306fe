"""
A narrow interface of the resource storage as used by the reconciler.

The reconciler does not talk to the API directly: it only reads, replaces,
and patches the objects by their keys via a store. This keeps the reconciler
testable with in-memory stores, and the client library replaceable.

The errors follow the API client's hierarchy: `APINotFoundError` for the absent
objects, `APIConflictError` for the outdated writes, `APIError` for the rest.
"""
from typing import Protocol

from kassoc._cogs.clients import fetching, patching, replacing
from kassoc._cogs.configs import configuration
from kassoc._cogs.helpers import typedefs
from kassoc._cogs.structs import bodies, patches, references


class ResourceStore(Protocol):

    async def read(
            self,
            resource: references.Resource,
            key: references.ObjectKey,
            *,
            logger: typedefs.Logger,
    ) -> bodies.RawBody: ...

    async def replace(
            self,
            resource: references.Resource,
            body: bodies.RawBody,
            *,
            logger: typedefs.Logger,
    ) -> bodies.RawBody: ...

    async def patch(
            self,
            resource: references.Resource,
            key: references.ObjectKey,
            patch: patches.Patch,
            *,
            logger: typedefs.Logger,
    ) -> bodies.RawBody: ...


class APIResourceStore:
    """ The store backed by the Kubernetes API of the logged-in context. """

    def __init__(self, *, settings: configuration.OperatorSettings) -> None:
        super().__init__()
        self.settings = settings

    async def read(
            self,
            resource: references.Resource,
            key: references.ObjectKey,
            *,
            logger: typedefs.Logger,
    ) -> bodies.RawBody:
        return await fetching.read_obj(
            settings=self.settings,
            resource=resource,
            namespace=_namespace(resource, key),
            name=key.name,
            logger=logger,
        )

    async def replace(
            self,
            resource: references.Resource,
            body: bodies.RawBody,
            *,
            logger: typedefs.Logger,
    ) -> bodies.RawBody:
        return await replacing.replace_obj(
            settings=self.settings,
            resource=resource,
            body=body,
            logger=logger,
        )

    async def patch(
            self,
            resource: references.Resource,
            key: references.ObjectKey,
            patch: patches.Patch,
            *,
            logger: typedefs.Logger,
    ) -> bodies.RawBody:
        return await patching.patch_obj(
            settings=self.settings,
            resource=resource,
            namespace=_namespace(resource, key),
            name=key.name,
            patch=patch,
            logger=logger,
        )


def _namespace(resource: references.Resource, key: references.ObjectKey) -> references.Namespace:
    return references.NamespaceName(key.namespace) if resource.namespaced else None
