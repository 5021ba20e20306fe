from collections.abc import Collection

from kassoc._cogs.clients import api
from kassoc._cogs.configs import configuration
from kassoc._cogs.helpers import typedefs
from kassoc._cogs.structs import bodies, references


async def read_obj(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Read a single object of a specific resource type by its name.

    Unlike in other clients, the absence of the object is not hidden:
    `APINotFoundError` is escalated, since it has its own meaning
    for the callers (e.g. that the dependency is not yet created).
    """
    body: bodies.RawBody = await api.get(
        url=resource.get_url(namespace=namespace, name=name),
        logger=logger,
        settings=settings,
    )
    return body


async def list_objs(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        logger: typedefs.Logger,
) -> tuple[Collection[bodies.RawBody], str | None]:
    """
    List the objects of specific resource type.

    The cluster-scoped call is used when the operator serves all namespaces.
    Otherwise, the namespace-scoped call is used for the served namespace.
    """
    rsp = await api.get(
        url=resource.get_url(namespace=namespace),
        logger=logger,
        settings=settings,
    )

    items: list[bodies.RawBody] = []
    resource_version = rsp.get('metadata', {}).get('resourceVersion', None)
    for item in rsp.get('items', []):
        if 'kind' in rsp:
            item.setdefault('kind', rsp['kind'][:-4] if rsp['kind'][-4:] == 'List' else rsp['kind'])
        if 'apiVersion' in rsp:
            item.setdefault('apiVersion', rsp['apiVersion'])
        items.append(item)

    return items, resource_version
