from kassoc._cogs.clients import api
from kassoc._cogs.configs import configuration
from kassoc._cogs.helpers import typedefs
from kassoc._cogs.structs import bodies, references


async def replace_obj(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        body: bodies.RawBody,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Replace the whole object with the new body (HTTP PUT).

    The body must carry the ``metadata.resourceVersion`` as it was read:
    the API rejects the replacement with HTTP 409 Conflict if the object
    has been changed since then (optimistic concurrency).
    """
    meta = body.get('metadata', {})
    namespace = references.NamespaceName(meta['namespace']) if resource.namespaced else None
    replaced: bodies.RawBody = await api.put(
        url=resource.get_url(namespace=namespace, name=meta['name']),
        payload=body,
        settings=settings,
        logger=logger,
    )
    return replaced
