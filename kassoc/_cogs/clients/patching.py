from kassoc._cogs.clients import api
from kassoc._cogs.configs import configuration
from kassoc._cogs.helpers import typedefs
from kassoc._cogs.structs import bodies, patches, references


async def patch_obj(
        *,
        settings: configuration.OperatorSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        patch: patches.Patch,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Patch a resource of specific kind with a JSON merge-patch.

    If the resource has a status subresource, the status is patched separately
    via that subresource, as the main endpoint ignores the status changes.

    Returns the patched body. The patched body can be partial (status-only,
    no-status, or empty) -- depending on whether there were fields in the body
    or in the status to patch.

    Unlike in other clients, the absent objects (HTTP 404) are not hidden:
    `APINotFoundError` is escalated to the caller.
    """
    as_subresource = 'status' in resource.subresources
    body_patch = dict(patch)  # shallow: for mutation of the top-level keys below.
    status_patch = body_patch.pop('status', None) if as_subresource else None

    patched_body = bodies.RawBody()
    if body_patch:
        patched_body = await api.patch(
            url=resource.get_url(namespace=namespace, name=name),
            headers={'Content-Type': 'application/merge-patch+json'},
            payload=body_patch,
            settings=settings,
            logger=logger,
        )

    if status_patch:
        response = await api.patch(
            url=resource.get_url(namespace=namespace, name=name, subresource='status'),
            headers={'Content-Type': 'application/merge-patch+json'},
            payload={'status': status_patch},
            settings=settings,
            logger=logger,
        )
        patched_body['status'] = response.get('status')

    return patched_body
