"""
All the structures coming from/to the Kubernetes API.

They are plain JSON-decoded dicts. For stricter type-checking, they are
detailed to the per-field level (`TypedDict` instead of ``Mapping[Any, Any]``)
only as far as the operator uses those fields. Everything else is `Any`.
"""
from collections.abc import Mapping
from typing import Any, Literal

from typing_extensions import TypedDict

# ``None`` is used for the listing, when the pseudo-watch-stream is simulated.
RawInputType = Literal[None, 'ADDED', 'MODIFIED', 'DELETED', 'ERROR']
RawEventType = Literal[None, 'ADDED', 'MODIFIED', 'DELETED']


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Mapping[str, str]
    annotations: Mapping[str, str]
    finalizers: list[str]
    resourceVersion: str
    deletionTimestamp: str
    creationTimestamp: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]
    data: Mapping[str, str]  # secrets only


# A special payload for type==ERROR (this is not a connection or client error).
class RawError(TypedDict, total=False):
    apiVersion: str     # usually: Literal['v1']
    kind: str           # usually: Literal['Status']
    metadata: Mapping[Any, Any]
    code: int
    reason: str
    status: str
    message: str


# As received from the stream before processing the errors and special cases.
class RawInput(TypedDict, total=True):
    type: RawInputType
    object: RawBody | RawError


# As passed to the processors after filtering out the errors and special cases.
class RawEvent(TypedDict, total=True):
    type: RawEventType
    object: RawBody
