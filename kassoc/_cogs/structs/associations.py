"""
The association records as the operator sees them.

An association links one Elasticsearch cluster (the provider of the connection
data) to one Kibana instance (the consumer of that data). The references
without a namespace point to the association's own namespace.

The only field the operator writes is ``status.associationStatus``.
"""
import dataclasses
import enum
from collections.abc import Mapping
from typing import Any

from kassoc._cogs.structs import bodies, dicts, references


class AssociationStatus(str, enum.Enum):
    UNKNOWN = ''
    PENDING = 'Pending'
    ESTABLISHED = 'Established'
    FAILED = 'Failed'

    @classmethod
    def parse(cls, value: Any) -> "AssociationStatus":
        try:
            return cls(value or '')
        except ValueError:
            return cls.UNKNOWN


@dataclasses.dataclass(frozen=True)
class Association:
    key: references.ObjectKey
    elasticsearch: references.ObjectKey
    kibana: references.ObjectKey
    status: AssociationStatus

    @classmethod
    def from_body(cls, body: bodies.RawBody) -> "Association":
        meta = body.get('metadata', {})
        spec = body.get('spec') or {}
        key = references.ObjectKey(namespace=meta.get('namespace', ''), name=meta.get('name', ''))
        return cls(
            key=key,
            elasticsearch=_parse_ref(spec.get('elasticsearch'), default_namespace=key.namespace),
            kibana=_parse_ref(spec.get('kibana'), default_namespace=key.namespace),
            status=AssociationStatus.parse((body.get('status') or {}).get('associationStatus')),
        )


def _parse_ref(
        raw: Mapping[str, Any] | None,
        *,
        default_namespace: str,
) -> references.ObjectKey:
    raw = raw or {}
    return references.ObjectKey(
        namespace=raw.get('namespace') or default_namespace,
        name=raw.get('name') or '',
    )


def is_paused(body: bodies.RawBody, annotation: str) -> bool:
    value = dicts.resolve(body, ('metadata', 'annotations', annotation), '')
    return str(value).lower() == 'true'


def build_status(
        body: bodies.RawBody,
        status: AssociationStatus,
) -> Mapping[str, Any]:
    """
    Build the association's full new status: the old one with the new value.

    Other status fields, if any, are preserved as they are, so that the new
    status can be compared to the stored one as a whole.
    """
    return dict(body.get('status') or {}, associationStatus=status.value)
