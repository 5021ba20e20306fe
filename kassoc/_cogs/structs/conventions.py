"""
Naming conventions of the objects created by the Elasticsearch operator.

The association operator does not create these objects, it only finds them
by their conventional names next to the Elasticsearch cluster.
"""
import base64
import binascii

from kassoc._cogs.structs import bodies, references

# The internal user for Kibana, and also the key of its password in the users' secret.
INTERNAL_KIBANA_SERVER_USERNAME = 'elastic-internal-kibana'

HTTP_PORT = 9200


class MissingCredentialsError(Exception):
    """ Raised when a secret exists, but has no expected credentials in it. """


class MalformedCredentialsError(Exception):
    """ Raised when a secret has the expected credentials, but they cannot be decoded. """


def internal_users_secret_key(cluster: references.ObjectKey) -> references.ObjectKey:
    return references.ObjectKey(cluster.namespace, f'{cluster.name}-elastic-internal-users')


def ca_cert_secret_key(cluster: references.ObjectKey) -> references.ObjectKey:
    return references.ObjectKey(cluster.namespace, cluster.name)


def external_service_url(cluster: references.ObjectKey) -> str:
    return f'https://{cluster.name}-es.{cluster.namespace}.svc.cluster.local:{HTTP_PORT}'


def get_secret_value(secret: bodies.RawBody, key: str) -> str:
    """
    Get a decoded value of a secret's field, as the API returns them base64-encoded.
    """
    data = secret.get('data') or {}
    if key not in data:
        name = (secret.get('metadata') or {}).get('name')
        raise MissingCredentialsError(f"The secret {name!r} has no key {key!r}.")
    try:
        return base64.b64decode(data[key], validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError) as e:
        name = (secret.get('metadata') or {}).get('name')
        raise MalformedCredentialsError(f"The secret {name!r} has a malformed key {key!r}.") from e
