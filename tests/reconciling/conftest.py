import base64

import pytest

from kassoc._cogs.structs.references import ASSOCIATIONS, ELASTICSEARCH_CLUSTERS, KIBANAS, \
                                            SECRETS, ObjectKey
from kassoc._core.engines.watches import DynamicWatches
from kassoc._core.reactor.reconciling import AssociationReconciler

PASSWORD = 's3cr3t'


@pytest.fixture()
def assoc_key():
    return ObjectKey('ns1', 'assoc1')


@pytest.fixture()
def es_key():
    return ObjectKey('ns1', 'es1')


@pytest.fixture()
def kb_key():
    return ObjectKey('ns1', 'kb1')


@pytest.fixture()
def assoc_body():
    return {
        'apiVersion': 'associations.k8s.elastic.co/v1alpha1',
        'kind': 'KibanaElasticsearchAssociation',
        'metadata': {'namespace': 'ns1', 'name': 'assoc1', 'resourceVersion': '100'},
        'spec': {
            'elasticsearch': {'name': 'es1'},
            'kibana': {'name': 'kb1'},
        },
    }


@pytest.fixture()
def es_body():
    return {
        'apiVersion': 'elasticsearch.k8s.elastic.co/v1alpha1',
        'kind': 'ElasticsearchCluster',
        'metadata': {'namespace': 'ns1', 'name': 'es1'},
        'spec': {'version': '7.1.0'},
    }


@pytest.fixture()
def users_secret_body():
    encoded = base64.b64encode(PASSWORD.encode('utf-8')).decode('ascii')
    return {
        'apiVersion': 'v1',
        'kind': 'Secret',
        'metadata': {'namespace': 'ns1', 'name': 'es1-elastic-internal-users'},
        'data': {'elastic-internal-kibana': encoded},
    }


@pytest.fixture()
def ca_secret_body():
    return {
        'apiVersion': 'v1',
        'kind': 'Secret',
        'metadata': {'namespace': 'ns1', 'name': 'es1'},
        'data': {'ca.pem': base64.b64encode(b'-----BEGIN CERTIFICATE-----').decode('ascii')},
    }


@pytest.fixture()
def kb_body():
    return {
        'apiVersion': 'kibana.k8s.elastic.co/v1alpha1',
        'kind': 'Kibana',
        'metadata': {'namespace': 'ns1', 'name': 'kb1', 'resourceVersion': '200'},
        'spec': {'version': '7.1.0', 'nodeCount': 1},
    }


@pytest.fixture()
def expected_backend():
    return {
        'url': 'https://es1-es.ns1.svc.cluster.local:9200',
        'auth': {'inline': {'username': 'elastic-internal-kibana', 'password': PASSWORD}},
        'caCertSecret': 'es1',
    }


@pytest.fixture()
def populated(store, assoc_body, es_body, users_secret_body, ca_secret_body, kb_body):
    """ A store with all the association's dependencies present. """
    store.put(ASSOCIATIONS, assoc_body)
    store.put(ELASTICSEARCH_CLUSTERS, es_body)
    store.put(SECRETS, users_secret_body)
    store.put(SECRETS, ca_secret_body)
    store.put(KIBANAS, kb_body)
    return store


@pytest.fixture()
def dynamic_watches():
    return DynamicWatches()


@pytest.fixture()
def reconciler(store, dynamic_watches, settings):
    return AssociationReconciler(store=store, dynamic_watches=dynamic_watches, settings=settings)
