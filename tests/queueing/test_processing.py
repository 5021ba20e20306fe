import logging
from unittest.mock import Mock

import pytest

from kassoc._cogs.structs.references import ObjectKey
from kassoc._core.engines.watches import DynamicEnqueuer, NamedWatch
from kassoc._core.reactor.processing import get_key, process_association_event, \
                                            process_related_event

ES1 = ObjectKey('ns1', 'es1')
ASSOC1 = ObjectKey('ns1', 'assoc1')
ASSOC2 = ObjectKey('ns2', 'assoc2')


@pytest.fixture()
def queue():
    return Mock(spec_set=['add'])


@pytest.fixture()
def registry():
    registry = DynamicEnqueuer()
    registry.add_handler(NamedWatch(name='ns2-assoc2-es-watch', watched=ES1, watcher=ASSOC2))
    registry.add_handler(NamedWatch(name='ns1-assoc1-es-watch', watched=ES1, watcher=ASSOC1))
    return registry


def test_key_of_body():
    assert get_key({'metadata': {'namespace': 'ns1', 'name': 'n1'}}) == ObjectKey('ns1', 'n1')
    assert get_key({'metadata': {'name': 'n1'}}) == ObjectKey('', 'n1')


@pytest.mark.parametrize('event_type', [None, 'ADDED', 'MODIFIED', 'DELETED'])
async def test_association_event_queues_itself(queue, event_type):
    raw_event = {'type': event_type, 'object': {'metadata': {'namespace': 'ns1', 'name': 'assoc1'}}}

    await process_association_event(raw_event=raw_event, queue=queue)

    queue.add.assert_called_once_with(ASSOC1)


@pytest.mark.parametrize('event_type', [None, 'ADDED', 'MODIFIED', 'DELETED'])
async def test_related_event_queues_the_watchers(queue, registry, event_type, caplog):
    caplog.set_level(logging.DEBUG)
    raw_event = {'type': event_type, 'object': {'metadata': {'namespace': 'ns1', 'name': 'es1'}}}

    await process_related_event(raw_event=raw_event, registry=registry, queue=queue)

    assert [c.args for c in queue.add.call_args_list] == [(ASSOC1,), (ASSOC2,)]
    assert "Re-queueing ns1/assoc1 due to" in caplog.text


async def test_unwatched_event_is_ignored(queue, registry):
    raw_event = {'type': 'MODIFIED', 'object': {'metadata': {'namespace': 'ns1', 'name': 'es2'}}}

    await process_related_event(raw_event=raw_event, registry=registry, queue=queue)

    assert not queue.add.called
