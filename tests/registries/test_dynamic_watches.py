import pytest

from kassoc._cogs.structs.references import ObjectKey
from kassoc._core.engines.watches import DynamicEnqueuer, DynamicWatches, NamedWatch, \
                                         WatchRegistrationError, watch_name

ES1 = ObjectKey('ns1', 'es1')
ES2 = ObjectKey('ns1', 'es2')
ASSOC1 = ObjectKey('ns1', 'assoc1')
ASSOC2 = ObjectKey('ns2', 'assoc2')


def test_watch_name_format():
    assert watch_name(ObjectKey('ns1', 'assoc1'), 'es') == 'ns1-assoc1-es-watch'
    assert watch_name(ObjectKey('ns1', 'assoc1'), 'kb') == 'ns1-assoc1-kb-watch'


def test_empty_registry():
    registry = DynamicEnqueuer()
    assert len(registry) == 0
    assert registry.registrations == frozenset()
    assert registry.watchers_of(ES1) == frozenset()


def test_added_watch_is_registered():
    registry = DynamicEnqueuer()
    registry.add_handler(NamedWatch(name='w1', watched=ES1, watcher=ASSOC1))
    assert len(registry) == 1
    assert registry.registrations == {'w1'}
    assert registry.watchers_of(ES1) == {ASSOC1}
    assert registry.watchers_of(ES2) == frozenset()


def test_adding_the_same_watch_twice_is_idempotent():
    registry = DynamicEnqueuer()
    registry.add_handler(NamedWatch(name='w1', watched=ES1, watcher=ASSOC1))
    registry.add_handler(NamedWatch(name='w1', watched=ES1, watcher=ASSOC1))
    assert len(registry) == 1
    assert registry.watchers_of(ES1) == {ASSOC1}


def test_adding_under_the_same_name_replaces_the_watch():
    registry = DynamicEnqueuer()
    registry.add_handler(NamedWatch(name='w1', watched=ES1, watcher=ASSOC1))
    registry.add_handler(NamedWatch(name='w1', watched=ES2, watcher=ASSOC1))
    assert len(registry) == 1
    assert registry.watchers_of(ES1) == frozenset()
    assert registry.watchers_of(ES2) == {ASSOC1}


def test_multiple_watchers_of_the_same_object():
    registry = DynamicEnqueuer()
    registry.add_handler(NamedWatch(name='w1', watched=ES1, watcher=ASSOC1))
    registry.add_handler(NamedWatch(name='w2', watched=ES1, watcher=ASSOC2))
    assert registry.watchers_of(ES1) == {ASSOC1, ASSOC2}


def test_removal_by_name():
    registry = DynamicEnqueuer()
    registry.add_handler(NamedWatch(name='w1', watched=ES1, watcher=ASSOC1))
    registry.add_handler(NamedWatch(name='w2', watched=ES1, watcher=ASSOC2))
    registry.remove_handler_for_key('w1')
    assert registry.registrations == {'w2'}
    assert registry.watchers_of(ES1) == {ASSOC2}


def test_removal_of_absent_name_is_not_an_error():
    registry = DynamicEnqueuer()
    registry.remove_handler_for_key('w1')
    registry.remove_handler_for_key('w1')
    assert len(registry) == 0


@pytest.mark.parametrize('watch', [
    NamedWatch(name='', watched=ES1, watcher=ASSOC1),
    NamedWatch(name='w1', watched=ObjectKey('ns1', ''), watcher=ASSOC1),
], ids=['no-name', 'no-watched-name'])
def test_invalid_watches_are_rejected(watch):
    registry = DynamicEnqueuer()
    with pytest.raises(WatchRegistrationError):
        registry.add_handler(watch)
    assert len(registry) == 0


def test_dynamic_watches_are_separate_per_kind():
    watches = DynamicWatches()
    watches.elasticsearch_clusters.add_handler(NamedWatch(name='w1', watched=ES1, watcher=ASSOC1))
    assert len(watches.elasticsearch_clusters) == 1
    assert len(watches.kibanas) == 0
    assert DynamicWatches().elasticsearch_clusters is not watches.elasticsearch_clusters
