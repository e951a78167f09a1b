from __future__ import annotations

from alertnotify.kv import KV, Pair, is_private_key, remove_private_items


def test_sorted_pairs_put_alertname_first():
    kv = KV({'zone': 'eu', 'alertname': 'HighCPU', 'instance': 'host1'})
    assert kv.sorted_pairs() == [
        Pair('alertname', 'HighCPU'),
        Pair('instance', 'host1'),
        Pair('zone', 'eu'),
    ]
    assert kv.names() == ['alertname', 'instance', 'zone']
    assert kv.values_list() == ['HighCPU', 'host1', 'eu']


def test_remove_returns_new_kv():
    kv = KV({'alertname': 'HighCPU', 'team': 'ops'})
    out = kv.remove(['alertname'])
    assert isinstance(out, KV)
    assert out == {'team': 'ops'}
    assert kv == {'alertname': 'HighCPU', 'team': 'ops'}


def test_is_private_key():
    assert is_private_key('__orgId__')
    assert is_private_key('__values__')
    assert not is_private_key('__orgId')
    assert not is_private_key('orgId__')
    assert not is_private_key('org__Id')


def test_remove_private_items_copies():
    source = {'alertname': 'X', '__dashboardUid__': 'abc', '_half_': 'kept'}
    out = remove_private_items(source)
    assert isinstance(out, KV)
    assert out == {'alertname': 'X', '_half_': 'kept'}
    assert '__dashboardUid__' in source


def test_remove_private_items_none():
    assert remove_private_items(None) == KV()
