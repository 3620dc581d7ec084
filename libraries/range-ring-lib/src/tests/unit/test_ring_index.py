"""Tests for ring construction and key lookup."""

import logging
import threading

import pytest

from range_ring import (
    MAX_HASH_VALUE,
    Pcg64Stream,
    RangeMove,
    RingConfig,
    RingIndex,
    RingSnapshot,
)
from range_ring.exceptions import (
    InvalidConfigurationError,
    LookupBoundaryError,
    UnknownRangeError,
)

HOSTS = ["host1", "host2", "host3"]


@pytest.fixture(scope="module")
def reference_ring():
    return RingIndex(HOSTS, 9, 10)


@pytest.mark.parametrize(
    "key, owner",
    [
        ("key1", "host3"),
        ("key2", "host1"),
        ("key3", "host1"),
        ("key4", "host1"),
        ("key8", "host2"),
        ("key75", "host3"),
    ],
)
def test_reference_lookups(reference_ring, key, owner):
    assert reference_ring.id_for_key(key) == owner


def test_reference_hashes_and_ranges(reference_ring):
    assert reference_ring.hash("key1") == 8161715635210842401
    assert reference_ring.hash("key4") == 15878513814679191950
    assert reference_ring.range_for_key("key1") == 3
    assert reference_ring.range_for_key("key2") == 0
    assert reference_ring.range_for_key("key4") == 7
    assert reference_ring.range_for_key("key75") == 5


def test_reference_plan(reference_ring):
    assert reference_ring.ranges("host1") == [0, 1, 7]
    assert reference_ring.ranges("host2") == [2, 4, 6]
    assert reference_ring.ranges("host3") == [3, 5, 8]
    assert reference_ring.ranges_by_node() == {
        "host1": [0, 1, 7],
        "host2": [2, 4, 6],
        "host3": [3, 5, 8],
    }


def test_bytes_and_str_keys_agree(reference_ring):
    assert reference_ring.hash(b"key1") == reference_ring.hash("key1")
    assert reference_ring.id_for_key(b"key75") == "host3"


def test_input_order_does_not_matter():
    assert RingIndex(["host3", "host1", "host2"], 9, 10) == RingIndex(HOSTS, 9, 10)


@pytest.mark.parametrize(
    "node_count, range_count, seed",
    [(1, 7, 0), (2, 16, 3), (3, 9, 10), (4, 10, 5), (5, 37, 99), (7, 64, 12345), (3, 3, 1)],
)
def test_coverage_and_quota_fairness(node_count, range_count, seed):
    ids = [f"node-{i}" for i in range(node_count)]
    ring = RingIndex(ids, range_count, seed)

    owned = sorted(r for node_id in ids for r in ring.ranges(node_id))
    assert owned == list(range(range_count))

    base, remainder = divmod(range_count, node_count)
    for position, node_id in enumerate(sorted(ids)):
        expected = base + 1 if position < remainder else base
        assert len(ring.ranges(node_id)) == expected


def test_construction_is_deterministic():
    ids = [f"node-{i}" for i in range(6)]
    first = RingIndex(ids, 48, 7)
    second = RingIndex(list(reversed(ids)), 48, 7)
    assert first.allocations == second.allocations
    assert first.snapshot() == second.snapshot()
    assert hash(first) == hash(second)


def test_seed_changes_the_plan():
    ids = [f"node-{i}" for i in range(4)]
    plans = {RingIndex(ids, 32, seed).allocations for seed in range(4)}
    assert len(plans) > 1


def test_lookup_stability_and_consistency(reference_ring):
    for i in range(200):
        key = f"entity-{i}"
        owner = reference_ring.id_for_key(key)
        range_id = reference_ring.range_for_key(key)
        assert owner == reference_ring.allocations[range_id]
        assert owner == reference_ring.owner(range_id)
        assert range_id in reference_ring.ranges(owner)
        assert reference_ring.id_for_key(key) == owner


def test_boundary_exactness(reference_ring):
    ring = reference_ring
    for range_id in range(ring.range_count):
        lo, hi = ring.bounds(range_id)
        assert ring.range_for_hash(lo) == range_id
        assert ring.range_for_hash(hi - 1) == range_id
        if range_id < ring.range_count - 1:
            assert ring.range_for_hash(hi) == range_id + 1
    assert ring.range_for_hash(0) == 0
    assert ring.range_for_hash(MAX_HASH_VALUE) == ring.range_count - 1


def test_every_hash_resolves_with_extreme_hash_functions():
    ids = ["a", "b", "c"]
    low = RingIndex(ids, 5, 1, hash_function=lambda seed, data: 0)
    high = RingIndex(ids, 5, 1, hash_function=lambda seed, data: MAX_HASH_VALUE)
    assert low.range_for_key("anything") == 0
    assert high.range_for_key("anything") == 4


def test_out_of_space_hash_fails_loudly():
    ring = RingIndex(["a"], 3, 1, hash_function=lambda seed, data: len(data) << 64)
    with pytest.raises(LookupBoundaryError):
        ring.id_for_key("key")


def test_single_node_owns_everything():
    ring = RingIndex(["solo"], 16, 0)
    assert ring.allocations == ("solo",) * 16
    assert ring.ranges("solo") == list(range(16))
    assert ring.id_for_key("whatever") == "solo"


def test_one_range_per_node():
    ids = ["a", "b", "c", "d"]
    ring = RingIndex(ids, 4, 21)
    assert sorted(ring.allocations) == ids


def test_more_nodes_than_ranges():
    ring = RingIndex(["a", "b", "c", "d"], 2, 3)
    assert sorted(ring.allocations) == ["a", "b"]
    assert ring.ranges("c") == []
    assert ring.ranges("d") == []


def test_unknown_node_owns_nothing(reference_ring):
    assert reference_ring.ranges("host9") == []
    assert "host9" not in reference_ring
    assert "host1" in reference_ring


@pytest.mark.parametrize(
    "ids, field",
    [
        ([], "ids"),
        (["a", "a", "b"], "ids"),
        (["a", 7], "ids"),
        ("abc", "ids"),
    ],
)
def test_invalid_ids_rejected(ids, field):
    with pytest.raises(InvalidConfigurationError) as exc_info:
        RingIndex(ids, 9, 10)
    assert exc_info.value.field == field


@pytest.mark.parametrize("ranges", [0, -3])
def test_invalid_range_count_rejected(ranges):
    with pytest.raises(InvalidConfigurationError) as exc_info:
        RingIndex(HOSTS, ranges, 10)
    assert exc_info.value.field == "ranges"


@pytest.mark.parametrize("seed", [-1, 1 << 32, "10", True])
def test_invalid_seed_rejected(seed):
    with pytest.raises(InvalidConfigurationError) as exc_info:
        RingIndex(HOSTS, 9, seed)
    assert exc_info.value.field == "seed"


def test_invalid_configuration_fails_before_allocation():
    calls = []

    def factory(seed):
        calls.append(seed)
        raise AssertionError("allocation must not start")

    with pytest.raises(InvalidConfigurationError):
        RingIndex(HOSTS, 0, 10, stream_factory=factory)
    assert calls == []


def test_ring_is_immutable(reference_ring):
    with pytest.raises(AttributeError):
        reference_ring._allocations = ()
    with pytest.raises(AttributeError):
        reference_ring.extra = 1
    with pytest.raises(AttributeError):
        del reference_ring._ids
    assert isinstance(reference_ring.allocations, tuple)


def test_unknown_range_id(reference_ring):
    with pytest.raises(UnknownRangeError):
        reference_ring.owner(9)
    with pytest.raises(UnknownRangeError):
        reference_ring.bounds(-1)


def test_snapshot(reference_ring):
    snapshot = reference_ring.snapshot()
    assert isinstance(snapshot, RingSnapshot)
    assert snapshot.ids == HOSTS
    assert snapshot.seed == 10
    assert snapshot.range_count == 9
    assert snapshot.range_width == MAX_HASH_VALUE // 9
    assert snapshot.upper_bounds[-1] == MAX_HASH_VALUE
    assert snapshot.allocations == list(reference_ring.allocations)

    payload = snapshot.model_dump()
    assert RingSnapshot.model_validate(payload) == snapshot


def test_diff_after_node_removal(reference_ring):
    smaller = RingIndex(["host1", "host3"], 9, 10)
    assert smaller.allocations == (
        "host1", "host1", "host1", "host3", "host3", "host3", "host3", "host1", "host1",
    )
    assert reference_ring.diff(smaller) == [
        RangeMove(range_id=2, old_owner="host2", new_owner="host1"),
        RangeMove(range_id=4, old_owner="host2", new_owner="host3"),
        RangeMove(range_id=6, old_owner="host2", new_owner="host3"),
        RangeMove(range_id=8, old_owner="host3", new_owner="host1"),
    ]
    assert reference_ring.diff(reference_ring) == []


def test_diff_requires_same_range_count(reference_ring):
    with pytest.raises(InvalidConfigurationError):
        reference_ring.diff(RingIndex(HOSTS, 10, 10))


def test_key_distribution():
    ids = [f"node-{i}" for i in range(4)]
    ring = RingIndex(ids, 64, 11)
    distribution = ring.key_distribution(f"user:{i}" for i in range(4000))
    assert set(distribution) == set(ids)
    assert sum(distribution.values()) == 4000
    assert all(count > 500 for count in distribution.values())


def test_from_config():
    config = RingConfig(ids=["host2", "host1", "host3"], ranges=9, seed=10)
    assert RingIndex.from_config(config) == RingIndex(HOSTS, 9, 10)


def test_pluggable_stream_keeps_invariants():
    ids = [f"node-{i}" for i in range(5)]
    ring = RingIndex(ids, 23, 8, stream_factory=Pcg64Stream)
    again = RingIndex(ids, 23, 8, stream_factory=Pcg64Stream)
    assert ring.allocations == again.allocations
    counts = sorted(len(ring.ranges(node_id)) for node_id in ids)
    assert counts == [4, 4, 5, 5, 5]


def test_build_is_logged(caplog):
    with caplog.at_level(logging.INFO, logger="range_ring.ring_index"):
        RingIndex(HOSTS, 9, 10)
    assert "Allocated 9 ranges across 3 nodes" in caplog.text


def test_concurrent_readers_agree(reference_ring):
    keys = [f"session-{i}" for i in range(300)]
    expected = [reference_ring.id_for_key(key) for key in keys]
    results = []

    def worker():
        results.append([reference_ring.id_for_key(key) for key in keys])

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results == [expected] * 8


def test_repr(reference_ring):
    assert repr(reference_ring) == "RingIndex(nodes=3, ranges=9, seed=10)"
    assert len(reference_ring) == 9
