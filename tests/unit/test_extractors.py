"""Tests for spread_check.extractors: placement facts and the spread invariant."""

from __future__ import annotations

import pytest

from spread_check.constants import KIND_POD, KIND_POOL, KIND_REPLICA, LABEL_HOSTNAME
from spread_check.errors import InvariantViolation
from spread_check.extractors import (
    check_spread,
    evaluate_spread,
    placement_facts,
    required_spread,
    unique_node_identifiers,
    unique_pool_identifiers,
    unique_pool_uids,
)
from spread_check.models import PlacementFact
from tests.conftest import collection, make_record, make_replica


def _facts(*pools: str) -> list[PlacementFact]:
    return [PlacementFact(replica_id=f"r{i}", pool_id=pool) for i, pool in enumerate(pools)]


class TestPlacementFacts:
    def test_one_fact_per_placed_replica(self) -> None:
        replicas = collection(KIND_REPLICA, make_replica("r0", "pool-a"), make_replica("r1", "pool-b"))
        assert placement_facts(replicas) == [
            PlacementFact("r0", "pool-a"),
            PlacementFact("r1", "pool-b"),
        ]

    def test_unplaced_replicas_skipped(self) -> None:
        replicas = collection(KIND_REPLICA, make_replica("r0", None), make_replica("r1", "pool-b"))
        assert placement_facts(replicas) == [PlacementFact("r1", "pool-b")]


class TestUniqueIdentifiers:
    def test_pool_identifiers_dedupe_by_value(self) -> None:
        replicas = collection(
            KIND_REPLICA,
            make_replica("r0", "pool-a"),
            make_replica("r1", "pool-a"),
            make_replica("r2", "pool-b"),
            make_replica("r3", None),
        )
        assert unique_pool_identifiers(replicas) == {"pool-a", "pool-b"}

    def test_pool_uids(self) -> None:
        pools = collection(
            KIND_POOL,
            make_record(KIND_POOL, "pool-a", namespace="", uid="u1"),
            make_record(KIND_POOL, "pool-b", namespace="", uid="u2"),
            make_record(KIND_POOL, "pool-c", namespace=""),
        )
        assert unique_pool_uids(pools) == {"u1", "u2"}

    def test_node_identifiers(self) -> None:
        pods = collection(
            KIND_POD,
            make_record(KIND_POD, "p0", node_name="n1"),
            make_record(KIND_POD, "p1", node_name="n1"),
            make_record(KIND_POD, "p2", node_name="n2"),
            make_record(KIND_POD, "p3"),
        )
        assert unique_node_identifiers(pods) == {"n1", "n2"}

    def test_node_identifiers_from_pool_hostname(self) -> None:
        pools = collection(KIND_POOL, make_record(KIND_POOL, "a", namespace="", labels={LABEL_HOSTNAME: "n1"}))
        assert unique_node_identifiers(pools) == {"n1"}

    def test_empty(self) -> None:
        assert unique_pool_identifiers(collection(KIND_REPLICA)) == set()


class TestRequiredSpread:
    @pytest.mark.parametrize(
        ("replicas", "capacity", "expected"),
        [(3, None, 3), (3, 5, 3), (3, 3, 3), (3, 2, 2), (0, None, 0)],
    )
    def test_values(self, replicas: int, capacity: int | None, expected: int) -> None:
        assert required_spread(replicas, capacity) == expected


class TestCheckSpread:
    def test_distinct_pools_pass(self) -> None:
        result = check_spread(_facts("A", "B", "C"), replica_count=3)
        assert result.satisfied
        assert result.distinct == 3
        assert result.pools == frozenset({"A", "B", "C"})

    def test_shared_pool_raises(self) -> None:
        with pytest.raises(InvariantViolation) as exc_info:
            check_spread(_facts("A", "A", "B"), replica_count=3)
        assert exc_info.value.expected == 3
        assert exc_info.value.observed == 2

    def test_too_few_facts_raises(self) -> None:
        with pytest.raises(InvariantViolation):
            check_spread(_facts("A", "B"), replica_count=3)

    def test_limited_capacity_requires_every_pool(self) -> None:
        assert check_spread(_facts("A", "B", "A"), replica_count=3, pool_capacity=2).satisfied

    def test_limited_capacity_underused_raises(self) -> None:
        with pytest.raises(InvariantViolation) as exc_info:
            check_spread(_facts("A", "A", "A"), replica_count=3, pool_capacity=2)
        assert exc_info.value.expected == 2
        assert exc_info.value.observed == 1

    def test_evaluate_does_not_raise(self) -> None:
        result = evaluate_spread(_facts("A", "A"), replica_count=2)
        assert not result.satisfied
        assert result.required == 2
        assert len(result.facts) == 2
