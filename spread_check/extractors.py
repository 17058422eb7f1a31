# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""Derived facts over collections and the replica spread invariant."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from spread_check import logger
from spread_check.errors import InvariantViolation
from spread_check.models import PlacementFact, ResourceCollection, ResourceRecord


def placement_facts(replicas: Iterable[ResourceRecord]) -> list[PlacementFact]:
    """Extract (replica, pool) pairs from replica records.

    Replicas not yet assigned to a pool are skipped.

    Args:
        replicas: Replica records, typically one list call's collection.

    Returns:
        One fact per placed replica, in input order.
    """
    return [
        PlacementFact(replica_id=record.name, pool_id=record.pool_name)
        for record in replicas
        if record.pool_name
    ]


def _unique(values: Iterable[str | None]) -> set[str]:
    return {value for value in values if value}


def unique_pool_identifiers(collection: ResourceCollection) -> set[str]:
    """Distinct pool names referenced by a replica collection."""
    return _unique(record.pool_name for record in collection)


def unique_pool_uids(collection: ResourceCollection) -> set[str]:
    """Distinct UIDs of a pool collection."""
    return _unique(record.uid for record in collection)


def unique_node_identifiers(collection: ResourceCollection) -> set[str]:
    """Distinct node names hosting the records of *collection*."""
    return _unique(record.node_name for record in collection)


def required_spread(replica_count: int, pool_capacity: int | None = None) -> int:
    """Number of distinct pools a fully spread placement must use.

    Args:
        replica_count: Replicas the workload requested.
        pool_capacity: Pools available for placement, or None when unknown.

    Returns:
        ``replica_count`` when capacity is unknown or sufficient, otherwise
        ``pool_capacity``.
    """
    if pool_capacity is None or pool_capacity >= replica_count:
        return replica_count
    return pool_capacity


@dataclass(frozen=True)
class SpreadResult:
    """Outcome of a spread check.

    Attributes:
        required: Distinct pool count the placement needed.
        pools: Distinct pools observed.
        facts: Placement facts the check was computed from.
    """

    required: int
    pools: frozenset[str]
    facts: tuple[PlacementFact, ...]

    @property
    def distinct(self) -> int:
        return len(self.pools)

    @property
    def satisfied(self) -> bool:
        return self.distinct == self.required


def evaluate_spread(
    facts: Iterable[PlacementFact],
    replica_count: int,
    pool_capacity: int | None = None,
) -> SpreadResult:
    """Compute the spread of *facts* without raising."""
    facts = tuple(facts)
    return SpreadResult(
        required=required_spread(replica_count, pool_capacity),
        pools=frozenset(fact.pool_id for fact in facts),
        facts=facts,
    )


def check_spread(
    facts: Iterable[PlacementFact],
    replica_count: int,
    pool_capacity: int | None = None,
) -> SpreadResult:
    """Verify that replicas are spread across distinct pools.

    Args:
        facts: Placement facts for the workload's replicas.
        replica_count: Replicas the workload requested.
        pool_capacity: Pools available for placement, or None when unknown.

    Returns:
        The satisfied spread result.

    Raises:
        InvariantViolation: If the distinct pool count differs from the
            required spread.
    """
    result = evaluate_spread(facts, replica_count, pool_capacity)
    if not result.satisfied:
        raise InvariantViolation(
            f"replicas span {result.distinct} distinct pools, expected {result.required} "
            f"(pools: {sorted(result.pools)})",
            expected=result.required,
            observed=result.distinct,
        )
    logger.debug("Spread satisfied: %d replicas on pools %s", len(result.facts), sorted(result.pools))
    return result
