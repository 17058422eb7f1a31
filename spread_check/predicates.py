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


"""Predicates over single resource records and order-preserving filtering."""

from __future__ import annotations

from collections.abc import Callable

from spread_check.constants import PHASE_BOUND, PHASE_RUNNING
from spread_check.models import ResourceCollection, ResourceRecord

Predicate = Callable[[ResourceRecord], bool]


def in_phase(*phases: str) -> Predicate:
    """Predicate to check if a record's ``status.phase`` is one of *phases*."""
    wanted = frozenset(phases)

    def check(record: ResourceRecord) -> bool:
        return record.phase in wanted

    return check


def is_bound() -> Predicate:
    """Predicate to check if a claim has been bound to a volume."""
    return in_phase(PHASE_BOUND)


def is_running() -> Predicate:
    """Predicate to check if a pod is running."""
    return in_phase(PHASE_RUNNING)


def contains_name(substring: str) -> Predicate:
    """Predicate to check if a record's name contains *substring*.

    StatefulSet dependents share labels but carry generated suffixes
    (``busybox1-busybox1-0``), so a substring match picks out one workload.
    """

    def check(record: ResourceRecord) -> bool:
        return substring in record.name

    return check


def has_label(key: str, value: str | None = None) -> Predicate:
    """Predicate to check if a record carries label *key* (optionally equal to *value*)."""

    def check(record: ResourceRecord) -> bool:
        if key not in record.labels:
            return False
        return value is None or record.labels[key] == value

    return check


def all_of(*predicates: Predicate) -> Predicate:
    """Logical AND of *predicates*; true for every record when empty."""

    def check(record: ResourceRecord) -> bool:
        return all(p(record) for p in predicates)

    return check


def any_of(*predicates: Predicate) -> Predicate:
    """Logical OR of *predicates*; false for every record when empty."""

    def check(record: ResourceRecord) -> bool:
        return any(p(record) for p in predicates)

    return check


def negate(predicate: Predicate) -> Predicate:
    """Logical NOT of *predicate*."""

    def check(record: ResourceRecord) -> bool:
        return not predicate(record)

    return check


def filter_collection(collection: ResourceCollection, *predicates: Predicate) -> ResourceCollection:
    """Keep the records matching every predicate, in their original order.

    Args:
        collection: Records from a single list call.
        *predicates: Predicates combined with AND. None keeps everything.

    Returns:
        A new collection of the same kind; the input is not modified.
    """
    keep = all_of(*predicates)
    return ResourceCollection(
        kind=collection.kind,
        items=tuple(record for record in collection if keep(record)),
    )
