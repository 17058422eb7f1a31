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


"""Immutable snapshots of listed cluster resources."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from spread_check.constants import (
    KIND_POD,
    LABEL_HOSTNAME,
    LABEL_PERSISTENT_VOLUME,
    LABEL_POOL_NAME,
    LABEL_POOL_UID,
    LABEL_VOLUME_NAME,
)


def _frozen(labels: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(labels or {}))


@dataclass(frozen=True)
class ResourceRef:
    """Identity of a cluster resource plus its labels.

    Two refs are equal when kind, namespace and name match. Labels take part
    in selection only, never in equality or hashing.

    Attributes:
        kind: Resource kind (e.g. ``PersistentVolumeClaim``).
        namespace: Namespace, or ``""`` for cluster-scoped resources.
        name: Resource name.
        labels: Read-only label mapping.
    """

    kind: str
    namespace: str
    name: str
    labels: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", _frozen(self.labels))

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.kind, self.namespace, self.name)

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class ResourceRecord:
    """Snapshot of one resource taken at list time.

    Only the fields the verification steps read are kept; a later list call
    produces new records instead of updating these.

    Attributes:
        ref: Identity and labels.
        uid: API-assigned unique identifier.
        phase: ``status.phase`` (claims, pods), or None.
        node_name: Node hosting the resource (pods, pools), or None.
        pool_name: Pool hosting a replica, or None.
        pool_uid: UID of the pool hosting a replica, or None.
        volume_name: Volume a replica belongs to, or None.
    """

    ref: ResourceRef
    uid: str | None = None
    phase: str | None = None
    node_name: str | None = None
    pool_name: str | None = None
    pool_uid: str | None = None
    volume_name: str | None = None

    @property
    def kind(self) -> str:
        return self.ref.kind

    @property
    def namespace(self) -> str:
        return self.ref.namespace

    @property
    def name(self) -> str:
        return self.ref.name

    @property
    def labels(self) -> Mapping[str, str]:
        return self.ref.labels

    @classmethod
    def from_object(cls, obj: Mapping[str, Any], kind: str | None = None) -> ResourceRecord:
        """Build a record from a raw API object.

        Args:
            obj: Decoded API object (``kubectl -o json`` item).
            kind: Kind to use when the object omits it, as list items may.

        Returns:
            A new frozen record.
        """
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        status = obj.get("status") or {}
        labels = metadata.get("labels") or {}
        resolved_kind = obj.get("kind") or kind or ""

        node_name = spec.get("nodeName") if resolved_kind == KIND_POD else None
        if node_name is None:
            node_name = labels.get(LABEL_HOSTNAME)

        return cls(
            ref=ResourceRef(
                kind=resolved_kind,
                namespace=metadata.get("namespace") or "",
                name=metadata.get("name") or "",
                labels=labels,
            ),
            uid=metadata.get("uid"),
            phase=status.get("phase"),
            node_name=node_name,
            pool_name=labels.get(LABEL_POOL_NAME),
            pool_uid=labels.get(LABEL_POOL_UID),
            volume_name=labels.get(LABEL_PERSISTENT_VOLUME) or labels.get(LABEL_VOLUME_NAME),
        )


@dataclass(frozen=True)
class ResourceCollection:
    """Ordered records of one kind, exactly as one list call returned them."""

    kind: str
    items: tuple[ResourceRecord, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[ResourceRecord]:
        return iter(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def names(self) -> list[str]:
        return [record.name for record in self.items]

    def identities(self) -> set[tuple[str, str, str]]:
        return {record.ref.identity for record in self.items}

    def refs(self) -> list[ResourceRef]:
        return [record.ref for record in self.items]


@dataclass(frozen=True)
class PlacementFact:
    """Which pool a replica was placed on."""

    replica_id: str
    pool_id: str


def length(collection: ResourceCollection) -> int:
    """Number of records in *collection*."""
    return len(collection)
