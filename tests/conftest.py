"""Shared fixtures: a virtual clock and an in-memory cluster with a fake storage controller."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

import pytest

from spread_check.constants import (
    KIND_CLAIM,
    KIND_POD,
    KIND_POOL,
    KIND_REPLICA,
    KIND_STATEFULSET,
    LABEL_APP,
    LABEL_HOSTNAME,
    LABEL_PERSISTENT_VOLUME,
    LABEL_POOL_NAME,
    LABEL_POOL_UID,
    LABEL_REPLICA_ANTI_AFFINITY,
    PHASE_BOUND,
    PHASE_RUNNING,
)
from spread_check.errors import ClusterAPIError
from spread_check.manifest import ref_from_document
from spread_check.models import ResourceCollection, ResourceRecord, ResourceRef

REPLICA_NAMESPACE = "openebs"


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_object(
    kind: str,
    name: str,
    namespace: str = "default",
    labels: Mapping[str, str] | None = None,
    phase: str | None = None,
    uid: str | None = None,
    node_name: str | None = None,
) -> dict:
    """Build a raw API object the way ``kubectl -o json`` would return it."""
    obj: dict[str, Any] = {
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace, "labels": dict(labels or {})},
        "spec": {},
        "status": {},
    }
    if uid:
        obj["metadata"]["uid"] = uid
    if phase:
        obj["status"]["phase"] = phase
    if node_name:
        obj["spec"]["nodeName"] = node_name
    return obj


def make_record(kind: str, name: str, **kwargs: Any) -> ResourceRecord:
    return ResourceRecord.from_object(make_object(kind, name, **kwargs))


def make_replica(name: str, pool: str | None, affinity: str = "busybox1") -> ResourceRecord:
    labels = {LABEL_REPLICA_ANTI_AFFINITY: affinity}
    if pool:
        labels[LABEL_POOL_NAME] = pool
        labels[LABEL_POOL_UID] = f"uid-{pool}"
    return make_record(KIND_REPLICA, name, namespace=REPLICA_NAMESPACE, labels=labels)


def collection(kind: str, *records: ResourceRecord) -> ResourceCollection:
    return ResourceCollection(kind=kind, items=records)


class FakeCluster:
    """In-memory ResourceClient.

    Objects are kept in insertion order. An optional controller is ticked
    before every list call to mimic an asynchronous reconciler.
    """

    def __init__(self, controller: FakeStorageController | None = None) -> None:
        self.objects: dict[tuple[str, str, str], dict] = {}
        self.controller = controller
        self.applied: list[ResourceRef] = []
        self.deleted: list[ResourceRef] = []
        self.list_calls = 0
        self.listed: list[str] = []
        self.fail_list_kinds: set[str] = set()
        self.fail_apply_kinds: set[str] = set()
        self.fail_delete_names: set[str] = set()
        self.delete_error = "connection refused"

    # -- direct manipulation --

    def put(self, obj: dict) -> None:
        meta = obj["metadata"]
        namespace = meta.get("namespace") or ""
        self.objects[(obj["kind"], namespace, meta["name"])] = obj

    def remove(self, kind: str, namespace: str, name: str) -> None:
        self.objects.pop((kind, namespace, name), None)

    def of_kind(self, kind: str) -> list[dict]:
        return [obj for (k, _, _), obj in self.objects.items() if k == kind]

    # -- ResourceClient --

    def list(self, kind: str, namespace: str = "", label_selector: str = "") -> ResourceCollection:
        self.list_calls += 1
        self.listed.append(kind)
        if kind in self.fail_list_kinds:
            raise ClusterAPIError(f"list {kind} refused", stderr="Forbidden")
        if self.controller is not None:
            self.controller.tick(self)
        key, _, value = label_selector.partition("=")
        items = []
        for (k, ns, _), obj in self.objects.items():
            if k != kind or (namespace and ns != namespace):
                continue
            labels = obj["metadata"].get("labels") or {}
            if label_selector and labels.get(key) != value:
                continue
            items.append(ResourceRecord.from_object(copy.deepcopy(obj)))
        return ResourceCollection(kind=kind, items=tuple(items))

    def apply(self, document: Mapping[str, Any]) -> ResourceRef:
        ref = ref_from_document(document)
        if ref.kind in self.fail_apply_kinds:
            raise ClusterAPIError(f"apply {ref.kind} refused", stderr="Unauthorized")
        obj = copy.deepcopy(dict(document))
        obj["metadata"]["namespace"] = ref.namespace
        self.put(obj)
        self.applied.append(ref)
        return ref

    def delete(self, ref: ResourceRef) -> None:
        if ref.name in self.fail_delete_names:
            raise ClusterAPIError(f"delete {ref} refused", stderr=self.delete_error)
        if ref.identity not in self.objects:
            raise ClusterAPIError(f"{ref} not found", stderr=f'Error from server (NotFound): "{ref.name}" not found')
        del self.objects[ref.identity]
        self.deleted.append(ref)


class FakeStorageController:
    """Reconciles StatefulSets into claims, pods, and volume replicas.

    On the first tick after a StatefulSet appears, pending claims and pods are
    created. ``ready_after`` ticks later they become bound/running and one
    replica per claim is placed on a pool. Pods disappear once their
    StatefulSet is gone; replicas disappear once their claim is gone.

    Args:
        pools: Pool names to seed; each gets a UID and a node.
        hostname: Node shared by every pool, or None for one node per pool.
        placement: Pool per replica index, or None for round robin.
        ready_after: Ticks between creation and readiness.
    """

    def __init__(
        self,
        pools: tuple[str, ...] = ("pool-a", "pool-b", "pool-c"),
        placement: list[str] | None = None,
        ready_after: int = 1,
        hostname: str | None = None,
    ) -> None:
        self.pools = pools
        self.hostname = hostname
        self.placement = placement
        self.ready_after = ready_after
        self.ages: dict[str, int] = {}
        self.seeded = False

    def seed(self, cluster: FakeCluster) -> None:
        for pool in self.pools:
            cluster.put(make_object(
                KIND_POOL, pool, namespace="",
                uid=f"uid-{pool}", labels={LABEL_HOSTNAME: self.hostname or f"node-{pool}"},
            ))
        self.seeded = True

    def _pool_for(self, index: int) -> str:
        if self.placement is not None:
            return self.placement[index]
        return self.pools[index % len(self.pools)]

    def tick(self, cluster: FakeCluster) -> None:
        if not self.seeded:
            self.seed(cluster)
        live = {obj["metadata"]["name"]: obj for obj in cluster.of_kind(KIND_STATEFULSET)}

        for pod in cluster.of_kind(KIND_POD):
            if pod["metadata"]["labels"].get(LABEL_APP) not in live:
                cluster.remove(KIND_POD, pod["metadata"]["namespace"], pod["metadata"]["name"])
        claim_names = {claim["metadata"]["name"] for claim in cluster.of_kind(KIND_CLAIM)}
        for replica in cluster.of_kind(KIND_REPLICA):
            if replica["metadata"]["labels"][LABEL_PERSISTENT_VOLUME] not in claim_names:
                cluster.remove(KIND_REPLICA, REPLICA_NAMESPACE, replica["metadata"]["name"])

        for name, sts in live.items():
            age = self.ages.get(name, 0)
            self.ages[name] = age + 1
            namespace = sts["metadata"]["namespace"]
            replicas = sts["spec"].get("replicas", 1)
            template_labels = sts["spec"]["template"]["metadata"]["labels"]
            template_name = sts["spec"]["volumeClaimTemplates"][0]["metadata"]["name"]
            ready = age >= self.ready_after
            for i in range(replicas):
                claim = f"{template_name}-{name}-{i}"
                cluster.put(make_object(
                    KIND_CLAIM, claim, namespace=namespace,
                    labels={LABEL_APP: template_labels[LABEL_APP]},
                    phase=PHASE_BOUND if ready else "Pending",
                ))
                cluster.put(make_object(
                    KIND_POD, f"{name}-{i}", namespace=namespace, labels=template_labels,
                    phase=PHASE_RUNNING if ready else "Pending", node_name=f"worker-{i}",
                ))
                if ready:
                    pool = self._pool_for(i)
                    cluster.put(make_object(
                        KIND_REPLICA, f"{claim}-{pool}", namespace=REPLICA_NAMESPACE,
                        labels={
                            LABEL_REPLICA_ANTI_AFFINITY: template_labels[LABEL_REPLICA_ANTI_AFFINITY],
                            LABEL_PERSISTENT_VOLUME: claim,
                            LABEL_POOL_NAME: pool,
                            LABEL_POOL_UID: f"uid-{pool}",
                        },
                    ))



@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def controller() -> FakeStorageController:
    return FakeStorageController()


@pytest.fixture
def cluster(controller: FakeStorageController) -> FakeCluster:
    return FakeCluster(controller)
