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


"""Typed list/apply/delete access to cluster resources."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol

from spread_check import logger
from spread_check.config import ClusterConfig
from spread_check.errors import ClusterAPIError
from spread_check.manifest import dump_document, ref_from_document
from spread_check.models import ResourceCollection, ResourceRecord, ResourceRef
from spread_check.utils import kubectl_base_args, run_kubectl


class ResourceClient(Protocol):
    """Cluster boundary consumed by the poller and the orchestrator.

    ``list`` with zero matches returns an empty collection. ``apply`` and
    ``delete`` raise ``ClusterAPIError`` on failure and are never retried here.
    """

    def list(self, kind: str, namespace: str = "", label_selector: str = "") -> ResourceCollection:
        ...

    def apply(self, document: Mapping[str, Any]) -> ResourceRef:
        ...

    def delete(self, ref: ResourceRef) -> None:
        ...


class KubectlResourceClient:
    """ResourceClient backed by the ``kubectl`` binary.

    Args:
        cluster_cfg: Target cluster and per-call timeout.
    """

    def __init__(self, cluster_cfg: ClusterConfig | None = None) -> None:
        self._cfg = cluster_cfg or ClusterConfig()
        self._base = kubectl_base_args(self._cfg.kubeconfig, self._cfg.context)

    def _run(self, args: list[str], stdin: str | None = None) -> str:
        command = [*self._base, *args]
        ok, stdout, stderr = run_kubectl(command, timeout=self._cfg.kubectl_timeout, stdin=stdin)
        if not ok:
            raise ClusterAPIError(
                f"kubectl {' '.join(args)} failed: {stderr.strip()[:200]}",
                command=command,
                stderr=stderr,
            )
        return stdout

    @staticmethod
    def _decode(stdout: str, args: list[str]) -> dict:
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as err:
            raise ClusterAPIError(f"kubectl {' '.join(args)} returned invalid JSON: {err}", command=args) from err

    def list(self, kind: str, namespace: str = "", label_selector: str = "") -> ResourceCollection:
        """List resources of *kind*, preserving API order.

        Args:
            kind: Resource kind, e.g. ``PersistentVolumeClaim``.
            namespace: Namespace to list in; ``""`` lists all namespaces.
            label_selector: Equality selector (``key=value``), or ``""``.

        Returns:
            Collection of fresh records.

        Raises:
            ClusterAPIError: If kubectl fails or prints unparsable output.
        """
        args = ["get", kind.lower(), "-o", "json"]
        args += ["-n", namespace] if namespace else ["--all-namespaces"]
        if label_selector:
            args += ["-l", label_selector]
        payload = self._decode(self._run(args), args)
        items = payload.get("items") or []
        logger.debug("Listed %d %s (ns=%r, selector=%r)", len(items), kind, namespace, label_selector)
        return ResourceCollection(
            kind=kind,
            items=tuple(ResourceRecord.from_object(item, kind=kind) for item in items),
        )

    def apply(self, document: Mapping[str, Any]) -> ResourceRef:
        """Create or update the resource described by *document*.

        Raises:
            ManifestError: If the document cannot be identified (nothing is sent).
            ClusterAPIError: If kubectl rejects the document.
        """
        ref = ref_from_document(document)
        args = ["apply", "-f", "-", "-o", "json"]
        stdout = self._run(args, stdin=dump_document(document))
        applied = ResourceRecord.from_object(self._decode(stdout, args), kind=ref.kind).ref
        logger.info("Applied %s", applied)
        return applied

    def delete(self, ref: ResourceRef) -> None:
        """Delete one resource without waiting for finalizers.

        Raises:
            ClusterAPIError: If kubectl fails, including when the resource is absent.
        """
        args = ["delete", ref.kind.lower(), ref.name, "--wait=false"]
        if ref.namespace:
            args += ["-n", ref.namespace]
        self._run(args)
        logger.info("Deleted %s", ref)
