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


"""Manifest parsing and identity extraction without kind-specific decoding."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from spread_check.constants import CLUSTER_SCOPED_KINDS
from spread_check.errors import ManifestError
from spread_check.models import ResourceRef


def load_documents(text: str) -> list[dict]:
    """Parse a (possibly multi-document) YAML manifest.

    Args:
        text: Raw YAML text.

    Returns:
        Non-empty documents in order.

    Raises:
        ManifestError: If the text is not valid YAML or a document is not a mapping.
    """
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc]
    except yaml.YAMLError as err:
        raise ManifestError(f"Invalid manifest YAML: {err}") from err
    for doc in documents:
        if not isinstance(doc, dict):
            raise ManifestError(f"Manifest document must be a mapping, got {type(doc).__name__}")
    return documents


def load_manifest_file(path: Path) -> list[dict]:
    """Read and parse a manifest file.

    Raises:
        ManifestError: If the file cannot be read or parsed.
    """
    try:
        text = Path(path).read_text()
    except OSError as err:
        raise ManifestError(f"Cannot read manifest {path}: {err}") from err
    return load_documents(text)


def ref_from_document(document: Mapping[str, Any]) -> ResourceRef:
    """Extract kind, namespace, name and labels from a manifest document.

    Namespaced kinds must carry an explicit namespace; cluster-scoped kinds
    get ``""``.

    Args:
        document: Decoded manifest document.

    Returns:
        The document's resource reference.

    Raises:
        ManifestError: If kind, name, or (for namespaced kinds) namespace is missing.
    """
    kind = document.get("kind")
    if not kind:
        raise ManifestError("Manifest document has no kind", field="kind")
    metadata = document.get("metadata")
    if not isinstance(metadata, Mapping):
        raise ManifestError(f"{kind} manifest has no metadata", field="metadata")
    name = metadata.get("name")
    if not name:
        raise ManifestError(f"{kind} manifest has no metadata.name", field="name")

    namespace = metadata.get("namespace") or ""
    if not namespace and kind not in CLUSTER_SCOPED_KINDS:
        raise ManifestError(f"{kind}/{name} manifest has no metadata.namespace", field="namespace")
    if kind in CLUSTER_SCOPED_KINDS:
        namespace = ""

    return ResourceRef(
        kind=kind,
        namespace=namespace,
        name=name,
        labels=metadata.get("labels") or {},
    )


def validate_documents(documents: Iterable[Mapping[str, Any]]) -> list[ResourceRef]:
    """Extract refs for every document, failing on the first invalid one."""
    return [ref_from_document(doc) for doc in documents]


def requested_replicas(document: Mapping[str, Any]) -> int:
    """Replica count requested by a workload document (``spec.replicas``).

    Kubernetes defaults a missing value to 1.

    Raises:
        ManifestError: If ``spec.replicas`` is present but not a non-negative integer.
    """
    replicas = (document.get("spec") or {}).get("replicas", 1)
    if not isinstance(replicas, int) or isinstance(replicas, bool) or replicas < 0:
        raise ManifestError(f"spec.replicas must be a non-negative integer, got {replicas!r}", field="replicas")
    return replicas


def dump_document(document: Mapping[str, Any]) -> str:
    """Serialize a document to YAML for ``kubectl apply -f -``."""
    return yaml.safe_dump(dict(document), default_flow_style=False, sort_keys=False)
