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


"""Constants, default artifact loading, and label helpers."""

from __future__ import annotations

from pathlib import Path

import yaml

# -- Resolved paths --
PACKAGE_DIR = Path(__file__).resolve().parent
ARTIFACTS_DIR = PACKAGE_DIR / "artifacts"


def load_artifact(name: str) -> str:
    """Read a bundled manifest artifact as raw YAML text.

    Args:
        name: File name under the ``artifacts`` directory.

    Returns:
        The artifact text, unparsed.
    """
    with open(ARTIFACTS_DIR / name) as f:
        return f.read()


def load_artifact_documents(name: str) -> list[dict]:
    """Parse a bundled manifest artifact into its YAML documents.

    Args:
        name: File name under the ``artifacts`` directory.

    Returns:
        Non-empty documents in file order.
    """
    return [doc for doc in yaml.safe_load_all(load_artifact(name)) if doc]


# -- Bundled artifacts --
STATEFULSET_ARTIFACT = "statefulset.yaml"
STORAGECLASS_ARTIFACT = "storageclass.yaml"

# -- Resource kinds --
KIND_CLAIM = "PersistentVolumeClaim"
KIND_POD = "Pod"
KIND_REPLICA = "CStorVolumeReplica"
KIND_POOL = "CStorPool"
KIND_STATEFULSET = "StatefulSet"
KIND_STORAGECLASS = "StorageClass"

CLUSTER_SCOPED_KINDS = frozenset({
    "StorageClass",
    "Namespace",
    "Node",
    "PersistentVolume",
    "CustomResourceDefinition",
    "ClusterRole",
    "ClusterRoleBinding",
    "CStorPool",
    "StoragePoolClaim",
})

# -- Phases --
PHASE_BOUND = "Bound"
PHASE_RUNNING = "Running"

# -- Labels --
LABEL_APP = "app"
LABEL_REPLICA_ANTI_AFFINITY = "openebs.io/replica-anti-affinity"
LABEL_POOL_NAME = "cstorpool.openebs.io/name"
LABEL_POOL_UID = "cstorpool.openebs.io/uid"
LABEL_PERSISTENT_VOLUME = "openebs.io/persistent-volume"
LABEL_VOLUME_NAME = "cstorvolume.openebs.io/name"
LABEL_HOSTNAME = "kubernetes.io/hostname"

# -- Polling defaults --
DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_POLL_TIMEOUT_SECONDS = 300.0

# -- kubectl --
DEFAULT_KUBECTL_TIMEOUT = 60
KUBECTL = "kubectl"

# -- Environment --
ENV_PREFIX = "SPREAD_"


def label_selector(key: str, value: str) -> str:
    """Build a single equality label selector.

    Args:
        key: Label key.
        value: Label value.

    Returns:
        Selector string of the form ``key=value``.
    """
    return f"{key}={value}"
