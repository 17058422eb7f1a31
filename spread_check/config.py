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


"""Configuration classes, auto-loaded from SPREAD_* environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from spread_check import console
from spread_check.constants import (
    DEFAULT_KUBECTL_TIMEOUT,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    ENV_PREFIX,
)


class PollingConfig(BaseSettings):
    """Convergence polling policy shared by every poller in a scenario.

    Attributes:
        interval_seconds: Sleep between evaluations.
        timeout_seconds: Deadline for one condition, measured from its first evaluation.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    timeout_seconds: float = Field(default=DEFAULT_POLL_TIMEOUT_SECONDS, ge=0)


class ClusterConfig(BaseSettings):
    """How kubectl reaches the cluster.

    Attributes:
        kubeconfig: Path to a kubeconfig file, or None for kubectl's default.
        context: kubeconfig context, or None for the current context.
        kubectl_timeout: Maximum seconds for a single kubectl call.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    kubeconfig: str | None = None
    context: str | None = None
    kubectl_timeout: int = Field(default=DEFAULT_KUBECTL_TIMEOUT, ge=1, le=600)


class SpreadConfig(BaseSettings):
    """Placement expectations and workload overrides.

    Attributes:
        pool_capacity: Pools available for placement, or None when unknown.
            When smaller than the replica count, the check expects exactly
            that many distinct pools.
        namespace: Override for the workload namespace, or None to use the manifest's.
        replicas: Override for the requested replica count, or None to use ``spec.replicas``.
        require_node_spread: Also require the hosting pools to sit on distinct nodes.
            Off by default: the placement policy only spreads across pools.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    pool_capacity: int | None = Field(default=None, ge=1)
    namespace: str | None = None
    replicas: int | None = Field(default=None, ge=0)
    require_node_spread: bool = False


# ============================================================================
# Config resolution
# ============================================================================

def _given(values: dict) -> dict:
    return {key: value for key, value in values.items() if value is not None}


def resolve_config(
    interval: float | None = None,
    timeout: float | None = None,
    kubeconfig: str | None = None,
    context: str | None = None,
    pool_capacity: int | None = None,
    namespace: str | None = None,
    replicas: int | None = None,
    require_node_spread: bool | None = None,
) -> tuple[PollingConfig, ClusterConfig, SpreadConfig]:
    """Merge CLI overrides, environment variables, and defaults into config objects.

    Resolution priority: CLI arguments > SPREAD_* environment variables > defaults.

    Returns:
        Tuple of (PollingConfig, ClusterConfig, SpreadConfig).
    """
    polling_updates = {"interval_seconds": interval, "timeout_seconds": timeout}
    cluster_updates = {"kubeconfig": kubeconfig, "context": context}
    spread_updates = {
        "pool_capacity": pool_capacity,
        "namespace": namespace,
        "replicas": replicas,
        "require_node_spread": require_node_spread,
    }

    # init kwargs take precedence over env vars and are validated like them
    polling_cfg = PollingConfig(**_given(polling_updates))
    cluster_cfg = ClusterConfig(**_given(cluster_updates))
    spread_cfg = SpreadConfig(**_given(spread_updates))
    return polling_cfg, cluster_cfg, spread_cfg


# ============================================================================
# Display
# ============================================================================

def display_config(polling_cfg: PollingConfig, cluster_cfg: ClusterConfig, spread_cfg: SpreadConfig) -> None:
    """Print the resolved configuration."""
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print("[yellow]Polling:[/yellow]")
    console.print(f"  interval_seconds: {polling_cfg.interval_seconds}")
    console.print(f"  timeout_seconds : {polling_cfg.timeout_seconds}")
    console.print("[yellow]Cluster:[/yellow]")
    console.print(f"  kubeconfig      : {cluster_cfg.kubeconfig or '(kubectl default)'}")
    console.print(f"  context         : {cluster_cfg.context or '(current)'}")
    console.print(f"  kubectl_timeout : {cluster_cfg.kubectl_timeout}")
    console.print("[yellow]Spread:[/yellow]")
    console.print(f"  pool_capacity   : {spread_cfg.pool_capacity or '(unknown)'}")
    console.print(f"  namespace       : {spread_cfg.namespace or '(from manifest)'}")
    console.print(f"  replicas        : {spread_cfg.replicas if spread_cfg.replicas is not None else '(from manifest)'}")
    console.print(f"  node_spread     : {'required' if spread_cfg.require_node_spread else 'reported only'}")
