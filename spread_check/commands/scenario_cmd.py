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


"""Scenario subcommands (run, check, teardown)."""

from __future__ import annotations

from pathlib import Path

import typer

from spread_check import console
from spread_check.client import KubectlResourceClient
from spread_check.config import display_config, resolve_config
from spread_check.constants import KUBECTL
from spread_check.manifest import load_manifest_file
from spread_check.report import display_report, render_report_text
from spread_check.scenario import Scenario, ScenarioOrchestrator, ScenarioReport, default_scenario
from spread_check.utils import require_command

app = typer.Typer(help="Run, check, or tear down a storage workload scenario.")

WorkloadOption = typer.Option(
    None, "--workload", "-w", help="Workload manifest (default: bundled 3-replica StatefulSet)")
PrerequisiteOption = typer.Option(
    None, "--prerequisite", "-p", help="Prerequisite manifest, e.g. a StorageClass (repeatable)")
IntervalOption = typer.Option(None, "--interval", help="Polling interval in seconds (overrides SPREAD_INTERVAL_SECONDS)")
TimeoutOption = typer.Option(None, "--timeout", help="Per-condition timeout in seconds (overrides SPREAD_TIMEOUT_SECONDS)")
PoolCapacityOption = typer.Option(None, "--pool-capacity", help="Pools available for placement")
NamespaceOption = typer.Option(None, "--namespace", "-n", help="Override the workload namespace")
ReplicasOption = typer.Option(None, "--replicas", help="Override the expected replica count")
NodeSpreadOption = typer.Option(
    None, "--require-node-spread/--no-require-node-spread",
    help="Also fail when hosting pools share a node (overrides SPREAD_REQUIRE_NODE_SPREAD)")
KubeconfigOption = typer.Option(None, "--kubeconfig", help="Path to kubeconfig")
ContextOption = typer.Option(None, "--context", help="kubeconfig context")
ReportFileOption = typer.Option(None, "--report-file", help="Also write the report as plain text to this file")


def _orchestrator(
    workload: Path | None,
    prerequisites: list[Path] | None,
    interval: float | None,
    timeout: float | None,
    pool_capacity: int | None,
    namespace: str | None,
    replicas: int | None,
    kubeconfig: str | None,
    context: str | None,
    require_node_spread: bool | None = None,
) -> ScenarioOrchestrator:
    """Resolve configuration and build an orchestrator for the requested manifests.

    Without ``--workload`` the bundled StatefulSet and StorageClass are used;
    ``--prerequisite`` only applies together with ``--workload``.
    """
    require_command(KUBECTL)
    polling_cfg, cluster_cfg, spread_cfg = resolve_config(
        interval=interval,
        timeout=timeout,
        kubeconfig=kubeconfig,
        context=context,
        pool_capacity=pool_capacity,
        namespace=namespace,
        replicas=replicas,
        require_node_spread=require_node_spread,
    )
    display_config(polling_cfg, cluster_cfg, spread_cfg)

    if workload is None:
        scenario = default_scenario(polling_cfg, spread_cfg)
    else:
        prerequisite_docs = [doc for path in prerequisites or [] for doc in load_manifest_file(path)]
        scenario = Scenario.from_manifests(
            load_manifest_file(workload),
            prerequisite_docs,
            polling=polling_cfg,
            spread=spread_cfg,
        )
    return ScenarioOrchestrator(KubectlResourceClient(cluster_cfg), scenario)


def _finish(report: ScenarioReport, report_file: Path | None) -> None:
    display_report(report)
    if report_file is not None:
        report_file.write_text(render_report_text(report))
    if not report.passed:
        raise typer.Exit(code=1)


@app.command()
def run(
    workload: Path | None = WorkloadOption,
    prerequisite: list[Path] | None = PrerequisiteOption,
    interval: float | None = IntervalOption,
    timeout: float | None = TimeoutOption,
    pool_capacity: int | None = PoolCapacityOption,
    namespace: str | None = NamespaceOption,
    replicas: int | None = ReplicasOption,
    require_node_spread: bool | None = NodeSpreadOption,
    kubeconfig: str | None = KubeconfigOption,
    context: str | None = ContextOption,
    report_file: Path | None = ReportFileOption,
) -> None:
    """Full lifecycle: apply, verify creation, assert spread, tear down, verify removal."""
    orchestrator = _orchestrator(
        workload, prerequisite, interval, timeout, pool_capacity, namespace, replicas, kubeconfig, context,
        require_node_spread,
    )
    _finish(orchestrator.run(), report_file)


@app.command()
def check(
    workload: Path | None = WorkloadOption,
    interval: float | None = IntervalOption,
    timeout: float | None = TimeoutOption,
    pool_capacity: int | None = PoolCapacityOption,
    namespace: str | None = NamespaceOption,
    replicas: int | None = ReplicasOption,
    require_node_spread: bool | None = NodeSpreadOption,
    kubeconfig: str | None = KubeconfigOption,
    context: str | None = ContextOption,
    report_file: Path | None = ReportFileOption,
) -> None:
    """Verify convergence and spread of an already deployed workload."""
    orchestrator = _orchestrator(
        workload, None, interval, timeout, pool_capacity, namespace, replicas, kubeconfig, context,
        require_node_spread,
    )
    _finish(orchestrator.run_checks(), report_file)


@app.command()
def teardown(
    workload: Path | None = WorkloadOption,
    prerequisite: list[Path] | None = PrerequisiteOption,
    interval: float | None = IntervalOption,
    timeout: float | None = TimeoutOption,
    namespace: str | None = NamespaceOption,
    kubeconfig: str | None = KubeconfigOption,
    context: str | None = ContextOption,
) -> None:
    """Delete a workload left behind by an interrupted run and wait for its dependents to go."""
    orchestrator = _orchestrator(
        workload, prerequisite, interval, timeout, None, namespace, None, kubeconfig, context,
    )
    console.print(f"[yellow]ℹ️  Tearing down {orchestrator.scenario.workload_name}...[/yellow]")
    _finish(orchestrator.run_teardown(), None)
