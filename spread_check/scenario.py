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


"""Scenario lifecycle: setup, convergence checks, placement assertion, teardown."""

from __future__ import annotations

import copy
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from rich.panel import Panel

from spread_check import console, logger
from spread_check.client import ResourceClient
from spread_check.config import PollingConfig, SpreadConfig
from spread_check.constants import (
    CLUSTER_SCOPED_KINDS,
    KIND_CLAIM,
    KIND_POD,
    KIND_POOL,
    KIND_REPLICA,
    LABEL_APP,
    LABEL_REPLICA_ANTI_AFFINITY,
    STATEFULSET_ARTIFACT,
    STORAGECLASS_ARTIFACT,
    label_selector,
    load_artifact_documents,
)
from spread_check.errors import (
    ClusterAPIError,
    ConvergenceTimeout,
    InvariantViolation,
    ManifestError,
    SpreadCheckError,
)
from spread_check.extractors import (
    SpreadResult,
    check_spread,
    placement_facts,
    required_spread,
    unique_node_identifiers,
    unique_pool_identifiers,
    unique_pool_uids,
)
from spread_check.manifest import requested_replicas, validate_documents
from spread_check.models import ResourceCollection, ResourceRef
from spread_check.poller import ConvergencePoller, count_of
from spread_check.predicates import Predicate, contains_name, filter_collection, is_bound, is_running


class ScenarioStep(str, Enum):
    """Named states of the scenario lifecycle."""

    PENDING = "Pending"
    SETUP = "Setup"
    VERIFY_CREATED = "VerifyCreated"
    ASSERT = "Assert"
    TEARDOWN = "Teardown"
    VERIFY_TORNDOWN = "VerifyTorndown"
    DONE = "Done"
    FAILED = "Failed"


# ============================================================================
# Scenario definition
# ============================================================================

@dataclass(frozen=True)
class DependentKind:
    """A resource kind the workload's controller creates on its behalf.

    Attributes:
        kind: Resource kind listed by the workload's app label.
        ready: Predicate a record must satisfy to count as converged.
        delete_individually: Whether teardown deletes each record explicitly
            instead of relying on cascade deletion.
    """

    kind: str
    ready: Predicate
    delete_individually: bool = False


def default_dependents() -> tuple[DependentKind, ...]:
    """Bound claims and running pods; claims outlive their StatefulSet, so delete them explicitly."""
    return (
        DependentKind(KIND_CLAIM, is_bound(), delete_individually=True),
        DependentKind(KIND_POD, is_running()),
    )


@dataclass(frozen=True)
class Scenario:
    """Everything needed to run one lifecycle, with no hidden global state.

    Attributes:
        workload_name: Name of the primary workload (the StatefulSet).
        namespace: Namespace the workload and its dependents live in.
        replica_count: Replicas the workload requests.
        workloads: Workload documents, applied after the prerequisites.
        prerequisites: Documents the workload depends on (e.g. a StorageClass).
        app_selector: Selector matching the workload's claims and pods.
        affinity_selector: Selector matching the workload's volume replicas.
        dependents: Kinds that must converge after creation and vanish after teardown.
        claim_kind: Kind whose names are checked against the workload name.
        replica_kind: Kind carrying replica placement facts.
        pool_kind: Kind of the backing pools.
        polling: Interval and timeout used by every poller.
        pool_capacity: Pools available for placement, or None when unknown.
        require_node_spread: Whether hosting pools must also sit on distinct nodes.
    """

    workload_name: str
    namespace: str
    replica_count: int
    workloads: tuple[Mapping[str, Any], ...]
    prerequisites: tuple[Mapping[str, Any], ...] = ()
    app_selector: str = ""
    affinity_selector: str = ""
    dependents: tuple[DependentKind, ...] = field(default_factory=default_dependents)
    claim_kind: str = KIND_CLAIM
    replica_kind: str = KIND_REPLICA
    pool_kind: str = KIND_POOL
    polling: PollingConfig = field(default_factory=PollingConfig)
    pool_capacity: int | None = None
    require_node_spread: bool = False

    @property
    def workload_refs(self) -> list[ResourceRef]:
        return validate_documents(self.workloads)

    @property
    def prerequisite_refs(self) -> list[ResourceRef]:
        return validate_documents(self.prerequisites)

    @property
    def required_spread(self) -> int:
        return required_spread(self.replica_count, self.pool_capacity)

    @classmethod
    def from_manifests(
        cls,
        workloads: Iterable[Mapping[str, Any]],
        prerequisites: Iterable[Mapping[str, Any]] = (),
        *,
        polling: PollingConfig | None = None,
        spread: SpreadConfig | None = None,
    ) -> Scenario:
        """Derive a scenario from manifest documents.

        The first workload document is the primary workload: its name yields
        the ``app=<name>`` and ``openebs.io/replica-anti-affinity=<name>``
        selectors, its namespace the scenario namespace, and its
        ``spec.replicas`` the expected count.

        Args:
            workloads: Workload documents; at least one is required.
            prerequisites: Documents applied before the workloads.
            polling: Polling policy, or None for environment/defaults.
            spread: Placement expectations and overrides, or None for environment/defaults.

        Returns:
            A validated scenario.

        Raises:
            ManifestError: If any document cannot be identified or no workload is given.
        """
        spread = spread or SpreadConfig()
        workloads = [copy.deepcopy(dict(doc)) for doc in workloads]
        prerequisites = [copy.deepcopy(dict(doc)) for doc in prerequisites]
        if not workloads:
            raise ManifestError("At least one workload document is required")

        if spread.namespace:
            for doc in workloads:
                if doc.get("kind") not in CLUSTER_SCOPED_KINDS:
                    doc.setdefault("metadata", {})["namespace"] = spread.namespace

        validate_documents(prerequisites)
        primary_doc = workloads[0]
        primary = validate_documents(workloads)[0]
        replica_count = spread.replicas if spread.replicas is not None else requested_replicas(primary_doc)

        return cls(
            workload_name=primary.name,
            namespace=primary.namespace,
            replica_count=replica_count,
            workloads=tuple(workloads),
            prerequisites=tuple(prerequisites),
            app_selector=label_selector(LABEL_APP, primary.name),
            affinity_selector=label_selector(LABEL_REPLICA_ANTI_AFFINITY, primary.name),
            polling=polling or PollingConfig(),
            pool_capacity=spread.pool_capacity,
            require_node_spread=spread.require_node_spread,
        )


def default_scenario(polling: PollingConfig | None = None, spread: SpreadConfig | None = None) -> Scenario:
    """Scenario for the bundled three-replica StatefulSet on the cStor StorageClass."""
    return Scenario.from_manifests(
        load_artifact_documents(STATEFULSET_ARTIFACT),
        load_artifact_documents(STORAGECLASS_ARTIFACT),
        polling=polling,
        spread=spread,
    )


# ============================================================================
# Context and report
# ============================================================================

@dataclass(frozen=True)
class StepFailure:
    """Diagnostics of one failed check.

    Attributes:
        step: Lifecycle step the check belongs to.
        message: What went wrong.
        expected: Expected value, when the check compares values.
        observed: Last observed value, when the check compares values.
        elapsed: Seconds the check ran before failing.
    """

    step: ScenarioStep
    message: str
    expected: Any = None
    observed: Any = None
    elapsed: float = 0.0


@dataclass
class ScenarioContext:
    """State handed from one step to the next within a single run."""

    applied: list[ResourceRef] = field(default_factory=list)
    converged: dict[str, int] = field(default_factory=dict)
    spread: SpreadResult | None = None


@dataclass
class ScenarioReport:
    """Outcome of a scenario run.

    Attributes:
        scenario: Workload name the report is about.
        state: Final lifecycle state (``Done`` or ``Failed``).
        steps: Steps entered, in order.
        failures: Assertion and convergence failures, in order.
        error: The fatal error that aborted the run, if any.
        elapsed: Total seconds the run took.
    """

    scenario: str
    state: ScenarioStep = ScenarioStep.PENDING
    steps: list[ScenarioStep] = field(default_factory=list)
    failures: list[StepFailure] = field(default_factory=list)
    error: SpreadCheckError | None = None
    elapsed: float = 0.0

    @property
    def passed(self) -> bool:
        return self.state is ScenarioStep.DONE and not self.failures and self.error is None

    def failures_for(self, step: ScenarioStep) -> list[StepFailure]:
        return [f for f in self.failures if f.step is step]


# ============================================================================
# Orchestrator
# ============================================================================

class ScenarioOrchestrator:
    """Drive a scenario through its lifecycle against a ResourceClient.

    Convergence timeouts and invariant violations are collected as failures
    and never stop cleanup. ``ManifestError`` or ``ClusterAPIError`` during
    setup aborts the run before anything else is attempted. A
    ``ClusterAPIError`` after setup fails the run, skips the remaining checks,
    and still runs teardown. Errors during teardown are logged and deletion
    continues with the next target.

    Args:
        client: Cluster boundary.
        scenario: What to create, check and remove.
        clock: Monotonic clock, shared with every poller.
        sleep: Sleep function, shared with every poller.
    """

    def __init__(
        self,
        client: ResourceClient,
        scenario: Scenario,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.scenario = scenario
        self._clock = clock
        self._sleep = sleep

    # -- helpers --

    def _enter(self, report: ScenarioReport, step: ScenarioStep) -> None:
        report.state = step
        report.steps.append(step)
        logger.info("Scenario %s: entering %s", self.scenario.workload_name, step.value)
        console.print(Panel.fit(f"{step.value}: {self.scenario.workload_name}", style="bold blue"))

    def _fail(self, report: ScenarioReport, step: ScenarioStep, err: SpreadCheckError, elapsed: float = 0.0) -> None:
        if isinstance(err, ConvergenceTimeout):
            failure = StepFailure(step, err.description, err.expected, err.observed, err.elapsed)
        elif isinstance(err, InvariantViolation):
            failure = StepFailure(step, str(err), err.expected, err.observed, elapsed)
        else:
            failure = StepFailure(step, str(err), elapsed=elapsed)
        report.failures.append(failure)
        console.print(f"[red]✗ {step.value}: {failure.message}[/red]")

    def _list_dependents(self, kind: str) -> ResourceCollection:
        return self.client.list(kind, self.scenario.namespace, self.scenario.app_selector)

    def _poll_count(self, kind: str, expected: int, *predicates: Predicate, description: str) -> int:
        poller = ConvergencePoller(
            count_of(lambda: self._list_dependents(kind), *predicates),
            expected,
            interval=self.scenario.polling.interval_seconds,
            timeout=self.scenario.polling.timeout_seconds,
            description=description,
            clock=self._clock,
            sleep=self._sleep,
        )
        return poller.poll().observed

    # -- steps --

    def setup(self, ctx: ScenarioContext) -> None:
        """Apply prerequisites, then workloads.

        Every document is validated before the first apply, so a bad manifest
        never leaves a partial setup behind.

        Raises:
            ManifestError: If any document cannot be identified.
            ClusterAPIError: If an apply fails.
        """
        validate_documents(self.scenario.prerequisites)
        validate_documents(self.scenario.workloads)
        for document in (*self.scenario.prerequisites, *self.scenario.workloads):
            ctx.applied.append(self.client.apply(document))
        console.print(f"[green]✅ Applied {len(ctx.applied)} documents[/green]")

    def verify_created(self, ctx: ScenarioContext, report: ScenarioReport) -> bool:
        """Wait for every dependent kind to reach the requested count of ready records.

        Each kind gets its own poller; a timeout on one kind does not stop
        the next.

        Returns:
            True if every kind converged.

        Raises:
            ClusterAPIError: If a list call fails.
        """
        ok = True
        for dependent in self.scenario.dependents:
            description = f"ready {dependent.kind} count"
            try:
                ctx.converged[dependent.kind] = self._poll_count(
                    dependent.kind, self.scenario.replica_count, dependent.ready, description=description,
                )
                console.print(
                    f"[green]✅ {self.scenario.replica_count} {dependent.kind} ready[/green]"
                )
            except ConvergenceTimeout as err:
                ok = False
                self._fail(report, ScenarioStep.VERIFY_CREATED, err)
        return ok

    def assert_placement(self, ctx: ScenarioContext, report: ScenarioReport) -> bool:
        """Check claim naming, replica count, and replica spread across pools, plus nodes when required.

        Returns:
            True if every placement check passed.

        Raises:
            ClusterAPIError: If a list call fails.
        """
        started = self._clock()
        scenario = self.scenario
        expected = scenario.replica_count
        failures_before = len(report.failures)

        def _violation(message: str, want: Any, got: Any) -> None:
            self._fail(
                report, ScenarioStep.ASSERT,
                InvariantViolation(message, expected=want, observed=got),
                elapsed=self._clock() - started,
            )

        claims = filter_collection(
            self._list_dependents(scenario.claim_kind), contains_name(scenario.workload_name),
        )
        if len(claims) != expected:
            _violation(f"{scenario.claim_kind} count for {scenario.workload_name}", expected, len(claims))

        replicas = self.client.list(scenario.replica_kind, "", scenario.affinity_selector)
        if len(replicas) != expected:
            _violation(f"{scenario.replica_kind} count", expected, len(replicas))

        try:
            ctx.spread = check_spread(placement_facts(replicas), expected, scenario.pool_capacity)
        except InvariantViolation as err:
            self._fail(report, ScenarioStep.ASSERT, err, elapsed=self._clock() - started)

        hosting_names = unique_pool_identifiers(replicas)
        pools = self.client.list(scenario.pool_kind)
        hosting = filter_collection(pools, lambda record: record.name in hosting_names)
        required = scenario.required_spread

        pool_uids = unique_pool_uids(hosting)
        if len(pool_uids) != required:
            _violation(f"distinct {scenario.pool_kind} UIDs hosting replicas", required, len(pool_uids))

        nodes = unique_node_identifiers(hosting)
        if not nodes:
            logger.warning("No node information on %s; skipping node spread check", scenario.pool_kind)
        elif scenario.require_node_spread and len(nodes) != required:
            _violation(f"distinct nodes hosting {scenario.pool_kind}s", required, len(nodes))
        else:
            logger.info("%s hosting replicas span %d nodes: %s", scenario.pool_kind, len(nodes), sorted(nodes))

        ok = len(report.failures) == failures_before
        if ok:
            console.print(
                f"[green]✅ {expected} replicas spread across {required} pools[/green]"
            )
        return ok

    def teardown(self, report: ScenarioReport) -> None:
        """Delete dependents one by one, then workloads, then prerequisites.

        Never raises for cluster errors: each failure is logged and recorded,
        and deletion moves on to the next target. Resources already gone are
        not failures.
        """
        scenario = self.scenario
        targets: list[ResourceRef] = []
        for dependent in scenario.dependents:
            if not dependent.delete_individually:
                continue
            try:
                targets.extend(self._list_dependents(dependent.kind).refs())
            except ClusterAPIError as err:
                logger.error("Listing %s for teardown failed: %s", dependent.kind, err)
                self._fail(report, ScenarioStep.TEARDOWN, err)
        targets.extend(reversed(scenario.workload_refs))
        targets.extend(reversed(scenario.prerequisite_refs))

        for ref in targets:
            try:
                self.client.delete(ref)
                console.print(f"[green]  ✓ Deleted {ref}[/green]")
            except ClusterAPIError as err:
                if err.not_found:
                    logger.info("%s already deleted", ref)
                    continue
                logger.error("Deleting %s failed: %s", ref, err)
                self._fail(report, ScenarioStep.TEARDOWN, err)

    def verify_torndown(self, report: ScenarioReport) -> bool:
        """Wait for every dependent kind to reach zero records.

        A list failure on one kind is recorded and the next kind is still
        polled. The first such failure also becomes the report's fatal error.

        Returns:
            True if every kind emptied out.
        """
        ok = True
        for dependent in self.scenario.dependents:
            try:
                self._poll_count(dependent.kind, 0, description=f"remaining {dependent.kind} count")
                console.print(f"[green]✅ No {dependent.kind} left[/green]")
            except ConvergenceTimeout as err:
                ok = False
                self._fail(report, ScenarioStep.VERIFY_TORNDOWN, err)
            except ClusterAPIError as err:
                ok = False
                if report.error is None:
                    self._abort(report, ScenarioStep.VERIFY_TORNDOWN, err)
                else:
                    self._fail(report, ScenarioStep.VERIFY_TORNDOWN, err)
        return ok

    # -- lifecycles --

    def _finish(self, report: ScenarioReport, started: float) -> ScenarioReport:
        report.elapsed = self._clock() - started
        report.state = ScenarioStep.FAILED if report.failures or report.error else ScenarioStep.DONE
        report.steps.append(report.state)
        logger.info("Scenario %s finished: %s", self.scenario.workload_name, report.state.value)
        return report

    def _abort(self, report: ScenarioReport, step: ScenarioStep, err: SpreadCheckError) -> None:
        report.error = err
        self._fail(report, step, err)
        logger.error("Scenario %s: %s failed: %s", self.scenario.workload_name, step.value, err)

    def _cleanup(self, report: ScenarioReport) -> None:
        self._enter(report, ScenarioStep.TEARDOWN)
        self.teardown(report)
        self._enter(report, ScenarioStep.VERIFY_TORNDOWN)
        self.verify_torndown(report)

    def run(self) -> ScenarioReport:
        """Run the full lifecycle and report the outcome."""
        report = ScenarioReport(scenario=self.scenario.workload_name)
        ctx = ScenarioContext()
        started = self._clock()

        self._enter(report, ScenarioStep.SETUP)
        try:
            self.setup(ctx)
        except (ManifestError, ClusterAPIError) as err:
            self._abort(report, ScenarioStep.SETUP, err)
            return self._finish(report, started)

        try:
            self._enter(report, ScenarioStep.VERIFY_CREATED)
            if self.verify_created(ctx, report):
                self._enter(report, ScenarioStep.ASSERT)
                self.assert_placement(ctx, report)
            else:
                logger.warning("Skipping placement assertion: dependents never converged")
        except ClusterAPIError as err:
            self._abort(report, report.state, err)

        self._cleanup(report)
        return self._finish(report, started)

    def run_checks(self) -> ScenarioReport:
        """Verify an already deployed workload without creating or deleting anything."""
        report = ScenarioReport(scenario=self.scenario.workload_name)
        ctx = ScenarioContext()
        started = self._clock()
        try:
            self._enter(report, ScenarioStep.VERIFY_CREATED)
            if self.verify_created(ctx, report):
                self._enter(report, ScenarioStep.ASSERT)
                self.assert_placement(ctx, report)
        except ClusterAPIError as err:
            self._abort(report, report.state, err)
        return self._finish(report, started)

    def run_teardown(self) -> ScenarioReport:
        """Remove a previously deployed workload and wait for its dependents to vanish."""
        report = ScenarioReport(scenario=self.scenario.workload_name)
        started = self._clock()
        self._cleanup(report)
        return self._finish(report, started)
