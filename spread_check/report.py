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


"""Rich rendering of scenario reports."""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table

from spread_check import console
from spread_check.scenario import ScenarioReport


def _fmt(value: object) -> str:
    return "-" if value is None else str(value)


def build_failure_table(report: ScenarioReport) -> Table:
    """Tabulate a report's failures as step / expected / observed / elapsed."""
    table = Table(title=f"Failures for {report.scenario}", show_lines=False)
    table.add_column("Step", style="cyan")
    table.add_column("Check")
    table.add_column("Expected", justify="right")
    table.add_column("Observed", justify="right")
    table.add_column("Elapsed", justify="right")
    for failure in report.failures:
        table.add_row(
            failure.step.value,
            failure.message,
            _fmt(failure.expected),
            _fmt(failure.observed),
            f"{failure.elapsed:.1f}s",
        )
    return table


def display_report(report: ScenarioReport) -> None:
    """Print a report summary and, when it failed, the failure table."""
    steps = " -> ".join(step.value for step in report.steps)
    if report.passed:
        console.print(Panel.fit(
            f"[green]✅ {report.scenario} passed in {report.elapsed:.1f}s[/green]\n{steps}",
            style="bold green",
        ))
        return

    console.print(Panel.fit(
        f"[red]❌ {report.scenario} failed in {report.elapsed:.1f}s[/red]\n{steps}",
        style="bold red",
    ))
    if report.error is not None:
        console.print(f"[red]Fatal: {report.error}[/red]")
    if report.failures:
        console.print(build_failure_table(report))


def render_report_text(report: ScenarioReport) -> str:
    """Render a report to plain text, e.g. for writing to a file."""
    with console.buffered() as buf:
        display_report(report)
    return buf.getvalue()
