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


"""
cli.py - Convergence and replica spread verification for storage workloads.

Subcommands:
    scenario   Run, check, or tear down a workload scenario
    config     Inspect resolved configuration

Examples:
    # Full lifecycle with the bundled 3-replica StatefulSet
    spread-check scenario run

    # Custom manifests, shorter timeout
    spread-check scenario run -w sts.yaml -p storageclass.yaml --timeout 120

    # Check an existing deployment against 2 available pools
    spread-check scenario check -w sts.yaml --pool-capacity 2

    # Clean up after an interrupted run
    spread-check scenario teardown -w sts.yaml -p storageclass.yaml

Environment Variables:
    SPREAD_INTERVAL_SECONDS, SPREAD_TIMEOUT_SECONDS, SPREAD_KUBECONFIG,
    SPREAD_CONTEXT, SPREAD_KUBECTL_TIMEOUT, SPREAD_POOL_CAPACITY,
    SPREAD_NAMESPACE, SPREAD_REPLICAS, SPREAD_REQUIRE_NODE_SPREAD
"""

from __future__ import annotations

import logging
import sys

import typer

from spread_check import console
from spread_check.commands import config_cmd, scenario_cmd
from spread_check.errors import SpreadCheckError

app = typer.Typer(
    help="Convergence and replica spread verification for storage workloads.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every poll attempt"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(scenario_cmd.app, name="scenario")
app.add_typer(config_cmd.app, name="config")


def main() -> None:
    """Console-script entry point."""
    try:
        app()
    except (SpreadCheckError, RuntimeError) as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
