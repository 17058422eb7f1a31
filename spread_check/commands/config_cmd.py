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


"""Config subcommands (show)."""

from __future__ import annotations

import typer

from spread_check.config import display_config, resolve_config

app = typer.Typer(help="Inspect configuration.")


@app.command()
def show(
    interval: float | None = typer.Option(None, "--interval", help="Polling interval in seconds"),
    timeout: float | None = typer.Option(None, "--timeout", help="Per-condition timeout in seconds"),
    pool_capacity: int | None = typer.Option(None, "--pool-capacity", help="Pools available for placement"),
) -> None:
    """Print configuration resolved from CLI options, SPREAD_* env vars, and defaults."""
    polling_cfg, cluster_cfg, spread_cfg = resolve_config(
        interval=interval, timeout=timeout, pool_capacity=pool_capacity,
    )
    display_config(polling_cfg, cluster_cfg, spread_cfg)
