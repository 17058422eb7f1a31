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


"""Utility functions for kubectl invocation and command checks."""

from __future__ import annotations

import subprocess

import sh

from spread_check.constants import DEFAULT_KUBECTL_TIMEOUT, KUBECTL


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    # sh.which returns None for a missing program instead of raising
    if not sh.which(cmd):
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.")


def kubectl_base_args(kubeconfig: str | None = None, context: str | None = None) -> list[str]:
    """Global kubectl flags selecting the target cluster.

    Args:
        kubeconfig: Path to a kubeconfig file, or None for the default.
        context: kubeconfig context name, or None for the current one.

    Returns:
        Flags to prepend to every kubectl invocation.
    """
    args: list[str] = []
    if kubeconfig:
        args += ["--kubeconfig", kubeconfig]
    if context:
        args += ["--context", context]
    return args


def run_kubectl(
    args: list[str],
    timeout: int = DEFAULT_KUBECTL_TIMEOUT,
    stdin: str | None = None,
) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Uses subprocess instead of sh because list output is parsed as JSON and
    needs stdout kept apart from stderr warnings.

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "default"]``).
        timeout: Maximum seconds to wait for the command to complete.
        stdin: Text piped to the command, e.g. a manifest for ``apply -f -``.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            [KUBECTL, *args],
            capture_output=True,
            text=True,
            timeout=timeout,
            input=stdin,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)
