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


"""Error taxonomy for cluster access, convergence, placement, and manifests."""

from __future__ import annotations

from typing import Any


class SpreadCheckError(Exception):
    """Base class for all harness errors."""


class ClusterAPIError(SpreadCheckError):
    """The cluster boundary could not be reached or refused the request.

    Attributes:
        command: The kubectl arguments that failed, if any.
        stderr: Captured standard error, truncated for display.
    """

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = list(command or [])
        self.stderr = stderr

    @property
    def not_found(self) -> bool:
        """Whether the API server answered with the NotFound reason.

        Client-side errors such as an unknown kubeconfig context also say
        "not found" and must not count.
        """
        return "(NotFound)" in self.stderr


class ConvergenceTimeout(SpreadCheckError):
    """The expected condition never held before the deadline."""

    def __init__(
        self,
        description: str,
        *,
        expected: Any,
        observed: Any,
        elapsed: float,
        attempts: int,
    ) -> None:
        super().__init__(
            f"{description}: expected {expected!r}, last observed {observed!r} "
            f"after {elapsed:.1f}s ({attempts} attempts)"
        )
        self.description = description
        self.expected = expected
        self.observed = observed
        self.elapsed = elapsed
        self.attempts = attempts


class InvariantViolation(SpreadCheckError):
    """A derived placement fact contradicts the expected spread."""

    def __init__(self, message: str, *, expected: Any, observed: Any) -> None:
        super().__init__(message)
        self.expected = expected
        self.observed = observed


class ManifestError(SpreadCheckError):
    """A manifest document is missing a field needed to identify it."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
