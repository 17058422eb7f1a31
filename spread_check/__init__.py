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

"""spread_check - convergence and replica spread verification for storage workloads."""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager

from rich.console import Console


class SwitchableConsole:
    """Console proxy that can be redirected into an in-memory buffer."""

    def __init__(self, real_console: Console) -> None:
        object.__setattr__(self, "_real", real_console)
        object.__setattr__(self, "_active", None)

    def __getattr__(self, name: str):
        target = self._active or self._real
        return getattr(target, name)

    @contextmanager
    def buffered(self):
        """Capture all console output until the block exits."""
        buf = io.StringIO()
        object.__setattr__(self, "_active", Console(file=buf, stderr=False, width=120))
        try:
            yield buf
        finally:
            object.__setattr__(self, "_active", None)


console = SwitchableConsole(Console(stderr=True))
logger = logging.getLogger("spread_check")
