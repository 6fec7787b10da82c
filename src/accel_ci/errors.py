# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Exceptions raised by provisioning and image matrix builds.
"""
from typing import List, Optional, Sequence


class CommandError(RuntimeError):
    """
    An external command exited with a non-zero status or could not be started.
    """

    def __init__(self, command: Sequence[str], returncode: int):
        self.command = list(command)
        self.returncode = returncode
        super().__init__(
            f"Command '{' '.join(self.command)}' failed with exit code {returncode}"
        )


class ConfigError(ValueError):
    """Invalid matrix or toolchain configuration."""


class ProvisionError(RuntimeError):
    """
    A toolchain provisioning step failed. Remaining steps were not run.
    """

    def __init__(self, channel: str, step: str, cause: Optional[Exception] = None):
        self.channel = channel
        self.step = step
        self.cause = cause
        message = f"Provisioning of channel '{channel}' failed at step '{step}'"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class BuildError(RuntimeError):
    """
    A single matrix target failed to render, build or push.
    """

    def __init__(self, identity: str, stage: str, cause: Optional[Exception] = None):
        self.identity = identity
        self.stage = stage
        self.cause = cause
        message = f"[{identity}] {stage} failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class MatrixBuildError(BuildError):
    """
    Raised at the end of a matrix run when one or more targets failed.
    """

    def __init__(self, failures: List[BuildError]):
        self.failures = list(failures)
        super().__init__(", ".join(self.failed_identities), "matrix")
        self.args = (f"{len(self.failures)} target(s) failed: {self.identity}",)

    @property
    def failed_identities(self) -> List[str]:
        return [failure.identity for failure in self.failures]
