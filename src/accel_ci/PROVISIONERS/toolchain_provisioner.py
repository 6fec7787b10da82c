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
Provisioning of the Rust nightly toolchain used to compile CUDA kernels:
a nightly channel, rustfmt, the nvptx64 target and the ptx-linker helper.
"""
from abc import ABC, abstractmethod
from typing import Optional

from ..MODELS.toolchain import ToolchainSpec
from ..RUNNERS.process_runner import CommandRunner
from ..errors import CommandError, ProvisionError


class ToolchainBackend(ABC):
    """
    Machine-wide toolchain state. Every method must be safe to call again
    for something already installed.
    """

    @abstractmethod
    def add_channel(self, channel: str) -> None:
        """Install a toolchain channel."""

    @abstractmethod
    def add_component(self, channel: str, component: str) -> None:
        """Add a component such as rustfmt to a channel."""

    @abstractmethod
    def add_target(self, channel: str, target: str) -> None:
        """Add a compilation target to a channel."""

    @abstractmethod
    def install_tool(self, tool: str, force: bool = True) -> None:
        """Install a tool globally, replacing any existing install when forced."""


class RustupBackend(ToolchainBackend):
    """
    Backend driving rustup and cargo.
    """

    def __init__(self, runner: Optional[CommandRunner] = None,
                 rustup: str = "rustup", cargo: str = "cargo"):
        self.runner = runner or CommandRunner()
        self.rustup = rustup
        self.cargo = cargo

    def add_channel(self, channel: str) -> None:
        self.runner.run([self.rustup, "toolchain", "add", channel])

    def add_component(self, channel: str, component: str) -> None:
        self.runner.run([self.rustup, "component", "add", component, "--toolchain", channel])

    def add_target(self, channel: str, target: str) -> None:
        self.runner.run([self.rustup, "target", "add", target, "--toolchain", channel])

    def install_tool(self, tool: str, force: bool = True) -> None:
        command = [self.cargo, "install", tool]
        if force:
            command.append("-f")
        self.runner.run(command)


class ToolchainProvisioner:
    """
    Installs a ToolchainSpec step by step, stopping at the first failure.
    Nothing is rolled back; rerunning from the top is safe.
    """

    def __init__(self, backend: Optional[ToolchainBackend] = None,
                 spec: Optional[ToolchainSpec] = None):
        self.backend = backend or RustupBackend()
        self.spec = spec or ToolchainSpec()

    def provision(self, channel: Optional[str] = None) -> None:
        """
        Provision a channel.

        Args:
            channel: Channel to install, the spec's channel when omitted. Passed
                through unchecked; a malformed name fails in the package manager.

        Raises:
            ProvisionError: Naming the channel and the step that failed.
        """
        channel = channel or self.spec.channel
        steps = [
            ("add channel", lambda: self.backend.add_channel(channel)),
            (f"add component {self.spec.component}",
             lambda: self.backend.add_component(channel, self.spec.component)),
            (f"add target {self.spec.target}",
             lambda: self.backend.add_target(channel, self.spec.target)),
            (f"install {self.spec.linker_tool}",
             lambda: self.backend.install_tool(self.spec.linker_tool, force=True)),
        ]

        print(f"[{channel}] Provisioning toolchain")
        for step, action in steps:
            try:
                action()
            except CommandError as e:
                raise ProvisionError(channel, step, e) from e
        print(f"[{channel}] Toolchain ready")
