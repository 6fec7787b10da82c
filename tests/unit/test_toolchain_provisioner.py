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
Unit tests for toolchain provisioning.
"""
import pytest
from accel_ci.MODELS.toolchain import ToolchainSpec
from accel_ci.PROVISIONERS.toolchain_provisioner import RustupBackend, ToolchainBackend, ToolchainProvisioner
from accel_ci.RUNNERS.process_runner import DryRunRunner
from accel_ci.errors import CommandError, ProvisionError


class RecordingBackend(ToolchainBackend):
    """Records calls instead of touching the machine."""

    def __init__(self, fail_at=None):
        self.calls = []
        self.fail_at = fail_at

    def _record(self, *call):
        self.calls.append(call)
        if call[0] == self.fail_at:
            raise CommandError([call[0]], 1)

    def add_channel(self, channel):
        self._record("add_channel", channel)

    def add_component(self, channel, component):
        self._record("add_component", channel, component)

    def add_target(self, channel, target):
        self._record("add_target", channel, target)

    def install_tool(self, tool, force=True):
        self._record("install_tool", tool, force)


class TestToolchainProvisioner:
    """Tests for ToolchainProvisioner."""

    def test_steps_in_order(self):
        backend = RecordingBackend()
        ToolchainProvisioner(backend).provision("nightly-2020-09-20")
        assert backend.calls == [
            ("add_channel", "nightly-2020-09-20"),
            ("add_component", "nightly-2020-09-20", "rustfmt"),
            ("add_target", "nightly-2020-09-20", "nvptx64-nvidia-cuda"),
            ("install_tool", "ptx-linker", True),
        ]

    def test_default_channel(self):
        backend = RecordingBackend()
        ToolchainProvisioner(backend, ToolchainSpec(channel="nightly-2021-01-01")).provision()
        assert backend.calls[0] == ("add_channel", "nightly-2021-01-01")

    @pytest.mark.parametrize("fail_at,expected_calls", [
        ("add_channel", 1),
        ("add_component", 2),
        ("add_target", 3),
        ("install_tool", 4),
    ])
    def test_fail_fast(self, fail_at, expected_calls):
        backend = RecordingBackend(fail_at=fail_at)
        with pytest.raises(ProvisionError) as exc:
            ToolchainProvisioner(backend).provision("nightly-bad")
        assert len(backend.calls) == expected_calls
        assert exc.value.channel == "nightly-bad"
        assert "nightly-bad" in str(exc.value)
        assert isinstance(exc.value.cause, CommandError)

    def test_rerun_repeats_all_steps(self):
        backend = RecordingBackend()
        provisioner = ToolchainProvisioner(backend)
        provisioner.provision("nightly-2020-09-20")
        provisioner.provision("nightly-2020-09-20")
        assert len(backend.calls) == 8


class TestRustupBackend:
    """Tests for the rustup/cargo commands."""

    def test_commands(self):
        runner = DryRunRunner()
        ToolchainProvisioner(RustupBackend(runner)).provision("nightly-2020-09-20")
        assert runner.commands == [
            ["rustup", "toolchain", "add", "nightly-2020-09-20"],
            ["rustup", "component", "add", "rustfmt", "--toolchain", "nightly-2020-09-20"],
            ["rustup", "target", "add", "nvptx64-nvidia-cuda", "--toolchain", "nightly-2020-09-20"],
            ["cargo", "install", "ptx-linker", "-f"],
        ]

    def test_install_without_force(self):
        runner = DryRunRunner()
        RustupBackend(runner).install_tool("ptx-linker", force=False)
        assert runner.commands == [["cargo", "install", "ptx-linker"]]
