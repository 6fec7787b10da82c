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
Execution of external commands (rustup, cargo, docker) with their output
passed straight through to the terminal.
"""
import os
import shlex
import subprocess
from typing import Dict, List, Optional, Sequence

from ..errors import CommandError


class CommandRunner:
    """
    Runs blocking external commands. stdout and stderr are inherited so the
    tool's own diagnostics reach the user unmodified.
    """
    def __init__(self, env: Optional[Dict[str, str]] = None, echo: bool = True):
        """
        Initializes the runner.

        Args:
            env (Optional[Dict[str, str]]): Environment for child processes. Defaults to os.environ.
            echo (bool): Print each command before running it, like ``set -x``.
        """
        self.env = env
        self.echo = echo

    def format(self, command: Sequence[str]) -> str:
        return " ".join(shlex.quote(part) for part in command)

    def run(self, command: Sequence[str], cwd: Optional[str] = None):
        """
        Runs a command and waits for it.

        Args:
            command (Sequence[str]): Command and arguments.
            cwd (Optional[str]): Working directory for the command.

        Raises:
            CommandError: If the command exits non-zero or cannot be started.
        """
        if self.echo:
            print(f"+ {self.format(command)}")

        try:
            # Avoid shell=True for security reasons (CWE-78)
            completed = subprocess.run(
                list(command),
                cwd=cwd,
                env=self.env if self.env is not None else os.environ.copy(),
                shell=False,
            )
        except (FileNotFoundError, PermissionError) as e:
            print(f"Cannot execute {command[0]}: {e}")
            raise CommandError(command, 127) from e

        if completed.returncode != 0:
            raise CommandError(command, completed.returncode)


class DryRunRunner(CommandRunner):
    """
    Prints commands instead of running them, and remembers what would have run.
    """
    def __init__(self):
        super().__init__(echo=True)
        self.commands: List[List[str]] = []

    def run(self, command: Sequence[str], cwd: Optional[str] = None):
        self.commands.append(list(command))
        print(f"+ {self.format(command)}")
