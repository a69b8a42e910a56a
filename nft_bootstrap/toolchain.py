"""External tool invocation: apt-get, npm and the Hardhat CLI.

Every tool runs as a blocking child process in the project directory with the
terminal attached, so the operator sees (and can answer) whatever the tool
prints.  Nothing is parsed from the output; the exit code is the only signal.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path

from nft_bootstrap.config import ToolchainConfig
from nft_bootstrap.utils import BootstrapError, console, format_command, run_command


@dataclass
class CommandResult:
    """Outcome of one or more external commands."""

    success: bool
    commands: list[list[str]] = field(default_factory=list)
    exit_code: int = 0
    duration_seconds: float = 0.0
    error: str = ""

    @property
    def failed_command(self) -> str:
        """The command that broke the sequence, or ``""`` on success."""
        if self.success or not self.commands:
            return ""
        return format_command(self.commands[-1])


class ToolchainError(BootstrapError):
    """Raised when an external tool cannot be started at all."""


class Toolchain:
    """Thin wrapper around the package managers and the Hardhat CLI."""

    def __init__(self, config: ToolchainConfig, project_dir: Path) -> None:
        self.config = config
        self.project_dir = Path(project_dir)

    # -- Command builders --------------------------------------------------

    def _apt(self, *args: str) -> list[str]:
        prefix = ["sudo"] if self.config.use_sudo else []
        return [*prefix, self.config.apt_get, *args]

    def _hardhat(self, *args: str) -> list[str]:
        return [self.config.npx, "hardhat", *args]

    def install_commands(self) -> list[list[str]]:
        """One ``npm install`` per package group, dev dependencies first."""
        commands = [
            [self.config.npm, "install", "--save-dev", package]
            for package in self.config.dev_packages
        ]
        commands.extend(
            [self.config.npm, "install", *group]
            for group in self.config.packages
            if group
        )
        return commands

    # -- Execution ---------------------------------------------------------

    async def run(self, cmd: list[str]) -> CommandResult:
        """Run a single command to completion.

        Raises:
            ToolchainError: If the program is missing or not executable.
        """
        console.print(f"  [dim]$ {format_command(cmd)}[/dim]")
        start = time.monotonic()
        try:
            exit_code, error = await run_command(
                cmd,
                cwd=self.project_dir,
                timeout=self.config.command_timeout,
            )
        except FileNotFoundError:
            raise ToolchainError(
                f"Program not found: '{cmd[0]}'. Ensure it is installed and in PATH."
            )
        except PermissionError:
            raise ToolchainError(f"Permission denied executing: '{cmd[0]}'.")

        return CommandResult(
            success=exit_code == 0,
            commands=[cmd],
            exit_code=exit_code,
            duration_seconds=time.monotonic() - start,
            error=error,
        )

    async def run_sequence(self, commands: list[list[str]]) -> CommandResult:
        """Run *commands* in order, stopping at the first failure."""
        ran: list[list[str]] = []
        start = time.monotonic()
        for cmd in commands:
            result = await self.run(cmd)
            ran.append(cmd)
            if not result.success:
                result.commands = ran
                result.duration_seconds = time.monotonic() - start
                return result
        return CommandResult(
            success=True,
            commands=ran,
            duration_seconds=time.monotonic() - start,
        )

    # -- Pipeline operations -----------------------------------------------

    async def system_update(self) -> CommandResult:
        return await self.run_sequence([self._apt("update"), self._apt("upgrade", "-y")])

    async def install_packages(self) -> CommandResult:
        return await self.run_sequence(self.install_commands())

    async def init_project(self) -> CommandResult:
        return await self.run(self._hardhat("init"))

    async def compile(self) -> CommandResult:
        return await self.run(self._hardhat("compile"))

    async def run_script(self, script: Path, network: str) -> CommandResult:
        """Execute a TypeScript script with ``hardhat run`` against *network*."""
        script_path = Path(script)
        if script_path.is_absolute():
            try:
                script_path = script_path.relative_to(self.project_dir)
            except ValueError:
                pass
        return await self.run(self._hardhat("run", script_path.as_posix(), "--network", network))
