"""Shared pytest fixtures for the NFT Bootstrap test suite.

Provides reusable fixtures for:
- A configuration rooted in a temporary project directory
- Operator parameters for the reference scenario (abc123 / Demo / DNFT)
- Mock subprocess and RPC helpers
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from nft_bootstrap.config import Config, ToolchainConfig
from nft_bootstrap.params import BootstrapParams, CredentialRecord, TokenParams
from nft_bootstrap.records import read_mint_log
from nft_bootstrap.rpc_client import RpcClient
from nft_bootstrap.toolchain import CommandResult

DEPLOYED_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TX_HASH = "0x" + "ab" * 32


# ---------------------------------------------------------------------------
# Configuration & parameters
# ---------------------------------------------------------------------------


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config whose project directory is a fresh temp directory."""
    project_dir = tmp_path / "nft-project"
    project_dir.mkdir()
    return Config(
        project_dir=project_dir,
        toolchain=ToolchainConfig(use_sudo=False),
    )


@pytest.fixture
def params() -> BootstrapParams:
    """The reference operator input: secret abc123, token Demo / DNFT."""
    return BootstrapParams(
        credential=CredentialRecord(value="abc123"),
        token=TokenParams(name="Demo", symbol="DNFT"),
    )


# ---------------------------------------------------------------------------
# Mock helpers
# ---------------------------------------------------------------------------


def make_process(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> AsyncMock:
    """An object shaped like the result of ``asyncio.create_subprocess_exec``."""
    process = AsyncMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.returncode = returncode
    process.kill = MagicMock()
    return process


def ok_result(*cmds: list[str]) -> CommandResult:
    return CommandResult(success=True, commands=list(cmds))


def failed_result(cmd: list[str], exit_code: int = 1) -> CommandResult:
    return CommandResult(success=False, commands=[cmd], exit_code=exit_code)


def write_deployed_address(config: Config, address: str = DEPLOYED_ADDRESS) -> Path:
    """Write the file the deploy script produces."""
    path = config.deployed_address_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        f"const deployedAddress = '{address}'\n\nexport default deployedAddress\n",
        encoding="utf-8",
    )
    return path


def append_mint_line(config: Config, token_id: int, tx_hash: str = TX_HASH) -> None:
    """Append the line the mint script produces."""
    path = config.mint_log_path
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(
            f"NFT ID {token_id} : {config.network.explorer_url}/tx/{tx_hash}\n"
        )


class FakeToolchain:
    """Stands in for ``Toolchain``; records calls and imitates Hardhat's output.

    ``fail_on`` names the operation (``"compile"``, ``"deploy"``...) that
    should exit non-zero.
    """

    def __init__(self, config: Config, fail_on: str | None = None) -> None:
        self.config = config
        self.fail_on = fail_on
        self.calls: list[str] = []

    def _result(self, op: str) -> CommandResult:
        self.calls.append(op)
        if op == self.fail_on:
            return failed_result(["npx", "hardhat", op])
        return ok_result(["npx", "hardhat", op])

    async def system_update(self) -> CommandResult:
        return self._result("system_update")

    async def install_packages(self) -> CommandResult:
        return self._result("install_packages")

    async def init_project(self) -> CommandResult:
        result = self._result("init_project")
        if result.success:
            lock = self.config.project_dir / "contracts" / "Lock.sol"
            lock.parent.mkdir(parents=True, exist_ok=True)
            lock.write_text("contract Lock {}\n", encoding="utf-8")
        return result

    async def compile(self) -> CommandResult:
        return self._result("compile")

    async def run_script(self, script: Path, network: str) -> CommandResult:
        op = Path(script).stem  # "deploy" or "mint"
        result = self._result(op)
        if not result.success:
            return result
        if op == "deploy":
            write_deployed_address(self.config)
        elif op == "mint":
            append_mint_line(self.config, len(read_mint_log(self.config.mint_log_path)) + 1)
        return result


@pytest.fixture
def fake_toolchain(config: Config) -> FakeToolchain:
    return FakeToolchain(config)


@pytest.fixture
def mock_rpc() -> MagicMock:
    """An RpcClient whose endpoint is always reachable and has code everywhere."""
    rpc = MagicMock(spec=RpcClient)
    rpc.chain_id = AsyncMock(return_value=1291)
    rpc.has_code = AsyncMock(return_value=True)
    return rpc


def build_context(**overrides: Any) -> dict[str, Any]:
    """Template context with default network/contract settings."""
    defaults = Config()
    context: dict[str, Any] = {
        "network": defaults.network,
        "contract": defaults.contract,
    }
    context.update(overrides)
    return context
