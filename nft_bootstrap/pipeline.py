"""NFT Bootstrap Pipeline Orchestrator.

Implements the ten-step bootstrap of a Hardhat ERC-721 project:

Step 1:  SYSTEM UPDATE        -- apt-get update / upgrade.
Step 2:  INSTALL DEPENDENCIES -- npm install of Hardhat, OpenZeppelin, Swisstronik utils.
Step 3:  INIT PROJECT         -- npx hardhat init.
Step 4:  CLEANUP              -- remove the sample Lock.sol contract.
Step 5:  CAPTURE SECRET       -- write the private key to .env.
Step 6:  NETWORK CONFIG       -- render hardhat.config.ts.
Step 7:  CONTRACT             -- render contracts/NFT.sol.
Step 8:  COMPILE              -- npx hardhat compile.
Step 9:  DEPLOY               -- render and run scripts/deploy.ts.
Step 10: MINT                 -- render and run scripts/mint.ts.

Every step returns a ``StepResult``.  The first failed result stops the run:
nothing is retried or rolled back, and files written by earlier steps stay.

Usage::

    nft-bootstrap
    nft-bootstrap --project-dir ./my-nft --name Demo --symbol DNFT
    python -m nft_bootstrap.pipeline --params-file params.yaml --no-input
"""

from __future__ import annotations

import asyncio
import shutil
import sys
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.markup import escape
from rich.panel import Panel

from nft_bootstrap.config import Config
from nft_bootstrap.params import BootstrapParams, ParameterCollector
from nft_bootstrap.records import read_deployed_address, read_mint_log
from nft_bootstrap.rpc_client import RpcClient
from nft_bootstrap.scaffolder import ProjectGenerator
from nft_bootstrap.toolchain import CommandResult, Toolchain
from nft_bootstrap.utils import (
    FAILURE_MESSAGE,
    STEP_NAMES,
    BootstrapError,
    console,
    format_duration,
    print_error,
    print_step_header,
    print_success,
    print_summary_table,
    print_warning,
    save_json,
)

# ---------------------------------------------------------------------------
# Results & exceptions
# ---------------------------------------------------------------------------


@dataclass
class StepResult:
    """Outcome of a single pipeline step."""

    success: bool
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> "StepResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, **data: Any) -> "StepResult":
        return cls(success=False, message=message, data=data)

    @classmethod
    def from_command(cls, result: CommandResult, message: str) -> "StepResult":
        """Translate an external command outcome into a step outcome."""
        if result.success:
            return cls.ok(message, duration=format_duration(result.duration_seconds))
        return cls.fail(
            f"'{result.failed_command}' exited with code {result.exit_code}",
            exit_code=result.exit_code,
        )


class PipelineError(BootstrapError):
    """Raised when a pipeline step fails irrecoverably."""

    def __init__(self, step: int, message: str) -> None:
        self.step = step
        super().__init__(f"Step {step} ({STEP_NAMES.get(step, '?')}): {message}")


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """NFT Bootstrap Pipeline Orchestrator.

    Drives the ten bootstrap steps in a fixed order, persisting a state file
    after each one so the operator can see how far a failed run got.

    Attributes:
        config: Global pipeline configuration.
        params: Operator parameters, collected before the run starts.
        state: Dictionary that accumulates results from each step.
    """

    _STEP_METHODS: dict[int, str] = {
        1: "step_system_update",
        2: "step_install_dependencies",
        3: "step_init_project",
        4: "step_cleanup",
        5: "step_capture_secret",
        6: "step_network_config",
        7: "step_contract",
        8: "step_compile",
        9: "step_deploy",
        10: "step_mint",
    }

    def __init__(
        self,
        config: Config,
        params: BootstrapParams,
        *,
        toolchain: Toolchain | None = None,
        generator: ProjectGenerator | None = None,
        rpc: RpcClient | None = None,
    ) -> None:
        self.config = config
        self.params = params
        self.toolchain = toolchain or Toolchain(config.toolchain, config.project_dir)
        self.generator = generator or ProjectGenerator(config)
        self.rpc = rpc or RpcClient(config.network.url, timeout=config.network.rpc_timeout)
        self.state: dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "steps_completed": [],
            "step_failed": None,
            "success": False,
        }

    # ------------------------------------------------------------------
    # State persistence
    # ------------------------------------------------------------------

    async def _save_state(self) -> None:
        """Persist the current state to ``.nft-bootstrap/pipeline-state.json``."""
        self.state["updated_at"] = datetime.now(timezone.utc).isoformat()
        await save_json(self.state, self.config.state_path)

    # ------------------------------------------------------------------
    # Pre-flight checks
    # ------------------------------------------------------------------

    async def _preflight(self) -> None:
        """Advisory checks; problems are reported but never stop the run."""
        console.print(Panel("[bold]Running pre-flight checks...[/bold]", style="cyan"))

        self.config.ensure_directories()
        console.print("  [green]+[/green] Project directory ready")

        config_path = self.config.save()
        self.state["config_path"] = str(config_path)
        console.print(
            f"  [green]+[/green] Effective configuration saved to {escape(str(config_path))}"
        )

        tools = (self.config.toolchain.npm, self.config.toolchain.npx)
        missing = [tool for tool in tools if shutil.which(tool) is None]
        if missing:
            print_warning(f"  Not found in PATH: {', '.join(missing)}")
        else:
            console.print("  [green]+[/green] npm and npx available")

        chain_id = await self.rpc.chain_id()
        if chain_id is None:
            print_warning(
                f"  RPC endpoint {self.config.network.url} is not reachable -- "
                "deploy and mint will likely fail."
            )
        else:
            console.print(f"  [green]+[/green] RPC endpoint online (chain id {chain_id})")
            self.state["chain_id"] = chain_id

        console.print()

    # ------------------------------------------------------------------
    # Step dispatch
    # ------------------------------------------------------------------

    async def run(self) -> dict[str, Any]:
        """Execute every step in order, stopping at the first failure.

        Returns:
            The final state dictionary, including a top-level ``success``
            boolean.
        """
        pipeline_start = time.monotonic()

        console.print(
            Panel(
                f"[bold bright_cyan]NFT Bootstrap[/bold bright_cyan]\n"
                f"Project : {self.config.project_dir.resolve()}\n"
                f"Network : {self.config.network.name} ({self.config.network.url})\n"
                f"Token   : {escape(self.params.token.name)} ({escape(self.params.token.symbol)})",
                title="[bold]Pipeline Start[/bold]",
                border_style="bright_cyan",
            )
        )

        await self._preflight()

        all_success = True

        for step_num, method_name in sorted(self._STEP_METHODS.items()):
            step_name = STEP_NAMES[step_num]
            print_step_header(step_num, step_name)

            step_start = time.monotonic()
            try:
                result = await getattr(self, method_name)()
            except (BootstrapError, OSError) as exc:
                result = StepResult.fail(str(exc))
            except Exception as exc:
                console.print(f"[dim]{traceback.format_exc()}[/dim]")
                result = StepResult.fail(f"Unexpected error: {exc}")

            elapsed = time.monotonic() - step_start

            if result.success:
                self.state["steps_completed"].append(step_num)
                print_success(result.message or f"{step_name.title()} completed.")
                console.print(f"  [dim]{format_duration(elapsed)}[/dim]")
                await self._save_state()
                continue

            all_success = False
            error = PipelineError(step_num, result.message)
            self.state["step_failed"] = step_num
            self.state["error"] = str(error)
            print_error(f"{error} (after {format_duration(elapsed)})")
            await self._save_state()
            break

        total_elapsed = time.monotonic() - pipeline_start
        self.state["success"] = all_success
        self.state["total_duration"] = format_duration(total_elapsed)
        self.state["finished_at"] = datetime.now(timezone.utc).isoformat()
        await self._save_state()

        self._print_final_summary()
        if not all_success:
            print_error(FAILURE_MESSAGE)
        return self.state

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def step_system_update(self) -> StepResult:
        console.print("Updating and upgrading the system...")
        result = await self.toolchain.system_update()
        return StepResult.from_command(result, "System updated.")

    async def step_install_dependencies(self) -> StepResult:
        console.print("Installing necessary packages and dependencies...")
        result = await self.toolchain.install_packages()
        return StepResult.from_command(result, "Installation of dependencies completed.")

    async def step_init_project(self) -> StepResult:
        console.print("Creating a new Hardhat project...")
        result = await self.toolchain.init_project()
        return StepResult.from_command(result, "Hardhat project created.")

    async def step_cleanup(self) -> StepResult:
        console.print("Removing default Lock.sol contract...")
        removed = await self.generator.remove_placeholders()
        return StepResult.ok(
            f"Removed {len(removed)} placeholder file(s).",
            removed=[str(p) for p in removed],
        )

    async def step_capture_secret(self) -> StepResult:
        console.print("Creating .env file...")
        path = await self.generator.write_credentials(self.params.credential)
        return StepResult.ok(".env file created.", path=str(path))

    async def step_network_config(self) -> StepResult:
        console.print("Configuring Hardhat...")
        path = await self.generator.write_network_config()
        return StepResult.ok("Hardhat configuration completed.", path=str(path))

    async def step_contract(self) -> StepResult:
        console.print("Creating NFT.sol contract...")
        path = await self.generator.write_contract(self.params.token)
        return StepResult.ok("NFT.sol contract created.", path=str(path))

    async def step_compile(self) -> StepResult:
        self._require_credentials()
        console.print("Compiling the contract...")
        result = await self.toolchain.compile()
        return StepResult.from_command(result, "Contract compiled.")

    async def step_deploy(self) -> StepResult:
        self._require_credentials()
        console.print("Creating deploy.ts script...")
        script = await self.generator.write_deploy_script()

        console.print("Deploying the contract...")
        result = await self.toolchain.run_script(script, self.config.network.name)
        if not result.success:
            return StepResult.from_command(result, "")

        address = read_deployed_address(self.config.deployed_address_path)
        self.state["deployed_address"] = address

        if not await self.rpc.has_code(address):
            print_warning(f"  No contract code visible at {address} yet.")

        return StepResult.ok(f"Contract deployed to {address}.", address=address)

    async def step_mint(self) -> StepResult:
        self._require_credentials()
        console.print("Creating mint.ts script...")
        script = await self.generator.write_mint_script()

        # Raises before the mint script runs, so the log is left untouched.
        address = read_deployed_address(self.config.deployed_address_path)

        before = read_mint_log(self.config.mint_log_path)
        console.print(f"Minting NFT on {address}...")
        result = await self.toolchain.run_script(script, self.config.network.name)
        if not result.success:
            return StepResult.from_command(result, "")

        after = read_mint_log(self.config.mint_log_path)
        if len(after) <= len(before):
            return StepResult.fail(
                f"Mint script succeeded but no entry was appended to {self.config.mint_log_path}"
            )

        entry = after[-1]
        self.state["last_mint"] = {**entry.model_dump(), "tx_hash": entry.tx_hash}
        return StepResult.ok(f"NFT minted: {entry.format()}", token_id=entry.token_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_credentials(self) -> None:
        """Network-calling steps need the credential file on disk.

        Raises:
            BootstrapError: If ``.env`` does not exist.
        """
        if not self.config.env_path.is_file():
            raise BootstrapError(f"Credential file missing: {self.config.env_path}")

    def _print_final_summary(self) -> None:
        completed = self.state["steps_completed"]
        data = {
            "Steps completed": f"{len(completed)}/{len(self._STEP_METHODS)}",
            "Duration": self.state.get("total_duration", "?"),
        }
        if self.state.get("deployed_address"):
            data["Contract"] = self.state["deployed_address"]
        if self.state.get("last_mint"):
            data["Minted token"] = str(self.state["last_mint"]["token_id"])
            data["Transaction"] = self.state["last_mint"]["tx_hash"]
            data["Explorer"] = self.state["last_mint"]["tx_url"]
        if self.state.get("step_failed"):
            data["Failed step"] = STEP_NAMES[self.state["step_failed"]]
        print_summary_table(data, title="Bootstrap Summary")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_config(args: Any) -> Config:
    """Build the run configuration from a saved file or the environment,
    then apply command-line overrides."""
    config = Config.load(Path(args.config)) if args.config else Config.from_env()
    updates: dict[str, Any] = {}
    if args.project_dir:
        updates["project_dir"] = Path(args.project_dir)
    if args.network_url:
        updates["network"] = config.network.model_copy(update={"url": args.network_url})
    if args.no_sudo:
        updates["toolchain"] = config.toolchain.model_copy(update={"use_sudo": False})
    return config.model_copy(update=updates) if updates else config


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``nft-bootstrap``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Bootstrap a Hardhat project, then deploy and mint an ERC-721 token",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  nft-bootstrap\n"
            "  nft-bootstrap --project-dir ./my-nft --name Demo --symbol DNFT\n"
            "  nft-bootstrap --params-file params.yaml --no-input --no-sudo\n"
        ),
    )
    parser.add_argument("--project-dir", "-d", default=None, help="Project directory (default: .)")
    parser.add_argument("--name", default=None, help="NFT name")
    parser.add_argument("--symbol", default=None, help="NFT symbol")
    parser.add_argument(
        "--params-file", default=None, help="YAML/JSON file with name, symbol and private_key"
    )
    parser.add_argument("--env-file", default=None, help="dotenv file holding PRIVATE_KEY")
    parser.add_argument("--network-url", default=None, help="Override the JSON-RPC URL")
    parser.add_argument(
        "--config", default=None, help="Configuration JSON saved by a previous run"
    )
    parser.add_argument(
        "--no-input", action="store_true", help="Fail instead of prompting for missing values"
    )
    parser.add_argument("--no-sudo", action="store_true", help="Run apt-get without sudo")

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
        collector = ParameterCollector(
            name=args.name,
            symbol=args.symbol,
            params_file=args.params_file,
            env_file=args.env_file,
            interactive=not args.no_input,
            credential_key=config.network.credential_key,
        )
        params = collector.collect()
        result = asyncio.run(Pipeline(config, params).run())
    except (BootstrapError, OSError, ValueError) as exc:
        print_error(str(exc))
        print_error(FAILURE_MESSAGE)
        sys.exit(1)
    except (KeyboardInterrupt, EOFError):
        console.print()
        print_error(FAILURE_MESSAGE)
        sys.exit(1)

    if result.get("success"):
        console.print("[bold green]All operations completed successfully.[/bold green]")
    else:
        sys.exit(1)


if __name__ == "__main__":
    main()
