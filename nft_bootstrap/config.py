"""NFT Bootstrap configuration.

Centralised, typed configuration for the bootstrap pipeline. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class NetworkConfig(BaseModel):
    """Target network written into ``hardhat.config.ts``.

    Defaults point at the Swisstronik testnet, whose JSON-RPC endpoint accepts
    shielded (encrypted call data) transactions.
    """

    name: str = Field(default="swisstronik", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    url: str = Field(default="https://json-rpc.testnet.swisstronik.com/")
    explorer_url: str = Field(default="https://explorer-evm.testnet.swisstronik.com")
    solidity_version: str = Field(default="0.8.20", pattern=r"^\d+\.\d+\.\d+$")
    credential_key: str = Field(default="PRIVATE_KEY", pattern=r"^[A-Z_][A-Z0-9_]*$")
    rpc_timeout: int = Field(default=10, ge=1, description="Pre-flight RPC timeout in seconds")


class ToolchainConfig(BaseModel):
    """External tools and the package list installed into the project."""

    npm: str = Field(default="npm")
    npx: str = Field(default="npx")
    apt_get: str = Field(default="apt-get")
    use_sudo: bool = Field(default=True)
    dev_packages: list[str] = Field(
        default_factory=lambda: ["hardhat", "@openzeppelin/hardhat-upgrades"],
    )
    packages: list[list[str]] = Field(
        default_factory=lambda: [
            ["dotenv"],
            ["@swisstronik/utils"],
            ["@openzeppelin/contracts"],
            ["@nomicfoundation/hardhat-toolbox"],
            ["typescript", "ts-node", "@types/node"],
        ],
        description="Runtime packages, one ``npm install`` invocation per group",
    )
    placeholder_files: list[str] = Field(default_factory=lambda: ["contracts/Lock.sol"])
    command_timeout: int | None = Field(
        default=None, ge=1, description="Per-command timeout in seconds (None = wait forever)"
    )


class ContractConfig(BaseModel):
    """Fixed parts of the generated ERC-721 contract."""

    contract_name: str = Field(default="TestNFT", pattern=r"^[A-Za-z_$][A-Za-z0-9_$]*$")
    solidity_pragma: str = Field(default="^0.8.20", pattern=r"^[\^~>=< ]*\d+\.\d+\.\d+$")
    mint_function: str = Field(default="mintNFT", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    mint_event: str = Field(default="NFTMinted", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")


class Config(BaseModel):
    """Global NFT Bootstrap configuration.

    Holds every tuneable parameter and derived path used by the pipeline.
    Created once by the CLI entry point and passed through the rest of the
    system.
    """

    project_dir: Path = Field(default=Path("."))
    state_dir: str = Field(default=".nft-bootstrap")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    contract: ContractConfig = Field(default_factory=ContractConfig)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def state_path(self) -> Path:
        """Path to the persisted pipeline state JSON file."""
        return self.project_dir / self.state_dir / "pipeline-state.json"

    @property
    def saved_config_path(self) -> Path:
        """Where each run records the configuration it ran with."""
        return self.project_dir / self.state_dir / "config.json"

    @property
    def env_path(self) -> Path:
        """Credential file loaded by ``dotenv`` inside the Hardhat config."""
        return self.project_dir / ".env"

    @property
    def hardhat_config_path(self) -> Path:
        return self.project_dir / "hardhat.config.ts"

    @property
    def contract_path(self) -> Path:
        return self.project_dir / "contracts" / "NFT.sol"

    @property
    def deploy_script_path(self) -> Path:
        return self.project_dir / "scripts" / "deploy.ts"

    @property
    def mint_script_path(self) -> Path:
        return self.project_dir / "scripts" / "mint.ts"

    @property
    def deployed_address_path(self) -> Path:
        """File the deploy script writes the contract address into."""
        return self.project_dir / "utils" / "deployed-address.ts"

    @property
    def mint_log_path(self) -> Path:
        """Append-only log of minted token ids and explorer links."""
        return self.project_dir / "utils" / "tx-hash.txt"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<state_dir>/config.json``.

        Returns:
            The resolved path where the file was written.
        """
        target = path or self.saved_config_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            NFTB_PROJECT_DIR, NFTB_NETWORK_NAME, NFTB_NETWORK_URL,
            NFTB_USE_SUDO, NFTB_COMMAND_TIMEOUT.
        """
        network_kwargs: dict[str, Any] = {}
        if os.environ.get("NFTB_NETWORK_NAME"):
            network_kwargs["name"] = os.environ["NFTB_NETWORK_NAME"]
        if os.environ.get("NFTB_NETWORK_URL"):
            network_kwargs["url"] = os.environ["NFTB_NETWORK_URL"]

        toolchain_kwargs: dict[str, Any] = {}
        if os.environ.get("NFTB_USE_SUDO"):
            toolchain_kwargs["use_sudo"] = os.environ["NFTB_USE_SUDO"].lower() in (
                "1", "true", "yes",
            )
        if os.environ.get("NFTB_COMMAND_TIMEOUT"):
            toolchain_kwargs["command_timeout"] = int(os.environ["NFTB_COMMAND_TIMEOUT"])

        return cls(
            project_dir=Path(os.environ.get("NFTB_PROJECT_DIR", ".")),
            network=NetworkConfig(**network_kwargs),
            toolchain=ToolchainConfig(**toolchain_kwargs),
        )

    def ensure_directories(self) -> None:
        """Create the project root and the pipeline's own state directory.

        The Hardhat layout itself (``contracts/``, ``scripts/``...) is left to
        ``hardhat init`` and to the generators.
        """
        for directory in (self.project_dir, self.state_path.parent):
            directory.mkdir(parents=True, exist_ok=True)
