"""File generation for the Hardhat project.

Each ``write_*`` method renders one template and replaces the target file in
full.  The rendering context is built from the typed configuration and the
operator's parameters; nothing is read back from disk.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from nft_bootstrap.config import Config
from nft_bootstrap.params import CredentialRecord, TokenParams

from .templates import TemplateRenderer


class ProjectGenerator:
    """Writes the credential file, Hardhat config, contract and scripts."""

    # Template name -> Config property naming the output file
    TEMPLATES: dict[str, str] = {
        "env.j2": "env_path",
        "hardhat.config.ts.j2": "hardhat_config_path",
        "NFT.sol.j2": "contract_path",
        "deploy.ts.j2": "deploy_script_path",
        "mint.ts.j2": "mint_script_path",
    }

    def __init__(self, config: Config, renderer: TemplateRenderer | None = None) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()

    def _context(self, **extra: Any) -> dict[str, Any]:
        return {
            "network": self.config.network,
            "contract": self.config.contract,
            **extra,
        }

    async def _render(self, template_name: str, **extra: Any) -> Path:
        output = getattr(self.config, self.TEMPLATES[template_name])
        return await self.renderer.render_to_file(template_name, output, self._context(**extra))

    # -- Public API --------------------------------------------------------

    async def write_credentials(self, credential: CredentialRecord) -> Path:
        """Write ``.env`` as the single line ``KEY=value``."""
        return await self._render(
            "env.j2",
            credential_key=credential.key,
            credential_value=credential.value.get_secret_value(),
        )

    async def write_network_config(self) -> Path:
        return await self._render("hardhat.config.ts.j2")

    async def write_contract(self, token: TokenParams) -> Path:
        """Write ``contracts/NFT.sol`` with the token's name and symbol."""
        return await self._render("NFT.sol.j2", token=token)

    async def write_deploy_script(self) -> Path:
        return await self._render("deploy.ts.j2")

    async def write_mint_script(self) -> Path:
        return await self._render("mint.ts.j2")

    async def remove_placeholders(self) -> list[Path]:
        """Delete the sample files ``hardhat init`` generates.

        Returns:
            The paths that existed and were removed.
        """
        removed: list[Path] = []
        for rel in self.config.toolchain.placeholder_files:
            path = self.config.project_dir / rel
            if path.is_file():
                await asyncio.to_thread(path.unlink)
                removed.append(path)
        return removed
