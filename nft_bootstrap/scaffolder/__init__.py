"""NFT Bootstrap scaffolder -- renders the files of a Hardhat NFT project.

Quick usage::

    from nft_bootstrap.scaffolder import ProjectGenerator

    generator = ProjectGenerator(config)
    await generator.write_network_config()
    await generator.write_contract(TokenParams(name="Demo", symbol="DNFT"))
"""

from nft_bootstrap.scaffolder.generator import ProjectGenerator
from nft_bootstrap.scaffolder.templates import TemplateRenderer, TemplateValueError

__all__ = [
    "ProjectGenerator",
    "TemplateRenderer",
    "TemplateValueError",
]
