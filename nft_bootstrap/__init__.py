"""NFT Bootstrap -- scaffolds, deploys and mints an ERC-721 Hardhat project.

Key classes:
    Pipeline           - Ten-step orchestrator (see ``nft_bootstrap.pipeline``)
    Config             - Typed run configuration
    ParameterCollector - Resolves the private key, token name and symbol
    ProjectGenerator   - Renders .env, hardhat.config.ts, NFT.sol and scripts
    Toolchain          - apt-get / npm / Hardhat CLI invocations
"""

__version__ = "0.1.0"
