"""Readers for the files the deploy and mint scripts leave behind.

``utils/deployed-address.ts`` holds the address of the deployed contract and
``utils/tx-hash.txt`` grows by one line per successful mint.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel

from nft_bootstrap.utils import BootstrapError

_ADDRESS_RE = re.compile(r"""deployedAddress\s*=\s*['"](0x[0-9a-fA-F]{40})['"]""")
_MINT_LINE_RE = re.compile(r"^NFT ID (?P<token_id>\d+) : (?P<tx_url>\S+)$")


class RecordError(BootstrapError):
    """Raised when a deployment record is missing or unusable."""


class MintLogEntry(BaseModel):
    """One line of the mint log."""

    token_id: int
    tx_url: str

    @property
    def tx_hash(self) -> str:
        return self.tx_url.rstrip("/").rsplit("/", 1)[-1]

    def format(self) -> str:
        return f"NFT ID {self.token_id} : {self.tx_url}"

    @classmethod
    def parse(cls, line: str) -> "MintLogEntry | None":
        match = _MINT_LINE_RE.match(line.strip())
        if match is None:
            return None
        return cls(token_id=int(match["token_id"]), tx_url=match["tx_url"])


def read_deployed_address(path: str | Path) -> str:
    """Return the contract address recorded by the deploy script.

    Raises:
        RecordError: If the file is missing, empty, or names no address.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise RecordError(f"Deployed address file not found: {file_path}")
    content = file_path.read_text(encoding="utf-8")
    if not content.strip():
        raise RecordError(f"Deployed address file is empty: {file_path}")
    match = _ADDRESS_RE.search(content)
    if match is None:
        raise RecordError(f"No contract address found in {file_path}")
    return match.group(1)


def read_mint_log(path: str | Path) -> list[MintLogEntry]:
    """Parse every well-formed line of the mint log.

    A missing log is an empty log; lines that do not match the format are
    skipped.
    """
    file_path = Path(path)
    if not file_path.is_file():
        return []
    entries: list[MintLogEntry] = []
    for line in file_path.read_text(encoding="utf-8").splitlines():
        entry = MintLogEntry.parse(line)
        if entry is not None:
            entries.append(entry)
    return entries
