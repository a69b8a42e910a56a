"""Operator parameter collection.

The pipeline needs three free-form values from the operator: the private key
used to sign transactions, and the name and symbol of the token.  They are
resolved from, in order of precedence:

1. explicit CLI arguments (name and symbol only),
2. a YAML or JSON parameters file,
3. a dotenv file,
4. the process environment,
5. an interactive prompt.

Values are validated as soon as they are resolved, so a name that would
corrupt the generated contract is refused before any step runs.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from rich.prompt import Prompt

from nft_bootstrap.utils import BootstrapError, console, print_warning

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

PROMPTS: dict[str, str] = {
    "private_key": "Enter your private key",
    "name": "Enter the NFT name",
    "symbol": "Enter the NFT symbol",
}

ENV_VARS: dict[str, str] = {
    "name": "NFT_NAME",
    "symbol": "NFT_SYMBOL",
}


class ParameterError(BootstrapError):
    """Raised when a required parameter is missing or invalid."""


def _check_single_line(value: str, label: str) -> str:
    """Return *value* unchanged if it can be written as entered."""
    if not value.strip():
        raise ValueError(f"{label} must not be empty")
    if _CONTROL_CHARS.search(value):
        raise ValueError(f"{label} must be a single line without control characters")
    if value != value.strip():
        raise ValueError(f"{label} must not start or end with whitespace")
    return value


# ---------------------------------------------------------------------------
# Parameter models
# ---------------------------------------------------------------------------


class CredentialRecord(BaseModel):
    """The secret persisted to ``.env`` as a single ``KEY=value`` line."""

    key: str = Field(default="PRIVATE_KEY", pattern=r"^[A-Z_][A-Z0-9_]*$")
    value: SecretStr

    @field_validator("value", mode="before")
    @classmethod
    def _single_line(cls, value: Any) -> Any:
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        return _check_single_line(str(value), "Private key")

    def line(self) -> str:
        return f"{self.key}={self.value.get_secret_value()}"


class TokenParams(BaseModel):
    """Display name and ticker symbol of the ERC-721 token."""

    name: str
    symbol: str

    @field_validator("name")
    @classmethod
    def _valid_name(cls, value: str) -> str:
        return _check_single_line(value, "NFT name")

    @field_validator("symbol")
    @classmethod
    def _valid_symbol(cls, value: str) -> str:
        return _check_single_line(value, "NFT symbol")


class BootstrapParams(BaseModel):
    """Everything the operator supplies for one run."""

    credential: CredentialRecord
    token: TokenParams


# ---------------------------------------------------------------------------
# Collector
# ---------------------------------------------------------------------------


def load_params_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML (or JSON) mapping of parameter values.

    Scalars are loaded as the literal text in the file: ``0x1a2b`` stays
    ``"0x1a2b"`` and ``NO`` stays ``"NO"``.

    Raises:
        ParameterError: If the file is missing or is not a mapping.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ParameterError(f"Parameters file not found: {file_path}")
    try:
        data = yaml.load(file_path.read_text(encoding="utf-8"), Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise ParameterError(f"Could not parse parameters file {file_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParameterError(f"Parameters file {file_path} must contain a mapping")
    return {str(k): v for k, v in data.items()}


class ParameterCollector:
    """Resolves operator parameters from every configured source.

    Args:
        name: Token name given on the command line.
        symbol: Token symbol given on the command line.
        params_file: Optional YAML/JSON file with ``name``, ``symbol`` and
            ``private_key`` keys.
        env_file: Optional dotenv file.  The secret is read from the
            credential key (``PRIVATE_KEY`` by default).
        environ: Environment mapping, ``os.environ`` when omitted.
        interactive: Whether to fall back to prompting the operator.
        credential_key: Name the secret is stored under.
        prompt: Callable used for interactive input, ``(label, password) -> str``.
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        symbol: str | None = None,
        params_file: str | Path | None = None,
        env_file: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
        interactive: bool = True,
        credential_key: str = "PRIVATE_KEY",
        prompt: Callable[[str, bool], str] | None = None,
    ) -> None:
        self.credential_key = credential_key
        self.interactive = interactive
        self.prompt = prompt or _rich_prompt

        self._sources: list[tuple[str, dict[str, Any]]] = []
        cli_values = {k: v for k, v in (("name", name), ("symbol", symbol)) if v is not None}
        self._sources.append(("command line", cli_values))
        if params_file is not None:
            self._sources.append((str(params_file), load_params_file(params_file)))
        if env_file is not None:
            env_path = Path(env_file)
            if not env_path.is_file():
                raise ParameterError(f"Env file not found: {env_path}")
            self._sources.append((str(env_path), self._from_env_mapping(dotenv_values(env_path))))
        env = os.environ if environ is None else environ
        self._sources.append(("environment", self._from_env_mapping(env)))

    def _from_env_mapping(self, mapping: Mapping[str, str | None]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if mapping.get(self.credential_key):
            values["private_key"] = mapping[self.credential_key]
        for field, var in ENV_VARS.items():
            if mapping.get(var):
                values[field] = mapping[var]
        return values

    # -- Public API --------------------------------------------------------

    def collect(self) -> BootstrapParams:
        """Resolve and validate all three parameters.

        Raises:
            ParameterError: If a value is invalid, or missing while
                interactive prompting is disabled.
        """
        credential = self._resolve("private_key", self._make_credential, secret=True)
        token_name = self._resolve("name", lambda v: _check_single_line(v, "NFT name"))
        token_symbol = self._resolve("symbol", lambda v: _check_single_line(v, "NFT symbol"))
        return BootstrapParams(
            credential=credential,
            token=TokenParams(name=token_name, symbol=token_symbol),
        )

    # -- Internals ---------------------------------------------------------

    def _make_credential(self, value: str) -> CredentialRecord:
        return CredentialRecord(key=self.credential_key, value=value)

    def _resolve(self, field: str, build: Callable[[str], Any], secret: bool = False) -> Any:
        for source, values in self._sources:
            if field in values and values[field] is not None:
                value = values[field]
                if not isinstance(value, str):
                    raise ParameterError(
                        f"Invalid {field} from {source}: expected a single string value"
                    )
                try:
                    return build(value)
                except ValueError as exc:
                    raise ParameterError(
                        f"Invalid {field} from {source}: {_error_text(exc)}"
                    ) from exc

        if not self.interactive:
            raise ParameterError(f"No value for {field} and interactive input is disabled")

        while True:
            raw = self.prompt(PROMPTS[field], secret)
            try:
                return build(raw)
            except ValueError as exc:
                print_warning(_error_text(exc))


def _error_text(exc: ValueError) -> str:
    """Return the first human-readable message of a (pydantic) ValueError."""
    if isinstance(exc, ValidationError):
        errors = exc.errors()
        if errors:
            return str(errors[0].get("msg", exc)).removeprefix("Value error, ")
    return str(exc)


def _rich_prompt(label: str, password: bool) -> str:
    return Prompt.ask(label, password=password, console=console)
