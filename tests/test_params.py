"""Unit tests for parameter collection (nft_bootstrap.params).

Tests cover:
- CredentialRecord / TokenParams validation
- Source precedence: CLI > params file > dotenv file > environment > prompt
- Interactive prompting, including re-prompting after invalid input
- Non-interactive failures
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from nft_bootstrap.params import (
    CredentialRecord,
    ParameterCollector,
    ParameterError,
    TokenParams,
    load_params_file,
)


def _collector(**kwargs) -> ParameterCollector:
    kwargs.setdefault("environ", {})
    kwargs.setdefault("interactive", False)
    return ParameterCollector(**kwargs)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestCredentialRecord:
    @pytest.mark.unit
    def test_line(self):
        record = CredentialRecord(value="abc123")
        assert record.line() == "PRIVATE_KEY=abc123"

    @pytest.mark.unit
    def test_value_is_hidden_in_repr(self):
        record = CredentialRecord(value="abc123")
        assert "abc123" not in repr(record)

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [" abc123", "abc123 ", " abc123 "])
    def test_rejects_surrounding_whitespace(self, value: str):
        with pytest.raises(ValidationError, match="whitespace"):
            CredentialRecord(value=value)

    @pytest.mark.unit
    def test_inner_spaces_kept(self):
        assert CredentialRecord(value="abc 123").line() == "PRIVATE_KEY=abc 123"

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["", "   ", "abc\n123", "abc\r123", "abc\x00"])
    def test_rejects_empty_and_multiline(self, value: str):
        with pytest.raises(ValidationError):
            CredentialRecord(value=value)


class TestTokenParams:
    @pytest.mark.unit
    def test_accepts_quotes_and_braces(self):
        token = TokenParams(name='My "Cool" {{NFT}}', symbol="${X}")
        assert token.name == 'My "Cool" {{NFT}}'
        assert token.symbol == "${X}"

    @pytest.mark.unit
    def test_rejects_newline_in_name(self):
        with pytest.raises(ValidationError):
            TokenParams(name="Demo\nEvil", symbol="DNFT")

    @pytest.mark.unit
    def test_rejects_empty_symbol(self):
        with pytest.raises(ValidationError):
            TokenParams(name="Demo", symbol="")

    @pytest.mark.unit
    def test_rejects_padded_name(self):
        with pytest.raises(ValidationError, match="whitespace"):
            TokenParams(name=" Demo ", symbol="DNFT")


# ---------------------------------------------------------------------------
# load_params_file
# ---------------------------------------------------------------------------


class TestLoadParamsFile:
    @pytest.mark.unit
    def test_yaml(self, tmp_path: Path):
        path = tmp_path / "params.yaml"
        path.write_text("name: Demo\nsymbol: DNFT\nprivate_key: abc123\n")
        assert load_params_file(path) == {
            "name": "Demo", "symbol": "DNFT", "private_key": "abc123",
        }

    @pytest.mark.unit
    def test_json(self, tmp_path: Path):
        path = tmp_path / "params.json"
        path.write_text('{"name": "Demo", "symbol": "DNFT"}')
        assert load_params_file(path) == {"name": "Demo", "symbol": "DNFT"}

    @pytest.mark.unit
    def test_scalars_stay_literal_strings(self, tmp_path: Path):
        path = tmp_path / "params.yaml"
        path.write_text("private_key: 0x1a2b\nname: Yes\nsymbol: NO\n")
        assert load_params_file(path) == {
            "private_key": "0x1a2b", "name": "Yes", "symbol": "NO",
        }

    @pytest.mark.unit
    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "params.yaml"
        path.write_text("")
        assert load_params_file(path) == {}

    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ParameterError, match="not found"):
            load_params_file(tmp_path / "nope.yaml")

    @pytest.mark.unit
    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "params.yaml"
        path.write_text("- Demo\n- DNFT\n")
        with pytest.raises(ParameterError, match="mapping"):
            load_params_file(path)


# ---------------------------------------------------------------------------
# ParameterCollector
# ---------------------------------------------------------------------------


class TestParameterSources:
    @pytest.mark.unit
    def test_environment_only(self):
        collector = _collector(
            environ={"PRIVATE_KEY": "abc123", "NFT_NAME": "Demo", "NFT_SYMBOL": "DNFT"},
        )
        params = collector.collect()
        assert params.credential.value.get_secret_value() == "abc123"
        assert params.token.name == "Demo"
        assert params.token.symbol == "DNFT"

    @pytest.mark.unit
    def test_cli_beats_params_file(self, tmp_path: Path):
        path = tmp_path / "params.yaml"
        path.write_text("name: FromFile\nsymbol: FILE\nprivate_key: filekey\n")
        params = _collector(name="FromCli", params_file=path).collect()
        assert params.token.name == "FromCli"
        assert params.token.symbol == "FILE"
        assert params.credential.value.get_secret_value() == "filekey"

    @pytest.mark.unit
    def test_params_file_values_used_verbatim(self, tmp_path: Path):
        path = tmp_path / "params.yaml"
        path.write_text("private_key: 0x1a2b\nname: Yes\nsymbol: NO\n")
        params = _collector(params_file=path).collect()
        assert params.credential.line() == "PRIVATE_KEY=0x1a2b"
        assert params.token.name == "Yes"
        assert params.token.symbol == "NO"

    @pytest.mark.unit
    def test_params_file_non_string_value(self, tmp_path: Path):
        path = tmp_path / "params.yaml"
        path.write_text("private_key: abc123\nname: [Demo, Other]\nsymbol: DNFT\n")
        with pytest.raises(ParameterError, match="Invalid name from .*single string"):
            _collector(params_file=path).collect()

    @pytest.mark.unit
    def test_quoted_dotenv_padding_rejected(self, tmp_path: Path):
        env_file = tmp_path / "secrets.env"
        env_file.write_text('PRIVATE_KEY=" abc123 "\n')
        with pytest.raises(ParameterError, match="whitespace"):
            _collector(name="Demo", symbol="DNFT", env_file=env_file).collect()

    @pytest.mark.unit
    def test_env_file_beats_environment(self, tmp_path: Path):
        env_file = tmp_path / "secrets.env"
        env_file.write_text("PRIVATE_KEY=fromdotenv\n")
        params = _collector(
            name="Demo",
            symbol="DNFT",
            env_file=env_file,
            environ={"PRIVATE_KEY": "fromenviron"},
        ).collect()
        assert params.credential.value.get_secret_value() == "fromdotenv"

    @pytest.mark.unit
    def test_custom_credential_key(self):
        params = _collector(
            name="Demo",
            symbol="DNFT",
            environ={"DEPLOYER_KEY": "abc123"},
            credential_key="DEPLOYER_KEY",
        ).collect()
        assert params.credential.line() == "DEPLOYER_KEY=abc123"

    @pytest.mark.unit
    def test_missing_env_file(self, tmp_path: Path):
        with pytest.raises(ParameterError, match="Env file not found"):
            _collector(env_file=tmp_path / "missing.env")

    @pytest.mark.unit
    def test_invalid_value_from_source_raises(self):
        collector = _collector(
            name="Demo\nEvil", symbol="DNFT", environ={"PRIVATE_KEY": "abc123"},
        )
        with pytest.raises(ParameterError, match="Invalid name from command line"):
            collector.collect()

    @pytest.mark.unit
    def test_non_interactive_missing_value(self):
        collector = _collector(name="Demo", symbol="DNFT")
        with pytest.raises(ParameterError, match="private_key"):
            collector.collect()


class TestInteractivePrompt:
    @pytest.mark.unit
    def test_prompts_in_order(self):
        prompt = MagicMock(side_effect=["abc123", "Demo", "DNFT"])
        params = ParameterCollector(environ={}, prompt=prompt).collect()

        labels = [call.args[0] for call in prompt.call_args_list]
        assert labels == [
            "Enter your private key",
            "Enter the NFT name",
            "Enter the NFT symbol",
        ]
        # Only the secret is masked.
        assert [call.args[1] for call in prompt.call_args_list] == [True, False, False]
        assert params.token.name == "Demo"

    @pytest.mark.unit
    def test_reprompts_after_invalid_input(self):
        prompt = MagicMock(side_effect=["", "abc123", "Demo", "   ", "DNFT"])
        params = ParameterCollector(environ={}, prompt=prompt).collect()
        assert prompt.call_count == 5
        assert params.credential.value.get_secret_value() == "abc123"
        assert params.token.symbol == "DNFT"

    @pytest.mark.unit
    def test_only_missing_values_are_prompted(self):
        prompt = MagicMock(side_effect=["DNFT"])
        params = ParameterCollector(
            name="Demo", environ={"PRIVATE_KEY": "abc123"}, prompt=prompt,
        ).collect()
        prompt.assert_called_once_with("Enter the NFT symbol", False)
        assert params.token.symbol == "DNFT"
