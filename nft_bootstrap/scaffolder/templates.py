"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``nft_bootstrap/scaffolder/templates/`` directory and renders them with
project-specific context data.

Operator-supplied values never reach a generated file verbatim: every
template passes them through one of the literal filters registered here
(``ts_string``, ``sol_string``, ``env_value``), which quote and escape the
value for the target language or refuse it outright.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from nft_bootstrap.utils import BootstrapError


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


class TemplateValueError(BootstrapError):
    """Raised when a value cannot be represented safely in a generated file."""


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for the generated Hardhat project.

    Templates are ``.j2`` files under a configurable template directory and
    are rendered with a context dictionary built from the pipeline's
    configuration and collected parameters.  Undefined variables raise
    instead of rendering as empty strings.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["ts_string"] = _ts_string_filter
        self.env.filters["sol_string"] = _sol_string_filter
        self.env.filters["env_value"] = _env_value_filter

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"NFT.sol.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.

        Raises:
            TemplateValueError: If a filter refuses one of the values.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        The file is replaced in full; parent directories are created
        automatically.  Nothing is written if rendering fails.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(_write_file, out, content)
        return out


# ---------------------------------------------------------------------------
# Jinja2 literal filters
# ---------------------------------------------------------------------------

def _ts_string_filter(value: Any) -> str:
    """Quote *value* as a TypeScript string literal."""
    return json.dumps(str(value))


def _sol_string_filter(value: Any) -> str:
    """Quote *value* as a Solidity string literal.

    Plain string literals in Solidity only admit printable ASCII, so values
    with other characters are emitted as ``unicode"..."`` literals.
    """
    text = str(value)
    if _CONTROL_CHARS.search(text):
        raise TemplateValueError(
            f"Control characters are not allowed in a Solidity string: {text!r}"
        )
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    if escaped.isascii():
        return f'"{escaped}"'
    return f'unicode"{escaped}"'


def _env_value_filter(value: Any) -> str:
    """Pass *value* through for a ``KEY=value`` line, refusing line breaks."""
    text = str(value)
    if _CONTROL_CHARS.search(text):
        raise TemplateValueError("Values in a .env file must fit on a single line")
    return text


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
