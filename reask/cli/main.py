"""
Main CLI entry point using Typer.

This module defines the command-line interface for reask.
It provides two commands: extract and validate.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from reask.config import ClientConfig
from reask.types import ResponseMode
from reask.utils import setup_logging

from .commands import extract_command, validate_command
from .display import print_error

app = typer.Typer(
    name="reask",
    help="reask - validated structured output from LLMs",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.command("extract")
def extract(
    prompt: Annotated[
        str,
        typer.Option("--prompt", "-p", help="Extraction prompt")
    ],
    schema: Annotated[
        Path,
        typer.Option("--schema", "-s", help="Path to JSON schema file", exists=True, file_okay=True, dir_okay=False)
    ],
    provider: Annotated[
        Optional[str],
        typer.Option("--provider", help="Provider: openai, anthropic or mock (default: REASK_PROVIDER or openai)")
    ] = None,
    model: Annotated[
        Optional[str],
        typer.Option("--model", "-m", help="Model identifier (default: REASK_MODEL)")
    ] = None,
    mode: Annotated[
        Optional[ResponseMode],
        typer.Option("--mode", help="Response mode: tools, json, json_schema or md_json")
    ] = None,
    max_retries: Annotated[
        Optional[int],
        typer.Option("--max-retries", min=0, help="Corrective retries after a failed validation")
    ] = None,
    temperature: Annotated[
        Optional[float],
        typer.Option("--temperature", "-t", help="Sampling temperature")
    ] = None,
    max_tokens: Annotated[
        Optional[int],
        typer.Option("--max-tokens", help="Maximum tokens to generate")
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Path to save output JSON")
    ] = None,
    show_schema: Annotated[
        bool,
        typer.Option("--show-schema", help="Display the schema before extraction")
    ] = False,
) -> None:
    """
    Extract JSON conforming to a schema, retrying with corrective feedback.

    Example:
        reask extract \\
            --prompt "Ada Lovelace, born 1815, mathematician" \\
            --schema person.json \\
            --provider openai \\
            --model gpt-4o-mini \\
            --mode json_schema \\
            --output person_out.json
    """
    try:
        config = ClientConfig.from_env().with_overrides(
            provider=provider,
            model=model,
            mode=mode,
            max_retries=max_retries,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        extract_command(
            prompt=prompt,
            schema_path=schema,
            config=config,
            output_path=output,
            show_schema=show_schema,
        )
    except Exception as e:  # noqa: BLE001
        print_error(f"Command failed: {e}")
        raise typer.Exit(code=1)


@app.command("validate")
def validate(
    json_file: Annotated[
        Path,
        typer.Option("--json", "-j", help="Path to JSON file to validate", exists=True, file_okay=True, dir_okay=False)
    ],
    schema: Annotated[
        Path,
        typer.Option("--schema", "-s", help="Path to JSON schema file", exists=True, file_okay=True, dir_okay=False)
    ],
    show_schema: Annotated[
        bool,
        typer.Option("--show-schema", help="Display the schema")
    ] = False,
) -> None:
    """
    Validate existing JSON against a schema.

    Example:
        reask validate \\
            --json output.json \\
            --schema schema.json
    """
    try:
        validate_command(json_path=json_file, schema_path=schema, show_schema=show_schema)
    except Exception as e:  # noqa: BLE001
        print_error(f"Command failed: {e}")
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit")
    ] = False,
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Log level for reask's own logging")
    ] = "WARNING",
) -> None:
    """
    reask - validated structured output from LLMs.

    Sends a prompt to a provider, validates the answer against a JSON schema,
    and re-asks with the validation errors until it passes or retries run out.
    """
    if version:
        from reask import __version__
        typer.echo(f"reask version {__version__}")
        raise typer.Exit()

    setup_logging(level=log_level.upper())

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def cli() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    cli()
