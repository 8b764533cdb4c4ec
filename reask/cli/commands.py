"""
CLI command implementations.

This module contains the business logic for each CLI command:
- extract: Run a structured extraction against a provider
- validate: Decode an existing JSON file against a schema
"""

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional

from reask.adapters.base import Adapter
from reask.api import Instructor
from reask.config import ClientConfig
from reask.results import AdapterError, Success, ValidationError
from reask.validation import JsonSchemaDecoder, format_decode_errors

from .display import (
    console,
    create_progress_spinner,
    print_error,
    print_header,
    print_info,
    print_json,
    print_result_stats,
    print_schema,
    print_separator,
    print_success,
    print_validation_errors,
    print_warning,
)


class CommandError(Exception):
    """A command failed in a way already reported to the user."""


def load_json_file(path: Path, what: str = "JSON") -> Any:
    """
    Load and parse a JSON file.

    Raises:
        ValueError: If the file doesn't exist or isn't valid JSON
    """
    if not path.exists():
        raise ValueError(f"{what} file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {what.lower()} file: {e}") from e


def load_schema_file(schema_path: Path) -> Dict[str, Any]:
    schema = load_json_file(schema_path, what="Schema")
    if not isinstance(schema, dict):
        raise ValueError(f"Schema file must contain a JSON object: {schema_path}")
    return schema


def extract_command(
    prompt: str,
    schema_path: Path,
    config: ClientConfig,
    output_path: Optional[Path] = None,
    show_schema: bool = False,
    adapter: Optional[Adapter] = None,
) -> None:
    """
    Execute the extract command.

    Args:
        prompt: User prompt
        schema_path: Path to JSON schema file
        config: Client configuration (provider, model, mode, retries, ...)
        output_path: Optional path to save the extracted JSON
        show_schema: Whether to display the schema
        adapter: Adapter override (tests inject a MockAdapter)

    Raises:
        CommandError: If the schema can't be loaded or extraction fails
    """
    print_header("reask - Structured Extraction")

    try:
        schema = load_schema_file(schema_path)
        decoder = JsonSchemaDecoder(schema)
        print_success(f"Loaded schema from: {schema_path}")
    except Exception as e:  # noqa: BLE001
        print_error(f"Failed to load schema: {e}")
        raise CommandError(str(e)) from e

    if show_schema:
        print_schema(schema)

    print_separator()
    print_info(f"Prompt: [bold]{prompt}[/bold]")
    print_info(f"Provider: [bold]{config.provider}[/bold]")
    print_info(f"Model: [bold]{config.model}[/bold]")
    print_info(f"Mode: [bold]{config.mode.value}[/bold]")
    print_info(f"Max Retries: [bold]{config.max_retries}[/bold]")
    print_separator()

    try:
        client = Instructor(config, adapter=adapter)
    except Exception as e:  # noqa: BLE001
        print_error(f"Failed to create client: {e}")
        raise CommandError(str(e)) from e

    start = time.time()
    with client, create_progress_spinner() as progress:
        progress.add_task(description="Extracting...", total=None)
        result = client.create(decoder, prompt)
    latency_ms = (time.time() - start) * 1000

    console.print()
    print_separator()

    if isinstance(result, Success):
        print_success("Extraction successful!")
        print_json(result.value, title="Extracted Output")
    elif isinstance(result, ValidationError):
        print_error("Response failed validation")
        if result.raw_response:
            print_json(result.raw_response, title="Last Response")
        print_validation_errors(result.errors)
    else:
        print_error(f"Provider call failed: {result.message}")

    print_result_stats(
        outcome=_outcome(result),
        attempts=result.attempts,
        max_retries=config.max_retries,
        latency_ms=latency_ms,
    )

    if not isinstance(result, Success):
        raise CommandError(_outcome(result))

    if output_path:
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(result.value, f, indent=2, ensure_ascii=False)
            print_success(f"Output saved to: {output_path}")
        except OSError as e:
            print_warning(f"Failed to save output: {e}")


def validate_command(json_path: Path, schema_path: Path, show_schema: bool = False) -> None:
    """
    Execute the validate command.

    Args:
        json_path: Path to JSON file to validate
        schema_path: Path to JSON schema file
        show_schema: Whether to display the schema

    Raises:
        CommandError: If a file can't be loaded or validation fails
    """
    print_header("reask - Validate JSON")

    try:
        schema = load_schema_file(schema_path)
        decoder = JsonSchemaDecoder(schema)
        print_success(f"Loaded schema from: {schema_path}")
    except Exception as e:  # noqa: BLE001
        print_error(f"Failed to load schema: {e}")
        raise CommandError(str(e)) from e

    if show_schema:
        print_schema(schema)

    try:
        data = load_json_file(json_path)
        print_success(f"Loaded JSON from: {json_path}")
    except ValueError as e:
        print_error(str(e))
        raise CommandError(str(e)) from e

    print_json(data, title="Input JSON")

    print_separator()
    print_info("Validating...")

    result = decoder.decode(data)

    console.print()
    if result.is_valid:
        print_success("Validation passed!")
    else:
        print_error("Validation failed")
        print_validation_errors(format_decode_errors(result.errors))
        raise CommandError("validation failed")


def _outcome(result: Any) -> str:
    if isinstance(result, Success):
        return "success"
    if isinstance(result, AdapterError):
        return "adapter error"
    return "validation error"
