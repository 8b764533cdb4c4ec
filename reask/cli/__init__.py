"""
Command-line interface module.

This module provides a rich terminal interface for reask using Typer and Rich.

Commands:
    - extract: Extract schema-conforming JSON from a provider, with corrective retries
    - validate: Validate existing JSON against a schema

Example Usage:
    ```bash
    # Basic extraction (provider and model from REASK_* env vars / .env)
    reask extract \\
        --schema person.json \\
        --prompt "Ada Lovelace, 36, London"

    # With options
    reask extract \\
        --schema person.json \\
        --prompt "Ada Lovelace, 36, London" \\
        --provider anthropic \\
        --model claude-3-5-haiku-latest \\
        --mode md_json \\
        --max-retries 2 \\
        --output person_out.json

    # Validate a file
    reask validate --json person_out.json --schema person.json
    ```
"""

from .main import app

__all__ = ["app"]
