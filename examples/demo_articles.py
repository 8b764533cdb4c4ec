#!/usr/bin/env python3
"""
Demo: List of articles from a JSON Schema.

Shows ``create_iterable``: the provider is asked for ``{"items": [...]}`` and
each item is validated on its own, so errors point at ``items.<index>.<field>``.

Runs against a scripted MockAdapter; pass --live to use the provider
configured through REASK_* environment variables.
"""

import json
import sys

from reask import Instructor, MockAdapter, Success, ValidationError

ARTICLE_SCHEMA = {
    "title": "Article",
    "type": "object",
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "author": {"type": "string"},
        "published": {"type": "string", "format": "date"},
        "tags": {"type": "array", "items": {"type": "string"}, "maxItems": 5},
    },
    "required": ["title", "author"],
}

SCRIPTED = [
    json.dumps({"items": [
        {"title": "Constrained decoding", "author": "M. Ali", "tags": ["llm"]},
        {"title": "", "tags": "json"},
    ]}),
    json.dumps({"items": [
        {"title": "Constrained decoding", "author": "M. Ali", "tags": ["llm"]},
        {"title": "Retry loops in practice", "author": "J. Doe", "tags": ["json"]},
    ]}),
]


def main():
    print("=" * 60)
    print("reask Demo: List of Articles")
    print("=" * 60)

    adapter = None if "--live" in sys.argv else MockAdapter(SCRIPTED)
    client = Instructor.from_env(adapter=adapter)

    with client:
        result = client.create_iterable(
            ARTICLE_SCHEMA,
            "List two recent articles about structured LLM output",
            max_retries=1,
        )

    if isinstance(result, Success):
        print(f"✓ {len(result.value)} articles after {result.attempts} attempt(s)")
        print(json.dumps(result.value, indent=2))
    elif isinstance(result, ValidationError):
        print(f"✗ Still invalid after {result.attempts} attempt(s):")
        for error in result.errors:
            print(f"  - {error}")
    else:
        print(f"✗ Provider call failed: {result.message}")


if __name__ == "__main__":
    main()
