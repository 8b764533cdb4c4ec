#!/usr/bin/env python3
"""
Demo: Person record with corrective retries.

This demonstrates extracting a pydantic model with:
- Required fields: name, age
- Nested object: address with city (required)
- Array: hobbies
- Field constraints checked by pydantic

Without arguments the demo runs against a scripted MockAdapter whose first
answer is invalid, so the corrective retry is visible. Pass --live to use the
provider configured through REASK_* environment variables (or .env).
"""

import sys
from typing import List, Optional

from pydantic import BaseModel, Field

from reask import AdapterError, Instructor, MockAdapter, RetryPolicy, Success
from reask.utils import setup_logging


class Address(BaseModel):
    street: Optional[str] = None
    city: str
    zipcode: Optional[str] = Field(default=None, min_length=5, max_length=10)


class Person(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    age: int = Field(ge=0, le=150)
    address: Optional[Address] = None
    hobbies: List[str] = []


SCRIPTED = [
    '{"name": "Alice", "age": "twenty-eight", "address": {"street": "5th Ave"}}',
    '{"name": "Alice", "age": 28, "address": {"city": "NYC"}, "hobbies": ["reading", "hiking"]}',
]


def show_attempt(attempt, request):
    print(f"\n--- Attempt {attempt} ({len(request.messages)} messages, {request.max_retries} retries left)")
    if attempt > 1:
        print(request.messages[-1].content)


def main():
    print("=" * 60)
    print("reask Demo: Person Record with Corrective Retries")
    print("=" * 60)

    setup_logging(level="WARNING")

    if "--live" in sys.argv:
        client = Instructor.from_env()
    else:
        client = Instructor(adapter=MockAdapter(SCRIPTED))

    prompt = "Generate a person named Alice, age 28, living in NYC with hobbies reading and hiking"
    print(f"Prompt: {prompt}")

    with client:
        result = client.create(
            Person,
            prompt,
            max_retries=2,
            policy=RetryPolicy(on_attempt=show_attempt),
        )

    print("\n" + "=" * 60)
    if isinstance(result, Success):
        print(f"✓ Valid after {result.attempts} attempt(s)")
        print(result.value.model_dump_json(indent=2))
    elif isinstance(result, AdapterError):
        print(f"✗ Provider call failed: {result.message}")
    else:
        print(f"✗ Still invalid after {result.attempts} attempt(s):")
        for error in result.errors:
            print(f"  - {error}")
    print("=" * 60)


if __name__ == "__main__":
    main()
