"""Seed the local fallback prompts into Langfuse for version-controlled prompt management.

Run once to create initial prompts, or re-run to create new versions. Edit the
prompts in Langfuse afterwards; the service picks up the ``production`` label.
Usage:
    python -m scripts.seed_prompts
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.clients import get_langfuse_client
from interview.prompts import FALLBACK_PROMPTS as INTERVIEW_PROMPTS
from registration.prompts import FALLBACK_PROMPTS as REGISTRATION_PROMPTS


def build_prompt_definitions() -> list[dict]:
    return [
        {"name": name, "type": "text", "prompt": template, "labels": ["production"]}
        for name, template in {**REGISTRATION_PROMPTS, **INTERVIEW_PROMPTS}.items()
    ]


def seed():
    client = get_langfuse_client()
    if client is None:
        print("ERROR: Langfuse client not available. Check LANGFUSE_PUBLIC_KEY and LANGFUSE_SECRET_KEY.")
        sys.exit(1)

    definitions = build_prompt_definitions()
    failures = 0
    for definition in definitions:
        try:
            client.create_prompt(
                name=definition["name"],
                type=definition["type"],
                prompt=definition["prompt"],
                labels=definition["labels"],
            )
            print(f"  OK  {definition['name']}")
        except Exception as e:
            failures += 1
            print(f"  FAIL {definition['name']}: {e}")

    client.flush()
    print(f"\nSeeded {len(definitions) - failures}/{len(definitions)} prompts.")
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    seed()
