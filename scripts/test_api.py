#!/usr/bin/env python
"""
Test the Gemini API connection with a reference image.

Usage:
    python scripts/test_api.py path/to/image.png [count]
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from styleprompt.core.config import Config
from styleprompt.core.credentials import load_initial_credential
from styleprompt.core.generation import GenerationRequest, generate_prompts
from styleprompt.core.image_input import load_picked_file


def main() -> None:
    """Test the Gemini API connection."""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)

    print("Testing Gemini API connection...")
    print()

    config = Config.from_env()
    credential = load_initial_credential(config)
    if not credential:
        print("❌ No API key stored and GEMINI_API_KEY not set")
        print("Set it in .env file or environment variable")
        sys.exit(1)

    print(f"✓ API key found: {credential[:6]}...")

    try:
        config.validate()
        image = load_picked_file(sys.argv[1], config=config)
    except Exception as e:
        print(f"❌ Setup failed: {e}")
        sys.exit(1)
    print(f"✓ Image loaded: {image.filename} ({image.mime_type}, {image.size_bytes} bytes)")

    count = int(sys.argv[2]) if len(sys.argv) > 2 else config.batch_size
    print()
    print(f"Requesting {count} prompts from {config.model} (this may take 10-30 seconds)...")

    try:
        result = generate_prompts(
            GenerationRequest.from_payload(image, count),
            credential,
            config=config,
        )
    except Exception as e:
        print(f"❌ Generation failed: {e}")
        sys.exit(1)

    print("✓ Generation successful!")
    print(f"  - Model: {result.model_used}")
    print(f"  - Time: {result.generation_time:.2f}s")
    print(f"  - Subject: {result.subject}")
    print(f"  - Style: {result.style}")
    for i, prompt in enumerate(result.prompts, start=1):
        print(f"  {i}. {prompt}")

    print()
    print("✅ All tests passed! Gemini API is working correctly.")


if __name__ == "__main__":
    main()
