"""Tolerant JSON extraction from model text output.

Grounded Gemini calls cannot use structured output, so the curator asks
for JSON in the prompt and gets free text back. Models often wrap the JSON
in a Markdown fence. Extraction order:

    1. The first ```json fenced block
    2. The first fenced block of any kind
    3. The raw text
"""

import json
import re
from typing import Any

_JSON_FENCE = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE = re.compile(r"```(.*?)```", re.DOTALL)


def extract_json_text(text: str) -> str:
    """Return the candidate JSON text following the fence fallback order."""
    match = _JSON_FENCE.search(text) or _ANY_FENCE.search(text)
    candidate = match.group(1) if match else text
    return candidate.strip()


def extract_json(text: str) -> Any:
    """Parse JSON out of model output.

    Raises:
        ValueError: If the text is empty or the extracted text is not JSON
    """
    if not text or not text.strip():
        raise ValueError("empty response text")
    return json.loads(extract_json_text(text))
