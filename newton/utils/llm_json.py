import json
import re

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def strip_code_fences(text):
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    text = (text or "").strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text, count=1)
        text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def parse_model_json(text):
    """Parse JSON emitted by a model, tolerating code fences. Raises ValueError."""
    return json.loads(strip_code_fences(text))
