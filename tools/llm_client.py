"""AI response parsing utilities.

The model is asked for a bare JSON object but frequently wraps it in prose
or markdown fences. ``parse_json_response`` tries, in order: the whole text,
a fenced block, the widest ``{...}`` span, and finally the first object that
decodes from an opening brace.
"""

import json
import re

# Precompiled regexes for JSON extraction
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

_STRICT_DECODER = json.JSONDecoder()
# Lenient decoder that allows control characters (raw newlines, tabs) inside
# JSON strings.
_LENIENT_DECODER = json.JSONDecoder(strict=False)


def _try_loads(text: str):
    """Try parsing JSON, first strictly then leniently."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return _LENIENT_DECODER.decode(text)
    except json.JSONDecodeError:
        pass
    raise json.JSONDecodeError("", text, 0)


def extract_first_object(text: str) -> dict | None:
    """Return the first object that decodes starting at a ``{``.

    Each opening brace is decoded up to the end of its value, so a nested
    object comes back whole instead of as its innermost part.
    """
    start = text.find("{")
    while start != -1:
        for decoder in (_STRICT_DECODER, _LENIENT_DECODER):
            try:
                result, _ = decoder.raw_decode(text, start)
            except json.JSONDecodeError:
                continue
            if isinstance(result, dict):
                return result
            break
        start = text.find("{", start + 1)
    return None


def parse_json_response(text: str) -> dict:
    """Extract and parse a JSON object from AI response text.

    Raises:
        ValueError: If no JSON object can be recovered.
    """
    text = text.strip()

    try:
        result = _try_loads(text)
        if isinstance(result, dict):
            return result
    except json.JSONDecodeError:
        pass

    match = _JSON_FENCE_RE.search(text)
    if match:
        try:
            result = _try_loads(match.group(1).strip())
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            result = _try_loads(text[start:end + 1])
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass

    result = extract_first_object(text)
    if result is not None:
        return result

    raise ValueError(f"Failed to parse JSON from AI response: {text[:200]}...")
