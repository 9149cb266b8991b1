"""
JSON extraction from free-form LLM output.

Models wrap JSON in prose or markdown fences; these helpers pull out the
first balanced top-level object/array instead of parsing the whole reply.
"""

import json
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _first_balanced(text: str, open_char: str, close_char: str) -> Optional[str]:
    """Return the first bracket-matched substring, ignoring brackets inside strings."""
    start = text.find(open_char)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue

            if ch == '"':
                in_string = True
            elif ch == open_char:
                depth += 1
            elif ch == close_char:
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]

        # Unbalanced from this position; try the next opening bracket
        start = text.find(open_char, start + 1)

    return None


def extract_first_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse the first top-level JSON object found in text.

    Returns:
        The parsed dict, or None if no parseable object exists
    """
    if not text:
        return None

    candidate = _first_balanced(text, "{", "}")
    if candidate is None:
        return None

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON object candidate failed to parse: {e}")
        return None

    return data if isinstance(data, dict) else None


def extract_first_json_array(text: Optional[str]) -> Optional[List[Any]]:
    """Parse the first top-level JSON array found in text."""
    if not text:
        return None

    candidate = _first_balanced(text, "[", "]")
    if candidate is None:
        return None

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON array candidate failed to parse: {e}")
        return None

    return data if isinstance(data, list) else None
