"""
Tolerant JSON extraction from language-model output.

Models wrap JSON in markdown fences, prepend chatter, or return nothing at
all. ``parse_json_object`` never raises: anything unusable becomes ``{}``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```[a-zA-Z]*")


def parse_json_object(raw: Any) -> dict[str, Any]:
    """
    Extract a JSON object from raw model output.

    - dicts are returned as-is
    - markdown code fences are stripped
    - the text between the first '{' and the last '}' is parsed

    Returns:
        The parsed object, or an empty dict when nothing usable was found
    """
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return {}

    text = _FENCE.sub("", raw).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        logger.debug(f"No JSON object in model output: {text[:200]!r}")
        return {}

    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        logger.debug(f"Model output is not valid JSON ({e}): {text[:200]!r}")
        return {}

    if not isinstance(data, dict):
        return {}
    return data
