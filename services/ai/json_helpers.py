import json
import re
import unicodedata
from typing import Any, Dict

# outermost {...} span; models like to wrap the object in prose or fences
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


def clean_control_chars(s: str) -> str:
    return "".join(ch for ch in s if ch == "\n" or unicodedata.category(ch)[0] != "C")


def strip_code_fences(s: str) -> str:
    s = s.strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[1] if "\n" in s else ""
    if s.endswith("```"):
        s = s[:-3]
    return s.strip()


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the first JSON object out of model output.
    Raises ValueError when there is no parseable object.
    """
    text = strip_code_fences(clean_control_chars(text or ""))
    m = _OBJECT_RE.search(text)
    if not m:
        raise ValueError("No JSON object found in model output")
    raw = m.group(0)

    try:
        obj = json.loads(raw)
    except json.JSONDecodeError:
        try:
            obj = json.loads(_TRAILING_COMMA_RE.sub(r"\1", raw))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in model output: {e.msg}") from e

    if not isinstance(obj, dict):
        raise ValueError("Expected a JSON object")
    return obj
