import json
import re
from typing import Any, Dict, List

# Leading list markers the models like to add ("1. ", "- ", "* ")
_LIST_MARKER = re.compile(r'^\s*(?:[-*•]|\d+[.)])\s+')


def extract_json_block(raw_text: str) -> str:
    """
    Strip markdown code fences and surrounding prose from a model answer,
    leaving the outermost JSON object.
    """
    json_str = (raw_text or "").strip()

    # Remove ```json or ``` at the beginning
    if json_str.startswith("```json"):
        json_str = json_str[7:]
    elif json_str.startswith("```"):
        json_str = json_str[3:]

    # Remove ``` at the end
    if json_str.endswith("```"):
        json_str = json_str[:-3]

    json_str = json_str.strip()

    # Find the first { and last } if there's extra text
    if not json_str.startswith("{"):
        start_idx = json_str.find("{")
        end_idx = json_str.rfind("}")
        if start_idx != -1 and end_idx != -1:
            json_str = json_str[start_idx:end_idx + 1]

    return json_str


def parse_model_json(raw_text: str) -> Dict[str, Any]:
    """Parse a model answer into a dict; raises ValueError when it is not a JSON object"""
    json_str = extract_json_block(raw_text)
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def clean_string_list(value: Any) -> List[str]:
    """
    Normalise a model-supplied list field.
    Accepts a list or a single newline-separated string; drops blanks and list markers.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.splitlines()
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None]
    else:
        raise ValueError(f"expected a list of strings, got {type(value).__name__}")

    cleaned = []
    for item in items:
        text = _LIST_MARKER.sub("", item).strip()
        if text:
            cleaned.append(text)
    return cleaned
