# listsearch/projector.py
"""
Turns a raw QnA answer (a JSON object keyed by list column name) into the
ordered label/value pairs shown on a result card.

Column display names come from the list schema, where characters that are not
valid in an identifier are escaped as ``_xHHHH_`` (four hex digits, one UTF-16
code unit) or ``_xHHHHHHHH_`` (eight hex digits, one code point). For example
``Due_x0020_Date`` is "Due Date" and ``_x0031_st_x0020_Owner`` is "1st Owner".
Text that does not match one of those forms is kept as is.
"""

import json
import re
from typing import Any, Dict, List, Mapping, Sequence

from .errors import MalformedPayloadError
from .models import ColumnInfo, DeserializedAnswer

_ESCAPE_RE = re.compile(r"_x([0-9A-Fa-f]{8}|[0-9A-Fa-f]{4})_")


def _unescape(m: "re.Match[str]") -> str:
    code = int(m.group(1), 16)
    if code > 0x10FFFF:
        return m.group(0)
    return chr(code)


def decode_display_name(name: str) -> str:
    if not name or "_x" not in name:
        return name or ""
    decoded = _ESCAPE_RE.sub(_unescape, name)
    # a pair of _xD8xx_/_xDCxx_ escapes decodes to lone surrogates; join them
    return decoded.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def get_string_field(obj: Mapping[str, Any], name: str) -> str:
    """Value of ``name`` as display text; "" when absent or null."""
    value = obj.get(name)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def parse_answer_payload(raw: str) -> Dict[str, Any]:
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedPayloadError(f"answer payload is not valid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise MalformedPayloadError("answer payload is not a JSON object")
    return obj


def project_answers(obj: Mapping[str, Any], fields: Sequence[ColumnInfo]) -> List[DeserializedAnswer]:
    # one entry per configured column, in column order, even when the key is missing
    return [
        DeserializedAnswer(question=decode_display_name(f.display_name), answer=get_string_field(obj, f.name))
        for f in fields
    ]
