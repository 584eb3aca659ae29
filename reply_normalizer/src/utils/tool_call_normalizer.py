import re
from typing import Any, Dict, Optional

from ..models import ToolInvocation
from .json_utils import extract_first_json, safe_loads

_ARG_PAIR_RE = re.compile(
    r"<arg_key>\s*(.*?)\s*</arg_key>\s*<arg_value>\s*(.*?)\s*</arg_value>",
    re.DOTALL | re.IGNORECASE,
)
_ARG_KEY_OPEN = "<arg_key>"


class ToolCallNormalizer:
    """Turns the tool-call shapes models emit into ``ToolInvocation`` values."""

    @staticmethod
    def coerce_arguments(value: Any) -> Dict[str, Any]:
        """Arguments as a dict; JSON-encoded strings are decoded, anything else is empty."""
        if isinstance(value, dict):
            return value
        if isinstance(value, str) and value.strip():
            try:
                decoded = safe_loads(value)
            except ValueError:
                return {}
            return decoded if isinstance(decoded, dict) else {}
        return {}

    @classmethod
    def from_payload(cls, payload: Any) -> Optional[ToolInvocation]:
        """Normalize one decoded JSON tool call.

        Accepted shapes: ``{name, arguments}``, ``{function: {name, arguments}}``
        and ``{type: "function", function: {...}}``. ``parameters`` is read
        when ``arguments`` is absent. A top-level ``name`` wins over a
        nested ``function``.
        """
        if not isinstance(payload, dict):
            return None
        if not isinstance(payload.get("name"), str) and isinstance(payload.get("function"), dict):
            payload = payload["function"]
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            return None
        raw_args = payload.get("arguments", payload.get("parameters"))
        return ToolInvocation(name=name.strip(), arguments=cls.coerce_arguments(raw_args))

    @classmethod
    def from_json_text(cls, text: str) -> Optional[ToolInvocation]:
        return cls.from_payload(extract_first_json(text))

    @staticmethod
    def from_key_value_markup(text: str) -> Optional[ToolInvocation]:
        """Parse ``name<arg_key>k</arg_key><arg_value>v</arg_value>...`` markup."""
        marker = text.lower().find(_ARG_KEY_OPEN)
        if marker == -1:
            return None
        name = text[:marker].strip()
        if not name:
            return None
        arguments: Dict[str, Any] = {}
        for key, value in _ARG_PAIR_RE.findall(text[marker:]):
            if key and key not in arguments:
                arguments[key] = value
        if not arguments:
            return None
        return ToolInvocation(name=name, arguments=arguments)

    @classmethod
    def from_span(cls, body: str) -> Optional[ToolInvocation]:
        """Decode a tool-call span body in either dialect.

        Argument values in the markup dialect may hold JSON of their own, so
        markup is tried first whenever an ``<arg_key>`` tag is present.
        """
        if _ARG_KEY_OPEN in body.lower():
            return cls.from_key_value_markup(body) or cls.from_json_text(body)
        return cls.from_json_text(body)


__all__ = ["ToolCallNormalizer"]
