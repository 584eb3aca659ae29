"""Scanning of tagged tool calls (``<tool_call>``, ``<function_call>``) in model text."""

import re
from typing import List, NamedTuple

from loguru import logger

from ..config import Config
from ..models import ToolInvocation
from .text_utils import TextUtils
from .tool_call_normalizer import ToolCallNormalizer

_SPAN_RE = re.compile(r"<(tool_call|function_call)>(.*?)</\1>", re.DOTALL | re.IGNORECASE)
_MARKERS = ("<tool_call>", "<function_call>")


class ScanResult(NamedTuple):
    invocations: List[ToolInvocation]
    remaining_content: str


class ToolCallExtractor:
    """Finds tool calls written as tagged text inside a reply.

    ``<tool_call>`` and ``<function_call>`` spans are equivalent. A span whose
    body matches neither dialect is dropped; its siblings are still decoded.
    """

    @staticmethod
    def contains_tool_call_patterns(text: str) -> bool:
        if not text:
            return False
        lowered = text.lower()
        return any(marker in lowered for marker in _MARKERS)

    @classmethod
    def scan(cls, text: str) -> ScanResult:
        if not text:
            return ScanResult([], "")
        invocations: List[ToolInvocation] = []
        for match in _SPAN_RE.finditer(text):
            body = match.group(2).strip()
            if invocation := ToolCallNormalizer.from_span(body):
                invocations.append(invocation)
            else:
                preview = TextUtils.truncate_text(TextUtils.one_line(body), Config.LOG_PREVIEW_MAX)
                logger.debug(f"[scan] dropped malformed {match.group(1)} span: {preview}")
        remaining = _SPAN_RE.sub("", text).strip()
        return ScanResult(invocations, remaining)


__all__ = ["ScanResult", "ToolCallExtractor"]
