from __future__ import annotations

from loguru import logger

from ..models import Content, Empty, Message, ParsedOutcome, ToolInvocations
from ..utils.content_normalizer import ContentNormalizer
from ..utils.tool_call_extractor import ToolCallExtractor


class ResponseClassifier:
    """Decides what a single assistant message means.

    Checks run in a fixed order and the first that matches wins:
    native tool calls, tagged calls in content, tagged calls in thinking,
    normalized content, normalized thinking, and finally ``Empty``.
    """

    @staticmethod
    def _tagged_calls(text: str) -> ToolInvocations | None:
        if not ToolCallExtractor.contains_tool_call_patterns(text):
            return None
        result = ToolCallExtractor.scan(text)
        return ToolInvocations(result.invocations) if result.invocations else None

    @classmethod
    def process(cls, message: Message) -> ParsedOutcome:
        if message.tool_calls:
            logger.debug(f"[classify] {len(message.tool_calls)} native tool call(s)")
            return ToolInvocations(list(message.tool_calls))

        content = message.content or ""
        thinking = message.thinking or ""

        if outcome := cls._tagged_calls(content):
            logger.debug(f"[classify] {len(outcome.invocations)} tagged tool call(s) in content")
            return outcome
        if outcome := cls._tagged_calls(thinking):
            logger.debug(f"[classify] {len(outcome.invocations)} tagged tool call(s) in thinking")
            return outcome

        if text := ContentNormalizer.normalize(content):
            return Content(text)
        if text := ContentNormalizer.normalize(thinking):
            logger.debug("[classify] answer taken from the thinking channel")
            return Content(text)

        logger.debug("[classify] message carries nothing usable")
        return Empty()


__all__ = ["ResponseClassifier"]
