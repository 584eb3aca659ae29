"""Removal of reasoning and echo wrappers around a model's answer.

Reasoning models put chain-of-thought in ``<think>`` blocks, sometimes with the
opening tag eaten by the chat template so only ``</think>`` survives. Some also
echo the instructions back inside ``<content>`` tags; those spans are dropped
as a heuristic, even though a model could in principle put its answer there.
"""

from __future__ import annotations

import re

from loguru import logger

from .json_utils import extract_json

_CONTENT_SPAN_RE = re.compile(r"<content>.*?</content>", re.DOTALL | re.IGNORECASE)
_THINK_PAIR_RE = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
_THINK_UNCLOSED_RE = re.compile(r"<think>.*\Z", re.DOTALL | re.IGNORECASE)
_THINK_OPEN = "<think"
_THINK_CLOSE = "</think>"


class ContentNormalizer:
    """Strips reasoning wrappers and returns the answer text."""

    @staticmethod
    def strip_content_tags(text: str) -> str:
        return _CONTENT_SPAN_RE.sub("", text)

    @staticmethod
    def drop_orphaned_close(text: str) -> str:
        """Drop everything up to the last ``</think>`` when no opener exists."""
        lowered = text.lower()
        if _THINK_CLOSE not in lowered or _THINK_OPEN in lowered:
            return text
        return text[lowered.rfind(_THINK_CLOSE) + len(_THINK_CLOSE):]

    @staticmethod
    def strip_think_blocks(text: str) -> str:
        """Remove complete think pairs, then an unterminated trailing one."""
        text = _THINK_PAIR_RE.sub("", text)
        return _THINK_UNCLOSED_RE.sub("", text)

    @classmethod
    def normalize(cls, text: str) -> str:
        """Return the answer portion of ``text``.

        When stripping leaves nothing, the original text is searched for JSON
        (answers sometimes land inside the reasoning block); failing that the
        result is the empty string.
        """
        if not text:
            return ""
        remainder = text
        while True:
            stripped = cls.strip_content_tags(remainder)
            stripped = cls.drop_orphaned_close(stripped)
            stripped = cls.strip_think_blocks(stripped).strip()
            # A pass can expose a close tag whose opener it just removed.
            if stripped == remainder:
                break
            remainder = stripped
        if remainder:
            return remainder
        if found := extract_json(text):
            logger.debug("[normalize] answer recovered from JSON inside stripped wrappers")
            return found
        return ""


__all__ = ["ContentNormalizer"]
