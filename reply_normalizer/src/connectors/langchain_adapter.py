"""Bridge from langchain chat messages to the normalizer's ``Message``.

Lets replies produced through langchain chat models (ChatOllama and friends)
go through the same classifier as raw Ollama responses.
"""

from __future__ import annotations

from typing import Any, List

from langchain_core.messages import AIMessage

from ..models import Message, Role, ToolInvocation


def _text_of(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


def message_from_ai(message: AIMessage) -> Message:
    calls = [
        ToolInvocation(name=call["name"], arguments=call.get("args") or {})
        for call in message.tool_calls or []
        if call.get("name")
    ]
    thinking = message.additional_kwargs.get("reasoning_content")
    return Message(
        role=Role.ASSISTANT,
        content=_text_of(message.content),
        thinking=thinking if isinstance(thinking, str) and thinking else None,
        tool_calls=calls or None,
    )


__all__ = ["message_from_ai"]
