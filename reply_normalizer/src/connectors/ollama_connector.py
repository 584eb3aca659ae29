from __future__ import annotations

import contextlib
from typing import Any, AsyncIterator, Dict, Optional, Sequence

import httpx
from loguru import logger
from pydantic import ValidationError

from ..config import Config
from ..errors import TransportError
from ..models import ChatDelta, Message
from ..utils.json_utils import safe_loads
from ..utils.text_utils import TextUtils


class OllamaConnector:
    """Chat transport for an Ollama server's ``/api/chat`` endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        keep_alive: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        self.base_url = (base_url or Config.OLLAMA_URL).rstrip("/")
        self.model = model or Config.OLLAMA_MODEL
        self.timeout = Config.OLLAMA_TIMEOUT if timeout is None else timeout
        self.keep_alive = keep_alive if keep_alive is not None else Config.OLLAMA_KEEP_ALIVE
        self.options = options or {}
        self._client = client

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/api/chat"

    @contextlib.asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    def build_payload(self, messages: Sequence[Message], *, stream: bool, format: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_payload() for m in messages],
            "stream": stream,
        }
        if format is not None:
            payload["format"] = format
        if self.keep_alive:
            payload["keep_alive"] = self.keep_alive
        if self.options:
            payload["options"] = self.options
        return payload

    @staticmethod
    def decode_message(data: Any) -> Message:
        if not isinstance(data, dict):
            raise TransportError(f"Ollama returned {type(data).__name__} instead of an object")
        if error := data.get("error"):
            raise TransportError(f"Ollama error: {error}")
        try:
            return Message.from_payload(data.get("message") or {"role": "assistant"})
        except ValidationError as exc:
            raise TransportError(f"Ollama returned an unexpected message shape: {exc}") from exc

    @classmethod
    def decode_chunk(cls, data: Dict[str, Any]) -> ChatDelta:
        """Turn one ``/api/chat`` stream line into a ``ChatDelta``."""
        message = cls.decode_message(data)
        return ChatDelta(
            content=message.content,
            thinking=message.thinking or "",
            tool_calls=list(message.tool_calls or []),
            done=bool(data.get("done")),
        )

    async def chat(self, messages: Sequence[Message], *, format: Optional[Dict[str, Any]] = None) -> Message:
        payload = self.build_payload(messages, stream=False, format=format)
        logger.info(f"[ollama] chat model={self.model} messages={len(messages)}")
        try:
            async with self._session() as client:
                response = await client.post(self.chat_url, json=payload)
                response.raise_for_status()
                data = safe_loads(response.content)
        except httpx.HTTPStatusError as exc:
            body = TextUtils.truncate_text(exc.response.text, Config.LOG_PREVIEW_MAX)
            raise TransportError(f"Ollama returned HTTP {exc.response.status_code}: {body}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Ollama request failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"Ollama returned undecodable JSON: {exc}") from exc

        return self.decode_message(data)

    async def stream(self, messages: Sequence[Message], *, format: Optional[Dict[str, Any]] = None) -> AsyncIterator[ChatDelta]:
        payload = self.build_payload(messages, stream=True, format=format)
        logger.info(f"[ollama] stream model={self.model} messages={len(messages)}")
        try:
            async with self._session() as client:
                async with client.stream("POST", self.chat_url, json=payload) as response:
                    if response.is_error:
                        body = TextUtils.truncate_text((await response.aread()).decode("utf-8", "replace"), Config.LOG_PREVIEW_MAX)
                        raise TransportError(f"Ollama returned HTTP {response.status_code}: {body}")
                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        try:
                            data = safe_loads(line)
                        except ValueError:
                            logger.warning(f"[ollama] skipping undecodable stream line: {TextUtils.truncate_text(line, 200)}")
                            continue
                        yield self.decode_chunk(data)
        except httpx.HTTPError as exc:
            raise TransportError(f"Ollama stream failed: {exc}") from exc


__all__ = ["OllamaConnector"]
