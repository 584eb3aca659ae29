from __future__ import annotations

from typing import Any, AsyncIterator, Dict, Optional, Protocol, Sequence, runtime_checkable

from ..models import ChatDelta, Message


@runtime_checkable
class ChatTransport(Protocol):
    """What the structured session needs from a chat backend.

    ``format`` is a JSON schema the backend may use to constrain decoding.
    Implementations raise ``TransportError`` when no reply can be produced.
    """

    async def chat(self, messages: Sequence[Message], *, format: Optional[Dict[str, Any]] = None) -> Message:  # pragma: no cover - protocol
        ...

    def stream(self, messages: Sequence[Message], *, format: Optional[Dict[str, Any]] = None) -> AsyncIterator[ChatDelta]:  # pragma: no cover - protocol
        ...


__all__ = ["ChatTransport"]
