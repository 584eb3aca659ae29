from __future__ import annotations

from typing import AsyncIterable, Generic, List, Optional, TypeVar

from loguru import logger

from ..config import Config
from ..models import ChatDelta, Message, ParsedOutcome, PartialState, Role, ToolInvocation
from ..utils.content_normalizer import ContentNormalizer
from ..utils.tool_call_extractor import ToolCallExtractor
from .response_classifier import ResponseClassifier
from .structured_parser import StructuredOutputParser

T = TypeVar("T")


class StreamingAccumulator(Generic[T]):
    """Collects streamed chunks of one reply.

    Content and thinking are concatenated in arrival order; native tool calls
    are appended as they show up. With a parser attached, every chunk past
    ``min_content_for_parse`` characters gets a best-effort partial decode.
    Partial decoding never raises.
    """

    def __init__(
        self,
        parser: Optional[StructuredOutputParser[T]] = None,
        *,
        min_content_for_parse: Optional[int] = None,
        yield_partial_values: Optional[bool] = None,
    ):
        self.parser = parser
        self.min_content_for_parse = (
            Config.STREAM_MIN_CONTENT_FOR_PARSE if min_content_for_parse is None else min_content_for_parse
        )
        self.yield_partial_values = Config.STREAM_YIELD_PARTIAL if yield_partial_values is None else yield_partial_values
        self._content: List[str] = []
        self._thinking: List[str] = []
        self.tool_calls: List[ToolInvocation] = []
        self.chunk_count = 0
        self.done = False

    @property
    def content(self) -> str:
        return "".join(self._content)

    @property
    def thinking(self) -> str:
        return "".join(self._thinking)

    def feed(self, delta: ChatDelta) -> Optional[PartialState[T]]:
        self.chunk_count += 1
        if delta.content:
            self._content.append(delta.content)
        if delta.thinking:
            self._thinking.append(delta.thinking)
        if delta.tool_calls:
            self.tool_calls.extend(delta.tool_calls)
        if delta.done:
            self.done = True

        if self.parser is None or not self.yield_partial_values:
            return None
        content = self.content
        if len(content) < self.min_content_for_parse or ToolCallExtractor.contains_tool_call_patterns(content):
            return None

        visible = ContentNormalizer.normalize(content)
        data = self.parser.loads_partial(visible)
        value = self.parser.coerce_partial(data)
        return PartialState(
            accumulated_content=content,
            partial_value=value,
            is_complete=False,
            progress=self.parser.estimate_progress(data),
        )

    def build_message(self) -> Message:
        thinking = self.thinking
        return Message(
            role=Role.ASSISTANT,
            content=self.content,
            thinking=thinking or None,
            tool_calls=list(self.tool_calls) or None,
        )

    def finish(self) -> ParsedOutcome:
        logger.debug(
            f"[stream] finished after {self.chunk_count} chunk(s): "
            f"{len(self.content)} content chars, {len(self.thinking)} thinking chars, "
            f"{len(self.tool_calls)} native tool call(s)"
        )
        return ResponseClassifier.process(self.build_message())

    async def collect(self, deltas: AsyncIterable[ChatDelta]) -> ParsedOutcome:
        """Drain a delta stream and classify the assembled reply."""
        async for delta in deltas:
            self.feed(delta)
        return self.finish()

    def reset(self) -> None:
        self._content = []
        self._thinking = []
        self.tool_calls = []
        self.chunk_count = 0
        self.done = False


__all__ = ["StreamingAccumulator"]
