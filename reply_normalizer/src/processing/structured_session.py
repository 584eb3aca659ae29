"""Drives a schema-constrained request through transport, parsing and retries.

Each call to ``generate`` or ``stream`` is one logical request with its own
``RetryController`` and, for streams, a fresh ``StreamingAccumulator`` per
attempt. Every retry re-sends the whole conversation with the repair prompt in
place of the original one; nothing from a failed attempt is reused except the
error excerpt in that prompt.
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Generic, List, Optional, Sequence, Type, TypeVar, Union

from loguru import logger

from ..config import Config
from ..connectors.transport import ChatTransport
from ..errors import EmptyContentError, ParseError, TransportError, UnknownParseError
from ..models import (
    Content,
    Empty,
    Failure,
    Message,
    ParsedOutcome,
    PartialState,
    RetryContext,
    RetryPolicy,
    Role,
    Success,
    ToolInvocations,
)
from ..utils.text_utils import TextUtils
from .response_classifier import ResponseClassifier
from .retry_controller import RetryController
from .stream_accumulator import StreamingAccumulator
from .structured_parser import StructuredOutputParser

T = TypeVar("T")

StreamEvent = Union[PartialState[T], RetryContext, Success[T], Failure]


class StructuredSession(Generic[T]):
    """One prompt, one target type, bounded attempts."""

    def __init__(
        self,
        transport: ChatTransport,
        target: Type[T],
        prompt: str,
        *,
        history: Sequence[Message] = (),
        policy: Optional[RetryPolicy] = None,
        schema: Any = None,
        strict: bool = False,
        min_content_for_parse: Optional[int] = None,
        yield_partial_values: Optional[bool] = None,
    ):
        self.transport = transport
        self.prompt = prompt
        self.history = list(history)
        self.policy = policy or RetryPolicy.from_config()
        self.parser: StructuredOutputParser[T] = StructuredOutputParser(target, schema, strict=strict)
        self.min_content_for_parse = min_content_for_parse
        self.yield_partial_values = yield_partial_values

    def build_messages(self, controller: RetryController) -> List[Message]:
        prompt = self.prompt
        if context := controller.get_last_retry_context():
            prompt = controller.build_retry_prompt(self.prompt, context)
        return [*self.history, Message(role=Role.USER, content=prompt)]

    def _value_from(self, outcome: ParsedOutcome) -> T:
        if isinstance(outcome, Content):
            return self.parser.parse(outcome.text)
        if isinstance(outcome, ToolInvocations):
            names = ", ".join(call.name for call in outcome.invocations)
            raise EmptyContentError(f"Expected structured content but the model requested tools: {names}")
        if isinstance(outcome, Empty):
            raise EmptyContentError()
        raise UnknownParseError(f"Unexpected outcome {type(outcome).__name__}")

    @staticmethod
    def _transport_failure(exc: TransportError) -> UnknownParseError:
        logger.error(f"[session] transport failed: {exc}")
        return UnknownParseError(f"Transport failed: {exc}")

    async def generate(self) -> T:
        """Return the decoded value or raise ``MaxRetriesExceededError``."""
        controller = RetryController(self.policy)
        while True:
            messages = self.build_messages(controller)
            content = ""
            try:
                reply = await self.transport.chat(messages, format=self.parser.json_schema)
                content = reply.content
                value = self._value_from(ResponseClassifier.process(reply))
            except ParseError as exc:
                error: ParseError = exc
            except TransportError as exc:
                error = self._transport_failure(exc)
            else:
                controller.record_success()
                return value

            preview = TextUtils.truncate_text(TextUtils.one_line(content), Config.LOG_PREVIEW_MAX)
            logger.debug(f"[session] rejected reply: {preview}")
            if controller.record_failure(error, error.content or content) is None:
                final = controller.get_final_error()
                logger.error(f"[session] giving up: {controller.get_summary().describe()}")
                raise final from error
            await asyncio.sleep(controller.get_retry_delay())

    async def stream(self) -> AsyncIterator[StreamEvent]:
        """Yield partial states, retry contexts, then one ``Success`` or ``Failure``."""
        controller = RetryController(self.policy)
        while True:
            messages = self.build_messages(controller)
            accumulator: StreamingAccumulator[T] = StreamingAccumulator(
                self.parser,
                min_content_for_parse=self.min_content_for_parse,
                yield_partial_values=self.yield_partial_values,
            )
            try:
                async for delta in self.transport.stream(messages, format=self.parser.json_schema):
                    if (state := accumulator.feed(delta)) is not None:
                        yield state
                value = self._value_from(accumulator.finish())
            except asyncio.CancelledError:
                logger.info(f"[stream] cancelled after {accumulator.chunk_count} chunk(s); discarding partial reply")
                accumulator.reset()
                raise
            except ParseError as exc:
                error: ParseError = exc
            except TransportError as exc:
                error = self._transport_failure(exc)
            else:
                controller.record_success()
                yield Success(value)
                return

            context = controller.record_failure(error, error.content or accumulator.content)
            if context is None:
                logger.error(f"[stream] giving up: {controller.get_summary().describe()}")
                yield Failure(controller.get_final_error())
                return
            yield context
            await asyncio.sleep(controller.get_retry_delay())


__all__ = ["StructuredSession", "StreamEvent"]
