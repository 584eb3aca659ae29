from langchain_core.messages import AIMessage

from reply_normalizer.src.connectors.langchain_adapter import message_from_ai
from reply_normalizer.src.models import Content, Role, ToolInvocations
from reply_normalizer.src.processing.response_classifier import ResponseClassifier


def test_native_tool_calls_are_carried_over():
    ai = AIMessage(
        content="",
        tool_calls=[{"name": "create_entities", "args": {"entities": []}, "id": "call_1"}],
    )
    message = message_from_ai(ai)
    assert message.role is Role.ASSISTANT
    assert message.tool_calls[0].name == "create_entities"
    assert isinstance(ResponseClassifier.process(message), ToolInvocations)


def test_reasoning_content_becomes_thinking():
    ai = AIMessage(content="", additional_kwargs={"reasoning_content": '{"answer": 3}'})
    message = message_from_ai(ai)
    assert message.thinking == '{"answer": 3}'
    assert ResponseClassifier.process(message) == Content('{"answer": 3}')


def test_text_blocks_are_joined():
    ai = AIMessage(content=[{"type": "text", "text": "Hello "}, "world", {"type": "image_url", "image_url": "x"}])
    message = message_from_ai(ai)
    assert message.content == "Hello world"
    assert message.tool_calls is None


def test_tagged_calls_in_text_are_left_for_the_classifier():
    ai = AIMessage(content='<tool_call>{"name": "lookup", "arguments": {"id": 7}}</tool_call>')
    outcome = ResponseClassifier.process(message_from_ai(ai))
    assert isinstance(outcome, ToolInvocations)
    assert outcome.invocations[0].arguments == {"id": 7}
