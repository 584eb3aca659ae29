from reply_normalizer.src.errors import EmptyContentError, MaxRetriesExceededError
from reply_normalizer.src.models import Message, RetryContext, RetryPolicy, RetrySummary, Role, ValidationIssue


def test_message_decodes_ollama_native_tool_calls():
    payload = {
        "role": "assistant",
        "content": None,
        "tool_calls": [{"function": {"name": "get_weather", "arguments": {"city": "Tokyo", "days": 2}}}],
    }
    message = Message.from_payload(payload)
    assert message.role is Role.ASSISTANT
    assert message.content == ""
    assert message.tool_calls[0].name == "get_weather"
    assert list(message.tool_calls[0].arguments) == ["city", "days"]


def test_message_decoding_leaves_text_untouched():
    message = Message.from_payload({"role": "assistant", "content": "<think>x</think> y", "thinking": "t"})
    assert message.content == "<think>x</think> y"
    assert message.thinking == "t"


def test_message_payload_uses_wire_shape():
    message = Message.from_payload(
        {"role": "assistant", "content": "", "tool_calls": [{"name": "f", "arguments": {"a": 1}}]}
    )
    assert message.to_payload() == {
        "role": "assistant",
        "content": "",
        "tool_calls": [{"function": {"name": "f", "arguments": {"a": 1}}}],
    }
    tool_reply = Message(role=Role.TOOL, content="sunny", tool_name="get_weather")
    assert tool_reply.to_payload()["tool_name"] == "get_weather"


def test_non_mapping_arguments_decode_empty():
    message = Message.from_payload({"role": "assistant", "tool_calls": [{"function": {"name": "f", "arguments": None}}]})
    assert message.tool_calls[0].arguments == {}


def test_retry_policy_presets():
    assert RetryPolicy.default() == RetryPolicy(max_attempts=3, include_error_context=True, retry_delay=0.5)
    assert RetryPolicy.none().max_attempts == 0
    assert RetryPolicy.none().include_error_context is False
    assert RetryPolicy.aggressive().max_attempts == 5
    assert RetryPolicy.aggressive().retry_delay == 0.3


def test_retry_context_remaining_attempts():
    context = RetryContext(attempt_number=1, max_attempts=3, error=EmptyContentError())
    assert context.remaining_attempts == 2


def test_retry_summary_description():
    summary = RetrySummary(total_attempts=2, max_attempts=2, errors=["first", "second"], is_exhausted=True)
    assert summary.describe() == "Retry Summary: 2/2 attempts (exhausted)\nErrors:\n  1. first\n  2. second"


def test_validation_issue_messages():
    assert ValidationIssue("price", "number", "missing").message == "Missing required field 'price'"
    assert "expected array" in ValidationIssue("evidence", "array", "string", "x").message


def test_error_kinds_drive_retryability():
    assert EmptyContentError().retryable
    assert not MaxRetriesExceededError(3, "boom").retryable
    assert MaxRetriesExceededError(3, "boom").attempts == 3
