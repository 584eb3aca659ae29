from reply_normalizer.src.utils.tool_call_extractor import ToolCallExtractor
from reply_normalizer.src.utils.tool_call_normalizer import ToolCallNormalizer


def test_json_dialect_name_arguments():
    text = '<tool_call>{"name": "get_weather", "arguments": {"city": "Tokyo"}}</tool_call>'
    result = ToolCallExtractor.scan(text)
    assert len(result.invocations) == 1
    assert result.invocations[0].name == "get_weather"
    assert result.invocations[0].arguments == {"city": "Tokyo"}
    assert result.remaining_content == ""


def test_json_dialect_function_wrappers():
    text = (
        '<tool_call>{"function": {"name": "a", "arguments": {"x": 1}}}</tool_call>'
        '<tool_call>{"type": "function", "function": {"name": "b"}}</tool_call>'
    )
    calls = ToolCallExtractor.scan(text).invocations
    assert [c.name for c in calls] == ["a", "b"]
    assert calls[0].arguments == {"x": 1}
    assert calls[1].arguments == {}


def test_parameters_alias_and_string_arguments():
    assert ToolCallNormalizer.from_payload({"name": "t", "parameters": {"q": "x"}}).arguments == {"q": "x"}
    assert ToolCallNormalizer.from_payload({"name": "t", "arguments": '{"q": "y"}'}).arguments == {"q": "y"}
    assert ToolCallNormalizer.from_payload({"arguments": {}}) is None


def test_top_level_name_wins_over_nested_function():
    payload = {"name": "x", "arguments": {"a": 1}, "function": {"name": "y", "arguments": {"b": 2}}}
    call = ToolCallNormalizer.from_payload(payload)
    assert call.name == "x"
    assert call.arguments == {"a": 1}


def test_key_value_dialect_preserves_order():
    text = (
        "Let me check.\n<tool_call>search\n"
        "<arg_key>query</arg_key><arg_value>ollama tools</arg_value>\n"
        "<arg_key>limit</arg_key>\n<arg_value>5</arg_value>\n</tool_call>"
    )
    result = ToolCallExtractor.scan(text)
    assert len(result.invocations) == 1
    call = result.invocations[0]
    assert call.name == "search"
    assert list(call.arguments.items()) == [("query", "ollama tools"), ("limit", "5")]
    assert result.remaining_content == "Let me check."


def test_key_value_value_holding_json_stays_a_string():
    text = '<tool_call>run<arg_key>payload</arg_key><arg_value>{"name": "x"}</arg_value></tool_call>'
    call = ToolCallExtractor.scan(text).invocations[0]
    assert call.name == "run"
    assert call.arguments == {"payload": '{"name": "x"}'}


def test_function_call_tag_is_equivalent():
    text = (
        '<function_call>{"name": "first", "arguments": {}}</function_call>'
        "<tool_call>second<arg_key>k</arg_key><arg_value>v</arg_value></tool_call>"
    )
    calls = ToolCallExtractor.scan(text).invocations
    assert [c.name for c in calls] == ["first", "second"]


def test_malformed_span_does_not_abort_siblings():
    text = (
        '<tool_call>{"name": "ok_one", "arguments": {}}</tool_call>'
        "<tool_call>this is not a call</tool_call>"
        '<tool_call>{"name": "ok_two", "arguments": {"n": 2}}</tool_call>'
    )
    result = ToolCallExtractor.scan(text)
    assert [c.name for c in result.invocations] == ["ok_one", "ok_two"]
    assert result.remaining_content == ""


def test_key_value_without_pairs_is_rejected():
    assert ToolCallNormalizer.from_key_value_markup("name_only") is None
    assert ToolCallNormalizer.from_key_value_markup("<arg_key>k</arg_key><arg_value>v</arg_value>") is None


def test_contains_tool_call_patterns():
    assert ToolCallExtractor.contains_tool_call_patterns("x <tool_call> y")
    assert ToolCallExtractor.contains_tool_call_patterns("<FUNCTION_CALL>")
    assert not ToolCallExtractor.contains_tool_call_patterns("plain text")
    assert not ToolCallExtractor.contains_tool_call_patterns("")


def test_scan_without_spans_returns_text():
    result = ToolCallExtractor.scan("  nothing to see  ")
    assert result.invocations == []
    assert result.remaining_content == "nothing to see"
