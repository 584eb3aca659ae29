import sys

import orjson
import pytest
from loguru import logger

from reply_normalizer.src import main as cli


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_cli_classifies_full_chat_response(tmp_path, capsys):
    path = tmp_path / "reply.json"
    path.write_bytes(orjson.dumps({
        "model": "qwen3",
        "message": {"role": "assistant", "content": "<think>x</think>Paris"},
        "done": True,
    }))
    assert cli.main([str(path), "--log-level", "ERROR"]) == 0
    assert orjson.loads(capsys.readouterr().out) == {"type": "content", "text": "Paris"}


def test_cli_accepts_bare_message(tmp_path, capsys):
    path = tmp_path / "message.json"
    path.write_bytes(orjson.dumps({
        "role": "assistant",
        "content": "",
        "tool_calls": [{"function": {"name": "f", "arguments": {"a": 1}}}],
    }))
    assert cli.main([str(path), "--log-level", "ERROR"]) == 0
    out = orjson.loads(capsys.readouterr().out)
    assert out == {"type": "tool_invocations", "invocations": [{"name": "f", "arguments": {"a": 1}}]}


def test_cli_rejects_invalid_input(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("not json", encoding="utf-8")
    assert cli.main([str(path), "--log-level", "CRITICAL"]) == 2
    path.write_text('{"role": "wizard"}', encoding="utf-8")
    assert cli.main([str(path), "--log-level", "CRITICAL"]) == 2


def test_outcome_to_dict_empty():
    from reply_normalizer.src.models import Empty

    assert cli.outcome_to_dict(Empty()) == {"type": "empty"}


def test_cli_reports_unreadable_path(tmp_path):
    missing = tmp_path / "missing.json"
    assert cli.main([str(missing), "--log-level", "CRITICAL"]) == 2
