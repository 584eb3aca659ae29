"""Command line entry point: classify a saved Ollama chat reply.

Reads a ``/api/chat`` response (or just its ``message`` object) from a file or
stdin and prints the classified outcome as JSON.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import orjson
from loguru import logger
from pydantic import ValidationError

from .config import Config
from .models import Content, Message, ParsedOutcome, ToolInvocations
from .processing import ResponseClassifier
from .utils.json_utils import safe_loads


def setup_logging(level: Optional[str] = None):
    """Configure application logging."""
    logger.remove()
    _ = logger.add(sys.stderr, level=level or Config.LOG_LEVEL)
    if Config.LOG_FILE:
        Path(Config.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        _ = logger.add(
            Config.LOG_FILE,
            rotation="10 MB",
            retention="10 days",
            enqueue=True,
            backtrace=True,
            diagnose=True,
        )


def outcome_to_dict(outcome: ParsedOutcome) -> Dict[str, Any]:
    if isinstance(outcome, ToolInvocations):
        return {
            "type": "tool_invocations",
            "invocations": [call.model_dump() for call in outcome.invocations],
        }
    if isinstance(outcome, Content):
        return {"type": "content", "text": outcome.text}
    return {"type": "empty"}


def classify_payload(payload: Dict[str, Any]) -> ParsedOutcome:
    message_data = payload.get("message", payload)
    return ResponseClassifier.process(Message.from_payload(message_data))


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="normalize-reply", description=__doc__.splitlines()[0])
    parser.add_argument("path", nargs="?", help="JSON file with the chat reply (default: stdin)")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        raw = Path(args.path).read_bytes() if args.path else sys.stdin.buffer.read()
    except OSError as e:
        logger.error(f"[cli] cannot read {args.path or 'stdin'}: {e}")
        return 2
    try:
        payload = safe_loads(raw)
    except ValueError as e:
        logger.error(f"[cli] input is not valid JSON: {e}")
        return 2
    if not isinstance(payload, dict):
        logger.error("[cli] input must be a JSON object")
        return 2

    try:
        outcome = classify_payload(payload)
    except ValidationError as e:
        logger.error(f"[cli] input is not a chat message: {e}")
        return 2

    sys.stdout.write(orjson.dumps(outcome_to_dict(outcome), option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
