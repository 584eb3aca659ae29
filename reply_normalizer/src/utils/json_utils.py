"""JSON location and repair utilities for model output, built on orjson.

Model replies wrap JSON in fences, lead with prose, trail off mid-object or
sprinkle trailing commas. This module keeps every strategy for dealing with
that in one place:

- safe_loads: strict parse with orjson.
- extract_json: locate the first valid JSON object or array in text; a fenced
  block always wins over a raw span, even one that appears earlier.
- find_json_substring: balanced-bracket scan, no validation.
- remove_trailing_commas / repair_quotes / quote_bare_keys: repairs applied by
  the structured parser before giving up.
- complete_partial_json: close open strings and brackets of a truncated reply.

None of these functions raise on bad input; absence is reported as ``None``.
"""

from __future__ import annotations

import re
from enum import Enum, auto
from typing import Any, Iterator, List, Optional

import orjson

_JSON_BLOCK_RE = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")

_OPENERS = "{["
_CLOSERS = {"{": "}", "[": "]"}


class _ScanState(Enum):
    OUTSIDE = auto()
    IN_STRING = auto()
    IN_STRING_ESCAPE = auto()
    DONE = auto()


def safe_loads(data: str | bytes) -> Any:
    """Parse JSON strictly. Raises ``orjson.JSONDecodeError`` (a ValueError)."""
    return orjson.loads(data)


def is_valid_json(text: Optional[str]) -> bool:
    if not text:
        return False
    try:
        safe_loads(text)
    except ValueError:
        return False
    return True


def iter_fenced_blocks(text: str) -> Iterator[str]:
    """Yield the trimmed body of every ```json / ``` fenced block in order."""
    for match in _JSON_BLOCK_RE.finditer(text):
        yield match.group(1).strip()


def _normalize_quotes(text: str) -> str:
    return text.replace("“", '"').replace("”", '"').replace("‘", "'").replace("’", "'")


def _balanced_end(text: str, begin: int) -> Optional[int]:
    """Return the index just past the bracket closing ``text[begin]``.

    ``None`` means the text ended before the depth returned to zero.
    """
    state = _ScanState.OUTSIDE
    depth = 0
    end: Optional[int] = None
    for index in range(begin, len(text)):
        ch = text[index]
        if state is _ScanState.IN_STRING_ESCAPE:
            state = _ScanState.IN_STRING
        elif state is _ScanState.IN_STRING:
            if ch == "\\":
                state = _ScanState.IN_STRING_ESCAPE
            elif ch == '"':
                state = _ScanState.OUTSIDE
        elif ch == '"':
            state = _ScanState.IN_STRING
        elif ch in _OPENERS:
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                end = index + 1
                state = _ScanState.DONE
        if state is _ScanState.DONE:
            break
    return end


def _first_opener(text: str, start: int = 0) -> int:
    positions = [pos for pos in (text.find("{", start), text.find("[", start)) if pos != -1]
    return min(positions) if positions else -1


def find_json_substring(text: str) -> Optional[str]:
    """Find the first balanced JSON object or array substring.

    Single pass with string/escape tracking. The result is not validated.
    """
    if not text:
        return None
    begin = _first_opener(text)
    if begin == -1:
        return None
    end = _balanced_end(text, begin)
    return text[begin:end] if end is not None else None


def _find_valid_span(text: str) -> Optional[str]:
    start = 0
    while (begin := _first_opener(text, start)) != -1:
        end = _balanced_end(text, begin)
        if end is None:
            # Unterminated: every later opener is nested inside it.
            return None
        candidate = text[begin:end]
        if is_valid_json(candidate):
            return candidate
        start = end
    return None


def extract_json(text: Optional[str]) -> Optional[str]:
    """Return the first valid JSON object/array found in model output.

    Steps:
      1. Every fenced block (```json or bare ```), trimmed and strictly parsed.
      2. Raw scan for a balanced span starting at the first ``{`` or ``[``.

    Returns the JSON text exactly as it appears, or None.
    """
    if not text:
        return None
    for block in iter_fenced_blocks(text):
        if block and is_valid_json(block):
            return block
    return _find_valid_span(text)


def extract_first_json(text: Optional[str]) -> Optional[Any]:
    """Extract and decode the first JSON object/array from model output."""
    found = extract_json(text)
    if found is None:
        return None
    return safe_loads(found)


def find_loose_json(text: str) -> Optional[str]:
    """Best candidate for repair when ``extract_json`` finds nothing valid.

    Prefers a non-empty fenced body, then a balanced span.
    """
    if not text:
        return None
    for block in iter_fenced_blocks(text):
        if block and block[0] in _OPENERS:
            return block
    return find_json_substring(text)


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede ``}`` or ``]`` outside of strings."""
    out: List[str] = []
    in_string = False
    escaped = False
    length = len(text)
    for index, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            out.append(ch)
            continue
        if ch == '"':
            in_string = True
        elif ch == ",":
            lookahead = index + 1
            while lookahead < length and text[lookahead].isspace():
                lookahead += 1
            if lookahead < length and text[lookahead] in "}]":
                continue
        out.append(ch)
    return "".join(out)


def repair_quotes(text: str) -> str:
    """Normalize smart quotes and turn single-quoted strings into double-quoted ones."""
    text = _normalize_quotes(text)
    out: List[str] = []
    in_double = False
    in_single = False
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
            out.append(ch)
            continue
        if ch == "\\" and (in_double or in_single):
            escaped = True
            out.append(ch)
            continue
        if ch == '"' and not in_single:
            in_double = not in_double
        elif ch == '"' and in_single:
            out.append('\\"')
            continue
        elif ch == "'" and not in_double:
            in_single = not in_single
            ch = '"'
        out.append(ch)
    return "".join(out)


def quote_bare_keys(text: str) -> str:
    """Quote unquoted object keys, e.g. ``{name: 1}`` becomes ``{"name": 1}``."""
    return _BARE_KEY_RE.sub(r'\1"\2"\3', text)


def complete_partial_json(text: str) -> Optional[str]:
    """Close whatever a truncated JSON document left open.

    Returns None when the text holds no object or array start.
    """
    begin = _first_opener(text)
    if begin == -1:
        return None
    body = text[begin:]
    stack: List[str] = []
    state = _ScanState.OUTSIDE
    for ch in body:
        if state is _ScanState.IN_STRING_ESCAPE:
            state = _ScanState.IN_STRING
        elif state is _ScanState.IN_STRING:
            if ch == "\\":
                state = _ScanState.IN_STRING_ESCAPE
            elif ch == '"':
                state = _ScanState.OUTSIDE
        elif ch == '"':
            state = _ScanState.IN_STRING
        elif ch in _OPENERS:
            stack.append(_CLOSERS[ch])
        elif ch in "}]" and stack:
            stack.pop()
    if state is _ScanState.IN_STRING_ESCAPE:
        body = body[:-1]
        state = _ScanState.IN_STRING
    if state is _ScanState.IN_STRING:
        body += '"'
    body = body.rstrip()
    if body.endswith(","):
        body = body[:-1]
    elif body.endswith(":"):
        body += " null"
    return body + "".join(reversed(stack))


__all__ = [
    "safe_loads",
    "is_valid_json",
    "iter_fenced_blocks",
    "find_json_substring",
    "extract_json",
    "extract_first_json",
    "find_loose_json",
    "remove_trailing_commas",
    "repair_quotes",
    "quote_bare_keys",
    "complete_partial_json",
]
