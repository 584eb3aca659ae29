import re
from typing import Any

import orjson


class TextUtils:
    """Utility class for text processing operations."""

    @staticmethod
    def strip_code_fences(text: str) -> str:
        """Remove code fences from text."""
        if not text:
            return text
        return re.sub(r"```[a-zA-Z]*\s*\r?\n|```", "", text, flags=re.MULTILINE)

    @staticmethod
    def truncate_text(text: Any, limit: int) -> str:
        """Truncate text to specified limit with indicator."""
        if isinstance(text, str):
            s = text
        else:
            try:
                s = orjson.dumps(text, default=str).decode("utf-8")
            except TypeError:
                s = str(text)
        if limit <= 0 or len(s) <= limit:
            return s
        tail = len(s) - limit
        return f"{s[:limit]}... [truncated {tail} chars]"

    @staticmethod
    def one_line(text: str) -> str:
        """Collapse whitespace runs so a preview fits on one log line."""
        return re.sub(r"\s+", " ", text or "").strip()
