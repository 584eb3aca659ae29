"""Pure text utilities: JSON location and repair, reasoning-tag stripping and
tagged tool-call scanning.

Everything here is synchronous, side-effect free apart from debug logging, and
safe to call from any number of requests at once. New output quirks should be
handled by extending json_utils rather than adding parallel scanners.
"""

from .content_normalizer import ContentNormalizer
from .text_utils import TextUtils
from .tool_call_extractor import ScanResult, ToolCallExtractor
from .tool_call_normalizer import ToolCallNormalizer

__all__ = ["ContentNormalizer", "ScanResult", "TextUtils", "ToolCallExtractor", "ToolCallNormalizer"]
