"""Processing modules: response classification, structured parsing, retries and streaming."""

from .response_classifier import ResponseClassifier
from .retry_controller import RetryController
from .stream_accumulator import StreamingAccumulator
from .structured_parser import StructuredOutputParser
from .structured_session import StructuredSession

__all__ = [
    'ResponseClassifier',
    'RetryController',
    'StreamingAccumulator',
    'StructuredOutputParser',
    'StructuredSession'
]
